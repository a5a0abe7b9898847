"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the contract between the authoring tools (quest
generator page, step-through debugger, validator dashboard) and the engine.

Error Codes:
- NO_DECKS_LOADED: No card data has been loaded yet
- INVALID_CARD_DATA: Submitted card data failed validation
- GENERATION_ABORTED: A mandatory stage (Verb, Target, Location, Twist) had no cards
- STAGE_OUT_OF_ORDER: A step was requested before the stage it depends on
- UNKNOWN_STAGE: The requested stage name is not a drawing stage
- VERB_NOT_FOUND: The requested verb is not in the verb deck
"""

from enum import Enum
from typing import Optional, Any
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class PipelineStageName(str, Enum):
    """Pipeline stages as exposed over the API."""
    IDLE = "idle"
    DRAW_VERB = "draw_verb"
    DRAW_TARGET = "draw_target"
    DRAW_LOCATION = "draw_location"
    DRAW_TWIST = "draw_twist"
    DRAW_REWARD_AND_FAILURE = "draw_reward_and_failure"
    COMPLETE = "complete"
    ABORTED = "aborted"


class LogLevel(str, Enum):
    NORMAL = "normal"
    WARNING = "warning"
    ERROR = "error"


class ErrorCode(str, Enum):
    """Structured error codes."""
    NO_DECKS_LOADED = "NO_DECKS_LOADED"
    INVALID_CARD_DATA = "INVALID_CARD_DATA"
    GENERATION_ABORTED = "GENERATION_ABORTED"
    STAGE_OUT_OF_ORDER = "STAGE_OUT_OF_ORDER"
    UNKNOWN_STAGE = "UNKNOWN_STAGE"
    VERB_NOT_FOUND = "VERB_NOT_FOUND"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# =============================================================================
# Shared Models
# =============================================================================

class CardInfo(BaseModel):
    """A drawn card reduced for display."""
    card_id: str
    name: str
    deck: str = ""
    tags: list[str] = Field(default_factory=list, description="Current tags (static + mutable)")
    extra: dict[str, Any] = Field(default_factory=dict, description="Card fields the engine does not read")

    model_config = {"from_attributes": True}


class StatsInfo(BaseModel):
    """Counters for one run."""
    draw_attempts: int = 0
    fallbacks_triggered: int = 0
    modify_effects_applied: int = 0
    poor_match_pools: int = 0


class ModificationInfo(BaseModel):
    source: str
    applied_to: str
    tags: list[str] = Field(default_factory=list)


class PendingInstructionInfo(BaseModel):
    source: str
    target: str
    tags: list[str] = Field(default_factory=list)


class LogEntryInfo(BaseModel):
    """One run-log entry."""
    timestamp: int
    message: str
    data: Optional[dict[str, Any]] = None
    level: LogLevel = LogLevel.NORMAL


class QuestSummary(BaseModel):
    """Quest reduced to card names plus current tags."""
    verb: Optional[str] = None
    target: Optional[str] = None
    target_tags: list[str] = Field(default_factory=list)
    location: Optional[str] = None
    location_tags: list[str] = Field(default_factory=list)
    twist: Optional[str] = None
    twist_tags: list[str] = Field(default_factory=list)
    reward: Optional[str] = None
    failure: Optional[str] = None
    stats: StatsInfo = Field(default_factory=StatsInfo)


# =============================================================================
# Requests
# =============================================================================

class GenerateQuestRequest(BaseModel):
    """Parameters for a full quest generation run."""
    verb_name: Optional[str] = Field(default=None, description="Use this verb instead of drawing one")
    include_logs: bool = Field(default=True, description="Return the run log with the quest")


class StepRequest(BaseModel):
    """Parameters for a single step. verb_name only applies to draw_verb."""
    verb_name: Optional[str] = None


class ValidateRequest(BaseModel):
    """Parameters for a validator run."""
    iterations: int = Field(default=100, ge=1, le=10000)
    seed: Optional[str] = Field(default=None, description="Seed for a reproducible report")


# =============================================================================
# Responses
# =============================================================================

class QuestResponse(BaseModel):
    """Result of a generation run or the current in-progress run."""
    success: bool
    stage: PipelineStageName
    summary: Optional[QuestSummary] = None
    verb: Optional[CardInfo] = None
    target: Optional[CardInfo] = None
    location: Optional[CardInfo] = None
    twist: Optional[CardInfo] = None
    reward: Optional[CardInfo] = None
    failure: Optional[CardInfo] = None
    modifications: list[ModificationInfo] = Field(default_factory=list)
    pending_instructions: list[PendingInstructionInfo] = Field(default_factory=list)
    logs: list[LogEntryInfo] = Field(default_factory=list)


class StepResponse(BaseModel):
    """Result of running one pipeline step."""
    requested_stage: PipelineStageName
    stage: PipelineStageName
    drawn: list[CardInfo] = Field(default_factory=list)
    quest: QuestResponse


class LogsResponse(BaseModel):
    stage: PipelineStageName
    logs: list[LogEntryInfo] = Field(default_factory=list)


class DeckInfo(BaseModel):
    name: str
    card_count: int


class DecksResponse(BaseModel):
    """Currently loaded card data."""
    generation: int
    total_cards: int
    decks: list[DeckInfo] = Field(default_factory=list)


class ValidationSummaryInfo(BaseModel):
    total_iterations: int
    aborted_runs: int
    total_draws: int
    avg_draws_per_quest: float
    total_fallbacks: int
    fallback_rate: float
    avg_modify_effects_per_quest: float
    poor_match_pools: int


class CardRef(BaseModel):
    deck: str
    name: str


class OveractiveCardInfo(BaseModel):
    deck: str
    name: str
    selected_count: int
    expected_count: float
    ratio: float


class TagUsageInfo(BaseModel):
    tag: str
    usage_count: int


class BottleneckInfo(BaseModel):
    stage: str
    occurrences: int
    percentage: float


class ValidationReportResponse(BaseModel):
    """Aggregated validator report."""
    summary: ValidationSummaryInfo
    total_cards: int
    cards_used: int
    dead_cards: list[CardRef] = Field(default_factory=list)
    overactive_cards: list[OveractiveCardInfo] = Field(default_factory=list)
    unique_tags: int = 0
    top_tags: list[TagUsageInfo] = Field(default_factory=list)
    avg_verb_tightness: Optional[float] = None
    routing_bottlenecks: list[BottleneckInfo] = Field(default_factory=list)
    report_text: str = ""


class ErrorResponse(BaseModel):
    """Standard error payload."""
    error: str
    error_code: ErrorCode
    details: Optional[dict[str, Any]] = None


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    environment: str
    decks_loaded: bool
