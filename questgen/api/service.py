"""
API Service - Business logic layer between the HTTP API and the engine.

The service:
1. Owns the CardStore and one QuestEngine, serving one request at a time
2. Gives every run a fresh store snapshot (runs never leak tags)
3. Drives full runs, single steps and validator runs
4. Formats engine state as API schemas

This layer is framework-agnostic; the FastAPI app is one client of it.
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from .schemas import (
    # Requests
    GenerateQuestRequest,
    StepRequest,
    ValidateRequest,
    # Responses
    QuestResponse,
    StepResponse,
    LogsResponse,
    DecksResponse,
    ValidationReportResponse,
    HealthResponse,
    # Shared
    CardInfo,
    DeckInfo,
    LogEntryInfo,
    ModificationInfo,
    PendingInstructionInfo,
    QuestSummary,
    ValidationSummaryInfo,
    CardRef,
    OveractiveCardInfo,
    TagUsageInfo,
    BottleneckInfo,
    # Enums
    ErrorCode,
    PipelineStageName,
)
from .. import __version__
from ..cards import CardStore, CardStoreError
from ..config import EngineConfig
from ..engine_core import QuestEngine, Card, QuestRole, PipelineStage, StageOrderError, current_tag_list
from ..logging_util import get_logger
from ..validator import QuestValidator, format_report_as_text


logger = get_logger("questgen.api")


class ServiceError(Exception):
    """A request the service cannot fulfil, with a structured error code."""

    def __init__(self, error_code: ErrorCode, message: str, details: dict[str, Any] | None = None):
        self.error_code = error_code
        self.message = message
        self.details = details
        super().__init__(message)


@dataclass
class QuestService:
    """
    Main service for the quest tools.

    Usage:
        service = QuestService()
        service.load_file("cards.json")

        # Full run
        response = service.generate(GenerateQuestRequest())

        # Step-through
        service.step("draw_verb")
        service.step("draw_target")

        # Balance analysis
        report = service.validate(ValidateRequest(iterations=200))
    """
    store: CardStore = field(default_factory=CardStore)
    config: EngineConfig = field(default_factory=EngineConfig.from_env)
    environment: str = "development"
    engine: QuestEngine = field(init=False)
    # The engine holds one run; requests that touch it are serialized
    _lock: threading.RLock = field(default_factory=threading.RLock, init=False, repr=False)

    def __post_init__(self):
        self.engine = QuestEngine(config=self.config)

    # =========================================================================
    # Card data
    # =========================================================================

    def load_decks(self, data: dict[str, Any]) -> DecksResponse:
        """Replace the card data (hot swap). The current run is discarded."""
        with self._lock:
            try:
                self.store.load_data(data)
            except CardStoreError as e:
                raise ServiceError(ErrorCode.INVALID_CARD_DATA, str(e), {"errors": e.errors})
            self.engine.decks = {}
            self.engine.reset()
            logger.info("Card data replaced: %s", self.store.deck_counts())
            return self.deck_info()

    def load_file(self, path: str | Path) -> DecksResponse:
        with self._lock:
            try:
                self.store.load_file(path)
            except CardStoreError as e:
                raise ServiceError(ErrorCode.INVALID_CARD_DATA, str(e), {"errors": e.errors})
            self.engine.decks = {}
            self.engine.reset()
            return self.deck_info()

    def deck_info(self) -> DecksResponse:
        counts = self.store.deck_counts()
        return DecksResponse(
            generation=self.store.generation,
            total_cards=sum(counts.values()),
            decks=[DeckInfo(name=name, card_count=count) for name, count in counts.items()],
        )

    # =========================================================================
    # Generation
    # =========================================================================

    def generate(self, request: GenerateQuestRequest) -> QuestResponse:
        """Run the full pipeline over a fresh snapshot."""
        with self._lock:
            verb = self._begin_run(request.verb_name)
            quest = self.engine.generate_quest(verb)
            if quest is None:
                raise self._aborted_error()
            return self._quest_response(include_logs=request.include_logs)

    def step(self, stage_name: str, request: StepRequest | None = None) -> StepResponse:
        """
        Run one pipeline step against the shared engine state.

        draw_verb starts a new run over a fresh snapshot; every other step
        continues the current run.
        """
        request = request or StepRequest()
        try:
            stage = PipelineStage(stage_name.strip().lower())
        except ValueError:
            raise ServiceError(ErrorCode.UNKNOWN_STAGE, f"Unknown stage: {stage_name}")

        with self._lock:
            try:
                if stage == PipelineStage.DRAW_VERB:
                    result = self.engine.step_draw_verb(self._begin_run(request.verb_name))
                else:
                    result = self.engine.run_step(stage)
            except StageOrderError as e:
                raise ServiceError(
                    ErrorCode.STAGE_OUT_OF_ORDER,
                    str(e),
                    {"current_stage": e.current.value, "expected_stage": e.expected.value},
                )
            except ValueError as e:
                raise ServiceError(ErrorCode.UNKNOWN_STAGE, str(e))

            if isinstance(result, tuple):
                drawn = [card for card in result if card is not None]
            else:
                drawn = [result] if result is not None else []

            return StepResponse(
                requested_stage=PipelineStageName(stage.value),
                stage=PipelineStageName(self.engine.stage.value),
                drawn=[_card_info(card) for card in drawn],
                quest=self._quest_response(include_logs=True),
            )

    def current_quest(self) -> QuestResponse:
        with self._lock:
            return self._quest_response(include_logs=False)

    def logs(self) -> LogsResponse:
        with self._lock:
            return LogsResponse(
                stage=PipelineStageName(self.engine.stage.value),
                logs=[_log_info(entry) for entry in self.engine.get_logs()],
            )

    # =========================================================================
    # Validation
    # =========================================================================

    def validate(self, request: ValidateRequest) -> ValidationReportResponse:
        """Run the validator over the loaded card data."""
        config = self.config
        if request.seed is not None:
            config = replace(config, seed=request.seed)

        with self._lock:
            self._require_decks()
            report = QuestValidator(self.store, config).validate_all(request.iterations)

        return ValidationReportResponse(
            summary=ValidationSummaryInfo(**vars(report.summary)),
            total_cards=report.total_cards,
            cards_used=report.cards_used,
            dead_cards=[CardRef(**card) for card in report.dead_cards],
            overactive_cards=[OveractiveCardInfo(**vars(card)) for card in report.overactive_cards],
            unique_tags=report.unique_tags,
            top_tags=[TagUsageInfo(tag=tag, usage_count=count) for tag, count in report.top_tags],
            avg_verb_tightness=report.avg_verb_tightness,
            routing_bottlenecks=[BottleneckInfo(**vars(b)) for b in report.bottlenecks],
            report_text=format_report_as_text(report),
        )

    def health(self) -> HealthResponse:
        return HealthResponse(
            version=__version__,
            environment=self.environment,
            decks_loaded=not self.store.is_empty,
        )

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_decks(self) -> None:
        if self.store.is_empty:
            raise ServiceError(ErrorCode.NO_DECKS_LOADED, "No card data loaded")

    def _begin_run(self, verb_name: str | None) -> Card | None:
        """
        Point the engine at a fresh snapshot; return the requested verb, if any.

        An unknown verb raises before the engine is touched, so a run in
        progress keeps its decks.
        """
        self._require_decks()
        snapshot = self.store.snapshot()
        verb = None
        if verb_name:
            verb = snapshot.find_card(QuestRole.VERB.value, verb_name)
            if verb is None:
                raise ServiceError(ErrorCode.VERB_NOT_FOUND, f"Verb not found: {verb_name}")
        self.engine.decks = snapshot.decks
        return verb

    def _aborted_error(self) -> ServiceError:
        errors = [e for e in self.engine.get_logs() if e.level == "error"]
        message = errors[-1].message if errors else "Quest generation aborted"
        return ServiceError(
            ErrorCode.GENERATION_ABORTED,
            message,
            {
                "stage": self.engine.stage.value,
                "errors": [e.message for e in errors],
                "stats": self.engine.stats.to_dict(),
            },
        )

    def _quest_response(self, include_logs: bool) -> QuestResponse:
        engine = self.engine
        quest = engine.get_quest()
        summary = engine.get_quest_summary()

        def info(role: QuestRole) -> CardInfo | None:
            card = quest.get(role)
            return _card_info(card) if card is not None else None

        return QuestResponse(
            success=engine.is_complete,
            stage=PipelineStageName(engine.stage.value),
            summary=QuestSummary(**summary) if summary else None,
            verb=info(QuestRole.VERB),
            target=info(QuestRole.TARGET),
            location=info(QuestRole.LOCATION),
            twist=info(QuestRole.TWIST),
            reward=info(QuestRole.REWARD),
            failure=info(QuestRole.FAILURE),
            modifications=[ModificationInfo(**m.to_dict()) for m in quest.modifications],
            pending_instructions=[PendingInstructionInfo(**p) for p in engine.ledger.to_list()],
            logs=[_log_info(entry) for entry in engine.get_logs()] if include_logs else [],
        )


def _card_info(card: Card) -> CardInfo:
    return CardInfo(
        card_id=card.card_id,
        name=card.name,
        deck=card.deck,
        tags=current_tag_list(card),
        extra=dict(card.extra),
    )


def _log_info(entry) -> LogEntryInfo:
    return LogEntryInfo(**entry.to_dict())
