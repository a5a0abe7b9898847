"""
Engine Core - In-memory quest generation.

The engine is the runtime that:
1. Takes a mapping of decks of tagged Cards
2. Evaluates tags and collects pending cross-deck instructions
3. Resolves constrained draws with bounded retries and fallback
4. Runs the Verb -> Target -> Location -> Twist -> Reward/Failure pipeline
5. Records a run log and counters for callers
"""

from .state import (
    Card,
    Instruction,
    PendingInstruction,
    Modification,
    Quest,
    QuestRole,
    PipelineStage,
    LogEntry,
    RunStats,
    normalize_deck_name,
)
from .tags import current_tags, current_tag_list, intersects, matches, match_pool
from .ledger import PendingInstructionLedger, CollisionPolicy, LEDGER_COLLISION_POLICY, Resolution
from .resolver import DrawResolver, DrawOutcome
from .effects import apply_modify_effects, ModifyOutcome
from .run_log import RunLog
from .pipeline import QuestEngine, StageOrderError

__all__ = [
    "Card",
    "Instruction",
    "PendingInstruction",
    "Modification",
    "Quest",
    "QuestRole",
    "PipelineStage",
    "LogEntry",
    "RunStats",
    "normalize_deck_name",
    "current_tags",
    "current_tag_list",
    "intersects",
    "matches",
    "match_pool",
    "PendingInstructionLedger",
    "CollisionPolicy",
    "LEDGER_COLLISION_POLICY",
    "Resolution",
    "DrawResolver",
    "DrawOutcome",
    "apply_modify_effects",
    "ModifyOutcome",
    "RunLog",
    "QuestEngine",
    "StageOrderError",
]
