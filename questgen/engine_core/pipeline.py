"""
Quest Pipeline - The five-stage quest generation state machine.

Stages run in a fixed order:
    IDLE -> DRAW_VERB -> DRAW_TARGET -> DRAW_LOCATION -> DRAW_TWIST
         -> DRAW_REWARD_AND_FAILURE -> COMPLETE

Each stage resolves its required tags through the pending-instruction
ledger, draws through the DrawResolver, applies the drawn card's Modify
effects and records its remaining instructions for later stages.

Failure semantics:
- Verb, Target, Location and Twist are mandatory: an empty deck aborts
  the run (stage becomes ABORTED) and generate_quest returns None
- Reward and Failure are optional: a missing one is logged and tolerated
- Run failures never raise; calling steps out of order does

Full runs and step-through debugging are two drivers over the same state:
generate_quest() calls the step methods in order.
"""

from __future__ import annotations
import random
from typing import Any, Callable, Mapping

from .state import (
    Card,
    Quest,
    QuestRole,
    PipelineStage,
    LogEntry,
    RunStats,
    normalize_deck_name,
)
from .tags import current_tag_list, match_pool
from .ledger import PendingInstructionLedger
from .resolver import DrawResolver
from .effects import apply_modify_effects
from .run_log import RunLog
from ..config import EngineConfig
from ..random_util import get_random


POOR_MATCH_POOL_PERCENT = 40.0


class StageOrderError(ValueError):
    """Raised when a pipeline step is run before the stage it depends on."""

    def __init__(self, requested: PipelineStage, current: PipelineStage, expected: PipelineStage):
        self.requested = requested
        self.current = current
        self.expected = expected
        super().__init__(
            f"Cannot run {requested.value} while pipeline is at {current.value} "
            f"(expected {expected.value})"
        )


class QuestEngine:
    """
    Generates quests from a mapping of deck name -> list of Cards.

    Usage:
        engine = QuestEngine(decks, config=EngineConfig(seed=7))

        # Full run
        quest = engine.generate_quest()
        if quest is None:
            print(engine.get_logs()[-1].message)

        # Step-through
        engine.step_draw_verb()
        engine.step_draw_target()
        ...

    The decks reference may be reassigned between runs (e.g. after an
    import). Cards are used in place: Modify effects grow their
    mutable_tags and those additions outlive reset(). Callers wanting
    isolated runs should pass a fresh CardStore snapshot per run.
    """

    def __init__(
        self,
        decks: Mapping[str, list[Card]] | None = None,
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
        draw_listener: Callable[[Card, str], None] | None = None,
        silent: bool = False,
    ):
        self.decks: Mapping[str, list[Card]] = decks if decks is not None else {}
        self.config = config or EngineConfig()
        self.rng = rng or get_random(self.config.seed)
        self.draw_listener = draw_listener
        self.silent = silent
        self.reset()

    # =========================================================================
    # Run state
    # =========================================================================

    def reset(self) -> None:
        """Return to IDLE with a fresh quest, log, stats and ledger."""
        self.stage = PipelineStage.IDLE
        self.quest = Quest()
        self.stats = RunStats()
        self.log = RunLog(debug_mode=self.config.debug_mode, silent=self.silent)
        self.ledger = PendingInstructionLedger()
        self.match_pools: dict[str, tuple[int, int]] = {}
        self.resolver = DrawResolver(
            rng=self.rng,
            log=self.log,
            stats=self.stats,
            max_redraws=self.config.max_redraws,
            draw_listener=self.draw_listener,
        )

    def get_deck(self, role: QuestRole) -> list[Card]:
        """Deck for a role; deck keys match case-insensitively, singular or plural."""
        for name, deck in self.decks.items():
            if normalize_deck_name(name) == role.value:
                return deck
        return []

    # =========================================================================
    # Drivers
    # =========================================================================

    def generate_quest(self, specific_verb: Card | None = None) -> Quest | None:
        """
        Run the whole pipeline once.

        Returns the Quest, or None if a mandatory stage could not be drawn.
        """
        if self.step_draw_verb(specific_verb) is None:
            return None
        for step in (self.step_draw_target, self.step_draw_location, self.step_draw_twist):
            if step() is None:
                return None
        self.step_draw_reward_and_failure()
        return self.quest

    def run_step(self, stage: PipelineStage | str) -> Any:
        """Run the step for a stage given by enum or name ("draw_target", ...)."""
        if isinstance(stage, str):
            stage = PipelineStage(stage.strip().lower())
        steps = {
            PipelineStage.DRAW_VERB: self.step_draw_verb,
            PipelineStage.DRAW_TARGET: self.step_draw_target,
            PipelineStage.DRAW_LOCATION: self.step_draw_location,
            PipelineStage.DRAW_TWIST: self.step_draw_twist,
            PipelineStage.DRAW_REWARD_AND_FAILURE: self.step_draw_reward_and_failure,
        }
        if stage not in steps:
            raise ValueError(f"{stage.value} is not a drawing stage")
        return steps[stage]()

    # =========================================================================
    # Steps
    # =========================================================================

    def step_draw_verb(self, specific_verb: Card | None = None) -> Card | None:
        """
        Begin a new run and place the Verb.

        A caller-supplied verb is used as is. Otherwise one card is drawn
        uniformly from the verb deck with no tag constraint and no fallback.
        """
        self.reset()
        self._log_header(specific_verb)

        if specific_verb is not None:
            verb = specific_verb
            self.log.log(f"Verb: \"{verb.name}\" (user-selected)", {"card": verb.name})
        else:
            verb = self.resolver.draw_uniform(self.get_deck(QuestRole.VERB), QuestRole.VERB.label)
            if verb is None:
                return self._abort(QuestRole.VERB)

        # Recorded ahead of the verb's own instructions; first entry per deck wins
        requirement = self.ledger.record_requirement(verb, QuestRole.TARGET.label)
        self._place(QuestRole.VERB, verb)
        if requirement is not None:
            self.log.log(
                f"→ Verb requires Target with [{', '.join(requirement.tags)}]",
                requirement.to_dict(),
            )

        self.stage = PipelineStage.DRAW_VERB
        return verb

    def step_draw_target(self) -> Card | None:
        """Draw the Target. Default requirement is the Verb's TargetRequirement."""
        self._require_stage(PipelineStage.DRAW_TARGET, PipelineStage.DRAW_VERB)
        default = list(self.quest.verb.target_requirement) if self.quest.verb else []
        return self._mandatory(PipelineStage.DRAW_TARGET, QuestRole.TARGET, default)

    def step_draw_location(self) -> Card | None:
        """Draw the Location. Unconstrained unless an instruction targets Location."""
        self._require_stage(PipelineStage.DRAW_LOCATION, PipelineStage.DRAW_TARGET)
        return self._mandatory(PipelineStage.DRAW_LOCATION, QuestRole.LOCATION, [])

    def step_draw_twist(self) -> Card | None:
        """Draw the Twist. Unconstrained unless an instruction targets Twist."""
        self._require_stage(PipelineStage.DRAW_TWIST, PipelineStage.DRAW_LOCATION)
        return self._mandatory(PipelineStage.DRAW_TWIST, QuestRole.TWIST, [])

    def step_draw_reward_and_failure(self) -> tuple[Card | None, Card | None]:
        """
        Draw Reward then Failure independently and complete the run.

        Either may be missing; neither aborts the run.
        """
        self._require_stage(PipelineStage.DRAW_REWARD_AND_FAILURE, PipelineStage.DRAW_TWIST)

        reward = self._draw_stage(QuestRole.REWARD, [])
        if reward is None:
            self.log.warning("Reward unavailable, continuing without it", {"stage": "Reward"})
        failure = self._draw_stage(QuestRole.FAILURE, [])
        if failure is None:
            self.log.warning("Failure unavailable, continuing without it", {"stage": "Failure"})

        self.stage = PipelineStage.COMPLETE
        self._log_footer()
        return reward, failure

    # =========================================================================
    # Read accessors
    # =========================================================================

    def get_quest(self) -> Quest:
        return self.quest

    def get_logs(self) -> list[LogEntry]:
        return list(self.log.entries)

    def get_quest_summary(self) -> dict[str, Any] | None:
        """
        Quest reduced to card names and current tags.

        Returns None before a Verb has been placed.
        """
        quest = self.quest
        if quest.verb is None:
            return None

        def name(card: Card | None) -> str | None:
            return card.name if card else None

        def tags(card: Card | None) -> list[str]:
            return current_tag_list(card) if card else []

        return {
            "verb": name(quest.verb),
            "target": name(quest.target),
            "target_tags": tags(quest.target),
            "location": name(quest.location),
            "location_tags": tags(quest.location),
            "twist": name(quest.twist),
            "twist_tags": tags(quest.twist),
            "reward": name(quest.reward),
            "failure": name(quest.failure),
            "stats": self.stats.to_dict(),
        }

    def state_dict(self) -> dict[str, Any]:
        """JSON-serializable view of the whole engine state."""
        return {
            "stage": self.stage.value,
            "quest": self.get_quest_summary(),
            "modifications": [m.to_dict() for m in self.quest.modifications],
            "pending_instructions": self.ledger.to_list(),
            "match_pools": {role: list(pool) for role, pool in self.match_pools.items()},
            "stats": self.stats.to_dict(),
            "logs": [entry.to_dict() for entry in self.log.entries],
        }

    @property
    def is_complete(self) -> bool:
        return self.stage == PipelineStage.COMPLETE

    @property
    def is_aborted(self) -> bool:
        return self.stage == PipelineStage.ABORTED

    # =========================================================================
    # Internals
    # =========================================================================

    def _require_stage(self, requested: PipelineStage, expected: PipelineStage) -> None:
        if self.stage != expected:
            raise StageOrderError(requested, self.stage, expected)

    def _mandatory(self, stage: PipelineStage, role: QuestRole, default_tags: list[str]) -> Card | None:
        card = self._draw_stage(role, default_tags)
        if card is None:
            return self._abort(role)
        self.stage = stage
        return card

    def _abort(self, role: QuestRole) -> None:
        self.stage = PipelineStage.ABORTED
        self.log.error(
            f"ERROR: {role.label} could not be drawn, aborting quest generation",
            {"stage": role.label, "error": "PipelineAbort"},
        )
        return None

    def _draw_stage(self, role: QuestRole, default_tags: list[str]) -> Card | None:
        """Resolve requirement, draw, place, apply effects and record instructions."""
        label = role.label
        deck = self.get_deck(role)
        resolution = self.ledger.resolve_requirement(label, default_tags)
        required = resolution.tags

        self.log.log(f"=== Drawing {label} ===")
        if resolution.from_ledger:
            self.log.log(
                f"{label} requirement from \"{resolution.source.source}\": [{', '.join(required)}]",
                {"stage": label, "required_tags": list(required), "source": resolution.source.source},
            )
        elif required:
            self.log.log(
                f"{label} requirement (default): [{', '.join(required)}]",
                {"stage": label, "required_tags": list(required), "source": None},
            )
        else:
            self.log.log(
                f"Drawing {label} (no tag constraints)",
                {"stage": label, "required_tags": [], "source": None},
            )

        self._track_match_pool(role, deck, required)

        card = self.resolver.draw_with_fallback(deck, required, label)
        if card is None:
            return None

        self._place(role, card)
        return card

    def _place(self, role: QuestRole, card: Card) -> None:
        """Put a card in its quest slot, apply its Modify effects, record the rest."""
        self.quest.set(role, card)
        self.log.log(f"{role.label} selected: \"{card.name}\"", {"stage": role.label, "card": card.name})

        outcome = apply_modify_effects(card, self.log, self.stats, self.quest.held_cards())
        self.quest.modifications.extend(outcome.applied)

        for entry in self.ledger.record(card, outcome.deferred):
            self.log.log(
                f"→ Instruction: Add [{', '.join(entry.tags)}] to {entry.target}",
                entry.to_dict(),
                verbose_only=True,
            )

        self.log.log(
            f"Current tags: [{', '.join(current_tag_list(card))}]",
            {"card": card.name, "tags": current_tag_list(card)},
            verbose_only=True,
        )

    def _track_match_pool(self, role: QuestRole, deck: list[Card], required: list[str]) -> None:
        matching = len(match_pool(deck, required))
        total = len(deck)
        self.match_pools[role.value] = (matching, total)
        if not total or not required:
            return

        percentage = matching / total * 100
        self.log.log(
            f"Match pool: {matching}/{total} ({percentage:.1f}%)",
            {"stage": role.label, "matching": matching, "total": total},
            verbose_only=True,
        )
        if matching == 0:
            self.log.warning(
                f"{role.label}: no card carries [{', '.join(required)}], fallback expected",
                {"stage": role.label, "required_tags": list(required), "deck_size": total},
            )
        elif percentage < POOR_MATCH_POOL_PERCENT:
            self.stats.poor_match_pools += 1

    def _log_header(self, specific_verb: Card | None) -> None:
        self.log.log("=== QUEST GENERATION STARTED ===")
        self.log.log(
            "Generation Settings",
            {
                "debug_mode": self.config.debug_mode,
                "max_redraws": self.config.max_redraws_label,
                "verb": specific_verb.name if specific_verb else "random",
            },
            verbose_only=True,
        )

    def _log_footer(self) -> None:
        self.log.log(
            "=== QUEST GENERATION COMPLETE ===",
            self.stats.to_dict(),
        )
