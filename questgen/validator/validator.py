"""
Quest Validator - Drives the engine repeatedly for balance analysis.

Each iteration runs a full quest over a fresh CardStore snapshot, so
Modify effects from one run never leak into the next. The validator
collects:
- Card utilization (drawn, selected, rejected; dead and overactive cards)
- Tag utilization across selected cards
- Verb tightness (how much of the Target deck a verb's requirement admits)
- Routing bottlenecks (stages whose match pool was under half the deck)
"""

from __future__ import annotations
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Callable

from ..cards import CardStore
from ..config import EngineConfig
from ..engine_core import QuestEngine, Card, Quest, QuestRole, DrawOutcome, current_tag_list
from ..logging_util import get_logger
from ..random_util import get_random


logger = get_logger("questgen.validator")

OVERACTIVE_RATIO = 1.5
BOTTLENECK_PERCENT = 50.0
TOP_TAG_COUNT = 20


@dataclass
class CardUsage:
    """Per-card counters across all iterations."""
    card_id: str
    deck: str
    name: str
    draw_count: int = 0
    selected_count: int = 0
    rejection_count: int = 0


@dataclass
class ValidationSummary:
    total_iterations: int
    aborted_runs: int
    total_draws: int
    avg_draws_per_quest: float
    total_fallbacks: int
    fallback_rate: float  # Percent of iterations; can exceed 100
    avg_modify_effects_per_quest: float
    poor_match_pools: int


@dataclass
class OveractiveCard:
    deck: str
    name: str
    selected_count: int
    expected_count: float
    ratio: float


@dataclass
class Bottleneck:
    stage: str
    occurrences: int
    percentage: float


@dataclass
class ValidationReport:
    """Aggregated result of a validation run."""
    summary: ValidationSummary
    total_cards: int
    cards_used: int
    dead_cards: list[dict[str, str]] = field(default_factory=list)
    overactive_cards: list[OveractiveCard] = field(default_factory=list)
    unique_tags: int = 0
    top_tags: list[tuple[str, int]] = field(default_factory=list)
    avg_verb_tightness: float | None = None
    bottlenecks: list[Bottleneck] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "summary": vars(self.summary).copy(),
            "card_utilization": {
                "total_cards": self.total_cards,
                "cards_used": self.cards_used,
                "dead_cards": list(self.dead_cards),
                "overactive_cards": [vars(c).copy() for c in self.overactive_cards],
            },
            "tag_utilization": {
                "unique_tags": self.unique_tags,
                "top_tags": [{"tag": tag, "usage_count": count} for tag, count in self.top_tags],
            },
            "verb_tightness": {"avg_percentage": self.avg_verb_tightness},
            "routing_bottlenecks": [vars(b).copy() for b in self.bottlenecks],
        }


class QuestValidator:
    """
    Runs the engine N times and aggregates statistics.

    Usage:
        validator = QuestValidator(store, EngineConfig(seed=1))
        report = validator.validate_all(iterations=500)
        print(format_report_as_text(report))
    """

    def __init__(
        self,
        store: CardStore,
        config: EngineConfig | None = None,
        rng: random.Random | None = None,
    ):
        self.store = store
        self.config = config or EngineConfig()
        self.rng = rng or get_random(self.config.seed)
        self.reset_stats()

    def reset_stats(self) -> None:
        self.total_iterations = 0
        self.aborted_runs = 0
        self.draw_attempts = 0
        self.fallbacks = 0
        self.modify_effects = 0
        self.poor_match_pools = 0
        self.card_usage: dict[str, CardUsage] = {}
        self.tag_usage: Counter[str] = Counter()
        self.verb_tightness: list[float] = []
        self.bottlenecks: Counter[str] = Counter()

    def validate_all(
        self,
        iterations: int = 100,
        progress_callback: Callable[[int, int], None] | None = None,
    ) -> ValidationReport:
        """Generate `iterations` quests and build a report."""
        if iterations < 1:
            raise ValueError(f"iterations must be >= 1, got {iterations}")

        self.reset_stats()
        self._init_card_tracking()

        engine = QuestEngine(
            config=self.config,
            rng=self.rng,
            draw_listener=self.track_card_draw,
            silent=True,
        )

        for i in range(iterations):
            if progress_callback:
                progress_callback(i + 1, iterations)

            engine.decks = self.store.snapshot().decks
            quest = engine.generate_quest()
            if quest is None:
                self.aborted_runs += 1
            self._analyze_run(engine)
            self.total_iterations += 1

        logger.info(
            "Validated %d iterations: %d draws, %d fallbacks, %d aborted",
            self.total_iterations, self.draw_attempts, self.fallbacks, self.aborted_runs,
        )
        return self._build_report()

    # =========================================================================
    # Tracking
    # =========================================================================

    def _init_card_tracking(self) -> None:
        for card in self.store.all_cards():
            self.card_usage[card.card_id] = CardUsage(
                card_id=card.card_id,
                deck=card.deck,
                name=card.name,
            )

    def track_card_draw(self, card: Card, outcome: str) -> None:
        usage = self.card_usage.get(card.card_id)
        if usage is None:
            return
        usage.draw_count += 1
        if outcome == DrawOutcome.REJECTED:
            usage.rejection_count += 1

    def _analyze_run(self, engine: QuestEngine) -> None:
        quest: Quest = engine.get_quest()
        for role in QuestRole:
            card = quest.get(role)
            if card is None:
                continue
            usage = self.card_usage.get(card.card_id)
            if usage is not None:
                usage.selected_count += 1
            self.tag_usage.update(current_tag_list(card))

        self.draw_attempts += engine.stats.draw_attempts
        self.fallbacks += engine.stats.fallbacks_triggered
        self.modify_effects += engine.stats.modify_effects_applied
        self.poor_match_pools += engine.stats.poor_match_pools

        for stage, (matching, total) in engine.match_pools.items():
            if not total:
                continue
            percentage = matching / total * 100
            if stage == QuestRole.TARGET.value:
                self.verb_tightness.append(percentage)
            if percentage < BOTTLENECK_PERCENT:
                self.bottlenecks[stage] += 1

    # =========================================================================
    # Report
    # =========================================================================

    def _build_report(self) -> ValidationReport:
        iterations = self.total_iterations
        usages = list(self.card_usage.values())

        expected = iterations / len(usages) if usages else 0.0
        overactive = []
        for usage in usages:
            ratio = usage.selected_count / (expected or 1)
            if ratio > OVERACTIVE_RATIO:
                overactive.append(OveractiveCard(
                    deck=usage.deck,
                    name=usage.name,
                    selected_count=usage.selected_count,
                    expected_count=round(expected, 1),
                    ratio=round(ratio, 2),
                ))
        overactive.sort(key=lambda c: c.ratio, reverse=True)

        dead = [{"deck": u.deck, "name": u.name} for u in usages if u.draw_count == 0]

        top_tags = sorted(self.tag_usage.items(), key=lambda kv: (-kv[1], kv[0]))[:TOP_TAG_COUNT]

        bottlenecks = [
            Bottleneck(
                stage=stage,
                occurrences=count,
                percentage=round(count / iterations * 100, 1),
            )
            for stage, count in self.bottlenecks.most_common()
        ]

        avg_tightness = None
        if self.verb_tightness:
            avg_tightness = round(sum(self.verb_tightness) / len(self.verb_tightness), 1)

        return ValidationReport(
            summary=ValidationSummary(
                total_iterations=iterations,
                aborted_runs=self.aborted_runs,
                total_draws=self.draw_attempts,
                avg_draws_per_quest=round(self.draw_attempts / iterations, 2),
                total_fallbacks=self.fallbacks,
                fallback_rate=round(self.fallbacks / iterations * 100, 1),
                avg_modify_effects_per_quest=round(self.modify_effects / iterations, 2),
                poor_match_pools=self.poor_match_pools,
            ),
            total_cards=len(usages),
            cards_used=len(usages) - len(dead),
            dead_cards=dead,
            overactive_cards=overactive,
            unique_tags=len(self.tag_usage),
            top_tags=top_tags,
            avg_verb_tightness=avg_tightness,
            bottlenecks=bottlenecks,
        )
