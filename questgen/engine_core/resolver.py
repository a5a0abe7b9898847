"""
Draw Resolver - Bounded-retry random draws with fallback.

A resolution draws uniformly at random (with replacement) from a deck
until a card matches the required tags. After max_redraws rejections the
next card drawn is accepted even without a match (the fallback); a card
that matches is always recorded as ACCEPTED.
"""

from __future__ import annotations
import random
from dataclasses import dataclass
from typing import Callable

from .state import Card, RunStats
from .tags import current_tags, intersects, match_pool
from .run_log import RunLog
from ..config import DEFAULT_MAX_REDRAWS, DRAW_UNTIL_MATCH


class DrawOutcome:
    """Result labels recorded on each draw attempt."""
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    FALLBACK = "FALLBACK"


@dataclass
class DrawResolver:
    """
    Resolves one draw against a deck and a required-tag set.

    The resolver owns no deck; it shares the engine's log and stats so
    every attempt is counted and logged exactly once.
    """
    rng: random.Random
    log: RunLog
    stats: RunStats
    max_redraws: int = DEFAULT_MAX_REDRAWS
    draw_listener: Callable[[Card, str], None] | None = None  # (card, outcome)

    def draw_with_fallback(
        self,
        deck: list[Card],
        required_tags: list[str],
        stage_label: str,
    ) -> Card | None:
        """
        Draw a card satisfying required_tags, falling back after repeated misses.

        Returns None only when the deck is empty.
        """
        if not deck:
            self.log.error(
                f"{stage_label}: No cards available in deck",
                {"stage": stage_label, "error": "EmptyDeck"},
            )
            return None

        if self.max_redraws == DRAW_UNTIL_MATCH:
            rejection_limit = None
            if required_tags and not match_pool(deck, required_tags):
                self.log.warning(
                    f"{stage_label}: No card can match [{', '.join(required_tags)}], falling back",
                    {"stage": stage_label, "required_tags": list(required_tags)},
                )
                rejection_limit = 0
        else:
            rejection_limit = max(self.max_redraws, 0)

        attempt = 0
        while True:
            attempt += 1
            card = self._draw(deck)

            if not required_tags:
                self.log.log(
                    f"{stage_label} Draw #{attempt}: {DrawOutcome.ACCEPTED} \"{card.name}\" (no tag constraints)",
                    {"stage": stage_label, "attempt": attempt, "result": DrawOutcome.ACCEPTED,
                     "card": card.name, "no_constraints": True},
                )
                self._notify(card, DrawOutcome.ACCEPTED)
                return card

            matched = intersects(required_tags, current_tags(card))
            if matched:
                self.log.log(
                    f"{stage_label} Draw #{attempt}: {DrawOutcome.ACCEPTED} \"{card.name}\" "
                    f"(matched tags: {', '.join(matched)})",
                    {"stage": stage_label, "attempt": attempt, "result": DrawOutcome.ACCEPTED,
                     "card": card.name, "matched_tags": matched},
                )
                self._notify(card, DrawOutcome.ACCEPTED)
                return card

            # The draw after the last allowed rejection is accepted even without a match
            if rejection_limit is not None and attempt > rejection_limit:
                return self._fallback(card, required_tags, stage_label, attempt)

            self.log.log(
                f"{stage_label} Draw #{attempt}: {DrawOutcome.REJECTED} \"{card.name}\" "
                f"(no matching tags, needs: {', '.join(required_tags)})",
                {"stage": stage_label, "attempt": attempt, "result": DrawOutcome.REJECTED,
                 "card": card.name, "required_tags": list(required_tags)},
            )
            self._notify(card, DrawOutcome.REJECTED)

    def _fallback(
        self,
        card: Card,
        required_tags: list[str],
        stage_label: str,
        attempt: int,
    ) -> Card:
        """Accept a non-matching card once the rejection limit is spent."""
        self.stats.fallbacks_triggered += 1
        self.log.log(
            f"{stage_label} Draw #{attempt} ({DrawOutcome.FALLBACK}): Auto-accepted \"{card.name}\"",
            {"stage": stage_label, "attempt": attempt, "result": DrawOutcome.FALLBACK,
             "card": card.name, "required_tags": list(required_tags), "is_fallback": True},
        )
        self._notify(card, DrawOutcome.FALLBACK)
        return card

    def _draw(self, deck: list[Card]) -> Card:
        """One uniform draw with replacement. Counts as one draw attempt."""
        self.stats.draw_attempts += 1
        return deck[self.rng.randrange(len(deck))]

    def _notify(self, card: Card, outcome: str) -> None:
        if self.draw_listener is not None:
            self.draw_listener(card, outcome)

    def draw_uniform(self, deck: list[Card], stage_label: str) -> Card | None:
        """One unconstrained draw with no retries and no fallback."""
        if not deck:
            self.log.error(
                f"{stage_label}: No cards available in deck",
                {"stage": stage_label, "error": "EmptyDeck"},
            )
            return None
        card = self._draw(deck)
        self.log.log(
            f"{stage_label} Draw #1: {DrawOutcome.ACCEPTED} \"{card.name}\" (random)",
            {"stage": stage_label, "attempt": 1, "result": DrawOutcome.ACCEPTED, "card": card.name},
        )
        self._notify(card, DrawOutcome.ACCEPTED)
        return card
