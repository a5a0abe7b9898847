"""
Pending-Instruction Ledger - Cross-deck requirements collected during a run.

When a drawn card carries an instruction aimed at a deck reached later in
the pipeline, the instruction is recorded here. Each later stage asks the
ledger for its required tags, falling back to the stage default when no
instruction targets it.

Entries are keyed by normalized deck name. When several instructions
target the same deck, LEDGER_COLLISION_POLICY decides which one wins.
Entries are never removed once recorded: a later stage sharing the same
deck name would see them again.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .state import Card, Instruction, PendingInstruction, normalize_deck_name, is_this_card


class CollisionPolicy(Enum):
    """Which instruction wins when several target the same deck."""
    FIRST_WINS = "first_wins"
    LAST_WINS = "last_wins"


LEDGER_COLLISION_POLICY = CollisionPolicy.FIRST_WINS


@dataclass
class Resolution:
    """Outcome of resolving a stage's requirement."""
    tags: list[str]
    source: PendingInstruction | None = None  # None means the default was used

    @property
    def from_ledger(self) -> bool:
        return self.source is not None


@dataclass
class PendingInstructionLedger:
    """
    Ordered record of not-yet-applied cross-deck instructions.

    Usage:
        ledger = PendingInstructionLedger()
        ledger.record(target_card)
        tags = ledger.resolve_requirement("Location", []).tags
    """
    policy: CollisionPolicy = LEDGER_COLLISION_POLICY
    _entries: list[PendingInstruction] = field(default_factory=list)
    _by_deck: dict[str, PendingInstruction] = field(default_factory=dict)

    def add(self, entry: PendingInstruction) -> PendingInstruction:
        """Append an entry and update the per-deck index."""
        self._entries.append(entry)
        key = entry.target_key
        if key not in self._by_deck or self.policy == CollisionPolicy.LAST_WINS:
            self._by_deck[key] = entry
        return entry

    def record(
        self,
        source_card: Card,
        instructions: list[Instruction] | None = None,
    ) -> list[PendingInstruction]:
        """
        Record every instruction on the card that targets another deck.

        ThisCard instructions are applied immediately as Modify effects and
        never reach the ledger. Instructions without tags are ignored.
        Pass instructions to record only a subset of the card's list (the
        pipeline passes the ones Modify application deferred).
        """
        if instructions is None:
            instructions = source_card.instructions
        recorded = []
        for instruction in instructions:
            if not instruction.target_deck or is_this_card(instruction.target_deck):
                continue
            if not instruction.tags:
                continue
            recorded.append(self.add(PendingInstruction(
                source=source_card.name,
                target=instruction.target_deck,
                tags=list(instruction.tags),
            )))
        return recorded

    def record_requirement(self, source_card: Card, target_deck: str) -> PendingInstruction | None:
        """Record a Verb's TargetRequirement as an instruction for the Target stage."""
        if not source_card.target_requirement:
            return None
        return self.add(PendingInstruction(
            source=source_card.name,
            target=target_deck,
            tags=list(source_card.target_requirement),
        ))

    def resolve_requirement(self, deck_name: str, default_tags: list[str]) -> Resolution:
        """
        Required tags for a stage drawing from deck_name.

        The winning entry (per collision policy) for the deck supplies the
        tags; otherwise default_tags is returned unchanged.
        """
        entry = self._by_deck.get(normalize_deck_name(deck_name))
        if entry is None:
            return Resolution(tags=default_tags)
        return Resolution(tags=list(entry.tags), source=entry)

    @property
    def entries(self) -> list[PendingInstruction]:
        return list(self._entries)

    def to_list(self) -> list[dict[str, Any]]:
        return [e.to_dict() for e in self._entries]

    def __len__(self) -> int:
        return len(self._entries)
