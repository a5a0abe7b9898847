"""
Engine State - Cards, quests and per-run bookkeeping.

Design principles:
- Cards are runtime instances built from authored records
- Static tags never change; mutable tags only grow during a run
- Run state (quest, stats, ledger) is recreated on every reset
- Everything here can be reduced to plain dicts for display
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


THIS_CARD = "thiscard"


class PipelineStage(Enum):
    """Stages of a quest generation run, in pipeline order."""
    IDLE = "idle"
    DRAW_VERB = "draw_verb"
    DRAW_TARGET = "draw_target"
    DRAW_LOCATION = "draw_location"
    DRAW_TWIST = "draw_twist"
    DRAW_REWARD_AND_FAILURE = "draw_reward_and_failure"
    COMPLETE = "complete"
    ABORTED = "aborted"  # Verb, Target, Location or Twist was unobtainable


class QuestRole(Enum):
    """The six slots of a quest. Values are the canonical deck role names."""
    VERB = "verb"
    TARGET = "target"
    LOCATION = "location"
    TWIST = "twist"
    REWARD = "reward"
    FAILURE = "failure"

    @property
    def label(self) -> str:
        """Display label used in the run log ("Target", "Location", ...)."""
        return self.value.capitalize()


# Singular and plural spellings authors use for deck names
DECK_ALIASES: dict[str, QuestRole] = {
    **{role.value: role for role in QuestRole},
    **{role.value + "s": role for role in QuestRole},
}


def normalize_deck_name(name: str | None) -> str:
    """
    Normalize a deck name for comparison.

    Known role names collapse to their singular form ("Locations" ->
    "location"); anything else is just lower-cased and stripped.
    """
    if not name:
        return ""
    key = name.strip().lower()
    role = DECK_ALIASES.get(key)
    return role.value if role else key


def is_this_card(target_deck: str | None) -> bool:
    return bool(target_deck) and target_deck.strip().lower() == THIS_CARD


@dataclass
class Instruction:
    """
    A deferred effect a card exerts on a later draw.

    Only Modify/Add instructions exist in authored data today; the
    fields are kept so other kinds can be skipped rather than misapplied.
    """
    target_deck: str
    tags: list[str] = field(default_factory=list)
    face_down: bool = False
    kind: str = "Modify"
    subtype: str = "Add"

    @property
    def is_modify_add(self) -> bool:
        return self.kind.lower() == "modify" and self.subtype.lower() == "add"

    @property
    def targets_this_card(self) -> bool:
        return is_this_card(self.target_deck)


@dataclass
class Card:
    """
    One authored content unit.

    Note: Cards are identified by card_id. Snapshots of the same store
    keep the same ids, so a card drawn in one snapshot can be matched
    against its pristine original.
    """
    card_id: str
    name: str
    deck: str = ""
    type_tags: list[str] = field(default_factory=list)
    aspect_tags: list[str] = field(default_factory=list)
    mutable_tags: list[str] = field(default_factory=list)
    instructions: list[Instruction] = field(default_factory=list)
    target_requirement: list[str] = field(default_factory=list)  # Verb cards only

    # Authoring fields the engine does not interpret (RewardText, ...)
    extra: dict[str, Any] = field(default_factory=dict)

    def __hash__(self):
        return hash(self.card_id)

    def __eq__(self, other):
        if not isinstance(other, Card):
            return False
        return self.card_id == other.card_id

    def add_mutable_tags(self, tags: list[str]) -> None:
        """Grow the mutable tag list. Mutable tags never shrink within a run."""
        self.mutable_tags.extend(tags)


@dataclass
class PendingInstruction:
    """A cross-deck tag requirement waiting for the stage it targets."""
    source: str  # CardName of the card that carried it
    target: str  # Deck name as authored
    tags: list[str]

    @property
    def target_key(self) -> str:
        return normalize_deck_name(self.target)

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "target": self.target, "tags": list(self.tags)}


@dataclass
class Modification:
    """A Modify effect that was applied to a card during the run."""
    source: str
    applied_to: str
    tags: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "applied_to": self.applied_to, "tags": list(self.tags)}


@dataclass
class Quest:
    """The output of a run: one card per role plus applied modifications."""
    verb: Card | None = None
    target: Card | None = None
    location: Card | None = None
    twist: Card | None = None
    reward: Card | None = None
    failure: Card | None = None
    modifications: list[Modification] = field(default_factory=list)

    def get(self, role: QuestRole) -> Card | None:
        return getattr(self, role.value)

    def set(self, role: QuestRole, card: Card | None) -> None:
        setattr(self, role.value, card)

    def held_cards(self) -> dict[str, Card]:
        """Cards already placed, keyed by role name."""
        held = {}
        for role in QuestRole:
            card = self.get(role)
            if card is not None:
                held[role.value] = card
        return held


@dataclass
class LogEntry:
    """One run-log line. timestamp is the entry's index in the log."""
    timestamp: int
    message: str
    data: dict[str, Any] | None = None
    level: str = "normal"  # normal, warning, error

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "message": self.message,
            "data": self.data,
            "level": self.level,
        }


@dataclass
class RunStats:
    """Counters produced by a run."""
    draw_attempts: int = 0
    fallbacks_triggered: int = 0
    modify_effects_applied: int = 0
    poor_match_pools: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "draw_attempts": self.draw_attempts,
            "fallbacks_triggered": self.fallbacks_triggered,
            "modify_effects_applied": self.modify_effects_applied,
            "poor_match_pools": self.poor_match_pools,
        }
