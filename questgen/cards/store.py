"""
Card Store - Owns authored decks and hands out per-run snapshots.

The store keeps a pristine copy of every deck. Generation runs mutate
cards in place (Modify effects grow mutable tags), so callers that need
isolated, repeatable runs take a snapshot per run:

    store = CardStore.from_file("cards.json")
    snapshot = store.snapshot()
    engine = QuestEngine(snapshot.decks)

Snapshots are versioned so a caller can tell which load a run drew from.
"""

from __future__ import annotations
import json
from copy import deepcopy
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError

from .schema import CardRecord
from ..engine_core.state import Card, Instruction, normalize_deck_name
from ..logging_util import get_logger


logger = get_logger("questgen.cards")



class CardStoreError(Exception):
    """Raised when card data cannot be read or validated."""

    def __init__(self, errors: list[str]):
        self.errors = errors
        super().__init__(f"Card data invalid with {len(errors)} error(s): {'; '.join(errors[:3])}")


@dataclass
class DeckSnapshot:
    """
    An isolated copy of every deck.

    generation: which load of the store the snapshot came from
    version: increments on every snapshot taken from the store
    """
    generation: int
    version: int
    decks: dict[str, list[Card]] = field(default_factory=dict)

    def deck(self, name: str) -> list[Card]:
        key = normalize_deck_name(name)
        for deck_name, cards in self.decks.items():
            if normalize_deck_name(deck_name) == key:
                return cards
        return []

    def find_card(self, deck_name: str, card_name: str) -> Card | None:
        """First card in the deck with the given name (case-insensitive)."""
        wanted = card_name.strip().lower()
        for card in self.deck(deck_name):
            if card.name.lower() == wanted:
                return card
        return None


class CardStore:
    """
    In-memory set of named decks.

    Deck names are kept as given in the data; lookups are
    case-insensitive and accept singular or plural role names.
    """

    def __init__(self, decks: Mapping[str, list[Card]] | None = None):
        self._decks: dict[str, list[Card]] = {}
        self.generation = 0
        self.version = 0
        if decks:
            self._replace(dict(decks))

    # =========================================================================
    # Loading
    # =========================================================================

    @classmethod
    def from_file(cls, path: str | Path) -> CardStore:
        store = cls()
        store.load_file(path)
        return store

    @classmethod
    def from_data(cls, data: Mapping[str, Any]) -> CardStore:
        store = cls()
        store.load_data(data)
        return store

    def load_file(self, path: str | Path) -> None:
        """Load decks from a card JSON file."""
        path = Path(path)
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            raise CardStoreError([f"File not found: {path}"])
        except json.JSONDecodeError as e:
            raise CardStoreError([f"{path}: invalid JSON ({e.msg} at line {e.lineno})"])

        if not isinstance(data, dict):
            raise CardStoreError([f"{path}: top level must be an object of deck name -> cards"])
        self.load_data(data)
        logger.info("Loaded %d cards from %s", len(self.all_cards()), path)

    def load_data(self, data: Mapping[str, Any]) -> None:
        """
        Replace all decks from a mapping of deck name -> list of card records.

        Keys that are not lists are ignored (card JSON files carry metadata
        alongside decks). Raises CardStoreError listing every invalid record.
        """
        errors: list[str] = []
        decks: dict[str, list[Card]] = {}

        for deck_name, records in data.items():
            if not isinstance(records, list):
                continue
            cards = []
            for index, record in enumerate(records):
                try:
                    parsed = CardRecord.model_validate(record)
                except ValidationError as e:
                    for err in e.errors():
                        location = ".".join(str(p) for p in err["loc"]) or "record"
                        errors.append(f"{deck_name}[{index}].{location}: {err['msg']}")
                    continue
                cards.append(card_from_record(parsed, deck_name, index))
            decks[deck_name] = cards

        if errors:
            raise CardStoreError(errors)
        self._replace(decks)

    def _replace(self, decks: dict[str, list[Card]]) -> None:
        self._decks = decks
        self.generation += 1
        self.version = 0

    # =========================================================================
    # Access
    # =========================================================================

    def snapshot(self) -> DeckSnapshot:
        """Deep copy of every deck, safe to mutate during a run."""
        self.version += 1
        return DeckSnapshot(
            generation=self.generation,
            version=self.version,
            decks=deepcopy(self._decks),
        )

    def deck(self, name: str) -> list[Card]:
        """The pristine deck (do not hand this to an engine)."""
        key = normalize_deck_name(name)
        for deck_name, cards in self._decks.items():
            if normalize_deck_name(deck_name) == key:
                return cards
        return []

    def all_cards(self) -> list[Card]:
        return [card for cards in self._decks.values() for card in cards]

    def deck_counts(self) -> dict[str, int]:
        return {name: len(cards) for name, cards in self._decks.items()}

    @property
    def is_empty(self) -> bool:
        return not any(self._decks.values())


def card_from_record(record: CardRecord, deck_name: str, index: int) -> Card:
    """Build a runtime Card from a validated record."""
    deck_label = record.deck or deck_name
    return Card(
        card_id=record.card_id or f"{deck_label}:{record.name}:{index}",
        name=record.name,
        deck=deck_label,
        type_tags=list(record.type_tags),
        aspect_tags=list(record.aspect_tags),
        mutable_tags=list(record.mutable_tags),
        instructions=[
            Instruction(
                target_deck=i.target_deck,
                tags=list(i.tags),
                face_down=i.face_down,
                kind=i.kind,
                subtype=i.subtype,
            )
            for i in record.instructions
        ],
        target_requirement=list(record.target_requirement),
        extra=record.extra_fields,
    )
