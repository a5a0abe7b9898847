"""
Cards - Authored card data and the card store.

Contains:
- Pydantic record schemas for the card JSON format
- CardStore: loads decks and hands out isolated per-run snapshots
"""

from .schema import CardRecord, InstructionRecord
from .store import CardStore, CardStoreError, DeckSnapshot, card_from_record

__all__ = [
    "CardRecord",
    "InstructionRecord",
    "CardStore",
    "CardStoreError",
    "DeckSnapshot",
    "card_from_record",
]
