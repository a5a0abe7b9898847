"""
Tag Evaluation - Effective tag sets and requirement matching.

A card's current tags are the union of its TypeTags, AspectTags and
mutableTags at the moment of evaluation. A requirement matches a card
when the requirement is empty (no constraint) or shares at least one
tag with the card's current tags.
"""

from __future__ import annotations
from typing import Iterable

from .state import Card


def current_tags(card: Card) -> set[str]:
    """Union of the card's static and mutable tags."""
    return set(card.type_tags) | set(card.aspect_tags) | set(card.mutable_tags)


def current_tag_list(card: Card) -> list[str]:
    """Current tags in authoring order, duplicates dropped. Used for display."""
    seen: dict[str, None] = {}
    for tag in (*card.type_tags, *card.aspect_tags, *card.mutable_tags):
        seen.setdefault(tag, None)
    return list(seen)


def intersects(required: Iterable[str], actual: set[str]) -> list[str]:
    """Required tags present in actual, in requirement order."""
    overlap: list[str] = []
    for tag in required:
        if tag in actual and tag not in overlap:
            overlap.append(tag)
    return overlap


def matches(card: Card, required: list[str]) -> bool:
    """An empty requirement is "no constraint" and matches every card."""
    if not required:
        return True
    return bool(intersects(required, current_tags(card)))


def match_pool(deck: list[Card], required: list[str]) -> list[Card]:
    """Cards in the deck that satisfy the requirement."""
    if not required:
        return list(deck)
    return [card for card in deck if matches(card, required)]
