"""
Tests for tag evaluation.

Tests:
- Current tag set (static + mutable)
- Intersection and matching
- Property check over random tag sets
"""

import random

from ..engine_core.tags import current_tags, current_tag_list, intersects, matches, match_pool


VOCABULARY = [
    "Evil Monster", "Undead", "Perilous", "Safe", "Urgent", "Noble",
    "Hidden", "Cursed", "Holy", "Wild", "Urban", "Ancient",
]


class TestCurrentTags:
    """Tests for a card's effective tag set."""

    def test_union_of_all_tag_lists(self, make_card):
        """Type, aspect and mutable tags all count."""
        card = make_card("Raider", type_tags=["Evil Monster"], aspect_tags=["Wild"], mutable_tags=["Urgent"])

        assert current_tags(card) == {"Evil Monster", "Wild", "Urgent"}

    def test_mutable_tags_seen_after_growth(self, make_card):
        card = make_card("Raider", type_tags=["Evil Monster"])
        card.add_mutable_tags(["Cursed"])

        assert "Cursed" in current_tags(card)

    def test_display_list_keeps_order_and_drops_duplicates(self, make_card):
        card = make_card("Raider", type_tags=["A", "B"], aspect_tags=["B", "C"], mutable_tags=["A", "D"])

        assert current_tag_list(card) == ["A", "B", "C", "D"]


class TestMatching:
    """Tests for requirement matching."""

    def test_intersection_in_requirement_order(self):
        assert intersects(["C", "A", "X"], {"A", "B", "C"}) == ["C", "A"]

    def test_empty_requirement_matches_any_card(self, make_card):
        """An empty requirement is no constraint, even for an untagged card."""
        assert matches(make_card("Blank"), [])

    def test_no_overlap_does_not_match(self, make_card):
        card = make_card("Fort", type_tags=["Safe"])

        assert not matches(card, ["Perilous"])

    def test_match_pool(self, make_card):
        fort = make_card("Fort", type_tags=["Safe"])
        cave = make_card("Cave", type_tags=["Perilous"])
        deck = [fort, cave]

        assert match_pool(deck, ["Perilous"]) == [cave]
        assert match_pool(deck, []) == deck

    def test_intersection_property_over_random_tag_sets(self, make_card):
        """intersects is non-empty exactly when the sets share a tag."""
        rng = random.Random(20240501)
        for _ in range(500):
            type_tags = rng.sample(VOCABULARY, rng.randint(0, 4))
            aspect_tags = rng.sample(VOCABULARY, rng.randint(0, 3))
            mutable_tags = rng.sample(VOCABULARY, rng.randint(0, 2))
            required = rng.sample(VOCABULARY, rng.randint(1, 4))
            card = make_card("X", type_tags=type_tags, aspect_tags=aspect_tags, mutable_tags=mutable_tags)

            shared = set(required) & (set(type_tags) | set(aspect_tags) | set(mutable_tags))

            assert bool(intersects(required, current_tags(card))) == bool(shared)
            assert set(intersects(required, current_tags(card))) == shared
            assert matches(card, required) == bool(shared)
