"""
Pytest fixtures for Questgen tests.
"""

import random

import pytest

from ..cards import CardStore
from ..config import EngineConfig
from ..engine_core import QuestEngine, Card, Instruction, RunLog, RunStats


@pytest.fixture
def scenario_data() -> dict:
    """One card per deck; every requirement is satisfiable."""
    return {
        "verbs": [{"CardName": "Defend", "TargetRequirement": ["Evil Monster"]}],
        "targets": [{"CardName": "Raider", "TypeTags": ["Evil Monster"]}],
        "locations": [{"CardName": "Fort", "TypeTags": []}],
        "twists": [{"CardName": "Storm", "TypeTags": []}],
        "rewards": [{"CardName": "Gold"}],
        "failures": [{"CardName": "Death"}],
    }


@pytest.fixture
def precedence_data() -> dict:
    """The Target carries an instruction that constrains the Location draw."""
    return {
        "verbs": [{"CardName": "Defend", "TargetRequirement": ["Evil Monster"]}],
        "targets": [
            {
                "CardName": "Raider",
                "TypeTags": ["Evil Monster"],
                "Instructions": [
                    {"TargetDeck": "Location", "Tags": ["Perilous"], "Type": "Modify", "Subtype": "Add"},
                ],
            },
        ],
        "locations": [
            {"CardName": "Fort", "TypeTags": ["Safe"]},
            {"CardName": "Cave", "TypeTags": ["Perilous"]},
        ],
        "twists": [{"CardName": "Storm"}],
        "rewards": [{"CardName": "Gold"}],
        "failures": [{"CardName": "Death"}],
    }


@pytest.fixture
def urgent_verb_data(scenario_data) -> dict:
    """The Verb tags itself Urgent when drawn."""
    scenario_data["verbs"][0]["Instructions"] = [{"TargetDeck": "ThisCard", "Tags": ["Urgent"]}]
    return scenario_data


@pytest.fixture
def scenario_store(scenario_data) -> CardStore:
    return CardStore.from_data(scenario_data)


@pytest.fixture
def scenario_engine(scenario_store) -> QuestEngine:
    """Engine over a fresh snapshot of the scenario decks."""
    return QuestEngine(scenario_store.snapshot().decks, config=EngineConfig(seed=1))


@pytest.fixture
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture
def run_log() -> RunLog:
    return RunLog(debug_mode=True)


@pytest.fixture
def stats() -> RunStats:
    return RunStats()


@pytest.fixture
def make_card():
    """Factory for runtime cards without going through the store."""
    counter = {"n": 0}

    def _make(name, deck="", type_tags=None, aspect_tags=None, mutable_tags=None,
              instructions=None, target_requirement=None):
        counter["n"] += 1
        return Card(
            card_id=f"{deck or 'card'}:{name}:{counter['n']}",
            name=name,
            deck=deck,
            type_tags=list(type_tags or []),
            aspect_tags=list(aspect_tags or []),
            mutable_tags=list(mutable_tags or []),
            instructions=[
                i if isinstance(i, Instruction) else Instruction(**i)
                for i in (instructions or [])
            ],
            target_requirement=list(target_requirement or []),
        )

    return _make
