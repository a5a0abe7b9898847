"""
Tests for the quest pipeline.

Tests:
- Full runs and the run summary
- Abort on empty mandatory decks
- Pending-instruction precedence
- Reset between runs
- Step-through ordering
"""

import json

import pytest

from ..cards import CardStore
from ..config import EngineConfig
from ..engine_core import QuestEngine, PipelineStage, QuestRole, StageOrderError


def requirement_entry(engine, stage_label):
    """The log entry announcing a stage's required tags."""
    for entry in engine.get_logs():
        data = entry.data or {}
        if data.get("stage") == stage_label and "required_tags" in data and "source" in data:
            return entry
    return None


class TestFullRun:
    """Tests for generate_quest."""

    def test_single_card_scenario(self, scenario_engine):
        """One card per deck yields a fixed quest with no fallbacks."""
        quest = scenario_engine.generate_quest()

        assert quest is not None
        assert [quest.get(role).name for role in QuestRole] == [
            "Defend", "Raider", "Fort", "Storm", "Gold", "Death",
        ]
        assert scenario_engine.stats.fallbacks_triggered == 0
        assert scenario_engine.is_complete

    def test_summary(self, scenario_engine):
        scenario_engine.generate_quest()

        summary = scenario_engine.get_quest_summary()

        assert summary["verb"] == "Defend"
        assert summary["target"] == "Raider"
        assert summary["target_tags"] == ["Evil Monster"]
        assert summary["location"] == "Fort"
        assert summary["location_tags"] == []
        assert summary["twist"] == "Storm"
        assert summary["reward"] == "Gold"
        assert summary["failure"] == "Death"
        assert summary["stats"]["draw_attempts"] == 6

    def test_summary_before_verb_is_none(self, scenario_engine):
        assert scenario_engine.get_quest_summary() is None

    def test_specific_verb(self, scenario_engine, make_card):
        verb = make_card("Escort", deck="verbs", target_requirement=["Evil Monster"])

        quest = scenario_engine.generate_quest(verb)

        assert quest.verb is verb
        assert "Verb: \"Escort\" (user-selected)" in [e.message for e in scenario_engine.get_logs()]

    def test_log_framing(self, scenario_engine):
        scenario_engine.generate_quest()
        messages = [e.message for e in scenario_engine.get_logs()]

        assert messages[0] == "=== QUEST GENERATION STARTED ==="
        assert messages[-1] == "=== QUEST GENERATION COMPLETE ==="
        assert "=== Drawing Target ===" in messages

    def test_deck_keys_any_case_or_number(self, scenario_data):
        data = {key.capitalize().rstrip("s"): cards for key, cards in scenario_data.items()}
        store = CardStore.from_data(data)
        engine = QuestEngine(store.snapshot().decks)

        assert engine.generate_quest() is not None

    def test_state_dict_is_json_serializable(self, scenario_engine):
        scenario_engine.generate_quest()

        state = json.loads(json.dumps(scenario_engine.state_dict()))

        assert state["stage"] == "complete"
        assert state["quest"]["verb"] == "Defend"
        assert state["pending_instructions"] == [
            {"source": "Defend", "target": "Target", "tags": ["Evil Monster"]},
        ]
        assert state["match_pools"]["target"] == [1, 1]


class TestAbort:
    """Tests for mandatory-stage failures."""

    def test_empty_target_deck_aborts(self, scenario_data):
        scenario_data["targets"] = []
        engine = QuestEngine(CardStore.from_data(scenario_data).snapshot().decks)

        quest = engine.generate_quest()

        assert quest is None
        assert engine.get_quest().target is None
        assert engine.get_quest().location is None
        assert engine.is_aborted
        errors = [e for e in engine.get_logs() if e.level == "error"]
        assert errors[0].data["error"] == "EmptyDeck"
        assert errors[-1].data["error"] == "PipelineAbort"

    def test_missing_verb_deck_aborts(self, scenario_data):
        del scenario_data["verbs"]
        engine = QuestEngine(CardStore.from_data(scenario_data).snapshot().decks)

        assert engine.generate_quest() is None
        assert engine.get_quest().verb is None
        assert engine.stage == PipelineStage.ABORTED

    def test_missing_reward_and_failure_tolerated(self, scenario_data):
        scenario_data["rewards"] = []
        del scenario_data["failures"]
        engine = QuestEngine(CardStore.from_data(scenario_data).snapshot().decks)

        quest = engine.generate_quest()

        assert quest is not None
        assert quest.reward is None
        assert quest.failure is None
        assert engine.is_complete
        assert len([e for e in engine.get_logs() if e.level == "warning"]) == 2


class TestPendingInstructions:
    """Tests for cross-deck instruction routing."""

    def test_target_instruction_constrains_location(self, precedence_data):
        """The Location draw uses the Target's tags, not the empty default."""
        store = CardStore.from_data(precedence_data)
        engine = QuestEngine(store.snapshot().decks, config=EngineConfig(max_redraws=-1, seed=3))

        quest = engine.generate_quest()

        entry = requirement_entry(engine, "Location")
        assert entry.data["required_tags"] == ["Perilous"]
        assert entry.data["source"] == "Raider"
        assert quest.location.name == "Cave"

    def test_non_modify_instruction_still_constrains_location(self, precedence_data):
        """Instruction kind does not decide whether it reaches the ledger."""
        precedence_data["targets"][0]["Instructions"][0]["Type"] = "Require"
        store = CardStore.from_data(precedence_data)
        engine = QuestEngine(store.snapshot().decks, config=EngineConfig(max_redraws=-1, seed=3))

        quest = engine.generate_quest()

        assert {"source": "Raider", "target": "Location", "tags": ["Perilous"]} in engine.ledger.to_list()
        assert quest.target.mutable_tags == []
        entry = requirement_entry(engine, "Location")
        assert entry.data["required_tags"] == ["Perilous"]
        assert entry.data["source"] == "Raider"
        assert quest.location.name == "Cave"

    def test_location_rejections_cite_instruction_tags(self, precedence_data):
        store = CardStore.from_data(precedence_data)
        for seed in range(10):
            engine = QuestEngine(store.snapshot().decks, config=EngineConfig(seed=seed))
            engine.generate_quest()

            for entry in engine.get_logs():
                data = entry.data or {}
                if data.get("stage") == "Location" and data.get("result") == "REJECTED":
                    assert data["required_tags"] == ["Perilous"]
                    assert data["card"] == "Fort"

    def test_unconstrained_stage_without_instruction(self, scenario_engine):
        scenario_engine.generate_quest()

        entry = requirement_entry(scenario_engine, "Twist")
        assert entry.data["required_tags"] == []
        assert entry.data["source"] is None

    def test_target_modifies_held_verb(self, scenario_data):
        scenario_data["targets"][0]["Instructions"] = [{"TargetDeck": "Verb", "Tags": ["Desperate"]}]
        engine = QuestEngine(CardStore.from_data(scenario_data).snapshot().decks)

        quest = engine.generate_quest()

        assert quest.verb.mutable_tags == ["Desperate"]
        assert [m.applied_to for m in quest.modifications] == ["Defend"]
        assert engine.stats.modify_effects_applied == 1


class TestReset:
    """Tests for run isolation."""

    def test_modifications_do_not_carry_over(self, urgent_verb_data):
        """Quest state resets; tags on shared cards persist."""
        engine = QuestEngine(CardStore.from_data(urgent_verb_data).snapshot().decks)

        first = engine.generate_quest()
        assert len(first.modifications) == 1
        second = engine.generate_quest()

        assert second is not first
        assert len(second.modifications) == 1
        assert engine.stats.modify_effects_applied == 1
        # Same Card object in both runs, so the tag was added twice
        assert second.verb.mutable_tags == ["Urgent", "Urgent"]

    def test_fresh_snapshot_per_run_isolates_cards(self, urgent_verb_data):
        store = CardStore.from_data(urgent_verb_data)
        engine = QuestEngine()

        for _ in range(3):
            engine.decks = store.snapshot().decks
            quest = engine.generate_quest()
            assert quest.verb.mutable_tags == ["Urgent"]

        assert store.deck("verbs")[0].mutable_tags == []

    def test_reset_returns_to_idle(self, scenario_engine):
        scenario_engine.generate_quest()

        scenario_engine.reset()

        assert scenario_engine.stage == PipelineStage.IDLE
        assert scenario_engine.get_logs() == []
        assert len(scenario_engine.ledger) == 0
        assert scenario_engine.stats.draw_attempts == 0


class TestStepThrough:
    """Tests for running stages one at a time."""

    def test_steps_in_order(self, scenario_engine):
        assert scenario_engine.step_draw_verb().name == "Defend"
        assert scenario_engine.stage == PipelineStage.DRAW_VERB
        assert scenario_engine.step_draw_target().name == "Raider"
        assert scenario_engine.step_draw_location().name == "Fort"
        assert scenario_engine.step_draw_twist().name == "Storm"

        reward, failure = scenario_engine.step_draw_reward_and_failure()

        assert (reward.name, failure.name) == ("Gold", "Death")
        assert scenario_engine.stage == PipelineStage.COMPLETE

    def test_run_step_by_name(self, scenario_engine):
        scenario_engine.run_step("draw_verb")
        card = scenario_engine.run_step("DRAW_TARGET")

        assert card.name == "Raider"

    def test_out_of_order_step_raises(self, scenario_engine):
        with pytest.raises(StageOrderError) as exc_info:
            scenario_engine.step_draw_location()

        assert exc_info.value.current == PipelineStage.IDLE
        assert exc_info.value.expected == PipelineStage.DRAW_TARGET

    def test_step_after_abort_raises(self, scenario_data):
        scenario_data["targets"] = []
        engine = QuestEngine(CardStore.from_data(scenario_data).snapshot().decks)
        engine.step_draw_verb()

        assert engine.step_draw_target() is None
        with pytest.raises(StageOrderError):
            engine.step_draw_location()

    def test_non_drawing_stage_rejected(self, scenario_engine):
        with pytest.raises(ValueError):
            scenario_engine.run_step(PipelineStage.COMPLETE)

    def test_draw_verb_restarts_run(self, scenario_engine):
        scenario_engine.generate_quest()

        scenario_engine.step_draw_verb()

        assert scenario_engine.get_quest().target is None
        assert scenario_engine.stage == PipelineStage.DRAW_VERB


class TestDiagnostics:
    """Tests for debug logging and match-pool tracking."""

    def test_verbose_entries_only_in_debug_mode(self, scenario_store):
        quiet = QuestEngine(scenario_store.snapshot().decks)
        verbose = QuestEngine(scenario_store.snapshot().decks, config=EngineConfig(debug_mode=True))

        quiet.generate_quest()
        verbose.generate_quest()

        assert "Generation Settings" not in [e.message for e in quiet.get_logs()]
        assert "Generation Settings" in [e.message for e in verbose.get_logs()]
        assert len(verbose.get_logs()) > len(quiet.get_logs())

    def test_silent_engine_records_nothing(self, scenario_store):
        engine = QuestEngine(scenario_store.snapshot().decks, silent=True)

        assert engine.generate_quest() is not None
        assert engine.get_logs() == []

    def test_poor_match_pool_counted(self, scenario_data):
        scenario_data["targets"] += [{"CardName": f"Villager {i}", "TypeTags": ["Human"]} for i in range(4)]
        engine = QuestEngine(CardStore.from_data(scenario_data).snapshot().decks, config=EngineConfig(seed=5))

        engine.generate_quest()

        assert engine.match_pools["target"] == (1, 5)
        assert engine.stats.poor_match_pools == 1

    def test_unmatchable_requirement_warns(self, scenario_data):
        scenario_data["targets"] = [{"CardName": "Villager", "TypeTags": ["Human"]}]
        engine = QuestEngine(CardStore.from_data(scenario_data).snapshot().decks)

        quest = engine.generate_quest()

        assert quest.target.name == "Villager"
        assert engine.stats.fallbacks_triggered == 1
        assert any(e.level == "warning" for e in engine.get_logs())
