"""
Tests for the command-line interface.
"""

import json

import pytest

from ..cli import main


@pytest.fixture
def cards_file(tmp_path, scenario_data):
    path = tmp_path / "cards.json"
    path.write_text(json.dumps(scenario_data), encoding="utf-8")
    return path


class TestCLI:
    """Tests for the questgen command."""

    def test_generate(self, cards_file, capsys):
        main(["generate", str(cards_file), "--seed", "1"])

        out = capsys.readouterr().out
        assert "Verb:      Defend" in out
        assert "Target:    Raider [Evil Monster]" in out
        assert "Fallbacks: 0" in out

    def test_generate_json(self, cards_file, capsys):
        main(["generate", str(cards_file), "--json"])

        state = json.loads(capsys.readouterr().out)
        assert state["stage"] == "complete"
        assert state["quest"]["failure"] == "Death"

    def test_generate_with_logs(self, cards_file, capsys):
        main(["generate", str(cards_file), "--logs", "--debug"])

        out = capsys.readouterr().out
        assert "=== QUEST GENERATION STARTED ===" in out
        assert "Generation Settings" in out

    def test_generate_aborts(self, tmp_path, scenario_data, capsys):
        scenario_data["twists"] = []
        path = tmp_path / "cards.json"
        path.write_text(json.dumps(scenario_data), encoding="utf-8")

        with pytest.raises(SystemExit) as exc_info:
            main(["generate", str(path)])

        assert exc_info.value.code == 1
        assert "Twist could not be drawn" in capsys.readouterr().err

    def test_unknown_verb(self, cards_file, capsys):
        with pytest.raises(SystemExit):
            main(["generate", str(cards_file), "--verb", "Plunder"])

        assert "Verb not found: Plunder" in capsys.readouterr().out

    def test_missing_file(self, tmp_path, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main(["generate", str(tmp_path / "missing.json")])

        assert exc_info.value.code == 1
        assert capsys.readouterr().out.startswith("Error:")

    def test_step(self, cards_file, capsys):
        main(["step", str(cards_file), "--verb", "Defend"])

        out = capsys.readouterr().out
        assert "--- draw_verb -> draw_verb" in out
        assert "--- draw_reward_and_failure -> complete" in out
        assert "Failure:   Death" in out

    def test_validate(self, cards_file, capsys):
        main(["validate", str(cards_file), "-n", "10", "--seed", "1"])

        out = capsys.readouterr().out
        assert "Total Iterations: 10" in out

    def test_validate_json(self, cards_file, capsys):
        main(["validate", str(cards_file), "-n", "5", "--json"])

        report = json.loads(capsys.readouterr().out)
        assert report["summary"]["total_iterations"] == 5
        assert report["card_utilization"]["cards_used"] == 6

    def test_no_command(self, capsys):
        with pytest.raises(SystemExit) as exc_info:
            main([])

        assert exc_info.value.code == 1
