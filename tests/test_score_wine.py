"""
Tests for the score_wine command line script.
"""

import importlib.util
import json
import sys
from pathlib import Path

import pytest

SCRIPT_PATH = Path(__file__).parent.parent / "scripts" / "score_wine.py"


@pytest.fixture(scope="module")
def score_wine():
    module_spec = importlib.util.spec_from_file_location("score_wine", SCRIPT_PATH)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


def run(score_wine, monkeypatch, *argv):
    monkeypatch.setattr(sys, "argv", ["score_wine.py", *argv])
    score_wine.main()


class TestCharacteristicsOption:
    """Test parsing of --characteristics."""

    def test_valid_values_are_scored(self, score_wine, monkeypatch, capsys):
        """Six numbers produce the breakdown and score panel."""
        run(score_wine, monkeypatch, "--characteristics", "0.7,0.5,0.6,0.5,0.5,0.6")
        out = capsys.readouterr().out
        assert "Balance Breakdown" in out
        assert "Estimated Price" in out

    @pytest.mark.parametrize("text", ["0.7,0.5,0.6,abc,0.5,0.6", "0.7,0.5", ","])
    def test_bad_values_print_error_and_exit(self, score_wine, monkeypatch, capsys, text):
        """Non-numeric or miscounted values print an error instead of a traceback."""
        with pytest.raises(SystemExit) as exc_info:
            run(score_wine, monkeypatch, "--characteristics", text)
        assert exc_info.value.code == 1
        assert "six comma-separated values" in capsys.readouterr().out


class TestRulesOption:
    """Test loading rule tables from --rules."""

    def test_missing_rules_file_uses_defaults(self, score_wine, monkeypatch, capsys, tmp_path):
        """An absent rule file falls back to the built-in tables."""
        run(score_wine, monkeypatch, "--rules", str(tmp_path / "absent.json"))
        assert "Balance Breakdown" in capsys.readouterr().out

    def test_custom_rules_file_is_used(self, score_wine, monkeypatch, capsys, tmp_path):
        """Rules from the file drive the scoring."""
        path = tmp_path / "rules.json"
        path.write_text(json.dumps({'synergies': []}))
        run(score_wine, monkeypatch, "--rules", str(path), "--characteristics", "0.5,0.5,0.5,0.5,0.5,0.5")
        assert "Balance Breakdown" in capsys.readouterr().out

    def test_malformed_rules_file_prints_error(self, score_wine, monkeypatch, capsys, tmp_path):
        """A broken rule file is reported and exits with status 1."""
        path = tmp_path / "rules.json"
        path.write_text("{not json")
        with pytest.raises(SystemExit) as exc_info:
            run(score_wine, monkeypatch, "--rules", str(path))
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().out


class TestWinemakingOptions:
    """Test crushing and fermentation options."""

    def test_crush_and_ferment(self, score_wine, monkeypatch, capsys):
        """Crushing and fermentation run before scoring."""
        run(score_wine, monkeypatch, "--crushing", "Pneumatic Press", "--pressure", "0.7",
            "--fermentation", "Extended Maceration", "--weeks", "2")
        out = capsys.readouterr().out
        assert "Crushing Effects" in out
        assert "Fermented 2 week(s)" in out

    def test_pressure_beyond_press_limit_prints_error(self, score_wine, monkeypatch, capsys):
        """A hand press cannot take full pressure."""
        with pytest.raises(SystemExit) as exc_info:
            run(score_wine, monkeypatch, "--crushing", "Hand Press", "--pressure", "0.9")
        assert exc_info.value.code == 1
        assert "Error" in capsys.readouterr().out

    def test_negative_weeks_rejected(self, score_wine, monkeypatch):
        """Negative fermentation weeks are a usage error."""
        with pytest.raises(SystemExit) as exc_info:
            run(score_wine, monkeypatch, "--fermentation", "Basic", "--weeks", "-1")
        assert exc_info.value.code == 2
