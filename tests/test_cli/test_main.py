"""Tests for src/frostfall/cli/main.py."""
from __future__ import annotations

import pytest
import typer
from typer.testing import CliRunner

from frostfall.cli.main import app, parse_skills, starting_kit

runner = CliRunner()


class TestParseSkills:
    def test_empty(self):
        assert parse_skills(None) == []

    def test_pairs(self):
        skills = parse_skills(["One-Handed=40", "Heavy Armor = 25"])
        assert [(s.name, s.level) for s in skills] == [("One-Handed", 40), ("Heavy Armor", 25)]

    @pytest.mark.parametrize("raw", ["Destruction", "=30", "Destruction=high"])
    def test_bad_entries(self, raw):
        with pytest.raises(typer.BadParameter):
            parse_skills([raw])


class TestStartingKit:
    def test_kit_belongs_to_character(self):
        equipment, backpack = starting_kit("hero")
        assert all(item.character_id == "hero" for item in equipment + backpack)
        assert all(item.equipped for item in equipment)
        assert any(item.name == "Minor Health Potion" for item in backpack)


class TestCommands:
    def test_templates(self):
        result = runner.invoke(app, ["templates"])
        assert result.exit_code == 0
        assert "bandit" in result.output.lower()

    def test_simulate(self):
        result = runner.invoke(app, ["simulate", "wolf", "--seed", "7"])
        assert result.exit_code == 0
        assert "Result:" in result.output

    def test_simulate_is_reproducible(self):
        first = runner.invoke(app, ["simulate", "skeleton", "--seed", "11", "--count", "2"])
        second = runner.invoke(app, ["simulate", "skeleton", "--seed", "11", "--count", "2"])
        assert first.exit_code == 0
        assert first.output.count("Critical hit") == second.output.count("Critical hit")

    def test_unknown_template(self):
        result = runner.invoke(app, ["simulate", "mudcrab_king"])
        assert result.exit_code == 1
        assert "Unknown enemy template" in result.output

    def test_bad_skill(self):
        result = runner.invoke(app, ["simulate", "wolf", "--skill", "Archery"])
        assert result.exit_code == 2
