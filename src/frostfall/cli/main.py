"""Typer CLI application."""
from __future__ import annotations

import logging
import random
from typing import List, Optional

import typer
from rich.logging import RichHandler

from frostfall.config import get_config
from frostfall.errors import CombatError
from frostfall.models.character import Character, Skill
from frostfall.models.combat import CombatResult
from frostfall.models.item import EquipSlot, InventoryItem, ItemType

app = typer.Typer(
    name="frostfall",
    help="Turn-based combat simulator for a northern fantasy RPG",
    no_args_is_help=True,
)

SIM_CHARACTER_ID = "simulated-hero"


def setup_logging(verbose: bool = False) -> None:
    level = "DEBUG" if verbose else get_config()["logging"]["level"]
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def parse_skills(raw: list[str] | None) -> list[Skill]:
    skills: list[Skill] = []
    for entry in raw or []:
        name, sep, level = entry.partition("=")
        if not sep or not name.strip():
            raise typer.BadParameter(f"Expected NAME=LEVEL, got {entry!r}", param_hint="--skill")
        try:
            skills.append(Skill(name=name.strip(), level=int(level)))
        except ValueError as exc:
            raise typer.BadParameter(f"Skill level must be a number: {entry!r}", param_hint="--skill") from exc
    return skills


def starting_kit(character_id: str) -> tuple[list[InventoryItem], list[InventoryItem]]:
    """Equipment and backpack for the simulated hero."""
    equipment = [
        InventoryItem(character_id=character_id, name="Steel Sword", type=ItemType.WEAPON,
                      equipped=True, slot=EquipSlot.WEAPON, damage=12),
        InventoryItem(character_id=character_id, name="Steel Armor", type=ItemType.APPAREL,
                      equipped=True, slot=EquipSlot.CHEST, armor=25),
        InventoryItem(character_id=character_id, name="Steel Helmet", type=ItemType.APPAREL,
                      equipped=True, slot=EquipSlot.HEAD, armor=12),
    ]
    backpack = [
        InventoryItem(character_id=character_id, name="Minor Health Potion", type=ItemType.POTION, quantity=2),
        InventoryItem(character_id=character_id, name="Apple", type=ItemType.FOOD, quantity=1),
    ]
    return equipment, backpack


@app.command()
def simulate(
    template: str = typer.Argument(..., help="Enemy template id to fight"),
    count: int = typer.Option(1, "--count", "-c", min=1, max=8, help="Number of enemies"),
    elite: bool = typer.Option(False, "--elite", help="Make the first enemy an elite"),
    leader: Optional[str] = typer.Option(None, "--leader", "-l", help="Add an elite leader from this template"),
    seed: Optional[int] = typer.Option(None, "--seed", help="Random seed for a reproducible fight"),
    ambush: bool = typer.Option(False, "--ambush", help="Enemies act first"),
    skill: Optional[List[str]] = typer.Option(None, "--skill", "-s", help="Skill override as NAME=LEVEL"),
    level: int = typer.Option(10, "--level", min=1, help="Hero level"),
    max_rounds: int = typer.Option(30, "--max-rounds", min=1, help="Stop after this many rounds"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Auto-play one fight against generated enemies."""
    from frostfall.cli.combat_display import CombatDisplay
    from frostfall.engine import CombatSession, choose_auto_action
    from frostfall.mechanics.enemy_generation import generate_enemy_group, generate_mixed_encounter

    setup_logging(verbose)
    display = CombatDisplay()
    rng = random.Random(seed)

    hero = Character(
        id=SIM_CHARACTER_ID, name="Hero", level=level, skills=parse_skills(skill),
    )
    equipment, backpack = starting_kit(hero.id)

    try:
        if leader:
            enemies = generate_mixed_encounter(template, count, leader, rng=rng)
        else:
            enemies = generate_enemy_group(template, count, include_elite=elite, rng=rng)
    except (CombatError, ValueError) as exc:
        display.console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1)

    location = "a frozen pass"
    session = CombatSession(
        hero, enemies,
        equipment=equipment,
        inventory=backpack,
        location=location,
        ambush=ambush,
        rng=rng,
    )
    display.show_encounter(session.state.enemies, location, ambush=ambush)
    session.start()

    while not session.is_over and session.state.turn <= max_rounds:
        choice = choose_auto_action(session.state, session.player_stats, session.inventory)
        outcome = session.act(**choice)
        if outcome.refused:
            session.act("defend")

    display.show_log(session.state.combat_log)
    display.show_status(session.state, session.player_stats)
    display.show_result(session.state)

    if session.result == CombatResult.VICTORY:
        session.claim_loot(take_all=True)
    display.show_summary(session.state, session.player_stats, session.state.turn)


@app.command()
def templates() -> None:
    """List registered enemy templates."""
    from frostfall.cli.combat_display import CombatDisplay
    from frostfall.mechanics.enemy_generation import list_templates

    setup_logging()
    CombatDisplay().show_templates(list_templates())


if __name__ == "__main__":
    app()
