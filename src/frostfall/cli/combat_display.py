"""Combat display helpers — Rich rendering of encounters, logs and rewards."""
from __future__ import annotations

from pathlib import Path

from jinja2 import Environment, FileSystemLoader
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from frostfall.models.combat import PLAYER_ID, SYSTEM_ACTOR, CombatLogEntry, CombatResult, CombatState, Enemy, PlayerCombatStats
from frostfall.models.enemy import EnemyTemplate

_TEMPLATES_DIR = Path(__file__).parent / "templates"
_jinja_env: Environment | None = None

console = Console()

BAR_WIDTH = 12

RESULT_STYLES = {
    CombatResult.VICTORY: "bold green",
    CombatResult.DEFEAT: "bold red",
    CombatResult.FLED: "bold yellow",
    CombatResult.SURRENDERED: "bold magenta",
}


def _get_jinja() -> Environment:
    global _jinja_env
    if _jinja_env is None:
        _jinja_env = Environment(
            loader=FileSystemLoader(str(_TEMPLATES_DIR)),
            autoescape=False,
            trim_blocks=True,
            lstrip_blocks=True,
        )
    return _jinja_env


def health_bar(current: int, maximum: int, width: int = BAR_WIDTH) -> str:
    pct = max(0.0, current / maximum) if maximum > 0 else 0.0
    filled = int(pct * width)
    if pct > 0.5:
        color = "green"
    elif pct > 0.25:
        color = "yellow"
    else:
        color = "red"
    return f"[{color}]{'█' * filled}[/{color}][dim]{'░' * (width - filled)}[/dim]"


def render_summary(state: CombatState, stats: PlayerCombatStats, rounds: int) -> str:
    """Plain-text end-of-fight summary from ``summary.j2``."""
    template = _get_jinja().get_template("summary.j2")
    return template.render(
        result=state.result.value if state.result else "unresolved",
        location=state.location,
        rounds=rounds,
        player=stats,
        enemies=state.enemies,
        rewards=state.rewards,
        log_size=len(state.combat_log),
    )


class CombatDisplay:
    def __init__(self, target: Console | None = None) -> None:
        self.console = target or console

    def show_encounter(self, enemies: list[Enemy], location: str, ambush: bool = False) -> None:
        lines = Text()
        label = "AMBUSH!" if ambush else "COMBAT!"
        lines.append(f"{label}\n\n", style="bold red")
        lines.append(f"Location: {location}\n")
        for enemy in enemies:
            tags = []
            if enemy.is_boss:
                tags.append("boss")
            if enemy.is_elite:
                tags.append("elite")
            suffix = f" ({', '.join(tags)})" if tags else ""
            lines.append(f"  {enemy.name} - level {enemy.level}, {enemy.behavior}{suffix}\n")
        boss = any(e.is_boss for e in enemies)
        self.console.print(Panel(lines, border_style="magenta" if boss else "red", box=box.HEAVY))

    def show_status(self, state: CombatState, stats: PlayerCombatStats) -> None:
        content = Text.from_markup(f"  Round {state.turn}\n\n", style="bold yellow")
        for enemy in state.enemies:
            bar = health_bar(enemy.current_health, enemy.max_health)
            status = "" if enemy.is_alive else " [dim](dead)[/dim]"
            effects = " ".join(f"[cyan]{a.effect.kind}[/cyan]" for a in enemy.active_effects)
            content.append_text(Text.from_markup(
                f"  {enemy.name[:22]:<22} {bar} {enemy.current_health}/{enemy.max_health}{status} {effects}\n"
            ))
        bar = health_bar(stats.current_health, stats.max_health)
        content.append_text(Text.from_markup(
            f"\n  [bold]You[/bold]{'':19} {bar} {stats.current_health}/{stats.max_health}"
            f"  [blue]MP {stats.current_magicka}[/blue]  [green]SP {stats.current_stamina}[/green]\n"
        ))
        self.console.print(Panel(content, border_style="red", box=box.ROUNDED))

    def show_log(self, entries: list[CombatLogEntry]) -> None:
        table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
        table.add_column("Turn", justify="right", style="dim")
        table.add_column("Actor")
        table.add_column("Action", style="cyan")
        table.add_column("Damage", justify="right")
        table.add_column("Narrative")
        for entry in entries:
            if entry.actor == PLAYER_ID:
                actor = "[green]You[/green]"
            elif entry.actor == SYSTEM_ACTOR:
                actor = "[dim]-[/dim]"
            else:
                actor = f"[red]{entry.actor}[/red]"
            damage = str(entry.damage) if entry.damage is not None else ""
            table.add_row(str(entry.turn), actor, entry.action, damage, entry.narrative)
        self.console.print(table)

    def show_result(self, state: CombatState) -> None:
        if state.result is None:
            self.console.print("[yellow]The fight was called off before it ended.[/yellow]")
            return
        style = RESULT_STYLES.get(state.result, "bold")
        self.console.print(f"\n[{style}]{state.result.value.upper()}[/{style}]")

    def show_summary(self, state: CombatState, stats: PlayerCombatStats, rounds: int) -> None:
        self.console.print(Panel(render_summary(state, stats, rounds), title="Summary", box=box.ROUNDED))

    def show_templates(self, templates: list[EnemyTemplate]) -> None:
        table = Table(title="Enemy Templates", box=box.ROUNDED)
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Category")
        table.add_column("Level", justify="right")
        table.add_column("HP", justify="right")
        table.add_column("Armor", justify="right")
        table.add_column("Damage", justify="right")
        table.add_column("Boss")
        for t in templates:
            table.add_row(
                t.id, t.name, t.category.value, str(t.level), str(t.health),
                str(t.armor), str(t.damage), "yes" if t.is_boss else "",
            )
        self.console.print(table)
