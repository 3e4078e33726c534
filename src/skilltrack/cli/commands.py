"""CLI commands for skill tracking.

Commands:
- init-db: Create the SQLite schema
- create-skill / show / set-progress / log: Skill records and activity
- level: Recompute and display the level ladder
- milestone-*: Milestone checklist and progress aggregation
- depend / undepend / prereqs: Prerequisite edges
- insights: Velocity, consistency, plateau and completion estimate

The database path comes from SKILLTRACK_DB or the app config; the acting
user from the app config (SKILLTRACK_USER_ID by default).
"""

import asyncio
import os
import sqlite3
from pathlib import Path
from typing import Any, Coroutine, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from skilltrack.config.app_config import get_current_user_id, get_database_path
from skilltrack.core.activity import get_skill_streak
from skilltrack.core.dependencies import (
    add_dependency,
    are_prerequisites_met,
    list_dependencies,
    remove_dependency,
)
from skilltrack.core.errors import NotFoundError, SkillEngineError
from skilltrack.core.insights import (
    calculate_estimated_completion,
    get_skill_insights,
    get_skill_progress,
)
from skilltrack.core.level_ladder import (
    get_level_up_suggestions,
    get_skill_levels,
    update_skill_level,
)
from skilltrack.core.milestones import (
    complete_milestone,
    create_milestone,
    delete_milestone,
    list_milestones,
    revert_milestone,
)
from skilltrack.core.models import SkillVisibility
from skilltrack.core.skills import add_entry, create_skill, record_progress_update
from skilltrack.db.database import init_db
from skilltrack.db.skills_repository import SqliteSkillRepository

T = TypeVar("T")

app = typer.Typer(
    name="skilltrack",
    help="Track learning skills: levels, milestones, prerequisites and insights.",
    no_args_is_help=True,
)

console = Console()


def _db_path() -> Path:
    """Database path, SKILLTRACK_DB overriding the config."""
    override = os.environ.get("SKILLTRACK_DB")
    if override:
        return Path(override)
    return get_database_path()


def _repo() -> SqliteSkillRepository:
    """Repository for the configured database and user."""
    return SqliteSkillRepository(db_path=_db_path(), user_id=get_current_user_id())


def _run(coro: Coroutine[Any, Any, T]) -> T:
    """Run an engine coroutine, turning engine errors into exit code 1."""
    try:
        return asyncio.run(coro)
    except NotFoundError as e:
        console.print(f"[yellow]⚠ {e}[/yellow]")
        raise typer.Exit(code=1)
    except (SkillEngineError, ValueError) as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(code=1)
    except sqlite3.Error as e:
        console.print(f"[red]✗ Error de base de datos: {e}[/red]")
        raise typer.Exit(code=1)


# =============================================================================
# DATABASE
# =============================================================================


@app.command(name="init-db")
def init_database() -> None:
    """Create the database schema (idempotent)."""
    path = _db_path()
    init_db(path)
    console.print(f"[green]✓ Base de datos lista:[/green] {path}")


# =============================================================================
# SKILLS
# =============================================================================


@app.command(name="create-skill")
def create_skill_command(
    name: str = typer.Argument(..., help="Skill name"),
    description: str | None = typer.Option(None, "--description", "-d", help="Description"),
    estimated_hours: float | None = typer.Option(
        None, "--estimated-hours", "-e", help="Target hours to master the skill"
    ),
    visibility: str = typer.Option(
        "private", "--visibility", "-v", help="public, private, students, tutor"
    ),
) -> None:
    """Create a new skill owned by the configured user."""
    try:
        vis = SkillVisibility(visibility)
    except ValueError:
        console.print(f"[red]✗ Visibilidad inválida: {visibility}[/red]")
        raise typer.Exit(code=1)

    skill = _run(
        create_skill(
            _repo(),
            name=name,
            description=description,
            estimated_hours=estimated_hours,
            visibility=vis,
        )
    )
    console.print(f"[green]✓ Skill creada:[/green] {skill.name}")
    console.print(f"  [dim]skill_id:[/dim] {skill.id}")


@app.command()
def show(skill_id: str = typer.Argument(..., help="Skill ID")) -> None:
    """Show progress summary and the gap to the next level."""
    repo = _repo()

    async def _load():
        summary = await get_skill_progress(repo, skill_id)
        gap = await get_level_up_suggestions(repo, skill_id)
        skill = await repo.get_skill(skill_id)
        streak = await get_skill_streak(repo, skill_id)
        return skill, summary, gap, streak

    skill, summary, gap, streak = _run(_load())

    console.print(f"[bold]{skill.name}[/bold] [dim]({skill.id})[/dim]")
    console.print(f"  [dim]progress:[/dim]   {summary.progress}%")
    console.print(f"  [dim]level:[/dim]      {summary.level.value}")
    if skill.current_level != summary.level:
        console.print(
            f"  [yellow]⚠ nivel guardado desactualizado ({skill.current_level.value}); "
            f"ejecuta: skilltrack level {skill_id}[/yellow]"
        )
    console.print(
        f"  [dim]milestones:[/dim] {summary.milestones_completed}/{summary.milestones_total}"
    )
    console.print(
        f"  [dim]hours:[/dim]      {summary.hours_logged:.1f}"
        f" / {summary.estimated_hours:.1f} estimated"
    )
    console.print(f"  [dim]streak:[/dim]     {streak} day(s)")

    if gap.next_level is None:
        console.print("  [dim]next level:[/dim] —")
    else:
        console.print(
            f"  [dim]next level:[/dim] {gap.next_level.name} "
            f"(+{gap.progress_needed} pts, {gap.hours_needed:.1f} h)"
        )


@app.command(name="set-progress")
def set_progress(
    skill_id: str = typer.Argument(..., help="Skill ID"),
    value: int = typer.Argument(..., help="New progress (0-100)"),
    notes: str | None = typer.Option(None, "--notes", "-n", help="Optional note"),
) -> None:
    """Set progress directly and refresh the stored level."""
    repo = _repo()

    async def _apply():
        await record_progress_update(repo, skill_id, value, notes=notes)
        return await update_skill_level(repo, skill_id)

    level = _run(_apply())
    console.print(f"[green]✓ Progreso: {value}%[/green] [dim]nivel:[/dim] {level.value}")


@app.command()
def log(
    skill_id: str = typer.Argument(..., help="Skill ID"),
    content: str = typer.Argument(..., help="Diary entry text"),
    hours: float = typer.Option(0.0, "--hours", "-h", help="Hours practiced"),
) -> None:
    """Log a diary entry (and hours) for a skill."""
    entry = _run(add_entry(_repo(), skill_id, content, hours=hours))
    console.print(f"[green]✓ Entrada registrada[/green] [dim]({entry.id})[/dim]")


@app.command()
def level(skill_id: str = typer.Argument(..., help="Skill ID")) -> None:
    """Recompute the skill level and print the ladder."""
    repo = _repo()

    async def _apply():
        current = await update_skill_level(repo, skill_id)
        levels = await get_skill_levels(repo, skill_id)
        return current, levels

    current, levels = _run(_apply())

    table = Table(show_header=True, header_style="bold")
    table.add_column("Level", style="cyan")
    table.add_column("Range", justify="center")
    table.add_column("Hours", justify="right")
    table.add_column("", justify="center")

    for lvl in levels:
        marker = "[green]●[/green]" if lvl.level_type == current else ""
        table.add_row(
            lvl.name,
            f"{lvl.min_progress}-{lvl.max_progress}",
            f"{lvl.required_hours:g}",
            marker,
        )

    console.print(table)
    console.print(f"[green]✓ Nivel actual:[/green] {current.value}")


# =============================================================================
# MILESTONES
# =============================================================================


@app.command(name="milestone-add")
def milestone_add(
    skill_id: str = typer.Argument(..., help="Skill ID"),
    title: str = typer.Argument(..., help="Milestone title"),
    order: int = typer.Option(0, "--order", "-o", help="Position in the checklist"),
    description: str | None = typer.Option(None, "--description", "-d"),
) -> None:
    """Add a milestone to a skill."""
    milestone = _run(
        create_milestone(_repo(), skill_id, title, order, description=description)
    )
    console.print(f"[green]✓ Milestone creado:[/green] {milestone.title}")
    console.print(f"  [dim]milestone_id:[/dim] {milestone.id}")


@app.command(name="milestone-list")
def milestone_list(skill_id: str = typer.Argument(..., help="Skill ID")) -> None:
    """List milestones in checklist order."""
    milestones = _run(list_milestones(_repo(), skill_id))

    if not milestones:
        console.print("[dim]Sin milestones[/dim]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("#", justify="right", width=4)
    table.add_column("", justify="center", width=3)
    table.add_column("Title")
    table.add_column("ID", style="dim")

    for m in milestones:
        status_icon = "[green]✓[/green]" if m.is_completed else "·"
        table.add_row(str(m.order_index), status_icon, m.title, m.id)

    console.print(table)


@app.command(name="milestone-complete")
def milestone_complete(milestone_id: str = typer.Argument(..., help="Milestone ID")) -> None:
    """Complete a milestone and recompute skill progress."""
    progress = _run(complete_milestone(_repo(), milestone_id))
    console.print(f"[green]✓ Milestone completado[/green] [dim]progress:[/dim] {progress}%")
    console.print("  [dim]Nivel no recalculado; ejecuta 'skilltrack level' si cambió.[/dim]")


@app.command(name="milestone-revert")
def milestone_revert(milestone_id: str = typer.Argument(..., help="Milestone ID")) -> None:
    """Mark a milestone incomplete (progress is not recomputed)."""
    _run(revert_milestone(_repo(), milestone_id))
    console.print("[green]✓ Milestone revertido[/green]")


@app.command(name="milestone-delete")
def milestone_delete(milestone_id: str = typer.Argument(..., help="Milestone ID")) -> None:
    """Delete a milestone (progress is not recomputed)."""
    _run(delete_milestone(_repo(), milestone_id))
    console.print("[green]✓ Milestone eliminado[/green]")


# =============================================================================
# DEPENDENCIES
# =============================================================================


@app.command()
def depend(
    skill_id: str = typer.Argument(..., help="Dependent skill ID"),
    prerequisite_id: str = typer.Argument(..., help="Prerequisite skill ID"),
    optional: bool = typer.Option(False, "--optional", help="Suggested, not required"),
) -> None:
    """Add a prerequisite to a skill."""
    _run(add_dependency(_repo(), skill_id, prerequisite_id, is_required=not optional))
    kind = "opcional" if optional else "requerido"
    console.print(f"[green]✓ Prerrequisito {kind} añadido[/green]")


@app.command()
def undepend(
    skill_id: str = typer.Argument(..., help="Dependent skill ID"),
    prerequisite_id: str = typer.Argument(..., help="Prerequisite skill ID"),
) -> None:
    """Remove a prerequisite from a skill."""
    removed = _run(remove_dependency(_repo(), skill_id, prerequisite_id))
    if not removed:
        console.print("[yellow]⚠ Prerrequisito no encontrado[/yellow]")
        raise typer.Exit(code=1)
    console.print("[green]✓ Prerrequisito eliminado[/green]")


@app.command()
def prereqs(skill_id: str = typer.Argument(..., help="Skill ID")) -> None:
    """Show prerequisites and whether the skill is unlocked."""
    repo = _repo()

    async def _load():
        deps = await list_dependencies(repo, skill_id)
        met = await are_prerequisites_met(repo, skill_id)
        return deps, met

    deps, met = _run(_load())

    for dep in deps:
        prereq = dep.prerequisite_skill
        name = prereq.name if prereq else f"<missing {dep.prerequisite_skill_id}>"
        progress = f"{prereq.progress}%" if prereq else "—"
        kind = "required" if dep.is_required else "optional"
        console.print(f"  • {name} [dim]({kind}, {progress})[/dim]")

    if met:
        console.print("[green]✓ Prerrequisitos cumplidos[/green]")
    else:
        console.print("[red]✗ Prerrequisitos pendientes[/red]")
        raise typer.Exit(code=1)


# =============================================================================
# INSIGHTS
# =============================================================================


@app.command()
def insights(skill_id: str = typer.Argument(..., help="Skill ID")) -> None:
    """Show velocity, consistency, plateau and the completion estimate."""
    repo = _repo()

    async def _load():
        insight = await get_skill_insights(repo, skill_id)
        estimate = await calculate_estimated_completion(repo, skill_id)
        return insight, estimate

    insight, estimate = _run(_load())

    console.print(f"  [dim]velocity:[/dim]    {insight.velocity:.2f} pts/day")
    console.print(f"  [dim]consistency:[/dim] {insight.consistency:.0%}")
    if insight.plateau_detected:
        console.print("  [yellow]⚠ plateau: sin actualizaciones en 7 días[/yellow]")
    if insight.next_milestone:
        console.print(f"  [dim]next:[/dim]        {insight.next_milestone.title}")
    if estimate is not None:
        unit = "days" if insight.velocity >= 1 else "hours"
        console.print(f"  [dim]estimate:[/dim]    {estimate:.1f} {unit}")


if __name__ == "__main__":
    app()
