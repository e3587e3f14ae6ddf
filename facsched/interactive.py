"""Interactive TUI menu for facsched using rich."""

from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table

from facsched.cli import DATA_ERRORS, COLUMNS
from facsched.config import get_setting, load_config
from facsched.services.registry import AppContext, build_app_context
from facsched.utils.logging_setup import setup_logging

console = Console()


MAIN_MENU_CHOICES = {
    "1": "Browse department schedule",
    "2": "List departments",
    "3": "Cache status",
    "4": "Refresh all data",
    "5": "Exit",
}


def show_main_menu() -> str:
    """Display the main menu and return the user's choice."""
    table = Table(show_header=False, box=None, padding=(0, 2))
    table.add_column("Key", style="bold cyan", width=4)
    table.add_column("Action", style="white")
    for key, label in MAIN_MENU_CHOICES.items():
        table.add_row(key, label)

    console.print()
    console.print(
        Panel(table, title="[bold]facsched[/bold]", subtitle="Interactive Menu", border_style="blue")
    )
    return Prompt.ask(
        "Choose an option",
        choices=list(MAIN_MENU_CHOICES.keys()),
        default="5",
    )


def known_departments(ctx: AppContext) -> list[str]:
    """Departments of all faculty members, sorted."""
    return sorted({member.department for member in ctx.services.faculty.get_all()})


def browse_department_flow(ctx: AppContext) -> None:
    """Ask for a department and print its timetable."""
    console.print("\n[bold]Department Schedule[/bold]", style="blue")

    try:
        departments = known_departments(ctx)
    except DATA_ERRORS:
        departments = []

    if departments:
        department = Prompt.ask("Department", choices=departments, default=departments[0])
    else:
        department = Prompt.ask("Department")
    if not department.strip():
        console.print("[yellow]No department entered. Cancelled.[/yellow]")
        return

    try:
        rows = ctx.services.schedules.get_schedule_view_by_department(department.strip())
    except DATA_ERRORS as e:
        console.print(f"[red]Could not load schedule:[/red] {e}")
        return

    if not rows:
        console.print(f"  [yellow]No classes scheduled for {department}.[/yellow]")
        return

    table = Table(title=f"{department} ({len(rows)} classes)")
    columns = [c for c in COLUMNS["schedule_view"] if c != "department"]
    for column in columns:
        table.add_column(column.replace("_", " ").title())
    for row in rows:
        table.add_row(*("" if getattr(row, c) is None else str(getattr(row, c)) for c in columns))
    console.print(table)


def list_departments_flow(ctx: AppContext) -> None:
    console.print("\n[bold]Departments[/bold]", style="blue")
    try:
        departments = known_departments(ctx)
    except DATA_ERRORS as e:
        console.print(f"[red]Could not load faculty:[/red] {e}")
        return
    for name in departments:
        console.print(f"  - {name}")


def status_flow(ctx: AppContext) -> None:
    """Show cache freshness and cached row counts."""
    console.print("\n[bold]Cache Status[/bold]", style="blue")
    expired = ctx.freshness.is_expired()
    if expired:
        console.print("  [yellow]✗[/yellow] Cache is expired or empty")
    else:
        console.print("  [green]✓[/green] Cache is fresh")

    table = Table(show_header=True)
    table.add_column("Collection")
    table.add_column("Rows", justify="right")
    for key, count in ctx.cache.snapshot().items():
        table.add_row(key, "-" if count is None else str(count))
    console.print(table)


def refresh_flow(ctx: AppContext) -> None:
    console.print("\n[bold]Refresh[/bold]", style="blue")
    try:
        outcome = ctx.initializer.refresh_all_data()
    except DATA_ERRORS as e:
        console.print(f"  [red]Refresh failed:[/red] {e}")
        return
    console.print(f"  [green]Data loaded from {outcome.value}.[/green]")


DISPATCH = {
    "1": browse_department_flow,
    "2": list_departments_flow,
    "3": status_flow,
    "4": refresh_flow,
}


def interactive_menu(config_path: Path | None = None) -> int:
    """Run the interactive menu loop. Returns exit code."""
    config = load_config(config_path=config_path)
    setup_logging(
        level=get_setting(config, "logging.level", "WARNING"),
        log_file=get_setting(config, "logging.file"),
    )
    ctx = build_app_context(config)
    console.print("[bold blue]facsched[/bold blue]: Interactive Mode\n", style="bold")

    try:
        try:
            ctx.initializer.initialize_app_data()
        except DATA_ERRORS as e:
            console.print(f"[red]Could not initialize data:[/red] {e}")

        while True:
            choice = show_main_menu()
            if choice == "5":
                console.print("\nGoodbye!", style="bold blue")
                return 0

            handler = DISPATCH.get(choice)
            if handler:
                handler(ctx)
            console.print()
    finally:
        ctx.close()
