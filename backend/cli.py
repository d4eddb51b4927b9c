"""
Tableside CLI.

Command-line interface for common operations: schema setup, demo data,
table overview, bulk terminal end and staff tokens for local testing.
"""

import typer
from rich.console import Console
from rich.table import Table

app = typer.Typer(
    name="tableside",
    help="Tableside table session CLI",
    add_completion=False,
)
console = Console()


# =============================================================================
# Database Commands
# =============================================================================

@app.command()
def db_init():
    """Create database tables for the SQL backend."""
    from shared.infrastructure.db import engine
    from tableside.models import Base

    try:
        Base.metadata.create_all(bind=engine)
        console.print("[green]✓ Tables created/verified[/green]")
    except Exception as e:
        console.print(f"[red]✗ Schema creation failed: {e}[/red]")
        raise typer.Exit(1)


@app.command()
def seed(
    force: bool = typer.Option(False, "--force", "-f", help="Allow seeding in production"),
):
    """Create demo tables 1, 2 and 3 when no table exists."""
    from shared.config.settings import settings
    from tableside.repositories import open_persistence
    from tableside.seed import seed_demo_tables

    if settings.environment == "production" and not force:
        console.print("[red]Cannot seed production without --force[/red]")
        raise typer.Exit(1)

    store = open_persistence()
    try:
        created = seed_demo_tables(store)
    finally:
        store.close()
    console.print(f"[green]✓ {created} demo tables created[/green]")


# =============================================================================
# Table Commands
# =============================================================================

@app.command()
def tables():
    """List tables and terminals with their live session state."""
    from tableside.repositories import open_persistence
    from tableside.services.domain import TableRegistry

    store = open_persistence()
    try:
        views = TableRegistry(store).sync()
    finally:
        store.close()

    table = Table(title="Tables")
    table.add_column("Id", style="cyan")
    table.add_column("Name")
    table.add_column("Type")
    table.add_column("Seats")
    table.add_column("Status")
    table.add_column("Session", style="green")

    for view in views:
        table.add_row(
            view.table_id,
            view.name,
            view.type,
            str(view.seats) if view.seats is not None else "-",
            view.status,
            "active" if view.session_active else "-",
        )

    console.print(table)


@app.command()
def end_terminals(
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation prompt"),
):
    """End every live terminal session."""
    from tableside.repositories import open_persistence
    from tableside.services.domain import SessionLifecycleManager, TableRegistry

    store = open_persistence()
    try:
        active = TableRegistry(store).terminals(active_only=True)
        if not active:
            console.print("[yellow]No active terminal sessions[/yellow]")
            return

        ids = ", ".join(v.table_id for v in active)
        if not yes and not typer.confirm(f"End sessions on {len(active)} terminals ({ids})?"):
            console.print("[yellow]Aborted[/yellow]")
            raise typer.Exit(1)

        ended = SessionLifecycleManager(store).bulk_end_all_terminal_sessions(confirmed=True)
    finally:
        store.close()

    console.print(f"[green]✓ Ended {len(ended)} terminal sessions[/green]")


# =============================================================================
# Staff Commands
# =============================================================================

@app.command()
def staff_token(
    staff_id: str = typer.Argument(..., help="Staff identifier (JWT subject)"),
    role: list[str] = typer.Option(["MANAGER"], "--role", "-r", help="Role, repeatable"),
    name: str = typer.Option(None, help="Display name"),
):
    """Issue a staff access token for local testing."""
    from shared.config.settings import settings
    from shared.security.auth import sign_staff_token

    if settings.environment == "production":
        console.print("[red]Refusing to mint tokens in production[/red]")
        raise typer.Exit(1)

    try:
        token = sign_staff_token(staff_id, [r.upper() for r in role], name)
    except ValueError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    console.print(token)


@app.command()
def version():
    """Show version information."""
    from tableside.main import app as api

    table = Table(title="Tableside")
    table.add_column("Component", style="cyan")
    table.add_column("Version", style="green")
    table.add_row("API", api.version)
    console.print(table)


if __name__ == "__main__":
    app()
