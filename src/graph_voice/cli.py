"""Command-line interface for graph-voice."""

import asyncio
import json
from pathlib import Path
from typing import Annotated, Any

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from graph_voice.actions.engine import ConfirmationEngine
from graph_voice.actions.errors import ActionError
from graph_voice.actions.kinds import ActionKindRegistry
from graph_voice.actions.models import DisplayPreview
from graph_voice.config import Settings, load_kind_overrides

app = typer.Typer(
    name="graph-voice",
    help="Voice assistant for mail, chat and calendar with confirmed actions",
    no_args_is_help=True,
)
console = Console()

# Sub-command groups
actions_app = typer.Typer(help="Review and resolve pending actions")

app.add_typer(actions_app, name="actions")

EXAMPLE_KINDS_YAML = """\
# Overrides for confirmation-gated action kinds.
# Only titles and field lists can be changed; kinds themselves are fixed.
# Editable fields must also appear in display_fields.
kinds: {}
#  send_email:
#    title: "Outgoing Email"
#    editable_fields: [subject, body, cc_recipients]
#  send_chat_message:
#    display_fields: [recipient_name, message]
"""


def get_settings() -> Settings:
    """Load application settings."""
    return Settings()


def get_engine(settings: Settings) -> ConfirmationEngine:
    """Build a confirmation engine over the persistent store."""
    from graph_voice.logging import get_action_logger, setup_logging
    from graph_voice.storage.database import SqliteActionStore

    setup_logging(
        log_dir=settings.log_dir,
        log_level=settings.log_level,
        max_bytes=settings.log_rotation_size_mb * 1024 * 1024,
        backup_count=settings.log_backup_count,
    )

    try:
        registry = ActionKindRegistry(load_kind_overrides(settings.kinds_path))
    except (ActionError, ValidationError) as e:
        console.print(f"[red]Invalid action kind config:[/red] {e}")
        raise typer.Exit(1)

    return ConfirmationEngine(
        SqliteActionStore(settings.database_path),
        registry,
        ttl=settings.confirmation_ttl_seconds,
        logger=get_action_logger(),
    )


def _parse_value(raw: str) -> Any:
    """Parse a --set value as JSON, falling back to a plain string."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


def _print_preview(preview: DisplayPreview) -> None:
    """Render a preview as a table."""
    console.print(f"\n[bold]{preview.title}[/bold]  [dim]{preview.id}[/dim]")

    table = Table(show_header=False)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for name, value in preview.details.items():
        if name != "summary":
            table.add_row(name, value)
    console.print(table)

    console.print(f"[bold]Summary:[/bold] {preview.summary}")
    editable = ", ".join(preview.editable_fields) or "none"
    console.print(f"[dim]Status: {preview.status.value} | Editable: {editable}[/dim]")


@app.command()
def version() -> None:
    """Show version information."""
    from graph_voice import __version__

    console.print(f"graph-voice v{__version__}")


@app.command()
def init(
    config_dir: Annotated[
        Path | None,
        typer.Option("--config-dir", "-c", help="Configuration directory"),
    ] = None,
) -> None:
    """Initialize configuration directory with example files."""
    settings = get_settings()
    if config_dir:
        settings.config_dir = config_dir

    settings.ensure_config_dir()

    if not settings.kinds_path.exists():
        settings.kinds_path.write_text(EXAMPLE_KINDS_YAML)
        console.print(f"[green]Created[/green] {settings.kinds_path}")
    else:
        console.print(f"[yellow]Exists[/yellow] {settings.kinds_path}")

    console.print(f"\n[bold]Configuration initialized at:[/bold] {settings.config_dir}")


# ─── Actions ──────────────────────────────────────────────────────────────


@actions_app.command("kinds")
def actions_kinds() -> None:
    """List confirmation-gated action kinds."""
    settings = get_settings()
    try:
        registry = ActionKindRegistry(load_kind_overrides(settings.kinds_path))
    except (ActionError, ValidationError) as e:
        console.print(f"[red]Invalid action kind config:[/red] {e}")
        raise typer.Exit(1)

    table = Table(title="Action Kinds")
    table.add_column("Kind", style="cyan")
    table.add_column("Title")
    table.add_column("Display Fields", style="dim")
    table.add_column("Editable Fields", style="green")

    for kind, spec in registry:
        table.add_row(
            kind.value,
            spec.title,
            ", ".join(spec.display_fields),
            ", ".join(spec.editable_fields) or "-",
        )

    console.print(table)


@actions_app.command("propose")
def actions_propose(
    kind: Annotated[str, typer.Argument(help="Action kind, e.g. send_email")],
    data: Annotated[str, typer.Option("--data", "-d", help="Action fields as a JSON object")],
    session: Annotated[str | None, typer.Option("--session", "-s", help="Owning session ID")] = None,
) -> None:
    """Create a pending action and show its preview."""
    try:
        fields = json.loads(data)
    except json.JSONDecodeError as e:
        console.print(f"[red]Invalid JSON for --data:[/red] {e}")
        raise typer.Exit(1)
    if not isinstance(fields, dict):
        console.print("[red]--data must be a JSON object[/red]")
        raise typer.Exit(1)

    from graph_voice.agent.tools import ToolArgumentError, check_required

    engine = get_engine(get_settings())
    try:
        check_required(kind, fields)
        preview = engine.create_preview(kind, fields, session_id=session)
    except (ActionError, ToolArgumentError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _print_preview(preview)
    console.print(
        f"\nUse [bold]graph-voice actions confirm {preview.id}[/bold], "
        f"[bold]edit[/bold] or [bold]cancel[/bold]"
    )


@actions_app.command("list")
def actions_list(
    session: Annotated[str | None, typer.Option("--session", "-s", help="Only this session")] = None,
) -> None:
    """List actions awaiting confirmation."""
    engine = get_engine(get_settings())
    previews = engine.list_pending(session)

    if not previews:
        console.print("[yellow]No pending actions[/yellow]")
        return

    table = Table(title="Pending Actions")
    table.add_column("ID", style="dim")
    table.add_column("Kind", style="cyan")
    table.add_column("Status", width=8)
    table.add_column("Created", width=19)
    table.add_column("Summary", max_width=50)

    for preview in previews:
        status_style = "yellow" if preview.status.value == "edited" else "green"
        table.add_row(
            preview.id,
            preview.kind.value,
            f"[{status_style}]{preview.status.value}[/{status_style}]",
            preview.created_at.strftime("%Y-%m-%d %H:%M:%S"),
            preview.summary,
        )

    console.print(table)


@actions_app.command("show")
def actions_show(
    action_id: Annotated[str, typer.Argument(help="Pending action ID")],
    session: Annotated[str | None, typer.Option("--session", "-s")] = None,
) -> None:
    """Show the preview of a pending action."""
    engine = get_engine(get_settings())
    try:
        preview = engine.get_preview(action_id, session_id=session)
    except ActionError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1)

    _print_preview(preview)


def _resolve(
    action_id: str,
    choice: str,
    session: str | None,
    edits: dict[str, Any] | None = None,
) -> None:
    """Run a choice through the dispatcher using the dry-run client."""
    from graph_voice.agent.dispatch import ToolDispatcher
    from graph_voice.remote.dry_run import DryRunActionClient

    settings = get_settings()
    dispatcher = ToolDispatcher(
        get_engine(settings),
        DryRunActionClient(),
        confirmation_enabled=settings.confirmation_enabled,
    )
    result = asyncio.run(dispatcher.resolve(session, action_id, choice, edits))

    if not result.success:
        console.print(f"[red]{result.message}[/red]")
        raise typer.Exit(1)

    console.print(f"[green]{result.message}[/green]")
    if result.preview is not None:
        _print_preview(result.preview)
    if result.result is not None:
        console.print(f"[dim]Result: {json.dumps(result.result, default=str)}[/dim]")


@actions_app.command("edit")
def actions_edit(
    action_id: Annotated[str, typer.Argument(help="Pending action ID")],
    set_: Annotated[
        list[str],
        typer.Option("--set", help="field=value (value parsed as JSON if possible)"),
    ],
    session: Annotated[str | None, typer.Option("--session", "-s")] = None,
) -> None:
    """Edit fields of a pending action before confirming it."""
    edits: dict[str, Any] = {}
    for item in set_:
        field, sep, raw = item.partition("=")
        if not sep or not field:
            console.print(f"[red]Expected field=value, got:[/red] {item}")
            raise typer.Exit(1)
        edits[field.strip()] = _parse_value(raw)

    _resolve(action_id, "edit", session, edits)


@actions_app.command("confirm")
def actions_confirm(
    action_id: Annotated[str, typer.Argument(help="Pending action ID")],
    session: Annotated[str | None, typer.Option("--session", "-s")] = None,
) -> None:
    """Confirm a pending action and execute it (dry run)."""
    _resolve(action_id, "confirm", session)


@actions_app.command("cancel")
def actions_cancel(
    action_id: Annotated[str, typer.Argument(help="Pending action ID")],
    session: Annotated[str | None, typer.Option("--session", "-s")] = None,
) -> None:
    """Cancel a pending action."""
    _resolve(action_id, "cancel", session)


@actions_app.command("sweep")
def actions_sweep(
    max_age: Annotated[
        int | None,
        typer.Option("--max-age", help="Remove actions older than this many seconds"),
    ] = None,
) -> None:
    """Remove expired pending actions."""
    engine = get_engine(get_settings())
    removed = engine.sweep_expired(max_age)
    console.print(f"Removed {removed} expired action(s)")


@actions_app.command("watch")
def actions_watch(
    interval: Annotated[
        int | None,
        typer.Option("--interval", "-i", help="Seconds between sweeps"),
    ] = None,
) -> None:
    """Run the expiry sweeper until interrupted."""
    from graph_voice.actions.sweeper import ExpirySweeper

    settings = get_settings()
    sweeper = ExpirySweeper(
        get_engine(settings),
        interval_seconds=interval or settings.sweep_interval_seconds,
    )

    console.print(
        f"[bold]Sweeper started[/bold] (every {sweeper.interval_seconds}s, "
        f"TTL {settings.confirmation_ttl_seconds}s)"
    )
    console.print("Press Ctrl+C to stop\n")

    try:
        asyncio.run(sweeper.run())
    except KeyboardInterrupt:
        pass

    console.print(f"[dim]Sweeper stopped ({sweeper.total_removed} removed)[/dim]")


if __name__ == "__main__":
    app()
