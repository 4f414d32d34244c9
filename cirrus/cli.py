from __future__ import annotations

import json
from typing import Optional

import typer
from botocore.exceptions import BotoCoreError
from pydantic import ValidationError as SettingsValidationError
from rich.console import Console
from rich.markup import escape

from . import __version__
from .config import ConfigStore
from .errors import PersistenceError
from .logging import setup_logging
from .settings import Settings, load_settings

app = typer.Typer(
    add_completion=False,
    help="cirrus: terminal browser for DynamoDB tables and CloudWatch logs",
    rich_markup_mode="rich",
)
console = Console()


def _settings(ctx: typer.Context) -> Settings:
    try:
        return load_settings(**(ctx.obj or {}))
    except (SettingsValidationError, OSError) as exc:
        console.print(f"[red]Invalid configuration:[/red] {escape(str(exc))}")
        raise typer.Exit(code=1)


def launch(settings: Settings) -> None:
    """Build the collaborators and run the TUI until the user quits."""
    from .services.clients import build_clients
    from .services.dynamo.browser import DynamoBrowser
    from .services.dynamo.store import DynamoStore
    from .services.logs.browser import LogBrowser
    from .services.logs.store import LogStore
    from .tui.app import App
    from .tui.keys import KeyReader
    from .tui.runtime import EventLoop

    log_file = setup_logging(settings)

    try:
        dynamodb_client, logs_client = build_clients(settings)
    except BotoCoreError as exc:
        console.print(f"[red]Could not create AWS clients:[/red] {escape(str(exc))}")
        console.print(f"[dim]Details in {escape(str(log_file))}[/dim]")
        raise typer.Exit(code=1)

    dynamo = DynamoBrowser(
        DynamoStore(dynamodb_client, settings.CIRRUS_RESOURCE_PREFIX),
        ConfigStore(settings.config_path),
    )
    logs = LogBrowser(
        LogStore(logs_client),
        name_pattern=settings.log_group_pattern,
        env=settings.CIRRUS_ENV,
        window_minutes=settings.CIRRUS_LOG_WINDOW_MINUTES,
        event_limit=settings.CIRRUS_LOG_EVENT_LIMIT,
        search_tool=settings.CIRRUS_SEARCH_TOOL,
    )

    root = App(dynamo, logs)
    loop = EventLoop(root, console=console, workers=settings.CIRRUS_WORKERS)
    loop.run(key_reader=KeyReader(loop.post_key))


# ═══════════════════════════════════════════════════════════════════════════════
# MAIN CALLBACK
# ═══════════════════════════════════════════════════════════════════════════════

@app.callback(invoke_without_command=True)
def _root(
    ctx: typer.Context,
    env: Optional[str] = typer.Option(None, "--env", "-e", help="Environment suffix for log groups"),
    prefix: Optional[str] = typer.Option(None, "--prefix", "-p", help="Table / log group name prefix"),
    profile: Optional[str] = typer.Option(None, "--profile", help="AWS profile"),
    region: Optional[str] = typer.Option(None, "--region", help="AWS region"),
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Diagnostic log level"),
):
    """
    [bold]cirrus[/bold]: browse DynamoDB tables and tail Lambda logs.

    [dim]Run without arguments to launch the interactive browser.[/dim]

    [bold]Examples:[/bold]
      cirrus --profile staging --env stg
      cirrus prefs --table orders
    """
    ctx.obj = {
        "CIRRUS_ENV": env,
        "CIRRUS_RESOURCE_PREFIX": prefix,
        "CIRRUS_AWS_PROFILE": profile,
        "CIRRUS_AWS_REGION": region,
        "CIRRUS_LOG_LEVEL": log_level,
    }
    if ctx.invoked_subcommand is None:
        launch(_settings(ctx))
        raise typer.Exit(code=0)


# ═══════════════════════════════════════════════════════════════════════════════
# COMMANDS
# ═══════════════════════════════════════════════════════════════════════════════

@app.command("prefs", help="Show saved column and filter preferences")
def prefs(
    ctx: typer.Context,
    table: Optional[str] = typer.Option(None, "--table", "-t", help="Only this table"),
):
    settings = _settings(ctx)
    store = ConfigStore(settings.config_path)
    console.print(f"[bold]Preferences file:[/bold] {escape(str(store.path))}")

    if not store.path.exists():
        console.print("[dim]No preferences saved yet.[/dim]")
        return

    try:
        loaded = store.load()
    except PersistenceError as exc:
        console.print(f"[red]{escape(str(exc))}[/red]")
        raise typer.Exit(code=1)

    data = loaded.model_dump(mode="json")
    if table:
        dyn = data["dynamodb"]
        data = {
            "table": table,
            "columns": dyn["table_column_preferences"].get(table),
            "filters": dyn["filter_condition_preferences"].get(table, []),
        }
    console.print_json(json.dumps(data))


@app.command("version", help="Show the cirrus version")
def version():
    console.print(f"cirrus {__version__}")
