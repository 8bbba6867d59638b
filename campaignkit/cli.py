"""Command-line entry point for Campaignkit."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import typer
import yaml
from rich.console import Console
from rich.table import Table

from .app_context import AppContext, determine_paths, load_context
from .config import ConfigError, ConfigPaths, bootstrap
from .display import HtmlFileSurface
from .events import RecordingDispatcher
from .logging import configure_logging, get_logger
from .messages import FullscreenMessage, MessageContext, RuleConsequence, create_message
from .messages.payload import TEMPLATE_KEY

app = typer.Typer(help="Render cached campaign messages and replay their interactions.")
console = Console()

DEFAULT_MESSAGE_ID = "local"


def _determine_default_log_level(config_dir: Optional[Path]) -> str:
    paths = determine_paths(config_dir)

    config_path = paths.global_config
    if not config_path.exists():
        return "INFO"

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            payload = yaml.safe_load(handle) or {}
    except (OSError, yaml.YAMLError):
        return "INFO"

    runtime = payload.get("runtime", {}) if isinstance(payload, dict) else {}
    log_level = runtime.get("log_level") if isinstance(runtime, dict) else None
    if isinstance(log_level, str) and log_level.strip():
        return log_level.upper()
    return "INFO"


def _bootstrap_logging(
    ctx: typer.Context,
    verbose: bool,
    json_logs: bool,
    log_file: Optional[Path],
    config_dir: Optional[Path],
) -> None:
    """Initialise logging once per CLI invocation."""

    if ctx.obj is None:
        ctx.obj = {}

    if ctx.obj.get("_logging_configured"):
        return

    level = "DEBUG" if verbose else _determine_default_log_level(config_dir)
    configure_logging(level=level, json_output=json_logs, log_file=log_file)
    ctx.obj["logger"] = get_logger("campaignkit.cli")
    ctx.obj["_logging_configured"] = True


@app.callback(invoke_without_command=True)
def cli(  # noqa: D401 - Typer generates help text.
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    json_logs: bool = typer.Option(False, "--json-logs", help="Emit JSON-formatted logs."),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        dir_okay=False,
        file_okay=True,
        writable=True,
        resolve_path=True,
        help="Optional file to append structured logs to.",
    ),
    config_dir: Optional[Path] = typer.Option(
        None,
        "--config-dir",
        dir_okay=True,
        file_okay=False,
        resolve_path=True,
        help="Base directory for config files (defaults to ~/.campaignkit).",
    ),
) -> None:
    """Campaignkit command group."""

    _bootstrap_logging(ctx, verbose, json_logs, log_file, config_dir)
    ctx.obj["config_dir"] = config_dir

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())


def _logger(ctx: typer.Context):
    return ctx.obj.get("logger", get_logger("campaignkit.cli"))


def _load_app_context(ctx: typer.Context, command: str) -> AppContext:
    log = _logger(ctx)
    try:
        paths = determine_paths(ctx.obj.get("config_dir"))
        return load_context(paths)
    except ConfigError as exc:
        log.error(f"{command}.failed", error=str(exc))
        typer.echo(f"Error loading configuration: {exc}")
        raise typer.Exit(code=1) from exc


def _load_consequence(payload_path: Path, message_id: str) -> RuleConsequence:
    """Read consequence details from a YAML or JSON file.

    The file holds either the details mapping itself or a consequence with
    ``id`` and ``details`` keys. Details without a template render as fullscreen.
    """

    try:
        with payload_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except FileNotFoundError as exc:
        raise typer.BadParameter(f"Payload file not found: {payload_path}") from exc
    except yaml.YAMLError as exc:
        raise typer.BadParameter(f"Payload file is not valid YAML/JSON: {payload_path}") from exc

    if not isinstance(data, dict):
        raise typer.BadParameter("Payload must be a mapping.")

    if isinstance(data.get("details"), dict):
        message_id = str(data.get("id") or message_id)
        details: Dict[str, Any] = dict(data["details"])
    else:
        details = dict(data)
    if details:
        details.setdefault(TEMPLATE_KEY, "fullscreen")
    return RuleConsequence(id=message_id, details=details)


def _build_message(
    ctx: typer.Context,
    command: str,
    payload: Path,
    message_id: str,
    output: Optional[Path] = None,
) -> Tuple[FullscreenMessage, HtmlFileSurface, RecordingDispatcher]:
    log = _logger(ctx)
    context = _load_app_context(ctx, command)
    consequence = _load_consequence(payload, message_id)

    surface = HtmlFileSurface(output=output)
    dispatcher = RecordingDispatcher(logger=log)
    message_context = MessageContext(
        logger=log,
        cache=context.cache,
        dispatcher=dispatcher,
        display=surface,
        settings=context.global_config.messaging,
    )
    message = create_message(consequence, message_context)
    if not isinstance(message, FullscreenMessage):
        typer.echo("Payload does not describe a fullscreen message (html is required).")
        raise typer.Exit(code=1)
    return message, surface, dispatcher


@app.command()
def init(
    ctx: typer.Context,
    force: bool = typer.Option(False, "--force", help="Overwrite existing config.yml"),
) -> None:
    """Initial setup flow for global configuration."""

    log = _logger(ctx)
    config_dir = ctx.obj.get("config_dir")

    try:
        paths = ConfigPaths.from_base_dir(config_dir) if config_dir else ConfigPaths.default()
        report = bootstrap(paths, overwrite=force)
    except (ConfigError, OSError) as exc:
        log.error("init.failed", error=str(exc))
        raise typer.Exit(code=1) from exc

    typer.echo(f"Configuration directory: {paths.base_dir}")
    typer.echo(f"Asset cache directory: {paths.cache_dir}")

    if report.global_config_created:
        if report.global_config_overwritten:
            typer.echo(f"Global config overwritten at: {paths.global_config}")
        else:
            typer.echo(f"Global config created at: {paths.global_config}")
    else:
        typer.echo(f"Global config already exists at: {paths.global_config}")
        typer.echo("Use --force to regenerate with default values.")

    log.info(
        "init.completed",
        base_dir=str(paths.base_dir),
        cache_dir=str(paths.cache_dir),
        global_config=str(paths.global_config),
        force=force,
        base_created=report.base_created,
        cache_dir_created=report.cache_dir_created,
        global_config_created=report.global_config_created,
        global_config_overwritten=report.global_config_overwritten,
    )


@app.command()
def render(
    ctx: typer.Context,
    payload: Path = typer.Argument(..., help="YAML/JSON consequence details file."),
    message_id: str = typer.Option(DEFAULT_MESSAGE_ID, "--message-id", help="Message identifier."),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        dir_okay=False,
        resolve_path=True,
        help="Write the final HTML here instead of stdout.",
    ),
) -> None:
    """Render a message's cached HTML with its assets expanded."""

    log = _logger(ctx)
    message, surface, _ = _build_message(ctx, "render", payload, message_id, output=output)

    if not message.show():
        key = message.context.settings.html_cache_key(message.descriptor.html_key)
        typer.echo(f"HTML for message '{message.message_id}' not found in cache ({key}).")
        raise typer.Exit(code=1)

    presented = surface.last
    if output is None and presented is not None:
        typer.echo(presented.html)
    elif output is not None:
        typer.echo(f"Rendered HTML written to: {output}")
    log.info("render.completed", message_id=message.message_id, local_images=message.is_local_image_used)


@app.command()
def resolve(
    ctx: typer.Context,
    payload: Path = typer.Argument(..., help="YAML/JSON consequence details file."),
    message_id: str = typer.Option(DEFAULT_MESSAGE_ID, "--message-id", help="Message identifier."),
) -> None:
    """Show how each asset group of a message resolves against the cache."""

    log = _logger(ctx)
    message, _, _ = _build_message(ctx, "resolve", payload, message_id)

    groups = message.descriptor.asset_groups
    if not groups:
        console.print("[yellow]Message has no asset groups.[/yellow]")
        log.info("resolve.completed", groups=0)
        return

    resolved = {resolution.token: resolution for resolution in message.preview_assets()}

    table = Table(title=f"Asset groups for {message.message_id}")
    table.add_column("Token", style="cyan", no_wrap=True)
    table.add_column("Source")
    table.add_column("Replacement")

    for group in groups:
        resolution = resolved.get(group.token)
        if resolution is None:
            table.add_row(group.token, "[red]unresolved[/red]", "-")
        else:
            table.add_row(group.token, resolution.source, resolution.value)

    console.print(table)
    downloads = message.remote_asset_urls()
    if downloads:
        console.print(f"Remote assets to prefetch: {len(downloads)}")
    log.info("resolve.completed", groups=len(groups), resolved=len(resolved))


@app.command()
def interact(
    ctx: typer.Context,
    payload: Path = typer.Argument(..., help="YAML/JSON consequence details file."),
    tag_id: str = typer.Argument(..., help="Interaction id, e.g. 'h11901a,86f10d,3'."),
    message_id: str = typer.Option(DEFAULT_MESSAGE_ID, "--message-id", help="Message identifier."),
) -> None:
    """Replay a button interaction and list the events it raises."""

    log = _logger(ctx)
    message, _, dispatcher = _build_message(ctx, "interact", payload, message_id)

    handled = message.process_interaction({"id": tag_id})
    if not handled:
        typer.echo(f"Interaction id '{tag_id}' was ignored.")
        log.info("interact.ignored", tag_id=tag_id)
        return

    table = Table(title=f"Events for {message.message_id}")
    table.add_column("Event", style="cyan")
    table.add_column("Data")
    for event in dispatcher.events:
        data = ", ".join(f"{key}={value}" for key, value in event.data.items()) or "-"
        table.add_row(event.kind, data)
    console.print(table)
    log.info("interact.completed", events=dispatcher.kinds())


def main() -> None:
    """Run the Typer application."""

    app()


if __name__ == "__main__":  # pragma: no cover - direct execution convenience
    main()
