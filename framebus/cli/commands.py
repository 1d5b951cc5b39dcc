"""CLI commands for framebus."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.table import Table

from framebus import __brand__, __version__

app = typer.Typer(
    name="framebus",
    help=f"{__brand__} - namespaced messaging between isolated contexts",
    no_args_is_help=True,
)

console = Console()


def _cli_fail(cause: str, fix: str | None = None, *, exit_code: int = 1) -> None:
    """Print a consistent CLI error block and exit."""
    console.print(f"[red]{cause}[/red]")
    if fix:
        console.print(f"[dim]Fix: {fix}[/dim]")
    raise typer.Exit(exit_code)


def _load(config_path: Path | None):
    from framebus.config.loader import load_config

    if config_path is not None and not config_path.exists():
        _cli_fail(f"Config file not found: {config_path}", "Pass an existing --config path.")
    return load_config(config_path)


def _short(value: Any, limit: int = 32) -> str:
    text = json.dumps(value, ensure_ascii=False) if not isinstance(value, str) else value
    return text if len(text) <= limit else text[: limit - 3] + "..."


def version_callback(value: bool):
    if value:
        console.print(f"{__brand__} v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(None, "--version", "-v", callback=version_callback, is_eager=True),
):
    """framebus - namespaced messaging between isolated contexts."""
    pass


@app.command("version")
def version_command():
    """Show version."""
    console.print(f"{__brand__} v{__version__}")


@app.command("config")
def show_config(
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Show the effective bus configuration."""
    from framebus.config.loader import get_config_path

    config = _load(config_path)

    table = Table(title=f"Bus Config ({config_path or get_config_path()})")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("default namespace", config.default_namespace)
    table.add_row("target origin", config.target_origin)
    table.add_row("allowed origins", ", ".join(config.allowed_origins) or "[dim]none[/dim]")
    table.add_row("namespaces", ", ".join(config.namespaces) or "[dim]none[/dim]")
    table.add_row("log level", config.log_level)
    console.print(table)


@app.command("check-origin")
def check_origin(
    origin: str = typer.Argument(..., help="Sender origin, e.g. https://ads.example"),
    allow: list[str] = typer.Option(None, "--allow", "-a", help="Allowed origin (repeatable)"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
):
    """Check whether a sender origin passes the allow-list."""
    from framebus.bus.matching import OriginAllowList

    allowed = list(allow) if allow else _load(config_path).allowed_origins
    allow_list = OriginAllowList(allowed)

    if allow_list.matches(origin):
        console.print(f"[green]✓[/green] {origin} is allowed")
        return
    _cli_fail(
        f"{origin} is not in the allow-list ({', '.join(allow_list) or 'empty'})",
        "Add it with --allow or to allowedOrigins in the config file.",
    )


@app.command("demo")
def demo(
    allow: list[str] = typer.Option(None, "--allow", "-a", help="Origin the publisher page trusts (repeatable)"),
    namespace: str = typer.Option("dfp", "--namespace", "-n", help="Namespace to exchange messages on"),
    log_level: str = typer.Option(None, "--log-level", help="Log level (defaults to the config file)"),
    config_path: Path = typer.Option(None, "--config", "-c", help="Config file path"),
    log_file: Path = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """Run a publisher/ad-frame/relay exchange on the in-process host."""
    from framebus.channels.host import Host, create_bus
    from framebus.logging_setup import configure_logging

    configure_logging(log_level or _load(config_path).log_level, log_file)

    host = Host()
    publisher = host.create_context("https://publisher.example", name="publisher")
    ad_frame = publisher.embed("https://ads.example", name="ad-frame")
    relay_frame = publisher.embed("https://measure.example", name="relay-frame")

    page_bus = create_bus(publisher)
    for origin in allow or []:
        page_bus.add_origin(origin)
    ad_bus = create_bus(ad_frame.content_window)
    relay_bus = create_bus(relay_frame.content_window)

    delivered: list[tuple[str, Any]] = []

    def record(label: str):
        return lambda event: delivered.append((label, event))

    page_bus.proxy(namespace, relay_frame)
    page_bus.receive(f"init.{namespace}", record("publisher"), source=ad_frame)
    relay_bus.listen(namespace)
    relay_bus.receive(f"init.{namespace}", record("relay-frame"))

    ad_bus.send(publisher, f"init.{namespace}", {"slot": "top"})
    ad_bus.send(publisher, "noise.unregistered", {"ignored": True})
    publisher.post_message("not json", source=ad_frame.content_window)
    steps = host.run_pending()

    if not delivered:
        console.print(f"[yellow]No events delivered ({steps} host callbacks)[/yellow]")
        console.print(f"[dim]Publisher allow-list: {', '.join(page_bus.origins) or 'empty'}[/dim]")
        raise typer.Exit(1)

    table = Table(title=f"Delivered events ({steps} host callbacks)")
    table.add_column("Context", style="cyan")
    table.add_column("Type", style="green")
    table.add_column("Sender", style="yellow")
    table.add_column("Data")
    for label, event in delivered:
        sender = getattr(event.source, "name", "?")
        table.add_row(label, event.type, sender, _short(event.detail))
    console.print(table)


if __name__ == "__main__":
    app()
