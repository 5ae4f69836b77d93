"""CLI commands for tab-grouper."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from rich.console import Console

from tab_grouper import __logo__, __version__

app = typer.Typer(
    name="tab_grouper",
    help=f"{__logo__} tab-grouper - sort browser tabs into task groups",
    no_args_is_help=True,
)
console = Console()


def version_callback(value: bool) -> None:
    if value:
        console.print(f"{__logo__} tab-grouper v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", help="Log debug output to stderr."),
) -> None:
    """tab-grouper entrypoint."""
    del version
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


@app.command()
def onboard(
    force: bool = typer.Option(False, "--force", help="Overwrite existing config without prompt."),
) -> None:
    """Write a default configuration file."""
    from tab_grouper.config.loader import get_config_path, save_config
    from tab_grouper.config.schema import Config

    config_path = get_config_path()
    if config_path.exists() and not force:
        console.print(f"[yellow]Config already exists at {config_path}[/yellow]")
        if not typer.confirm("Overwrite?"):
            raise typer.Exit()

    save_config(Config())
    console.print(f"[green]OK[/green] Created config at {config_path}")
    console.print("\nNext steps:")
    console.print("  1. Set [cyan]ANTHROPIC_API_KEY[/cyan] and/or [cyan]GROQ_API_KEY[/cyan] (or edit the config)")
    console.print("  2. Start the relay: [cyan]tab-grouper serve[/cyan]")


@app.command()
def serve(
    port: int = typer.Option(0, "--port", "-p", help="Port to listen on (default from config)."),
    host: str = typer.Option("", "--host", help="Interface to bind (default from config)."),
) -> None:
    """Run the local categorization relay."""
    from tab_grouper.config.loader import load_config
    from tab_grouper.relay.server import serve as serve_relay

    config = load_config()
    if port:
        config.relay.port = port
    if host:
        config.relay.host = host

    console.print(f"Relay listening on [cyan]http://{config.relay.host}:{config.relay.port}[/cyan]")
    serve_relay(config)


@app.command()
def show(
    tabs_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of tabs."),
    urls: bool = typer.Option(False, "--urls", help="Show tab URLs."),
) -> None:
    """Show tabs from a JSON export as the initial Unsorted tree."""
    from tab_grouper.sidebar.render import render_tree
    from tab_grouper.sidebar.tree import Reconciler
    from tab_grouper.tabs.oracle import StaticTabOracle

    oracle = StaticTabOracle.from_json_file(tabs_file)
    reconciler = Reconciler()
    reconciler.initialize(asyncio.run(oracle.query_tabs()), active_tab_id=oracle.active_tab_id)
    console.print(render_tree(reconciler.tree, title=str(tabs_file.name), show_urls=urls))


@app.command()
def categorize(
    tabs_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="JSON list of tabs."),
    provider: str = typer.Option("", "--provider", help="anthropic|groq (default from config)."),
    relay_url: str = typer.Option("", "--relay-url", help="Relay base URL (default from config)."),
    urls: bool = typer.Option(False, "--urls", help="Show tab URLs."),
) -> None:
    """Categorize tabs from a JSON export through the relay and print the groups."""
    from tab_grouper.categorize.registry import PROVIDER_DEFS
    from tab_grouper.config.loader import load_config
    from tab_grouper.sidebar.render import render_tree

    config = load_config()
    selected = (provider or config.client.default_provider).strip().lower()
    if selected not in PROVIDER_DEFS:
        choices = ", ".join(sorted(PROVIDER_DEFS))
        console.print(f"[red]Unknown provider '{selected}'. Expected: {choices}[/red]")
        raise typer.Exit(1)

    controller = asyncio.run(
        _categorize_file(
            tabs_file,
            provider=selected,
            relay_url=relay_url or config.client.relay_url,
            timeout_s=config.client.timeout_s,
        )
    )

    console.print(render_tree(controller.reconciler.tree, title=str(tabs_file.name), show_urls=urls))
    if controller.last_error:
        console.print(f"[red]{controller.status_text}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]{controller.status_text}[/green]")


async def _categorize_file(tabs_file: Path, *, provider: str, relay_url: str, timeout_s: float | None):
    from tab_grouper.bus.events import TabActivated
    from tab_grouper.bus.relay import EventRelay
    from tab_grouper.categorize.client import CategorizerClient
    from tab_grouper.categorize.pipeline import CategorizationPipeline
    from tab_grouper.sidebar.controller import SidebarController
    from tab_grouper.tabs.oracle import StaticTabOracle

    relay = EventRelay()
    oracle = StaticTabOracle.from_json_file(tabs_file, relay=relay)
    client = CategorizerClient(relay_url=relay_url, timeout_s=timeout_s)
    controller = SidebarController(
        oracle=oracle,
        relay=relay,
        pipeline=CategorizationPipeline(oracle, client),
        default_provider=provider,
    )

    await controller.load_current_tabs()
    with console.status(f"Grouping tabs via {provider}..."):
        await controller.request_grouping(provider)
    relay.drain(controller.handle_event)

    if oracle.active_tab_id is not None:
        relay.publish(TabActivated(tab_id=oracle.active_tab_id))
        relay.drain(controller.handle_event)
    return controller


if __name__ == "__main__":
    app()
