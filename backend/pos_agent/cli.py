"""
POS print agent CLI.

    pos-agent run [--config PATH] [--log-file PATH]
    pos-agent check [--config PATH]
"""

import asyncio
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from pos_agent.config import get_agent_settings, load_agent_config
from pos_agent.errors import AgentConfigError
from pos_agent.runner import AgentRunner
from shared.config.logging import pos_agent_logger as logger, setup_logging

app = typer.Typer(
    name="pos-agent",
    help="Theater POS print agent",
    add_completion=False,
)
console = Console()


def _load(config: Path | None):
    try:
        return load_agent_config(config)
    except AgentConfigError as e:
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)


@app.command()
def run(
    config: Path = typer.Option(None, "--config", "-c", help="Path of config.json"),
    log_file: Path = typer.Option(None, "--log-file", help="Also write logs to this file"),
):
    """Print receipts for every configured theater until stopped."""
    setup_logging(str(log_file) if log_file else None)
    agent_config = _load(config)
    runner = AgentRunner(agent_config, get_agent_settings())

    try:
        asyncio.run(runner.run())
    except AgentConfigError as e:
        logger.error("Fatal agent configuration error", error=str(e))
        console.print(f"[red]✗ {e}[/red]")
        raise typer.Exit(1)
    except KeyboardInterrupt:
        console.print("[yellow]POS agent stopped[/yellow]")


@app.command()
def check(
    config: Path = typer.Option(None, "--config", "-c", help="Path of config.json"),
):
    """Log in with every entry and show the resolved theater and printer."""
    agent_config = _load(config)
    runner = AgentRunner(agent_config, get_agent_settings())
    results = asyncio.run(runner.check())

    table = Table(title=f"POS agents ({agent_config.backend_url})")
    table.add_column("Agent", style="cyan")
    table.add_column("Status")
    table.add_column("Theater", style="green")
    table.add_column("Printer", style="green")
    table.add_column("Error", style="red")

    for result in results:
        table.add_row(
            result.label,
            "[green]✓ ok[/green]" if result.ok else "[red]✗ failed[/red]",
            str(result.theater_id) if result.theater_id is not None else "-",
            result.printer or "-",
            result.error or "",
        )

    console.print(table)
    if not any(r.ok for r in results):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
