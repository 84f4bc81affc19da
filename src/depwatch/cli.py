"""
Command line interface for the dependency watcher.

Usage:
    depwatch run --config .config
    depwatch once --lookback 24
    depwatch check-config
"""

import asyncio
import json
import sys
from typing import Optional

import click
import structlog
from rich.console import Console
from rich.table import Table

from depwatch import __version__
from depwatch.core import (
    ConfigError,
    CronSchedule,
    CycleResult,
    CycleScheduler,
    TriageOrchestrator,
    WatchConfig,
    create_session,
    load_config,
    setup_logging,
)
from depwatch.core.scheduler import utc_now
from depwatch.registry import DependentsFetcher
from depwatch.scanners import ScannerDispatcher


console = Console(stderr=True)
logger = structlog.get_logger("depwatch.cli")


def _load_or_exit(config_path: Optional[str]) -> WatchConfig:
    try:
        return load_config(config_path)
    except ConfigError as e:
        logger.error("config_error", error=str(e))
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(1)


def _build_orchestrator(session, config: WatchConfig, lookback_hours: Optional[int] = None) -> TriageOrchestrator:
    fetcher = DependentsFetcher(session)
    dispatcher = ScannerDispatcher(session, api_key=config.api_key.get_secret_value())
    return TriageOrchestrator(
        fetcher=fetcher,
        scanner=dispatcher,
        target=config.target,
        lookback_hours=config.lookback_hours if lookback_hours is None else lookback_hours,
    )


@click.group()
@click.version_option(version=__version__, prog_name="DEPWATCH")
@click.option('--log-level', default=None, help='Log level (default: INFO or $DEPWATCH_LOG_LEVEL)')
@click.option('--log-format', type=click.Choice(['console', 'json']), default=None,
              help='Log renderer (default: console or $DEPWATCH_LOG_FORMAT)')
def cli(log_level: Optional[str], log_format: Optional[str]):
    """
    DEPWATCH - npm Supply-Chain Watch

    Watches the dependents of an npm package and sends newly published
    ones to the package scanner.
    """
    setup_logging(level=log_level, fmt=log_format)


@cli.command()
@click.option('--config', 'config_path', type=click.Path(), default=None, help='Config file path')
def run(config_path: Optional[str]):
    """
    Start the scheduled watcher.

    Runs a triage cycle at the configured minute of every N-th hour (UTC)
    until SIGINT or SIGTERM.
    """
    config = _load_or_exit(config_path)

    try:
        schedule = CronSchedule(config.lookback_hours, minute=config.minute)
    except ConfigError as e:
        logger.error("config_error", error=str(e))
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        sys.exit(1)

    logger.info("initialised", target=config.target, schedule=schedule.expression)

    failure = asyncio.run(run_scheduled(config, schedule))
    if failure is not None:
        sys.exit(1)


async def run_scheduled(config: WatchConfig, schedule: CronSchedule) -> Optional[CycleResult]:
    """Run the scheduler with a shared session until stopped"""
    async with create_session() as session:
        scheduler = CycleScheduler(
            orchestrator=_build_orchestrator(session, config),
            schedule=schedule,
            exit_on_failure=config.exit_on_failure,
        )
        scheduler.install_signal_handlers()
        return await scheduler.run()


@cli.command()
@click.option('--config', 'config_path', type=click.Path(), default=None, help='Config file path')
@click.option('--lookback', type=click.IntRange(min=0), default=None,
              help='Override the lookback window in hours')
@click.option('--output', type=click.Path(), default=None, help='Save the cycle result to a JSON file')
def once(config_path: Optional[str], lookback: Optional[int], output: Optional[str]):
    """
    Run a single triage cycle now.

    Example:
        depwatch once --lookback 24
    """
    config = _load_or_exit(config_path)

    result = asyncio.run(run_single(config, lookback))

    _print_result(result)

    if output:
        with open(output, 'w') as f:
            json.dump(result.to_dict(), f, indent=2)
        console.print(f"\n[green]Result saved to:[/green] {output}")

    if not result.ok:
        sys.exit(1)


async def run_single(config: WatchConfig, lookback: Optional[int] = None) -> CycleResult:
    """Run one cycle with a fresh session"""
    async with create_session() as session:
        orchestrator = _build_orchestrator(session, config, lookback_hours=lookback)
        orchestrator.subscribe(_report_progress)
        return await orchestrator.run_cycle()


def _report_progress(event: str, data: dict):
    """Live progress for interactive runs"""
    if event == "cycle_started":
        console.print(f"[cyan]Checking dependents of {data['target']}...[/cyan]")
    elif event == "package_dispatched":
        console.print(f"  [green]sent[/green] {data['package']}")


def _print_result(result: CycleResult):
    table = Table(title=f"Triage cycle for {result.target}")
    table.add_column("#", style="dim", justify="right")
    table.add_column("Package", style="cyan")
    table.add_column("Status", style="green")

    for i, name in enumerate(result.dispatched, 1):
        table.add_row(str(i), name, "[green]sent[/green]")

    if result.error is not None:
        failed_package = getattr(result.error, "package", None)
        if failed_package:
            table.add_row(str(len(result.dispatched) + 1), failed_package, "[red]failed[/red]")

    console.print(table)
    console.print(f"Fetched: {result.fetched}  Dispatched: {len(result.dispatched)}")

    if result.ok:
        console.print("[bold green]Cycle complete[/bold green]")
    else:
        console.print(f"[bold red]Cycle failed:[/bold red] {result.error}")


@cli.command(name="check-config")
@click.option('--config', 'config_path', type=click.Path(), default=None, help='Config file path')
def check_config(config_path: Optional[str]):
    """Validate the configuration and show the resulting schedule"""
    config = _load_or_exit(config_path)

    table = Table(title="Configuration")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    table.add_row("Target", config.target)
    table.add_row("Interval", f"{config.lookback_hours}h")
    table.add_row("API key", str(config.api_key))
    table.add_row("Exit on failure", str(config.exit_on_failure))

    try:
        schedule = CronSchedule(config.lookback_hours, minute=config.minute)
        table.add_row("Schedule (UTC)", schedule.expression)
        table.add_row("Next cycle", schedule.next_after(utc_now()).isoformat())
    except ConfigError as e:
        table.add_row("Schedule (UTC)", f"[red]{e}[/red]")
        console.print(table)
        sys.exit(1)

    console.print(table)


@cli.command()
def version():
    """Show version information"""
    console.print(f"\n[bold cyan]DEPWATCH v{__version__}[/bold cyan]")
    console.print("[cyan]npm Supply-Chain Watch[/cyan]\n")

