"""Metrics and equity curve commands."""

import json
import sys
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Literal, Optional, cast

import click
from rich.console import Console

from tradelens.libraries.performance.models import MetricsSnapshot
from tradelens.services.analytics import (
    AnalysisPeriod,
    AnalyticsService,
    CachedAnalyticsService,
    CSVTradeStore,
    StartingEquityError,
    StaticBalanceSource,
)
from tradelens.services.reporting import display_equity_curve, display_metrics_report
from tradelens.system import LoggerFactory
from tradelens.system.config import AnalyticsConfig, reload_system_config

console = Console()

PERIOD_CHOICES = [p.value for p in AnalysisPeriod]


def _parse_balance(ctx: click.Context, param: click.Parameter, value: Optional[str]) -> Optional[Decimal]:
    if value is None:
        return None
    try:
        return Decimal(value)
    except InvalidOperation:
        raise click.BadParameter(f"'{value}' is not a decimal number") from None


def _common_options(func):
    """Options shared by every analytics command."""
    options = [
        click.option(
            "--trades",
            "-t",
            "trades_file",
            type=click.Path(exists=True, dir_okay=False, path_type=Path),
            required=True,
            help="CSV file of closed trades",
        ),
        click.option(
            "--balance",
            "-b",
            callback=_parse_balance,
            help="Current account balance (omit to estimate starting equity from margin)",
        ),
        click.option(
            "--period",
            "-p",
            type=click.Choice(PERIOD_CHOICES, case_sensitive=False),
            help="Analysis period (default from config, usually 30d)",
        ),
        click.option("--asset", "-a", help="Balance asset (default from config, usually USDT)"),
        click.option(
            "--config",
            "-c",
            "config_file",
            type=click.Path(dir_okay=False, path_type=Path),
            help="System config file (YAML)",
        ),
        click.option(
            "--log-level",
            "-l",
            type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
            help="Set logging level (DEBUG shows trade store queries)",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _build_service(
    trades_file: Path,
    balance: Optional[Decimal],
    asset: Optional[str],
    config_file: Optional[Path],
    log_level: Optional[str],
) -> tuple[CachedAnalyticsService, AnalyticsConfig]:
    system_config = reload_system_config(config_file)

    if log_level:
        level = cast(Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"], log_level.upper())
        system_config.logging.level = level
    LoggerFactory.configure(system_config.logging.to_logger_config())

    if asset:
        system_config.analytics.balance_asset = asset

    service = AnalyticsService(
        trade_store=CSVTradeStore(trades_file),
        balance_source=StaticBalanceSource(balance),
        config=system_config.analytics,
    )
    return CachedAnalyticsService.from_config(service, system_config.analytics), system_config.analytics


def _snapshot_json(snapshot: MetricsSnapshot) -> str:
    return json.dumps(snapshot.model_dump(mode="json"), indent=2)


@click.command("metrics")
@_common_options
@click.option("--json", "as_json", is_flag=True, help="Print the snapshot as JSON instead of tables")
@click.option(
    "--detail",
    "-d",
    type=click.Choice(["summary", "standard", "full"]),
    default="standard",
    show_default=True,
    help="Report detail level (full adds breakdowns, Monte Carlo outlook and trade quality)",
)
@click.option("--seed", type=int, help="Random seed for the Monte Carlo outlook (full detail)")
def metrics_command(
    trades_file: Path,
    balance: Optional[Decimal],
    period: Optional[str],
    asset: Optional[str],
    config_file: Optional[Path],
    log_level: Optional[str],
    as_json: bool,
    detail: str,
    seed: Optional[int],
):
    """
    Compute performance metrics for closed trades.

    Starting equity is derived from --balance minus the pnl of the analyzed
    trades. Without --balance it is estimated from the oldest trade's margin.

    \b
    Examples:
        # Last 30 days with a known balance
        tradelens metrics -t trades.csv -b 1370

        # Whole history, everything, as a report
        tradelens metrics -t trades.csv -b 1370 -p all -d full

        # Machine-readable output
        tradelens metrics -t trades.csv -b 1370 --json
    """
    try:
        service, analytics_config = _build_service(trades_file, balance, asset, config_file, log_level)
        selected = (period or analytics_config.default_period).lower()
        snapshot = service.compute_metrics(selected)

        if as_json:
            click.echo(_snapshot_json(snapshot))
            return

        if detail == "full":
            display_metrics_report(
                snapshot,
                detail_level="full",
                console=console,
                monthly=service.monthly_performance(),
                hourly=service.hourly_performance(),
                symbols=service.symbol_performance(),
                weekdays=service.weekday_performance(selected),
                streaks=service.streak_analysis(selected),
                profile=service.distribution_profile(selected),
                yearly=service.yearly_performance(),
                consistency=service.consistency_score(selected),
                monte_carlo=service.monte_carlo_simulation(selected, seed=seed),
                quality=service.trade_quality(selected),
            )
        else:
            display_metrics_report(snapshot, detail_level=cast(Literal["summary", "standard"], detail), console=console)

    except (StartingEquityError, ValueError) as e:
        console.print(f"[bold red]✗ Metrics failed:[/bold red] {e}")
        sys.exit(1)


@click.command("equity")
@_common_options
def equity_command(
    trades_file: Path,
    balance: Optional[Decimal],
    period: Optional[str],
    asset: Optional[str],
    config_file: Optional[Path],
    log_level: Optional[str],
):
    """
    Print the reconstructed equity curve for closed trades.

    \b
    Examples:
        tradelens equity -t trades.csv -b 1370 -p 90d
    """
    try:
        service, analytics_config = _build_service(trades_file, balance, asset, config_file, log_level)
        selected = (period or analytics_config.default_period).lower()
        curve = service.compute_equity_curve(selected)
        display_equity_curve(curve, selected, console=console)

    except (StartingEquityError, ValueError) as e:
        console.print(f"[bold red]✗ Equity curve failed:[/bold red] {e}")
        sys.exit(1)
