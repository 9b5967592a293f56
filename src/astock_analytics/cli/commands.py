"""CLI command definitions for the A-share analytics engines."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from astock_analytics.domain.labels import CASH_FLOW_QUALITY_LABELS, RECOMMENDATION_LABELS, lookup
from astock_analytics.domain.models.financials import DCFInputs, DCFResult, RatioSet
from astock_analytics.domain.models.insider import InsiderCluster, InsiderTransaction
from astock_analytics.domain.services import cash_flow, forecast, insider, ratios, valuation
from astock_analytics.infrastructure import loaders
from astock_analytics.reports.renderer import ReportRenderer
from astock_analytics.settings.config import Config
from astock_analytics.settings.loader import load_settings
from astock_analytics.utils.logging import configure_logging

console = Console()
logger = logging.getLogger(__name__)
app = typer.Typer(help="Ratio, DCF, insider-signal and analyst-forecast analytics for A-share stocks.")

DEFAULT_GROWTH_RANGE = (0.01, 0.04, 0.005)
WACC_SPREAD = 0.02
WACC_STEP = 0.005

T = TypeVar("T")


@dataclass
class AppContext:
    """Holds reusable process-wide objects for CLI commands."""

    config: Config
    renderer: ReportRenderer


def _init_context(debug_override: Optional[bool] = None) -> AppContext:
    """Create a context with configuration, logging, and renderer wiring."""
    config = load_settings(debug_override=debug_override)
    configure_logging(debug=config.debug, level=config.log_level)
    return AppContext(config=config, renderer=ReportRenderer())


@app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Optional[bool] = typer.Option(
        None,
        "--debug/--no-debug",
        help="Temporarily toggle verbose logging without touching environment variables.",
    ),
) -> None:
    """Attach the lazily constructed application context to Typer."""
    ctx.obj = _init_context(debug_override=debug)


@app.command("ratios")
def ratios_command(
    ctx: typer.Context,
    financials: Path = typer.Argument(..., help="JSON list of financial statement snapshots."),
    industry: Optional[Path] = typer.Option(
        None, "--industry", help="JSON snapshot of industry averages for comparison."
    ),
) -> None:
    """Derive ratios, DuPont analysis and health score from the latest two periods."""
    context = _require_context(ctx)
    snapshots = _load(loaders.load_snapshots, financials)
    current, previous = loaders.latest_pair(snapshots)
    ratio_set = ratios.calculate_ratios(current, previous)
    health = ratios.calculate_financial_health_score(ratio_set, locale=context.config.locale)

    console.rule(f"Ratios for {current.stock_code} @ {current.report_date}")
    _print_ratio_table(ratio_set)
    console.print(
        f"Health score [bold]{health.score:.0f}[/bold] / 100, grade [bold cyan]{health.grade}[/bold cyan]"
    )
    for item in health.strengths:
        console.print(f"[green]+ {item}[/green]")
    for item in health.weaknesses:
        console.print(f"[yellow]- {item}[/yellow]")

    quality = cash_flow.assess_cash_flow_quality(current)
    trend = cash_flow.calculate_cash_flow_trend(snapshots)
    console.print(
        f"Cash flow quality: {lookup(CASH_FLOW_QUALITY_LABELS, quality, context.config.locale)}; "
        f"OCF trend: {trend.trend} ({trend.growth:.2f}%)"
    )

    if industry is not None:
        industry_snapshots = _load(loaders.load_snapshots, industry)
        industry_current, industry_previous = loaders.latest_pair(industry_snapshots)
        industry_ratios = ratios.calculate_ratios(industry_current, industry_previous)
        comparison = ratios.compare_with_industry(ratio_set, industry_ratios)
        table = Table(title="Industry comparison", show_header=True, header_style="bold magenta")
        table.add_column("Metric")
        table.add_column("Versus industry")
        for metric, verdict in comparison.items():
            table.add_row(metric, verdict)
        console.print(table)


@app.command("dcf")
def dcf_command(
    ctx: typer.Context,
    inputs_path: Path = typer.Argument(..., help="JSON DCF inputs (camelCase or snake_case)."),
    price: Optional[float] = typer.Option(None, "--price", help="Current share price for margin of safety."),
    sensitivity: bool = typer.Option(False, "--sensitivity", help="Print a WACC x terminal growth grid."),
    force: bool = typer.Option(False, "--force", help="Value even when preconditions are violated."),
) -> None:
    """Run the five-year DCF and optional margin-of-safety and sensitivity analysis."""
    context = _require_context(ctx)
    inputs = _load(loaders.load_dcf_inputs, inputs_path)
    _guard_inputs(inputs, force)

    result = valuation.calculate_dcf(inputs)
    if price is not None:
        result = valuation.apply_market_price(result, price)
    console.rule("DCF valuation")
    _print_dcf_table(result, context.config.locale)

    if sensitivity:
        grid = valuation.perform_sensitivity_analysis(inputs, _wacc_range(result.wacc), DEFAULT_GROWTH_RANGE)
        table = Table(title="Fair value per share", show_header=True, header_style="bold magenta")
        table.add_column("WACC \\ g")
        for growth in grid.terminal_growth_rate:
            table.add_column(f"{growth:.1%}", justify="right")
        for wacc, row in zip(grid.wacc, grid.matrix):
            table.add_row(f"{wacc:.1%}", *[f"{cell:,.2f}" for cell in row])
        console.print(table)


@app.command("insider")
def insider_command(
    ctx: typer.Context,
    transactions_path: Path = typer.Argument(..., help="JSON list of insider transactions for one stock."),
    code: str = typer.Option(..., "--code", help="Stock code, e.g. 600519.SH"),
    name: str = typer.Option("", "--name", help="Stock display name."),
    as_of: Optional[str] = typer.Option(None, "--as-of", help="Reference date (YYYY-MM-DD) for recency."),
) -> None:
    """Score insider activity and list same-day clusters."""
    context = _require_context(ctx)
    transactions = _load(loaders.load_transactions, transactions_path)
    reference = _parse_date(as_of)
    signal = insider.generate_insider_signal(
        code,
        name,
        transactions,
        as_of=reference,
        locale=context.config.locale,
        recent_limit=context.config.insider_recent_limit,
    )

    console.rule(f"Insider signal for {code} {name}".strip())
    console.print(
        f"[bold]{signal.signal_type}[/bold] strength {signal.signal_strength:.1f}: {signal.summary}"
    )
    factors = Table(show_header=True, header_style="bold magenta")
    factors.add_column("Factor")
    factors.add_column("Score", justify="right")
    for label, value in vars(signal.factors).items():
        factors.add_row(label, f"{value:.1f}")
    console.print(factors)

    _print_clusters(insider.detect_insider_cluster(transactions))


@app.command("forecast")
def forecast_command(
    ctx: typer.Context,
    forecast_path: Path = typer.Argument(..., help="JSON with consensus, ratings and analyst accuracy."),
) -> None:
    """Summarise analyst consensus, rating momentum and forecast credibility."""
    context = _require_context(ctx)
    bundle = _load(loaders.load_forecast, forecast_path)
    summary = _forecast_summary(bundle, context.config.locale)

    console.rule("Analyst forecast")
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Value", justify="right")
    table.add_row("Consensus rating", summary["rating_label"])
    table.add_row("Rating trend", f"{summary['trend_label']} (momentum {summary['trend'].momentum:+.2f})")
    table.add_row("Rating changes", str(summary["trend"].recent_changes))
    credibility = summary["credibility"]
    if credibility is not None:
        table.add_row("Credibility", f"{credibility.credibility_score:.1f} / 100")
        for label, value in vars(credibility.factors).items():
            table.add_row(f"  {label}", f"{value:.1f}")
    console.print(table)


@app.command("report")
def report_command(
    ctx: typer.Context,
    code: str = typer.Option(..., "--code", help="Stock code used for the report file name."),
    name: str = typer.Option("", "--name", help="Stock display name."),
    financials: Optional[Path] = typer.Option(None, "--financials", help="Snapshots JSON."),
    industry: Optional[Path] = typer.Option(None, "--industry", help="Industry averages JSON."),
    dcf_inputs: Optional[Path] = typer.Option(None, "--dcf", help="DCF inputs JSON."),
    transactions: Optional[Path] = typer.Option(None, "--insider", help="Insider transactions JSON."),
    forecast_path: Optional[Path] = typer.Option(None, "--forecast", help="Analyst forecast JSON."),
    price: Optional[float] = typer.Option(None, "--price", help="Current share price."),
    output: Optional[Path] = typer.Option(None, "--output", help="Custom Markdown output path."),
    force: bool = typer.Option(False, "--force", help="Value DCF inputs even when preconditions fail."),
) -> None:
    """Render a Markdown analysis report combining every available engine output."""
    context = _require_context(ctx)
    locale = context.config.locale
    report: Dict[str, Any] = {
        "stock_code": code,
        "stock_name": name,
        "generated_on": date.today().isoformat(),
        "ratios": None,
        "health": None,
        "comparison": None,
        "cash_flow": None,
        "dcf": None,
        "sensitivity": None,
        "recommendation_label": "",
        "signal": None,
        "clusters": [],
        "forecast": None,
    }

    if financials is not None:
        snapshots = _load(loaders.load_snapshots, financials)
        current, previous = loaders.latest_pair(snapshots)
        ratio_set = ratios.calculate_ratios(current, previous)
        report["ratios"] = ratio_set
        report["health"] = ratios.calculate_financial_health_score(ratio_set, locale=locale)
        report["cash_flow"] = {
            "free_cash_flow": cash_flow.calculate_free_cash_flow(current),
            "quality": lookup(CASH_FLOW_QUALITY_LABELS, cash_flow.assess_cash_flow_quality(current), locale),
            "trend": cash_flow.calculate_cash_flow_trend(snapshots),
        }
        if price is None and current.market_price > 0:
            price = current.market_price
        if industry is not None:
            industry_current, industry_previous = loaders.latest_pair(_load(loaders.load_snapshots, industry))
            report["comparison"] = ratios.compare_with_industry(
                ratio_set, ratios.calculate_ratios(industry_current, industry_previous)
            )

    if dcf_inputs is not None:
        inputs = _load(loaders.load_dcf_inputs, dcf_inputs)
        _guard_inputs(inputs, force)
        result = valuation.calculate_dcf(inputs)
        if price is not None:
            result = valuation.apply_market_price(result, price)
            report["recommendation_label"] = lookup(RECOMMENDATION_LABELS, result.recommendation or "", locale)
        report["dcf"] = result
        report["sensitivity"] = valuation.perform_sensitivity_analysis(
            inputs, _wacc_range(result.wacc), DEFAULT_GROWTH_RANGE
        )

    if transactions is not None:
        txs: List[InsiderTransaction] = _load(loaders.load_transactions, transactions)
        report["signal"] = insider.generate_insider_signal(
            code, name, txs, locale=locale, recent_limit=context.config.insider_recent_limit
        )
        report["clusters"] = insider.detect_insider_cluster(txs)

    if forecast_path is not None:
        report["forecast"] = _forecast_summary(_load(loaders.load_forecast, forecast_path), locale)

    markdown = context.renderer.render(report)
    context.config.ensure_directories()
    target = output or context.config.output_dir / f"{code}_analysis.md"
    ReportRenderer.persist(markdown, target)
    console.print(f"Markdown report available at {target}")


def _require_context(ctx: typer.Context) -> AppContext:
    if ctx.obj is None:
        raise typer.Exit(code=1)
    return ctx.obj


def _load(loader: Callable[[Path], T], path: Path) -> T:
    """Run a loader, turning bad files or payloads into a clean CLI error."""
    try:
        return loader(path)
    except ValidationError as exc:
        console.print(f"[bold red]Invalid payload in {path}:[/bold red]\n{escape(str(exc))}")
        raise typer.Exit(code=2) from exc
    except ValueError as exc:
        console.print(f"[bold red]{escape(str(exc))}[/bold red]")
        raise typer.Exit(code=2) from exc


def _guard_inputs(inputs: DCFInputs, force: bool) -> None:
    issues = valuation.validate_dcf_inputs(inputs)
    for issue in issues:
        console.print(f"[yellow]DCF precondition violated: {issue}[/yellow]")
    if issues and not force:
        console.print("[red]Refusing to value inputs; pass --force to compute anyway.[/red]")
        raise typer.Exit(code=3)
    if issues:
        logger.warning("Valuing DCF inputs despite %d violated preconditions", len(issues))


def _wacc_range(wacc: float) -> Tuple[float, float, float]:
    return (round(wacc - WACC_SPREAD, 4), round(wacc + WACC_SPREAD, 4), WACC_STEP)


def _parse_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    try:
        return date.fromisoformat(value)
    except ValueError as exc:
        raise typer.BadParameter(f"Expected YYYY-MM-DD, got {value!r}") from exc


def _print_ratio_table(ratio_set: RatioSet) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Group")
    table.add_column("Ratio")
    table.add_column("Value", justify="right")
    for group in ("profitability", "solvency", "efficiency", "growth", "valuation"):
        for key, value in vars(getattr(ratio_set, group)).items():
            table.add_row(group, key, f"{value:,.2f}")
    dupont = ratio_set.dupont
    table.add_row("dupont", "roe", f"{dupont.roe:,.2f}")
    table.add_row("dupont", "net_profit_margin", f"{dupont.net_profit_margin:,.2f}")
    table.add_row("dupont", "asset_turnover", f"{dupont.asset_turnover:,.4f}")
    table.add_row("dupont", "equity_multiplier", f"{dupont.equity_multiplier:,.4f}")
    console.print(table)


def _print_dcf_table(result: DCFResult, locale: str) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Key")
    table.add_column("Value", justify="right")
    table.add_row("WACC", f"{result.wacc:.4%}")
    for year, (projected, discounted) in enumerate(zip(result.projected_fcf, result.discounted_fcf), start=1):
        table.add_row(f"FCF Y{year} (PV)", f"{projected:,.2f} ({discounted:,.2f})")
    table.add_row("Terminal value (PV)", f"{result.terminal_value:,.2f} ({result.discounted_terminal_value:,.2f})")
    table.add_row("Enterprise value", f"{result.enterprise_value:,.2f}")
    table.add_row("Equity value", f"{result.equity_value:,.2f}")
    table.add_row("Fair value / share", f"{result.fair_value_per_share:,.4f}")
    if result.current_price is not None:
        table.add_row("Current price", f"{result.current_price:,.2f}")
        table.add_row("Upside", f"{result.upside:.2f}%")
        table.add_row("Margin of safety", f"{result.margin_of_safety:.2f}%")
        table.add_row("Recommendation", lookup(RECOMMENDATION_LABELS, result.recommendation or "", locale))
    console.print(table)


def _print_clusters(clusters: List[InsiderCluster]) -> None:
    if not clusters:
        console.print("No insider clusters detected.")
        return
    table = Table(title="Insider clusters", show_header=True, header_style="bold magenta")
    table.add_column("Date")
    table.add_column("Insiders", justify="right")
    table.add_column("Direction")
    table.add_column("Total value", justify="right")
    table.add_column("Score", justify="right")
    for cluster in clusters:
        table.add_row(
            cluster.date.isoformat(),
            str(cluster.insider_count),
            cluster.net_direction,
            f"{cluster.total_value:,.0f}",
            f"{cluster.cluster_score:.1f}",
        )
    console.print(table)


def _forecast_summary(bundle: loaders.ForecastBundle, locale: str) -> Dict[str, Any]:
    """Consensus rating, rating trend and credibility; credibility needs a consensus block."""
    if bundle.consensus is not None:
        distribution = bundle.consensus.rating_distribution
    else:
        distribution = forecast.rating_histogram(bundle.ratings)
    rating = forecast.calculate_consensus_rating(distribution)
    trend = forecast.analyze_rating_trend(bundle.ratings)
    credibility = None
    if bundle.consensus is not None:
        credibility = forecast.calculate_prediction_credibility(bundle.consensus, bundle.accuracy)
    return {
        "consensus": bundle.consensus,
        "rating": rating,
        "rating_label": forecast.format_rating(rating, locale),
        "trend": trend,
        "trend_label": forecast.format_rating_trend(trend.trend, locale),
        "credibility": credibility,
    }
