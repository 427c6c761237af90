"""Typer CLI for perfscope.

Commands:
  analyze          Score a HAR capture, list optimizations and check a budget
  list-budgets     List available budget presets
  describe-budget  Show a budget preset's thresholds
  what-if          Estimate the effect of an optimization on a HAR capture
  compare          Compare two HAR captures
  resources        List the resources of a HAR capture, optionally filtered
"""

from __future__ import annotations

import logging
from pathlib import Path  # noqa: TC003
from typing import Annotated

import typer
from rich.console import Console
from rich.table import Table

from perfscope.comparison import compare_sessions
from perfscope.config import PerfscopeConfig
from perfscope.engine import PerformanceEngine, build_engine
from perfscope.errors import HarImportError
from perfscope.filters import ResourceFilter
from perfscope.formatting import format_duration, format_size
from perfscope.har import read_har, session_from_har
from perfscope.models import AnalysisReport, Session
from perfscope.presets import get_preset, list_preset_names, require_preset
from perfscope.report import to_csv, to_json, to_summary
from perfscope.types import ResourceType
from perfscope.vitals import build_snapshot
from perfscope.whatif import SCENARIO_KINDS, parse_scenario, simulate

app = typer.Typer(
    name="perfscope",
    help="Web page performance measurement and advisory engine",
    no_args_is_help=True,
)
console = Console()

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_IMPACT_COLORS = {"critical": "red", "high": "yellow", "medium": "cyan", "low": "blue"}
_SEVERITY_COLORS = {"critical": "red", "warning": "yellow", "minor": "cyan", "info": "dim"}


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Debug logging")] = False,
) -> None:
    level = logging.DEBUG if verbose else PerfscopeConfig().log_level.upper()
    logging.basicConfig(level=level, format=LOG_FORMAT)


def _build_engine() -> PerformanceEngine:
    return build_engine(PerfscopeConfig())


def _load_session(path: Path) -> Session:
    try:
        return session_from_har(read_har(path))
    except HarImportError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None


def _print_report(report: AnalysisReport) -> None:
    session = report.session
    score = report.performance_score

    console.print(f"[bold]Performance score:[/bold] {score.overall}/100")
    table = Table(title="Score Breakdown")
    table.add_column("Category", style="cyan")
    table.add_column("Score", style="green")
    table.add_column("Value")
    table.add_column("Rating")
    for name, category in score.categories().items():
        table.add_row(name.replace("_", " "), str(category.score), category.value, category.rating)
    console.print(table)
    console.print(
        f"{session.request_count} requests, {format_size(session.total_size)}, "
        f"loaded in {format_duration(session.load_time)}"
    )
    console.print()

    if report.suggestions:
        table = Table(title="Optimization Suggestions")
        table.add_column("Impact")
        table.add_column("Difficulty")
        table.add_column("Suggestion", style="cyan")
        table.add_column("Current State")
        for s in report.suggestions:
            color = _IMPACT_COLORS[s.impact]
            table.add_row(f"[{color}]{s.impact}[/{color}]", s.difficulty, s.title, s.current_state)
        console.print(table)
    else:
        console.print("[green]No optimization suggestions[/green]")
    console.print()

    third_party = report.third_party.third_party_domains
    if third_party:
        first_party = report.third_party.first_party_domain
        table = Table(title=f"Third-Party Domains (first party: {first_party})")
        table.add_column("Domain", style="cyan")
        table.add_column("Provider")
        table.add_column("Requests")
        table.add_column("Size")
        table.add_column("Impact")
        for d in third_party:
            provider = d.provider.name if d.provider else "-"
            table.add_row(
                d.domain, provider, str(d.request_count), format_size(d.total_size), d.impact
            )
        console.print(table)
        console.print()

    budget_report = report.budget_report
    if budget_report is None:
        return
    label = report.budget_name or "custom"
    console.print(f"[bold]Budget ({label}):[/bold] {budget_report.summary}")
    for v in budget_report.violations:
        color = _SEVERITY_COLORS[v.severity]
        console.print(
            f"  [{color}]{v.severity}[/{color}] {v.metric}: {v.actual} (budget: {v.budget}) "
            f"- {v.recommendation}"
        )


@app.command()
def analyze(
    har_file: Annotated[Path, typer.Argument(help="HAR 1.2 capture to analyze")],
    budget: Annotated[
        str | None, typer.Option("--budget", "-b", help="Budget preset name")
    ] = None,
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text, json, csv or summary")
    ] = "text",
    lcp: Annotated[float | None, typer.Option("--lcp", help="Measured LCP in ms")] = None,
    cls: Annotated[float | None, typer.Option("--cls", help="Measured CLS")] = None,
    fid: Annotated[float | None, typer.Option("--fid", help="Measured FID in ms")] = None,
) -> None:
    """Score a HAR capture, list optimizations and check it against a budget."""
    engine = _build_engine()
    session = _load_session(har_file)

    if lcp is not None and cls is not None and fid is not None:
        session = session.model_copy(update={"web_vitals": build_snapshot(lcp, cls, fid)})
    elif lcp is not None or cls is not None or fid is not None:
        console.print("[red]Error: --lcp, --cls and --fid must be given together[/red]")
        raise typer.Exit(1)

    try:
        report = engine.analyze(session, budget=budget)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    match format:
        case "json":
            typer.echo(to_json(report))
        case "csv":
            typer.echo(to_csv(report.session), nl=False)
        case "summary":
            typer.echo(to_summary(report))
        case "text":
            _print_report(report)
        case _:
            console.print(f"[red]Error: unknown format '{format}'[/red]")
            raise typer.Exit(1)

    if report.budget_report is not None and report.budget_report.has_critical:
        raise typer.Exit(2)


@app.command("list-budgets")
def list_budgets() -> None:
    """List available budget presets."""
    table = Table(title="Available Budget Presets")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Load Time", style="green")
    table.add_column("Size", style="green")
    table.add_column("Requests", style="green")

    for name in list_preset_names():
        preset = get_preset(name)
        if preset is None:
            continue
        b = preset.budget
        table.add_row(
            preset.name,
            preset.description,
            format_duration(b.max_load_time),
            format_size(b.max_total_size),
            str(b.max_requests),
        )

    console.print(table)


@app.command("describe-budget")
def describe_budget(
    name: Annotated[str, typer.Argument(help="Budget preset name")],
    format: Annotated[
        str, typer.Option("--format", "-f", help="Output format: text or json")
    ] = "text",
) -> None:
    """Show every threshold of a budget preset."""
    try:
        preset = require_preset(name)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    if format == "json":
        typer.echo(preset.model_dump_json(indent=2))
        return

    b = preset.budget
    console.print(f"[bold]{preset.name}[/bold] - {preset.description}")
    table = Table()
    table.add_column("Metric", style="cyan")
    table.add_column("Threshold", style="green")
    table.add_row("Max load time", format_duration(b.max_load_time))
    table.add_row("Max total size", format_size(b.max_total_size))
    table.add_row("Max requests", str(b.max_requests))
    table.add_row("Min score", str(b.min_score))
    table.add_row("Max LCP", f"{b.max_lcp:.0f} ms")
    table.add_row("Max CLS", f"{b.max_cls:.2f}")
    table.add_row("Max FID", f"{b.max_fid:.0f} ms")
    console.print(table)


@app.command("what-if")
def what_if(
    har_file: Annotated[Path, typer.Argument(help="HAR 1.2 capture")],
    scenario: Annotated[
        str, typer.Option("--scenario", "-s", help=f"One of: {', '.join(SCENARIO_KINDS)}")
    ],
    target: Annotated[
        str | None,
        typer.Option("--target", "-t", help="Tracker name or script URL for removal scenarios"),
    ] = None,
) -> None:
    """Estimate the effect of an optimization on a HAR capture."""
    try:
        parsed = parse_scenario(scenario, target)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1) from None

    engine = _build_engine()
    result = simulate(parsed, _load_session(har_file), engine.calculator)

    console.print(f"[bold]{result.scenario}[/bold]")
    console.print(f"  Affected resources: {result.affected_count}")
    console.print(f"  Size savings:       {result.size_savings}")
    console.print(f"  Time savings:       {result.time_savings}")
    console.print(f"  Score:              {result.baseline_score} -> {result.predicted_score}")
    console.print(f"  [dim]Confidence: {result.confidence}[/dim]")


@app.command()
def compare(
    baseline: Annotated[Path, typer.Argument(help="Baseline HAR capture")],
    candidate: Annotated[Path, typer.Argument(help="Candidate HAR capture")],
    threshold: Annotated[
        float, typer.Option("--threshold", help="Regression threshold in percent")
    ] = 20.0,
) -> None:
    """Compare two HAR captures and highlight regressions."""
    engine = _build_engine()
    old = engine.analyze(_load_session(baseline)).session
    new = engine.analyze(_load_session(candidate)).session
    result = compare_sessions(old, new, threshold_pct=threshold)

    table = Table(title="Metric Changes")
    table.add_column("Metric", style="cyan")
    table.add_column("Baseline")
    table.add_column("Candidate")
    table.add_column("Change")
    table.add_column("Severity")
    for d in result.metric_diffs:
        color = _SEVERITY_COLORS[d.severity]
        table.add_row(
            d.metric,
            f"{d.old_value:g}",
            f"{d.new_value:g}",
            f"{d.change_pct:+.1f}% ({d.direction})",
            f"[{color}]{d.severity}[/{color}]",
        )
    console.print(table)

    if result.domains_added:
        console.print(f"[yellow]New domains:[/yellow] {', '.join(result.domains_added)}")
    if result.domains_removed:
        console.print(f"[green]Removed domains:[/green] {', '.join(result.domains_removed)}")


@app.command()
def resources(
    har_file: Annotated[Path, typer.Argument(help="HAR 1.2 capture")],
    types: Annotated[
        list[ResourceType] | None,
        typer.Option("--type", help="Only this resource type (repeatable)"),
    ] = None,
    domains: Annotated[
        list[str] | None, typer.Option("--domain", help="Only this host (repeatable)")
    ] = None,
    min_size: Annotated[int, typer.Option("--min-size", help="Minimum size in bytes")] = 0,
    search: Annotated[str, typer.Option("--search", help="URL substring")] = "",
) -> None:
    """List the resources of a HAR capture, optionally filtered."""
    session = _load_session(har_file)
    criteria = ResourceFilter(
        types=frozenset(types) if types else frozenset(ResourceType),
        domains=frozenset(domains or ()),
        min_size=min_size,
        search_text=search,
    )
    matched = criteria.apply(session.resources)

    table = Table(title=f"Resources ({len(matched)} of {session.request_count})")
    table.add_column("URL", style="cyan", overflow="fold")
    table.add_column("Type")
    table.add_column("Status")
    table.add_column("Size", style="green")
    table.add_column("Duration", style="green")
    for r in matched:
        table.add_row(
            r.url,
            r.resource_type,
            str(r.status_code),
            format_size(r.response_size),
            format_duration(r.total_duration),
        )
    console.print(table)
