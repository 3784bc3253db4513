"""CLI interface for seo-health."""

import json
import logging
import sys
from dataclasses import asdict, replace
from enum import Enum
from typing import Any, Optional

import click
from rich import box
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from . import __version__
from .auditor import InvalidURLError, prepare_url, run_audit
from .config import AuditConfig
from .crawler import crawl as crawl_site
from .models import AuditReport, AuditStatus, Priority, Severity


console = Console()
err_console = Console(stderr=True)

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]


def setup_logging(level: str) -> None:
    """Route library logging through rich on stderr."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False, rich_tracebacks=True)],
        force=True,
    )


def severity_style(severity: Severity) -> str:
    return {
        Severity.CRITICAL: "bold red",
        Severity.HIGH: "red",
        Severity.MEDIUM: "yellow",
        Severity.LOW: "blue",
    }.get(severity, "white")


def priority_style(priority: Priority) -> str:
    return severity_style(Severity(priority.value.lower()))


def score_color(score: int) -> str:
    """Get color for a score value."""
    if score >= 90:
        return "green"
    elif score >= 70:
        return "yellow"
    elif score >= 50:
        return "orange1"
    else:
        return "red"


def print_score_bar(score: int, width: int = 20) -> Text:
    """Create a visual score bar."""
    filled = int((score / 100) * width)
    color = score_color(score)

    bar = Text()
    bar.append("█" * filled, style=color)
    bar.append("░" * (width - filled), style="dim")
    bar.append(f" {score}/100", style=f"bold {color}")
    return bar


def _jsonable(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def report_to_dict(report: AuditReport) -> dict[str, Any]:
    data = _jsonable(asdict(report))
    data["quick_wins"] = [_jsonable(asdict(r)) for r in report.quick_wins]
    for entry, result in zip(data["categories"], report.categories):
        entry["issue_count"] = result.issue_count
    return data


def print_report(report: AuditReport, verbose: bool = False) -> None:
    """Print an audit report to the console."""
    if report.status == AuditStatus.FAILED:
        console.print(f"\n[red]Audit failed:[/red] {report.error}")
        return

    subtitle = f"[dim]{report.pages_crawled} pages crawled[/dim]"
    if report.cms:
        subtitle += f"\n[dim]Platform: {report.cms.platform} ({report.cms.confidence} confidence)[/dim]"
    console.print()
    console.print(Panel(f"[bold]{report.url}[/bold]\n{subtitle}", title="SEO Health Audit", border_style="blue"))

    console.print()
    console.print("  Overall: ", end="")
    console.print(print_score_bar(report.overall_score, width=25))
    console.print(f"  [dim]Rating: {report.score_rating.value}[/dim]")
    console.print()

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Category", style="cyan")
    table.add_column("Score", justify="right")
    table.add_column("Weight", justify="right")
    table.add_column("Issues")

    for result in report.categories:
        parts = []
        for severity, count in (
            (Severity.CRITICAL, result.critical_count),
            (Severity.HIGH, result.high_count),
            (Severity.MEDIUM, result.medium_count),
            (Severity.LOW, result.low_count),
        ):
            if count:
                parts.append(f"[{severity_style(severity)}]{count} {severity.value}[/]")
        name = result.category.value.replace("_", " ").title()
        if result.confidence == "estimated":
            name += " [dim](estimated)[/dim]"
        table.add_row(
            name,
            f"[{score_color(result.category_score)}]{result.category_score}/100[/]",
            f"{int(result.weight * 100)}%",
            ", ".join(parts) or "[green]OK[/green]",
        )
    console.print(table)

    shown = [
        issue
        for result in report.categories
        for issue in result.issues
        if verbose or issue.severity in (Severity.CRITICAL, Severity.HIGH)
    ]
    if shown:
        console.print(f"\n[bold]{'All Issues' if verbose else 'Critical and High Issues'}:[/bold]\n")
        for issue in shown:
            style = severity_style(issue.severity)
            console.print(f"  [{style}]{issue.severity.value.upper():<8}[/] {issue.title}")
            if verbose:
                console.print(f"    [dim]{issue.description}[/dim]")
            console.print(f"    [cyan]→ {issue.recommendation}[/cyan]")

    quick_wins = report.quick_wins
    if quick_wins:
        console.print("\n[bold]Top Quick Wins:[/bold]\n")
        for i, rec in enumerate(quick_wins, 1):
            console.print(f"  {i}. [{priority_style(rec.priority)}]{rec.title}[/] [dim]({rec.estimated_hours}h)[/dim]")
            console.print(f"     [cyan]{rec.implementation}[/cyan]")

    console.print()
    console.print("[dim]─" * 50 + "[/dim]")
    console.print(f"[dim]seo-health v{__version__}[/dim]")
    console.print()


def build_config(
    max_pages: Optional[int],
    max_depth: Optional[int],
    delay_ms: Optional[int],
    timeout: Optional[float],
    pagespeed_key: Optional[str] = None,
) -> AuditConfig:
    """Environment-derived config with command-line overrides applied."""
    try:
        config = AuditConfig.from_env()
    except ValueError as e:
        raise click.UsageError(str(e)) from None

    overrides = {}
    if max_pages is not None:
        overrides["max_pages"] = max_pages
    if max_depth is not None:
        overrides["max_depth"] = max_depth
    if delay_ms is not None:
        overrides["delay_ms"] = delay_ms
    if timeout is not None:
        overrides["timeout_ms"] = int(timeout * 1000)
    if overrides:
        config = config.with_crawl(**overrides)
    if pagespeed_key:
        config = replace(config, pagespeed_api_key=pagespeed_key)
    return config


def validate_url(url: str) -> str:
    try:
        return prepare_url(url)
    except InvalidURLError as e:
        raise click.BadParameter(str(e), param_hint="URL") from None


def crawl_options(f):
    f = click.option("-t", "--timeout", type=float, default=None, help="Request timeout in seconds")(f)
    f = click.option("--delay-ms", type=click.IntRange(min=0), default=None, help="Delay between requests")(f)
    f = click.option("--max-depth", type=click.IntRange(min=0), default=None, help="Maximum link depth")(f)
    f = click.option("--max-pages", type=click.IntRange(min=1), default=None, help="Maximum pages to crawl")(f)
    return f


@click.group(invoke_without_command=True)
@click.option(
    "--log-level",
    type=click.Choice(LOG_LEVELS, case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
)
@click.pass_context
@click.version_option(version=__version__)
def cli(ctx, log_level: str):
    """SEO Health - crawl a site and score its SEO health.

    \b
    Quick start:
        seo-health scan example.com
        seo-health crawl example.com --max-pages 10

    \b
    Commands:
        scan    Full audit with category scores and recommendations
        crawl   Crawl only and list the pages found
    """
    setup_logging(log_level)
    if ctx.invoked_subcommand is None:
        click.echo(ctx.get_help())


@cli.command()
@click.argument("url")
@crawl_options
@click.option(
    "--pagespeed-key",
    envvar="GOOGLE_PAGESPEED_API_KEY",
    default=None,
    help="PageSpeed Insights API key (enables measured performance)",
)
@click.option("-v", "--verbose", is_flag=True, help="Show all issues, not just critical and high")
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def scan(
    url: str,
    max_pages: Optional[int],
    max_depth: Optional[int],
    delay_ms: Optional[int],
    timeout: Optional[float],
    pagespeed_key: Optional[str],
    verbose: bool,
    json_output: bool,
):
    """Audit a site's SEO health.

    \b
    Examples:
        seo-health scan example.com
        seo-health scan example.com --max-pages 20 --verbose
        seo-health scan example.com --json
    """
    url = validate_url(url)
    config = build_config(max_pages, max_depth, delay_ms, timeout, pagespeed_key)

    if json_output:
        report = run_audit(url, config)
        click.echo(json.dumps(report_to_dict(report), indent=2, default=str))
    else:
        with console.status(f"[bold blue]Auditing {url}...[/bold blue]"):
            report = run_audit(url, config)
        print_report(report, verbose=verbose)

    if report.status == AuditStatus.FAILED:
        sys.exit(1)


@cli.command()
@click.argument("url")
@crawl_options
@click.option("--json", "json_output", is_flag=True, help="Output as JSON")
def crawl(
    url: str,
    max_pages: Optional[int],
    max_depth: Optional[int],
    delay_ms: Optional[int],
    timeout: Optional[float],
    json_output: bool,
):
    """Crawl a site and list the pages found."""
    url = validate_url(url)
    config = build_config(max_pages, max_depth, delay_ms, timeout).with_crawl(keep_html=False)

    if json_output:
        pages = crawl_site(url, config.crawl)
        click.echo(json.dumps([
            {
                "url": p.url,
                "depth": p.depth,
                "status_code": p.status_code,
                "title": p.title,
                "word_count": p.word_count,
                "load_time": p.load_time,
                "error": p.error,
            }
            for p in pages
        ], indent=2))
        return

    with console.status(f"[bold blue]Crawling {url}...[/bold blue]"):
        pages = crawl_site(url, config.crawl)

    table = Table(box=box.SIMPLE, show_header=True, header_style="bold")
    table.add_column("Path", style="cyan", overflow="fold")
    table.add_column("Depth", justify="right")
    table.add_column("Status", justify="right")
    table.add_column("Words", justify="right")
    table.add_column("Load", justify="right")
    table.add_column("Title", overflow="fold")
    for p in pages:
        status = f"[red]{p.error}[/red]" if p.failed else str(p.status_code)
        table.add_row(p.path, str(p.depth), status, str(p.word_count), f"{p.load_time}ms", p.title)
    console.print(table)
    console.print(f"[dim]{len(pages)} pages crawled[/dim]")


# Convenience: allow `seo-health URL` as shortcut for `seo-health scan URL`
def main():
    """Entry point that handles both `seo-health URL` and `seo-health scan URL`."""
    args = sys.argv[1:]

    if args and not args[0].startswith("-") and args[0] not in ["scan", "crawl"]:
        if "." in args[0]:
            sys.argv.insert(1, "scan")

    cli()


if __name__ == "__main__":
    main()
