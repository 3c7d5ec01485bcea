"""Typer-based CLI for Component Insight."""

from __future__ import annotations

import asyncio
import json
import logging
import signal
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from . import __version__, config
from .analyzer import AnalysisReport, AnalysisSettings, ComponentAnalyzer
from .cli_setup import set_llm, show_llm
from .git import GitError, cleanup, clone_repository, is_git_url
from .models import TraceStatus
from .scanner import normalize_path

console = Console()

app = typer.Typer(
    help="🔎 Component Insight — find and describe the components of a React library.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

app.command("set-llm")(set_llm)
app.command("show-llm")(show_llm)

EXIT_CANCELLED = 130

_STATUS_STYLE = {
    TraceStatus.RESOLVED: "green",
    TraceStatus.APPROXIMATE: "yellow",
    TraceStatus.UNRESOLVED: "red",
}


def version_callback(value: bool):
    if value:
        typer.echo(f"Component Insight v{__version__}")
        raise typer.Exit()


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every resolution hop."),
):
    """Component Insight: trace a component library's public exports and describe each component."""
    _configure_logging(verbose)


@app.command("components")
def list_components(
    path: Path = typer.Argument(..., exists=True, file_okay=False, help="Path to the component library."),
    entry_path: str = typer.Option("", "--entry-path", help="Sub-directory holding the library (monorepos)."),
    entry_file: str = typer.Option(config.ENTRY_FILE, "--entry-file", help="Entry module relative to the library."),
):
    """List the components a library exports and where they are implemented (no LLM calls)."""
    analyzer = ComponentAnalyzer(AnalysisSettings(root=path, entry_path=entry_path, entry_file=entry_file))
    try:
        candidates = analyzer.identify_components()
    except FileNotFoundError as exc:
        raise typer.BadParameter(str(exc))

    if not candidates:
        console.print("[yellow]No components found.[/yellow]")
        return

    base = Path(normalize_path(analyzer.settings.target))
    table = Table(title=f"Components of {base.name}")
    table.add_column("Name", style="bold")
    table.add_column("Status")
    table.add_column("Implementation")
    table.add_column("Hops", justify="right")
    for candidate in candidates:
        style = _STATUS_STYLE[candidate.trace_status]
        table.add_row(
            candidate.name,
            f"[{style}]{candidate.trace_status.value}[/{style}]",
            _relative(candidate.path, base),
            str(len(candidate.dependencies)),
        )
    console.print(table)


@app.command("analyze")
def analyze(
    source: str = typer.Argument(..., help="Local path or git URL of the component library."),
    entry_path: str = typer.Option("", "--entry-path", help="Sub-directory holding the library (monorepos)."),
    entry_file: str = typer.Option(config.ENTRY_FILE, "--entry-file", help="Entry module relative to the library."),
    max_components: int = typer.Option(config.MAX_COMPONENTS, "--max-components", help="Hard ceiling per run."),
    batch_delay: float = typer.Option(config.BATCH_DELAY_SECONDS, "--batch-delay", help="Seconds to wait between batches."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write the JSON report to this file."),
    keep_checkout: bool = typer.Option(False, "--keep-checkout", help="Do not delete a cloned repository."),
):
    """Trace every exported component and describe it with the configured LLM."""
    checkout: Optional[Path] = None
    if is_git_url(source):
        try:
            checkout = clone_repository(source)
        except GitError as exc:
            console.print(f"[red]❌ {exc}[/red]")
            raise typer.Exit(code=1)
        root = checkout
    else:
        root = Path(source)
        if not root.is_dir():
            raise typer.BadParameter(f"Path does not exist: {source}")

    settings = AnalysisSettings(
        root=root,
        entry_path=entry_path,
        entry_file=entry_file,
        max_components=max_components,
        batch_delay=batch_delay,
    )
    analyzer = ComponentAnalyzer(settings)
    try:
        report = asyncio.run(_run_with_signals(analyzer))
    except FileNotFoundError as exc:
        console.print(f"[red]❌ {exc}[/red]")
        raise typer.Exit(code=1)
    finally:
        if checkout is not None and not keep_checkout:
            cleanup(checkout)

    _print_report(report)
    if output is not None:
        output.write_text(json.dumps(report_to_dict(report), indent=2, ensure_ascii=False), encoding="utf-8")
        console.print(f"[green]✅ Report written to {output}[/green]")
    if report.cancelled:
        raise typer.Exit(code=EXIT_CANCELLED)


async def _run_with_signals(analyzer: ComponentAnalyzer) -> AnalysisReport:
    """Run the analysis with SIGINT/SIGTERM routed to ``analyzer.cancel``."""
    loop = asyncio.get_running_loop()
    installed = []
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, analyzer.cancel)
            installed.append(sig)
        except (NotImplementedError, RuntimeError):
            # Windows event loops and non-main threads
            pass
    try:
        return await analyzer.analyze()
    finally:
        for sig in installed:
            loop.remove_signal_handler(sig)


def report_to_dict(report: AnalysisReport) -> dict:
    base = Path.cwd()
    return {
        "library": {
            "name": report.library.name,
            "version": report.library.version,
            "description": report.library.description,
            "author": report.library.author,
            "displayName": report.library.display_name,
            "useCases": report.library.use_cases,
        },
        "status": report.reason.value,
        "candidates": report.candidate_count,
        "failed": report.failed,
        "dropped": report.dropped,
        "duration_seconds": round(report.duration, 2),
        "llm": report.llm_stats,
        "components": [
            {
                "name": item.candidate.name,
                "file": _relative(item.candidate.path, base),
                "trace_status": item.candidate.trace_status.value,
                "analysis": item.payload,
            }
            for item in report.components
        ],
    }


def _print_report(report: AnalysisReport) -> None:
    title = report.library.name or "library"
    if report.library.version:
        title += f" v{report.library.version}"
    table = Table(title=f"Components of {title}")
    table.add_column("Name", style="bold")
    table.add_column("Display name")
    table.add_column("Container")
    table.add_column("Props", justify="right")
    for item in sorted(report.components, key=lambda c: c.candidate.name):
        payload = item.payload or {}
        table.add_row(
            item.candidate.name,
            str(payload.get("displayName", "")),
            "yes" if payload.get("isContainer") else "no",
            str(len(payload.get("properties") or [])),
        )
    if report.library.display_name:
        console.print(f"[bold]{report.library.display_name}[/bold]: {report.library.description}")
    console.print(table)

    summary = f"{len(report.components)}/{report.candidate_count} analyzed"
    if report.failed:
        summary += f", {report.failed} failed"
    if report.dropped:
        summary += f", {report.dropped} over the limit"
    summary += f", {report.llm_stats.get('request_count', 0)} LLM requests in {report.duration:.1f}s"
    if report.cancelled:
        console.print(f"[yellow]⚠️  Cancelled: {summary}[/yellow]")
    else:
        console.print(f"[green]✅ {summary}[/green]")


def _relative(path: str, base: Path) -> str:
    try:
        return str(Path(path).relative_to(base))
    except ValueError:
        return path


if __name__ == "__main__":
    app()
