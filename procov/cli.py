"""
procov CLI - Command-line interface for process coverage reports.

Inspects definition files and summarizes exported coverage reports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from procov.config import CoverageConfig, CoverageConfigLoader
from procov.definitions.loader import DefinitionLoader
from procov.definitions.models import DefinitionType, GraphSnapshot
from procov.definitions.provider import ModelSnapshotProvider
from procov.errors import DefinitionLoadError
from procov.logging import configure_logging
from procov.reporting.html import HTMLReportGenerator

app = typer.Typer(
    name="procov",
    help="Process graph coverage for BPMN and DMN tests",
    add_completion=False,
)

console = Console()


def version_callback(value: bool) -> None:
    """Display version information."""
    if value:
        from procov import __version__

        console.print(f"[bold blue]procov[/bold blue] v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    config: str = typer.Option(None, "--config", "-c", help="YAML configuration file"),
) -> None:
    """procov - Process graph coverage for tests."""
    try:
        settings = CoverageConfigLoader.from_yaml(config) if config else CoverageConfig()
    except (FileNotFoundError, ValueError) as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    configure_logging(json_output=settings.json_logs, level=settings.log_level)


def _format_percentage(value: float | None) -> str:
    if value is None:
        return "[dim]undefined[/dim]"
    return f"{value * 100:.1f}%"


def _load_report(path: str) -> dict[str, Any]:
    report_path = Path(path)
    if not report_path.exists():
        console.print(f"[red]Error:[/red] Report not found: {path}")
        raise typer.Exit(1)
    try:
        return json.loads(report_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as e:
        console.print(f"[red]Error:[/red] Invalid report {path}: {e}")
        raise typer.Exit(1) from e


@app.command()
def snapshot(
    path: str = typer.Argument(..., help="Definition file or directory"),
    verbose: bool = typer.Option(False, "--verbose", "-V", help="List element ids"),
) -> None:
    """
    Show the declared elements of process and decision definitions.

    These are the denominators coverage is computed against.
    """
    target_path = Path(path)
    if not target_path.exists():
        console.print(f"[red]Error:[/red] Path not found: {path}")
        raise typer.Exit(1)

    try:
        if target_path.is_file():
            resources = [DefinitionLoader.from_file(target_path)]
        else:
            resources = DefinitionLoader.from_directory(target_path)
    except DefinitionLoadError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    provider = ModelSnapshotProvider(resources)
    snapshots: list[GraphSnapshot] = []
    for info in provider.definitions():
        if info.definition_type == DefinitionType.PROCESS:
            snapshots.append(provider.process_snapshot(info))
        else:
            snapshots.append(provider.decision_snapshot(info))

    if not snapshots:
        console.print(f"[yellow]No definitions found in {path}[/yellow]")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("Key", style="cyan")
    table.add_column("Type")
    table.add_column("Resource")
    table.add_column("Flow Nodes", justify="right")
    table.add_column("Sequence Flows", justify="right")
    table.add_column("Rules", justify="right")

    for snap in snapshots:
        table.add_row(
            snap.info.key,
            snap.info.definition_type.value,
            snap.info.resource_name,
            str(len(snap.flow_nodes)),
            str(len(snap.sequence_flows)),
            str(len(snap.decision_rules)),
        )
    console.print(table)

    if verbose:
        for snap in snapshots:
            elements = sorted(snap.flow_nodes | snap.sequence_flows | snap.decision_rules)
            console.print(f"\n[bold]{snap.info.key}[/bold]: {', '.join(elements) or '-'}")


@app.command()
def summary(
    report: str = typer.Argument(..., help="Path to a JSON coverage report"),
    minimum: float = typer.Option(
        None, "--minimum", "-m", help="Fail if overall coverage is below this fraction"
    ),
) -> None:
    """
    Summarize a JSON coverage report per definition and test class.
    """
    data = _load_report(report)

    console.print(
        Panel(
            f"[bold]Report:[/bold] {report}\n"
            f"[bold]Process coverage:[/bold] {_format_percentage(data.get('coveragePercentage'))}\n"
            f"[bold]Decision coverage:[/bold] "
            f"{_format_percentage(data.get('decisionCoveragePercentage'))}",
            title="📊 procov Coverage",
            border_style="magenta",
        )
    )

    table = Table(show_header=True, header_style="bold")
    table.add_column("Definition", style="cyan")
    table.add_column("Type")
    table.add_column("Elements", justify="right")
    table.add_column("Test Class")
    table.add_column("Methods", justify="right")
    table.add_column("Coverage", justify="right")

    for model in data.get("bpmnModels", []):
        table.add_row(
            model["key"],
            "process",
            str(model.get("totalElementCount", "-")),
            "[bold]all[/bold]",
            "-",
            f"[bold]{_format_percentage(model.get('coveragePercentage'))}[/bold]",
        )
        for test_class in model.get("testClasses", []):
            table.add_row(
                "",
                "",
                "",
                str(test_class.get("name")),
                str(len(test_class.get("testMethods", []))),
                _format_percentage(test_class.get("coveragePercentage")),
            )

    for model in data.get("dmnModels", []):
        table.add_row(
            model["key"],
            "decision",
            str(model.get("ruleCount", "-")),
            "[bold]all[/bold]",
            "-",
            f"[bold]{_format_percentage(model.get('coveragePercentage'))}[/bold]",
        )
        for test_class in model.get("testClasses", []):
            table.add_row(
                "",
                "",
                "",
                str(test_class.get("name")),
                str(len(test_class.get("testMethods", []))),
                _format_percentage(test_class.get("coveragePercentage")),
            )

    console.print(table)

    if minimum is not None:
        overall = data.get("coveragePercentage")
        if overall is None or overall < minimum:
            console.print(
                f"\n[red]✗ Coverage {_format_percentage(overall)} is below "
                f"{minimum * 100:.1f}%[/red]"
            )
            raise typer.Exit(1)
        console.print(f"\n[green]✓ Coverage meets {minimum * 100:.1f}%[/green]")


@app.command()
def html(
    report: str = typer.Argument(..., help="Path to a JSON coverage report"),
    output: str = typer.Option(None, "--output", "-o", help="HTML output file"),
    title: str = typer.Option("Coverage Report", "--title", "-t", help="Report title"),
) -> None:
    """
    Render a JSON coverage report as a self-contained HTML page.
    """
    data = _load_report(report)
    output_path = Path(output) if output else Path(report).with_suffix(".html")
    HTMLReportGenerator().generate(output_path, data, report_title=title)
    console.print(f"[green]✓[/green] HTML report written to: {output_path}")


@app.command("init-config")
def init_config(
    output: str = typer.Option(None, "--output", "-o", help="Write to file instead of stdout"),
) -> None:
    """
    Print a sample YAML configuration.
    """
    sample = CoverageConfigLoader.generate_sample_config()
    if output:
        Path(output).write_text(sample)
        console.print(f"[green]✓[/green] Configuration written to {output}")
    else:
        console.print(sample, markup=False)


if __name__ == "__main__":
    app()
