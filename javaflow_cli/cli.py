"""Typer-based CLI for javaflow."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import typer
from rich.console import Console
from rich.table import Table

from . import __version__, config
from .analyzer import parse
from .config_manager import load_config, load_render_config
from .graph_export import export_html, export_json
from .models import CallGraph
from .parser import ParseError
from .renderer import render

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="☕ javaflow — call graphs and flowcharts for Java source files.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"javaflow v{__version__}")
        raise typer.Exit()


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
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
):
    """javaflow: trace what a Java method does, call by call."""
    if verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(levelname)s %(name)s: %(message)s")


def _load(source_file: Path, lenient: bool) -> Tuple[str, CallGraph]:
    if source_file.suffix not in config.SUPPORTED_EXTENSIONS:
        err_console.print(f"[yellow]![/yellow] {source_file.name} does not look like a Java file")
    source = source_file.read_text(encoding="utf-8", errors="replace")
    try:
        return source, parse(source, strict=not lenient)
    except ParseError as exc:
        err_console.print(f"[red]✗[/red] Could not parse {source_file}: {exc}")
        raise typer.Exit(code=1)


SOURCE_ARG = typer.Argument(..., exists=True, dir_okay=False, help="Java source file.")
LENIENT_OPT = typer.Option(False, "--lenient", help="Accept sources that need syntax error recovery.")


@app.command("methods")
def methods(
    source_file: Path = SOURCE_ARG,
    lenient: bool = LENIENT_OPT,
):
    """List declared methods and the internal methods each one calls."""
    _, graph = _load(source_file, lenient)
    if not graph.nodes:
        typer.echo("No method declarations found.")
        raise typer.Exit(code=0)

    table = Table(title=source_file.name)
    table.add_column("Method", style="cyan")
    table.add_column("Modifiers")
    table.add_column("Returns")
    table.add_column("Line", justify="right")
    table.add_column("Calls")
    for name in sorted(graph.nodes):
        node = graph.nodes[name]
        table.add_row(
            name,
            " ".join(node.modifiers),
            node.return_type or "-",
            str(node.line),
            ", ".join(graph.calls.get(name, [])),
        )
    console.print(table)


@app.command("graph")
def graph(
    source_file: Path = SOURCE_ARG,
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write JSON to this file."),
    lenient: bool = LENIENT_OPT,
):
    """Print the call graph (methods, calls, flows) as JSON."""
    _, call_graph = _load(source_file, lenient)
    if output is None:
        typer.echo(call_graph.to_json())
        return
    export_json(call_graph, output)
    typer.echo(f"Exported call graph to {output}")


@app.command("flow")
def flow(
    source_file: Path = SOURCE_ARG,
    method: Optional[str] = typer.Option(None, "--method", "-m", help="Render only this method."),
    ignore_var: List[str] = typer.Option([], "--ignore-var", help="Hide external calls on this variable."),
    ignore_service: List[str] = typer.Option([], "--ignore-service", help="Hide external calls on this service."),
    collapse: Optional[bool] = typer.Option(None, "--collapse/--expand", help="One box per method, no bodies."),
    show_lines: Optional[bool] = typer.Option(None, "--show-lines/--hide-lines", help="Append (L<line>) to labels."),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write Mermaid markup to this file."),
    lenient: bool = LENIENT_OPT,
):
    """Render a Mermaid flowchart of public methods, or of one method."""
    _, call_graph = _load(source_file, lenient)
    render_config = load_render_config(
        ignored_variables=ignore_var,
        ignored_services=ignore_service,
        collapse_details=collapse,
        show_source_reference=show_lines,
    )
    result = render(call_graph, method=method, config=render_config)

    if output is None:
        typer.echo(result.diagram_text, nl=False)
    else:
        output.write_text(result.diagram_text, encoding="utf-8")
        typer.echo(f"Wrote flowchart to {output}")

    if result.external_services:
        err_console.print(f"[dim]External services: {', '.join(result.external_services)}[/dim]")


@app.command("export")
def export(
    source_file: Path = SOURCE_ARG,
    output: Path = typer.Option(..., "--output", "-o", help="HTML file to write."),
    method: Optional[str] = typer.Option(None, "--method", "-m", help="Render only this method."),
    ignore_var: List[str] = typer.Option([], "--ignore-var", help="Hide external calls on this variable."),
    ignore_service: List[str] = typer.Option([], "--ignore-service", help="Hide external calls on this service."),
    show_lines: Optional[bool] = typer.Option(None, "--show-lines/--hide-lines", help="Append (L<line>) to labels."),
    lenient: bool = LENIENT_OPT,
):
    """Export an interactive HTML page: flowchart plus clickable source."""
    source, call_graph = _load(source_file, lenient)
    render_config = load_render_config(
        ignored_variables=ignore_var,
        ignored_services=ignore_service,
        collapse_details=False,
        show_source_reference=show_lines,
    )
    result = render(call_graph, method=method, config=render_config)
    export_html(source, result, output, title=f"{source_file.name} — {method or 'public methods'}")
    typer.echo(f"Exported flowchart to {output}")


@app.command("config")
def show_config():
    """Show the effective render defaults."""
    settings = load_config()
    typer.echo(f"Config file: {config.CONFIG_FILE}")
    for key, value in settings.items():
        if isinstance(value, list):
            value = ", ".join(value) or "(none)"
        typer.echo(f"  {key}: {value}")


if __name__ == "__main__":
    app()
