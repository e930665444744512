"""CLI entry points: inspect, validate, import/export and serve .sqlnb files."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from sqlnb.config import SqlnbConfig, ensure_dirs, load_config
from sqlnb.core import Result
from sqlnb.document.codec import export_as_json, export_as_yaml, export_filename, import_from_json, to_text
from sqlnb.document.example import example_document
from sqlnb.errors import NotebookError
from sqlnb.files.handler import SQLNBFileHandler
from sqlnb.notebook.notebook import Notebook
from sqlnb.storage import InMemoryStorageAdapter, build_storage

app = typer.Typer(name="sqlnb", help="SQL notebook files (.sqlnb).")
console = Console()


def _handler(config: SqlnbConfig) -> SQLNBFileHandler:
    ensure_dirs(config)
    return SQLNBFileHandler(
        build_storage(config),
        timeout_seconds=config.autosave.save_timeout_seconds,
        document=config.document,
    )


def _print_diagnostics(result: Result[object]) -> None:
    for d in result.diagnostics:
        style = "red" if d.severity == "error" else "yellow"
        console.print(f"[{style}]{d.severity.capitalize()}:[/{style}] {d.message}")
        if d.hint:
            console.print(f"  Hint: {d.hint}")


def _load(handler: SQLNBFileHandler, name: str) -> Notebook:
    result = asyncio.run(handler.load(name))
    if result.data is None:
        _print_diagnostics(result)
        raise typer.Exit(1)
    return result.data


@app.command("list")
def list_files() -> None:
    """List stored notebook files."""
    handler = _handler(load_config())
    result = asyncio.run(handler.list())
    if not result.ok:
        _print_diagnostics(result)
        raise typer.Exit(1)
    for name in result.data or []:
        console.print(name)


@app.command()
def show(name: str = typer.Argument(help="File name, e.g. 'Weekly Analysis.sqlnb'")) -> None:
    """Print a notebook's cells."""
    notebook = _load(_handler(load_config()), name)

    t = Table(title=f"{notebook.title} ({notebook.id})", show_lines=True)
    t.add_column("#", justify="right")
    t.add_column("Type", style="cyan")
    t.add_column("Content")
    t.add_column("Execution", style="green")
    for cell in notebook.sorted_cells():
        execution = ""
        if cell.metadata and cell.metadata.executed:
            execution = f"{cell.metadata.result_count} rows, {cell.metadata.execution_time_ms}ms"
        t.add_row(str(cell.order), cell.type, cell.raw, execution)
    console.print(t)


@app.command()
def validate(path: Path = typer.Argument(help="Local .sqlnb file to check")) -> None:
    """Validate a .sqlnb file on disk without importing it."""
    handler = SQLNBFileHandler(InMemoryStorageAdapter())
    result = handler.validate(path.read_text())
    _print_diagnostics(result)
    if not result.ok:
        raise typer.Exit(1)
    console.print(f"[green]{path.name} is valid.[/green]")


@app.command()
def export(
    name: str = typer.Argument(help="Stored file name"),
    fmt: str = typer.Option("json", "--format", "-f", help="json or yaml"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Output path"),
) -> None:
    """Export a stored notebook as JSON or YAML."""
    if fmt not in ("json", "yaml"):
        console.print(f"[red]Unknown format: {fmt}[/red]")
        raise typer.Exit(1)
    config = load_config()
    notebook = _load(_handler(config), name)
    options = {"language": config.document.language, "environment": config.document.environment}
    text = export_as_json(notebook, **options) if fmt == "json" else export_as_yaml(notebook, **options)
    target = output or Path(export_filename(notebook, fmt))
    target.write_text(text + ("\n" if fmt == "json" else ""))
    console.print(f"[green]Wrote {target}[/green]")


@app.command("import")
def import_file(
    path: Path = typer.Argument(help="JSON export to import"),
    name: str = typer.Argument(help="File name to store it under"),
) -> None:
    """Import a JSON export as a stored .sqlnb file."""
    try:
        notebook = import_from_json(path.read_text())
    except NotebookError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    result = asyncio.run(_handler(load_config()).save(name, notebook))
    _print_diagnostics(result)
    if not result.ok:
        raise typer.Exit(1)
    console.print(f"[green]Imported {len(notebook.cells)} cells into {name}[/green]")


@app.command()
def delete(name: str = typer.Argument(help="Stored file name")) -> None:
    """Delete a stored notebook file."""
    result = asyncio.run(_handler(load_config()).delete(name))
    if not result.ok:
        _print_diagnostics(result)
        raise typer.Exit(1)
    console.print(f"Deleted {name}")


@app.command()
def example() -> None:
    """Print a fully populated sample document in .sqlnb format."""
    console.print(to_text(example_document()), markup=False, highlight=False, soft_wrap=True)


@app.command()
def serve(
    port: int | None = typer.Option(None, "--port", "-p", help="Port to serve on"),
) -> None:
    """Start the API server for the browser editor."""
    import uvicorn

    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    config = load_config()
    ensure_dirs(config)
    port = port or config.server.port
    console.print(f"[bold]Starting sqlnb on port {port}...[/bold]")
    uvicorn.run("sqlnb.server:create_app", factory=True, host=config.server.host, port=port, reload=False)


def main() -> None:
    app()
