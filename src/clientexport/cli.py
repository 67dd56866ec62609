from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from clientexport.domain.config import (
    APPLICATION_NAME_OPTION,
    EXPORT_MODULE_PATH_OPTION,
    GeneratorConfig,
)
from clientexport.domain.errors import ClientExportError, ConfigurationError, EmissionError
from clientexport.export.naming import resolve_names
from clientexport.orchestrator.pipeline import plan_interfaces, reflect_repo, run_generate
from clientexport.printer.python_printer import render_all

app = typer.Typer(no_args_is_help=True, add_completion=False)

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _repo_path(repo: str) -> Path:
    repo_path = Path(repo).expanduser().resolve()
    if not repo_path.exists():
        raise typer.BadParameter(f"Repo path does not exist: {repo_path}")
    if not repo_path.is_dir():
        raise typer.BadParameter(f"Repo path is not a directory: {repo_path}")
    return repo_path


@app.command()
def generate(
    repo: str = typer.Argument(..., help="Path to the repo holding the controllers"),
    application_name: Optional[str] = typer.Option(
        None, "--application-name", "-a", envvar="CLIENTEXPORT_APPLICATION_NAME",
        help="Remote target name written into generated clients",
    ),
    export_module_path: Optional[str] = typer.Option(
        None, "--export-module-path", "-o", envvar="CLIENTEXPORT_EXPORT_MODULE_PATH",
        help="Absolute path of the module receiving the generated clients",
    ),
    opaque_base: Optional[List[str]] = typer.Option(
        None, "--opaque-base", help="Base class treated as the root of the hierarchy (repeatable)"
    ),
    max_files: Optional[int] = typer.Option(None, help="Limit scanned files (debug)"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    _setup_logging(verbose)
    repo_path = _repo_path(repo)

    try:
        config = GeneratorConfig.from_options(
            {APPLICATION_NAME_OPTION: application_name, EXPORT_MODULE_PATH_OPTION: export_module_path}
        )
    except ConfigurationError as e:
        console.print(f"[bold red]Configuration error:[/bold red] {e}")
        raise typer.Exit(code=2)

    try:
        result = run_generate(repo_path, config, max_files=max_files, opaque_bases=opaque_base or ())
    except EmissionError as e:
        console.print(f"[bold red]Emission failed:[/bold red] {e}")
        raise typer.Exit(code=1)
    except ClientExportError as e:
        console.print(f"[bold red]Generation failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    console.print(f"[bold green]clientexport[/bold green] generate: {repo_path}")
    console.print(f"Python files scanned: {result.files_scanned}")
    console.print(f"Files mentioning client_export: {len(result.candidate_files)}")
    console.print(f"Classes reflected: {result.types_loaded}")
    console.print(f"Extraction targets: [bold]{len(result.targets)}[/bold]")
    console.print("")

    if not result.outcomes:
        console.print("Nothing to generate.")
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("CONTROLLER")
    table.add_column("CLIENT", no_wrap=True)
    table.add_column("METHODS", justify="right")
    table.add_column("BASE")
    table.add_column("LEAF")

    for o in result.outcomes:
        leaf = "written" if o.leaf_written else "[dim]kept[/dim]"
        table.add_row(
            o.type_name,
            o.names.extract_name,
            str(o.method_count),
            str(o.base_file),
            f"{leaf} {o.leaf_file}",
        )

    console.print(table)
    console.print(f"Output root: {config.source_root}")


@app.command()
def inspect(
    repo: str = typer.Argument(..., help="Path to the repo holding the controllers"),
    opaque_base: Optional[List[str]] = typer.Option(
        None, "--opaque-base", help="Base class treated as the root of the hierarchy (repeatable)"
    ),
    format: str = typer.Option("table", help="Output format: table|json|source"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
) -> None:
    """Show what generate would produce, without writing anything."""
    _setup_logging(verbose)
    repo_path = _repo_path(repo)

    fmt = format.lower().strip()
    if fmt not in ("table", "json", "source"):
        raise typer.BadParameter("format must be one of: table, json, source")

    try:
        reflected = reflect_repo(repo_path, opaque_bases=opaque_base or ())
        specs = plan_interfaces(reflected.targets)
    except ClientExportError as e:
        console.print(f"[bold red]Generation failed:[/bold red] {e}")
        raise typer.Exit(code=1)

    if fmt == "json":
        payload = [spec.model_dump(mode="json") for spec in specs]
        console.print_json(json.dumps(payload))
        return

    if fmt == "source":
        for rel_path, text in render_all(specs).items():
            console.rule(rel_path)
            console.print(text, markup=False, highlight=False)
        return

    table = Table(show_header=True, header_style="bold")
    table.add_column("CONTROLLER")
    table.add_column("CLIENT", no_wrap=True)
    table.add_column("PACKAGE")
    table.add_column("PATH")
    table.add_column("METHODS")

    for candidate, spec in zip(reflected.targets, specs):
        names = resolve_names(candidate)
        table.add_row(
            candidate.qualified_name,
            names.extract_name,
            names.package,
            names.base_path or "-",
            ", ".join(m.name for m in spec.methods) or "-",
        )

    console.print(f"[bold]Extraction targets:[/bold] {len(specs)}")
    console.print(table)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
