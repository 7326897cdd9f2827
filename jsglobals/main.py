"""jsglobals CLI - report the global variables a JavaScript file consumes."""
import json
import os
from pathlib import Path
from typing import Dict, Iterator, List, Optional

import typer
from rich.markup import escape
from rich.table import Table

from jsglobals.analyzer.estree import EstreeConverter
from jsglobals.analyzer.globals_detector import GlobalReference, detect_unresolved_references, sort_references
from jsglobals.analyzer.parser import LanguageParser, ParseError
from jsglobals.config import __version__, get_config
from jsglobals.utils.logger import safe_print
from jsglobals.utils.safe_console import SafeConsole, sanitize_markup

app = typer.Typer(
    name="jsglobals",
    help="Report identifier references that no scope in the file declares",
    add_completion=False
)
console = SafeConsole()
err_console = SafeConsole(stderr=True)

SKIPPED_DIRECTORIES = {'node_modules', 'bower_components', 'dist', 'build', 'coverage'}


def iter_source_files(paths: List[Path]) -> Iterator[Path]:
    """Expand files and directories into the JavaScript files to scan.

    Directories are searched recursively; dependency, build and hidden
    directories are skipped. Files given explicitly are always yielded.
    """
    for path in paths:
        if path.is_file():
            yield path
            continue
        for root, dirs, files in os.walk(path):
            dirs[:] = sorted(d for d in dirs if d not in SKIPPED_DIRECTORIES and not d.startswith('.'))
            for name in sorted(files):
                candidate = Path(root) / name
                if candidate.suffix.lower() in LanguageParser.SUPPORTED_LANGUAGES:
                    yield candidate


def scan_file(file_path: Path, parser: LanguageParser, report_arrow_arguments: bool) -> Optional[List[GlobalReference]]:
    """Parse one file and detect its globals.

    Returns:
        The detected references, or None if the file could not be read

    Raises:
        ParseError: If the file contains a syntax error
    """
    source_code = parser.read_source(file_path)
    if source_code is None:
        return None
    tree = parser.parse_source(source_code, str(file_path))
    program = EstreeConverter(source_code).convert(tree)
    return detect_unresolved_references(program, report_arrow_arguments=report_arrow_arguments)


def reference_to_dict(reference: GlobalReference) -> Dict:
    return {
        'name': reference.name,
        'nodes': [
            {
                'line': occurrence.line,
                'column': occurrence.column,
                'qualified_name': occurrence.qualified_name,
            }
            for occurrence in reference.nodes
        ],
    }


def render_table(file_path: Path, references: List[GlobalReference], qualified: bool) -> Table:
    table = Table(title=sanitize_markup(f"📄 {escape(str(file_path))}"), show_lines=False)
    table.add_column("Name", style="bold cyan")
    table.add_column("Uses", justify="right")
    table.add_column("Lines", style="dim")
    if qualified:
        table.add_column("Qualified")

    for reference in references:
        lines = ", ".join(str(line) for line in sorted({o.line for o in reference.nodes}))
        row = [escape(reference.name), str(len(reference.nodes)), lines]
        if qualified:
            row.append(escape(", ".join(dict.fromkeys(reference.qualified_names))))
        table.add_row(*row)
    return table


@app.command()
def scan(
    paths: List[Path] = typer.Argument(..., help="JavaScript files or directories to scan"),
    json_output: bool = typer.Option(False, "--json", help="Print results as JSON"),
    plain: bool = typer.Option(False, "--plain", help="Print one line per occurrence (file:line:column name)"),
    qualified: bool = typer.Option(False, "--qualified", "-q", help="Show qualified access paths such as process.env"),
    ignore: List[str] = typer.Option([], "--ignore", "-i", help="Name to leave out of the report (repeatable)"),
    sort: Optional[bool] = typer.Option(None, "--sort/--no-sort", help="Order names alphabetically instead of first use"),
    ignore_arrow_arguments: bool = typer.Option(False, "--ignore-arrow-arguments", help="Treat `arguments` inside arrow functions as bound"),
    strict: bool = typer.Option(False, "--strict", help="Exit with status 1 when any global is found"),
):
    """Scan files and print every unresolved (global) reference."""
    try:
        config = get_config()
    except ValueError as e:
        err_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)

    missing = [path for path in paths if not path.exists()]
    if missing:
        for path in missing:
            err_console.print(f"[bold red]Error:[/bold red] Path does not exist: {escape(str(path))}")
        raise typer.Exit(1)

    output_format = 'json' if json_output else 'plain' if plain else config.output_format
    sort = config.sort_results if sort is None else sort
    report_arrow_arguments = config.report_arrow_arguments and not ignore_arrow_arguments
    ignored = set(config.ignored_names) | set(ignore)

    parser = LanguageParser('javascript')
    results: Dict[str, List[GlobalReference]] = {}
    failures = 0

    for file_path in iter_source_files(paths):
        try:
            references = scan_file(file_path, parser, report_arrow_arguments)
        except ParseError as e:
            failures += 1
            err_console.print(f"[bold red]✗ Parse error:[/bold red] {escape(str(e))}", highlight=False)
            continue
        except RecursionError:
            failures += 1
            err_console.print(f"[bold red]✗ Nesting too deep to analyze:[/bold red] {escape(str(file_path))}")
            continue
        if references is None:
            err_console.print(f"[yellow]⚠ Skipped unreadable file:[/yellow] {escape(str(file_path))}")
            continue
        references = [reference for reference in references if reference.name not in ignored]
        results[str(file_path)] = sort_references(references) if sort else references

    if output_format == 'json':
        payload = [
            {'file': file_name, 'globals': [reference_to_dict(r) for r in references]}
            for file_name, references in results.items()
        ]
        typer.echo(json.dumps(payload, indent=2))
    elif output_format == 'plain':
        for file_name, references in results.items():
            for reference in references:
                for occurrence in reference.nodes:
                    name = occurrence.qualified_name if qualified else reference.name
                    safe_print(f"{file_name}:{occurrence.line}:{occurrence.column} {name}")
    else:
        for file_name, references in results.items():
            if references:
                console.print(render_table(Path(file_name), references, qualified))
            else:
                console.print(f"[green]✓ {escape(file_name)}: no globals[/green]")

    found = sum(len(references) for references in results.values())
    if output_format == 'table':
        console.print(f"\n[bold]{len(results)} file(s) scanned, {found} global name(s) found[/bold]")

    if failures or (strict and found):
        raise typer.Exit(1)


@app.command()
def version():
    """Print the jsglobals version."""
    typer.echo(f"jsglobals {__version__}")


if __name__ == "__main__":
    app()
