"""
Command-line interface for yaml-import.

Commands:
1. render  - compose a YAML file with its imports and print/write the result
2. matches - show which files a path pattern resolves to
"""

import sys
from pathlib import Path
from typing import Optional

import click
import yaml
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from yaml_import.config.settings import get_settings
from yaml_import.context import ImportContext
from yaml_import.parsers.yaml_loader import load_file
from yaml_import.utils.file_handler import FileHandler
from yaml_import.utils.logger import set_package_level, setup_logger


console = Console()
error_console = Console(stderr=True)
logger = setup_logger(__name__)


def build_context(root: Optional[Path], detect_cycles: bool = True) -> ImportContext:
    """Create an import context from settings, overridden by CLI options."""
    context = ImportContext.from_settings(get_settings())
    if root is not None:
        context.root = root
    if not detect_cycles:
        context.detect_cycles = False
    return context


@click.group()
def cli():
    """yaml-import - compose YAML documents from imported files."""
    pass


@cli.command()
@click.argument(
    "input_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory relative imports resolve against (default: from settings, else cwd)",
)
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["yaml", "json"]),
    default="yaml",
    help="Output format (default: yaml)",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="Write the result to a file instead of stdout",
)
@click.option(
    "--no-cycle-check",
    is_flag=True,
    help="Disable cyclic import detection",
)
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Enable verbose logging",
)
def render(
    input_file: Path,
    root: Optional[Path],
    output_format: str,
    output: Optional[Path],
    no_cycle_check: bool,
    verbose: bool,
) -> None:
    """
    Compose INPUT_FILE, resolving every import tag.
    """
    if verbose:
        set_package_level("DEBUG")

    context = build_context(root, detect_cycles=not no_cycle_check)

    try:
        data = load_file(input_file, context=context)
    except yaml.YAMLError as e:
        logger.error(f"Failed to compose {input_file}: {e}")
        error_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        sys.exit(1)

    if output_format == "json":
        content = FileHandler.dump_json(data)
    else:
        content = FileHandler.dump_yaml(data)

    if output is None:
        click.echo(content, nl=False)
    else:
        FileHandler.write_file(output, content)
        error_console.print(f"[green]✓[/green] Wrote {escape(str(output))}", soft_wrap=True)


@cli.command()
@click.argument("pattern")
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Directory relative patterns resolve against (default: from settings, else cwd)",
)
def matches(pattern: str, root: Optional[Path]) -> None:
    """
    List the files PATTERN resolves to, with placeholder captures.
    """
    context = build_context(root)

    try:
        results = context.resolver.resolve(pattern, context.root)
    except yaml.YAMLError as e:
        error_console.print(f"[bold red]Error:[/bold red] {escape(str(e))}", soft_wrap=True)
        sys.exit(1)

    if not results:
        console.print(f"[yellow]No files match[/yellow] {escape(pattern)}")
        return

    table = Table(title=f"Matches for {escape(pattern)}", show_lines=True)
    table.add_column("#", style="dim", width=3)
    table.add_column("Path", style="cyan")
    table.add_column("Captures", style="green")

    for i, match in enumerate(results, 1):
        captures = ", ".join(f"{name}={value}" for name, value in match.captures.items())
        table.add_row(str(i), escape(str(match.path)), escape(captures))

    console.print(table)


def main():
    """Main entry point."""
    cli()


if __name__ == "__main__":
    main()
