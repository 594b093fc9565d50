#!/usr/bin/env python3
"""
integration-tester CLI - fixture tooling

Usage:
    integration-tester validate <dir>
    integration-tester show <dir> <name>
    integration-tester --version
"""

from pathlib import Path

import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .fixtures import FixtureError, list_fixtures, load_fixture

app = typer.Typer(
    name="integration-tester",
    help="Fixture tooling for integration tests",
    add_completion=False,
)
console = Console()


def version_callback(value: bool):
    if value:
        console.print(f"integration-tester v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True,
        help="Show version and exit"
    ),
):
    """
    Fixture tooling for integration tests.

    Fixtures live in <dir>/fixtures/<name>.json.
    """
    pass


@app.command()
def validate(
    directory: Path = typer.Argument(
        ...,
        help="Directory containing the fixtures/ folder",
        exists=True,
        file_okay=False,
    ),
):
    """
    Validate every fixture file under <dir>/fixtures.
    """
    names = list_fixtures(directory)
    if not names:
        console.print(f"\n[yellow]No fixtures found in {directory / 'fixtures'}[/yellow]")
        raise typer.Exit(code=1)

    table = Table(title="Fixtures")
    table.add_column("Name", style="cyan")
    table.add_column("Type", style="magenta")
    table.add_column("Status")

    failures: list[FixtureError] = []
    for name in names:
        try:
            fixture = load_fixture(directory, name)
        except FixtureError as e:
            failures.append(e)
            table.add_row(name, "?", "[red]invalid[/red]")
        else:
            table.add_row(name, fixture.type, "[green]valid[/green]")

    console.print()
    console.print(table)

    if failures:
        console.print(f"\n[red]❌ {len(failures)} invalid fixture(s):[/red]")
        for failure in failures:
            console.print(str(failure), markup=False)
        raise typer.Exit(code=1)

    console.print(f"\n[green]✅ {len(names)} valid fixture(s)[/green]")
    raise typer.Exit(code=0)


@app.command()
def show(
    directory: Path = typer.Argument(
        ...,
        help="Directory containing the fixtures/ folder",
        exists=True,
        file_okay=False,
    ),
    name: str = typer.Argument(..., help="Fixture name, without extension"),
):
    """
    Print a fixture's input, settings and expected output.
    """
    try:
        fixture = load_fixture(directory, name)
    except FixtureError as e:
        console.print(f"\n[red]❌ Invalid fixture:[/red]")
        console.print(str(e), markup=False)
        raise typer.Exit(code=1)

    console.print_json(data={
        "input": fixture.input,
        "settings": fixture.settings,
        "output": fixture.output,
    })


if __name__ == "__main__":
    app()
