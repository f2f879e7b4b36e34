#!/usr/bin/env python3
"""
CLI interface for the statement parser.
"""
import typer
from pathlib import Path
from typing import Optional
from pydantic import ValidationError
from rich.console import Console
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from statement_parser.core.loader import ExtractionError, extract_text
from statement_parser.core.runner import detect_tables, parse_statement
from statement_parser.models.schema import DateFormat, ParsedStatement

app = typer.Typer(help="Bank and credit card statement transaction extractor")
console = Console()


def _read_statement_text(input_path: Path) -> str:
    """PDFs go through the text loader; anything else is read as extracted text."""
    if input_path.suffix.lower() == ".pdf":
        return extract_text(input_path)
    return input_path.read_text(encoding="utf-8")


@app.command()
def parse(
    input_path: Path = typer.Argument(..., help="Path to statement PDF or extracted text file"),
    output: Optional[Path] = typer.Option(None, "--out", "-o", help="Output JSON file path"),
    date_format: DateFormat = typer.Option(DateFormat.DD_MM_YYYY, "--date-format", "-f",
                                           help="Date format used by the statement"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output")
):
    """Parse a statement into structured JSON."""

    if not input_path.exists():
        console.print(f"[red]Error: File not found: {input_path}[/red]")
        raise typer.Exit(1)

    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
            transient=True
        ) as progress:
            task = progress.add_task("Reading statement...", total=None)
            text = _read_statement_text(input_path)

            progress.update(task, description="Extracting transactions...")
            result = parse_statement(text, date_format, verbose=verbose)

    except (ExtractionError, OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error reading statement: {e}[/red]")
        if verbose:
            import traceback
            console.print(traceback.format_exc())
        raise typer.Exit(1)

    if output:
        output.write_text(result.model_dump_json(indent=2), encoding="utf-8")
        console.print(f"[green]✓ Parsed {len(result.transactions)} transactions. "
                      f"Output written to: {output}[/green]")
    else:
        console.print_json(result.model_dump_json())


@app.command()
def detect(
    input_path: Path = typer.Argument(..., help="Path to statement PDF or extracted text file"),
    date_format: DateFormat = typer.Option(DateFormat.DD_MM_YYYY, "--date-format", "-f",
                                           help="Date format used by the statement")
):
    """Show the transaction tables found in a statement."""
    try:
        text = _read_statement_text(input_path)
    except (ExtractionError, OSError, UnicodeDecodeError) as e:
        console.print(f"[red]Error reading statement: {e}[/red]")
        raise typer.Exit(1)

    tables = detect_tables(text, date_format)
    if not tables:
        console.print("[red]No transaction tables found[/red]")
        raise typer.Exit(1)

    table = Table(title=f"{len(tables)} table(s) found")
    table.add_column("Format")
    table.add_column("Header row", justify="right")
    table.add_column("Data start", justify="right")
    table.add_column("Last row", justify="right")
    table.add_column("Columns (date/desc/amount)")
    table.add_column("Transactions", justify="right")

    def _cell(value):
        return "-" if value is None else str(value)

    for region, result in tables:
        table.add_row(
            region.format_variant.value,
            _cell(region.header_row_index),
            str(region.data_start_row_index),
            _cell(result.last_row_index),
            "/".join(_cell(c) for c in (region.date_column, region.description_column,
                                        region.amount_column)),
            str(len(result.transactions)),
        )

    console.print(table)


@app.command()
def validate(
    json_path: Path = typer.Argument(..., help="Path to JSON file to validate")
):
    """Validate a JSON file against the schema."""
    try:
        data = ParsedStatement.model_validate_json(json_path.read_text(encoding="utf-8"))
    except (ValidationError, OSError) as e:
        console.print(f"[red]Validation failed: {e}[/red]")
        raise typer.Exit(1)

    console.print("[green]✓ JSON is valid[/green]")
    console.print(f"Card: {data.card_number_last4 or '-'}")
    console.print(f"Transactions: {len(data.transactions)}")


if __name__ == "__main__":
    app()
