"""Infer command for noteschema.

Bootstraps schema fields instead of authoring them by hand:

  noteschema infer Templates/Book.md     one required field per template key
  noteschema infer --query "#book"       field frequencies across matching notes
"""

from pathlib import Path
from typing import Annotated, Optional

import typer
import yaml
from loguru import logger
from rich.table import Table

from noteschema.cli.app import app
from noteschema.cli.commands.command_utils import (
    build_engine,
    console,
    get_config,
    run_with_cleanup,
)
from noteschema.config import NoteSchemaConfig
from noteschema.errors import NoteSchemaError
from noteschema.file_utils import parse_note
from noteschema.schema.inference import (
    extract_schema_from_template,
    field_to_dict,
    format_type_display,
    infer_schema,
)
from noteschema.schema.model import FieldSpec


def _print_fields(fields: list[FieldSpec]) -> None:
    console.print("\n[bold]Suggested fields:[/bold]")
    typer.echo(
        yaml.dump(
            {"fields": [field_to_dict(f) for f in fields]},
            sort_keys=False,
            allow_unicode=True,
            Dumper=yaml.SafeDumper,
        )
    )


def _run_template(config: NoteSchemaConfig, template: Path) -> None:
    path = template if template.is_absolute() else config.vault_path / template
    if not path.is_file():
        raise NoteSchemaError(f"Template not found: {template}")

    frontmatter, _ = parse_note(path.read_text(encoding="utf-8"))
    fields = extract_schema_from_template(frontmatter)
    if not fields:
        console.print(f"[yellow]Template {template} has no frontmatter fields.[/yellow]")
        return

    table = Table(title=f"Template: {template}")
    table.add_column("Field", style="cyan")
    table.add_column("Type")
    for spec in fields:
        table.add_row(spec.name, format_type_display(spec))
    console.print(table)
    _print_fields(fields)


async def _run_corpus(config: NoteSchemaConfig, query_text: str, threshold: float) -> None:
    engine = build_engine(config, use_cache=False)
    try:
        await engine.tag_index.initialize()
        documents = engine.evaluator.query_documents(query_text)
    finally:
        await engine.shutdown()

    report = infer_schema([d.frontmatter for d in documents], optional_threshold=threshold)
    if report.notes_analyzed == 0:
        console.print(f"[yellow]No notes matched: {query_text}[/yellow]")
        return

    console.print(f"\n[bold]Analyzed {report.notes_analyzed} notes matching: {query_text}[/bold]\n")

    table = Table(title="Field Frequencies")
    table.add_column("Field", style="cyan")
    table.add_column("Type")
    table.add_column("Count", justify="right")
    table.add_column("Percentage", justify="right")
    table.add_column("Suggested")

    for freq in report.field_frequencies:
        if freq.name in report.suggested_required:
            suggested = "[green]required[/green]"
        elif freq.name in report.suggested_optional:
            suggested = "[yellow]optional[/yellow]"
        else:
            suggested = "[dim]excluded[/dim]"
        table.add_row(
            freq.name, freq.dominant_type, str(freq.count), f"{freq.percentage:.0%}", suggested
        )
    console.print(table)

    if not report.suggested_fields:
        console.print(
            f"\n[yellow]No fields met the {threshold:.0%} threshold. "
            f"Try a narrower query or a lower --threshold.[/yellow]"
        )
        return
    _print_fields(report.suggested_fields)


@app.command()
def infer(
    ctx: typer.Context,
    template: Annotated[
        Optional[Path],
        typer.Argument(help="Template note to derive fields from (relative to the vault)"),
    ] = None,
    query: Annotated[
        Optional[str],
        typer.Option("--query", "-q", help="Infer from every note matching this query"),
    ] = None,
    threshold: float = typer.Option(
        0.25, "--threshold", help="Minimum frequency for optional fields (0-1)"
    ),
):
    """Suggest schema fields from a template note or from existing notes.

    With TEMPLATE, every frontmatter key becomes a required field typed after
    its value. With --query, fields present in 95%+ of the matching notes
    become required and fields above the threshold become optional.
    """
    if (template is None) == (query is None):
        console.print("[red]Error: pass either a TEMPLATE or --query[/red]")
        raise typer.Exit(1)

    config = get_config(ctx)
    try:
        if template is not None:
            _run_template(config, template)
        else:
            run_with_cleanup(_run_corpus(config, query, threshold))
    except NoteSchemaError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        if not isinstance(e, typer.Exit):
            logger.error(f"Error during infer: {e}")
            typer.echo(f"Error during infer: {e}", err=True)
            raise typer.Exit(1)
        raise
