"""Validate command for noteschema.

`noteschema validate` runs every enabled schema over the vault and prints the
violations grouped by note. Results are cached under the state directory so
the next run only revisits notes and schemas that changed.
"""

import json
from typing import Annotated, Optional

import typer
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
from noteschema.schema.violations import Severity, Violation


def _violation_row(violation: Violation) -> tuple[str, str, str, str]:
    level = "[yellow]warning[/yellow]" if violation.is_warning else "[red]error[/red]"
    return (
        violation.schema_id,
        violation.field_path or "-",
        level,
        violation.message,
    )


async def _run_validate(
    config: NoteSchemaConfig,
    schema_id: Optional[str] = None,
    strict: bool = False,
    errors_only: bool = False,
    as_json: bool = False,
    use_cache: bool = True,
):
    engine = build_engine(config, use_cache=use_cache and schema_id is None)

    try:
        if schema_id is not None:
            schema = engine.schema_set.get(schema_id)
            if schema is None:
                console.print(f"[red]No schema found with id: {schema_id}[/red]")
                raise typer.Exit(1)
            await engine.tag_index.initialize()
            await engine.validate_schema(schema)
        else:
            await engine.startup()
    finally:
        await engine.shutdown()

    severity = Severity.ERRORS if errors_only else Severity.ALL
    grouped = engine.violations.by_document(severity)
    counts = engine.violations.counts()

    if as_json:
        typer.echo(
            json.dumps(
                {
                    "documents": {
                        document_id: [v.to_dict() for v in violations]
                        for document_id, violations in grouped.items()
                    },
                    "errors": counts.errors,
                    "warnings": counts.warnings,
                },
                indent=2,
            )
        )
    elif not engine.schemas:
        console.print("[yellow]No schemas defined.[/yellow]")
    elif not grouped:
        console.print("[green]No violations found.[/green]")
    else:
        for document_id, violations in grouped.items():
            table = Table(title=document_id, title_justify="left")
            table.add_column("Schema", style="cyan")
            table.add_column("Field")
            table.add_column("Level", justify="center")
            table.add_column("Message")
            for violation in violations:
                table.add_row(*_violation_row(violation))
            console.print(table)

        console.print(
            f"\nSummary: {counts.errors} errors, {counts.warnings} warnings "
            f"in {counts.documents} notes"
        )

    if strict and engine.violations.has_errors():
        raise typer.Exit(1)


@app.command()
def validate(
    ctx: typer.Context,
    schema: Annotated[
        Optional[str],
        typer.Option("--schema", "-s", help="Only validate this schema id"),
    ] = None,
    strict: bool = typer.Option(False, "--strict", help="Exit with error on validation errors"),
    errors_only: bool = typer.Option(False, "--errors-only", help="Hide warnings"),
    as_json: bool = typer.Option(False, "--json", help="Print violations as JSON"),
    no_cache: bool = typer.Option(False, "--no-cache", help="Ignore the validation cache"),
):
    """Validate note frontmatter against the configured schemas.

    Use --strict to exit with error code 1 if any validation errors are found.
    """
    try:
        run_with_cleanup(
            _run_validate(
                get_config(ctx),
                schema_id=schema,
                strict=strict,
                errors_only=errors_only,
                as_json=as_json,
                use_cache=not no_cache,
            )
        )
    except NoteSchemaError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)
    except Exception as e:
        if not isinstance(e, typer.Exit):
            logger.error(f"Error during validate: {e}")
            typer.echo(f"Error during validate: {e}", err=True)
            raise typer.Exit(1)
        raise
