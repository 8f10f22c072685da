#!/usr/bin/env python3
"""
Merge Batcher - command line interface.

Statements are read from a JSON lines file, one statement per line:

    {"sql": "INSERT INTO t (a, b) VALUES (:a, :b)", "parameters": {"a": 1, "b": 2}, "expected_rows": 1}

``expected_rows`` defaults to 1 and ``mergeable`` to true.
"""
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from merge_batcher import __version__
from merge_batcher.batcher import MergeBatcher
from merge_batcher.exceptions import MergeBatcherError
from merge_batcher.expectations import BasicExpectation
from merge_batcher.query_collector import BATCH, QueryCollector
from merge_batcher.settings import BatcherSettings
from merge_batcher.statements import Parameter, PendingStatement
from merge_batcher.utils import setup_logging

# Initialize console for rich output
console = Console()

logger = logging.getLogger(__name__)


def read_statements(file_path: str) -> List[PendingStatement]:
    """
    Read pending statements from a JSON lines file.

    Args:
        file_path: Path to the statements file

    Returns:
        List of pending statements, in file order

    Raises:
        click.ClickException: If a line is not a valid statement
    """
    path = Path(file_path)
    statements = []
    with open(path, "r") as f:
        for line_number, line in enumerate(f, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                record = json.loads(line)
                parameters = [Parameter(name, value) for name, value in record.get("parameters", {}).items()]
                expectation = BasicExpectation(
                    record.get("expected_rows", 1),
                    can_be_merged=record.get("mergeable", True),
                )
                statements.append(PendingStatement(record["sql"], parameters, expectation))
            except (ValueError, KeyError, AttributeError) as e:
                raise click.ClickException(f"{path}:{line_number}: invalid statement ({str(e)})")

    logger.info(f"Read {len(statements)} statements from {file_path}")
    return statements


def build_settings(batch_size: Optional[int], prefix: Optional[str], dry_run: bool) -> BatcherSettings:
    settings = BatcherSettings.from_env()
    try:
        return BatcherSettings(
            batch_size=batch_size if batch_size is not None else settings.batch_size,
            parameter_prefix=prefix if prefix is not None else settings.parameter_prefix,
            dry_run=dry_run,
        )
    except ValueError as e:
        raise click.BadParameter(str(e))


def print_collected(collector: QueryCollector) -> None:
    """Print merged statements and their bound parameters."""
    for index, query in enumerate(collector.queries, start=1):
        title = f"Merged statement {index}" if query["kind"] == BATCH else f"Single statement {index}"
        console.print(f"[bold blue]{title}[/bold blue] "
                      f"({query['merged_count']} statements, expected rows: {query['expected_rows']})")
        console.print(Syntax(query["sql"].rstrip(), "sql", word_wrap=True))

        if query["parameters"]:
            table = Table(show_header=True)
            table.add_column("Parameter")
            table.add_column("Value")
            for name, value in query["parameters"].items():
                table.add_row(name, repr(value))
            console.print(table)


@click.group()
@click.version_option(version=__version__)
def cli():
    """
    Merge Batcher - merge pending SQL statements into fewer round trips.
    """
    pass


@cli.command(name="compile")
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--batch-size', '-b', type=int, help='Statements merged before a flush (default: from environment or 20)')
@click.option('--prefix', '-p', help='Prefix of generated parameter names (default: p)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def compile_statements(input_file: str, batch_size: Optional[int], prefix: Optional[str], verbose: bool):
    """
    Show the merged statements a batch of statements compiles to, without a database.
    """
    setup_logging(verbose)
    statements = read_statements(input_file)
    settings = build_settings(batch_size, prefix, dry_run=True)

    collector = QueryCollector()
    try:
        with MergeBatcher(None, settings=settings, query_collector=collector) as batcher:
            for statement in statements:
                batcher.add_to_batch(statement)
    except MergeBatcherError as e:
        console.print(f"[bold red]Error:[/bold red] {str(e)}")
        sys.exit(1)

    print_collected(collector)
    console.print(f"[bold green]✓[/bold green] {len(statements)} statements compiled to "
                  f"{len(collector.queries)} round trips")


@cli.command()
@click.argument('input_file', type=click.Path(exists=True, dir_okay=False))
@click.option('--dsn', required=True, envvar='MERGE_BATCHER_DSN', help='PostgreSQL connection string')
@click.option('--batch-size', '-b', type=int, help='Statements merged before a flush (default: from environment or 20)')
@click.option('--prefix', '-p', help='Prefix of generated parameter names (default: p)')
@click.option('--single-round-trip', is_flag=True,
              help='Send each merged statement in one call (row counts are exact only for single-command batches)')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
def run(input_file: str, dsn: str, batch_size: Optional[int], prefix: Optional[str],
        single_round_trip: bool, verbose: bool):
    """
    Execute statements against PostgreSQL in one transaction.
    """
    from merge_batcher.executors.postgresql import PostgreSQLExecutor

    setup_logging(verbose)
    statements = read_statements(input_file)
    settings = build_settings(batch_size, prefix, dry_run=False)

    collector = QueryCollector()
    executor = PostgreSQLExecutor(connection_params={"dsn": dsn}, split_statements=not single_round_trip)
    try:
        executor.begin_transaction()
        with console.status("[bold blue]Executing statements...[/bold blue]"):
            with MergeBatcher(executor, settings=settings, query_collector=collector) as batcher:
                for statement in statements:
                    batcher.add_to_batch(statement)
        executor.commit_transaction()
    except Exception as e:
        logger.error(f"Error executing statements: {str(e)}", exc_info=True)
        executor.rollback_transaction()
        console.print(f"[bold red]Error:[/bold red] {str(e)} (transaction rolled back)")
        sys.exit(1)
    finally:
        executor.close()

    console.print(f"[bold green]✓[/bold green] Executed {len(statements)} statements in "
                  f"{len(collector.queries)} round trips")


@cli.command()
def version():
    """Show version information."""
    console.print(f"Merge Batcher version: {__version__}")


def main():
    """Main entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
