"""
Main CLI application for mquery.

Provides a Typer-based command-line interface that prints one excerpt of an
mdoc manual page as plain text.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import List, Optional

import click
import typer
from rich.console import Console
from rich.logging import RichHandler

from ..config import load_config
from ..converters import load_document
from ..exceptions import MQueryError, QueryLevel
from ..query import QueryOption, run_query

USAGE = "usage: mquery -B|D|F|V|a|b|d|e|m file"

# Initialize Typer app
app = typer.Typer(
    name="mquery",
    help="Print sections of mdoc manual pages as plain text",
    add_completion=False,
    rich_markup_mode="rich",
)

# Diagnostics go to stderr, query output is written to stdout as plain text
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False, level: str = "WARNING") -> logging.Logger:
    """
    Set up logging for the ``mquery`` package.

    Args:
        verbose: Enable DEBUG logging regardless of ``level``
        level: Configured log level name

    Returns:
        The package logger
    """
    logger = logging.getLogger("mquery")
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    log_level = logging.DEBUG if verbose else getattr(logging, level.upper(), logging.WARNING)

    rich_handler = RichHandler(
        console=err_console,
        show_time=False,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
    )
    rich_handler.setLevel(log_level)
    logger.addHandler(rich_handler)
    logger.setLevel(log_level)

    return logger


def _usage_error(message: Optional[str] = None) -> typer.Exit:
    if message:
        err_console.print(f"mquery: {message}", markup=False, highlight=False)
    err_console.print(USAGE, markup=False, highlight=False)
    return typer.Exit(int(QueryLevel.BADARG))


@app.command()
def query(
    file_path: Path = typer.Argument(..., help="mdoc manual page (.gz is accepted) or serialized .json tree"),
    summary: bool = typer.Option(False, "--summary", "-B", help="One-line description from NAME"),
    description: bool = typer.Option(False, "--description", "-D", help="DESCRIPTION and the SEE ALSO links"),
    functions: bool = typer.Option(False, "--functions", "-F", help="Function names from FUNCTIONS"),
    variables: bool = typer.Option(False, "--variables", "-V", help="Variable names from ECLASS VARIABLES"),
    authors: bool = typer.Option(False, "--authors", "-a", help="AUTHORS section"),
    bug_link: bool = typer.Option(False, "--bug-link", "-b", help="Link from REPORTING BUGS"),
    deprecated: bool = typer.Option(False, "--deprecated", "-d", help="DEPRECATED section"),
    examples: bool = typer.Option(False, "--examples", "-e", help="EXAMPLES section"),
    maintainers: bool = typer.Option(False, "--maintainers", "-m", help="MAINTAINERS section"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug diagnostics"),
    config_path: Optional[Path] = typer.Option(None, "--config", help="Configuration file", metavar="PATH"),
) -> None:
    """
    Print one excerpt of an mdoc manual page.

    Exactly one query option must be given.
    """
    flags = {
        QueryOption.SUMMARY: summary,
        QueryOption.DESCRIPTION: description,
        QueryOption.FUNCTIONS: functions,
        QueryOption.VARIABLES: variables,
        QueryOption.AUTHORS: authors,
        QueryOption.BUG_LINK: bug_link,
        QueryOption.DEPRECATED: deprecated,
        QueryOption.EXAMPLES: examples,
        QueryOption.MAINTAINERS: maintainers,
    }
    selected: List[QueryOption] = [option for option, enabled in flags.items() if enabled]
    if len(selected) != 1:
        raise _usage_error()

    # Config file warnings need the handler, the configured level comes after
    setup_logging(verbose)
    config = load_config(config_path)
    logger = setup_logging(verbose, config.log_level)

    try:
        document = load_document(file_path)
        for issue in document.validate_integrity():
            logger.debug(issue)
        status = run_query(document, selected[0], sys.stdout, config)
        sys.stdout.flush()
    except MQueryError as e:
        err_console.print(f"mquery: {e}", markup=False, highlight=False)
        raise typer.Exit(int(e.level))
    except OSError as e:
        err_console.print(f"mquery: {e}", markup=False, highlight=False)
        raise typer.Exit(int(QueryLevel.SYSERR))

    if status is not QueryLevel.OK:
        raise typer.Exit(int(status))


def main() -> None:
    """Console script entry point; exits with a ``QueryLevel`` status."""
    command = typer.main.get_command(app)
    try:
        status = command.main(prog_name="mquery", standalone_mode=False)
    except click.UsageError as e:
        _usage_error(e.format_message())
        sys.exit(int(QueryLevel.BADARG))
    except click.exceptions.Abort:
        sys.exit(int(QueryLevel.SYSERR))
    sys.exit(int(status or 0))


if __name__ == "__main__":
    main()
