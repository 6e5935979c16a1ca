"""CLI entrypoint for tasksift."""

import logging
from datetime import datetime
from pathlib import Path

import rich_click as click

from tasksift import __version__
from tasksift.controllers import (
    AnalyzeCommand,
    ParseCommand,
    QueryCliController,
    SearchCommand,
)

click.rich_click.USE_MARKDOWN = True
QUERY_CONTROLLER = QueryCliController()

_ASSISTANT_COMMAND_HELP = (
    "Assistant run template. Supports {model}, {prompt}, and {prompt_file}. "
    "If omitted, TASKSIFT_ASSISTANT_COMMAND is used."
)


@click.group()
@click.version_option(version=__version__, prog_name="tasksift")
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity.",
)
def tasksift(log_level: str) -> None:
    """Task query CLI."""

    logging.basicConfig(
        level=log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


@tasksift.command("search")
@click.argument("query")
@click.option(
    "--tasks",
    "tasks_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="JSON file with the task snapshot.",
)
@click.option(
    "--mode",
    type=click.Choice(["search", "chat"]),
    default="search",
    show_default=True,
    help="Which configured sort sequence to use.",
)
@click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reference date for due-date filters (defaults to the current date).",
)
@click.option(
    "--limit",
    type=click.IntRange(min=1, max=1000),
    default=20,
    show_default=True,
    help="Max number of tasks to print.",
)
@click.option("--assistant-command", default=None, help=_ASSISTANT_COMMAND_HELP)
def search(  # noqa: PLR0913
    query: str,
    tasks_path: Path,
    mode: str,
    today: datetime | None,
    limit: int,
    assistant_command: str | None,
) -> None:
    """Rank tasks for a natural-language or syntax query."""

    _emit_lines(
        _run(
            QUERY_CONTROLLER.search,
            SearchCommand(
                tasks_path=tasks_path,
                query=query,
                mode=mode,
                today=today.date() if today else None,
                limit=limit,
                assistant_command=assistant_command,
            ),
        ),
    )


@tasksift.command("parse")
@click.argument("query")
@click.option("--assistant-command", default=None, help=_ASSISTANT_COMMAND_HELP)
def parse(query: str, assistant_command: str | None) -> None:
    """Show how a query is interpreted."""

    _emit_lines(
        _run(
            QUERY_CONTROLLER.parse,
            ParseCommand(query=query, assistant_command=assistant_command),
        ),
    )


@tasksift.command("analyze")
@click.argument("query")
@click.option(
    "--tasks",
    "tasks_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    required=True,
    help="JSON file with the task snapshot.",
)
@click.option(
    "--today",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="Reference date for due-date filters (defaults to the current date).",
)
@click.option("--assistant-command", default=None, help=_ASSISTANT_COMMAND_HELP)
def analyze(
    query: str,
    tasks_path: Path,
    today: datetime | None,
    assistant_command: str | None,
) -> None:
    """Rank tasks and ask the assistant which ones to work on."""

    result = _run(
        QUERY_CONTROLLER.analyze,
        AnalyzeCommand(
            tasks_path=tasks_path,
            query=query,
            today=today.date() if today else None,
            assistant_command=assistant_command,
        ),
    )
    _emit_lines(result.lines)
    if not result.success:
        raise click.ClickException("Task analysis failed.")


def _run(handler, command):
    try:
        return handler(command)
    except (TypeError, ValueError) as error:
        raise click.ClickException(str(error)) from error


def _emit_lines(lines: list[str]) -> None:
    for line in lines:
        click.echo(line)


if __name__ == "__main__":  # pragma: no cover
    tasksift()
