"""
Output formatting utilities for the CLI.

Results go to stdout as indented JSON; status lines are colored by outcome.
"""
import json
from typing import Any

from rich.console import Console
from rich.markup import escape

from ..secrets.domains.models import ApiResult

console = Console(highlight=False, soft_wrap=True)
error_console = Console(stderr=True, highlight=False, soft_wrap=True)


def print_json(data: Any) -> None:
    """Print data as indented JSON."""
    print(json.dumps(data, indent=2))


def print_result(result: ApiResult) -> None:
    """Print the {result, status, statusCode} envelope of an API call."""
    print_json(result.to_dict())


def print_failure(label: str, result: ApiResult) -> None:
    """Print a red label followed by the failing envelope."""
    console.print(f"[bold red]{escape(label)}[/bold red]")
    print_result(result)


def print_set(name: str) -> None:
    console.print(f"[bold green]{escape(name)}[/bold green] set")


def print_deleted(name: str) -> None:
    console.print(f"[bold blue]{escape(name)}[/bold blue] deleted")


def print_error(message: str) -> None:
    """Print an error message to stderr."""
    error_console.print(f"[bold red]Error:[/bold red] {escape(message)}")


def print_failure_message(label: str, message: str) -> None:
    """Print a red label followed by a local error message."""
    console.print(f"[bold red]{escape(label)}[/bold red] {escape(message)}")
