import logging
from dataclasses import replace
from typing import Optional

import typer

from book import Book, BookBuilder
from config import settings
from library import LibraryManager
from notifications import build_notification_service
from observers import UserObserver
from utils.ui_helpers import set_output_mode, print_list_result, print_loans_result, print_stats_result

APP_NAME = settings.app_name
DEFAULT_LOG_LEVEL = "DEBUG" if settings.debug else settings.log_level

# --- Typer CLI application ---
app = typer.Typer(help=APP_NAME)

def _show_version(value: bool):
    if value:
        print(f"{settings.app_name} {settings.app_version}")
        raise typer.Exit()

@app.callback()
def _global_options(
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    log_level: str = typer.Option(DEFAULT_LOG_LEVEL, "--log-level", help="Logging level (DEBUG, INFO, WARNING, ERROR)"),
    version: bool = typer.Option(False, "--version", help="Show the version and exit", callback=_show_version, is_eager=True),
):
    """Global options for the CLI (e.g. output mode)."""
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        print(f"Error: Unsupported log level: {log_level}")
        raise typer.Exit(code=1)
    logging.basicConfig(level=level, format="%(levelname)s: %(name)s: %(message)s")
    if output:
        set_output_mode(output)

@app.command("demo")
def cli_demo(
    backend: str = typer.Option(settings.notification_backend, "--backend", "-b", help="Notification backend: console | log | memory | webhook"),
    user: str = typer.Option("user01", "--user", "-u", help="User who borrows the book"),
):
    """Run the demonstration sequence against a fresh in-memory library."""
    try:
        notifier = build_notification_service(replace(settings, notification_backend=backend))
    except ValueError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)

    try:
        lib = LibraryManager.initialize(notifier)
    except RuntimeError as e:
        print(f"Error: {e}")
        raise typer.Exit(code=1)

    lib.subscribe(UserObserver(user, notifier))

    lib.add_book(Book("The Great Gatsby", "F. Scott Fitzgerald", "123456789"))
    lib.add_book(Book("1984", "George Orwell", "987654321"))
    lib.add_book(
        BookBuilder()
        .with_author("Gabriel Garcia Marquez")
        .with_title("One Hundred Years of Solitude")
        .with_isbn("555666777")
        .build()
    )

    lib.loan_book("123456789", user)
    print("Active loans:")
    print_loans_result(lib.active_loans())
    lib.return_book("123456789", user)

    print("Books in the library:")
    print_list_result(lib.list_books())
    print_stats_result(lib.get_statistics())


if __name__ == "__main__":
    app()
