"""
Unified console output for the agent run log, built on rich.

Everything the pipeline narrates goes through these helpers so that the
CLI, the tests and the stage components share one styled output stream.
"""
from rich.console import Console as RichConsole
from rich.markup import escape
from rich.theme import Theme
from rich.table import Table
from typing import Any, Iterable, Optional, Sequence

CUSTOM_THEME = Theme({
    "info": "cyan bold",
    "success": "green bold",
    "warning": "yellow bold",
    "error": "red bold",
    "debug": "dim",
    "heading": "bold underline",
    "path": "magenta",
    "model": "blue",
    "prompt": "green",
})

# Shared instances; errors go to stderr, the rest of the run log to stdout
console = RichConsole(theme=CUSTOM_THEME, soft_wrap=True)
err_console = RichConsole(theme=CUSTOM_THEME, soft_wrap=True, stderr=True)

_verbose = False


def set_verbose(enabled: bool) -> None:
    """Turn debug-level output on or off."""
    global _verbose
    _verbose = bool(enabled)


def info(message: str):
    console.print(f"💡 [info]INFO[/info]: {escape(message)}", highlight=False)


def success(message: str):
    console.print(f"✅ [success]SUCCESS[/success]: {escape(message)}", highlight=False)


def warning(message: str):
    console.print(f"⚠️  [warning]WARNING[/warning]: {escape(message)}", highlight=False)


def error(message: str):
    err_console.print(f"❌ [error]ERROR[/error]: {escape(message)}", highlight=False)


def debug(message: str):
    """Printed only in verbose mode."""
    if _verbose:
        console.print(f"🐞 [debug]DEBUG: {escape(message)}[/debug]", highlight=False)


def heading(title: str):
    console.print(f"\n🎯 [heading]{escape(title)}[/heading]\n")


def code_block(code: str, title: Optional[str] = None):
    """Print raw text without markup interpretation."""
    if title:
        console.print(f"\n[bold]{escape(title)}[/bold]")
    console.print(code, markup=False, highlight=False)


def print_table(rows: Iterable[Sequence[Any]], headers: Sequence[str], title: Optional[str] = None):
    table = Table(title=title, show_header=True, header_style="bold magenta")
    for h in headers:
        table.add_column(h)
    for row in rows:
        table.add_row(*[escape(str(cell)) for cell in row])
    console.print(table)


def show_welcome():
    console.print("\n" + "═" * 50, style="bold blue")
    console.print("🚀 [bold green]DevAgent[/bold green] - AI developer agent", end="")
    console.print(" 🤖", emoji=True)
    console.print("═" * 50 + "\n", style="bold blue")
