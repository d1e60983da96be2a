"""
Console output helpers built on rich.

Environment handling:
- Respects NO_COLOR and FORCE_COLOR environment variables
- Falls back to plain text when stdout is not a terminal
"""

from __future__ import annotations

import os
import sys

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.theme import Theme

# Nord color palette (https://www.nordtheme.com/)
NDP_THEME = Theme(
    {
        "info": "#88C0D0",  # Nord frost - light blue
        "success": "#A3BE8C",  # Nord aurora - green
        "warning": "#EBCB8B",  # Nord aurora - yellow
        "error": "#BF616A bold",  # Nord aurora - red
        "muted": "#D8DEE9",  # Nord snow storm - light grey
    }
)

console = Console(
    theme=NDP_THEME,
    force_terminal=os.environ.get("FORCE_COLOR") is not None,
    no_color=os.environ.get("NO_COLOR") is not None,
)
err_console = Console(theme=NDP_THEME, stderr=True)


def _is_interactive() -> bool:
    """Check if we're in an interactive terminal environment."""
    ci_vars = ["CI", "GITHUB_ACTIONS", "JENKINS_URL", "GITLAB_CI"]
    if any(os.environ.get(var) for var in ci_vars):
        return False
    return sys.stdout.isatty()


def success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]✓ {message}[/success]")


def error(message: str) -> None:
    """Print an error message to stderr."""
    err_console.print(f"[error]✗ {escape(message)}[/error]", highlight=False)


def warning(message: str) -> None:
    """Print a warning message."""
    console.print(f"[warning]⚠ {message}[/warning]")


def info(message: str) -> None:
    """Print an info message."""
    console.print(f"[info]ℹ {message}[/info]")


def header(title: str) -> None:
    """Print a section header."""
    console.print()
    console.print(Panel(f"[bold]{title}[/bold]", border_style="cyan"))


def print_lines(lines: list[str], title: str | None = None) -> None:
    """Print summary lines under an optional title."""
    if title:
        console.print(f"\n[bold]{title}[/bold]")
    for line in lines:
        console.print(f"  {escape(line)}", highlight=False)


NDP_BANNER = """
[#88C0D0]███╗   ██╗██████╗ ██████╗       ███████╗██████╗[/#88C0D0]
[#88C0D0]████╗  ██║██╔══██╗██╔══██╗      ██╔════╝██╔══██╗[/#88C0D0]
[#88C0D0]██╔██╗ ██║██║  ██║██████╔╝█████╗█████╗  ██████╔╝[/#88C0D0]
[#88C0D0]██║╚██╗██║██║  ██║██╔═══╝ ╚════╝██╔══╝  ██╔═══╝[/#88C0D0]
[#88C0D0]██║ ╚████║██████╔╝██║           ███████╗██║[/#88C0D0]
[#88C0D0]╚═╝  ╚═══╝╚═════╝ ╚═╝           ╚══════╝╚═╝[/#88C0D0]
"""


def print_banner() -> None:
    """Print ASCII banner (only in interactive terminals, not CI)."""
    if _is_interactive() or os.environ.get("FORCE_COLOR"):
        console.print(NDP_BANNER)
