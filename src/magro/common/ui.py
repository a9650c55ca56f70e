"""Shared UI utilities: colors, styling, and interactive selection."""

from __future__ import annotations

from pathlib import Path

import click
from InquirerPy import inquirer

# Colors using click.style
CYAN = "cyan"
GREEN = "green"
YELLOW = "yellow"
RED = "red"
DIM = "bright_black"


def style_error(msg: str) -> str:
    """Style an error message."""
    return click.style(f"✗ {msg}", fg=RED)


def style_success(msg: str) -> str:
    """Style a success message."""
    return click.style(f"✓ {msg}", fg=GREEN)


def style_info(msg: str) -> str:
    """Style an info message."""
    return click.style(f"→ {msg}", fg=CYAN)


def style_warn(msg: str) -> str:
    """Style a warning message."""
    return click.style(f"! {msg}", fg=YELLOW)


def style_dim(msg: str) -> str:
    """Style dim/muted text."""
    return click.style(msg, fg=DIM)


def shorten_home(path: Path | str) -> str:
    """Replace the home directory prefix with ``~`` for display."""
    text = str(path)
    home = str(Path.home())
    if text == home or text.startswith(home + "/"):
        return "~" + text[len(home) :]
    return text


def fuzzy_select(options: list[str], message: str) -> int | None:
    """Let the user pick one of ``options``; index of the pick, None on cancel.

    Matching is by exact substring, so a repository path typed in part
    narrows the list the way ``grep`` would.
    """
    try:
        choice = inquirer.fuzzy(  # type: ignore[attr-defined]
            message=message,
            choices=options,
            match_exact=True,
        ).execute()
    except KeyboardInterrupt:
        return None
    return None if choice is None else options.index(choice)
