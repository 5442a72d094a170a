"""Output system with strict stdout/stderr discipline.

Follows `clig.dev <https://clig.dev/>`_ conventions:

* **stdout** -- primary data only (the YAML document of ``clibridge spec``,
  the tree of ``clibridge tree``). This is what downstream tools pipe.
* **stderr** -- all diagnostics: server start-up, per-request log lines,
  request failures, debug traces.
* **Colour control** -- respects ``NO_COLOR``, ``TERM=dumb``, and the
  ``--no-color`` CLI flag.

The module exposes two layers:

1. :class:`OutputManager` -- a stateful object holding the Rich consoles
   and quiet/verbose/timestamp flags. Created once in
   :func:`~clibridge.app.main_callback` (or by the ``server`` sub-command of
   a host CLI) and installed via :func:`set_output`.
2. Module-level convenience functions (:func:`info`, :func:`error`,
   :func:`debug`, etc.) that delegate to the global ``OutputManager`` so
   request threads do not need to pass the manager around.
"""

from __future__ import annotations

import os
import sys
import threading
from datetime import datetime
from typing import Optional

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree


class OutputManager:
    """Central manager for all clibridge output.

    Maintains two Rich :class:`~rich.console.Console` instances -- one for
    stdout (data) and one for stderr (diagnostics). Diagnostic writes are
    serialised with a lock because request threads log concurrently.

    Args:
        no_color: Disable all colour and Rich markup.
        quiet: Suppress informational messages (errors and warnings still
            print).
        verbose: Enable debug-level messages.
        timestamps: Prefix every diagnostic line with the local time, as a
            long-running server does.
    """

    def __init__(
        self,
        no_color: bool = False,
        quiet: bool = False,
        verbose: bool = False,
        timestamps: bool = False,
    ) -> None:
        self._no_color = no_color or _should_disable_color()
        self._quiet = quiet
        self._verbose = verbose
        self._timestamps = timestamps
        self._lock = threading.Lock()

        self._stdout = Console(file=sys.stdout, no_color=self._no_color)
        self._stderr = Console(
            file=sys.stderr,
            no_color=self._no_color,
            stderr=True,
            highlight=False,
        )

    @property
    def is_quiet(self) -> bool:
        """Whether quiet mode is enabled."""
        return self._quiet

    @property
    def is_verbose(self) -> bool:
        """Whether verbose mode is enabled."""
        return self._verbose

    # ------------------------------------------------------------------ #
    # Data output (stdout)
    # ------------------------------------------------------------------ #

    def print_data(self, text: str) -> None:
        """Print raw text to stdout, appending a newline if missing."""
        sys.stdout.write(text if text.endswith("\n") else text + "\n")
        sys.stdout.flush()

    def print_tree(self, tree: Tree) -> None:
        """Render a Rich tree to stdout (plain text when colour is off)."""
        self._stdout.print(tree)

    # ------------------------------------------------------------------ #
    # Diagnostics (stderr)
    # ------------------------------------------------------------------ #

    def info(self, message: str) -> None:
        """Print an informational message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, escape(message))

    def success(self, message: str) -> None:
        """Print a green success message. Suppressed by ``--quiet``."""
        if not self._quiet:
            self._emit(message, f"[green]{escape(message)}[/green]")

    def warning(self, message: str) -> None:
        """Print a yellow warning. NOT suppressed by ``--quiet``."""
        self._emit(f"Warning: {message}", f"[yellow]Warning:[/yellow] {escape(message)}")

    def error(self, message: str) -> None:
        """Print a bold-red error. Never suppressed."""
        self._emit(f"Error: {message}", f"[bold red]Error:[/bold red] {escape(message)}")

    def debug(self, message: str) -> None:
        """Print a debug message. Only shown when ``--verbose`` is active."""
        if self._verbose:
            self._emit(f"[debug] {message}", f"[dim]\\[debug] {escape(message)}[/dim]")

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _emit(self, plain: str, markup: str) -> None:
        if self._timestamps:
            stamp = datetime.now().strftime("%Y/%m/%d %H:%M:%S")
            plain = f"{stamp} {plain}"
            markup = f"[dim]{stamp}[/dim] {markup}"
        with self._lock:
            if self._no_color:
                print(plain, file=sys.stderr, flush=True)
            else:
                self._stderr.print(markup)


# ------------------------------------------------------------------ #
# Module-level helpers
# ------------------------------------------------------------------ #


def _should_disable_color() -> bool:
    """Check if color should be disabled per clig.dev.

    Returns True when NO_COLOR env var is set (any value) or TERM=dumb.
    """
    if os.environ.get("NO_COLOR") is not None:
        return True
    if os.environ.get("TERM") == "dumb":
        return True
    return False


# ------------------------------------------------------------------ #
# Global output instance (set during app startup)
# ------------------------------------------------------------------ #

_output: Optional[OutputManager] = None


def get_output() -> OutputManager:
    """Return the global :class:`OutputManager`, creating a default one lazily."""
    global _output
    if _output is None:
        _output = OutputManager()
    return _output


def set_output(output: OutputManager) -> None:
    """Install *output* as the global :class:`OutputManager` instance."""
    global _output
    _output = output


def reset_output() -> None:
    """Reset the global :class:`OutputManager` to ``None``.

    Primarily useful in test suites to ensure a clean state between tests.
    """
    global _output
    _output = None


# ------------------------------------------------------------------ #
# Convenience functions that use the global instance
# ------------------------------------------------------------------ #


def print_data(text: str) -> None:
    """Print raw data to stdout via the global OutputManager."""
    get_output().print_data(text)


def print_tree(tree: Tree) -> None:
    """Print a Rich tree to stdout via the global OutputManager."""
    get_output().print_tree(tree)


def info(message: str) -> None:
    """Print info message to stderr via the global OutputManager."""
    get_output().info(message)


def error(message: str) -> None:
    """Print error to stderr via the global OutputManager."""
    get_output().error(message)


def success(message: str) -> None:
    """Print success message to stderr via the global OutputManager."""
    get_output().success(message)


def warning(message: str) -> None:
    """Print warning to stderr via the global OutputManager."""
    get_output().warning(message)


def debug(message: str) -> None:
    """Print debug message to stderr via the global OutputManager."""
    get_output().debug(message)
