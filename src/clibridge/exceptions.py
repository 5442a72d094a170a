"""Exception hierarchy for clibridge.

All exceptions inherit from :class:`ClibridgeError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`clibridge.exit_codes`
and a ``status_code`` used when the error ends an HTTP request. The
top-level handler in :func:`clibridge.app.main` catches ``ClibridgeError``
and exits with the appropriate code; the request router turns the same
errors into ``500`` responses.

Subclass hierarchy::

    ClibridgeError (exit 1)
    +-- UnknownPathError    (exit 4)
    +-- ExecutionError      (exit 5)
    |   +-- ExecutorBusyError
    +-- SpecGenerationError (exit 7)
    +-- SourceLoadError     (exit 8)
    +-- ConfigError         (exit 1)
"""

from __future__ import annotations

from typing import Optional, Sequence

from clibridge.exit_codes import (
    EXIT_EXECUTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_NOT_FOUND,
    EXIT_SOURCE_LOAD_ERROR,
    EXIT_SPEC_ERROR,
)


class ClibridgeError(Exception):
    """Base exception for all clibridge errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`clibridge.exit_codes`, and a ``status_code`` for
    the HTTP response that reports it.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE
    status_code: int = 500

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class UnknownPathError(ClibridgeError):
    """Raised when a request path segment matches no child command.

    Args:
        segment: The path segment that could not be resolved.
        resolved: The segments resolved before the failure, root excluded.
    """

    exit_code = EXIT_NOT_FOUND

    def __init__(self, segment: str, resolved: Sequence[str] = ()):
        self.segment = segment
        self.resolved = tuple(resolved)
        where = "/".join(self.resolved) or "<root>"
        super().__init__(f"unknown command '{segment}' under '{where}'")


class SpecGenerationError(ClibridgeError):
    """Raised when the Swagger document cannot be serialised."""

    exit_code = EXIT_SPEC_ERROR


class ExecutionError(ClibridgeError):
    """Raised when a bridged command fails to start or exits non-zero.

    Args:
        message: Description of the failure.
        returncode: The child's exit status, ``None`` if it never started.
        stderr: Captured standard error of the child, if any.
    """

    exit_code = EXIT_EXECUTION_ERROR

    def __init__(
        self,
        message: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.returncode = returncode
        self.stderr = stderr


class ExecutorBusyError(ExecutionError):
    """Raised when every execution slot stays taken past the queue timeout."""


class SourceLoadError(ClibridgeError):
    """Raised when a ``module:attr`` target cannot be imported or is not a CLI."""

    exit_code = EXIT_SOURCE_LOAD_ERROR


class ConfigError(ClibridgeError):
    """Raised for configuration problems (bad env values, invalid project file)."""

    exit_code = EXIT_GENERIC_FAILURE
