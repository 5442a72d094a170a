"""Run mapped command lines as subprocesses.

:class:`CommandExecutor` spawns the program synchronously -- the calling
request thread waits for the child to exit -- and captures stdout and
stderr separately, decoded as UTF-8 with undecodable bytes replaced by
U+FFFD. A spawn failure or a non-zero exit raises
:class:`~clibridge.exceptions.ExecutionError`; output of a failed run is
only reported through the error.

The number of children running at once is bounded by a semaphore. A
request that finds every slot taken waits up to ``queue_timeout`` seconds
and is then rejected with :class:`~clibridge.exceptions.ExecutorBusyError`
without spawning anything. There is no execution timeout, and a child is
not killed when its request is abandoned.
"""

from __future__ import annotations

import subprocess
import threading
from typing import Optional

from clibridge.exceptions import ExecutionError, ExecutorBusyError
from clibridge.models import CommandResult, Invocation
from clibridge.output import debug


class CommandExecutor:
    """Bounded, synchronous subprocess runner.

    Args:
        max_concurrency: Maximum number of children running at once.
            ``0`` removes the bound.
        queue_timeout: Seconds to wait for a free slot before rejecting.
    """

    def __init__(self, max_concurrency: int = 8, queue_timeout: float = 30.0) -> None:
        self._max_concurrency = max_concurrency
        self._queue_timeout = queue_timeout
        self._slots: Optional[threading.BoundedSemaphore] = (
            threading.BoundedSemaphore(max_concurrency) if max_concurrency > 0 else None
        )

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    def run(self, invocation: Invocation) -> CommandResult:
        """Run *invocation* to completion and return its captured output.

        Raises:
            ExecutorBusyError: If no slot frees up within the queue timeout.
            ExecutionError: If the program cannot be started or exits
                with a non-zero status.
        """
        if self._slots is None:
            return _spawn(invocation)

        if not self._slots.acquire(timeout=self._queue_timeout):
            raise ExecutorBusyError(
                f"all {self._max_concurrency} execution slots busy "
                f"after {self._queue_timeout:g}s"
            )
        try:
            return _spawn(invocation)
        finally:
            self._slots.release()


def _spawn(invocation: Invocation) -> CommandResult:
    argv = invocation.argv
    debug(f"Running: {subprocess.list2cmdline(argv)}")
    try:
        completed = subprocess.run(
            argv,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            stdin=subprocess.DEVNULL,
        )
    except OSError as exc:
        raise ExecutionError(f"cannot start {argv[0]}: {exc}") from exc

    if completed.returncode != 0:
        message = f"{argv[0]} exited with status {completed.returncode}"
        stderr = completed.stderr.strip()
        if stderr:
            message += f": {stderr}"
        raise ExecutionError(
            message,
            returncode=completed.returncode,
            stderr=completed.stderr,
        )

    return CommandResult(stdout=completed.stdout, stderr=completed.stderr)
