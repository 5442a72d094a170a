"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~clibridge.exceptions.ClibridgeError` subclass.
Shell wrappers can inspect the exit code of ``clibridge spec`` or
``clibridge serve`` to tell a bad target from a broken document without
parsing stderr.

Example::

    $ clibridge spec mypkg.cli:nope
    $ echo $?
    8   # EXIT_SOURCE_LOAD_ERROR -- the target could not be imported
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments."""

EXIT_NOT_FOUND = 4
"""A request path did not resolve to a known sub-command."""

EXIT_EXECUTION_ERROR = 5
"""A bridged command failed to start or exited with a non-zero status."""

EXIT_SPEC_ERROR = 7
"""The Swagger document could not be generated or serialised."""

EXIT_SOURCE_LOAD_ERROR = 8
"""The CLI definition named on the command line could not be loaded."""
