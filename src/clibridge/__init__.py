"""clibridge -- Serve a click/Typer command tree as a Swagger-described HTTP API.

This package walks a hierarchical CLI definition (a click group or a Typer
application) once at startup and exposes it two ways:

* a Swagger 2.0 document describing every visible sub-command as a ``GET``
  operation whose query parameters are the command's flags, and
* an HTTP service that maps ``/<root>/<sub>/...?flag=value&argv=a,b`` back
  to the equivalent command line, runs it as a subprocess and returns the
  captured output.

Typical workflow::

    from clibridge import add_server_command

    add_server_command(app)   # adds a hidden ``server`` sub-command
    app()                     # mycli server --port 8000

Modules:
    app: Typer application for the ``clibridge`` console script.
    models: Pydantic models shared across the package.
    config: Serve settings, exec-target resolution, XDG paths.
    exceptions: Exception hierarchy with exit-code and HTTP status mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stderr diagnostics with Rich support.
    integration: The ``server`` sub-command for host CLIs.
"""

__version__ = "0.1.0"

from clibridge.integration import add_server_command  # noqa: E402

__all__ = ["__version__", "add_server_command"]
