"""Configuration: serve settings, exec-target resolution, and XDG paths.

This module handles everything the bridge needs to know before it binds a
socket:

* **Serve settings** -- :func:`resolve_serve_settings` merges CLI flags,
  ``CLIBRIDGE_*`` environment variables, the project-local
  ``./clibridge.json`` and built-in defaults into a validated
  :class:`~clibridge.models.ServeSettings`.
* **Exec target** -- :func:`resolve_exec_target` works out how to re-invoke
  the running CLI: a console script or frozen binary directly, a script
  through the current interpreter, a ``python -m`` package with ``-m``.
* **Server config** -- :func:`build_server_config` snapshots the command
  tree and freezes it together with the exec target into a
  :class:`~clibridge.models.ServerConfig`.
* **Directory layout** -- XDG Base Directory compliant on Linux/BSD,
  ``~/.clibridge/`` on macOS and Windows (crash logs only).
"""

from __future__ import annotations

import json
import os
import platform
import shutil
import sys
from pathlib import Path
from typing import Any, Mapping, Optional, Sequence

import click
import typer
from pydantic import ValidationError

from clibridge.exceptions import ConfigError
from clibridge.models import ServerConfig, ServeSettings
from clibridge.tree.builder import build_command_tree
from clibridge.tree.sources import as_source

_APP_NAME = "clibridge"
_PROJECT_CONFIG_FILENAME = "clibridge.json"

ENV_PREFIX = "CLIBRIDGE_"
"""Prefix of environment variables that override serve settings."""


# --- XDG path resolution ---


def _is_xdg_platform() -> bool:
    """Return True if the platform supports XDG Base Directory spec (Linux/FreeBSD)."""
    return platform.system() == "Linux" or platform.system().endswith("BSD")


def _xdg_base(env_var: str, default_segments: tuple[str, ...]) -> Path:
    """Resolve an XDG base directory from an env var with fallback segments under $HOME."""
    env_value = os.environ.get(env_var, "")
    if env_value:
        return Path(env_value)
    base = Path.home()
    for seg in default_segments:
        base = base / seg
    return base


def get_data_dir() -> Path:
    """Return the data directory (crash logs), creating it if necessary.

    On Linux/BSD: ``$XDG_DATA_HOME/clibridge/`` (default
    ``~/.local/share/clibridge/``). On macOS/Windows: ``~/.clibridge/``.
    """
    if _is_xdg_platform():
        path = _xdg_base("XDG_DATA_HOME", (".local", "share")) / _APP_NAME
    else:
        path = Path.home() / f".{_APP_NAME}"
    path.mkdir(parents=True, exist_ok=True)
    return path


# --- Serve settings ---


def load_project_config() -> Optional[dict[str, Any]]:
    """Load project-local settings from ``./clibridge.json``.

    Returns:
        The parsed JSON object, or ``None`` if the file does not exist.

    Raises:
        ConfigError: If the file is not valid JSON or not an object.
    """
    path = Path.cwd() / _PROJECT_CONFIG_FILENAME
    if not path.is_file():
        return None
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, OSError) as exc:
        raise ConfigError(f"Invalid project config at {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigError(f"Invalid project config at {path}: expected a JSON object")
    return data


def _env_settings(environ: Mapping[str, str]) -> dict[str, str]:
    values: dict[str, str] = {}
    for field in ServeSettings.model_fields:
        value = environ.get(ENV_PREFIX + field.upper())
        if value:
            values[field] = value
    return values


def resolve_serve_settings(
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> ServeSettings:
    """Resolve serve settings with full precedence chain.

    Precedence (high to low):
        1. Keyword *overrides* that are not ``None`` (CLI flags)
        2. Environment variables (``CLIBRIDGE_HOST``, ``CLIBRIDGE_PORT``,
           ``CLIBRIDGE_TIMEOUT``, ``CLIBRIDGE_MAX_CONCURRENCY``,
           ``CLIBRIDGE_QUEUE_TIMEOUT``)
        3. Project config (``./clibridge.json``)
        4. Defaults

    Raises:
        ConfigError: If a merged value fails validation.
    """
    merged: dict[str, Any] = {}
    project = load_project_config()
    if project:
        merged.update({k: v for k, v in project.items() if k in ServeSettings.model_fields})
    merged.update(_env_settings(os.environ if environ is None else environ))
    merged.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ServeSettings.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid serve settings: {exc}") from exc


# --- Exec target ---


def resolve_exec_target(argv0: Optional[str] = None) -> tuple[str, tuple[str, ...]]:
    """Determine how to re-run the current CLI.

    Args:
        argv0: The program path as invoked; ``sys.argv[0]`` by default.

    Returns:
        ``(exec_path, exec_args)`` -- an absolute executable and the
        arguments that must precede the sub-command.

    Raises:
        ConfigError: If the program cannot be located (e.g. ``python -c``).
    """
    argv0 = sys.argv[0] if argv0 is None else argv0
    if not argv0 or argv0 == "-c":
        raise ConfigError("Cannot determine the running program to re-invoke")

    if os.sep not in argv0 and not Path(argv0).exists():
        located = shutil.which(argv0)
        if located is None:
            raise ConfigError(f"Cannot locate '{argv0}' on PATH")
        argv0 = located

    path = Path(os.path.abspath(argv0))
    if not path.is_file():
        raise ConfigError(f"Program '{path}' does not exist")

    if path.name == "__main__.py":
        spec = getattr(sys.modules.get("__main__"), "__spec__", None)
        if spec is not None and spec.name:
            package = spec.name.rsplit(".", 1)[0] if spec.name.endswith(".__main__") else spec.name
            return sys.executable, ("-m", package)

    if path.suffix != ".py" and os.access(path, os.X_OK):
        return str(path), ()
    return sys.executable, (str(path),)


def build_server_config(
    target: Any,
    root_name: Optional[str] = None,
    description: Optional[str] = None,
    version: Optional[str] = None,
    exec_path: Optional[str] = None,
    exec_args: Optional[Sequence[str]] = None,
) -> ServerConfig:
    """Snapshot *target*'s command tree into an immutable server config.

    Args:
        target: A Typer app, click command, or
            :class:`~clibridge.tree.sources.CommandSource`.
        root_name: Name of the root command in URLs and the document title;
            the target's own name by default.
        description: Document description; the root command's help text by
            default.
        version: Document version; ``"1.0.0"`` when empty.
        exec_path: Program to re-invoke; resolved from ``sys.argv[0]`` by
            default.
        exec_args: Arguments placed before the sub-command. Only used
            together with *exec_path*.

    Raises:
        ConfigError: If the root name or exec target cannot be determined.
    """
    source = as_source(target, name=root_name)
    root = build_command_tree(source)
    if root_name and root.name != root_name:
        root = root.model_copy(update={"name": root_name})
    if not root.name:
        raise ConfigError("The root command has no name; pass root_name")

    if exec_path is None:
        exec_path, leading = resolve_exec_target()
    else:
        exec_path = os.path.abspath(exec_path) if os.sep in exec_path else exec_path
        leading = tuple(exec_args or ())

    if description is None:
        description = _root_help(target)

    return ServerConfig(
        root=root,
        root_name=root.name,
        exec_path=exec_path,
        exec_args=leading,
        description=description,
        version=version,
    )


def _root_help(target: Any) -> str:
    if isinstance(target, typer.Typer):
        target = typer.main.get_command(target)
    if isinstance(target, click.Command):
        return (target.help or "").strip()
    return getattr(target, "summary", "") or ""
