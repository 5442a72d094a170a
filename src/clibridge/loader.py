"""Import CLI definitions named as ``module:attribute`` strings."""

from __future__ import annotations

import importlib
import sys
from typing import Any, Optional

import click
import typer

from clibridge.exceptions import SourceLoadError


def load_target(target: str, app_dir: Optional[str] = None) -> Any:
    """Import and return the click command or Typer app named by *target*.

    Args:
        target: ``package.module:attribute``; the attribute may be dotted.
        app_dir: Directory prepended to ``sys.path`` before importing, so
            modules in a project checkout resolve.

    Raises:
        SourceLoadError: If the module or attribute cannot be found, or the
            attribute is not a click command or Typer app.
    """
    module_name, sep, attr_path = target.partition(":")
    if not sep or not module_name or not attr_path:
        raise SourceLoadError(f"Target must look like 'module:attribute', got '{target}'")

    if app_dir is not None and app_dir not in sys.path:
        sys.path.insert(0, app_dir)

    try:
        obj: Any = importlib.import_module(module_name)
    except ImportError as exc:
        raise SourceLoadError(f"Cannot import module '{module_name}': {exc}") from exc

    for attr in attr_path.split("."):
        try:
            obj = getattr(obj, attr)
        except AttributeError as exc:
            raise SourceLoadError(f"'{module_name}' has no attribute '{attr_path}'") from exc

    if not isinstance(obj, (click.Command, typer.Typer)):
        raise SourceLoadError(
            f"'{target}' is a {type(obj).__name__}, not a click command or Typer app"
        )
    return obj


def to_click(obj: Any) -> click.Command:
    """Return the click command behind a loaded target."""
    if isinstance(obj, typer.Typer):
        return typer.main.get_command(obj)
    return obj
