"""Command tree -- snapshot a CLI definition as an immutable tree.

Sub-modules:

* :mod:`~clibridge.tree.sources` -- The :class:`CommandSource` capability
  interface and its click, Typer and in-memory adapters, plus persistent
  option support for click groups.
* :mod:`~clibridge.tree.builder` -- The depth-first walk that resolves flag
  inheritance and drops hidden and reserved commands.
"""

from clibridge.tree.builder import build_command_tree, describe_tree
from clibridge.tree.sources import (
    ClickCommandSource,
    CommandSource,
    PersistentGroup,
    PersistentOption,
    PersistentTyperGroup,
    StaticCommand,
    as_source,
    from_typer,
    inherited_value,
)

__all__ = [
    "build_command_tree",
    "describe_tree",
    "ClickCommandSource",
    "CommandSource",
    "PersistentGroup",
    "PersistentOption",
    "PersistentTyperGroup",
    "StaticCommand",
    "as_source",
    "from_typer",
    "inherited_value",
]
