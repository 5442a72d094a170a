"""Build the immutable :class:`~clibridge.models.CommandNode` tree.

**Algorithm summary**

1. Visit the definition depth-first, starting at the root with no inherited
   flags.
2. A command's flag list is the inherited flags (in ancestor-declaration
   order) followed by its own flags. A name already inherited is not listed
   again.
3. The flags a command passes down are the flags it inherited plus its own
   inheritable ones. Siblings never see each other's flags.
4. Hidden children and children named with a reserved prefix (``help``,
   ``completion``) are skipped together with their whole subtree.

The definition is walked once; the result is never mutated afterwards.
"""

from __future__ import annotations

from typing import Sequence

from clibridge.models import CommandNode, Flag
from clibridge.tree.sources import CommandSource

RESERVED_PREFIXES: tuple[str, ...] = ("help", "completion")
"""Name prefixes of framework-generated commands that are never exposed."""


def is_exposed(source: CommandSource) -> bool:
    """Return ``True`` if *source* belongs in the tree."""
    return not source.hidden and not source.name.startswith(RESERVED_PREFIXES)


def build_command_tree(source: CommandSource) -> CommandNode:
    """Snapshot *source* and its visible descendants as a :class:`CommandNode`.

    The root itself is always included, even when hidden.

    Args:
        source: Any object implementing
            :class:`~clibridge.tree.sources.CommandSource`.

    Returns:
        The root :class:`~clibridge.models.CommandNode`.
    """
    return _build(source, ())


def _build(source: CommandSource, inherited: Sequence[Flag]) -> CommandNode:
    flags = _merge(inherited, source.own_flags())
    passed_down = _merge(inherited, source.inheritable_flags())

    children = tuple(
        _build(child, passed_down)
        for child in source.children()
        if is_exposed(child)
    )
    return CommandNode(
        name=source.name,
        summary=source.summary or "",
        flags=flags,
        children=children,
    )


def _merge(first: Sequence[Flag], second: Sequence[Flag]) -> tuple[Flag, ...]:
    """Concatenate, dropping flags of *second* whose name is already present."""
    merged = list(first)
    seen = {flag.name for flag in merged}
    for flag in second:
        if flag.name not in seen:
            merged.append(flag)
            seen.add(flag.name)
    return tuple(merged)


def describe_tree(node: CommandNode) -> str:
    """Render *node* on one line as ``name: (flags) [children]``.

    A command with neither flags nor children renders as its bare name.
    """
    if not node.flags and not node.children:
        return node.name
    flags = ", ".join(node.flag_names)
    children = ", ".join(describe_tree(child) for child in node.children)
    return f"{node.name}: ({flags}) [{children}]"
