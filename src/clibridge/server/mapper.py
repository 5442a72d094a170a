"""Translate a request path and query into a command line.

``GET /example/add?val=3&argv=x,y`` becomes ``add --val=3 x y``:

1. The path is split on ``/`` and each segment percent-decoded; the leading
   empty segment and the root name are dropped (the router has already
   checked the root).
2. Each remaining segment must name a child of the current command. It
   advances the walk and is appended to the arguments, so the resolved path
   doubles as the sub-command invocation.
3. For every flag of the final command, in flag order, a non-empty query
   value adds ``--<name>=<value>``. Switch flags (click ``is_flag``
   options, which take no value) add a bare ``--<name>`` when the value is
   truthy.
4. A non-empty ``argv`` value is split on ``,`` and appended last.

Nothing is executed here.
"""

from __future__ import annotations

from typing import Mapping, Optional
from urllib.parse import parse_qs, unquote

from clibridge.exceptions import UnknownPathError
from clibridge.models import CommandNode, Flag, Invocation, ServerConfig
from clibridge.spec.generator import ARGV_PARAM

_TRUTHY = frozenset({"1", "true", "t", "yes", "y", "on"})


def parse_query(query: str) -> dict[str, str]:
    """Parse a raw query string; the first value of a repeated key wins."""
    parsed = parse_qs(query, keep_blank_values=True)
    return {key: values[0] for key, values in parsed.items() if values}


def path_segments(path: str) -> list[str]:
    """Return the percent-decoded command segments of *path*, root name excluded.

    Segments are split before decoding, so an encoded ``%2F`` stays inside
    its segment.
    """
    segments = path.split("/")[2:]
    return [unquote(segment) for segment in segments if segment]


def resolve_node(root: CommandNode, segments: list[str]) -> CommandNode:
    """Walk *segments* from *root*.

    Raises:
        UnknownPathError: On the first segment that names no child.
    """
    node = root
    resolved: list[str] = []
    for segment in segments:
        child = node.child(segment)
        if child is None:
            raise UnknownPathError(segment, resolved)
        node = child
        resolved.append(segment)
    return node


def flag_argument(flag: Flag, value: str) -> Optional[str]:
    """Return the command-line form of *flag* set to *value*, if any."""
    if flag.kind == "switch":
        return f"--{flag.name}" if value.lower() in _TRUTHY else None
    return f"--{flag.name}={value}"


def map_request(
    config: ServerConfig,
    path: str,
    query: Mapping[str, str],
) -> Invocation:
    """Map a request to the :class:`~clibridge.models.Invocation` it stands for.

    Args:
        config: The server configuration holding the tree and exec target.
        path: The request path, e.g. ``/example/add``.
        query: Query parameters, one value per name.

    Returns:
        The executable, its leading arguments and the derived arguments.

    Raises:
        UnknownPathError: If a path segment names no sub-command.
    """
    segments = path_segments(path)
    node = resolve_node(config.root, segments)
    args = list(segments)

    for flag in node.flags:
        value = query.get(flag.name)
        if not value:
            continue
        arg = flag_argument(flag, value)
        if arg is not None:
            args.append(arg)

    positional = query.get(ARGV_PARAM)
    if positional:
        args.extend(positional.split(","))

    return Invocation(
        executable=config.exec_path,
        leading=config.exec_args,
        args=tuple(args),
    )
