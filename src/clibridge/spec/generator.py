"""Generate the Swagger 2.0 document for a command tree.

Every command in the tree becomes one path whose key is the ``/``-joined
chain of names from the root (root included), e.g. ``/example/add``. Each
path carries a single ``get`` operation:

* one ``string`` query parameter per flag, in the command's flag order,
* a trailing ``argv`` parameter -- a comma-separated array of positional
  arguments,
* a single ``200: OK`` response.

The document is rebuilt from the live tree on every call, so it cannot drift
from what the router actually serves.
"""

from __future__ import annotations

import yaml

from clibridge.exceptions import SpecGenerationError
from clibridge.models import (
    CommandNode,
    ServerConfig,
    SpecDocument,
    SpecInfo,
    SpecOperation,
    SpecParameter,
)

ARGV_PARAM = "argv"
"""Reserved query parameter carrying positional arguments."""


def path_key(names: tuple[str, ...]) -> str:
    """Return the Swagger path for a root-to-node name chain."""
    return "/" + "/".join(names)


def build_operation(node: CommandNode) -> SpecOperation:
    """Describe *node* as a ``get`` operation."""
    parameters = [
        SpecParameter(name=flag.name, description=flag.help or None)
        for flag in node.flags
    ]
    parameters.append(
        SpecParameter(
            name=ARGV_PARAM,
            type="array",
            items={"type": "string"},
            collection_format="csv",
        )
    )
    return SpecOperation(summary=node.summary, parameters=parameters)


def generate_spec(config: ServerConfig) -> SpecDocument:
    """Build the :class:`~clibridge.models.SpecDocument` for *config*'s tree.

    Children are visited in declaration order, so repeated calls (and
    repeated runs) yield identical documents.
    """
    paths = {
        path_key(names): {"get": build_operation(node)}
        for names, node in config.root.walk()
    }
    return SpecDocument(
        info=SpecInfo(
            description=config.description,
            version=config.version,
            title=config.root_name,
        ),
        paths=paths,
    )


def render_spec(config: ServerConfig) -> str:
    """Serialise the document for *config* as YAML.

    The ``swagger``/``info`` header block comes first, followed by ``paths``.

    Raises:
        SpecGenerationError: If the document cannot be serialised. No
            partial text is returned.
    """
    try:
        document = generate_spec(config).to_dict()
        return yaml.safe_dump(
            document,
            sort_keys=False,
            default_flow_style=False,
            allow_unicode=True,
        )
    except (yaml.YAMLError, UnicodeError, ValueError) as exc:
        raise SpecGenerationError(f"Failed to generate swagger file: {exc}") from exc
