"""
Adapter between the opaque document tree and serializable layers.

:py:func:`to_serializable_tree` derives the lightweight layer tree, and
:py:func:`find_by_path` relocates the original node of a serializable layer
through its path identifier. The opaque tree acts as an arena and the path
string as an index into it, which holds as long as sibling order does not
change between the two calls. Structural edits in between invalidate the
paths; a miss is an ordinary outcome, not an error.

Example::

    layers = to_serializable_tree(tree.children)
    node = find_by_path(tree, layers[0].id)
"""

import logging
from typing import Optional, Sequence, Union

from psd_remapper.constants import (
    LAYER_ID_PREFIX,
    OPACITY_SCALE,
    TEMPLATE_MARKER,
    LayerType,
)
from psd_remapper.document.nodes import DocumentNode, DocumentTree
from psd_remapper.models import Rectangle, SerializableLayer

logger = logging.getLogger(__name__)


def make_layer_id(path: Sequence[int]) -> str:
    """Return the identifier of the node at the given index path."""
    return LAYER_ID_PREFIX + ".".join(str(index) for index in path)


def parse_layer_id(layer_id: str) -> Optional[list[int]]:
    """
    Parse a layer identifier into an index path.

    :return: List of indices, or `None` when the identifier is malformed.
    """
    if not isinstance(layer_id, str) or not layer_id.startswith(LAYER_ID_PREFIX):
        return None
    path = layer_id[len(LAYER_ID_PREFIX) :]
    if not path:
        return None
    indices = []
    for segment in path.split("."):
        if not segment.isdecimal():
            return None
        indices.append(int(segment))
    return indices


def to_serializable_tree(
    children: Sequence[DocumentNode],
    path_prefix: Sequence[int] = (),
    marker: str = TEMPLATE_MARKER,
) -> list[SerializableLayer]:
    """
    Convert document nodes into serializable layers.

    Nodes named `marker` are skipped at every level, but keep their index:
    identifiers always refer to the position in the original children list.

    :param children: Child nodes of a document or group.
    :param path_prefix: Index path of the parent node.
    :param marker: Name of the template group to exclude.
    :return: List of :py:class:`~psd_remapper.models.SerializableLayer`.
    """
    layers = []
    for index, node in enumerate(children):
        if node.name == marker:
            continue
        path = tuple(path_prefix) + (index,)
        layers.append(_to_layer(node, path, marker))
    return layers


def _to_layer(
    node: DocumentNode, path: tuple[int, ...], marker: str
) -> SerializableLayer:
    if node.children is not None:
        children: Optional[list[SerializableLayer]] = to_serializable_tree(
            node.children, path, marker
        )
        layer_type = LayerType.GROUP
    else:
        children = None
        layer_type = LayerType.LAYER

    if node.opacity is None:
        opacity = 1.0
    else:
        opacity = min(max(node.opacity / OPACITY_SCALE, 0.0), 1.0)
    return SerializableLayer(
        id=make_layer_id(path),
        name=node.name or "",
        type=layer_type,
        is_visible=not node.hidden,
        opacity=opacity,
        coords=Rectangle.from_edges(node.left, node.top, node.right, node.bottom),
        children=children,
    )


def find_by_path(
    root: Union[DocumentTree, DocumentNode, None], layer_id: str
) -> Optional[DocumentNode]:
    """
    Relocate the node identified by `layer_id` under `root`.

    Never raises; returns `None` on a malformed identifier, an index out of
    range, or a missing children list on the way.
    """
    if root is None:
        return None
    path = parse_layer_id(layer_id)
    if path is None:
        logger.debug("Malformed layer id: %r", layer_id)
        return None

    node: Union[DocumentTree, DocumentNode] = root
    for index in path:
        children = node.children
        if children is None or index >= len(children):
            return None
        node = children[index]
    return node  # type: ignore[return-value]
