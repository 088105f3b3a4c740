import logging
from typing import Any, Optional

from psd_remapper.document import DocumentNode, DocumentTree
from psd_remapper.models import (
    CanvasSpec,
    ContainerDefinition,
    Rectangle,
    SerializableLayer,
    TemplateMetadata,
)

logging.basicConfig(level=logging.DEBUG)

CANVAS = (1000, 800)


def node(
    name: str,
    bbox: tuple[float, float, float, float] = (0, 0, 0, 0),
    children: Optional[list[DocumentNode]] = None,
    **kwargs: Any,
) -> DocumentNode:
    """Build a node from a ``(left, top, right, bottom)`` box."""
    left, top, right, bottom = bbox
    kwargs.setdefault("opacity", 255)
    kwargs.setdefault("kind", "group" if children is not None else "pixel")
    return DocumentNode(
        name=name,
        left=left,
        top=top,
        right=right,
        bottom=bottom,
        children=children,
        **kwargs,
    )


def make_document() -> DocumentTree:
    """
    Template document with three containers and three design groups::

        !!TEMPLATE      !!SYMBOLS, !!BG, !!COUNTERS
        SYMBOLS         Wild, Reels (Reel 1, Reel 2)
        counters        Win
        BG              (empty)
    """
    return DocumentTree(
        width=CANVAS[0],
        height=CANVAS[1],
        children=[
            node(
                "!!TEMPLATE",
                (0, 0, 1000, 800),
                [
                    node("!!SYMBOLS", (0, 0, 500, 400)),
                    node("!!BG", (0, 0, 1000, 800)),
                    node("!!COUNTERS", (500, 400, 1000, 800)),
                ],
            ),
            node(
                "SYMBOLS",
                (50, 50, 350, 300),
                [
                    node("Wild", (50, 50, 150, 150), payload=object()),
                    node(
                        "Reels",
                        (100, 100, 350, 300),
                        [
                            node("Reel 1", (100, 100, 200, 300), payload=object()),
                            node("Reel 2", (250, 100, 350, 300), payload=object()),
                        ],
                    ),
                ],
            ),
            node(
                "counters",
                (520, 420, 700, 500),
                [node("Win", (520, 420, 700, 500), opacity=128, payload=object())],
            ),
            node("BG", children=[]),
        ],
        source="document.psd",
    )


def container(
    name: str, bounds: Rectangle, index: int = 0, original_name: Optional[str] = None
) -> ContainerDefinition:
    canvas = CanvasSpec(*CANVAS)
    return ContainerDefinition(
        id="container-%d-%s" % (index, name),
        name=name,
        original_name=original_name or "!!" + name,
        bounds=bounds,
        normalized=bounds.normalize(canvas),
    )


def make_template(*containers: ContainerDefinition) -> TemplateMetadata:
    return TemplateMetadata(canvas=CanvasSpec(*CANVAS), containers=containers)


def layer(
    layer_id: str,
    bounds: Rectangle,
    name: Optional[str] = None,
    children: Optional[list[SerializableLayer]] = None,
    **kwargs: Any,
) -> SerializableLayer:
    return SerializableLayer(
        id=layer_id,
        name=name or layer_id,
        type="group" if children is not None else "layer",
        coords=bounds,
        children=children,
        **kwargs,
    )
