"""
Document codec built on psd-tools.

This module converts PSD/PSB bytes into the opaque :py:class:`DocumentTree`
and back. It is the only part of the package that touches the binary format;
everything else works on the codec-neutral node tree.

Example::

    from psd_remapper.document import open_document, save_document

    tree = open_document('layout.psd')
    for node in tree:
        print(node.name, node.left, node.top)

    save_document(tree, 'copy.psd')

Pixel payloads are :py:class:`PIL.Image.Image` objects taken from
:py:meth:`psd_tools.api.layers.Layer.topil`. They are written back at the
node's rounded ``(left, top)`` and are never resized; nodes without a payload
become transparent placeholders covering the node's bounds.
"""

import io
import logging
import os
import struct
from typing import Optional, Union

from PIL import Image
from psd_tools import PSDImage
from psd_tools.api.layers import Group, Layer, PixelLayer

from psd_remapper.constants import OPACITY_SCALE
from psd_remapper.document.nodes import DocumentNode, DocumentTree

logger = logging.getLogger(__name__)

ParentLike = Union[PSDImage, Group]


class DocumentError(ValueError):
    """Raised when bytes cannot be decoded into a document."""


def parse_document(
    data: bytes, load_pixels: bool = True, source: Optional[str] = None
) -> DocumentTree:
    """
    Parse PSD bytes into a :py:class:`DocumentTree`.

    :param data: Content of a PSD or PSB file.
    :param load_pixels: Whether to decode pixel payloads. Geometry-only
        documents are enough for template extraction and validation.
    :param source: Opaque identity to record on the tree.
    :return: :py:class:`DocumentTree`.
    :raises DocumentError: If the data is empty or not a valid document.
    """
    if not data:
        raise DocumentError("The provided file is empty.")

    try:
        psdimage = PSDImage.open(io.BytesIO(data))
    except (struct.error, EOFError, IndexError, AssertionError) as e:
        raise DocumentError(
            "The PSD file appears to be corrupted or truncated (%s)." % e
        ) from e
    except (ValueError, TypeError, OSError) as e:
        message = str(e).lower()
        if "signature" in message or "not a psd" in message:
            raise DocumentError(
                "Invalid file format. The file does not appear to be a valid "
                "Adobe Photoshop file."
            ) from e
        raise DocumentError("PSD Parsing Error: %s" % e) from e

    tree = DocumentTree(
        width=psdimage.width,
        height=psdimage.height,
        children=[_to_node(layer, load_pixels) for layer in psdimage],
        source=source,
    )
    logger.debug("Parsed %r from %s", tree, source or "bytes")
    return tree


def serialize_document(tree: DocumentTree, mode: str = "RGBA") -> bytes:
    """
    Write a :py:class:`DocumentTree` into PSD bytes.

    :param tree: Document to write.
    :param mode: PIL mode of the new document.
    :return: PSD file content.
    """
    width = max(int(tree.width or 1), 1)
    height = max(int(tree.height or 1), 1)
    psdimage = PSDImage.new(mode, (width, height))
    for node in tree.children:
        _append_node(psdimage, node)

    with io.BytesIO() as f:
        psdimage.save(f)
        return f.getvalue()


def open_document(
    path: Union[str, os.PathLike], load_pixels: bool = True
) -> DocumentTree:
    """Read a document from a file; the file name becomes the source."""
    with open(path, "rb") as f:
        data = f.read()
    return parse_document(data, load_pixels=load_pixels, source=os.fspath(path))


def save_document(
    tree: DocumentTree, path: Union[str, os.PathLike], mode: str = "RGBA"
) -> None:
    data = serialize_document(tree, mode=mode)
    with open(path, "wb") as f:
        f.write(data)
    logger.info("Wrote %d bytes to %s", len(data), os.fspath(path))


def _to_node(layer: Layer, load_pixels: bool) -> DocumentNode:
    node = DocumentNode(
        name=layer.name,
        top=layer.top,
        left=layer.left,
        bottom=layer.bottom,
        right=layer.right,
        hidden=not layer.visible,
        opacity=layer.opacity,
        kind=layer.kind,
    )
    if layer.is_group():
        node.children = [_to_node(child, load_pixels) for child in layer]
    elif load_pixels:
        node.payload = layer.topil()
    return node


def _append_node(parent: ParentLike, node: DocumentNode) -> Layer:
    if node.is_group():
        layer: Layer = Group.new(parent, name=node.name)
        for child in node.children or []:
            _append_node(layer, child)  # type: ignore[arg-type]
    else:
        image = node.payload
        if not isinstance(image, Image.Image):
            image = _placeholder(node)
        layer = PixelLayer.frompil(
            image,
            parent,
            name=node.name,
            top=_to_int(node.top),
            left=_to_int(node.left),
        )
    layer.visible = not node.hidden
    layer.opacity = _to_opacity(node.opacity)
    return layer


def _placeholder(node: DocumentNode) -> Image.Image:
    width = max(_to_int(node.right) - _to_int(node.left), 1)
    height = max(_to_int(node.bottom) - _to_int(node.top), 1)
    return Image.new("RGBA", (width, height), (0, 0, 0, 0))


def _to_int(value: Optional[float]) -> int:
    return int(round(value or 0))


def _to_opacity(value: Optional[float]) -> int:
    if value is None:
        return OPACITY_SCALE
    return min(max(int(round(value)), 0), OPACITY_SCALE)
