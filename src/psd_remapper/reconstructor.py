"""
Tree reconstruction.

Rebuilds opaque document nodes from transformed layers. Each transformed
layer is relocated in the document it was derived from through its path
identifier; the original node is cloned with the new geometry, visibility and
opacity, so its pixel payload and any other codec data carry over unchanged.
"""

import logging
from typing import Mapping, Optional, Sequence

from attrs import evolve, field, frozen

from psd_remapper.adapter import find_by_path
from psd_remapper.constants import OPACITY_SCALE
from psd_remapper.document.nodes import DocumentNode, DocumentTree
from psd_remapper.models import TemplateMetadata, TransformedLayer, TransformedPayload

logger = logging.getLogger(__name__)


@frozen
class ReconstructionResult:
    """
    Rebuilt nodes plus the identifiers of layers that could not be found.
    """

    children: list = field(factory=list)
    skipped_ids: tuple = field(factory=tuple, converter=tuple)

    @property
    def skipped(self) -> int:
        return len(self.skipped_ids)


def reconstruct(
    transformed_layers: Sequence[TransformedLayer], source: DocumentTree
) -> ReconstructionResult:
    """
    Rebuild document nodes for `transformed_layers`.

    Layers whose path no longer resolves in `source` are skipped together
    with their subtree; the rest of the tree is still rebuilt.

    :param transformed_layers: Output layers of the remapping engine.
    :param source: The document the layers were derived from.
    :return: :py:class:`ReconstructionResult`.
    """
    skipped: list[str] = []
    children = _rebuild(transformed_layers, source, skipped)
    if skipped:
        logger.info("Skipped %d layer(s) missing from %r", len(skipped), source)
    return ReconstructionResult(children=children, skipped_ids=skipped)


def _rebuild(
    layers: Sequence[TransformedLayer], source: DocumentTree, skipped: list[str]
) -> list[DocumentNode]:
    nodes = []
    for layer in layers:
        original = find_by_path(source, layer.id)
        if original is None:
            logger.warning("Layer %s (%r) not found, skipping", layer.id, layer.name)
            skipped.append(layer.id)
            continue
        if original.name != layer.name:
            logger.warning(
                "Layer %s is %r in the source but %r in the payload; "
                "the path may be stale",
                layer.id,
                original.name,
                layer.name,
            )

        coords = layer.coords
        children = None
        if layer.is_group():
            children = _rebuild(layer.children or (), source, skipped)
        nodes.append(
            evolve(
                original,
                top=coords.y,
                left=coords.x,
                bottom=coords.y + coords.h,
                right=coords.x + coords.w,
                hidden=not layer.is_visible,
                opacity=layer.opacity * OPACITY_SCALE,
                children=children,
            )
        )
    return nodes


def assemble_document(
    template: TemplateMetadata,
    payloads: Sequence[TransformedPayload],
    documents: Mapping[Optional[str], DocumentTree],
) -> DocumentTree:
    """
    Build a new document sized by `template` from remap payloads.

    Reconstructed nodes of all successful payloads are concatenated in payload
    order. Overlapping target containers are not detected; later payloads
    simply end up above earlier ones.

    :param template: Target template metadata.
    :param payloads: Payloads, each tagged with its source document identity.
    :param documents: Source documents keyed by identity.
    :return: New :py:class:`~psd_remapper.document.DocumentTree`.
    """
    tree = DocumentTree(width=template.canvas.width, height=template.canvas.height)
    for payload in payloads:
        if not payload.ok:
            logger.warning(
                "Skipping failed payload %s -> %s",
                payload.source_container,
                payload.target_container,
            )
            continue
        source = documents.get(payload.source_id)
        if source is None:
            logger.warning("Source document missing for %s", payload.source_id)
            continue
        result = reconstruct(payload.layers, source)
        tree.children.extend(result.children)
    logger.debug("Assembled %r from %d payload(s)", tree, len(payloads))
    return tree
