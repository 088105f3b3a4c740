"""
psd-remapper: remap layered PSD content between template containers.

A template document carries a reserved ``!!TEMPLATE`` group whose children
define named rectangular containers. Design groups with matching names hold
the content. The pipeline moves that content from one container into a
differently shaped one, keeping the relative geometry of every layer, and
rebuilds a new document for writing.

Basic usage::

    from psd_remapper import (
        open_document, extract_template_metadata, to_serializable_tree,
        resolve_layer, build_mapping_context, remap_context,
        assemble_document, save_document,
    )

    source = open_document('source.psd')
    target = open_document('target.psd', load_pixels=False)
    source_template = extract_template_metadata(source)
    target_template = extract_template_metadata(target)

    layers = to_serializable_tree(source.children)
    container = source_template.containers[0]
    context = build_mapping_context(
        container, resolve_layer(container.name, layers))
    payload = remap_context(
        context, target_template.find(container.name), source_id=source.source)

    tree = assemble_document(target_template, [payload], {source.source: source})
    save_document(tree, 'output.psd')

Architecture:

- :py:mod:`psd_remapper.document`: Opaque document tree and the PSD codec
- :py:mod:`psd_remapper.adapter`: Serializable layer tree and path lookup
- :py:mod:`psd_remapper.template`: Container extraction
- :py:mod:`psd_remapper.resolver`: Container name resolution
- :py:mod:`psd_remapper.boundary`: Boundary validation
- :py:mod:`psd_remapper.remapper`: Remapping engine
- :py:mod:`psd_remapper.strategy`: Advisory layout strategies
- :py:mod:`psd_remapper.reconstructor`: Document reconstruction
"""

from psd_remapper.adapter import find_by_path, to_serializable_tree
from psd_remapper.boundary import validate_boundaries
from psd_remapper.document import (
    DocumentError,
    DocumentNode,
    DocumentTree,
    open_document,
    parse_document,
    save_document,
    serialize_document,
)
from psd_remapper.reconstructor import assemble_document, reconstruct
from psd_remapper.remapper import remap, remap_context, remap_many
from psd_remapper.resolver import (
    build_mapping_context,
    create_container_context,
    resolve_containers,
    resolve_layer,
)
from psd_remapper.strategy import LayoutStrategy
from psd_remapper.template import extract_template_metadata
from psd_remapper.version import __version__

__all__ = [
    "DocumentError",
    "DocumentNode",
    "DocumentTree",
    "LayoutStrategy",
    "__version__",
    "assemble_document",
    "build_mapping_context",
    "create_container_context",
    "extract_template_metadata",
    "find_by_path",
    "open_document",
    "parse_document",
    "reconstruct",
    "remap",
    "remap_context",
    "remap_many",
    "resolve_containers",
    "resolve_layer",
    "save_document",
    "serialize_document",
    "to_serializable_tree",
    "validate_boundaries",
]
