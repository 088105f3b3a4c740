"""
Template extraction.

A template document carries a reserved top-level group, ``!!TEMPLATE`` by
default, whose immediate children define named rectangular containers. The
marker group itself is matched exactly; only container references are
matched loosely, see :py:mod:`psd_remapper.resolver`.
"""

import logging

from psd_remapper.constants import CONTAINER_ID_PREFIX, TEMPLATE_MARKER, UNTITLED
from psd_remapper.document.nodes import DocumentTree
from psd_remapper.models import (
    CanvasSpec,
    ContainerDefinition,
    Rectangle,
    TemplateMetadata,
)
from psd_remapper.utils import normalize_name, slugify

logger = logging.getLogger(__name__)


def extract_template_metadata(
    document: DocumentTree, marker: str = TEMPLATE_MARKER
) -> TemplateMetadata:
    """
    Extract container definitions from the template group of `document`.

    A document without the template group yields an empty container list.
    Missing edges count as 0, so zero-area containers are kept as they are.

    :param document: Parsed document.
    :param marker: Exact name of the template group.
    :return: :py:class:`~psd_remapper.models.TemplateMetadata`.
    """
    canvas = CanvasSpec(width=document.width or 1, height=document.height or 1)

    template_group = document.find(marker)
    if template_group is None or not template_group.children:
        logger.debug("No %s group in %r", marker, document)
        return TemplateMetadata(canvas=canvas)

    containers = []
    for index, child in enumerate(template_group.children):
        original_name = child.name or UNTITLED
        name = normalize_name(original_name)
        bounds = Rectangle.from_edges(child.left, child.top, child.right, child.bottom)
        containers.append(
            ContainerDefinition(
                id="%s-%d-%s" % (CONTAINER_ID_PREFIX, index, slugify(name)),
                name=name,
                original_name=original_name,
                bounds=bounds,
                normalized=bounds.normalize(canvas),
            )
        )
    logger.debug("Extracted %d containers", len(containers))
    return TemplateMetadata(canvas=canvas, containers=containers)


def find_duplicate_names(template: TemplateMetadata) -> list[str]:
    """
    Return container names used more than once, in first-seen order.

    Name collisions are allowed in a template; resolution then picks the
    first container. Callers needing unambiguous names check this first.
    """
    seen = set()
    duplicates = []
    for container in template:
        if container.name in seen and container.name not in duplicates:
            duplicates.append(container.name)
        seen.add(container.name)
    return duplicates
