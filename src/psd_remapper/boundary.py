"""
Boundary validation of design groups against template containers.
"""

import logging
from typing import Optional

from psd_remapper.constants import TEMPLATE_MARKER, IssueType
from psd_remapper.document.nodes import DocumentNode, DocumentTree
from psd_remapper.models import (
    ContainerDefinition,
    DesignValidationReport,
    Rectangle,
    TemplateMetadata,
    ValidationIssue,
)

logger = logging.getLogger(__name__)


def escapes(
    left: float,
    top: float,
    right: float,
    bottom: float,
    bounds: Rectangle,
    tolerance_x: float = 0.0,
    tolerance_y: float = 0.0,
) -> bool:
    """
    Return True if the box leaves `bounds` in any direction.

    Touching an edge is not an escape.
    """
    return (
        left < bounds.x - tolerance_x
        or top < bounds.y - tolerance_y
        or right > bounds.right + tolerance_x
        or bottom > bounds.bottom + tolerance_y
    )


def validate_boundaries(
    document: DocumentTree,
    template: TemplateMetadata,
    marker: str = TEMPLATE_MARKER,
) -> DesignValidationReport:
    """
    Check that the direct children of each design group stay in its container.

    Design groups match containers by exact cleaned name. When two containers
    share a name, the later one wins. Children without numeric edges are
    skipped.

    :param document: Parsed design document.
    :param template: Template metadata, typically of the same document.
    :param marker: Name of the template group to exclude.
    :return: :py:class:`~psd_remapper.models.DesignValidationReport`.
    """
    index: dict[str, ContainerDefinition] = {}
    for container in template:
        if container.name in index:
            logger.debug("Container %r overrides an earlier one", container.name)
        index[container.name] = container

    issues = []
    for group in document:
        if group.name == marker or not group.is_group():
            continue
        container = index.get(group.name)
        if container is None:
            continue
        for child in group.children or []:
            issue = _check_child(child, container)
            if issue is not None:
                logger.debug(issue.message)
                issues.append(issue)

    report = DesignValidationReport(issues=issues)
    logger.info(
        "Boundary validation: %d issue(s) in %d container(s)",
        len(report),
        len(index),
    )
    return report


def _check_child(
    child: DocumentNode, container: ContainerDefinition
) -> Optional[ValidationIssue]:
    if not child.has_bounds():
        return None
    left, top, right, bottom = child.left, child.top, child.right, child.bottom
    if not escapes(left, top, right, bottom, container.bounds):  # type: ignore[arg-type]
        return None
    bounds = container.bounds
    return ValidationIssue(
        layer_name=child.name,
        container_name=container.name,
        type=IssueType.BOUNDARY_VIOLATION,
        message=(
            "Layer %r (%s, %s, %s, %s) exceeds container %r (%s, %s, %s, %s)"
            % (
                child.name,
                left,
                top,
                right,
                bottom,
                container.name,
                bounds.x,
                bounds.y,
                bounds.right,
                bounds.bottom,
            )
        ),
    )
