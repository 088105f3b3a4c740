"""
Name resolution between template containers and design groups.

A container named ``!!SYMBOLS`` resolves to the first top-level design group
whose trimmed, case-folded name is ``symbols``. The outcome is a
:py:class:`ResolutionResult` rather than an exception, since a missing group
is an everyday, user-visible state.

Example::

    result = resolve_layer('!!SYMBOLS', layers)
    if result.status == ResolutionStatus.CASE_MISMATCH:
        logger.warning(result.message)
"""

import logging
from typing import Optional, Sequence, Union

from attrs import field, frozen

from psd_remapper.constants import MappingStatus, ResolutionStatus
from psd_remapper.models import (
    ContainerContext,
    ContainerDefinition,
    MappingContext,
    SerializableLayer,
    TemplateMetadata,
)
from psd_remapper.utils import fold_name, normalize_name

logger = logging.getLogger(__name__)


@frozen
class ResolutionResult:
    """
    Outcome of :py:func:`resolve_layer`.

    .. py:attribute:: status

        :py:class:`~psd_remapper.constants.ResolutionStatus`.

    .. py:attribute:: layer

        Matched design group, or `None` when nothing matched.

    .. py:attribute:: message

        Human readable description of the outcome.

    .. py:attribute:: exact

        Whether the match has no case difference.
    """

    status: ResolutionStatus = field(converter=ResolutionStatus)
    layer: Optional[SerializableLayer] = None
    message: str = ""
    exact: bool = False

    @property
    def found(self) -> bool:
        return self.layer is not None


def resolve_layer(
    requested_name: str, design_tree: Optional[Sequence[SerializableLayer]]
) -> ResolutionResult:
    """
    Resolve a container name to a top-level design group.

    The first case-folded match in array order wins.

    :param requested_name: Container name, with or without marker characters.
    :param design_tree: Top-level serializable layers of the design document.
    :return: :py:class:`ResolutionResult`.
    """
    if not requested_name or not requested_name.strip():
        return ResolutionResult(
            ResolutionStatus.NO_NAME, message="No container name given."
        )
    if not design_tree:
        return ResolutionResult(
            ResolutionStatus.MISSING_DESIGN_GROUP,
            message="No design layers available.",
        )

    normalized = normalize_name(requested_name)
    if not normalized:
        return ResolutionResult(
            ResolutionStatus.NO_NAME,
            message="Container name %r is empty without markers." % requested_name,
        )
    target = fold_name(normalized)

    for layer in design_tree:
        if fold_name(layer.name) != target:
            continue

        exact = layer.name.strip() == normalized
        if layer.is_empty():
            return ResolutionResult(
                ResolutionStatus.EMPTY_GROUP,
                layer=layer,
                message="Design group %r is empty." % layer.name,
                exact=exact,
            )
        count = len(layer.children or ())
        if exact:
            return ResolutionResult(
                ResolutionStatus.RESOLVED,
                layer=layer,
                message="%d Layers Found" % count,
                exact=True,
            )
        return ResolutionResult(
            ResolutionStatus.CASE_MISMATCH,
            layer=layer,
            message="%d Layers Found in %r (case differs from %r)"
            % (count, layer.name, normalized),
        )

    return ResolutionResult(
        ResolutionStatus.MISSING_DESIGN_GROUP,
        message="No matching design group for %r." % normalized,
    )


def create_container_context(
    template: TemplateMetadata, name: str
) -> Optional[ContainerContext]:
    """
    Look up a container of `template` by cleaned or original name.
    """
    container = template.find(name)
    if container is None:
        container = template.find(normalize_name(name))
    if container is None:
        return None
    return ContainerContext.from_definition(container, template.canvas)


def build_mapping_context(
    container: Union[ContainerContext, ContainerDefinition],
    resolution: ResolutionResult,
) -> Optional[MappingContext]:
    """
    Turn a resolution outcome into the content of `container`.

    Returns `None` when nothing was resolved. An empty group still yields a
    context with status :py:attr:`~psd_remapper.constants.MappingStatus.EMPTY`.
    """
    if isinstance(container, ContainerDefinition):
        container = ContainerContext.from_definition(container)

    if resolution.status == ResolutionStatus.EMPTY_GROUP:
        return MappingContext(
            container=container,
            layers=(),
            status=MappingStatus.EMPTY,
            message=resolution.message,
        )
    if resolution.status in (
        ResolutionStatus.RESOLVED,
        ResolutionStatus.CASE_MISMATCH,
    ) and resolution.layer is not None:
        return MappingContext(
            container=container,
            layers=resolution.layer.children or (),
            status=MappingStatus.RESOLVED,
            message=resolution.message,
        )
    return None


def resolve_containers(
    template: TemplateMetadata, design_tree: Optional[Sequence[SerializableLayer]]
) -> dict[str, tuple[ResolutionResult, Optional[MappingContext]]]:
    """
    Resolve every container of `template` against `design_tree`.

    Keys are container names in template order. With duplicate container
    names the first container is kept.
    """
    results: dict[str, tuple[ResolutionResult, Optional[MappingContext]]] = {}
    for container in template:
        if container.name in results:
            logger.warning("Duplicate container name %r ignored", container.name)
            continue
        resolution = resolve_layer(container.name, design_tree)
        if resolution.status == ResolutionStatus.CASE_MISMATCH:
            logger.info(resolution.message)
        elif not resolution.found:
            logger.debug("%s: %s", container.name, resolution.message)
        context = build_mapping_context(
            ContainerContext.from_definition(container, template.canvas), resolution
        )
        results[container.name] = (resolution, context)
    return results
