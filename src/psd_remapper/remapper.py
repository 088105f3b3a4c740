"""
Remapping engine.

Moves a layer subtree from a source rectangle into a target rectangle. The
default transform is a uniform "fit inside" scale,
``min(target.w / source.w, target.h / source.h)``, with the scaled content
centered in the target. Every layer keeps its position relative to the
source origin under that same scale and shared anchor, so the internal
spacing of the composition stays proportional rather than each layer being
stretched into the new box.

A :py:class:`~psd_remapper.strategy.LayoutStrategy` may replace the scale,
choose the vertical anchor, and add per-layer offsets and scale multipliers.
The horizontal anchor is always centered.

Example::

    result = remap(context.layers, source.bounds, target.bounds)
    if result.ok:
        for layer in result.layers:
            print(layer.name, layer.coords)

All functions are pure: inputs are never mutated and equal inputs give equal
outputs, so independent remaps may run in parallel.
"""

import functools
import logging
from typing import TYPE_CHECKING, Iterable, Optional, Sequence, Union

from attrs import evolve, field, frozen

from psd_remapper.constants import Anchor, MappingStatus, PayloadStatus
from psd_remapper.models import (
    AnyLayer,
    ContainerContext,
    ContainerDefinition,
    LayerTransform,
    MappingContext,
    PayloadMetrics,
    Rectangle,
    Size,
    TransformedLayer,
    TransformedPayload,
)
from psd_remapper.registry import new_registry
from psd_remapper.strategy import (
    LayerOverride,
    LayoutStrategy,
    is_finite,
    is_positive,
)

if TYPE_CHECKING:
    from psd_remapper.context import RemapCache

logger = logging.getLogger(__name__)

ANCHORS, register = new_registry(attribute="anchor")

Container = Union[ContainerDefinition, ContainerContext]


class DegenerateGeometryError(ValueError):
    """Raised when the source rectangle has no area."""


@register(Anchor.TOP)
def _anchor_top(target_rect: Rectangle, scaled_height: float) -> float:
    return target_rect.y


@register(Anchor.BOTTOM)
def _anchor_bottom(target_rect: Rectangle, scaled_height: float) -> float:
    return target_rect.y + target_rect.h - scaled_height


@register(Anchor.CENTER)
def _anchor_center(target_rect: Rectangle, scaled_height: float) -> float:
    return target_rect.y + (target_rect.h - scaled_height) / 2


@frozen
class Geometry:
    """
    Shared transform of one remap.
    """

    scale: float
    anchor_x: float
    anchor_y: float


@frozen
class RemapResult:
    """
    Outcome of :py:func:`remap`.

    .. py:attribute:: status

        :py:class:`~psd_remapper.constants.PayloadStatus`.

    .. py:attribute:: layers

        Tuple of :py:class:`~psd_remapper.models.TransformedLayer`, empty on
        error.

    .. py:attribute:: message

        Error description, `None` on success.
    """

    status: PayloadStatus = field(converter=PayloadStatus)
    layers: tuple = field(factory=tuple, converter=tuple)
    scale: float = 0.0
    geometry: Optional[Geometry] = None
    metrics: PayloadMetrics = field(factory=PayloadMetrics)
    strategy: Optional[LayoutStrategy] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == PayloadStatus.SUCCESS


@frozen
class RemapJob:
    """One independent source-to-target remap for :py:func:`remap_many`."""

    context: MappingContext
    target: Container
    strategy: Optional[LayoutStrategy] = None
    source_id: Optional[str] = None


def compute_geometry(
    source_rect: Rectangle,
    target_rect: Rectangle,
    strategy: Optional[LayoutStrategy] = None,
) -> Geometry:
    """
    Compute the shared scale and anchor of a remap.

    :raises DegenerateGeometryError: If `source_rect` has no area.
    """
    if source_rect.is_degenerate():
        raise DegenerateGeometryError(
            "cannot remap: degenerate source (%sx%s)" % (source_rect.w, source_rect.h)
        )

    if strategy is not None:
        scale = strategy.suggested_scale
        anchor = ANCHORS.get(strategy.anchor, _anchor_center)
    else:
        scale = min(target_rect.w / source_rect.w, target_rect.h / source_rect.h)
        anchor = _anchor_center

    anchor_x = target_rect.x + (target_rect.w - source_rect.w * scale) / 2
    anchor_y = anchor(target_rect, source_rect.h * scale)
    return Geometry(scale=scale, anchor_x=anchor_x, anchor_y=anchor_y)


def sanitize_strategy(
    strategy: Optional[LayoutStrategy], layers: Sequence[AnyLayer]
) -> Optional[LayoutStrategy]:
    """
    Drop the parts of an advisory strategy that cannot be applied.

    The whole strategy is discarded when its scale is not a positive finite
    number. Overrides are discarded one by one when their scale is not
    positive finite, when either offset is not finite, or when their layer
    id is not in `layers`.
    """
    if strategy is None:
        return None
    if not is_positive(strategy.suggested_scale):
        logger.warning(
            "Ignoring strategy with invalid scale %r", strategy.suggested_scale
        )
        return None

    known = set()
    stack = list(layers)
    while stack:
        layer = stack.pop()
        known.add(layer.id)
        stack.extend(layer.children or ())

    kept = []
    for override in strategy.overrides:
        if not is_positive(override.individual_scale):
            logger.warning(
                "Ignoring override for %s with invalid scale %r",
                override.layer_id,
                override.individual_scale,
            )
        elif not (is_finite(override.x_offset) and is_finite(override.y_offset)):
            logger.warning(
                "Ignoring override for %s with invalid offset (%r, %r)",
                override.layer_id,
                override.x_offset,
                override.y_offset,
            )
        elif override.layer_id not in known:
            logger.warning("Ignoring override for unknown layer %s", override.layer_id)
        else:
            kept.append(override)

    if len(kept) != len(strategy.overrides):
        return evolve(strategy, overrides=kept)
    return strategy


def remap(
    source_layers: Sequence[AnyLayer],
    source_rect: Rectangle,
    target_rect: Rectangle,
    strategy: Optional[LayoutStrategy] = None,
) -> RemapResult:
    """
    Project a layer subtree from `source_rect` into `target_rect`.

    :param source_layers: Layers to move, in source space.
    :param source_rect: Bounds of the source container.
    :param target_rect: Bounds of the target container.
    :param strategy: Optional :py:class:`~psd_remapper.strategy.LayoutStrategy`.
    :return: :py:class:`RemapResult`; an error result for a degenerate source.
    """
    metrics = PayloadMetrics(
        source=Size(source_rect.w, source_rect.h),
        target=Size(target_rect.w, target_rect.h),
    )
    strategy = sanitize_strategy(strategy, source_layers)
    try:
        geometry = compute_geometry(source_rect, target_rect, strategy)
    except DegenerateGeometryError as e:
        logger.warning(str(e))
        return RemapResult(
            status=PayloadStatus.ERROR, metrics=metrics, message=str(e)
        )

    overrides = strategy.override_map() if strategy is not None else {}
    layers = tuple(
        _transform(layer, source_rect, geometry, overrides) for layer in source_layers
    )
    return RemapResult(
        status=PayloadStatus.SUCCESS,
        layers=layers,
        scale=geometry.scale,
        geometry=geometry,
        metrics=metrics,
        strategy=strategy,
    )


def _transform(
    layer: AnyLayer,
    source_rect: Rectangle,
    geometry: Geometry,
    overrides: dict[str, LayerOverride],
) -> TransformedLayer:
    rel_x = (layer.coords.x - source_rect.x) / source_rect.w
    rel_y = (layer.coords.y - source_rect.y) / source_rect.h
    new_x = geometry.anchor_x + rel_x * source_rect.w * geometry.scale
    new_y = geometry.anchor_y + rel_y * source_rect.h * geometry.scale
    scale_x = scale_y = geometry.scale

    override = overrides.get(layer.id)
    if override is not None:
        new_x += override.x_offset
        new_y += override.y_offset
        scale_x *= override.individual_scale
        scale_y *= override.individual_scale

    children = None
    if layer.children is not None:
        children = [
            _transform(child, source_rect, geometry, overrides)
            for child in layer.children
        ]

    return TransformedLayer(
        id=layer.id,
        name=layer.name,
        type=layer.type,
        is_visible=layer.is_visible,
        opacity=layer.opacity,
        coords=Rectangle(
            x=new_x, y=new_y, w=layer.coords.w * scale_x, h=layer.coords.h * scale_y
        ),
        children=children,
        transform=LayerTransform(
            scale_x=scale_x, scale_y=scale_y, offset_x=new_x, offset_y=new_y
        ),
    )


def remap_context(
    context: MappingContext,
    target: Container,
    strategy: Optional[LayoutStrategy] = None,
    source_id: Optional[str] = None,
) -> TransformedPayload:
    """
    Remap the resolved content of a container into `target`.

    :param context: Resolved :py:class:`~psd_remapper.models.MappingContext`.
    :param target: Target container definition or context.
    :param strategy: Optional strategy.
    :param source_id: Identity of the source document, kept on the payload.
    :return: :py:class:`~psd_remapper.models.TransformedPayload`.
    """
    target_name, target_rect = _describe(target)
    result = remap(context.layers, context.container.bounds, target_rect, strategy)
    return TransformedPayload(
        status=result.status,
        source_container=context.container.container_name,
        target_container=target_name,
        layers=result.layers,
        scale_factor=result.scale,
        metrics=result.metrics,
        source_id=source_id,
        message=result.message,
    )


def to_mapping_context(
    payload: TransformedPayload, target: ContainerContext
) -> MappingContext:
    """Expose a payload as the transformed content of its target container."""
    return MappingContext(
        container=target,
        layers=payload.layers,
        status=MappingStatus.TRANSFORMED,
        message=payload.message,
    )


def remap_many(
    jobs: Iterable[RemapJob], cache: Optional["RemapCache"] = None
) -> list[TransformedPayload]:
    """
    Run independent remaps and collect their payloads in job order.

    A failing job gives an error payload without stopping the others.

    :param jobs: Iterable of :py:class:`RemapJob`.
    :param cache: Optional :py:class:`~psd_remapper.context.RemapCache`.
    """
    payloads = []
    for job in jobs:
        compute = functools.partial(
            remap_context, job.context, job.target, job.strategy, job.source_id
        )
        if cache is not None:
            payload = cache.get_or_compute(
                job.context, job.target, job.strategy, job.source_id, compute
            )
        else:
            payload = compute()
        if not payload.ok:
            logger.warning(
                "Remap %s -> %s failed: %s",
                payload.source_container,
                payload.target_container,
                payload.message,
            )
        payloads.append(payload)
    return payloads


def _describe(target: Container) -> tuple[str, Rectangle]:
    if isinstance(target, ContainerContext):
        return target.container_name, target.bounds
    return target.name, target.bounds
