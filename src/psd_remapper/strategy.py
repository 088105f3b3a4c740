"""
Layout strategies.

A :py:class:`LayoutStrategy` overrides the default uniform-fit remap: it
replaces the global scale, picks the vertical anchor, and nudges individual
layers. Strategies typically come from an AI layout provider and are treated
as advisory input; see :py:func:`psd_remapper.remapper.sanitize_strategy`
and :py:func:`recompute_safety`.

The provider exchanges JSON of the following shape::

    {
        "suggestedScale": 0.8,
        "anchor": "TOP",
        "overrides": [
            {"layerId": "layer-1.0", "xOffset": 0, "yOffset": 24,
             "individualScale": 1.2}
        ],
        "reasoning": "...",
        "generativePrompt": "...",
        "safetyReport": {"allowedBleed": false, "violationCount": 0}
    }
"""

import logging
import math
from typing import Any, Mapping, Optional, Protocol, Sequence, Union

from attrs import field, frozen

try:
    from typing import Self  # type: ignore[attr-defined]
except ImportError:
    from typing_extensions import Self

from psd_remapper.boundary import escapes
from psd_remapper.constants import MAX_BOUNDARY_VIOLATION_PERCENT, Anchor
from psd_remapper.models import (
    AnyLayer,
    ContainerDefinition,
    MappingContext,
    Rectangle,
)

logger = logging.getLogger(__name__)


class StrategyError(ValueError):
    """Raised for a malformed strategy payload."""


@frozen
class LayerOverride:
    """
    Per-layer adjustment. Offsets are pixels added after the global
    transform; `individual_scale` multiplies the global scale.
    """

    layer_id: str
    x_offset: float = 0.0
    y_offset: float = 0.0
    individual_scale: float = 1.0


@frozen
class SafetyReport:
    allowed_bleed: bool = False
    violation_count: int = 0


@frozen
class LayoutStrategy:
    """
    Override table for one remap.

    .. py:attribute:: suggested_scale

        Replaces the uniform-fit scale.

    .. py:attribute:: anchor

        Vertical anchor, :py:class:`~psd_remapper.constants.Anchor`.

    .. py:attribute:: overrides

        Tuple of :py:class:`LayerOverride`, matched by exact layer id.
    """

    suggested_scale: float
    anchor: Anchor = field(default=Anchor.CENTER, converter=Anchor)
    overrides: tuple = field(factory=tuple, converter=tuple)
    reasoning: str = ""
    generative_prompt: str = ""
    safety_report: SafetyReport = field(factory=SafetyReport)

    def override_map(self) -> dict[str, LayerOverride]:
        """Overrides keyed by layer id; a later entry replaces an earlier one."""
        return {override.layer_id: override for override in self.overrides}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Self:
        """
        Build a strategy from the provider's JSON object.

        :raises StrategyError: If a field is missing or has a wrong type.
        """
        if not isinstance(data, Mapping):
            raise StrategyError("Strategy must be an object, got %r" % type(data))
        try:
            overrides = [
                LayerOverride(
                    layer_id=str(item["layerId"]),
                    x_offset=_number(item.get("xOffset", 0)),
                    y_offset=_number(item.get("yOffset", 0)),
                    individual_scale=_number(item.get("individualScale", 1)),
                )
                for item in data.get("overrides") or []
            ]
            safety = data.get("safetyReport") or {}
            return cls(
                suggested_scale=_number(data["suggestedScale"]),
                anchor=_anchor(data.get("anchor")),
                overrides=overrides,
                reasoning=str(data.get("reasoning") or ""),
                generative_prompt=str(data.get("generativePrompt") or ""),
                safety_report=SafetyReport(
                    allowed_bleed=bool(safety.get("allowedBleed", False)),
                    violation_count=int(safety.get("violationCount", 0)),
                ),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise StrategyError("Invalid layout strategy: %s" % e) from e

    def to_dict(self) -> dict[str, Any]:
        return {
            "suggestedScale": self.suggested_scale,
            "anchor": self.anchor.value,
            "overrides": [
                {
                    "layerId": override.layer_id,
                    "xOffset": override.x_offset,
                    "yOffset": override.y_offset,
                    "individualScale": override.individual_scale,
                }
                for override in self.overrides
            ],
            "reasoning": self.reasoning,
            "generativePrompt": self.generative_prompt,
            "safetyReport": {
                "allowedBleed": self.safety_report.allowed_bleed,
                "violationCount": self.safety_report.violation_count,
            },
        }


def _anchor(value: Any) -> Anchor:
    try:
        return Anchor(str(value or Anchor.CENTER.value).upper())
    except ValueError:
        logger.warning("Unknown anchor %r, using CENTER", value)
        return Anchor.CENTER


def _number(value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float, str)):
        raise TypeError("expected a number, got %r" % (value,))
    return float(value)


def is_finite(value: float) -> bool:
    """True for a real number that is neither NaN nor infinite."""
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and math.isfinite(value)
    )


def is_positive(value: float) -> bool:
    """True for a finite number greater than zero."""
    return is_finite(value) and value > 0


class StrategyProvider(Protocol):
    """
    Callable that suggests a strategy for moving content between slots.

    It may return a :py:class:`LayoutStrategy` or the provider's raw JSON
    object, and may raise on failure.
    """

    def __call__(
        self,
        source_rect: Rectangle,
        target_rect: Rectangle,
        summary: list[dict[str, Any]],
    ) -> Union[LayoutStrategy, Mapping[str, Any], None]: ...


def summarize_layers(
    layers: Sequence[AnyLayer], source_rect: Rectangle, depth: int = 0
) -> list[dict[str, Any]]:
    """
    Flatten a layer subtree into the summary sent to a strategy provider.

    Positions and sizes are relative to `source_rect`; a degenerate source
    rectangle yields zeros instead of non-finite numbers.
    """
    width = source_rect.w or 1
    height = source_rect.h or 1
    summary = []
    for layer in layers:
        summary.append(
            {
                "id": layer.id,
                "name": layer.name,
                "type": layer.type.value,
                "depth": depth,
                "relX": (layer.coords.x - source_rect.x) / width,
                "relY": (layer.coords.y - source_rect.y) / height,
                "relW": layer.coords.w / width,
                "relH": layer.coords.h / height,
            }
        )
        if layer.children:
            summary.extend(summarize_layers(layer.children, source_rect, depth + 1))
    return summary


def suggest_strategy(
    provider: Optional[StrategyProvider],
    context: MappingContext,
    target: ContainerDefinition,
) -> Optional[LayoutStrategy]:
    """
    Ask `provider` for a strategy. Any failure means no strategy.
    """
    if provider is None:
        return None
    source_rect = context.container.bounds
    summary = summarize_layers(context.layers, source_rect)
    try:
        suggestion = provider(source_rect, target.bounds, summary)
        if suggestion is None or isinstance(suggestion, LayoutStrategy):
            return suggestion
        return LayoutStrategy.from_dict(suggestion)
    except Exception as e:
        logger.warning(
            "Strategy provider failed for %s -> %s: %s",
            context.container.container_name,
            target.name,
            e,
        )
        return None


def recompute_safety(
    layers: Sequence[AnyLayer],
    target_rect: Rectangle,
    allowed_bleed: float = MAX_BOUNDARY_VIOLATION_PERCENT,
) -> SafetyReport:
    """
    Count transformed layers, at any depth, that leave `target_rect`.

    :param allowed_bleed: Tolerated overflow as a fraction of the target size.
    """
    tolerance_x = target_rect.w * allowed_bleed
    tolerance_y = target_rect.h * allowed_bleed
    violations = 0
    stack = list(layers)
    while stack:
        layer = stack.pop()
        coords = layer.coords
        if escapes(
            coords.x,
            coords.y,
            coords.right,
            coords.bottom,
            target_rect,
            tolerance_x,
            tolerance_y,
        ):
            violations += 1
        stack.extend(layer.children or ())
    return SafetyReport(allowed_bleed=allowed_bleed > 0, violation_count=violations)
