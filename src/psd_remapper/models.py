"""
Data model of the remapping pipeline.

All the classes here are frozen attrs_ classes. Operations of the pipeline
never mutate them; they derive new instances with :py:func:`attrs.evolve`.
Child collections are stored as tuples so that two structurally equal trees
compare equal and can be hashed.

Key classes:

- :py:class:`Rectangle`: Pixel-space box ``(x, y, w, h)``
- :py:class:`ContainerDefinition`: A named slot of the template group
- :py:class:`TemplateMetadata`: Canvas size and container definitions
- :py:class:`SerializableLayer`: Lightweight layer with a path identifier
- :py:class:`TransformedLayer`: Layer geometry projected into a target slot
- :py:class:`MappingContext`: Resolved content of one container
- :py:class:`TransformedPayload`: Output unit of the remapping engine
- :py:class:`DesignValidationReport`: Boundary validation issues

.. _attrs: https://www.attrs.org/en/stable/index.html
"""

from typing import Any, Iterator, Optional, Sequence, Union

from attrs import field, frozen

try:
    from typing import Self  # type: ignore[attr-defined]
except ImportError:
    from typing_extensions import Self

from psd_remapper.constants import (
    IssueType,
    LayerType,
    MappingStatus,
    PayloadStatus,
)
from psd_remapper.validators import at_least, non_negative, range_


def _optional_tuple(value: Optional[Sequence[Any]]) -> Optional[tuple]:
    if value is None:
        return None
    return tuple(value)


@frozen
class Rectangle:
    """
    Box in document pixel units.

    .. py:attribute:: x
    .. py:attribute:: y
    .. py:attribute:: w
    .. py:attribute:: h
    """

    x: float = 0
    y: float = 0
    w: float = field(default=0, validator=non_negative())
    h: float = field(default=0, validator=non_negative())

    @classmethod
    def from_edges(
        cls,
        left: Optional[float],
        top: Optional[float],
        right: Optional[float],
        bottom: Optional[float],
    ) -> Self:
        """
        Build a rectangle from edge coordinates.

        Missing edges count as 0, and inverted edges give an empty extent.
        """
        left = left or 0
        top = top or 0
        right = right or 0
        bottom = bottom or 0
        return cls(x=left, y=top, w=max(right - left, 0), h=max(bottom - top, 0))

    @property
    def right(self) -> float:
        return self.x + self.w

    @property
    def bottom(self) -> float:
        return self.y + self.h

    @property
    def area(self) -> float:
        return self.w * self.h

    def is_degenerate(self) -> bool:
        """Return True if the rectangle has no area."""
        return self.w == 0 or self.h == 0

    def normalize(self, canvas: "CanvasSpec") -> "NormalizedRectangle":
        """Divide by the canvas size. The result is not clamped."""
        return NormalizedRectangle(
            x=self.x / canvas.width,
            y=self.y / canvas.height,
            w=self.w / canvas.width,
            h=self.h / canvas.height,
        )


@frozen
class NormalizedRectangle:
    """Rectangle relative to the canvas size; may exceed [0, 1]."""

    x: float = 0
    y: float = 0
    w: float = 0
    h: float = 0


@frozen
class Size:
    w: float = 0
    h: float = 0


@frozen
class CanvasSpec:
    """
    Canvas size in pixels. Both dimensions are at least 1.
    """

    width: int = field(default=1, validator=at_least(1))
    height: int = field(default=1, validator=at_least(1))


@frozen
class ContainerDefinition:
    """
    Named rectangular slot defined by a child of the template group.

    .. py:attribute:: id

        Stable identifier, ``container-<index>-<name>``.

    .. py:attribute:: name

        Name without the leading marker characters.

    .. py:attribute:: original_name

        Name as authored in the document.

    .. py:attribute:: bounds

        :py:class:`Rectangle` in pixels.

    .. py:attribute:: normalized

        :py:class:`NormalizedRectangle` relative to the canvas.
    """

    id: str
    name: str
    original_name: str
    bounds: Rectangle
    normalized: NormalizedRectangle


@frozen
class TemplateMetadata:
    """
    Canvas size and containers of one document.

    Container names are not unique by construction; lookups return the first
    container in document order.
    """

    canvas: CanvasSpec = field(factory=CanvasSpec)
    containers: tuple = field(factory=tuple, converter=tuple)

    def __iter__(self) -> Iterator[ContainerDefinition]:
        return iter(self.containers)

    def __len__(self) -> int:
        return len(self.containers)

    def find(self, name: str) -> Optional[ContainerDefinition]:
        """
        Find the first container whose cleaned or original name equals `name`.
        """
        for container in self.containers:
            if container.name == name:
                return container
        for container in self.containers:
            if container.original_name == name:
                return container
        return None


@frozen
class SerializableLayer:
    """
    Lightweight, serializable view of a document node.

    .. py:attribute:: id

        Path identifier such as ``layer-0.3``; see
        :py:func:`psd_remapper.adapter.find_by_path`.

    .. py:attribute:: children

        Tuple of child layers for groups, `None` for leaf layers.
    """

    id: str
    name: str
    type: LayerType = field(default=LayerType.LAYER, converter=LayerType)
    is_visible: bool = True
    opacity: float = field(default=1.0, validator=range_(0.0, 1.0))
    coords: Rectangle = field(factory=Rectangle)
    children: Optional[tuple] = field(default=None, converter=_optional_tuple)

    def is_group(self) -> bool:
        return self.type == LayerType.GROUP

    def is_empty(self) -> bool:
        """Return True if the layer holds no child layers."""
        return not self.children

    def descendants(self) -> Iterator["SerializableLayer"]:
        """Iterate over all the descendants in depth-first order."""
        for child in self.children or ():
            yield child
            yield from child.descendants()


@frozen
class LayerTransform:
    """
    How a transformed rectangle was derived from its source rectangle.

    `offset_x` and `offset_y` are absolute target-space positions.
    """

    scale_x: float = 1.0
    scale_y: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


@frozen
class TransformedLayer(SerializableLayer):
    """
    :py:class:`SerializableLayer` whose `coords` are in target space.
    """

    transform: LayerTransform = field(factory=LayerTransform, kw_only=True)


@frozen
class ContainerContext:
    """
    Container as seen by the resolution and remapping stages.
    """

    container_id: str
    container_name: str
    original_name: str
    bounds: Rectangle
    canvas: CanvasSpec = field(factory=CanvasSpec)

    @classmethod
    def from_definition(
        cls, container: ContainerDefinition, canvas: Optional[CanvasSpec] = None
    ) -> Self:
        return cls(
            container_id=container.id,
            container_name=container.name,
            original_name=container.original_name,
            bounds=container.bounds,
            canvas=canvas or CanvasSpec(),
        )


@frozen
class MappingContext:
    """
    Resolved content of one container.

    An empty group still carries its container, with status
    :py:attr:`~psd_remapper.constants.MappingStatus.EMPTY`.
    """

    container: ContainerContext
    layers: tuple = field(factory=tuple, converter=tuple)
    status: MappingStatus = field(
        default=MappingStatus.RESOLVED, converter=MappingStatus
    )
    message: Optional[str] = None


@frozen
class PayloadMetrics:
    source: Size = field(factory=Size)
    target: Size = field(factory=Size)


@frozen
class TransformedPayload:
    """
    Output unit of the remapping engine.

    .. py:attribute:: source_id

        Opaque identity of the source document, used to recover the pixel
        payloads on reconstruction. The payload never references the
        document itself.
    """

    status: PayloadStatus = field(converter=PayloadStatus)
    source_container: str
    target_container: str
    layers: tuple = field(factory=tuple, converter=tuple)
    scale_factor: float = 0.0
    metrics: PayloadMetrics = field(factory=PayloadMetrics)
    source_id: Optional[str] = None
    message: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == PayloadStatus.SUCCESS


@frozen
class ValidationIssue:
    layer_name: str
    container_name: str
    type: IssueType = field(
        default=IssueType.BOUNDARY_VIOLATION, converter=IssueType
    )
    message: str = ""


@frozen
class DesignValidationReport:
    """
    Collected validation issues. A document with issues is still usable.
    """

    issues: tuple = field(factory=tuple, converter=tuple)

    @property
    def is_valid(self) -> bool:
        return len(self.issues) == 0

    def __len__(self) -> int:
        return len(self.issues)

    def __iter__(self) -> Iterator[ValidationIssue]:
        return iter(self.issues)


AnyLayer = Union[SerializableLayer, TransformedLayer]
