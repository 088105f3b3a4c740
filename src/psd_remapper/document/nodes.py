"""
Opaque document tree.

This is the heavy side of the pipeline: a faithful, codec-neutral copy of the
layer hierarchy of a document, including the pixel payload of every layer.
The remapping core reads only the geometry, name, visibility and opacity of
the nodes, and carries the payload through untouched.
"""

from typing import Any, Iterator, Optional

from attrs import define, field


@define(eq=False)
class DocumentNode:
    """
    Single layer or group of a document.

    .. py:attribute:: name
    .. py:attribute:: top
    .. py:attribute:: left
    .. py:attribute:: bottom
    .. py:attribute:: right

        Edge coordinates in pixels, `None` when the codec did not report them.

    .. py:attribute:: hidden
    .. py:attribute:: opacity

        Opacity in 0-255, `None` when unknown.

    .. py:attribute:: children

        List of child nodes for groups, `None` for leaf layers.

    .. py:attribute:: payload

        Opaque pixel payload, never inspected by the core.

    .. py:attribute:: kind

        Layer kind reported by the codec, e.g. ``pixel`` or ``group``.
    """

    name: str = ""
    top: Optional[float] = None
    left: Optional[float] = None
    bottom: Optional[float] = None
    right: Optional[float] = None
    hidden: bool = False
    opacity: Optional[float] = None
    children: Optional[list["DocumentNode"]] = None
    payload: Any = field(default=None, repr=False)
    kind: Optional[str] = None

    def is_group(self) -> bool:
        return self.children is not None

    def has_bounds(self) -> bool:
        """Return True if all four edges are numbers."""
        return all(
            isinstance(value, (int, float)) and not isinstance(value, bool)
            for value in (self.left, self.top, self.right, self.bottom)
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, DocumentNode):
            return NotImplemented
        return (
            self.name == other.name
            and self.top == other.top
            and self.left == other.left
            and self.bottom == other.bottom
            and self.right == other.right
            and self.hidden == other.hidden
            and self.opacity == other.opacity
            and self.children == other.children
            and self.kind == other.kind
            and self.payload is other.payload
        )

    def __repr__(self) -> str:
        return "%s(name=%r bbox=(%s, %s, %s, %s)%s)" % (
            self.__class__.__name__,
            self.name,
            self.left,
            self.top,
            self.right,
            self.bottom,
            " children=%d" % len(self.children) if self.children is not None else "",
        )


@define(eq=False)
class DocumentTree:
    """
    Root of a document.

    .. py:attribute:: source

        Opaque identity of the document, e.g. the file name.
    """

    width: Optional[int] = None
    height: Optional[int] = None
    children: list[DocumentNode] = field(factory=list)
    source: Optional[str] = None

    def __iter__(self) -> Iterator[DocumentNode]:
        return iter(self.children)

    def __len__(self) -> int:
        return len(self.children)

    def __getitem__(self, key: int) -> DocumentNode:
        return self.children[key]

    def descendants(self) -> Iterator[DocumentNode]:
        """Iterate over all the nodes in depth-first order."""
        stack = list(reversed(self.children))
        while stack:
            node = stack.pop()
            yield node
            if node.children:
                stack.extend(reversed(node.children))

    def find(self, name: str) -> Optional[DocumentNode]:
        """Return the first top-level node with the given name."""
        for node in self.children:
            if node.name == name:
                return node
        return None

    def __repr__(self) -> str:
        return "%s(size=%sx%s children=%d)" % (
            self.__class__.__name__,
            self.width,
            self.height,
            len(self.children),
        )
