"""
Various constants for psd_remapper
"""

from enum import Enum

#: Name of the reserved top-level group that holds container definitions.
TEMPLATE_MARKER = "!!TEMPLATE"

#: Leading punctuation that marks procedural names, e.g. ``!!SYMBOLS``.
MARKER_CHAR = "!"

#: Prefix of path identifiers, e.g. ``layer-0.2.1``.
LAYER_ID_PREFIX = "layer-"

#: Prefix of container identifiers, e.g. ``container-0-SYMBOLS``.
CONTAINER_ID_PREFIX = "container"

#: Fallback name for template children without a name.
UNTITLED = "Untitled"

#: Opacity range of the document codec.
OPACITY_SCALE = 255

#: Allowed bleed outside a target slot, as a fraction of the slot size.
MAX_BOUNDARY_VIOLATION_PERCENT = 0.03


class LayerType(str, Enum):
    """
    Kind of a serializable layer.
    """

    LAYER = "layer"
    GROUP = "group"


class ResolutionStatus(str, Enum):
    """
    Outcome of resolving a container name against design groups.

    .. py:attribute:: RESOLVED

        Exact name match with children.

    .. py:attribute:: CASE_MISMATCH

        Match only after case folding.

    .. py:attribute:: EMPTY_GROUP

        Match without any children.

    .. py:attribute:: MISSING_DESIGN_GROUP

        No design group matches, or there is no design tree at all.

    .. py:attribute:: NO_NAME

        The requested name is empty after normalization.
    """

    RESOLVED = "RESOLVED"
    CASE_MISMATCH = "CASE_MISMATCH"
    EMPTY_GROUP = "EMPTY_GROUP"
    MISSING_DESIGN_GROUP = "MISSING_DESIGN_GROUP"
    NO_NAME = "NO_NAME"


class MappingStatus(str, Enum):
    """
    State of the content of one container.
    """

    RESOLVED = "resolved"
    EMPTY = "empty"
    TRANSFORMED = "transformed"


class PayloadStatus(str, Enum):
    """
    Status of a remap outcome.
    """

    SUCCESS = "success"
    ERROR = "error"


class Anchor(str, Enum):
    """
    Vertical anchor of a layout strategy.
    """

    TOP = "TOP"
    CENTER = "CENTER"
    BOTTOM = "BOTTOM"
    STRETCH = "STRETCH"


class IssueType(str, Enum):
    """
    Kind of a design validation issue.
    """

    BOUNDARY_VIOLATION = "BOUNDARY_VIOLATION"
