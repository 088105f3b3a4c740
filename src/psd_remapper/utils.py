"""
Name handling shared by template extraction and name resolution.
"""

import re

from psd_remapper.constants import MARKER_CHAR

_LEADING = re.compile(r"^[\s%s]+" % re.escape(MARKER_CHAR))
_WHITESPACE = re.compile(r"\s+")


def normalize_name(name: str) -> str:
    """
    Strip the leading run of marker characters and whitespace, then trim.

    ``normalize_name(normalize_name(x)) == normalize_name(x)`` holds for any
    string.

    Example::

        >>> normalize_name('!! SYMBOLS ')
        'SYMBOLS'
    """
    return _LEADING.sub("", name or "").strip()


def fold_name(name: str) -> str:
    """Case-folded form used for name comparison."""
    return name.strip().casefold()


def slugify(name: str) -> str:
    """Collapse whitespace runs into underscores."""
    return _WHITESPACE.sub("_", name)
