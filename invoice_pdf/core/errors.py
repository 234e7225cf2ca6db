from __future__ import annotations


class LayoutError(Exception):
    """Base class for layout engine failures."""


class InvalidGeometryError(LayoutError, ValueError):
    """The page geometry cannot hold a header plus at least one row.

    Raised before any page is produced; it is a configuration error, not a
    data error.
    """
