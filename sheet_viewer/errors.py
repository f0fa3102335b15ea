from __future__ import annotations


class SheetViewerError(Exception):
    """Base class for load-level failures surfaced to the user."""


class FetchError(SheetViewerError):
    """The CSV export could not be downloaded or was not CSV."""


class EmptySheetError(SheetViewerError, ValueError):
    """The payload tokenized to zero rows; no sheet can be built from it."""
