"""Errors raised by the export pipeline."""


class ExportError(Exception):
    """Base class for export failures that abort a run."""


class ConfigurationError(ExportError):
    """Invalid boost configuration or settings."""


class EntityGraphError(ExportError):
    """The input entity graph is malformed."""


class HierarchyCycleError(EntityGraphError):
    """A stop place's parent references loop back on itself."""

    def __init__(self, stop_place_id: str):
        super().__init__(f"Cyclic parent reference detected at stop place {stop_place_id}")
        self.stop_place_id = stop_place_id


class BlobNotFoundError(ExportError):
    """Requested blob does not exist in the store."""
