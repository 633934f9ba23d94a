# -*- coding: utf-8 -*-
"""Exception hierarchy for spatialio.

Every error records the attempted operation, its parameters and the diagnostic text
of the layer that failed underneath (GDAL, pyogrio, rasterio, requests, the remote
service). Diagnosing a format or driver mismatch usually needs all three, so the
message always carries them.
"""


class SpatialIOError(Exception):
    """Base exception class for all spatialio errors.

    Parameters:
    -----------
    operation : str
        Name of the operation that failed, e.g. "read_vector"
    params : dict, optional
        Parameters the operation was called with
    detail : str, optional
        Diagnostic text from the underlying library, kept verbatim
    """

    def __init__(self, operation, params=None, detail=None):
        self.operation = operation
        self.params = dict(params or {})
        self.detail = detail
        super().__init__(self._format_message())

    def _format_message(self):
        shown = ", ".join(f"{key}={value!r}" for key, value in self.params.items() if value is not None)
        message = f"{self.operation} failed"
        if shown:
            message += f" ({shown})"
        if self.detail:
            message += f": {self.detail}"
        return message


class SourceNotFound(SpatialIOError):
    """Raised when a data source locator cannot be opened."""


class LayerNotFound(SpatialIOError):
    """Raised when the requested layer name or index is absent from a source."""


class BandIndexOutOfRange(SpatialIOError):
    """Raised when a raster band index is below 1 or beyond the band count."""


class ParseError(SpatialIOError):
    """Raised when a source exists but its content is malformed or truncated.

    A partial or empty dataset is never returned in place of this error.
    """


class UnsupportedFormat(SpatialIOError):
    """Raised when no registered driver matches a locator or driver name.

    Also raised when a driver cannot store the fields or geometries it is given.
    """


class DestinationExists(SpatialIOError):
    """Raised when a write would replace existing data without an explicit flag."""


class NetworkError(SpatialIOError):
    """Raised on transport failures: DNS, refused connections, timeouts."""


class ServiceError(SpatialIOError):
    """Raised when a remote service answers with an HTTP error or an exception report."""


class UnknownType(SpatialIOError):
    """Raised when a feature type or coverage is not advertised in the capabilities."""
