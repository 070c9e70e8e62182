"""Exception types surfaced to callers of the site computation.

Per-ring and per-candidate problems never raise; they are absorbed by the
interpolation engine and show up as smaller totals or failed RingReports.
"""


class BufferDasymetricError(Exception):
    """Base class for hard-stop failures of a site computation."""


class InputValidationError(BufferDasymetricError, ValueError):
    """Bad coordinates, distances or unit. Raised before any geometry work."""


class CollaboratorUnavailableError(BufferDasymetricError, RuntimeError):
    """Reprojection engine, data source or a required layer is unusable."""
