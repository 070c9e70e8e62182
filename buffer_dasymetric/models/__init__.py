"""Data models package for typed ring, record and report structures."""

from .data_models import (
    AreaMeasure,
    ClippedRecord,
    Ring,
    RingReport,
    RingStatus,
    SiteInput,
    SiteReport,
    SourcePolygon,
    serialize_geometry,
)

from .errors import (
    BufferDasymetricError,
    CollaboratorUnavailableError,
    InputValidationError,
)

__all__ = [
    # Enums
    "AreaMeasure",
    "RingStatus",
    # Data models
    "ClippedRecord",
    "Ring",
    "RingReport",
    "SiteInput",
    "SiteReport",
    "SourcePolygon",
    "serialize_geometry",
    # Errors
    "BufferDasymetricError",
    "CollaboratorUnavailableError",
    "InputValidationError",
]
