"""
Input validation and numeric guards.

Two kinds of checks live here:
- validate_site_input / validate_distances: reject bad requests before any
  geometry call (raise InputValidationError).
- valid_area / clamp_ratio / round_half_up: the single choke points used by
  the interpolation engine so that NaN, zero areas and float drift never
  reach a reallocated population.
"""

import math
from typing import Any, Iterable, Optional, Sequence, Tuple

from buffer_dasymetric.geometry_provider import LINEAR_UNIT_METRES
from buffer_dasymetric.models.data_models import SiteInput
from buffer_dasymetric.models.errors import InputValidationError


# ═══════════════════════════════════════════════════════════════════════════
# 🔢 NUMERIC GUARDS
# ═══════════════════════════════════════════════════════════════════════════


def _to_float(value: Any) -> Optional[float]:
    """float(value), or None for None / unparseable values."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def valid_area(value: Any) -> bool:
    """
    True if value is a usable reference area (finite and > 0).

    Examples:
        >>> valid_area(100.0)
        True
        >>> valid_area(0)
        False
        >>> valid_area(float("nan"))
        False
        >>> valid_area(None)
        False
    """
    f = _to_float(value)
    return f is not None and math.isfinite(f) and f > 0


def valid_population(value: Any) -> bool:
    """True if value is a finite, non-negative population."""
    f = _to_float(value)
    return f is not None and math.isfinite(f) and f >= 0


def clamp_ratio(clipped_area: float, reference_area: float) -> float:
    """
    clipped_area / reference_area bounded to [0, 1].

    reference_area must already have passed valid_area(). A clipped area
    slightly larger than the reference (geometry-engine drift) yields 1.0;
    a NaN or negative clipped area yields 0.0.

    Examples:
        >>> clamp_ratio(50.0, 100.0)
        0.5
        >>> clamp_ratio(100.0001, 100.0)
        1.0
    """
    f = _to_float(clipped_area)
    if f is None or not math.isfinite(f) or f <= 0:
        return 0.0
    if f >= reference_area:
        return 1.0
    return f / reference_area


def round_half_up(value: float) -> int:
    """
    Round a non-negative value to the nearest int, halves going up.

    Python's round() uses banker's rounding (round(2.5) == 2); population
    counts use the conventional half-up rule instead.

    Examples:
        >>> round_half_up(2.5)
        3
        >>> round_half_up(499.49)
        499
    """
    if not math.isfinite(value) or value <= 0:
        return 0
    return int(math.floor(value + 0.5))


# ═══════════════════════════════════════════════════════════════════════════
# 📏 DISTANCE VALIDATION
# ═══════════════════════════════════════════════════════════════════════════


def validate_distances(distances: Iterable[Any]) -> Tuple[float, ...]:
    """
    Validate a ring distance list.

    Args:
        distances: Outer ring distances

    Returns:
        Tuple of floats, strictly increasing, all > 0

    Raises:
        InputValidationError: If empty, non-numeric, non-positive or not
            strictly increasing
    """
    if distances is None or isinstance(distances, (str, bytes)):
        raise InputValidationError("Distances must be a list of numbers")

    values = []
    for idx, raw in enumerate(distances):
        f = _to_float(raw)
        if f is None or not math.isfinite(f):
            raise InputValidationError(
                f"Distance at position {idx} is not a finite number: {raw!r}"
            )
        if f <= 0:
            raise InputValidationError(
                f"Distance at position {idx} must be > 0, got {f:g}"
            )
        if values and f <= values[-1]:
            raise InputValidationError(
                "Distances must be strictly increasing, got "
                f"{values[-1]:g} followed by {f:g}"
            )
        values.append(f)

    if not values:
        raise InputValidationError("At least one buffer distance is required")
    return tuple(values)


def validate_unit(unit: str) -> str:
    """Validate a linear unit name."""
    if unit not in LINEAR_UNIT_METRES:
        raise InputValidationError(
            f"Unknown distance unit '{unit}', expected one of "
            f"{sorted(LINEAR_UNIT_METRES)}"
        )
    return unit


# ═══════════════════════════════════════════════════════════════════════════
# 📍 SITE VALIDATION
# ═══════════════════════════════════════════════════════════════════════════


def _parse_coordinate(value: Any, name: str) -> float:
    """Parse a coordinate that may arrive as text from an entry form."""
    if isinstance(value, str):
        if not value.strip():
            raise InputValidationError(
                "Please enter both latitude and longitude."
            )
        value = value.strip()
    f = _to_float(value)
    if f is None or not math.isfinite(f):
        raise InputValidationError(f"Invalid {name}: {value!r}")
    return f


def validate_site_input(
    latitude: Any,
    longitude: Any,
    distances: Sequence[Any],
    unit: str = "miles",
    site_name: Any = None,
) -> SiteInput:
    """
    Validate a site request before any geometry work.

    Args:
        latitude: WGS84 latitude, [-90, 90] (number or numeric string)
        longitude: WGS84 longitude, [-180, 180] (number or numeric string)
        distances: Strictly increasing positive distances
        unit: Linear unit of the distances
        site_name: Opaque label carried onto the SiteReport (converted to str)

    Returns:
        SiteInput

    Raises:
        InputValidationError: On the first problem found
    """
    lat = _parse_coordinate(latitude, "latitude")
    lon = _parse_coordinate(longitude, "longitude")
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        raise InputValidationError(
            "Invalid coordinates. Latitude: -90 to 90, Longitude: -180 to 180."
        )

    return SiteInput(
        latitude=lat,
        longitude=lon,
        site_name="" if site_name is None else str(site_name).strip(),
        distances=validate_distances(distances),
        unit=validate_unit(unit),
    )
