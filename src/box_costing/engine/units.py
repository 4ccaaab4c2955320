"""Unit conversion helpers. All engine math runs in millimetres."""

MM_PER_INCH = 25.4

UNIT_MM = "mm"
UNIT_INCHES = "inches"


def mm_to_inches(mm: float) -> float:
    return mm / MM_PER_INCH


def inches_to_mm(inches: float) -> float:
    return inches * MM_PER_INCH


def to_mm(value, unit: str = UNIT_MM):
    """Normalize a form value to mm. None passes through."""
    if value is None:
        return None
    if unit == UNIT_INCHES:
        return inches_to_mm(value)
    return value


def non_negative(value) -> float:
    """Missing, NaN or negative inputs count as zero."""
    if value is None or value != value or value < 0:
        return 0.0
    return float(value)
