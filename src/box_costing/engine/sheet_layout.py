"""
Sheet Layout - cut-sheet size for RSC boxes and flat sheets.

RSC blank:
    length = 2 x (L + W) + glue flap  (+ additional flap past the max length threshold)
    width  = H + W + deckle allowance

Returns None for insufficient input so callers can keep rendering a half-filled form.
"""
import logging
from typing import Optional

from ..config.settings import Settings, get_settings
from .models import SheetLayout, MEASURED_ID, MEASURED_OD

logger = logging.getLogger(__name__)


def _is_positive(value) -> bool:
    return value is not None and value > 0


def adjust_for_measurement(
    length: float,
    width: float,
    height: Optional[float],
    ply: str,
    measured_on: str = MEASURED_ID,
    settings: Optional[Settings] = None,
) -> tuple[float, float, Optional[float]]:
    """
    Convert outside dimensions to inside dimensions.

    On OD the board occupies the outer shell: two walls are subtracted from
    length and width, one from height.
    """
    if measured_on == MEASURED_ID:
        return length, width, height
    if measured_on != MEASURED_OD:
        raise ValueError(f"Unknown measurement convention '{measured_on}', expected ID or OD")

    settings = settings or get_settings()
    thickness = settings.ply_value(settings.ply_thickness, ply)
    return (
        length - 2 * thickness,
        width - 2 * thickness,
        height - thickness if height is not None else None,
    )


def resolve_sheet_layout(
    length: Optional[float],
    width: Optional[float],
    height: Optional[float],
    ply: str,
    glue_flap: Optional[float] = None,
    deckle_allowance: Optional[float] = None,
    max_length_threshold: Optional[float] = None,
    measured_on: str = MEASURED_ID,
    settings: Optional[Settings] = None,
) -> Optional[SheetLayout]:
    """
    Resolve the RSC cut-sheet for a box (all dimensions in mm).

    Args:
        glue_flap: Defaults to the ply's standard glue flap when None
        deckle_allowance: Defaults to the ply's standard deckle trim when None
        max_length_threshold: Blank length above which a second flap is added (2-piece box)

    Returns:
        SheetLayout, or None when length/width/height are missing or not positive
    """
    if not (_is_positive(length) and _is_positive(width) and _is_positive(height)):
        logger.debug("Insufficient RSC input: L=%s W=%s H=%s", length, width, height)
        return None

    settings = settings or get_settings()
    length, width, height = adjust_for_measurement(length, width, height, ply, measured_on, settings)
    if not (length > 0 and width > 0 and height > 0):
        logger.debug("RSC dimensions not positive after %s adjustment", measured_on)
        return None

    if glue_flap is None:
        glue_flap = settings.ply_value(settings.glue_flap_defaults, ply)
    if deckle_allowance is None:
        deckle_allowance = settings.ply_value(settings.deckle_allowance_defaults, ply)

    sheet_length = 2 * (length + width) + glue_flap
    additional_flap_applied = False

    if max_length_threshold and sheet_length > max_length_threshold:
        sheet_length += settings.ply_value(settings.additional_flap_increments, ply)
        additional_flap_applied = True

    sheet_width = height + width + deckle_allowance

    return SheetLayout(
        sheet_length=sheet_length,
        sheet_width=sheet_width,
        additional_flap_applied=additional_flap_applied,
        length=length,
        width=width,
        height=height,
    )


def resolve_flat_sheet(
    length: Optional[float],
    width: Optional[float],
    allowance: Optional[float] = None,
    settings: Optional[Settings] = None,
) -> Optional[SheetLayout]:
    """Flat sheet: one symmetric trim allowance on each dimension, no flap logic."""
    if not (_is_positive(length) and _is_positive(width)):
        logger.debug("Insufficient sheet input: L=%s W=%s", length, width)
        return None

    if allowance is None:
        allowance = (settings or get_settings()).sheet_allowance_default

    return SheetLayout(
        sheet_length=length + allowance,
        sheet_width=width + allowance,
        length=length,
        width=width,
    )
