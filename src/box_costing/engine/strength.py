"""
Strength Predictor - burst strength, ECT, board thickness and McKee box compression.

Every metric degrades to 0 on missing or invalid layer data instead of raising,
since it is recomputed on each keystroke of a half-filled form.
"""
import logging
from typing import Mapping, Optional, Sequence

from ..config.settings import Settings, get_settings
from .flutes import FluteProfile, DEFAULT_FLUTE_PROFILES
from .models import LayerSpec, StrengthResult
from .units import non_negative

logger = logging.getLogger(__name__)

LINER_BS_DIVISOR = 1000.0
# Flutes contribute half as much burst per unit grammage
FLUTE_BS_DIVISOR = 2000.0


def burst_strength(layers: Sequence[LayerSpec]) -> float:
    """Burst strength in kg/cm."""
    total = 0.0
    for layer in layers:
        divisor = FLUTE_BS_DIVISOR if layer.is_flute else LINER_BS_DIVISOR
        total += non_negative(layer.gsm) * non_negative(layer.bf) / divisor
    return total


def edge_crush(layers: Sequence[LayerSpec], settings: Optional[Settings] = None) -> float:
    """ECT in kN/m: liner RCT plus flute RCT x fluting factor."""
    settings = settings or get_settings()
    ect = 0.0
    for layer in layers:
        rct = non_negative(layer.rct_value)
        if layer.is_flute:
            factor = layer.fluting_factor if layer.fluting_factor and layer.fluting_factor > 0 \
                else settings.default_fluting_factor
            ect += rct * factor
        else:
            ect += rct
    return ect


def board_thickness(
    ply: str,
    flute_combination: Optional[str] = None,
    manual_thickness: Optional[float] = None,
    flute_profiles: Optional[Mapping[str, FluteProfile]] = None,
    settings: Optional[Settings] = None,
) -> float:
    """
    Board caliper in mm.

    Resolution order:
    1. Manual override value
    2. Mono board -> 0 (no flute)
    3. Sum of flute heights for the flute combination
    4. Per-ply thickness map
    """
    if manual_thickness is not None:
        return non_negative(manual_thickness)

    settings = settings or get_settings()
    ply = str(ply).strip()
    if ply == '1':
        return 0.0

    if flute_combination:
        profiles = flute_profiles if flute_profiles is not None else DEFAULT_FLUTE_PROFILES
        total = 0.0
        for letter in flute_combination.upper():
            profile = profiles.get(letter) or DEFAULT_FLUTE_PROFILES.get(letter)
            if profile is None:
                logger.warning("Unknown flute type %r, using %.1fmm", letter, settings.default_flute_height)
                total += settings.default_flute_height
            else:
                total += profile.height
        return total

    return settings.ply_value(settings.ply_thickness, ply)


def box_perimeter(length: Optional[float], width: Optional[float]) -> float:
    """Perimeter of the (ID-adjusted) box footprint in mm."""
    return 2 * (non_negative(length) + non_negative(width))


def mckee_bct(
    ect: float,
    thickness: float,
    perimeter: float,
    settings: Optional[Settings] = None,
) -> float:
    """
    McKee box compression estimate in kg.

    BCT = k x ECT^a x thickness_cm^b x perimeter^c, with k=5.87, a=1, b=c=0.5
    by default, i.e. 5.87 x ECT x sqrt(thickness_cm x perimeter).
    """
    if not (ect and ect > 0 and thickness and thickness > 0 and perimeter and perimeter > 0):
        return 0.0

    settings = settings or get_settings()
    thickness_cm = thickness / settings.thickness_mm_per_cm
    return (
        settings.mckee_constant
        * ect ** settings.mckee_ect_exponent
        * thickness_cm ** settings.mckee_thickness_exponent
        * perimeter ** settings.mckee_perimeter_exponent
    )


def predict_strength(
    layers: Sequence[LayerSpec],
    board_thickness: float,
    box_perimeter: float,
    settings: Optional[Settings] = None,
) -> StrengthResult:
    """Burst strength, ECT and McKee BCT for a layer stack."""
    settings = settings or get_settings()
    bs = burst_strength(layers)
    ect = edge_crush(layers, settings)
    bct = mckee_bct(ect, board_thickness, box_perimeter, settings)
    return StrengthResult(bs=bs, ect=ect, bct=bct)
