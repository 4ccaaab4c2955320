"""
Layer Aggregator - per-layer and total sheet weight, and paper cost.

A liner weighs its flat GSM; a flute weighs GSM x fluting factor because the
corrugated medium is longer than the sheet it sits in.
"""
import logging
from typing import Mapping, Optional, Sequence

from ..config.settings import Settings, get_settings
from .flutes import FluteProfile, fluting_factors_for_combination
from .models import LayerSpec, LayerWeights, LINER, FLUTE
from .units import non_negative

logger = logging.getLogger(__name__)

DEFAULT_RATE = 55.0


def effective_gsm(layer: LayerSpec, settings: Optional[Settings] = None) -> float:
    """Grammage the layer actually contributes to the board (g/m2)."""
    gsm = non_negative(layer.gsm)
    if layer.is_flute:
        factor = layer.fluting_factor
        if not factor or factor < 0:
            factor = (settings or get_settings()).default_fluting_factor
        return gsm * factor
    return gsm


def aggregate_layers(
    sheet_length: float,
    sheet_width: float,
    layers: Sequence[LayerSpec],
    ply: str,
    settings: Optional[Settings] = None,
) -> LayerWeights:
    """
    Weigh every layer of a sheet.

    Returns:
        LayerWeights with layer_weights index-aligned to `layers`
    """
    settings = settings or get_settings()

    if str(ply).isdigit() and len(layers) != int(ply):
        logger.warning("%d layers supplied for %s-ply board", len(layers), ply)

    area = non_negative(sheet_length) * non_negative(sheet_width)
    weights = tuple(
        area * effective_gsm(layer, settings) / settings.weight_divisor
        for layer in layers
    )
    return LayerWeights(total_weight=sum(weights), layer_weights=weights)


def paper_cost(layer_weights: Sequence[float], layers: Sequence[LayerSpec]) -> float:
    """Sum of layer weight x the rate currently set on the layer."""
    return sum(
        weight * non_negative(layer.rate)
        for weight, layer in zip(layer_weights, layers)
    )


def default_layers_for_ply(
    ply: str,
    flute_combination: Optional[str] = None,
    flute_profiles: Optional[Mapping[str, FluteProfile]] = None,
    settings: Optional[Settings] = None,
) -> list[LayerSpec]:
    """
    Starting layer stack for a ply count.

    Liners sit at even positions and flutes at odd positions. This parity rule
    is only used here; afterwards layer_type alone decides the role.
    """
    settings = settings or get_settings()
    ply = str(ply).strip()
    if not ply.isdigit() or ply not in settings.ply_thickness:
        logger.warning("Unrecognized ply %r, generating %s-ply layers", ply, settings.fallback_ply)
        ply = settings.fallback_ply
    count = int(ply)

    factors = []
    if flute_combination:
        factors = fluting_factors_for_combination(flute_combination, flute_profiles)

    layers = []
    flute_position = 0
    for i in range(count):
        is_flute = count > 1 and i % 2 == 1
        if i == 0:
            gsm, bf, shade = 180.0, 24.0, "Golden Kraft"
        else:
            gsm = 150.0 if count == 3 else 120.0
            bf, shade = 18.0, "Kraft/Natural"

        fluting_factor = 1.0
        if is_flute:
            if flute_position < len(factors):
                fluting_factor = factors[flute_position]
            else:
                fluting_factor = settings.default_fluting_factor
            flute_position += 1

        layers.append(LayerSpec(
            layer_index=i,
            layer_type=FLUTE if is_flute else LINER,
            gsm=gsm,
            bf=bf,
            fluting_factor=fluting_factor,
            shade=shade,
            rate=DEFAULT_RATE,
        ))
    return layers
