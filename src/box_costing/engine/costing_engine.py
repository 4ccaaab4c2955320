"""
Box Costing Engine - resolves a box or flat sheet into a costed, strength-rated calculation.

Wires together:
- Sheet layout (RSC blank or flat sheet)
- Per-layer paper pricing with price book / rate memory / manual fallback
- Layer weights and paper cost
- Board thickness, burst strength, ECT and McKee BCT
- Quote line assembly with add-ons and markup
Every step is recorded on the result trace.
"""
import logging
from typing import Optional, Sequence

from ..config.settings import Settings, get_settings
from .layers import aggregate_layers, default_layers_for_ply, paper_cost
from .models import (
    BoxInput,
    CalculationResult,
    LayerSpec,
    ManufacturingOptions,
    QuoteItem,
    SheetInput,
    SheetLayout,
    TraceStep,
)
from .paper_pricing import PriceBook, RateMemory, price_layers, save_manual_rate
from .quote_assembler import assemble_quote_item, manufacturing_costs
from .sheet_layout import resolve_flat_sheet, resolve_sheet_layout
from .strength import board_thickness, box_perimeter, predict_strength
from .units import to_mm

logger = logging.getLogger(__name__)


class BoxCostingEngine:
    """
    Core costing engine for corrugated boxes and sheets.

    Resolution order:
    1. Convert the form dimensions to mm (and OD -> ID for boxes)
    2. Resolve the cut-sheet layout; insufficient input returns None
    3. Price each layer: price book, then rate memory, then the layer's manual rate
    4. Weigh each layer and cost the paper at the resolved rates
    5. Resolve board thickness and predict BS / ECT / BCT
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        price_book: Optional[PriceBook] = None,
        rate_memory: Optional[RateMemory] = None,
    ):
        self.settings = settings or get_settings()
        self.price_book = price_book or PriceBook.build()
        self.rate_memory = rate_memory if rate_memory is not None else RateMemory()

    def reload_price_book(self, price_book: PriceBook):
        """Swap in a new price book. Quote items already assembled keep their rates."""
        self.price_book = price_book

    def default_layers(self, ply: str, flute_combination: Optional[str] = None) -> list[LayerSpec]:
        return default_layers_for_ply(
            ply,
            flute_combination=flute_combination,
            flute_profiles=self.price_book.flute_profiles,
            settings=self.settings,
        )

    def calculate_rsc(
        self,
        box: BoxInput,
        layers: Optional[Sequence[LayerSpec]] = None,
    ) -> Optional[CalculationResult]:
        """
        Calculate an RSC box.

        Args:
            box: Box dimensions and options as entered
            layers: Layer stack; the ply's default stack when None

        Returns:
            CalculationResult, or None when dimensions are insufficient
        """
        layout = resolve_sheet_layout(
            to_mm(box.length, box.unit),
            to_mm(box.width, box.unit),
            to_mm(box.height, box.unit),
            ply=box.ply,
            glue_flap=box.glue_flap,
            deckle_allowance=box.deckle_allowance,
            max_length_threshold=box.max_length_threshold,
            measured_on=box.measured_on,
            settings=self.settings,
        )
        if layout is None:
            return None

        if layers is None:
            layers = self.default_layers(box.ply, box.flute_combination)

        thickness = board_thickness(
            box.ply,
            flute_combination=box.flute_combination,
            manual_thickness=box.board_thickness_override,
            flute_profiles=self.price_book.flute_profiles,
            settings=self.settings,
        )
        perimeter = box_perimeter(layout.length, layout.width)

        result = self._build_result(layout, layers, box.ply, thickness, perimeter)
        result.trace.insert(0, _step(
            "Sheet Layout",
            f"RSC {layout.length:g} x {layout.width:g} x {layout.height:g} mm ({box.measured_on})",
            f"{layout.sheet_length:.1f} x {layout.sheet_width:.1f} mm",
        ))
        if layout.additional_flap_applied:
            result.trace.insert(1, _step(
                "Additional Flap",
                f"Blank longer than {box.max_length_threshold:g} mm, second flap added",
            ))
        return result

    def calculate_sheet(
        self,
        sheet: SheetInput,
        layers: Optional[Sequence[LayerSpec]] = None,
    ) -> Optional[CalculationResult]:
        """Calculate a flat sheet. Returns None when dimensions are insufficient."""
        length = to_mm(sheet.length, sheet.unit)
        width = to_mm(sheet.width, sheet.unit)
        layout = resolve_flat_sheet(length, width, sheet.allowance, settings=self.settings)
        if layout is None:
            return None

        if layers is None:
            layers = self.default_layers(sheet.ply, sheet.flute_combination)

        thickness = board_thickness(
            sheet.ply,
            flute_combination=sheet.flute_combination,
            manual_thickness=sheet.board_thickness_override,
            flute_profiles=self.price_book.flute_profiles,
            settings=self.settings,
        )
        perimeter = box_perimeter(length, width)

        result = self._build_result(layout, layers, sheet.ply, thickness, perimeter)
        result.trace.insert(0, _step(
            "Sheet Layout",
            f"Flat sheet {length:g} x {width:g} mm",
            f"{layout.sheet_length:.1f} x {layout.sheet_width:.1f} mm",
        ))
        return result

    def _build_result(
        self,
        layout: SheetLayout,
        layers: Sequence[LayerSpec],
        ply: str,
        thickness: float,
        perimeter: float,
    ) -> CalculationResult:
        priced = price_layers(layers, self.price_book, self.rate_memory)
        weights = aggregate_layers(
            layout.sheet_length, layout.sheet_width, priced.layers, ply, settings=self.settings
        )
        cost = paper_cost(weights.layer_weights, priced.layers)
        strength = predict_strength(priced.layers, thickness, perimeter, settings=self.settings)

        result = CalculationResult(
            sheet_length=layout.sheet_length,
            sheet_width=layout.sheet_width,
            sheet_weight=weights.total_weight,
            layer_weights=list(weights.layer_weights),
            bs=strength.bs,
            paper_cost=cost,
            board_thickness=thickness,
            box_perimeter=perimeter,
            ect=strength.ect,
            bct=strength.bct,
            layer_specs=priced.layers,
            additional_flap_applied=layout.additional_flap_applied,
            unresolved_layers=priced.unresolved,
        )

        for layer, source, weight in zip(priced.layers, priced.sources, weights.layer_weights):
            label = (
                f"L{layer.layer_index + 1} {layer.layer_type} "
                f"{_num(layer.gsm, 'g')}gsm BF{_num(layer.bf, 'g')} {layer.shade or ''}"
            )
            if source is None:
                result.add_trace("Paper Rate", f"{label}: no price found, rate needs manual entry")
                result.add_warning(
                    f"No paper price for BF {_num(layer.bf, 'g')} / {layer.shade} (layer {layer.layer_index + 1})"
                )
            else:
                result.add_trace("Paper Rate", f"{label} ({source})", f"₹{_num(layer.rate, '.2f')}/kg")
            result.add_trace("Layer Weight", label, f"{weight:.4f}")

        result.add_trace("Sheet Weight", f"{len(priced.layers)} layers", f"{result.sheet_weight:.4f}")
        result.add_trace("Paper Cost", "Σ layer weight × rate", f"₹{result.paper_cost:.2f}")
        result.add_trace("Board Thickness", f"{ply}-ply", f"{thickness:.2f} mm")
        result.add_trace("Strength", f"BS {strength.bs:.2f} kg/cm, ECT {strength.ect:.2f} kN/m",
                         f"BCT {strength.bct:.1f} kg")
        return result

    def add_to_quote(
        self,
        result: CalculationResult,
        source,
        quantity: float,
        options: Optional[ManufacturingOptions] = None,
        markup_percent: Optional[float] = None,
        conversion_cost_per_kg: Optional[float] = None,
        name: Optional[str] = None,
        description: Optional[str] = None,
    ) -> QuoteItem:
        """Price add-ons for the result and freeze it into a quote line."""
        add_ons = manufacturing_costs(
            options or ManufacturingOptions(),
            quantity,
            result.sheet_length,
            result.sheet_width,
        )
        return assemble_quote_item(
            result,
            add_ons,
            markup_percent,
            quantity,
            conversion_cost_per_kg=conversion_cost_per_kg,
            source=source,
            name=name,
            description=description,
            settings=self.settings,
        )

    def remember_rate(self, bf: float, shade: str, rate: float):
        self.rate_memory.remember(bf, shade, rate)

    def set_manual_rate(self, layer: LayerSpec, rate: float) -> LayerSpec:
        """Override a layer's rate and remember it for its BF + shade."""
        return save_manual_rate(layer, rate, self.rate_memory)


def _step(step: str, description: str, value: Optional[str] = None) -> TraceStep:
    return TraceStep(step=step, description=description, value=value)


def _num(value, spec: str) -> str:
    """Format a form number for the trace; blanks render as '-'."""
    if value is None:
        return "-"
    try:
        return format(value, spec)
    except (TypeError, ValueError):
        return str(value)
