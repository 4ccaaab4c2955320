"""
Data models for the box costing engine.

Uses dataclasses for structured, type-safe data representation.
Snapshot types (LayerSpec, PriceBreakdown, QuoteItem) are frozen so a saved
quote line can never be changed in place; edits go through dataclasses.replace.
"""
from dataclasses import dataclass, field
from typing import Optional

from .units import mm_to_inches


LINER = "liner"
FLUTE = "flute"
LAYER_TYPES = (LINER, FLUTE)

MEASURED_ID = "ID"
MEASURED_OD = "OD"

NEGOTIATION_NONE = "none"
NEGOTIATION_PERCENTAGE = "percentage"
NEGOTIATION_FIXED = "fixed"
NEGOTIATION_MODES = (NEGOTIATION_NONE, NEGOTIATION_PERCENTAGE, NEGOTIATION_FIXED)


@dataclass
class TraceStep:
    """A single step in the calculation trace."""
    step: str
    description: str
    value: Optional[str] = None


@dataclass(frozen=True)
class PriceBreakdown:
    """Additive components of a resolved paper rate (₹/kg)."""
    bf_base_price: float
    gsm_adjustment: float
    shade_premium: float
    market_adjustment: float
    notes: tuple[str, ...] = ()

    @property
    def final_rate(self) -> float:
        return self.bf_base_price + self.gsm_adjustment + self.shade_premium + self.market_adjustment

    def to_dict(self) -> dict:
        return {
            "bfBasePrice": self.bf_base_price,
            "gsmAdjustment": self.gsm_adjustment,
            "shadePremium": self.shade_premium,
            "marketAdjustment": self.market_adjustment,
        }


@dataclass(frozen=True)
class LayerSpec:
    """One paper layer of the board. layer_type is the only source of the liner/flute role."""
    layer_index: int
    layer_type: str
    gsm: float
    bf: float
    fluting_factor: float = 1.0
    rct_value: float = 0.0
    shade: str = ""
    rate: float = 0.0
    price_override: bool = False
    calculated_rate: Optional[float] = None
    manual_rate: Optional[float] = None
    price_breakdown: Optional[PriceBreakdown] = None

    @property
    def is_flute(self) -> bool:
        return (self.layer_type or "").strip().lower() == FLUTE

    def to_dict(self) -> dict:
        data = {
            "layerIndex": self.layer_index,
            "layerType": self.layer_type,
            "gsm": self.gsm,
            "bf": self.bf,
            "flutingFactor": self.fluting_factor,
            "rctValue": self.rct_value,
            "shade": self.shade,
            "rate": self.rate,
            "priceOverride": self.price_override,
        }
        if self.calculated_rate is not None:
            data["calculatedRate"] = self.calculated_rate
        if self.manual_rate is not None:
            data["manualRate"] = self.manual_rate
        if self.price_breakdown is not None:
            data["priceBreakdown"] = self.price_breakdown.to_dict()
        return data


@dataclass(frozen=True)
class SheetLayout:
    """Cut-sheet size for one box or flat sheet (mm)."""
    sheet_length: float
    sheet_width: float
    additional_flap_applied: bool = False
    # Post ID/OD dimensions the layout was computed from
    length: float = 0.0
    width: float = 0.0
    height: Optional[float] = None


@dataclass(frozen=True)
class LayerWeights:
    """Sheet weight split per layer, index-aligned with the input layers."""
    total_weight: float
    layer_weights: tuple[float, ...]


@dataclass(frozen=True)
class StrengthResult:
    bs: float
    ect: float
    bct: float


@dataclass
class BoxInput:
    """RSC box request as typed into the quote form."""
    length: Optional[float]
    width: Optional[float]
    height: Optional[float]
    ply: str = "5"
    unit: str = "mm"  # "mm" or "inches"
    measured_on: str = MEASURED_ID
    glue_flap: Optional[float] = None
    deckle_allowance: Optional[float] = None
    max_length_threshold: Optional[float] = None
    flute_combination: Optional[str] = None
    board_thickness_override: Optional[float] = None
    name: str = ""


@dataclass
class SheetInput:
    """Flat sheet request."""
    length: Optional[float]
    width: Optional[float]
    ply: str = "3"
    unit: str = "mm"
    allowance: Optional[float] = None
    flute_combination: Optional[str] = None
    board_thickness_override: Optional[float] = None
    name: str = ""


@dataclass
class ManufacturingOptions:
    """
    Finishing and conversion add-ons, each toggled independently.

    Printing, die and plate charges are job-level and get spread over the quantity;
    lamination is priced per square inch of sheet.
    """
    printing_enabled: bool = False
    cost_per_print: float = 0.0
    plate_cost: float = 0.0
    print_moq: float = 0.0

    lamination_enabled: bool = False
    lamination_rate: float = 0.0
    lamination_length_in: Optional[float] = None
    lamination_width_in: Optional[float] = None

    die_enabled: bool = False
    die_development_charge: float = 0.0

    punching_enabled: bool = False
    punching_cost: float = 0.0

    varnish_enabled: bool = False
    varnish_cost: float = 0.0


@dataclass(frozen=True)
class AddOnCosts:
    """Per-box manufacturing add-on costs."""
    printing: float = 0.0
    lamination: float = 0.0
    varnish: float = 0.0
    die: float = 0.0
    punching: float = 0.0

    @property
    def total(self) -> float:
        return self.printing + self.lamination + self.varnish + self.die + self.punching


@dataclass
class CalculationResult:
    """Derived values for one box/sheet configuration. Recomputed on every input change."""
    sheet_length: float
    sheet_width: float
    sheet_weight: float
    layer_weights: list[float]
    bs: float
    paper_cost: float
    board_thickness: float
    box_perimeter: float
    ect: float
    bct: float
    layer_specs: list[LayerSpec]
    additional_flap_applied: bool = False
    unresolved_layers: list[int] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    trace: list[TraceStep] = field(default_factory=list)

    def add_trace(self, step: str, description: str, value: str = None):
        """Add a step to the calculation trace."""
        self.trace.append(TraceStep(step=step, description=description, value=value))

    def add_warning(self, warning: str):
        self.warnings.append(warning)

    def get_trace_text(self) -> str:
        """Get human-readable trace as formatted text."""
        lines = []
        for t in self.trace:
            if t.value:
                lines.append(f"• {t.step}: {t.description} = {t.value}")
            else:
                lines.append(f"• {t.step}: {t.description}")
        return "\n".join(lines)


@dataclass(frozen=True)
class QuoteItem:
    """
    Priced quote line. Append-only snapshot: paper cost and layer specs are frozen
    at assembly time and never re-resolved from price tables.
    """
    item_type: str  # "rsc" or "sheet"
    name: str
    ply: str
    length: float
    width: float
    height: Optional[float]
    sheet_length: float
    sheet_width: float
    sheet_weight: float
    board_thickness: float
    box_perimeter: float
    ect: float
    bct: float
    bs: float
    layer_specs: tuple[LayerSpec, ...]
    paper_cost: float
    total_cost_per_box: float
    quantity: float
    total_value: float

    description: Optional[str] = None
    input_unit: str = "mm"
    measured_on: str = MEASURED_ID
    ply_thickness_used: Optional[float] = None
    glue_flap: Optional[float] = None
    deckle_allowance: Optional[float] = None
    sheet_allowance: Optional[float] = None
    max_length_threshold: Optional[float] = None
    additional_flap_applied: bool = False
    thickness_source: str = "calculated"

    printing_cost: float = 0.0
    lamination_cost: float = 0.0
    varnish_cost: float = 0.0
    die_cost: float = 0.0
    punching_cost: float = 0.0
    conversion_cost_per_kg: float = 0.0
    markup_percent: float = 0.0

    negotiation_mode: str = NEGOTIATION_NONE
    negotiation_value: Optional[float] = None
    original_price: Optional[float] = None
    negotiated_price: Optional[float] = None

    # Layer positions whose rate no price source resolved when the line was saved
    unresolved_layers: tuple[int, ...] = ()

    @property
    def has_unresolved_rates(self) -> bool:
        return bool(self.unresolved_layers)

    @property
    def sheet_length_inches(self) -> float:
        return mm_to_inches(self.sheet_length)

    @property
    def sheet_width_inches(self) -> float:
        return mm_to_inches(self.sheet_width)

    @property
    def add_on_costs(self) -> AddOnCosts:
        return AddOnCosts(
            printing=self.printing_cost,
            lamination=self.lamination_cost,
            varnish=self.varnish_cost,
            die=self.die_cost,
            punching=self.punching_cost,
        )

    @property
    def price_per_box(self) -> float:
        """Negotiated price if one is active, otherwise the computed cost."""
        if self.negotiation_mode != NEGOTIATION_NONE and self.negotiated_price is not None:
            return self.negotiated_price
        return self.total_cost_per_box

    def to_dict(self) -> dict:
        """Export dict for reporting/export collaborators."""
        return {
            "type": self.item_type,
            "boxName": self.name,
            "boxDescription": self.description,
            "ply": self.ply,
            "inputUnit": self.input_unit,
            "measuredOn": self.measured_on,
            "plyThicknessUsed": self.ply_thickness_used,
            "length": self.length,
            "width": self.width,
            "height": self.height,
            "glueFlap": self.glue_flap,
            "deckleAllowance": self.deckle_allowance,
            "sheetAllowance": self.sheet_allowance,
            "maxLengthThreshold": self.max_length_threshold,
            "additionalFlapApplied": self.additional_flap_applied,
            "sheetLength": self.sheet_length,
            "sheetWidth": self.sheet_width,
            "sheetLengthInches": self.sheet_length_inches,
            "sheetWidthInches": self.sheet_width_inches,
            "sheetWeight": self.sheet_weight,
            "boardThickness": self.board_thickness,
            "thicknessSource": self.thickness_source,
            "boxPerimeter": self.box_perimeter,
            "ect": self.ect,
            "bct": self.bct,
            "bs": self.bs,
            "layerSpecs": [spec.to_dict() for spec in self.layer_specs],
            "paperCost": self.paper_cost,
            "printingCost": self.printing_cost,
            "laminationCost": self.lamination_cost,
            "varnishCost": self.varnish_cost,
            "dieCost": self.die_cost,
            "punchingCost": self.punching_cost,
            "totalCostPerBox": self.total_cost_per_box,
            "quantity": self.quantity,
            "totalValue": self.total_value,
            "negotiationMode": self.negotiation_mode,
            "negotiationValue": self.negotiation_value,
            "originalPrice": self.original_price,
            "negotiatedPrice": self.negotiated_price,
            "unresolvedLayers": list(self.unresolved_layers),
        }
