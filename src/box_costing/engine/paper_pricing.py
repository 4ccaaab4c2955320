"""
Paper Price Resolver - per-kg paper rate for a layer.

Rate formula (all additive):
    BF base price + GSM band adjustment + shade premium + market adjustment

Resolution order for a layer is an explicit chain of strategies:
1. Price book (BF must match exactly)
2. Rate memory (last manual rate entered for the same BF + shade)
3. Manual rate already carried on the layer
A layer nothing resolves is reported as unresolved; it never defaults to zero.
"""
import logging
from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Mapping, Optional, Sequence

from .flutes import FluteProfile, DEFAULT_FLUTE_PROFILES
from .models import LayerSpec, PriceBreakdown
from .units import non_negative

logger = logging.getLogger(__name__)

SOURCE_PRICE_BOOK = "price_book"
SOURCE_RATE_MEMORY = "rate_memory"
SOURCE_MANUAL = "manual"


@dataclass(frozen=True)
class PricingRule:
    """Global GSM band and market thresholds for paper pricing."""
    low_gsm_limit: float = 101.0
    high_gsm_limit: float = 201.0
    low_gsm_adjustment: float = 0.0
    high_gsm_adjustment: float = 0.0
    market_adjustment: float = 0.0


def _bf_key(bf) -> float:
    return float(bf)


@dataclass(frozen=True)
class PriceBook:
    """
    Read-only price tables handed to every resolver call.

    Build through PriceBook.build(); the tables are copied so later edits to
    the caller's dicts cannot leak into a calculation.
    """
    bf_prices: Mapping[float, float] = field(default_factory=lambda: MappingProxyType({}))
    # lowercased shade -> (display name, premium)
    shade_premiums: Mapping[str, tuple[str, float]] = field(default_factory=lambda: MappingProxyType({}))
    rules: PricingRule = field(default_factory=PricingRule)
    flute_profiles: Mapping[str, FluteProfile] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_FLUTE_PROFILES))
    )

    @classmethod
    def build(
        cls,
        bf_prices: Optional[Mapping] = None,
        shade_premiums: Optional[Mapping[str, float]] = None,
        rules: Optional[PricingRule] = None,
        flute_profiles: Optional[Mapping[str, FluteProfile]] = None,
    ) -> 'PriceBook':
        bf_table = {_bf_key(bf): float(price) for bf, price in (bf_prices or {}).items()}
        shade_table = {
            str(shade).strip().lower(): (str(shade).strip(), float(premium))
            for shade, premium in (shade_premiums or {}).items()
        }
        profiles = dict(DEFAULT_FLUTE_PROFILES)
        profiles.update(flute_profiles or {})
        return cls(
            bf_prices=MappingProxyType(bf_table),
            shade_premiums=MappingProxyType(shade_table),
            rules=rules or PricingRule(),
            flute_profiles=MappingProxyType(profiles),
        )

    def base_price(self, bf) -> Optional[float]:
        try:
            return self.bf_prices.get(_bf_key(bf))
        except (TypeError, ValueError):
            return None

    def shade_premium(self, shade: Optional[str]) -> Optional[float]:
        """Premium for a shade (case-insensitive), None if the shade is not configured."""
        entry = self.shade_premiums.get((shade or "").strip().lower())
        return entry[1] if entry else None


def resolve_paper_price(
    gsm: float,
    bf: float,
    shade: str,
    price_book: PriceBook,
) -> Optional[PriceBreakdown]:
    """
    Resolve the per-kg rate for a paper from the price book.

    Returns:
        PriceBreakdown (final_rate is the sum of its parts), or None when the
        BF has no base price
    """
    bf_base_price = price_book.base_price(bf)
    if bf_base_price is None:
        return None

    gsm = non_negative(gsm)
    notes = [f"BF {_bf_key(bf):g} base price: ₹{bf_base_price:.2f}"]
    rules = price_book.rules

    # Two-sided band: mid-range GSM gets no adjustment
    gsm_adjustment = 0.0
    if gsm <= rules.low_gsm_limit:
        gsm_adjustment = rules.low_gsm_adjustment
        notes.append(f"GSM {gsm:g} at/below {rules.low_gsm_limit:g}: +₹{gsm_adjustment:.2f}")
    elif gsm >= rules.high_gsm_limit:
        gsm_adjustment = rules.high_gsm_adjustment
        notes.append(f"GSM {gsm:g} at/above {rules.high_gsm_limit:g}: +₹{gsm_adjustment:.2f}")
    else:
        notes.append(
            f"GSM {gsm:g} in normal range ({rules.low_gsm_limit:g}-{rules.high_gsm_limit:g}): no adjustment"
        )

    premium = price_book.shade_premium(shade)
    if premium is None:
        shade_premium = 0.0
        notes.append(f"{shade} shade: not configured (no premium)")
    else:
        shade_premium = premium
        notes.append(f"{shade} shade premium: +₹{shade_premium:.2f}" if premium else f"{shade} shade: no premium")

    market_adjustment = rules.market_adjustment
    if market_adjustment:
        sign = "+" if market_adjustment >= 0 else ""
        notes.append(f"Market adjustment: {sign}₹{market_adjustment:.2f}")

    breakdown = PriceBreakdown(
        bf_base_price=bf_base_price,
        gsm_adjustment=gsm_adjustment,
        shade_premium=shade_premium,
        market_adjustment=market_adjustment,
        notes=tuple(notes),
    )
    return replace(breakdown, notes=breakdown.notes + (f"Final rate: ₹{breakdown.final_rate:.2f}/Kg",))


class RateMemory:
    """
    Last manually entered rate per (BF, shade).

    Consulted only when the price book has no entry for the BF.
    """

    def __init__(self, entries: Optional[Mapping[str, float]] = None):
        self._rates: dict[str, float] = dict(entries or {})

    @staticmethod
    def key(bf, shade: str) -> str:
        try:
            bf_text = f"{float(bf):g}"
        except (TypeError, ValueError):
            bf_text = str(bf)
        return f"{bf_text}|{(shade or '').strip()}"

    def get(self, bf, shade: str) -> Optional[float]:
        return self._rates.get(self.key(bf, shade))

    def remember(self, bf, shade: str, rate: float):
        self._rates[self.key(bf, shade)] = float(rate)

    def entries(self) -> dict[str, float]:
        return dict(self._rates)

    def __len__(self) -> int:
        return len(self._rates)

    def __contains__(self, key) -> bool:
        return key in self._rates


@dataclass(frozen=True)
class RateResolution:
    """Outcome of one resolution strategy, tagged with where the rate came from."""
    source: str
    rate: float
    breakdown: Optional[PriceBreakdown] = None


class PriceBookStrategy:
    source = SOURCE_PRICE_BOOK

    def __init__(self, price_book: PriceBook):
        self.price_book = price_book

    def resolve(self, layer: LayerSpec) -> Optional[RateResolution]:
        breakdown = resolve_paper_price(layer.gsm, layer.bf, layer.shade, self.price_book)
        if breakdown is None:
            return None
        return RateResolution(self.source, breakdown.final_rate, breakdown)


class RateMemoryStrategy:
    source = SOURCE_RATE_MEMORY

    def __init__(self, rate_memory: RateMemory):
        self.rate_memory = rate_memory

    def resolve(self, layer: LayerSpec) -> Optional[RateResolution]:
        rate = self.rate_memory.get(layer.bf, layer.shade)
        if rate is None:
            return None
        return RateResolution(self.source, rate)


class ManualRateStrategy:
    source = SOURCE_MANUAL

    def resolve(self, layer: LayerSpec) -> Optional[RateResolution]:
        if layer.manual_rate is None:
            return None
        return RateResolution(self.source, layer.manual_rate)


def default_strategies(price_book: PriceBook, rate_memory: Optional[RateMemory] = None) -> tuple:
    """Price book -> rate memory -> manual."""
    return (
        PriceBookStrategy(price_book),
        RateMemoryStrategy(rate_memory if rate_memory is not None else RateMemory()),
        ManualRateStrategy(),
    )


def resolve_rate(layer: LayerSpec, strategies: Sequence) -> Optional[RateResolution]:
    """First strategy that yields a rate wins."""
    for strategy in strategies:
        resolution = strategy.resolve(layer)
        if resolution is not None:
            return resolution
    return None


@dataclass
class PricedLayers:
    layers: list[LayerSpec]
    sources: list[Optional[str]]
    unresolved: list[int] = field(default_factory=list)


def price_layer(
    layer: LayerSpec,
    price_book: PriceBook,
    rate_memory: Optional[RateMemory] = None,
) -> tuple[LayerSpec, Optional[str]]:
    """
    Resolve the rate for one layer.

    An overridden layer keeps its manual rate for costing, but the price-book
    rate and breakdown are still stored on it for comparison.

    Returns:
        (priced copy of the layer, source tag or None if unresolved)
    """
    strategies = default_strategies(price_book, rate_memory)
    reference = strategies[0].resolve(layer)
    calculated_rate = reference.rate if reference else None
    breakdown = reference.breakdown if reference else None

    if layer.price_override:
        manual = layer.manual_rate if layer.manual_rate is not None else layer.rate
        priced = replace(
            layer,
            rate=manual,
            manual_rate=manual,
            calculated_rate=calculated_rate,
            price_breakdown=breakdown,
        )
        return priced, SOURCE_MANUAL

    resolution = reference or resolve_rate(layer, strategies[1:])
    if resolution is None:
        logger.info("No price for BF %s / %s (layer %d)", layer.bf, layer.shade, layer.layer_index)
        return replace(layer, calculated_rate=None, price_breakdown=None), None

    priced = replace(
        layer,
        rate=resolution.rate,
        calculated_rate=calculated_rate,
        price_breakdown=breakdown,
    )
    return priced, resolution.source


def price_layers(
    layers: Sequence[LayerSpec],
    price_book: PriceBook,
    rate_memory: Optional[RateMemory] = None,
) -> PricedLayers:
    """Price every layer; returns copies, the input layers are untouched."""
    result = PricedLayers(layers=[], sources=[])
    for position, layer in enumerate(layers):
        priced, source = price_layer(layer, price_book, rate_memory)
        result.layers.append(priced)
        result.sources.append(source)
        if source is None:
            result.unresolved.append(position)
    return result


def save_manual_rate(layer: LayerSpec, rate: float, rate_memory: RateMemory) -> LayerSpec:
    """
    Switch a layer to a manual rate and remember it for the same BF + shade.
    """
    rate_memory.remember(layer.bf, layer.shade, rate)
    return replace(layer, price_override=True, rate=float(rate), manual_rate=float(rate))
