"""Engine subpackage - sheet layout, paper pricing, strength and quote assembly."""
from .costing_engine import BoxCostingEngine
from .models import BoxInput, SheetInput, LayerSpec, ManufacturingOptions, CalculationResult, QuoteItem
from .paper_pricing import PriceBook, PricingRule, RateMemory

__all__ = [
    'BoxCostingEngine', 'BoxInput', 'SheetInput', 'LayerSpec', 'ManufacturingOptions',
    'CalculationResult', 'QuoteItem', 'PriceBook', 'PricingRule', 'RateMemory',
]
