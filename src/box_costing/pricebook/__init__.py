"""Price book subpackage - paper price tables loaded from CSV/JSON files."""
from .loader import PriceBookError, load_price_book

__all__ = ['PriceBookError', 'load_price_book']
