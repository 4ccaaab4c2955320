"""Services subpackage - persistence around the engine."""
from .rate_memory_service import RateMemoryService, RememberedRate

__all__ = ['RateMemoryService', 'RememberedRate']
