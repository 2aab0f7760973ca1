"""Service layer for tripstats."""

from .processing_service import compute, validate_trips

__all__ = ['compute', 'validate_trips']
