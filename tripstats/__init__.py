"""
tripstats - trip statistics for electric and plug-in hybrid vehicles.

Usage:
    from tripstats import compute

    result = compute(trips, settings={"electricStrategy": "dynamic"}, charges=charges)
    print(result.summary.avg_eff)
"""

from .calculations.battery import estimate_initial_soc, estimate_soh
from .models import Charge, ChargerType, ProcessedResult, Settings, Trip
from .services.processing_service import compute

__version__ = "1.0.0"

__all__ = [
    "Charge",
    "ChargerType",
    "ProcessedResult",
    "Settings",
    "Trip",
    "compute",
    "estimate_initial_soc",
    "estimate_soh",
]
