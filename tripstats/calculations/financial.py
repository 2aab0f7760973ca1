"""
Financial Calculations

Attributes a monetary cost to each trip:
- Pricing strategies (fixed, fleet average, time-nearest dynamic)
- Effective unit price of a charge
- Per-trip cost breakdown (electric + fuel)
"""

import bisect
import logging
from dataclasses import dataclass
from datetime import tzinfo
from enum import Enum
from typing import Iterable, List, Optional

from ..models import Charge, Settings, Trip, num, to_charges
from ..utils.time_utils import charge_timestamp, resolve_timezone

logger = logging.getLogger(__name__)


class PriceStrategy(str, Enum):
    """How a unit price is chosen for a trip's consumption."""

    FIXED = "custom"
    AVERAGE = "average"
    DYNAMIC = "dynamic"

    @classmethod
    def parse(cls, value: Optional[str]) -> "PriceStrategy":
        """
        Parse a stored strategy name; unknown names fall back to FIXED.

        Examples:
            >>> PriceStrategy.parse("dynamic")
            <PriceStrategy.DYNAMIC: 'dynamic'>
            >>> PriceStrategy.parse("fixed")
            <PriceStrategy.FIXED: 'custom'>
        """
        if not value:
            return cls.FIXED
        value = value.strip().lower()
        if value == "fixed":
            return cls.FIXED
        try:
            return cls(value)
        except ValueError:
            logger.warning(f"Unknown price strategy '{value}', using fixed price")
            return cls.FIXED


class EnergyKind(str, Enum):
    ELECTRIC = "electric"
    FUEL = "fuel"


@dataclass(frozen=True)
class PricedCharge:
    """A charge reduced to what dynamic pricing needs."""

    timestamp: float
    effective_price: float


@dataclass(frozen=True)
class TripCost:
    electric_cost: float
    fuel_cost: float

    @property
    def total_cost(self) -> float:
        return self.electric_cost + self.fuel_cost


def charge_quantity(charge: Charge, kind: EnergyKind) -> float:
    """Energy (kWh) or fuel (litres) added by a charge."""
    if kind is EnergyKind.FUEL:
        return num(charge.liters_charged)
    return num(charge.kwh_charged)


def calculate_effective_price(total_cost: Optional[float], quantity: float) -> float:
    """
    Unit price paid in a single charge.

    Examples:
        >>> calculate_effective_price(4.0, 20.0)
        0.2
        >>> calculate_effective_price(0.0, 20.0)  # Free charge
        0.0
        >>> calculate_effective_price(4.0, 0)
        0.0
    """
    if quantity <= 0:
        return 0.0
    return num(total_cost) / quantity


def calculate_average_price(charges: Iterable[Charge], kind: EnergyKind) -> Optional[float]:
    """
    Fleet-average unit price: total cost over total quantity.

    Returns:
        Average price, or None when no quantity was charged

    Examples:
        >>> charges = [Charge(kwh_charged=100, total_cost=20), Charge(kwh_charged=50, total_cost=25)]
        >>> round(calculate_average_price(charges, EnergyKind.ELECTRIC), 2)
        0.3
    """
    total_cost = 0.0
    total_quantity = 0.0
    for charge in charges:
        total_cost += num(charge.total_cost)
        total_quantity += charge_quantity(charge, kind)

    if total_quantity <= 0:
        return None
    return total_cost / total_quantity


def build_price_timeline(
    charges: Iterable[Charge],
    kind: EnergyKind,
    tz: Optional[tzinfo] = None
) -> List[PricedCharge]:
    """
    Timestamp and price each charge, sorted oldest first.

    Charges whose date cannot be parsed get timestamp 0.
    """
    timeline = [
        PricedCharge(
            timestamp=charge_timestamp(charge.date, charge.time, tz) or 0.0,
            effective_price=calculate_effective_price(charge.total_cost, charge_quantity(charge, kind)),
        )
        for charge in charges
    ]
    timeline.sort(key=lambda priced: priced.timestamp)
    return timeline


class KindPricer:
    """Resolves the unit price for one energy kind."""

    def __init__(
        self,
        strategy: PriceStrategy,
        fixed_price: float,
        average_price: Optional[float] = None,
        timeline: Optional[List[PricedCharge]] = None
    ):
        self.strategy = strategy
        self.fixed_price = fixed_price
        self.average_price = average_price
        self.timeline = timeline or []
        self._timestamps = [priced.timestamp for priced in self.timeline]

    def price(self, trip: Trip) -> float:
        if self.strategy is PriceStrategy.AVERAGE:
            return self.average_price if self.average_price is not None else self.fixed_price

        if self.strategy is PriceStrategy.DYNAMIC:
            # Most recent charge strictly before the trip started
            index = bisect.bisect_left(self._timestamps, num(trip.start_timestamp))
            if index > 0:
                return self.timeline[index - 1].effective_price

        return self.fixed_price


class PriceResolver:
    """
    Unit-price lookup for trips under the configured strategies.

    Charge-derived data (averages, sorted timelines) is prepared once at
    construction; each lookup is then a constant or logarithmic operation.

    Usage:
        resolver = PriceResolver.from_settings(settings, charges)
        cost = calculate_trip_cost(trip, resolver)
    """

    def __init__(self, electric: KindPricer, fuel: KindPricer):
        self._pricers = {EnergyKind.ELECTRIC: electric, EnergyKind.FUEL: fuel}

    @classmethod
    def from_settings(cls, settings: Settings, charges: Optional[Iterable[Charge]] = None) -> "PriceResolver":
        charges = to_charges(charges)
        tz = resolve_timezone(settings.timezone)

        pricers = {}
        for kind, strategy_name, fixed_price in (
            (EnergyKind.ELECTRIC, settings.electric_strategy, settings.electric_price),
            (EnergyKind.FUEL, settings.fuel_strategy, settings.fuel_price),
        ):
            strategy = PriceStrategy.parse(strategy_name)
            matching = [c for c in charges if (c.is_fuel if kind is EnergyKind.FUEL else c.is_electric)]

            average_price = None
            timeline = None
            if strategy is PriceStrategy.AVERAGE:
                average_price = calculate_average_price(matching, kind)
            elif strategy is PriceStrategy.DYNAMIC:
                timeline = build_price_timeline(matching, kind, tz)

            pricers[kind] = KindPricer(strategy, num(fixed_price), average_price, timeline)

        return cls(pricers[EnergyKind.ELECTRIC], pricers[EnergyKind.FUEL])

    def price(self, trip: Trip, kind: EnergyKind) -> float:
        """Unit price for ``trip``'s consumption of ``kind``."""
        return self._pricers[kind].price(trip)


def calculate_trip_cost(trip: Trip, resolver: PriceResolver) -> TripCost:
    """
    Cost breakdown for a trip: electricity x electric price + fuel x fuel price.

    Examples:
        >>> resolver = PriceResolver.from_settings(Settings(electric_price=0.2))
        >>> calculate_trip_cost(Trip(distance=100, electricity=15), resolver).total_cost
        3.0
    """
    electric_price = resolver.price(trip, EnergyKind.ELECTRIC)
    fuel_price = resolver.price(trip, EnergyKind.FUEL)
    return TripCost(
        electric_cost=num(trip.electricity) * electric_price,
        fuel_cost=num(trip.fuel) * fuel_price,
    )


def price_trip(trip: Trip, resolver: PriceResolver) -> Trip:
    """Return a copy of ``trip`` decorated with its cost breakdown."""
    cost = calculate_trip_cost(trip, resolver)
    return trip.with_cost(cost.electric_cost, cost.fuel_cost)
