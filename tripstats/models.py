"""
Data models for the trip analytics engine.

Inputs (trips, charges, charger types, settings) are immutable dataclasses
that can be built from the plain dictionaries exported by the mobile app.
Numeric fields that are absent stay ``None`` so that "missing" and "explicit
zero" remain distinguishable; arithmetic coerces them with :func:`num`.

Outputs (buckets, summary, SoH result, processed result) are plain
dataclasses that serialise with :meth:`ProcessedResult.to_dict`.
"""

import math
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple

STATIONARY_DISTANCE_KM = 0.5


def as_number(value: Any, allow_strings: bool = False) -> Optional[float]:
    """
    Return ``value`` as a finite float, or None if it is not numeric.

    Booleans are not numbers here. Numeric strings are accepted only when
    ``allow_strings`` is set (settings forms store prices as text).

    Examples:
        >>> as_number(3)
        3.0
        >>> as_number("0.25") is None
        True
        >>> as_number("0.25", allow_strings=True)
        0.25
        >>> as_number(float("nan")) is None
        True
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        value = float(value)
    elif allow_strings and isinstance(value, str):
        try:
            value = float(value.strip())
        except ValueError:
            return None
    else:
        return None
    return value if math.isfinite(value) else None


def num(value: Optional[float]) -> float:
    """Coerce an optional numeric field to a float for arithmetic."""
    return value if value is not None else 0.0


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        if data.get(key) is not None:
            return data[key]
    return None


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    return str(value)


# ============================================================================
# Inputs
# ============================================================================


@dataclass(frozen=True)
class Trip:
    """One driving segment, optionally decorated with its attributed cost."""

    distance: Optional[float] = None
    electricity: Optional[float] = None
    fuel: Optional[float] = None
    duration: Optional[float] = None
    date: Optional[str] = None
    month: Optional[str] = None
    start_timestamp: Optional[float] = None
    end_timestamp: Optional[float] = None

    # Set on priced copies only
    calculated_cost: Optional[float] = None
    electric_cost: Optional[float] = None
    fuel_cost: Optional[float] = None

    @property
    def is_stationary(self) -> bool:
        """Segments under 0.5 km are parked/idle consumption, not driving."""
        return num(self.distance) < STATIONARY_DISTANCE_KM

    def with_cost(self, electric_cost: float, fuel_cost: float) -> "Trip":
        """Return a copy carrying the cost breakdown."""
        return replace(
            self,
            calculated_cost=electric_cost + fuel_cost,
            electric_cost=electric_cost,
            fuel_cost=fuel_cost,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Trip":
        """
        Build a trip from an exported record.

        ``trip`` is accepted as an alias of ``distance``. A missing month key
        is derived from the YYYYMMDD date.
        """
        trip_date = _text(data.get("date"))
        month = _text(data.get("month"))
        if month is None and trip_date and len(trip_date) >= 6:
            month = trip_date[:6]

        return cls(
            distance=as_number(_first(data, "distance", "trip")),
            electricity=as_number(data.get("electricity")),
            fuel=as_number(data.get("fuel")),
            duration=as_number(data.get("duration")),
            date=trip_date,
            month=month,
            start_timestamp=as_number(data.get("start_timestamp")),
            end_timestamp=as_number(data.get("end_timestamp")),
            calculated_cost=as_number(_first(data, "calculated_cost", "calculatedCost")),
            electric_cost=as_number(_first(data, "electric_cost", "electricCost")),
            fuel_cost=as_number(_first(data, "fuel_cost", "fuelCost")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Charge:
    """One charging (electric) or refuelling (fuel) event."""

    date: Optional[str] = None
    time: Optional[str] = None
    kwh_charged: Optional[float] = None
    liters_charged: Optional[float] = None
    total_cost: Optional[float] = None
    initial_percentage: Optional[float] = None
    final_percentage: Optional[float] = None
    odometer: Optional[float] = None
    charger_type_id: Optional[str] = None
    type: Optional[str] = None
    speed_kw: Optional[float] = None

    @property
    def is_electric(self) -> bool:
        """Charges without a type predate hybrid support and are electric."""
        return not self.type or self.type == "electric"

    @property
    def is_fuel(self) -> bool:
        return self.type == "fuel"

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Charge":
        return cls(
            date=_text(data.get("date")),
            time=_text(data.get("time")),
            kwh_charged=as_number(_first(data, "kwh_charged", "kwhCharged", "kwh")),
            liters_charged=as_number(_first(data, "liters_charged", "litersCharged")),
            total_cost=as_number(_first(data, "total_cost", "totalCost")),
            initial_percentage=as_number(_first(data, "initial_percentage", "initialPercentage")),
            final_percentage=as_number(_first(data, "final_percentage", "finalPercentage")),
            odometer=as_number(data.get("odometer")),
            charger_type_id=_text(_first(data, "charger_type_id", "chargerTypeId")),
            type=_text(data.get("type")),
            speed_kw=as_number(_first(data, "speed_kw", "speedKw")),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class ChargerType:
    """Charger profile mapping an id to its wall-to-battery efficiency."""

    id: str
    name: Optional[str] = None
    efficiency: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ChargerType":
        return cls(
            id=str(data.get("id")),
            name=_text(data.get("name")),
            efficiency=as_number(data.get("efficiency"), allow_strings=True),
        )


# camelCase keys used by the app's settings store
_SETTINGS_ALIASES = {
    "electricStrategy": "electric_strategy",
    "fuelStrategy": "fuel_strategy",
    "electricPrice": "electric_price",
    "electricityPrice": "electric_price",
    "fuelPrice": "fuel_price",
    "batterySize": "battery_size",
    "sohMode": "soh_mode",
    "mfgDate": "mfg_date",
    "chargerTypes": "charger_types",
    "thermalStressFactor": "thermal_stress_factor",
    "language": "locale",
}

_NUMERIC_SETTINGS = ("electric_price", "fuel_price", "battery_size", "soh", "thermal_stress_factor")


@dataclass(frozen=True)
class Settings:
    """Pricing, battery and presentation settings for one computation."""

    electric_strategy: str = "custom"
    fuel_strategy: str = "custom"
    electric_price: Optional[float] = None
    fuel_price: Optional[float] = None
    battery_size: Optional[float] = None
    soh: Optional[float] = None
    soh_mode: str = "manual"
    mfg_date: Optional[str] = None
    charger_types: Tuple[ChargerType, ...] = ()
    thermal_stress_factor: Optional[float] = None
    locale: Optional[str] = None
    timezone: Optional[str] = None

    @property
    def uses_calculated_soh(self) -> bool:
        return self.soh_mode == "calculated"

    @classmethod
    def from_dict(cls, data: Optional[Mapping[str, Any]]) -> "Settings":
        """
        Build settings from a flat mapping.

        Accepts snake_case or the app's camelCase keys; numeric values may be
        numbers or numeric strings. Unknown keys are ignored.
        """
        if not data:
            return cls()

        known = {f.name for f in fields(cls)}
        values: Dict[str, Any] = {}
        for key, value in data.items():
            name = _SETTINGS_ALIASES.get(key, key)
            if name in known and value is not None:
                values.setdefault(name, value)

        for name in _NUMERIC_SETTINGS:
            if name in values:
                values[name] = as_number(values[name], allow_strings=True)

        values["charger_types"] = tuple(to_charger_types(values.get("charger_types")))

        for name in ("electric_strategy", "fuel_strategy", "soh_mode", "mfg_date", "locale", "timezone"):
            if name in values:
                values[name] = str(values[name])

        return cls(**values)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# Aggregate buckets
# ============================================================================


@dataclass
class MonthlyBucket:
    month: str
    trips: int = 0
    km: float = 0.0
    kwh: float = 0.0
    fuel: float = 0.0
    efficiency: float = 0.0
    fuel_efficiency: float = 0.0
    month_label: str = ""


@dataclass
class DailyBucket:
    date: str
    trips: int = 0
    km: float = 0.0
    kwh: float = 0.0
    fuel: float = 0.0
    efficiency: float = 0.0
    fuel_efficiency: float = 0.0
    date_label: str = ""


@dataclass
class HourlyBucket:
    hour: int
    trips: int = 0
    km: float = 0.0


@dataclass
class WeekdayBucket:
    day: str
    trips: int = 0
    km: float = 0.0


@dataclass
class DistributionBucket:
    range: str
    count: int = 0


@dataclass(frozen=True)
class ScatterPoint:
    x: float
    y: float
    fuel: float


# ============================================================================
# Results
# ============================================================================


@dataclass(frozen=True)
class DegradationBreakdown:
    sei: float = 0.0
    cycle: float = 0.0
    calendar: float = 0.0


@dataclass(frozen=True)
class SoHResult:
    """Battery State-of-Health estimate and its degradation components."""

    estimated_soh: float
    real_cycles_count: float
    stress_score: float
    charging_stress: float
    thermal_stress: float
    calibration_warning: bool
    degradation: DegradationBreakdown = field(default_factory=DegradationBreakdown)


@dataclass(frozen=True)
class Summary:
    """Human-facing totals, averages and records for a dataset."""

    total_trips: int
    total_km: str
    total_kwh: str
    driving_kwh: str
    stationary_consumption: str
    total_hours: str
    avg_eff: str
    estimated_range: str
    estimated_range_highway: str
    estimated_range_city: str
    avg_km: str
    avg_min: str
    avg_speed: str
    days_active: int
    total_days: int
    date_range: str
    max_km: str
    min_km: str
    max_kwh: str
    max_min: str
    trips_day: str
    km_day: str
    is_hybrid: bool
    total_fuel: str
    avg_fuel_eff: str
    electric_percentage: str
    fuel_percentage: str
    electric_only_trips: int
    fuel_used_trips: int
    ev_mode_usage: str
    max_fuel: str
    max_cost: str
    max_cost_date: str
    soh: float
    soh_data: Optional[SoHResult] = None


@dataclass(frozen=True)
class TopRecords:
    km: List[Trip] = field(default_factory=list)
    kwh: List[Trip] = field(default_factory=list)
    dur: List[Trip] = field(default_factory=list)
    fuel: List[Trip] = field(default_factory=list)


@dataclass(frozen=True)
class ProcessedResult:
    """Everything the dashboards need, computed from one set of inputs."""

    summary: Summary
    monthly: List[MonthlyBucket]
    daily: List[DailyBucket]
    hourly: List[HourlyBucket]
    weekday: List[WeekdayBucket]
    trip_dist: List[DistributionBucket]
    eff_scatter: List[ScatterPoint]
    top: TopRecords
    is_hybrid: bool

    def to_dict(self) -> Dict[str, Any]:
        """Plain, JSON-serialisable copy of the result."""
        return asdict(self)


def to_charges(items: Optional[Iterable[Any]]) -> List[Charge]:
    """Normalise charges given as dataclasses or mappings; others are skipped."""
    if not isinstance(items, Iterable):
        return []
    return [
        item if isinstance(item, Charge) else Charge.from_dict(item)
        for item in items
        if isinstance(item, (Charge, Mapping))
    ]


def to_charger_types(items: Optional[Iterable[Any]]) -> List[ChargerType]:
    """Normalise charger types given as dataclasses or mappings."""
    if not isinstance(items, Iterable):
        return []
    return [
        item if isinstance(item, ChargerType) else ChargerType.from_dict(item)
        for item in items
        if isinstance(item, (ChargerType, Mapping))
    ]
