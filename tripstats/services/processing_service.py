"""
Trip processing service for tripstats.

Turns raw trip and charge records into the aggregates shown on the
dashboards: totals, per-period buckets, distributions, records and the
summary with range and battery health estimates.

Every call recomputes from the full input and never mutates it; priced
trips are new copies.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from operator import attrgetter
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Union

from ..calculations.battery import estimate_soh
from ..calculations.constants import (
    DEFAULT_SOH_PERCENT,
    HOURS_PER_DAY,
    TOP_RECORDS_LIMIT,
    TRIP_DISTANCE_RANGES,
    UNKNOWN_BUCKET_KEY,
    WEEKDAY_KEYS,
)
from ..calculations.efficiency import (
    calculate_consumption_per_100km,
    calculate_range_estimates,
    calculate_usable_energy,
    is_plausible_efficiency,
    safe_ratio,
)
from ..calculations.financial import PriceResolver, price_trip
from ..calculations.ranking import descending_by, select_top
from ..config import Config
from ..models import (
    Charge,
    DailyBucket,
    DistributionBucket,
    HourlyBucket,
    MonthlyBucket,
    ProcessedResult,
    ScatterPoint,
    Settings,
    Summary,
    TopRecords,
    Trip,
    WeekdayBucket,
    as_number,
    num,
    to_charges,
)
from ..utils.formatters import format_date, format_fixed, format_month
from ..utils.time_utils import calendar_span_days, local_hour_and_weekday, resolve_timezone

logger = logging.getLogger(__name__)


# ============================================================================
# Record validation
# ============================================================================


def is_valid_trip(record: Any) -> bool:
    """
    Check that a raw record can be aggregated.

    A record is valid when it is a mapping (or Trip) whose distance is a real
    number >= 0. Booleans, numeric strings and NaN are rejected.
    """
    if isinstance(record, Trip):
        distance = as_number(record.distance)
    elif isinstance(record, Mapping):
        distance = as_number(record.get("distance", record.get("trip")))
    else:
        return False
    return distance is not None and distance >= 0


def validate_trips(records: Iterable[Any]) -> List[Trip]:
    """Drop malformed records and normalise the rest to Trip instances."""
    return [
        record if isinstance(record, Trip) else Trip.from_dict(record)
        for record in records
        if is_valid_trip(record)
    ]


# ============================================================================
# Aggregation
# ============================================================================


@dataclass
class TripTotals:
    """Running totals and records for one pass over the trips."""

    total_km: float = 0.0
    total_kwh: float = 0.0
    driving_kwh: float = 0.0
    stationary_kwh: float = 0.0
    total_fuel: float = 0.0
    total_duration: float = 0.0
    has_any_fuel: bool = False
    electric_only_km: float = 0.0
    fuel_used_km: float = 0.0
    electric_only_trips: int = 0
    fuel_used_trips: int = 0
    max_km: Optional[float] = None
    min_km: Optional[float] = None
    max_kwh: Optional[float] = None
    max_duration: Optional[float] = None
    max_fuel: float = 0.0
    max_cost: Optional[float] = None
    max_cost_date: Optional[str] = None

    def track_cost(self, trip: Trip) -> None:
        cost = num(trip.calculated_cost)
        if self.max_cost is None or cost > self.max_cost:
            self.max_cost = cost
            self.max_cost_date = trip.date


class TripAggregator:
    """
    Single-pass accumulator for priced trips.

    Usage:
        aggregator = TripAggregator(tz)
        for trip in priced_trips:
            aggregator.add(trip)
        monthly = aggregator.monthly_buckets("es")
    """

    def __init__(self, tz: Optional[tzinfo] = None):
        self.tz = tz
        self.totals = TripTotals()
        self.active_trips: List[Trip] = []
        self.active_dates: Set[str] = set()
        self.hourly = [HourlyBucket(hour=h) for h in range(HOURS_PER_DAY)]
        self.weekday = [WeekdayBucket(day=d) for d in WEEKDAY_KEYS]
        self.distribution = [DistributionBucket(range=label) for label, _ in TRIP_DISTANCE_RANGES]
        self.scatter: List[ScatterPoint] = []
        self._monthly: Dict[str, MonthlyBucket] = {}
        self._daily: Dict[str, DailyBucket] = {}

    def add(self, trip: Trip) -> None:
        totals = self.totals
        electricity = num(trip.electricity)
        fuel = num(trip.fuel)

        if fuel > 0:
            totals.has_any_fuel = True

        if trip.is_stationary:
            totals.stationary_kwh += electricity
            totals.total_kwh += electricity
            totals.total_fuel += fuel
            totals.track_cost(trip)
            return

        self.active_trips.append(trip)
        self._add_totals(trip)
        self._add_periods(trip)
        self._add_time_of_day(trip)
        self._add_distribution(trip)
        self._add_scatter(trip)

    def _add_totals(self, trip: Trip) -> None:
        totals = self.totals
        distance = num(trip.distance)
        electricity = num(trip.electricity)
        fuel = num(trip.fuel)
        duration = num(trip.duration)

        totals.total_km += distance
        totals.driving_kwh += electricity
        totals.total_kwh += electricity
        totals.total_fuel += fuel
        totals.total_duration += duration

        if fuel > 0:
            totals.fuel_used_km += distance
            totals.fuel_used_trips += 1
            totals.max_fuel = max(totals.max_fuel, fuel)
        else:
            totals.electric_only_km += distance
            totals.electric_only_trips += 1

        totals.track_cost(trip)
        if totals.max_km is None or distance > totals.max_km:
            totals.max_km = distance
        if totals.min_km is None or distance < totals.min_km:
            totals.min_km = distance
        if totals.max_kwh is None or electricity > totals.max_kwh:
            totals.max_kwh = electricity
        if totals.max_duration is None or duration > totals.max_duration:
            totals.max_duration = duration

    def _add_periods(self, trip: Trip) -> None:
        distance = num(trip.distance)
        electricity = num(trip.electricity)
        fuel = num(trip.fuel)

        month_key = trip.month or UNKNOWN_BUCKET_KEY
        month = self._monthly.get(month_key)
        if month is None:
            month = self._monthly[month_key] = MonthlyBucket(month=month_key)
        month.trips += 1
        month.km += distance
        month.kwh += electricity
        month.fuel += fuel

        date_key = trip.date or UNKNOWN_BUCKET_KEY
        self.active_dates.add(date_key)
        day = self._daily.get(date_key)
        if day is None:
            day = self._daily[date_key] = DailyBucket(date=date_key)
        day.trips += 1
        day.km += distance
        day.kwh += electricity
        day.fuel += fuel

    def _add_time_of_day(self, trip: Trip) -> None:
        if not trip.start_timestamp:
            return
        try:
            hour, weekday = local_hour_and_weekday(trip.start_timestamp, self.tz)
        except (OverflowError, OSError, ValueError):
            logger.debug(f"Skipping hour/weekday for out-of-range timestamp {trip.start_timestamp}")
            return

        distance = num(trip.distance)
        self.hourly[hour].trips += 1
        self.hourly[hour].km += distance
        self.weekday[weekday].trips += 1
        self.weekday[weekday].km += distance

    def _add_distribution(self, trip: Trip) -> None:
        distance = num(trip.distance)
        for bucket, (_, upper_km) in zip(self.distribution, TRIP_DISTANCE_RANGES):
            if upper_km is None or distance <= upper_km:
                bucket.count += 1
                return

    def _add_scatter(self, trip: Trip) -> None:
        distance = num(trip.distance)
        electricity = num(trip.electricity)
        if distance <= 0 or electricity <= 0:
            return

        efficiency = calculate_consumption_per_100km(electricity, distance)
        if is_plausible_efficiency(efficiency):
            self.scatter.append(ScatterPoint(x=distance, y=efficiency, fuel=num(trip.fuel)))

    def monthly_buckets(self, locale: str) -> List[MonthlyBucket]:
        """Monthly buckets sorted by YYYYMM key, with derived efficiencies."""
        buckets = sorted(self._monthly.values(), key=attrgetter("month"))
        for bucket in buckets:
            bucket.efficiency = calculate_consumption_per_100km(bucket.kwh, bucket.km)
            bucket.fuel_efficiency = calculate_consumption_per_100km(bucket.fuel, bucket.km)
            bucket.month_label = format_month(bucket.month, locale)
        return buckets

    def daily_buckets(self, locale: str) -> List[DailyBucket]:
        """Daily buckets sorted by YYYYMMDD key, with derived efficiencies."""
        buckets = sorted(self._daily.values(), key=attrgetter("date"))
        for bucket in buckets:
            bucket.efficiency = calculate_consumption_per_100km(bucket.kwh, bucket.km)
            bucket.fuel_efficiency = calculate_consumption_per_100km(bucket.fuel, bucket.km)
            bucket.date_label = format_date(bucket.date, locale)
        return buckets

    def top_records(self, limit: int = TOP_RECORDS_LIMIT) -> TopRecords:
        """Top trips by distance, energy, duration and (hybrids) fuel."""
        ordered = sorted(self.active_trips, key=lambda t: num(t.start_timestamp))
        fuel_trips = [t for t in ordered if num(t.fuel) > 0] if self.totals.has_any_fuel else []
        return TopRecords(
            km=select_top(ordered, descending_by("distance"), limit),
            kwh=select_top(ordered, descending_by("electricity"), limit),
            dur=select_top(ordered, descending_by("duration"), limit),
            fuel=select_top(fuel_trips, descending_by("fuel"), limit),
        )


# ============================================================================
# Summary
# ============================================================================


def _format_ratio(numerator: float, denominator: float, decimals: int, scale: float = 1.0, default: str = "0") -> str:
    if denominator <= 0:
        return default
    return format_fixed(safe_ratio(numerator, denominator, scale), decimals)


def finalize_summary(
    totals: TripTotals,
    active_trips: List[Trip],
    all_trips: List[Trip],
    days_active: int,
    total_days: int,
    settings: Settings,
    charges: List[Charge],
    locale: str,
    now: Optional[datetime] = None
) -> Summary:
    """
    Build the human-facing summary from accumulated totals.

    Args:
        totals: Totals from the aggregation pass
        active_trips: Non-stationary trips
        all_trips: All valid trips sorted by start timestamp
        days_active: Distinct dates with at least one active trip (>= 1)
        total_days: Calendar span of the dataset (>= 1)
        settings: Battery and SoH settings
        charges: Charging history for the SoH estimate
        locale: Locale tag for the date range label
        now: Reference time for calendar aging

    Returns:
        Summary with formatted values
    """
    trip_count = len(active_trips)
    avg_eff = safe_ratio(totals.driving_kwh, totals.total_km, 100)
    battery_size = num(settings.battery_size)

    soh_data = estimate_soh(
        charges,
        settings.mfg_date,
        battery_size,
        settings.charger_types,
        settings.thermal_stress_factor,
        now=now,
    )
    if settings.uses_calculated_soh:
        soh = soh_data.estimated_soh
    else:
        soh = settings.soh if settings.soh is not None else DEFAULT_SOH_PERCENT

    ranges = calculate_range_estimates(calculate_usable_energy(battery_size, soh), avg_eff)

    first_date = all_trips[0].date if all_trips else None
    last_date = all_trips[-1].date if all_trips else None
    date_range = ""
    if first_date or last_date:
        date_range = f"{format_date(first_date, locale)} - {format_date(last_date, locale)}"

    return Summary(
        total_trips=trip_count,
        total_km=format_fixed(totals.total_km, 1),
        total_kwh=format_fixed(totals.total_kwh, 1),
        driving_kwh=format_fixed(totals.driving_kwh, 1),
        stationary_consumption=format_fixed(totals.stationary_kwh, 1),
        total_hours=format_fixed(totals.total_duration / 3600, 1),
        avg_eff=format_fixed(avg_eff, 2),
        estimated_range=format_fixed(ranges["combined"], 0),
        estimated_range_highway=format_fixed(ranges["highway"], 0),
        estimated_range_city=format_fixed(ranges["city"], 0),
        avg_km=_format_ratio(totals.total_km, trip_count, 1),
        avg_min=_format_ratio(totals.total_duration, trip_count * 60, 0) if totals.total_duration > 0 else "0",
        avg_speed=_format_ratio(totals.total_km, totals.total_duration / 3600, 1),
        days_active=days_active,
        total_days=total_days,
        date_range=date_range,
        max_km=format_fixed(totals.max_km, 1),
        min_km=format_fixed(totals.min_km, 1),
        max_kwh=format_fixed(totals.max_kwh, 1),
        max_min=format_fixed(num(totals.max_duration) / 60, 0),
        trips_day=format_fixed(trip_count / days_active, 1),
        km_day=format_fixed(totals.total_km / days_active, 1),
        is_hybrid=totals.has_any_fuel,
        total_fuel=format_fixed(totals.total_fuel, 2),
        avg_fuel_eff=_format_ratio(totals.total_fuel, totals.total_km, 2, scale=100),
        electric_percentage=_format_ratio(totals.electric_only_km, totals.total_km, 1, scale=100, default="100"),
        fuel_percentage=_format_ratio(totals.fuel_used_km, totals.total_km, 1, scale=100),
        electric_only_trips=totals.electric_only_trips,
        fuel_used_trips=totals.fuel_used_trips,
        ev_mode_usage=_format_ratio(totals.electric_only_trips, trip_count, 1, scale=100, default="100"),
        max_fuel=format_fixed(totals.max_fuel, 2),
        max_cost=format_fixed(totals.max_cost, 2),
        max_cost_date=totals.max_cost_date or "",
        soh=float(soh),
        soh_data=soh_data,
    )


# ============================================================================
# Entry point
# ============================================================================


def compute(
    trips: Optional[Iterable[Any]],
    settings: Union[Settings, Mapping[str, Any], None] = None,
    charges: Optional[Iterable[Any]] = None,
    locale: Optional[str] = None,
    now: Optional[datetime] = None
) -> Optional[ProcessedResult]:
    """
    Compute all trip statistics for one dataset.

    Args:
        trips: Raw trip records (Trip instances or exported dicts)
        settings: Settings instance or flat settings mapping
        charges: Charging/refuelling history (Charge instances or dicts)
        locale: Locale tag for labels (default: settings.locale, then Config.DEFAULT_LOCALE)
        now: Reference time for battery calendar aging (default: current time)

    Returns:
        ProcessedResult, or None when there are no trips or none is valid.
        A dataset of all-zero trips still yields a full, zero-filled result.
    """
    if not trips:
        return None

    valid_trips = validate_trips(trips)
    if not valid_trips:
        return None

    if not isinstance(settings, Settings):
        settings = Settings.from_dict(settings)
    charge_list = to_charges(charges)
    locale = locale or settings.locale or Config.DEFAULT_LOCALE

    resolver = PriceResolver.from_settings(settings, charge_list)
    aggregator = TripAggregator(resolve_timezone(settings.timezone))
    priced_trips = [price_trip(trip, resolver) for trip in valid_trips]
    for trip in priced_trips:
        aggregator.add(trip)

    all_trips = sorted(priced_trips, key=lambda t: num(t.start_timestamp))
    days_active = len(aggregator.active_dates) or 1
    first_ts = all_trips[0].start_timestamp
    last_ts = all_trips[-1].start_timestamp
    total_days = calendar_span_days(first_ts, last_ts) if first_ts and last_ts else days_active

    summary = finalize_summary(
        aggregator.totals,
        aggregator.active_trips,
        all_trips,
        days_active,
        total_days,
        settings,
        charge_list,
        locale,
        now=now,
    )

    logger.debug(
        f"Processed {len(valid_trips)} trips ({len(aggregator.active_trips)} active) "
        f"with {len(charge_list)} charges"
    )

    return ProcessedResult(
        summary=summary,
        monthly=aggregator.monthly_buckets(locale),
        daily=aggregator.daily_buckets(locale),
        hourly=aggregator.hourly,
        weekday=aggregator.weekday,
        trip_dist=aggregator.distribution,
        eff_scatter=aggregator.scatter,
        top=aggregator.top_records(),
        is_hybrid=aggregator.totals.has_any_fuel,
    )
