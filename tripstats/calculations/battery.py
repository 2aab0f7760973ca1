"""
Battery-related Calculations

Estimates battery State of Health from charging history:
- Wall-to-battery energy correction per charger
- Charging speed classification and stress score
- SEI formation, cycle aging and calendar aging losses
- Initial state-of-charge estimation from odometer deltas
"""

import logging
from datetime import datetime
from typing import Iterable, Mapping, Optional, Sequence

from ..models import (
    Charge,
    ChargerType,
    DegradationBreakdown,
    SoHResult,
    as_number,
    num,
    to_charger_types,
    to_charges,
)
from ..utils.formatters import round_to
from ..utils.time_utils import parse_datetime, utc_now, years_between
from .constants import (
    AC_CHARGING_MAX_KW,
    CALENDAR_AGING_PERCENT_PER_YEAR,
    CALIBRATION_MIN_RATIO,
    CYCLE_AGING_RATE,
    DC_CHARGING_MAX_KW,
    DEFAULT_BATTERY_CAPACITY_KWH,
    DEFAULT_CHARGING_EFFICIENCY,
    FULL_CHARGE_PERCENT,
    MAX_PERCENTAGE,
    MIN_PERCENTAGE,
    SEI_FORMATION_CYCLES,
    SEI_MAX_LOSS_PERCENT,
    SLOW_CHARGING_EFFICIENCY,
    SLOW_CHARGING_MAX_KW,
    STRESS_WEIGHT_AC,
    STRESS_WEIGHT_DC,
    STRESS_WEIGHT_HPC,
    STRESS_WEIGHT_SLOW,
)

logger = logging.getLogger(__name__)

SPEED_BUCKET_WEIGHTS = {
    "slow": STRESS_WEIGHT_SLOW,
    "ac": STRESS_WEIGHT_AC,
    "dc": STRESS_WEIGHT_DC,
    "hpc": STRESS_WEIGHT_HPC,
}


def classify_charging_speed(speed_kw: float) -> str:
    """
    Classify a charging session by power.

    Examples:
        >>> classify_charging_speed(2.3)
        'slow'
        >>> classify_charging_speed(11)
        'ac'
        >>> classify_charging_speed(50)
        'dc'
        >>> classify_charging_speed(150)
        'hpc'
    """
    if speed_kw <= SLOW_CHARGING_MAX_KW:
        return "slow"
    if speed_kw <= AC_CHARGING_MAX_KW:
        return "ac"
    if speed_kw <= DC_CHARGING_MAX_KW:
        return "dc"
    return "hpc"


def resolve_charging_efficiency(speed_kw: float, configured_efficiency: Optional[float] = None) -> float:
    """
    Fraction of delivered energy that actually reached the battery.

    A charger-type efficiency is used when it lies strictly inside (0, 1);
    otherwise slow sessions (0 < speed < 3.5 kW) lose more to conversion.

    Examples:
        >>> resolve_charging_efficiency(2.3)
        0.85
        >>> resolve_charging_efficiency(11)
        0.95
        >>> resolve_charging_efficiency(11, 0.9)
        0.9
        >>> resolve_charging_efficiency(0)  # Unknown speed
        0.95
    """
    if configured_efficiency is not None and 0 < configured_efficiency < 1:
        return configured_efficiency
    if 0 < speed_kw < SLOW_CHARGING_MAX_KW:
        return SLOW_CHARGING_EFFICIENCY
    return DEFAULT_CHARGING_EFFICIENCY


def calculate_sei_loss(real_cycles: float) -> float:
    """
    SEI formation loss: linear ramp to 2% over the first 50 cycles.

    Examples:
        >>> calculate_sei_loss(25)
        1.0
        >>> calculate_sei_loss(400)
        2.0
    """
    return min(SEI_MAX_LOSS_PERCENT, real_cycles / SEI_FORMATION_CYCLES * SEI_MAX_LOSS_PERCENT)


def calculate_cycle_loss(real_cycles: float, stress_score: float) -> float:
    """
    Cycle aging loss in percentage points.

    Examples:
        >>> round(calculate_cycle_loss(100, 1.0), 6)
        0.5
    """
    return real_cycles * CYCLE_AGING_RATE * stress_score * 100


def calculate_calendar_loss(age_years: float) -> float:
    """
    Calendar aging loss in percentage points, never negative.

    Examples:
        >>> calculate_calendar_loss(2.0)
        1.5
        >>> calculate_calendar_loss(-0.5)  # Manufacture date in the future
        0.0
    """
    return max(0.0, age_years * CALENDAR_AGING_PERCENT_PER_YEAR)


def baseline_soh(thermal_stress_factor: float = 1.0) -> SoHResult:
    """SoH result for a battery without usable history: as new."""
    return SoHResult(
        estimated_soh=100.0,
        real_cycles_count=0.0,
        stress_score=1.0 * thermal_stress_factor,
        charging_stress=1.0,
        thermal_stress=thermal_stress_factor,
        calibration_warning=False,
        degradation=DegradationBreakdown(),
    )


def estimate_soh(
    charges: Optional[Iterable[Charge]],
    mfg_date: Optional[str],
    battery_capacity_kwh: Optional[float] = None,
    charger_types: Sequence[ChargerType] = (),
    thermal_stress_factor: Optional[float] = None,
    now: Optional[datetime] = None
) -> SoHResult:
    """
    Estimate battery State of Health from charging behaviour and age.

    Model:
    1. Delivered kWh is corrected by charger efficiency into real kWh.
    2. Real cycles = real kWh / net capacity.
    3. Charging stress = session-weighted speed bucket weights, times the
       thermal multiplier for the vehicle's climate.
    4. Losses: SEI formation + cycle aging + calendar aging.

    Args:
        charges: Charging history (fuel refills are ignored)
        mfg_date: Manufacture date (ISO string)
        battery_capacity_kwh: Net capacity; falls back to 60.48 kWh when absent or 0
        charger_types: Configured chargers with measured efficiencies
        thermal_stress_factor: Climate multiplier on charging stress (default 1.0)
        now: Reference time for calendar aging (default: current UTC time)

    Returns:
        SoHResult rounded to 2 decimals. Without charges or a parseable
        manufacture date the battery is reported as new.
    """
    thermal = thermal_stress_factor if thermal_stress_factor is not None else 1.0
    capacity = battery_capacity_kwh or DEFAULT_BATTERY_CAPACITY_KWH

    charges = to_charges(charges)
    manufactured = parse_datetime(mfg_date)
    if not charges or manufactured is None:
        if charges and mfg_date:
            logger.warning(f"Unparseable manufacture date '{mfg_date}', reporting baseline SoH")
        return baseline_soh(thermal)

    efficiency_by_type: Mapping[str, Optional[float]] = {
        ct.id: ct.efficiency for ct in to_charger_types(charger_types)
    }

    bucket_counts = dict.fromkeys(SPEED_BUCKET_WEIGHTS, 0)
    full_charges = 0
    total_real_kwh = 0.0
    sessions = 0

    for charge in charges:
        if not charge.is_electric:
            continue
        sessions += 1

        speed = num(charge.speed_kw)
        efficiency = resolve_charging_efficiency(speed, efficiency_by_type.get(charge.charger_type_id))
        total_real_kwh += num(charge.kwh_charged) * efficiency

        bucket_counts[classify_charging_speed(speed)] += 1
        if num(charge.final_percentage) >= FULL_CHARGE_PERCENT:
            full_charges += 1

    real_cycles = total_real_kwh / capacity

    if sessions > 0:
        charging_stress = sum(
            count * SPEED_BUCKET_WEIGHTS[bucket] for bucket, count in bucket_counts.items()
        ) / sessions
    else:
        charging_stress = 1.0
    stress_score = charging_stress * thermal

    sei_loss = calculate_sei_loss(real_cycles)
    cycle_loss = calculate_cycle_loss(real_cycles, stress_score)
    calendar_loss = calculate_calendar_loss(years_between(manufactured, now or utc_now()))

    estimated = max(0.0, 100.0 - sei_loss - cycle_loss - calendar_loss)
    calibration_warning = sessions > 0 and full_charges / sessions < CALIBRATION_MIN_RATIO

    logger.debug(
        f"SoH estimate: {estimated:.2f}% from {sessions} sessions, "
        f"{real_cycles:.2f} real cycles, stress {stress_score:.2f}"
    )

    return SoHResult(
        estimated_soh=round_to(estimated, 2),
        real_cycles_count=round_to(real_cycles, 2),
        stress_score=round_to(stress_score, 2),
        charging_stress=round_to(charging_stress, 2),
        thermal_stress=thermal,
        calibration_warning=calibration_warning,
        degradation=DegradationBreakdown(
            sei=round_to(sei_loss, 2),
            cycle=round_to(cycle_loss, 2),
            calendar=round_to(calendar_loss, 2),
        ),
    )


def estimate_initial_soc(
    previous_charge: Optional[Charge],
    current_odometer: Optional[float],
    avg_efficiency: Optional[float],
    battery_size_kwh: Optional[float]
) -> Optional[int]:
    """
    Estimate the state of charge when a new charge starts.

    Starts from the previous charge's final percentage and subtracts the
    energy needed to drive the odometer delta at the average efficiency.

    Args:
        previous_charge: Last charge with odometer and final percentage
        current_odometer: Odometer reading at the new charge (km)
        avg_efficiency: Average consumption (kWh/100km)
        battery_size_kwh: Net battery capacity

    Returns:
        Estimated SoC percentage clamped to [0, 100], or None if it cannot
        be estimated

    Examples:
        >>> prev = Charge(odometer=1000, final_percentage=80)
        >>> estimate_initial_soc(prev, 1100, 15.0, 60.0)
        55
        >>> estimate_initial_soc(prev, 900, 15.0, 60.0) is None
        True
    """
    if previous_charge is None or not current_odometer or not avg_efficiency or not battery_size_kwh:
        return None

    previous_odometer = as_number(previous_charge.odometer)
    final_percentage = as_number(previous_charge.final_percentage)
    if previous_odometer is None or final_percentage is None:
        return None

    distance = current_odometer - previous_odometer
    if distance <= 0:
        return None

    consumed_kwh = distance * avg_efficiency / 100
    soc_consumed = consumed_kwh / battery_size_kwh * 100

    estimated = max(MIN_PERCENTAGE, min(MAX_PERCENTAGE, final_percentage - soc_consumed))
    return int(round_to(estimated, 0))
