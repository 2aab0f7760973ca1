"""
Pytest fixtures for tripstats tests.
"""

from datetime import datetime, timezone

import pytest

from tripstats.models import Settings

from factories import BASE_TIMESTAMP, ChargeFactory, TripFactory

DAY = 86400


@pytest.fixture
def basic_trips():
    """Two driving trips on consecutive days plus one parked segment."""
    return [
        TripFactory.create(distance=10.0, electricity=1.5, duration=1200, date="20250114",
                           start_timestamp=BASE_TIMESTAMP),
        # 2025-01-15 08:00 UTC (a Wednesday)
        TripFactory.create(distance=20.0, electricity=3.0, duration=1800, date="20250115",
                           start_timestamp=BASE_TIMESTAMP + DAY - 7200),
        TripFactory.create_stationary(date="20250115", start_timestamp=BASE_TIMESTAMP + DAY - 3600),
    ]


@pytest.fixture
def hybrid_trips():
    """One electric-only trip and one fuel-assisted trip."""
    return [
        TripFactory.create(distance=10.0, electricity=1.5, date="20250114", start_timestamp=BASE_TIMESTAMP),
        TripFactory.create_hybrid(date="20250115", start_timestamp=BASE_TIMESTAMP + DAY),
    ]


@pytest.fixture
def fixed_settings():
    """Fixed electricity price and a 60 kWh battery."""
    return Settings(electric_price=0.2, fuel_price=1.5, battery_size=60.0)


@pytest.fixture
def dynamic_charges():
    """Two charges on 2025-01-01 at 10:00 (0.20/kWh) and 14:00 (0.40/kWh)."""
    return [
        ChargeFactory.create(time="10:00", kwh_charged=10.0, total_cost=2.0),
        ChargeFactory.create(time="14:00", kwh_charged=10.0, total_cost=4.0),
    ]


@pytest.fixture
def fixed_now():
    """Reference time for calendar aging."""
    return datetime(2025, 1, 1, tzinfo=timezone.utc)
