"""
Tests for data models.
"""

import pytest

from tripstats.models import (
    Charge,
    ChargerType,
    Settings,
    Trip,
    as_number,
    num,
    to_charger_types,
    to_charges,
)


class TestAsNumber:
    """Tests for numeric coercion."""

    def test_numbers(self):
        assert as_number(3) == 3.0
        assert as_number(2.5) == 2.5

    def test_rejects_bool_and_non_finite(self):
        assert as_number(True) is None
        assert as_number(float("nan")) is None
        assert as_number(float("inf")) is None

    def test_strings_only_when_allowed(self):
        assert as_number("0.25") is None
        assert as_number("0.25", allow_strings=True) == 0.25
        assert as_number(" 7 ", allow_strings=True) == 7.0
        assert as_number("abc", allow_strings=True) is None

    def test_num(self):
        assert num(None) == 0.0
        assert num(4.0) == 4.0


class TestTrip:
    """Tests for the Trip model."""

    def test_from_dict(self):
        trip = Trip.from_dict({
            "distance": 12,
            "electricity": 1.8,
            "fuel": 0,
            "duration": 900,
            "date": "20250114",
            "start_timestamp": 1736848800,
        })

        assert trip.distance == 12.0
        assert trip.electricity == 1.8
        assert trip.fuel == 0.0
        assert trip.month == "202501"
        assert trip.start_timestamp == 1736848800.0
        assert trip.calculated_cost is None

    def test_trip_alias_for_distance(self):
        assert Trip.from_dict({"trip": 7.5}).distance == 7.5

    def test_explicit_month_kept(self):
        assert Trip.from_dict({"distance": 1, "date": "20250114", "month": "202412"}).month == "202412"

    def test_camel_case_costs(self):
        trip = Trip.from_dict({"distance": 1, "calculatedCost": 0.5, "electricCost": 0.5, "fuelCost": 0})

        assert trip.calculated_cost == 0.5
        assert trip.fuel_cost == 0.0

    def test_stationary_threshold(self):
        assert Trip(distance=0.49).is_stationary
        assert not Trip(distance=0.5).is_stationary
        assert Trip().is_stationary

    def test_with_cost_is_a_copy(self):
        trip = Trip(distance=10, electricity=2)

        priced = trip.with_cost(0.4, 0.1)

        assert priced.calculated_cost == pytest.approx(0.5)
        assert priced.electric_cost == 0.4
        assert priced.fuel_cost == 0.1
        assert trip.calculated_cost is None

    def test_frozen(self):
        with pytest.raises(AttributeError):
            Trip(distance=1).distance = 2


class TestCharge:
    """Tests for the Charge model."""

    def test_camel_case_keys(self):
        charge = Charge.from_dict({
            "date": "2025-01-01",
            "time": "10:00",
            "kwhCharged": 20,
            "totalCost": 4,
            "finalPercentage": 100,
            "chargerTypeId": 3,
            "speedKw": 7.4,
        })

        assert charge.kwh_charged == 20.0
        assert charge.total_cost == 4.0
        assert charge.final_percentage == 100.0
        assert charge.charger_type_id == "3"
        assert charge.speed_kw == 7.4

    def test_kwh_alias(self):
        assert Charge.from_dict({"kwh": 12}).kwh_charged == 12.0

    def test_kind(self):
        assert Charge().is_electric
        assert Charge(type="electric").is_electric
        assert Charge(type="fuel").is_fuel
        assert not Charge(type="fuel").is_electric

    def test_to_charges_skips_non_records(self):
        charges = to_charges([Charge(kwh_charged=1), {"kwh_charged": 2}, None, "x"])

        assert [c.kwh_charged for c in charges] == [1, 2.0]

    def test_to_charges_none(self):
        assert to_charges(None) == []

    def test_to_charges_non_iterable(self):
        assert to_charges(5) == []


class TestChargerType:
    """Tests for the ChargerType model."""

    def test_from_dict(self):
        charger = ChargerType.from_dict({"id": 1, "name": "Wallbox", "efficiency": "0.92"})

        assert charger.id == "1"
        assert charger.name == "Wallbox"
        assert charger.efficiency == 0.92

    def test_to_charger_types(self):
        result = to_charger_types([{"id": "a"}, ChargerType(id="b"), None])
        assert [c.id for c in result] == ["a", "b"]

    def test_to_charger_types_non_iterable(self):
        assert to_charger_types(5) == []
        assert to_charger_types(None) == []


class TestSettings:
    """Tests for the Settings model."""

    def test_defaults(self):
        settings = Settings.from_dict(None)

        assert settings.electric_strategy == "custom"
        assert settings.soh_mode == "manual"
        assert settings.uses_calculated_soh is False

    def test_camel_case_aliases(self):
        settings = Settings.from_dict({
            "electricStrategy": "dynamic",
            "fuelStrategy": "average",
            "electricityPrice": "0.18",
            "fuelPrice": 1.6,
            "batterySize": "60.48",
            "sohMode": "calculated",
            "mfgDate": "2022-03-15",
            "thermalStressFactor": 1.1,
            "language": "en",
        })

        assert settings.electric_strategy == "dynamic"
        assert settings.fuel_strategy == "average"
        assert settings.electric_price == 0.18
        assert settings.fuel_price == 1.6
        assert settings.battery_size == 60.48
        assert settings.uses_calculated_soh is True
        assert settings.mfg_date == "2022-03-15"
        assert settings.thermal_stress_factor == 1.1
        assert settings.locale == "en"

    def test_snake_case_and_unknown_keys(self):
        settings = Settings.from_dict({"electric_price": 0.2, "theme": "dark"})
        assert settings.electric_price == 0.2

    def test_invalid_numbers_become_none(self):
        settings = Settings.from_dict({"electricPrice": "cheap", "soh": ""})

        assert settings.electric_price is None
        assert settings.soh is None

    def test_explicit_zero_soh_kept(self):
        assert Settings.from_dict({"soh": 0}).soh == 0.0

    def test_charger_types(self):
        settings = Settings.from_dict({"chargerTypes": [{"id": "home", "efficiency": 0.9}]})

        assert settings.charger_types == (ChargerType(id="home", efficiency=0.9),)

    def test_malformed_charger_types_ignored(self):
        assert Settings.from_dict({"chargerTypes": 5}).charger_types == ()

    def test_round_trip_through_dict(self):
        settings = Settings(electric_price=0.2, charger_types=(ChargerType(id="home", efficiency=0.9),))
        assert Settings.from_dict(settings.to_dict()) == settings
