"""Unit tests for scheduling value objects.

Covers window partitioning, fee arithmetic, policy time conversion and
vital sign validation.
"""

from datetime import UTC, date, datetime, time
from decimal import Decimal

import pytest

from careflow.core.domain import Money
from careflow.domains.scheduling.domain.value_objects import (
    AvailabilityWindow,
    FeeSchedule,
    SchedulingPolicy,
    VitalSigns,
    day_of_week_for,
)


@pytest.mark.unit
class TestAvailabilityWindow:
    """Tests for AvailabilityWindow.partition."""

    def test_partitions_nine_hours_into_three_slots(self) -> None:
        """Should split 09:00-18:00 into three back-to-back 180 minute slots."""
        window = AvailabilityWindow(date(2030, 3, 5), time(9, 0), time(18, 0))

        assert window.partition(180) == [
            (time(9, 0), time(12, 0)),
            (time(12, 0), time(15, 0)),
            (time(15, 0), time(18, 0)),
        ]

    def test_drops_trailing_remainder(self) -> None:
        """Should drop the part of the window shorter than one slot."""
        window = AvailabilityWindow(date(2030, 3, 5), time(9, 0), time(17, 0))

        slots = window.partition(180)

        assert len(slots) == 2
        assert slots[-1] == (time(12, 0), time(15, 0))

    def test_window_shorter_than_duration_yields_nothing(self) -> None:
        """Should produce no slots when the window is shorter than one slot."""
        window = AvailabilityWindow(date(2030, 3, 5), time(9, 0), time(10, 0))
        assert window.partition(180) == []

    def test_rejects_inverted_window(self) -> None:
        """Should reject a window whose start is not before its end."""
        with pytest.raises(ValueError):
            AvailabilityWindow(date(2030, 3, 5), time(12, 0), time(9, 0))

    def test_rejects_non_positive_duration(self) -> None:
        """Should reject a zero slot duration."""
        window = AvailabilityWindow(date(2030, 3, 5), time(9, 0), time(18, 0))
        with pytest.raises(ValueError):
            window.partition(0)


@pytest.mark.unit
class TestDayOfWeek:
    def test_sunday_is_zero(self) -> None:
        """Should number days from Sunday=0 to Saturday=6."""
        assert day_of_week_for(date(2030, 3, 3)) == 0  # Sunday
        assert day_of_week_for(date(2030, 3, 4)) == 1  # Monday
        assert day_of_week_for(date(2030, 3, 9)) == 6  # Saturday


@pytest.mark.unit
class TestMoneyAndFees:
    def test_money_rounds_to_cents(self) -> None:
        """Should quantize amounts to two decimals."""
        assert Money(Decimal("10.005"), "mwk") == Money(Decimal("10.01"), "MWK")

    def test_money_rejects_negative_amount(self) -> None:
        with pytest.raises(ValueError):
            Money(Decimal("-1"), "MWK")

    def test_fee_schedule_total(self) -> None:
        """Should total booking and session fees."""
        fees = FeeSchedule(Money(Decimal("5000"), "MWK"), Money(Decimal("25000"), "MWK"))
        assert fees.total == Money(Decimal("30000"), "MWK")

    def test_fee_schedule_rejects_mixed_currencies(self) -> None:
        with pytest.raises(ValueError):
            FeeSchedule(Money(Decimal("5000"), "MWK"), Money(Decimal("25"), "USD"))


@pytest.mark.unit
class TestSchedulingPolicy:
    def test_defaults(self) -> None:
        """Should default to 12h cutoff, 2 reschedules, 180 min slots and 15 min locks."""
        policy = SchedulingPolicy()
        assert policy.reschedule_cutoff_hours == 12
        assert policy.max_reschedules == 2
        assert policy.slot_duration_minutes == 180
        assert policy.lock_ttl_minutes == 15

    def test_slot_start_in_local_timezone(self) -> None:
        """Should convert a local slot start to UTC."""
        policy = SchedulingPolicy(timezone="Africa/Blantyre")  # UTC+2

        start = policy.slot_start_at(date(2030, 3, 5), time(9, 0))

        assert start == datetime(2030, 3, 5, 7, 0, tzinfo=UTC)

    def test_rejects_unknown_timezone(self) -> None:
        with pytest.raises(ValueError):
            SchedulingPolicy(timezone="Mars/Olympus")

    def test_rejects_negative_limits(self) -> None:
        with pytest.raises(ValueError):
            SchedulingPolicy(max_reschedules=-1)


@pytest.mark.unit
class TestVitalSigns:
    def test_requires_both_blood_pressure_values(self) -> None:
        """Should reject a systolic value without a diastolic one."""
        with pytest.raises(ValueError):
            VitalSigns(blood_pressure_systolic=120)

    def test_rejects_out_of_range_heart_rate(self) -> None:
        with pytest.raises(ValueError):
            VitalSigns(heart_rate=400)

    def test_detects_critical_values(self) -> None:
        """Should flag low oxygen saturation as critical."""
        assert VitalSigns(oxygen_saturation=85).is_critical() is True
        assert VitalSigns(heart_rate=72, oxygen_saturation=98).is_critical() is False

    def test_round_trips_through_dict(self) -> None:
        vitals = VitalSigns(heart_rate=72, blood_pressure_systolic=120, blood_pressure_diastolic=80)
        assert VitalSigns.from_dict(vitals.to_dict()) == vitals
        assert vitals.blood_pressure == "120/80"
