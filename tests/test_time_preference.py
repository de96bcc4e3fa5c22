"""Unit tests for effective time-preference resolution."""

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from engage.domain.models import NeedRequest, ResolvedNeedRequest
from engage.matching.time_preference import (
    bucket_for_hour,
    detect_from_clock_time,
    detect_from_datetime,
    extract_legacy_schedule_time,
    resolve_effective_time_preference,
    resolve_need,
)


def need(**fields) -> NeedRequest:
    return NeedRequest(id="need-1", required_tags=["Cooking"], **fields)


class TestHourBuckets:
    """Tests for hour-of-day bucketing."""

    @pytest.mark.parametrize(
        "hour,expected",
        [
            (0, "Nights"),
            (4, "Nights"),
            (5, "Mornings"),
            (11, "Mornings"),
            (12, "Afternoons"),
            (16, "Afternoons"),
            (17, "Nights"),
            (23, "Nights"),
        ],
    )
    def test_boundaries(self, hour, expected):
        assert bucket_for_hour(hour) == expected


class TestDetectFromDatetime:
    """Tests for single-occurrence timestamps."""

    def test_naive_datetime_uses_wall_clock(self):
        assert detect_from_datetime(datetime(2025, 3, 2, 9, 30)) == "Mornings"

    def test_iso_text(self):
        assert detect_from_datetime("2025-03-02T13:00:00") == "Afternoons"

    def test_aware_value_converted_to_timezone(self):
        # 15:00 UTC is 09:00 in Chicago (CST, UTC-6)
        value = datetime(2025, 1, 15, 15, 0, tzinfo=timezone.utc)
        assert detect_from_datetime(value, ZoneInfo("America/Chicago")) == "Mornings"

    def test_offset_text_converted_to_timezone(self):
        assert detect_from_datetime("2025-01-15T19:00:00Z", timezone(timedelta(hours=-6))) == "Afternoons"

    def test_unparseable_text_returns_none(self):
        assert detect_from_datetime("next tuesday") is None
        assert detect_from_datetime("") is None

    def test_none_returns_none(self):
        assert detect_from_datetime(None) is None


class TestDetectFromClockTime:
    """Tests for HH:MM start times."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("07:15", "Mornings"),
            ("9:00", "Mornings"),
            ("14:30", "Afternoons"),
            ("18:00", "Nights"),
            ("18:00:00", "Nights"),
            (" 12:00 ", "Afternoons"),
        ],
    )
    def test_valid_times(self, value, expected):
        assert detect_from_clock_time(value) == expected

    @pytest.mark.parametrize("value", ["noon", "25:00", "12:75", "1230", "", None])
    def test_invalid_times_return_none(self, value):
        assert detect_from_clock_time(value) is None


class TestLegacyScheduleHint:
    """Tests for "Ongoing Schedule:" extraction."""

    def test_extracts_time_after_marker(self):
        hint = "Help with the food pantry.\nOngoing Schedule: Weekly on Tuesday at 14:30"
        assert extract_legacy_schedule_time(hint) == "14:30"

    def test_ignores_time_before_marker(self):
        hint = "Meet at 08:00 for setup. Ongoing Schedule: monthly"
        assert extract_legacy_schedule_time(hint) is None

    def test_missing_marker(self):
        assert extract_legacy_schedule_time("Weekly on Tuesday at 14:30") is None

    def test_none_hint(self):
        assert extract_legacy_schedule_time(None) is None


class TestResolveEffectiveTimePreference:
    """Tests for the resolution precedence."""

    def test_asap_keeps_manual_preference_over_schedule(self):
        result = resolve_effective_time_preference(
            need(
                urgency_class="asap",
                explicit_time_preference="Nights",
                scheduled_at=datetime(2025, 3, 2, 8, 0),
            )
        )
        assert result == "Nights"

    def test_asap_without_manual_preference_is_anytime(self):
        result = resolve_effective_time_preference(
            need(urgency_class="ASAP", scheduled_at=datetime(2025, 3, 2, 8, 0))
        )
        assert result == "Anytime"

    def test_scheduled_at_beats_manual_preference(self):
        result = resolve_effective_time_preference(
            need(explicit_time_preference="Nights", scheduled_at="2025-03-02T10:00:00")
        )
        assert result == "Mornings"

    def test_scheduled_at_beats_recurring_start_time(self):
        result = resolve_effective_time_preference(
            need(
                scheduled_at="2025-03-02T13:00:00",
                is_recurring=True,
                recurring_start_time="19:00",
            )
        )
        assert result == "Afternoons"

    def test_recurring_start_time(self):
        result = resolve_effective_time_preference(
            need(is_recurring=True, recurring_schedule="weekly", recurring_start_time="18:30")
        )
        assert result == "Nights"

    def test_recurring_time_ignored_when_not_recurring(self):
        result = resolve_effective_time_preference(
            need(is_recurring=False, recurring_start_time="18:30")
        )
        assert result == "Anytime"

    def test_legacy_hint_fallback(self):
        result = resolve_effective_time_preference(
            need(
                explicit_time_preference="Nights",
                legacy_description_schedule_hint="Ongoing Schedule: every Sunday at 14:30",
            )
        )
        assert result == "Afternoons"

    def test_malformed_recurring_time_falls_through_to_legacy_hint(self):
        result = resolve_effective_time_preference(
            need(
                is_recurring=True,
                recurring_start_time="noon",
                legacy_description_schedule_hint="Ongoing Schedule: weekly at 7:00",
            )
        )
        assert result == "Mornings"

    def test_malformed_recurring_time_falls_through_to_manual(self):
        result = resolve_effective_time_preference(
            need(
                is_recurring=True,
                recurring_start_time="noon",
                explicit_time_preference="Afternoons",
            )
        )
        assert result == "Afternoons"

    def test_malformed_scheduled_at_falls_through(self):
        result = resolve_effective_time_preference(
            need(scheduled_at="not a date", is_recurring=True, recurring_start_time="09:00")
        )
        assert result == "Mornings"

    def test_malformed_legacy_time_falls_through(self):
        result = resolve_effective_time_preference(
            need(
                explicit_time_preference="Nights",
                legacy_description_schedule_hint="Ongoing Schedule: weekly at 27:99",
            )
        )
        assert result == "Nights"

    def test_default_is_anytime(self):
        assert resolve_effective_time_preference(need()) == "Anytime"

    def test_timezone_applied_to_aware_timestamps(self):
        result = resolve_effective_time_preference(
            need(scheduled_at="2025-01-15T15:00:00+00:00"),
            ZoneInfo("America/Chicago"),
        )
        assert result == "Mornings"


class TestResolveNeed:
    """Tests for resolve_need."""

    def test_returns_resolved_copy(self):
        original = need(title="Drive to church", is_recurring=True, recurring_start_time="08:00")

        resolved = resolve_need(original)

        assert isinstance(resolved, ResolvedNeedRequest)
        assert resolved.effective_time_preference == "Mornings"
        assert resolved.title == "Drive to church"
        assert resolved.required_tags == ["Cooking"]
        assert not hasattr(original, "effective_time_preference")
