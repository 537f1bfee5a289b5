"""Tests for condition resolvers and comparators."""

from datetime import datetime, timedelta, timezone

import pytest

from lethe.core.conditions import compare, resolve_actual_value, to_datetime
from lethe.core.models import MemoryKind
from lethe.core.policy_models import ConditionOperator, ConditionType

from conftest import FROZEN_NOW, make_evaluation


class TestResolvers:
    """Test actual value resolution per condition type."""

    def test_memory_type(self):
        evaluation = make_evaluation(memory_type=MemoryKind.SEMANTIC)
        value = resolve_actual_value(ConditionType.MEMORY_TYPE, evaluation, {}, FROZEN_NOW)
        assert value == "semantic"

    def test_importance_reads_combined_score(self):
        evaluation = make_evaluation(combined_score=0.42)
        value = resolve_actual_value(ConditionType.IMPORTANCE_THRESHOLD, evaluation, {}, FROZEN_NOW)
        assert value == 0.42

    def test_age_days(self):
        metadata = {"timestamp": FROZEN_NOW - timedelta(days=10)}
        value = resolve_actual_value(ConditionType.AGE_DAYS, make_evaluation(), metadata, FROZEN_NOW)
        assert value == pytest.approx(10)

    def test_age_days_from_iso_string(self):
        metadata = {"timestamp": (FROZEN_NOW - timedelta(days=2, hours=12)).isoformat()}
        value = resolve_actual_value(ConditionType.AGE_DAYS, make_evaluation(), metadata, FROZEN_NOW)
        assert value == pytest.approx(2.5)

    def test_age_days_from_epoch_milliseconds(self):
        now = FROZEN_NOW.replace(tzinfo=timezone.utc)
        metadata = {"timestamp": int((now - timedelta(days=5)).timestamp() * 1000)}
        value = resolve_actual_value(ConditionType.AGE_DAYS, make_evaluation(), metadata, now)
        assert value == pytest.approx(5)

    @pytest.mark.parametrize("raw", ["yesterday", 1e20, {"day": 1}])
    def test_unreadable_timestamp_resolves_to_none(self, raw):
        value = resolve_actual_value(
            ConditionType.AGE_DAYS, make_evaluation(), {"timestamp": raw}, FROZEN_NOW
        )
        assert value is None

    def test_age_days_missing_timestamp_is_zero(self):
        value = resolve_actual_value(ConditionType.AGE_DAYS, make_evaluation(), {}, FROZEN_NOW)
        assert value == 0

    @pytest.mark.parametrize(
        "condition_type,expected",
        [
            (ConditionType.ACCESS_FREQUENCY, 0),
            (ConditionType.CONTENT_CATEGORY, "unknown"),
            (ConditionType.PRIVACY_LEVEL, "public"),
            (ConditionType.USER_TAG, []),
        ],
    )
    def test_metadata_fallbacks(self, condition_type, expected):
        value = resolve_actual_value(condition_type, make_evaluation(), {}, FROZEN_NOW)
        assert value == expected

    def test_metadata_values(self):
        metadata = {
            "access_frequency": 0.4,
            "category": "work",
            "privacy_level": "private",
            "user_tags": ["travel"],
        }
        evaluation = make_evaluation()
        assert resolve_actual_value(ConditionType.ACCESS_FREQUENCY, evaluation, metadata, FROZEN_NOW) == 0.4
        assert resolve_actual_value(ConditionType.CONTENT_CATEGORY, evaluation, metadata, FROZEN_NOW) == "work"
        assert resolve_actual_value(ConditionType.PRIVACY_LEVEL, evaluation, metadata, FROZEN_NOW) == "private"
        assert resolve_actual_value(ConditionType.USER_TAG, evaluation, metadata, FROZEN_NOW) == ["travel"]


class TestToDatetime:
    """Test timestamp coercion."""

    def test_datetime_passthrough(self):
        assert to_datetime(FROZEN_NOW, FROZEN_NOW) == FROZEN_NOW

    def test_epoch_seconds(self):
        now = FROZEN_NOW.replace(tzinfo=timezone.utc)
        ts = to_datetime(now.timestamp() - 3600, now)
        assert now - ts == timedelta(hours=1)

    def test_aware_string_against_aware_now(self):
        now = FROZEN_NOW.replace(tzinfo=timezone.utc)
        ts = to_datetime("2024-06-01T10:00:00+00:00", now)
        assert now - ts == timedelta(hours=2)

    def test_epoch_milliseconds(self):
        now = FROZEN_NOW.replace(tzinfo=timezone.utc)
        ts = to_datetime(now.timestamp() * 1000 - 2 * 86400 * 1000, now)
        assert now - ts == timedelta(days=2)

    def test_aware_datetime_against_naive_now(self):
        now = datetime.now()
        ts = to_datetime(datetime.now(timezone.utc) - timedelta(days=1), now)
        assert ts.tzinfo is None
        assert (now - ts).total_seconds() / 86400 == pytest.approx(1, abs=1e-3)

    def test_unparseable_string(self):
        with pytest.raises(ValueError):
            to_datetime("yesterday", FROZEN_NOW)

    def test_out_of_range_epoch(self):
        with pytest.raises(ValueError):
            to_datetime(1e20, FROZEN_NOW)

    def test_unsupported(self):
        with pytest.raises(TypeError):
            to_datetime(["2024"], FROZEN_NOW)


class TestComparators:
    """Test operator semantics and type guards."""

    def test_equals(self):
        assert compare(ConditionOperator.EQUALS, "work", "work")
        assert not compare(ConditionOperator.NOT_EQUALS, "work", "work")

    def test_numeric_comparisons(self):
        assert compare(ConditionOperator.GREATER_THAN, 0.8, 0.7)
        assert not compare(ConditionOperator.GREATER_THAN, 0.7, 0.7)
        assert compare(ConditionOperator.LESS_THAN, 3, 7)

    def test_numeric_type_guard(self):
        assert not compare(ConditionOperator.GREATER_THAN, "9", 1)
        assert not compare(ConditionOperator.LESS_THAN, 1, "9")
        assert not compare(ConditionOperator.GREATER_THAN, True, 0)

    def test_contains(self):
        assert compare(ConditionOperator.CONTAINS, "medical records", "medical")
        assert compare(ConditionOperator.NOT_CONTAINS, "holiday photos", "medical")
        assert not compare(ConditionOperator.CONTAINS, ["medical"], "medical")
        assert not compare(ConditionOperator.NOT_CONTAINS, ["medical"], "medical")

    def test_in_checks_actual_in_expected(self):
        assert compare(ConditionOperator.IN, "medical", ["medical", "financial"])
        assert not compare(ConditionOperator.IN, "work", ["medical", "financial"])
        assert compare(ConditionOperator.NOT_IN, "work", ["medical", "financial"])

    def test_in_requires_list(self):
        assert not compare(ConditionOperator.IN, ["medical"], "medical")
        assert not compare(ConditionOperator.NOT_IN, "work", "medical")

    def test_equals_does_not_mix_booleans_and_numbers(self):
        assert not compare(ConditionOperator.EQUALS, True, 1)
        assert not compare(ConditionOperator.EQUALS, 0, False)
        assert compare(ConditionOperator.NOT_EQUALS, 1, True)
        assert compare(ConditionOperator.EQUALS, True, True)
        assert compare(ConditionOperator.EQUALS, 1, 1.0)

    @pytest.mark.parametrize("operator", list(ConditionOperator))
    def test_unresolved_value_never_matches(self, operator):
        assert not compare(operator, None, ["anything"])
