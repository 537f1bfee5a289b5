"""Condition value resolvers and operator comparators.

Each condition type maps to a resolver that reads the actual value from the
evaluation or the memory metadata (with a fixed fallback), and each operator
maps to a type-guarded comparator.
"""

from datetime import datetime
from typing import Any, Callable, Dict, Mapping, Optional

from loguru import logger

from lethe.core.models import ForgettingEvaluation
from lethe.core.policy_models import ConditionOperator, ConditionType

SECONDS_PER_DAY = 24 * 60 * 60

# Epoch numbers at or above this are milliseconds (seconds would be past year 5000)
EPOCH_MILLISECONDS_CUTOFF = 1e11

Resolver = Callable[[ForgettingEvaluation, Mapping[str, Any], datetime], Any]
Comparator = Callable[[Any, Any], bool]


def to_datetime(value: Any, now: datetime) -> datetime:
    """
    Interpret a timestamp relative to `now`.

    Accepts datetimes, ISO-8601 strings and epoch numbers (seconds, or
    milliseconds when at least 1e11). The result matches the timezone
    awareness of `now` so the two can be subtracted.

    Raises:
        TypeError: Unsupported value type
        ValueError: Unparseable string or out-of-range epoch
    """
    if isinstance(value, datetime):
        ts = value
    elif isinstance(value, str):
        ts = datetime.fromisoformat(value)
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        seconds = value / 1000 if abs(value) >= EPOCH_MILLISECONDS_CUTOFF else value
        try:
            ts = datetime.fromtimestamp(seconds, tz=now.tzinfo)
        except (OverflowError, OSError) as e:
            raise ValueError(f"Epoch timestamp out of range: {value!r}") from e
        return ts
    else:
        raise TypeError(f"Unsupported timestamp: {value!r}")

    if ts.tzinfo is not None and now.tzinfo is None:
        return ts.astimezone().replace(tzinfo=None)
    if ts.tzinfo is None and now.tzinfo is not None:
        return ts.astimezone(now.tzinfo)
    return ts


def _age_days(
    evaluation: ForgettingEvaluation, metadata: Mapping[str, Any], now: datetime
) -> Optional[float]:
    raw = metadata.get("timestamp")
    if not raw:
        return 0.0
    try:
        timestamp = to_datetime(raw, now)
    except (TypeError, ValueError) as e:
        # Unreadable timestamps resolve to None so the condition never matches
        logger.warning(f"Ignoring unreadable timestamp for memory {evaluation.memory_id}: {e}")
        return None
    return (now - timestamp).total_seconds() / SECONDS_PER_DAY


RESOLVERS: Dict[ConditionType, Resolver] = {
    ConditionType.MEMORY_TYPE: lambda ev, md, now: ev.memory_type,
    ConditionType.IMPORTANCE_THRESHOLD: lambda ev, md, now: ev.combined_score or 0,
    ConditionType.AGE_DAYS: _age_days,
    ConditionType.ACCESS_FREQUENCY: lambda ev, md, now: md.get("access_frequency") or 0,
    ConditionType.CONTENT_CATEGORY: lambda ev, md, now: md.get("category") or "unknown",
    ConditionType.PRIVACY_LEVEL: lambda ev, md, now: md.get("privacy_level") or "public",
    ConditionType.USER_TAG: lambda ev, md, now: md.get("user_tags") or [],
}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_sequence(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _strict_equals(actual: Any, expected: Any) -> bool:
    # Booleans never equal numbers
    if isinstance(actual, bool) != isinstance(expected, bool):
        return False
    return actual == expected


COMPARATORS: Dict[ConditionOperator, Comparator] = {
    ConditionOperator.EQUALS: _strict_equals,
    ConditionOperator.NOT_EQUALS: lambda actual, expected: not _strict_equals(actual, expected),
    ConditionOperator.GREATER_THAN: lambda actual, expected: (
        _is_number(actual) and _is_number(expected) and actual > expected
    ),
    ConditionOperator.LESS_THAN: lambda actual, expected: (
        _is_number(actual) and _is_number(expected) and actual < expected
    ),
    ConditionOperator.CONTAINS: lambda actual, expected: (
        isinstance(actual, str) and isinstance(expected, str) and expected in actual
    ),
    ConditionOperator.NOT_CONTAINS: lambda actual, expected: (
        isinstance(actual, str) and isinstance(expected, str) and expected not in actual
    ),
    # Membership of the actual value within the configured list
    ConditionOperator.IN: lambda actual, expected: (
        _is_sequence(expected) and actual in expected
    ),
    ConditionOperator.NOT_IN: lambda actual, expected: (
        _is_sequence(expected) and actual not in expected
    ),
}


def resolve_actual_value(
    condition_type: ConditionType,
    evaluation: ForgettingEvaluation,
    metadata: Mapping[str, Any],
    now: datetime,
) -> Any:
    """Read the value a condition of this type tests."""
    return RESOLVERS[condition_type](evaluation, metadata, now)


def compare(operator: ConditionOperator, actual: Any, expected: Any) -> bool:
    """Apply an operator; mismatched operand types and unresolved (None) values compare false."""
    if actual is None:
        return False
    return bool(COMPARATORS[operator](actual, expected))
