"""Sibling weight rebalancing.

Pure domain functions. Each share is truncated to 2 decimals and then held
as integer hundredths, so crediting the remainder is exact and the result
always sums to 100.00.

Rounding policy: truncation leaves a shortfall of a few hundredths, and the
whole shortfall goes to the FIRST sibling in the order the caller passes.
Callers pass siblings in their stable display order (see hierarchy.ordered).
"""

import math
from collections.abc import Sequence
from datetime import UTC, date, datetime, time, timedelta

from progress_engine.core.exceptions import ManualWeightingError, NoPeriodDefinedError
from progress_engine.domain.hierarchy import MidGoal, SubGoal, Task, WeightMethod, level_of

TOTAL_HUNDREDTHS = 10_000
_MICROSECONDS_PER_DAY = 86_400_000_000

Sibling = MidGoal | SubGoal | Task


def _as_utc_datetime(value: date | datetime) -> datetime:
    # Plain dates start at midnight; naive datetimes are read as UTC
    if not isinstance(value, datetime):
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value


def days_between(start: date | datetime, end: date | datetime) -> int:
    """Whole days from start to end, rounded up.

    The one day-span definition used at every level. Dates, naive and aware
    datetimes can be mixed freely.
    """
    micros = (_as_utc_datetime(end) - _as_utc_datetime(start)) // timedelta(microseconds=1)
    return -(-micros // _MICROSECONDS_PER_DAY)


def period_days(node: Sibling) -> int:
    """Day span of a dated node; 0 when a date is missing or the span is negative."""
    if node.start_date is None or node.end_date is None:
        return 0
    return max(days_between(node.start_date, node.end_date), 0)


def _credit_first(shares: list[int]) -> list[int]:
    if shares:
        shares[0] += TOTAL_HUNDREDTHS - sum(shares)
    return shares


def equal_shares(count: int) -> list[int]:
    """Equal split of 100.00 in hundredths, remainder on the first slot."""
    if count <= 0:
        return []
    return _credit_first([TOTAL_HUNDREDTHS // count] * count)


def period_shares(spans: Sequence[int], level: str = "sibling") -> list[int]:
    """Split of 100.00 in hundredths proportional to day spans.

    Each share is floor((days / total_days) * 100 * 100) evaluated in floating
    point, so a ratio that lands just under a whole hundredth loses it
    (spans 10/29/61 give 10.01/28.99/61.00 after the remainder).

    Raises:
        NoPeriodDefinedError: if every span is 0
    """
    total_days = sum(spans)
    if total_days == 0:
        raise NoPeriodDefinedError(level)
    return _credit_first([math.floor((days / total_days) * 100 * 100) for days in spans])


def rebalance(
    siblings: Sequence[Sibling],
    method: WeightMethod | str,
    *,
    override: bool = False,
) -> dict[str, float]:
    """Compute new weights for one sibling group.

    Args:
        siblings: One sibling group in stable order; the first absorbs rounding
        method: EQUAL or PERIOD
        override: Allow rebalancing a group currently tagged MANUAL

    Returns:
        {sibling_id: weight} in input order, summing to 100

    Raises:
        ManualWeightingError: method is MANUAL, or a sibling is MANUAL without override
        NoPeriodDefinedError: PERIOD with no dated sibling
    """
    method = WeightMethod(method)
    if method == WeightMethod.MANUAL:
        raise ManualWeightingError("MANUAL weights are set by the caller, not computed")

    if not siblings:
        return {}

    if not override and any(s.weight_method == WeightMethod.MANUAL for s in siblings):
        raise ManualWeightingError()

    if method == WeightMethod.EQUAL:
        shares = equal_shares(len(siblings))
    else:
        level = str(level_of(siblings[0]))
        shares = period_shares([period_days(s) for s in siblings], level)

    return {sibling.id: share / 100 for sibling, share in zip(siblings, shares)}


def apply_weights(siblings: Sequence[Sibling], weights: dict[str, float], method: WeightMethod | str) -> None:
    """Write weights and the method tag back onto the snapshot nodes."""
    method = WeightMethod(method)
    for sibling in siblings:
        if sibling.id in weights:
            sibling.weight = weights[sibling.id]
            sibling.weight_method = method
