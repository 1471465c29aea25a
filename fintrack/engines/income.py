"""
Income Recurrence Engine

Classifies income records as recurring or one-time and keeps their
`next_occurrence` consistent with `frequency`.

DESIGN DECISION: Next occurrences use fixed day offsets from the record date
(a "month" is 30 days, a "year" 365). They are an approximate reminder, not
a calendar schedule.
"""

from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable, Optional

from pydantic import ValidationError

from fintrack.engines.errors import InvalidInputError
from fintrack.models.income import (
    CategoryTotal,
    IncomeFrequency,
    IncomeRecord,
    IncomeSummary,
    Recurrence,
)
from fintrack.utils.decimal_utils import ZERO
from fintrack.utils.time_utils import utcnow


OCCURRENCE_OFFSET_DAYS: dict[IncomeFrequency, int] = {
    IncomeFrequency.DAILY: 1,
    IncomeFrequency.WEEKLY: 7,
    IncomeFrequency.MONTHLY: 30,
    IncomeFrequency.QUARTERLY: 90,
    IncomeFrequency.YEARLY: 365,
}

# Engine-owned or identity fields; never changed through update_record
_PROTECTED_FIELDS = frozenset({
    "id", "user_id", "is_recurring", "next_occurrence",
    "version", "created_at", "updated_at",
})


def classify(record: IncomeRecord) -> Recurrence:
    """
    Derive `is_recurring` and `next_occurrence` from the frequency.

    An already set `next_occurrence` of a recurring record is kept.
    """
    if record.frequency == IncomeFrequency.ONE_TIME:
        return Recurrence(is_recurring=False, next_occurrence=None)

    next_occurrence = record.next_occurrence
    if next_occurrence is None:
        offset = OCCURRENCE_OFFSET_DAYS[record.frequency]
        next_occurrence = record.date + timedelta(days=offset)

    return Recurrence(is_recurring=True, next_occurrence=next_occurrence)


def apply_classification(record: IncomeRecord) -> IncomeRecord:
    """Copy of `record` with the derived recurrence fields written."""
    recurrence = classify(record)
    return record.model_copy(update={
        "is_recurring": recurrence.is_recurring,
        "next_occurrence": recurrence.next_occurrence,
    })


def update_record(record: IncomeRecord, **changes: Any) -> IncomeRecord:
    """
    Apply field changes and re-classify.

    A change of `frequency` or `date` makes the stored `next_occurrence`
    stale, so it is cleared and recomputed.

    Raises:
        InvalidInputError: Unknown or protected field, or a value that fails
            field validation.
    """
    forbidden = sorted(set(changes) & _PROTECTED_FIELDS)
    unknown = sorted(set(changes) - set(IncomeRecord.model_fields))
    if forbidden or unknown:
        raise InvalidInputError(
            "Income record fields cannot be updated",
            {"protected": forbidden, "unknown": unknown},
        )

    data = record.model_dump()
    data.update(changes)
    data["updated_at"] = utcnow()

    try:
        updated = IncomeRecord.model_validate(data)
    except ValidationError as e:
        raise InvalidInputError(
            "Invalid income record update",
            {"errors": e.errors(include_url=False)},
        ) from e

    if updated.frequency != record.frequency or updated.date != record.date:
        updated = updated.model_copy(update={"next_occurrence": None})

    return apply_classification(updated)


def next_expected_across_portfolio(
    records: Iterable[IncomeRecord],
    as_of: Optional[datetime] = None,
) -> Optional[IncomeRecord]:
    """Active recurring record with the earliest future next occurrence."""
    as_of = as_of or utcnow()
    upcoming = [
        r for r in records
        if r.is_active
        and r.is_recurring
        and r.next_occurrence is not None
        and r.next_occurrence > as_of
    ]
    if not upcoming:
        return None
    return min(upcoming, key=lambda r: r.next_occurrence)


def summarize_income(
    records: list[IncomeRecord],
    as_of: Optional[datetime] = None,
) -> IncomeSummary:
    """
    Summary statistics over the active records of a user.

    `monthly_income` covers the calendar month of `as_of`.
    """
    as_of = as_of or utcnow()
    active = [r for r in records if r.is_active]

    total = sum((r.amount for r in active), ZERO)
    monthly = sum(
        (
            r.amount for r in active
            if r.date.year == as_of.year and r.date.month == as_of.month
        ),
        ZERO,
    )
    sources = {r.source for r in active}
    average = ZERO
    if sources:
        average = (total / len(sources)).quantize(
            Decimal("0.01"), rounding=ROUND_HALF_UP
        )

    breakdown: dict[str, CategoryTotal] = {}
    for record in active:
        key = record.category.value
        entry = breakdown.setdefault(key, CategoryTotal())
        entry.amount += record.amount
        entry.count += 1

    return IncomeSummary(
        total_income=total,
        monthly_income=monthly,
        income_sources_count=len(sources),
        average_income_per_source=average,
        recurring_income_count=sum(1 for r in active if r.is_recurring),
        next_expected_income=next_expected_across_portfolio(active, as_of),
        category_breakdown=breakdown,
        total_entries=len(active),
    )


__all__ = [
    "OCCURRENCE_OFFSET_DAYS",
    "apply_classification",
    "classify",
    "next_expected_across_portfolio",
    "summarize_income",
    "update_record",
]
