# accounting/locks.py
"""
Row locks used by the write path.

Both helpers MUST be called inside transaction.atomic(); the lock is held
until that transaction commits or rolls back.

- lock_period: per-month mutual exclusion between "post into X" and
  "close X". Posting and closing the same month serialize on one row.
- next_sequence: monotonic counters (entry sequence / entry numbers).
"""

from django.db import IntegrityError, transaction

from accounting.models import LedgerSequence, Period
from accounting.periods import validate_period_key


def lock_period(period_key: str) -> Period:
    """
    Return the Period row for `period_key`, locked FOR UPDATE.

    Creates the row (OPEN) if the month has never been seen. A concurrent
    creator may win the insert; the loser re-reads the winner's row.
    """
    validate_period_key(period_key)
    try:
        return Period.objects.select_for_update().get(period_key=period_key)
    except Period.DoesNotExist:
        pass

    try:
        with transaction.atomic():
            Period.objects.create(period_key=period_key)
    except IntegrityError:
        pass
    return Period.objects.select_for_update().get(period_key=period_key)


def next_sequence(name: str) -> int:
    """
    Allocate the next value for a named counter.
    Uses select_for_update to avoid concurrent duplicates.
    """
    try:
        seq = LedgerSequence.objects.select_for_update().get(name=name)
    except LedgerSequence.DoesNotExist:
        try:
            with transaction.atomic():
                LedgerSequence.objects.create(name=name, next_value=1)
        except IntegrityError:
            pass
        seq = LedgerSequence.objects.select_for_update().get(name=name)

    value = seq.next_value
    seq.next_value = value + 1
    seq.save(update_fields=["next_value", "updated_at"])
    return value
