# accounting/queries.py
"""
Read-side lookups over the ledger tables.

Nothing here writes or takes locks. Every function returns committed state,
so a partially appended entry is never visible.
"""

from django.db.models import Exists, OuterRef, Prefetch, Q

from accounting.models import Account, JournalEntry, JournalLine, Period
from accounting.periods import (
    month_keys_for_label,
    period_key_of,
    validate_period_key,
)


# =============================================================================
# Accounts
# =============================================================================

def list_accounts(include_inactive: bool = False, account_type: str = None, search: str = None):
    """Accounts ordered by code, with `_has_postings` annotated."""
    qs = Account.objects.select_related("parent").annotate(
        _has_postings=Exists(JournalLine.objects.filter(account=OuterRef("pk"))),
    )
    if not include_inactive:
        qs = qs.filter(is_active=True)
    if account_type:
        qs = qs.filter(account_type=account_type)
    if search:
        qs = qs.filter(Q(code__icontains=search) | Q(name__icontains=search))
    return qs.order_by("code", "id")


def resolve_account(account_id):
    """Return the Account or None."""
    return Account.objects.select_related("parent").filter(pk=account_id).first()


# =============================================================================
# Journal entries
# =============================================================================

def _entries_with_lines():
    return JournalEntry.objects.prefetch_related(
        Prefetch(
            "lines",
            queryset=JournalLine.objects.select_related("account").order_by("line_no"),
        ),
    ).select_related("reverses", "reversal")


def list_entries(period: str = None, account_id=None, date_from=None, date_to=None):
    """
    Entries ordered by (date, sequence).

    `period` is any read-side label ("2024-05", "2024-Q2", "2024-H1", "2024").
    Raises PeriodLabelError for a malformed label.
    """
    qs = _entries_with_lines()
    if period:
        qs = qs.filter(period__in=month_keys_for_label(period))
    if account_id is not None:
        qs = qs.filter(lines__account_id=account_id).distinct()
    if date_from is not None:
        qs = qs.filter(date__gte=date_from)
    if date_to is not None:
        qs = qs.filter(date__lte=date_to)
    return qs.order_by("date", "sequence")


def get_entry(entry_id):
    """Return the JournalEntry (lines prefetched) or None."""
    return _entries_with_lines().filter(pk=entry_id).first()


# =============================================================================
# Periods
# =============================================================================

def is_period_closed(period_key: str) -> bool:
    """
    Read-only lock check, safe for collaborator modules.

    A month without a row is open.
    """
    validate_period_key(period_key)
    return Period.objects.filter(
        period_key=period_key,
        status=Period.Status.CLOSED,
    ).exists()


def is_date_locked(value) -> bool:
    """True if the month containing `value` is closed."""
    return is_period_closed(period_key_of(value))


def list_periods():
    return Period.objects.order_by("period_key")


def get_period(period_key: str) -> Period:
    """
    Return the stored Period, or an unsaved OPEN Period for a month never seen.
    """
    validate_period_key(period_key)
    period = Period.objects.filter(period_key=period_key).first()
    if period is None:
        period = Period(period_key=period_key, status=Period.Status.OPEN)
    return period
