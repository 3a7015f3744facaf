# accounting/policies.py
"""
Business policy functions for ledger operations.

Policies answer: "Is this action allowed given the current state?"
They do NOT perform the action; commands do.

Design Principles:
1. Policies are pure functions (no side effects)
2. Policies return (bool, str) tuples for clear error messages
3. Policies check ONE thing conceptually
4. Commands compose policies as needed

Collaborator modules (payroll, income, leave, reimbursements, ...) that
accept dated financial edits use the period policies here as their own
server-side gate:

    from django.db import transaction
    from accounting.policies import assert_period_open

    with transaction.atomic():
        assert_period_open(payslip.date, lock=True)
        payslip.save()
"""

from decimal import Decimal


class PolicyViolation(Exception):
    """Raised when a business policy is violated."""
    pass


PERIOD_LOCKED = "Period {period} is locked."


# =============================================================================
# Account Policies
# =============================================================================

def can_post_to_account(account) -> tuple[bool, str]:
    """
    Check if journal lines can be posted to this account.

    Rules:
    - Cannot post to inactive accounts
    """
    if not account.is_active:
        return False, f"Cannot post to inactive account: {account.code}"

    return True, ""


def can_set_parent(account, parent) -> tuple[bool, str]:
    """
    Check if `parent` may become the parent of `account`.

    Rules:
    - An account cannot be its own parent
    - The assignment must not close a cycle
    """
    if parent is None:
        return True, ""

    if account is not None and account.pk is not None and parent.pk == account.pk:
        return False, "An account cannot be its own parent."

    if account is not None and account.would_create_cycle(parent):
        return False, "Parent assignment would create a cycle."

    return True, ""


def can_change_account_type(account) -> tuple[bool, str]:
    """
    Check if account type can be changed.

    Rules:
    - Cannot change type once the account has postings (would flip the
      normal side of historical balances)
    """
    if account.has_postings():
        return False, "Cannot change type of an account with postings."

    return True, ""


def can_deactivate_account(account) -> tuple[bool, str]:
    """
    Check if an account can be deactivated.

    Rules:
    - Must currently be active
    """
    if not account.is_active:
        return False, f"Account {account.code} is already inactive."

    return True, ""


# =============================================================================
# Journal Entry Policies
# =============================================================================

def check_line_amounts(debit: Decimal, credit: Decimal) -> tuple[bool, str]:
    """
    Rules:
    - Amounts are non-negative
    - Exactly one of debit/credit is strictly positive
    """
    if debit < 0 or credit < 0:
        return False, "Line amounts cannot be negative."

    if debit > 0 and credit > 0:
        return False, "A line cannot have both a debit and a credit."

    if debit == 0 and credit == 0:
        return False, "A line must have a non-zero debit or credit."

    return True, ""


def check_entry_balanced(total_debit: Decimal, total_credit: Decimal) -> tuple[bool, str]:
    """
    The core ledger invariant: debits equal credits and the total is positive.
    """
    if total_debit != total_credit:
        return False, (
            f"Entry not balanced: debits {total_debit} != credits {total_credit}."
        )

    if total_debit <= 0:
        return False, "Entry not balanced: total must be greater than zero."

    return True, ""


def can_reverse_entry(entry) -> tuple[bool, str]:
    """
    Check if a journal entry can be reversed.

    Rules:
    - Must be NORMAL kind (can't reverse a reversal)
    - Must not already be reversed
    """
    from accounting.models import JournalEntry

    if entry.kind != JournalEntry.Kind.NORMAL:
        return False, "Only NORMAL entries can be reversed."

    if JournalEntry.objects.filter(reverses=entry).exists():
        return False, "This entry was already reversed."

    return True, ""


# =============================================================================
# Period Policies
# =============================================================================

def can_post_to_period(target_date, lock: bool = False) -> tuple[bool, str]:
    """
    Check if postings dated `target_date` are allowed.

    Rules:
    - The canonical month of the date must not be closed

    With lock=True the month's Period row is locked FOR UPDATE first, so
    the answer stays valid until the caller's transaction ends. lock=True
    must be used inside transaction.atomic().
    """
    from accounting.periods import period_key_of, PeriodLabelError
    from accounting.queries import is_period_closed

    try:
        period_key = period_key_of(target_date)
    except PeriodLabelError:
        return False, "Invalid entry date."

    if lock:
        from accounting.locks import lock_period

        closed = lock_period(period_key).is_closed
    else:
        closed = is_period_closed(period_key)

    if closed:
        return False, PERIOD_LOCKED.format(period=period_key)

    return True, ""


# =============================================================================
# Assertion Helpers (raise on failure)
# =============================================================================

def assert_period_open(target_date, lock: bool = False) -> None:
    """Assert postings dated `target_date` are allowed, raise PolicyViolation if not."""
    allowed, reason = can_post_to_period(target_date, lock=lock)
    if not allowed:
        raise PolicyViolation(reason)


def assert_can_reverse_entry(entry) -> None:
    """Assert entry can be reversed, raise PolicyViolation if not."""
    allowed, reason = can_reverse_entry(entry)
    if not allowed:
        raise PolicyViolation(reason)
