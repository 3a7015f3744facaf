# accounting/commands.py
"""
Command layer for ledger operations.

Commands are the single point where business operations happen.
Views call commands; commands enforce rules and write the tables.

Pattern:
1. Validate permissions (require)
2. Apply business policies (can_*)
3. Take the row locks the operation needs (accounting.locks)
4. Perform the operation (model changes)
5. Return CommandResult

Every command runs in one transaction. A failed command leaves no partial
state, and nothing here is retried automatically.
"""

import logging
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.text import Truncator

from accounts.authz import ActorContext, require
from accounting.exceptions import LedgerConflict, LedgerError, LedgerNotFound, LedgerValidationError
from accounting.locks import lock_period, next_sequence
from accounting.models import Account, JournalEntry, JournalLine, Period
from accounting.periods import PeriodLabelError, coerce_date, period_key_of, validate_period_key
from accounting.policies import (
    PERIOD_LOCKED,
    can_change_account_type,
    can_deactivate_account,
    can_post_to_account,
    can_reverse_entry,
    can_set_parent,
    check_entry_balanced,
    check_line_amounts,
)
from accounting.write_barrier import command_writes_allowed


logger = logging.getLogger(__name__)

CENT = Decimal("0.01")
MAX_AMOUNT = Decimal("10") ** 16

ENTRY_SEQUENCE = "journal_entry"

DESCRIPTION_MAX = JournalEntry._meta.get_field("description").max_length
REFERENCE_MAX = JournalEntry._meta.get_field("reference").max_length
LINE_DESCRIPTION_MAX = JournalLine._meta.get_field("description").max_length

_UNSET = object()


# =============================================================================
# Results
# =============================================================================

class CommandResult:
    """
    Wrapper for command results with success/failure info.

    Usage:
        result = create_account(actor, code="1000", ...)
        if result.success:
            account = result.data
        else:
            error_message = result.error
            kind = result.error_type  # validation_error / not_found / conflict
    """

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    CONFLICT = "conflict"

    _EXCEPTIONS = {
        VALIDATION: LedgerValidationError,
        NOT_FOUND: LedgerNotFound,
        CONFLICT: LedgerConflict,
    }

    def __init__(self, success: bool, data=None, error: str = None, error_type: str = None):
        self.success = success
        self.data = data
        self.error = error
        self.error_type = error_type

    def __repr__(self):
        if self.success:
            return f"<CommandResult ok data={self.data!r}>"
        return f"<CommandResult {self.error_type} {self.error!r}>"

    @classmethod
    def ok(cls, data=None):
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, error_type: str = VALIDATION):
        return cls(success=False, error=error, error_type=error_type)

    def raise_for_error(self):
        """Return data on success, raise the matching LedgerError otherwise."""
        if self.success:
            return self.data
        raise self._EXCEPTIONS.get(self.error_type, LedgerError)(self.error)


def _rejected(reason: str, error_type: str = CommandResult.VALIDATION, **context) -> CommandResult:
    logger.warning(
        "Ledger command rejected: %s",
        reason,
        extra={"error_type": error_type, **context},
    )
    return CommandResult.fail(reason, error_type)


def _to_amount(value) -> Decimal:
    """Parse a line amount into a 2-place Decimal. Raises ValueError."""
    if value is None or value == "":
        return Decimal("0.00")
    if isinstance(value, bool):
        raise ValueError(f"Invalid amount: {value!r}")
    try:
        amount = Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"Invalid amount: {value!r}")
    if not amount.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    if amount != amount.quantize(CENT):
        raise ValueError(f"Amount {value} has more than 2 decimal places.")
    if abs(amount) >= MAX_AMOUNT:
        raise ValueError(f"Amount {value} is too large.")
    return amount.quantize(CENT)


# =============================================================================
# Account Commands
# =============================================================================

@transaction.atomic
def create_account(
    actor: ActorContext,
    code: str,
    name: str,
    account_type: str,
    parent_id: int = None,
    description: str = "",
) -> CommandResult:
    """
    Create a new account in the chart of accounts.

    Args:
        actor: The actor context
        code: Account code (unique)
        name: Account name
        account_type: One of Account.AccountType (case-insensitive)
        parent_id: Optional parent account ID
        description: Free text

    Returns:
        CommandResult with the created Account or error
    """
    require(actor, "accounting.manage_chart")

    code = (code or "").strip()
    name = (name or "").strip()
    account_type = (account_type or "").strip().upper()

    if not code:
        return _rejected("Account code is required.")
    if not name:
        return _rejected("Account name is required.")
    if account_type not in Account.AccountType.values:
        return _rejected(f"Invalid account type: {account_type or '(empty)'}.")

    if Account.objects.filter(code=code).exists():
        return _rejected(f"Account code '{code}' already exists.", code=code)

    parent = None
    if parent_id is not None:
        parent = Account.objects.filter(pk=parent_id).first()
        if parent is None:
            return _rejected("Parent account not found.", parent_id=parent_id)

    try:
        with transaction.atomic():
            account = Account.objects.create(
                code=code,
                name=name,
                account_type=account_type,
                parent=parent,
                description=description or "",
            )
    except IntegrityError:
        return _rejected(f"Account code '{code}' already exists.", code=code)

    logger.info(
        "Account created",
        extra={"account_id": account.id, "code": code, "account_type": account_type, "actor": actor.identity},
    )
    return CommandResult.ok(account)


@transaction.atomic
def update_account(
    actor: ActorContext,
    account_id: int,
    code: str = None,
    name: str = None,
    account_type: str = None,
    description: str = None,
    parent_id=_UNSET,
) -> CommandResult:
    """
    Edit the mutable fields of an account.

    Only the fields passed are changed. `parent_id=None` detaches the account
    from its parent; leaving it out keeps the current parent.
    """
    require(actor, "accounting.manage_chart")

    account = Account.objects.select_for_update().filter(pk=account_id).first()
    if account is None:
        return _rejected("Account not found.", CommandResult.NOT_FOUND, account_id=account_id)

    update_fields = []

    if code is not None:
        code = code.strip()
        if not code:
            return _rejected("Account code is required.")
        if code != account.code:
            if Account.objects.filter(code=code).exclude(pk=account.pk).exists():
                return _rejected(f"Account code '{code}' already exists.", code=code)
            account.code = code
            update_fields.append("code")

    if name is not None:
        name = name.strip()
        if not name:
            return _rejected("Account name is required.")
        account.name = name
        update_fields.append("name")

    if account_type is not None:
        account_type = account_type.strip().upper()
        if account_type not in Account.AccountType.values:
            return _rejected(f"Invalid account type: {account_type or '(empty)'}.")
        if account_type != account.account_type:
            allowed, reason = can_change_account_type(account)
            if not allowed:
                return _rejected(reason, account_id=account.id)
            account.account_type = account_type
            update_fields.extend(["account_type", "normal_balance"])

    if description is not None:
        account.description = description
        update_fields.append("description")

    if parent_id is not _UNSET:
        parent = None
        if parent_id is not None:
            parent = Account.objects.filter(pk=parent_id).first()
            if parent is None:
                return _rejected("Parent account not found.", parent_id=parent_id)
        allowed, reason = can_set_parent(account, parent)
        if not allowed:
            return _rejected(reason, account_id=account.id, parent_id=parent_id)
        account.parent = parent
        update_fields.append("parent")

    if update_fields:
        try:
            with transaction.atomic():
                account.save(update_fields=update_fields + ["updated_at"])
        except IntegrityError:
            return _rejected(f"Account code '{account.code}' already exists.", code=account.code)
        logger.info(
            "Account updated",
            extra={"account_id": account.id, "fields": update_fields, "actor": actor.identity},
        )

    return CommandResult.ok(account)


@transaction.atomic
def deactivate_account(actor: ActorContext, account_id: int) -> CommandResult:
    """
    Soft-retire an account.

    The row and its historical postings stay; the account can no longer be
    used on new journal lines.
    """
    require(actor, "accounting.manage_chart")

    account = Account.objects.select_for_update().filter(pk=account_id).first()
    if account is None:
        return _rejected("Account not found.", CommandResult.NOT_FOUND, account_id=account_id)

    allowed, reason = can_deactivate_account(account)
    if not allowed:
        return _rejected(reason, CommandResult.CONFLICT, account_id=account.id)

    account.is_active = False
    account.deactivated_at = timezone.now()
    account.save(update_fields=["is_active", "deactivated_at", "updated_at"])

    logger.info(
        "Account deactivated",
        extra={"account_id": account.id, "code": account.code, "actor": actor.identity},
    )
    return CommandResult.ok(account)


# =============================================================================
# Journal Entry Commands
# =============================================================================

def _append_entry(
    actor: ActorContext,
    entry_date,
    description: str,
    reference: str,
    lines: list,
    kind: str = JournalEntry.Kind.NORMAL,
    reverses: JournalEntry = None,
) -> CommandResult:
    """
    Validate and append one entry. Caller must hold a transaction.

    Order of checks:
    1. date, description and lines present
    2. every line: account exists (not_found) and is active (validation)
    3. every line: amounts valid, exactly one positive side
    4. entry is balanced and non-zero
    5. period of the date is open (conflict), checked under the period lock
    """
    try:
        entry_date = coerce_date(entry_date)
    except PeriodLabelError as exc:
        return _rejected(str(exc))

    description = (description or "").strip()
    if not description:
        return _rejected("Description is required.")
    if len(description) > DESCRIPTION_MAX:
        return _rejected(f"Description exceeds {DESCRIPTION_MAX} characters.")

    reference = (reference or "").strip()
    if len(reference) > REFERENCE_MAX:
        return _rejected(f"Reference exceeds {REFERENCE_MAX} characters.")

    if not lines:
        return _rejected("Journal entry must have at least one line.")

    account_ids = set()
    for line in lines:
        account_id = line.get("account_id")
        if account_id is None:
            return _rejected("Each line must reference an account.")
        account_ids.add(account_id)

    # Lock in pk order; deactivate_account takes the same row lock.
    accounts = {
        acc.pk: acc
        for acc in Account.objects.select_for_update().filter(pk__in=account_ids).order_by("pk")
    }

    # Every line's account is resolved before any amount is looked at.
    for idx, line in enumerate(lines, start=1):
        account = accounts.get(line["account_id"])
        if account is None:
            return _rejected(
                f"Line {idx}: account {line['account_id']} not found.",
                CommandResult.NOT_FOUND,
                account_id=line["account_id"],
            )

        allowed, reason = can_post_to_account(account)
        if not allowed:
            return _rejected(f"Line {idx}: {reason}", account_id=account.pk)

    prepared = []
    total_debit = Decimal("0.00")
    total_credit = Decimal("0.00")

    for idx, line in enumerate(lines, start=1):
        try:
            debit = _to_amount(line.get("debit"))
            credit = _to_amount(line.get("credit"))
        except ValueError as exc:
            return _rejected(f"Line {idx}: {exc}")

        allowed, reason = check_line_amounts(debit, credit)
        if not allowed:
            return _rejected(f"Line {idx}: {reason}")

        line_description = (line.get("description") or "").strip()
        if len(line_description) > LINE_DESCRIPTION_MAX:
            return _rejected(f"Line {idx}: description exceeds {LINE_DESCRIPTION_MAX} characters.")

        total_debit += debit
        total_credit += credit
        prepared.append({
            "line_no": idx,
            "account": accounts[line["account_id"]],
            "description": line_description,
            "debit": debit,
            "credit": credit,
        })

    allowed, reason = check_entry_balanced(total_debit, total_credit)
    if not allowed:
        return _rejected(reason, total_debit=str(total_debit), total_credit=str(total_credit))

    period_key = period_key_of(entry_date)
    period = lock_period(period_key)
    if period.is_closed:
        return _rejected(
            PERIOD_LOCKED.format(period=period_key),
            CommandResult.CONFLICT,
            period=period_key,
        )

    with command_writes_allowed():
        sequence = next_sequence(ENTRY_SEQUENCE)
        prefix = getattr(settings, "LEDGER_ENTRY_NUMBER_PREFIX", "JE")
        entry = JournalEntry.objects.create(
            entry_number=f"{prefix}-{sequence:06d}",
            sequence=sequence,
            date=entry_date,
            period=period_key,
            description=description,
            reference=reference,
            kind=kind,
            reverses=reverses,
            created_by=actor.identity,
        )
        for item in prepared:
            JournalLine.objects.create(entry=entry, **item)

    logger.info(
        "Journal entry posted",
        extra={
            "entry_id": entry.id,
            "entry_number": entry.entry_number,
            "period": period_key,
            "kind": kind,
            "total": str(total_debit),
            "line_count": len(prepared),
            "actor": actor.identity,
        },
    )
    return CommandResult.ok(entry)


@transaction.atomic
def create_journal_entry(
    actor: ActorContext,
    date,
    description: str,
    lines: list,
    reference: str = "",
) -> CommandResult:
    """
    Post a balanced journal entry.

    Args:
        actor: The actor context
        date: Entry date (date or ISO string); decides the period
        description: Entry description
        lines: List of dicts with account_id, debit, credit, description
        reference: Optional external reference

    Returns:
        CommandResult with the created JournalEntry or error
    """
    require(actor, "accounting.post_entry")
    return _append_entry(actor, date, description, reference, lines)


@transaction.atomic
def reverse_journal_entry(
    actor: ActorContext,
    entry_id: int,
    date=None,
    description: str = None,
) -> CommandResult:
    """
    Correct an entry by posting its mirror image.

    Creates a new REVERSAL entry with swapped debit/credit amounts, dated
    `date` (default: today). The original entry is never modified. The new
    entry is validated and period-gated like any other posting.

    Returns:
        CommandResult with {"original": entry, "reversal": reversal_entry} or error
    """
    require(actor, "accounting.reverse_entry")

    original = JournalEntry.objects.select_for_update().filter(pk=entry_id).first()
    if original is None:
        return _rejected("Journal entry not found.", CommandResult.NOT_FOUND, entry_id=entry_id)

    allowed, reason = can_reverse_entry(original)
    if not allowed:
        return _rejected(reason, CommandResult.CONFLICT, entry_id=original.id)

    lines = [
        {
            "account_id": line.account_id,
            "description": (
                Truncator(f"Reversal: {line.description}").chars(LINE_DESCRIPTION_MAX)
                if line.description else ""
            ),
            "debit": line.credit,
            "credit": line.debit,
        }
        for line in original.lines.order_by("line_no")
    ]

    result = _append_entry(
        actor,
        date or timezone.localdate(),
        description or Truncator(
            f"Reversal of {original.entry_number}: {original.description}"
        ).chars(DESCRIPTION_MAX),
        original.reference,
        lines,
        kind=JournalEntry.Kind.REVERSAL,
        reverses=original,
    )
    if not result.success:
        return result

    return CommandResult.ok({
        "original": original,
        "reversal": result.data,
    })


# =============================================================================
# Period Commands
# =============================================================================

@transaction.atomic
def close_period(
    actor: ActorContext,
    period_key: str,
    closed_by: str = None,
) -> CommandResult:
    """
    Close a month. OPEN -> CLOSED is terminal.

    Closing an already closed month is a conflict; the first close's
    closed_at / closed_by are left untouched.

    Args:
        actor: The actor context
        period_key: Canonical month key ("YYYY-MM")
        closed_by: Label recorded on the period (default: the actor's username)
    """
    require(actor, "accounting.close_period")

    try:
        validate_period_key(period_key)
    except PeriodLabelError as exc:
        return _rejected(str(exc))

    period = lock_period(period_key)
    if period.is_closed:
        return _rejected(
            f"Period {period_key} is already closed.",
            CommandResult.CONFLICT,
            period=period_key,
        )

    period.status = Period.Status.CLOSED
    period.closed_at = timezone.now()
    period.closed_by = (closed_by or "").strip() or actor.identity
    period.save(update_fields=["status", "closed_at", "closed_by"])

    logger.info(
        "Period closed",
        extra={"period": period_key, "closed_by": period.closed_by, "actor": actor.identity},
    )
    return CommandResult.ok(period)
