# projections/general_ledger.py
"""
General ledger for one account: its postings in (date, sequence) order with
a running balance.

Nothing is stored. A GeneralLedger holds one lazily evaluated query over the
journal lines; iterating it walks that snapshot, so iterating twice gives the
same rows even while new entries are being posted.

With a period filter the running balance covers the selected postings only
and starts at zero. Passing with_opening=True starts it from the net of all
postings dated before the period instead.

Sign convention (fixed by account type):
- DEBIT-normal (asset, expense):      balance += debit - credit
- CREDIT-normal (liability, equity, revenue): balance += credit - debit
"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterator, Optional

from accounting.exceptions import LedgerNotFound, LedgerValidationError
from accounting.models import Account, JournalLine
from accounting.periods import PeriodLabelError, month_keys_for_label
from accounting.queries import resolve_account


ZERO = Decimal("0.00")


def signed_amount(account: Account, debit: Decimal, credit: Decimal) -> Decimal:
    """Net effect of a posting on the account's balance."""
    if account.is_debit_normal:
        return debit - credit
    return credit - debit


@dataclass(frozen=True)
class LedgerRow:
    date: date
    description: str
    debit: Decimal
    credit: Decimal
    balance: Decimal
    entry_id: int
    entry_number: str
    reference: str
    line_description: str

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "description": self.description,
            "debit": str(self.debit),
            "credit": str(self.credit),
            "balance": str(self.balance),
            "entryId": self.entry_id,
            "entryNumber": self.entry_number,
            "reference": self.reference,
            "lineDescription": self.line_description,
        }


class GeneralLedger:
    """
    Re-iterable posting list for one account.

    Attributes:
        account: The Account
        period: Read-side label the rows are restricted to (None = all)
        with_opening: Start the running balance from the pre-period net
        opening_balance: Net of postings dated before the period's first
            month when with_opening is set, else zero
        closing_balance: Balance after the last row
    """

    def __init__(self, account: Account, period: Optional[str] = None, with_opening: bool = False):
        self.account = account
        self.period = period or None
        self.with_opening = with_opening
        self._month_keys = month_keys_for_label(period) if period else None

        lines = JournalLine.objects.filter(account=account).select_related("entry")
        if self._month_keys and with_opening:
            # One statement: window rows plus everything before the window.
            lines = lines.filter(entry__period__lte=self._month_keys[-1])
        elif self._month_keys:
            lines = lines.filter(entry__period__in=self._month_keys)
        self._lines = lines.order_by("entry__date", "entry__sequence", "line_no")

    def _partition(self):
        opening = ZERO
        window = []
        first_key = self._month_keys[0] if self._month_keys else None
        for line in self._lines:
            if first_key is not None and line.entry.period < first_key:
                opening += signed_amount(self.account, line.debit, line.credit)
            else:
                window.append(line)
        return opening, window

    @property
    def opening_balance(self) -> Decimal:
        return self._partition()[0]

    def __iter__(self) -> Iterator[LedgerRow]:
        balance, window = self._partition()
        for line in window:
            balance += signed_amount(self.account, line.debit, line.credit)
            entry = line.entry
            yield LedgerRow(
                date=entry.date,
                description=entry.description,
                debit=line.debit,
                credit=line.credit,
                balance=balance,
                entry_id=entry.id,
                entry_number=entry.entry_number,
                reference=entry.reference,
                line_description=line.description,
            )

    @property
    def closing_balance(self) -> Decimal:
        balance = self.opening_balance
        for row in self:
            balance = row.balance
        return balance

    def rows(self) -> list:
        """LedgerRow[] payload of GET /accounts/general-ledger/."""
        return [row.to_dict() for row in self]

    def to_dict(self) -> dict:
        """Summary payload: account header, opening/closing balance and rows."""
        rows = list(self)
        opening = self.opening_balance
        return {
            "account": {
                "id": self.account.id,
                "code": self.account.code,
                "name": self.account.name,
                "type": self.account.account_type,
                "normalBalance": self.account.normal_balance,
                "active": self.account.is_active,
            },
            "period": self.period,
            "openingBalance": str(opening),
            "closingBalance": str(rows[-1].balance if rows else opening),
            "rows": [row.to_dict() for row in rows],
        }


def general_ledger(account_id, period: Optional[str] = None, with_opening: bool = False) -> GeneralLedger:
    """
    Build the general ledger of one account.

    Raises:
        LedgerNotFound: unknown account
        LedgerValidationError: malformed period label
    """
    account = resolve_account(account_id)
    if account is None:
        raise LedgerNotFound(f"Account {account_id} not found.")
    try:
        return GeneralLedger(account, period, with_opening=with_opening)
    except PeriodLabelError as exc:
        raise LedgerValidationError(str(exc))
