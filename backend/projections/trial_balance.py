# projections/trial_balance.py
"""
Trial balance computed on demand from journal lines.

Per account: sum(debit), sum(credit) and the net balance on the account's
normal side. Totals are the sums over every posting; `balanced` compares
them. Every entry is balanced when appended, so an unbalanced result means
storage was changed outside the command layer.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional

from django.db.models import Sum

from accounting.exceptions import LedgerValidationError
from accounting.models import Account, JournalLine
from accounting.periods import PeriodLabelError, month_keys_for_label
from projections.general_ledger import ZERO, signed_amount


CENT = Decimal("0.01")


@dataclass
class TrialBalanceRow:
    account: Account
    debit: Decimal = ZERO
    credit: Decimal = ZERO
    rollup_debit: Optional[Decimal] = None
    rollup_credit: Optional[Decimal] = None

    @property
    def balance(self) -> Decimal:
        return signed_amount(self.account, self.debit, self.credit)

    @property
    def rollup_balance(self) -> Optional[Decimal]:
        if self.rollup_debit is None:
            return None
        return signed_amount(self.account, self.rollup_debit, self.rollup_credit)

    def to_dict(self) -> dict:
        data = {
            "account": self.account.id,
            "code": self.account.code,
            "name": self.account.name,
            "type": self.account.account_type,
            "normalBalance": self.account.normal_balance,
            "parent": self.account.parent_id,
            "active": self.account.is_active,
            "debit": str(self.debit),
            "credit": str(self.credit),
            "balance": str(self.balance),
        }
        if self.rollup_debit is not None:
            data["rollupDebit"] = str(self.rollup_debit)
            data["rollupCredit"] = str(self.rollup_credit)
            data["rollupBalance"] = str(self.rollup_balance)
        return data


@dataclass
class TrialBalance:
    period: Optional[str]
    rows: list = field(default_factory=list)
    total_debit: Decimal = ZERO
    total_credit: Decimal = ZERO

    @property
    def balanced(self) -> bool:
        return self.total_debit == self.total_credit

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "balances": [row.to_dict() for row in self.rows],
            "totalDebit": str(self.total_debit),
            "totalCredit": str(self.total_credit),
            "balanced": self.balanced,
        }


def _cents(value) -> Decimal:
    return Decimal(value or 0).quantize(CENT)


def _posting_totals(month_keys) -> dict:
    """
    account_id -> (debit, credit), in a single aggregate statement.

    Sums are quantized to cents; SQLite returns them unscaled.
    """
    lines = JournalLine.objects.all()
    if month_keys is not None:
        lines = lines.filter(entry__period__in=month_keys)
    totals = (
        lines.order_by()
        .values("account_id")
        .annotate(debit=Sum("debit"), credit=Sum("credit"))
    )
    return {
        row["account_id"]: (_cents(row["debit"]), _cents(row["credit"]))
        for row in totals
    }


def _ancestor_ids(account_id, parents: dict) -> list:
    ancestors = []
    seen = {account_id}
    current = parents.get(account_id)
    while current is not None and current not in seen:
        ancestors.append(current)
        seen.add(current)
        current = parents.get(current)
    return ancestors


def trial_balance(
    period: Optional[str] = None,
    include_zero: bool = False,
    rollup: bool = False,
) -> TrialBalance:
    """
    Build the trial balance.

    Args:
        period: Read-side label ("2024-05", "2024-Q2", "2024-H1", "2024"); None = all time
        include_zero: Also list active accounts without matching postings
        rollup: Add rollup* figures summing each account's subtree; ancestors
            of posted accounts are listed even without postings of their own

    Raises:
        LedgerValidationError: malformed period label
    """
    try:
        month_keys = month_keys_for_label(period) if period else None
    except PeriodLabelError as exc:
        raise LedgerValidationError(str(exc))

    totals = _posting_totals(month_keys)
    accounts = {acc.id: acc for acc in Account.objects.order_by("code", "id")}

    result = TrialBalance(period=period or None)
    for debit, credit in totals.values():
        result.total_debit += debit
        result.total_credit += credit

    listed = set(totals)
    if include_zero:
        listed.update(acc_id for acc_id, acc in accounts.items() if acc.is_active)

    rollups = None
    if rollup:
        parents = {acc_id: acc.parent_id for acc_id, acc in accounts.items()}
        rollups = defaultdict(lambda: [ZERO, ZERO])
        for acc_id, (debit, credit) in totals.items():
            for target in [acc_id] + _ancestor_ids(acc_id, parents):
                rollups[target][0] += debit
                rollups[target][1] += credit
                listed.add(target)

    for acc_id, account in accounts.items():
        if acc_id not in listed:
            continue
        debit, credit = totals.get(acc_id, (ZERO, ZERO))
        row = TrialBalanceRow(account=account, debit=debit, credit=credit)
        if rollups is not None:
            row.rollup_debit, row.rollup_credit = rollups.get(acc_id, (ZERO, ZERO))
        result.rows.append(row)

    return result
