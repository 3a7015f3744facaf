# accounting/models.py
"""
Ledger models.

Account and Period are regular mutable tables owned by the command layer.
JournalEntry and JournalLine are an APPEND-ONLY log:
=================================================================
- rows are inserted once, inside command_writes_allowed(), by
  accounting.commands.create_journal_entry / reverse_journal_entry
- rows are never updated or deleted (corrections are reversing entries)

Models:
- Account: Chart of Accounts (tree by parent, soft-retired via is_active)
- Period: Lock state of one calendar month ("YYYY-MM")
- LedgerSequence: Row-locked counters for entry sequence numbers
- JournalEntry: Journal entry headers
- JournalLine: Debit/credit lines
"""

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q, Sum

from accounting.write_barrier import write_context_allowed


class Account(models.Model):
    """
    Chart of Accounts entry.

    Supports:
    - Hierarchical structure (parent/child, weak reference, no cycles)
    - Account types with normal balance rules
    - Soft retirement (is_active=False); accounts are never deleted
    """

    class AccountType(models.TextChoices):
        ASSET = "ASSET", "Asset"
        LIABILITY = "LIABILITY", "Liability"
        EQUITY = "EQUITY", "Equity"
        REVENUE = "REVENUE", "Revenue"
        EXPENSE = "EXPENSE", "Expense"

    class NormalBalance(models.TextChoices):
        DEBIT = "DEBIT", "Debit"
        CREDIT = "CREDIT", "Credit"

    # Map account types to their normal balance
    NORMAL_BALANCE_MAP = {
        AccountType.ASSET: NormalBalance.DEBIT,
        AccountType.EXPENSE: NormalBalance.DEBIT,
        AccountType.LIABILITY: NormalBalance.CREDIT,
        AccountType.EQUITY: NormalBalance.CREDIT,
        AccountType.REVENUE: NormalBalance.CREDIT,
    }

    code = models.CharField(max_length=20, unique=True)
    name = models.CharField(max_length=255)

    account_type = models.CharField(
        max_length=20,
        choices=AccountType.choices,
        db_column="type",
    )

    normal_balance = models.CharField(
        max_length=10,
        choices=NormalBalance.choices,
        editable=False,
    )

    # Hierarchy
    parent = models.ForeignKey(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="children",
    )

    description = models.TextField(blank=True, default="")

    is_active = models.BooleanField(default=True)
    deactivated_at = models.DateTimeField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        indexes = [
            models.Index(fields=["account_type"], name="acct_type_idx"),
            models.Index(fields=["parent"], name="acct_parent_idx"),
            models.Index(fields=["is_active"], name="acct_active_idx"),
        ]
        permissions = [
            ("manage_chart", "Can create, edit and deactivate accounts"),
            ("view_reports", "Can view general ledger and trial balance"),
        ]

    def __str__(self):
        return f"{self.code} - {self.name}"

    @classmethod
    def normal_balance_for(cls, account_type: str) -> str:
        return cls.NORMAL_BALANCE_MAP[account_type]

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == self.NormalBalance.DEBIT

    def clean(self):
        if self.account_type not in self.AccountType.values:
            raise ValidationError(f"Invalid account type: {self.account_type}")

        if self.parent_id is not None and self.would_create_cycle(self.parent):
            raise ValidationError("Parent assignment would create a cycle.")

    def save(self, *args, **kwargs):
        # Auto-set normal balance from account type
        self.normal_balance = self.NORMAL_BALANCE_MAP.get(
            self.account_type,
            self.NormalBalance.DEBIT,
        )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError(
            "Accounts are never deleted. Use accounting.commands.deactivate_account."
        )

    def would_create_cycle(self, parent) -> bool:
        """True if making `parent` this account's parent closes a loop."""
        if parent is None:
            return False
        if self.pk is None:
            return False
        seen = set()
        current = parent
        while current is not None:
            if current.pk == self.pk:
                return True
            if current.pk in seen:
                # Pre-existing corruption; refuse to extend it.
                return True
            seen.add(current.pk)
            current = current.parent
        return False

    def get_ancestors(self) -> list["Account"]:
        """Returns list of ancestor accounts from root to immediate parent."""
        ancestors = []
        current = self.parent
        while current:
            ancestors.insert(0, current)
            current = current.parent
        return ancestors

    def get_descendants(self) -> list["Account"]:
        """Returns all descendant accounts (children, grandchildren, etc.)."""
        descendants = list(self.children.all())
        for child in list(descendants):
            descendants.extend(child.get_descendants())
        return descendants

    def has_postings(self) -> bool:
        return self.journal_lines.exists()


class Period(models.Model):
    """
    Lock state of one accounting period (a calendar month).

    A month with no row is open. Rows are created lazily: the first time an
    entry is posted into the month (to take the row lock) or when the month
    is closed. OPEN -> CLOSED is the only transition; CLOSED is terminal.
    """

    class Status(models.TextChoices):
        OPEN = "OPEN", "Open"
        CLOSED = "CLOSED", "Closed"

    period_key = models.CharField(max_length=7, unique=True)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.OPEN,
    )
    closed_at = models.DateTimeField(null=True, blank=True)
    closed_by = models.CharField(max_length=150, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["period_key"]
        permissions = [
            ("close_period", "Can close accounting periods"),
        ]

    def __str__(self):
        return f"{self.period_key} ({self.status})"

    @property
    def is_closed(self) -> bool:
        return self.status == self.Status.CLOSED


class LedgerSequence(models.Model):
    """
    Named counters for sequential identifiers.

    This is a write model used by commands to allocate unique numbers
    under concurrency (select_for_update).
    """

    name = models.CharField(max_length=100, unique=True)
    next_value = models.BigIntegerField(default=1)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name}={self.next_value}"


class AppendOnlyQuerySet(models.QuerySet):
    """Blocks bulk mutation of the journal log."""

    def update(self, **kwargs):
        raise RuntimeError(
            f"{self.model.__name__} rows are immutable. Post a reversing entry instead."
        )

    def delete(self):
        raise RuntimeError(
            f"{self.model.__name__} rows are immutable. Post a reversing entry instead."
        )


class AppendOnlyModel(models.Model):
    """
    Base for journal tables.

    Inserts are only allowed inside command_writes_allowed(); updates and
    deletes are never allowed.
    """

    objects = AppendOnlyQuerySet.as_manager()

    class Meta:
        abstract = True

    def save(self, *args, **kwargs):
        if self.pk is not None and not self._state.adding:
            raise RuntimeError(
                f"{self.__class__.__name__} is append-only. Post a reversing entry instead."
            )
        if not write_context_allowed({"command"}):
            raise RuntimeError(
                f"{self.__class__.__name__} can only be written by accounting.commands "
                "within command_writes_allowed()."
            )
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError(
            f"{self.__class__.__name__} is append-only. Post a reversing entry instead."
        )


class JournalEntry(AppendOnlyModel):
    """
    Journal Entry header.

    An entry exists fully formed (all lines, balanced) or not at all.
    Read order is (date, sequence); sequence is allocated at append time.
    """

    class Kind(models.TextChoices):
        NORMAL = "NORMAL", "Normal"
        REVERSAL = "REVERSAL", "Reversal"

    entry_number = models.CharField(max_length=30, unique=True)
    sequence = models.BigIntegerField(unique=True)

    date = models.DateField()

    # Canonical month key derived from date ("YYYY-MM")
    period = models.CharField(max_length=7)

    description = models.CharField(max_length=255)
    reference = models.CharField(max_length=100, blank=True, default="")

    kind = models.CharField(
        max_length=20,
        choices=Kind.choices,
        default=Kind.NORMAL,
    )

    reverses = models.OneToOneField(
        "self",
        null=True,
        blank=True,
        on_delete=models.PROTECT,
        related_name="reversal",
    )

    created_by = models.CharField(max_length=150, blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["date", "sequence"]
        verbose_name_plural = "journal entries"
        indexes = [
            models.Index(fields=["date", "sequence"], name="je_date_seq_idx"),
            models.Index(fields=["period"], name="je_period_idx"),
        ]
        permissions = [
            ("post_entry", "Can post journal entries"),
            ("reverse_entry", "Can post reversing entries"),
        ]

    def __str__(self):
        return f"{self.entry_number} {self.date} {self.description}"

    @property
    def total_debit(self) -> Decimal:
        total = self.lines.aggregate(total=Sum("debit"))["total"]
        return total or Decimal("0.00")

    @property
    def total_credit(self) -> Decimal:
        total = self.lines.aggregate(total=Sum("credit"))["total"]
        return total or Decimal("0.00")

    @property
    def is_balanced(self) -> bool:
        return self.total_debit == self.total_credit


class JournalLine(AppendOnlyModel):
    """
    A single posting: exactly one of debit/credit is strictly positive.
    """

    entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.CASCADE,
        related_name="lines",
    )

    line_no = models.PositiveIntegerField()

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_lines",
    )

    description = models.CharField(max_length=255, blank=True, default="")

    debit = models.DecimalField(max_digits=18, decimal_places=2, default=0)
    credit = models.DecimalField(max_digits=18, decimal_places=2, default=0)

    class Meta:
        ordering = ["entry", "line_no"]
        constraints = [
            models.UniqueConstraint(
                fields=["entry", "line_no"],
                name="uniq_journal_line_no",
            ),
            models.CheckConstraint(
                condition=~(Q(debit__gt=0) & Q(credit__gt=0)),
                name="chk_line_not_both_debit_credit",
            ),
            models.CheckConstraint(
                condition=~(Q(debit=0) & Q(credit=0)),
                name="chk_line_not_both_zero",
            ),
            models.CheckConstraint(
                condition=Q(debit__gte=0) & Q(credit__gte=0),
                name="chk_line_non_negative",
            ),
        ]
        indexes = [
            models.Index(fields=["account", "entry"], name="jl_account_entry_idx"),
        ]

    def __str__(self):
        return f"{self.entry.entry_number} L{self.line_no}"

    @property
    def amount(self) -> Decimal:
        return self.debit if self.debit > 0 else self.credit

    @property
    def is_debit(self) -> bool:
        return self.debit > 0
