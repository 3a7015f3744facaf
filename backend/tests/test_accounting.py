# tests/test_accounting.py
"""
Tests for the chart of accounts and journal entry commands.

Tests cover:
- Account creation, update, deactivation and hierarchy rules
- Entry validation (balance, line sides, amounts, accounts)
- Append-only journal storage
- Reversing entries
"""

from datetime import date
from decimal import Decimal

import pytest
from django.core.exceptions import PermissionDenied

from accounting.commands import (
    CommandResult,
    create_account,
    create_journal_entry,
    deactivate_account,
    reverse_journal_entry,
    update_account,
    close_period,
)
from accounting.exceptions import LedgerConflict, LedgerNotFound, LedgerValidationError
from accounting.models import Account, JournalEntry, JournalLine
from accounting.queries import list_accounts, list_entries, resolve_account
from accounting.write_barrier import command_writes_allowed


# =============================================================================
# Account Registry
# =============================================================================

@pytest.mark.django_db
class TestCreateAccount:
    """Account creation rules."""

    def test_create_account(self, actor):
        result = create_account(actor, code="1000", name="Cash", account_type="ASSET")

        assert result.success
        account = result.data
        assert account.is_active is True
        assert account.normal_balance == Account.NormalBalance.DEBIT

    def test_type_is_case_insensitive(self, actor):
        account = create_account(actor, code="2000", name="AP", account_type="liability").raise_for_error()

        assert account.account_type == Account.AccountType.LIABILITY
        assert account.normal_balance == Account.NormalBalance.CREDIT

    def test_duplicate_code_rejected(self, actor, cash_account):
        result = create_account(actor, code="1000", name="Other Cash", account_type="ASSET")

        assert not result.success
        assert result.error_type == CommandResult.VALIDATION
        assert "already exists" in result.error

    def test_invalid_type_rejected(self, actor):
        result = create_account(actor, code="9000", name="Odd", account_type="MEMO")

        assert not result.success
        assert result.error_type == CommandResult.VALIDATION

    def test_unknown_parent_rejected(self, actor):
        result = create_account(actor, code="1100", name="Petty", account_type="ASSET", parent_id=999999)

        assert not result.success
        assert result.error_type == CommandResult.VALIDATION
        assert "Parent" in result.error

    def test_child_account(self, make_account, cash_account):
        child = make_account("1001", "Petty Cash", "ASSET", parent=cash_account)

        assert child.parent_id == cash_account.id
        assert cash_account.get_descendants() == [child]
        assert child.get_ancestors() == [cash_account]

    def test_requires_manage_chart(self, bookkeeper_actor):
        with pytest.raises(PermissionDenied):
            create_account(bookkeeper_actor, code="1000", name="Cash", account_type="ASSET")

    def test_accounts_cannot_be_deleted(self, cash_account):
        with pytest.raises(RuntimeError):
            cash_account.delete()


@pytest.mark.django_db
class TestListAccounts:

    def test_ordered_by_code(self, make_account):
        make_account("3000", "Capital", "EQUITY")
        make_account("1000", "Cash", "ASSET")
        make_account("2000", "AP", "LIABILITY")

        assert [a.code for a in list_accounts()] == ["1000", "2000", "3000"]

    def test_inactive_hidden_unless_requested(self, actor, cash_account, bank_account):
        deactivate_account(actor, bank_account.id).raise_for_error()

        assert [a.code for a in list_accounts()] == ["1000"]
        assert [a.code for a in list_accounts(include_inactive=True)] == ["1000", "1010"]

    def test_filter_by_type_and_search(self, actor, cash_account, bank_account, revenue_account):
        assert [a.code for a in list_accounts(account_type="REVENUE")] == ["4000"]
        assert [a.code for a in list_accounts(search="ban")] == ["1010"]
        assert [a.code for a in list_accounts(search="10")] == ["1000", "1010"]

    def test_resolve(self, cash_account):
        assert resolve_account(cash_account.id) == cash_account
        assert resolve_account(999999) is None


@pytest.mark.django_db
class TestUpdateAccount:

    def test_rename(self, actor, cash_account):
        account = update_account(actor, cash_account.id, name="Cash on Hand").raise_for_error()

        assert account.name == "Cash on Hand"
        assert Account.objects.get(pk=cash_account.id).name == "Cash on Hand"

    def test_not_found(self, actor):
        result = update_account(actor, 999999, name="x")

        assert result.error_type == CommandResult.NOT_FOUND
        with pytest.raises(LedgerNotFound):
            result.raise_for_error()

    def test_duplicate_code(self, actor, cash_account, bank_account):
        result = update_account(actor, bank_account.id, code="1000")

        assert result.error_type == CommandResult.VALIDATION

    def test_self_parent_rejected(self, actor, cash_account):
        result = update_account(actor, cash_account.id, parent_id=cash_account.id)

        assert not result.success
        assert "own parent" in result.error

    def test_cycle_rejected(self, actor, make_account, cash_account):
        child = make_account("1001", "Petty Cash", "ASSET", parent=cash_account)
        grandchild = make_account("1002", "Drawer", "ASSET", parent=child)

        result = update_account(actor, cash_account.id, parent_id=grandchild.id)

        assert not result.success
        assert "cycle" in result.error
        assert Account.objects.get(pk=cash_account.id).parent_id is None

    def test_detach_parent(self, actor, make_account, cash_account):
        child = make_account("1001", "Petty Cash", "ASSET", parent=cash_account)

        account = update_account(actor, child.id, parent_id=None).raise_for_error()

        assert account.parent_id is None

    def test_type_change_before_postings(self, actor, cash_account):
        account = update_account(actor, cash_account.id, account_type="EXPENSE").raise_for_error()

        assert account.account_type == Account.AccountType.EXPENSE
        assert account.normal_balance == Account.NormalBalance.DEBIT

    def test_type_change_blocked_after_postings(self, actor, post, cash_account, revenue_account):
        post("2024-05-01", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()

        result = update_account(actor, revenue_account.id, account_type="LIABILITY")

        assert not result.success
        assert result.error_type == CommandResult.VALIDATION
        assert Account.objects.get(pk=revenue_account.id).account_type == Account.AccountType.REVENUE

    def test_inactive_account_can_be_renamed(self, actor, cash_account):
        deactivate_account(actor, cash_account.id).raise_for_error()

        account = update_account(actor, cash_account.id, name="Old Cash").raise_for_error()

        assert account.name == "Old Cash"
        assert account.is_active is False


@pytest.mark.django_db
class TestDeactivateAccount:

    def test_deactivate(self, actor, cash_account):
        account = deactivate_account(actor, cash_account.id).raise_for_error()

        assert account.is_active is False
        assert account.deactivated_at is not None
        assert Account.objects.filter(pk=cash_account.id).exists()

    def test_deactivate_twice_is_conflict(self, actor, cash_account):
        deactivate_account(actor, cash_account.id).raise_for_error()

        result = deactivate_account(actor, cash_account.id)

        assert result.error_type == CommandResult.CONFLICT

    def test_not_found(self, actor):
        assert deactivate_account(actor, 999999).error_type == CommandResult.NOT_FOUND


# =============================================================================
# Journal Entries
# =============================================================================

@pytest.mark.django_db
class TestCreateJournalEntry:
    """Entry validation and storage."""

    def test_balanced_entry(self, post, controller_user, cash_account, revenue_account):
        entry = post(
            "2024-05-15",
            (cash_account, 100, 0),
            (revenue_account, 0, 100),
            reference="INV-1",
        ).raise_for_error()

        assert entry.entry_number == "JE-000001"
        assert entry.sequence == 1
        assert entry.period == "2024-05"
        assert entry.date == date(2024, 5, 15)
        assert entry.reference == "INV-1"
        assert entry.created_by == controller_user.username
        assert entry.total_debit == Decimal("100.00")
        assert entry.is_balanced
        assert list(entry.lines.values_list("line_no", flat=True)) == [1, 2]

    def test_unbalanced_entry_rejected(self, post, cash_account, revenue_account):
        result = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 90))

        assert not result.success
        assert result.error_type == CommandResult.VALIDATION
        assert "not balanced" in result.error
        assert JournalEntry.objects.count() == 0
        assert JournalLine.objects.count() == 0
        assert list(list_entries()) == []

    def test_line_with_both_sides_rejected(self, post, cash_account, revenue_account):
        result = post("2024-05-15", (cash_account, 50, 50), (revenue_account, 50, 50))

        assert not result.success
        assert "both a debit and a credit" in result.error

    def test_zero_line_rejected(self, post, cash_account, revenue_account, bank_account):
        result = post(
            "2024-05-15",
            (cash_account, 100, 0),
            (bank_account, 0, 0),
            (revenue_account, 0, 100),
        )

        assert not result.success
        assert "non-zero" in result.error

    def test_negative_amount_rejected(self, post, cash_account, revenue_account):
        result = post("2024-05-15", (cash_account, -100, 0), (revenue_account, -100, 0))

        assert not result.success
        assert "negative" in result.error

    def test_more_than_two_decimals_rejected(self, post, cash_account, revenue_account):
        result = post("2024-05-15", (cash_account, "10.005", 0), (revenue_account, 0, "10.005"))

        assert not result.success
        assert "decimal places" in result.error

    def test_empty_lines_rejected(self, actor):
        result = create_journal_entry(actor, date="2024-05-15", description="Nothing", lines=[])

        assert result.error_type == CommandResult.VALIDATION

    def test_zero_total_rejected(self, actor, cash_account):
        result = create_journal_entry(
            actor,
            date="2024-05-15",
            description="Zero",
            lines=[{"account_id": cash_account.id, "debit": "0", "credit": "0"}],
        )

        assert not result.success

    def test_unknown_account_is_not_found(self, actor, cash_account):
        result = create_journal_entry(
            actor,
            date="2024-05-15",
            description="Ghost",
            lines=[
                {"account_id": cash_account.id, "debit": "10"},
                {"account_id": 999999, "credit": "10"},
            ],
        )

        assert result.error_type == CommandResult.NOT_FOUND
        with pytest.raises(LedgerNotFound):
            result.raise_for_error()

    def test_inactive_account_rejected(self, actor, post, cash_account, revenue_account):
        deactivate_account(actor, revenue_account.id).raise_for_error()

        result = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100))

        assert result.error_type == CommandResult.VALIDATION
        assert "inactive" in result.error
        with pytest.raises(LedgerValidationError):
            result.raise_for_error()

    def test_unknown_account_wins_over_bad_amounts(self, actor, cash_account):
        result = create_journal_entry(
            actor,
            date="2024-05-15",
            description="Ghost",
            lines=[
                {"account_id": cash_account.id, "debit": "50", "credit": "50"},
                {"account_id": 999999, "credit": "100"},
            ],
        )

        assert result.error_type == CommandResult.NOT_FOUND
        assert "999999" in result.error

    def test_inactive_account_wins_over_bad_amounts(self, actor, cash_account, revenue_account):
        deactivate_account(actor, revenue_account.id).raise_for_error()

        result = create_journal_entry(
            actor,
            date="2024-05-15",
            description="Mixed",
            lines=[
                {"account_id": cash_account.id, "debit": "-5"},
                {"account_id": revenue_account.id, "credit": "5"},
            ],
        )

        assert result.error_type == CommandResult.VALIDATION
        assert result.error.startswith("Line 2:")
        assert "inactive" in result.error

    def test_description_required(self, post, cash_account, revenue_account):
        result = post("2024-05-15", (cash_account, 1, 0), (revenue_account, 0, 1), description="  ")

        assert not result.success

    def test_description_length_limit(self, post, cash_account, revenue_account):
        ok = post("2024-05-15", (cash_account, 1, 0), (revenue_account, 0, 1), description="x" * 255)
        too_long = post("2024-05-15", (cash_account, 1, 0), (revenue_account, 0, 1), description="x" * 256)

        assert ok.success
        assert too_long.error_type == CommandResult.VALIDATION
        assert "255" in too_long.error
        assert JournalEntry.objects.count() == 1

    def test_reference_length_limit(self, post, cash_account, revenue_account):
        field = JournalEntry._meta.get_field("reference")

        result = post(
            "2024-05-15",
            (cash_account, 1, 0),
            (revenue_account, 0, 1),
            reference="R" * (field.max_length + 1),
        )

        assert result.error_type == CommandResult.VALIDATION

    def test_requires_post_permission(self, viewer_actor, post, cash_account, revenue_account):
        with pytest.raises(PermissionDenied):
            post("2024-05-15", (cash_account, 1, 0), (revenue_account, 0, 1), by=viewer_actor)

    def test_sequence_is_monotonic(self, post, cash_account, revenue_account):
        first = post("2024-05-20", (cash_account, 1, 0), (revenue_account, 0, 1)).raise_for_error()
        second = post("2024-05-01", (cash_account, 2, 0), (revenue_account, 0, 2)).raise_for_error()

        assert second.sequence == first.sequence + 1
        assert second.entry_number == "JE-000002"


@pytest.mark.django_db
class TestListEntries:

    def test_ordered_by_date_then_sequence(self, post, cash_account, revenue_account):
        late = post("2024-05-20", (cash_account, 1, 0), (revenue_account, 0, 1)).raise_for_error()
        early = post("2024-05-01", (cash_account, 2, 0), (revenue_account, 0, 2)).raise_for_error()
        same_day = post("2024-05-20", (cash_account, 3, 0), (revenue_account, 0, 3)).raise_for_error()

        assert [e.id for e in list_entries()] == [early.id, late.id, same_day.id]

    def test_filter_by_period_label(self, post, cash_account, revenue_account):
        may = post("2024-05-20", (cash_account, 1, 0), (revenue_account, 0, 1)).raise_for_error()
        july = post("2024-07-02", (cash_account, 2, 0), (revenue_account, 0, 2)).raise_for_error()

        assert [e.id for e in list_entries(period="2024-05")] == [may.id]
        assert [e.id for e in list_entries(period="2024-Q2")] == [may.id]
        assert [e.id for e in list_entries(period="2024-Q3")] == [july.id]
        assert [e.id for e in list_entries(period="2024-H2")] == [july.id]
        assert [e.id for e in list_entries(period="2024")] == [may.id, july.id]

    def test_filter_by_account_and_dates(self, post, cash_account, bank_account, revenue_account):
        cash = post("2024-05-02", (cash_account, 1, 0), (revenue_account, 0, 1)).raise_for_error()
        bank = post("2024-05-03", (bank_account, 2, 0), (revenue_account, 0, 2)).raise_for_error()

        assert [e.id for e in list_entries(account_id=cash_account.id)] == [cash.id]
        assert [e.id for e in list_entries(account_id=revenue_account.id)] == [cash.id, bank.id]
        assert [e.id for e in list_entries(date_from=date(2024, 5, 3))] == [bank.id]
        assert [e.id for e in list_entries(date_to=date(2024, 5, 2))] == [cash.id]


# =============================================================================
# Append-only storage
# =============================================================================

@pytest.mark.django_db
class TestJournalIsAppendOnly:

    def test_entry_cannot_be_updated(self, post, cash_account, revenue_account):
        entry = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()
        entry.description = "Tampered"

        with pytest.raises(RuntimeError, match="append-only"):
            entry.save()

    def test_entry_cannot_be_deleted(self, post, cash_account, revenue_account):
        entry = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()

        with pytest.raises(RuntimeError):
            entry.delete()
        with pytest.raises(RuntimeError):
            JournalEntry.objects.filter(pk=entry.pk).delete()

    def test_lines_cannot_be_bulk_updated(self, post, cash_account, revenue_account):
        post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()

        with pytest.raises(RuntimeError, match="immutable"):
            JournalLine.objects.update(debit=Decimal("1.00"))

    def test_direct_insert_outside_commands_rejected(self):
        with pytest.raises(RuntimeError, match="command_writes_allowed"):
            JournalEntry.objects.create(
                entry_number="X-1",
                sequence=1,
                date=date(2024, 5, 1),
                period="2024-05",
                description="Direct",
            )

    def test_command_context_allows_insert(self):
        with command_writes_allowed():
            entry = JournalEntry.objects.create(
                entry_number="X-1",
                sequence=1,
                date=date(2024, 5, 1),
                period="2024-05",
                description="Direct",
            )

        assert entry.pk is not None


# =============================================================================
# Reversing entries
# =============================================================================

@pytest.mark.django_db
class TestReverseJournalEntry:

    def test_reversal_mirrors_lines(self, actor, post, cash_account, revenue_account):
        original = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()

        data = reverse_journal_entry(actor, original.id, date=date(2024, 5, 31)).raise_for_error()
        reversal = data["reversal"]

        assert reversal.kind == JournalEntry.Kind.REVERSAL
        assert reversal.reverses_id == original.id
        assert reversal.period == "2024-05"
        lines = list(reversal.lines.order_by("line_no"))
        assert (lines[0].account_id, lines[0].debit, lines[0].credit) == (cash_account.id, Decimal("0.00"), Decimal("100.00"))
        assert (lines[1].account_id, lines[1].debit, lines[1].credit) == (revenue_account.id, Decimal("100.00"), Decimal("0.00"))
        assert JournalEntry.objects.get(pk=original.id).description == original.description

    def test_reverse_twice_is_conflict(self, actor, post, cash_account, revenue_account):
        original = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()
        reverse_journal_entry(actor, original.id, date=date(2024, 5, 31)).raise_for_error()

        result = reverse_journal_entry(actor, original.id, date=date(2024, 5, 31))

        assert result.error_type == CommandResult.CONFLICT
        with pytest.raises(LedgerConflict):
            result.raise_for_error()

    def test_reversal_cannot_be_reversed(self, actor, post, cash_account, revenue_account):
        original = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()
        reversal = reverse_journal_entry(actor, original.id, date=date(2024, 5, 31)).raise_for_error()["reversal"]

        result = reverse_journal_entry(actor, reversal.id, date=date(2024, 5, 31))

        assert result.error_type == CommandResult.CONFLICT

    def test_reversal_into_closed_period_is_conflict(self, actor, post, cash_account, revenue_account):
        original = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()
        close_period(actor, "2024-05").raise_for_error()

        result = reverse_journal_entry(actor, original.id, date=date(2024, 5, 31))

        assert result.error_type == CommandResult.CONFLICT
        assert not JournalEntry.objects.filter(reverses=original).exists()

    def test_reversal_of_closed_period_entry_dated_later(self, actor, post, cash_account, revenue_account):
        original = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()
        close_period(actor, "2024-05").raise_for_error()

        reversal = reverse_journal_entry(actor, original.id, date=date(2024, 6, 1)).raise_for_error()["reversal"]

        assert reversal.period == "2024-06"

    def test_reversal_of_full_length_description(self, actor, cash_account, revenue_account):
        original = create_journal_entry(
            actor,
            date="2024-05-15",
            description="D" * 255,
            lines=[
                {"account_id": cash_account.id, "debit": "10", "description": "L" * 255},
                {"account_id": revenue_account.id, "credit": "10"},
            ],
        ).raise_for_error()

        reversal = reverse_journal_entry(actor, original.id, date=date(2024, 5, 31)).raise_for_error()["reversal"]

        assert len(reversal.description) <= 255
        assert reversal.description.startswith(f"Reversal of {original.entry_number}: DDD")
        descriptions = list(reversal.lines.order_by("line_no").values_list("description", flat=True))
        assert len(descriptions[0]) <= 255
        assert descriptions[0].startswith("Reversal: LLL")
        assert descriptions[1] == ""

    def test_not_found(self, actor):
        assert reverse_journal_entry(actor, 999999).error_type == CommandResult.NOT_FOUND

    def test_viewer_cannot_reverse(self, viewer_actor, post, cash_account, revenue_account):
        original = post("2024-05-15", (cash_account, 100, 0), (revenue_account, 0, 100)).raise_for_error()

        with pytest.raises(PermissionDenied):
            reverse_journal_entry(viewer_actor, original.id)
