# tests/conftest.py
"""
Pytest fixtures for ledger tests.

- Users get their permissions through the seeded role groups
  (CONTROLLER / BOOKKEEPER / VIEWER), exactly as in production.
- Accounts and entries are created through the command layer; journal
  tables reject direct writes.
"""

from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from rest_framework.test import APIClient

from accounts.authz import actor_for_user
from accounts.permissions import grant_role_defaults
from accounting.commands import create_account, create_journal_entry
from accounting.models import Account


User = get_user_model()


# =============================================================================
# User & Actor Fixtures
# =============================================================================

def _user_with_role(username: str, role: str):
    user = User.objects.create_user(
        username=username,
        email=f"{username}@test.com",
        password="testpass123",
    )
    grant_role_defaults(user, role)
    # Fresh instance so no permission cache survives the group change.
    return User.objects.get(pk=user.pk)


@pytest.fixture
def controller_user(db):
    """Chart management, posting, period close."""
    return _user_with_role("controller", "CONTROLLER")


@pytest.fixture
def bookkeeper_user(db):
    """Posting and reversing, no chart management or period close."""
    return _user_with_role("bookkeeper", "BOOKKEEPER")


@pytest.fixture
def viewer_user(db):
    """Read-only."""
    return _user_with_role("viewer", "VIEWER")


@pytest.fixture
def superuser(db):
    return User.objects.create_superuser(
        username="root",
        email="root@test.com",
        password="testpass123",
    )


@pytest.fixture
def actor(controller_user):
    return actor_for_user(controller_user)


@pytest.fixture
def bookkeeper_actor(bookkeeper_user):
    return actor_for_user(bookkeeper_user)


@pytest.fixture
def viewer_actor(viewer_user):
    return actor_for_user(viewer_user)


# =============================================================================
# Account Fixtures
# =============================================================================

def _make_account(actor, code, name, account_type, parent=None):
    return create_account(
        actor,
        code=code,
        name=name,
        account_type=account_type,
        parent_id=parent.id if parent else None,
    ).raise_for_error()


@pytest.fixture
def make_account(actor):
    """make_account("1001", "Petty Cash", "ASSET", parent=cash_account)"""
    def _make(code, name, account_type, parent=None):
        return _make_account(actor, code, name, account_type, parent=parent)
    return _make


@pytest.fixture
def cash_account(actor):
    return _make_account(actor, "1000", "Cash", Account.AccountType.ASSET)


@pytest.fixture
def bank_account(actor):
    return _make_account(actor, "1010", "Bank", Account.AccountType.ASSET)


@pytest.fixture
def payable_account(actor):
    return _make_account(actor, "2000", "Accounts Payable", Account.AccountType.LIABILITY)


@pytest.fixture
def equity_account(actor):
    return _make_account(actor, "3000", "Owner Capital", Account.AccountType.EQUITY)


@pytest.fixture
def revenue_account(actor):
    return _make_account(actor, "4000", "Sales Revenue", Account.AccountType.REVENUE)


@pytest.fixture
def expense_account(actor):
    return _make_account(actor, "5000", "Office Expense", Account.AccountType.EXPENSE)


# =============================================================================
# Journal Entry Fixtures
# =============================================================================

@pytest.fixture
def post(actor):
    """
    Post an entry through the command layer.

    Usage:
        result = post("2024-05-15", (cash, 100, 0), (revenue, 0, 100))
    """
    def _post(entry_date, *lines, description="Test entry", reference="", by=None):
        return create_journal_entry(
            by or actor,
            date=entry_date,
            description=description,
            reference=reference,
            lines=[
                {"account_id": account.id, "debit": Decimal(str(debit)), "credit": Decimal(str(credit))}
                for account, debit, credit in lines
            ],
        )
    return _post


# =============================================================================
# API Fixtures
# =============================================================================

@pytest.fixture
def api_client(controller_user):
    client = APIClient()
    client.force_authenticate(user=controller_user)
    return client


@pytest.fixture
def viewer_client(viewer_user):
    client = APIClient()
    client.force_authenticate(user=viewer_user)
    return client
