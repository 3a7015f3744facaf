# projections/urls.py
"""
URL configuration for ledger reports.

Endpoints:
- /accounts/general-ledger/ - Postings and running balance of one account
- /accounts/trial-balance/ - Per-account totals and the balanced verdict
"""

from django.urls import path

from .views import GeneralLedgerView, TrialBalanceView

urlpatterns = [
    path("accounts/general-ledger/", GeneralLedgerView.as_view(), name="general-ledger"),
    path("accounts/trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
]
