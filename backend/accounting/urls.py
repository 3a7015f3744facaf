# accounting/urls.py
"""
URL configuration for the ledger write/lookup API.

Mounted at /api/ in ledger_backend/urls.py. Report endpoints under
accounts/ (general-ledger, trial-balance) live in projections.urls.
"""

from django.urls import path

from . import views

urlpatterns = [
    # Chart of accounts
    path("accounts/", views.AccountListCreateView.as_view(), name="account-list"),
    path("accounts/<int:pk>/", views.AccountDetailView.as_view(), name="account-detail"),

    # Journal entries
    path("journal-entries/", views.JournalEntryListCreateView.as_view(), name="journal-entry-list"),
    path("journal-entries/<int:pk>/", views.JournalEntryDetailView.as_view(), name="journal-entry-detail"),
    path(
        "journal-entries/<int:pk>/reverse/",
        views.JournalEntryReverseView.as_view(),
        name="journal-entry-reverse",
    ),

    # Periods
    path("periods/", views.PeriodListView.as_view(), name="period-list"),
    path("periods/close/", views.PeriodCloseView.as_view(), name="period-close"),
    path("periods/<str:period_key>/", views.PeriodDetailView.as_view(), name="period-detail"),
]
