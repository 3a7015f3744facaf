# accounting/admin.py
"""
Django admin configuration for ledger models.

IMPORTANT: The admin is for VIEWING only.
=========================================
All mutations MUST go through the command layer (accounting/commands.py),
which enforces the balance rule and the period lock. Journal tables are
append-only at the model level as well.
"""

from django.contrib import admin
from django.utils.html import format_html

from .models import Account, JournalEntry, JournalLine, Period


class ReadOnlyModelAdmin(admin.ModelAdmin):
    """
    Base admin class for read-only models.

    To modify these models, use the command layer (accounting/commands.py).
    """

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


class ReadOnlyInline(admin.TabularInline):
    can_delete = False

    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False


class JournalLineInline(ReadOnlyInline):
    """Inline display of journal lines within entry (read-only)."""
    model = JournalLine
    extra = 0
    readonly_fields = ["line_no", "account", "description", "debit", "credit"]
    fields = ["line_no", "account", "description", "debit", "credit"]


# =============================================================================
# Account Admin
# =============================================================================

@admin.register(Account)
class AccountAdmin(ReadOnlyModelAdmin):
    """Admin interface for Chart of Accounts (read-only)."""

    list_display = ["code", "name", "account_type", "normal_balance", "is_active", "parent"]
    list_filter = ["account_type", "is_active"]
    search_fields = ["code", "name", "description"]
    list_select_related = ["parent"]
    ordering = ["code"]
    readonly_fields = [
        "code", "name", "account_type", "normal_balance", "parent",
        "description", "is_active", "deactivated_at", "created_at", "updated_at",
    ]


# =============================================================================
# Period Admin
# =============================================================================

@admin.register(Period)
class PeriodAdmin(ReadOnlyModelAdmin):
    """Admin interface for period locks (read-only)."""

    list_display = ["period_key", "status_colored", "closed_at", "closed_by"]
    list_filter = ["status"]
    ordering = ["-period_key"]
    readonly_fields = ["period_key", "status", "closed_at", "closed_by", "created_at"]

    def status_colored(self, obj):
        color = "#dc3545" if obj.is_closed else "#28a745"
        return format_html(
            '<span style="color: {}; font-weight: bold;">{}</span>',
            color,
            obj.get_status_display(),
        )
    status_colored.short_description = "Status"
    status_colored.admin_order_field = "status"


# =============================================================================
# Journal Entry Admin
# =============================================================================

@admin.register(JournalEntry)
class JournalEntryAdmin(ReadOnlyModelAdmin):
    """Admin interface for Journal Entries (read-only)."""

    list_display = ["entry_number", "date", "period", "description_truncated", "kind", "created_by"]
    list_filter = ["kind", "period"]
    search_fields = ["entry_number", "description", "reference"]
    date_hierarchy = "date"
    ordering = ["-date", "-sequence"]
    readonly_fields = [
        "entry_number", "sequence", "date", "period", "description", "reference",
        "kind", "reverses", "created_by", "created_at",
    ]
    inlines = [JournalLineInline]

    def description_truncated(self, obj):
        """Truncate description for list display."""
        if len(obj.description) > 50:
            return f"{obj.description[:50]}..."
        return obj.description
    description_truncated.short_description = "Description"
