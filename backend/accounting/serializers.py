# accounting/serializers.py
"""
Serializers for the ledger API.

Note: These serializers are used for:
1. Input shape validation (types, required fields)
2. Output formatting (camelCase JSON consumed by the web client)

Business rules (balance, period lock, active accounts) live in commands.py.
"""

from decimal import Decimal

from rest_framework import serializers

from .models import Account, JournalEntry, JournalLine, Period


AMOUNT_FIELD_KWARGS = {
    "max_digits": 18,
    "decimal_places": 2,
    "required": False,
    "default": Decimal("0.00"),
}


# =============================================================================
# Account Serializers
# =============================================================================

class AccountSerializer(serializers.ModelSerializer):
    """Output shape for Account."""
    type = serializers.CharField(source="account_type", read_only=True)
    normalBalance = serializers.CharField(source="normal_balance", read_only=True)
    parentCode = serializers.CharField(source="parent.code", read_only=True, default=None)
    active = serializers.BooleanField(source="is_active", read_only=True)
    deactivatedAt = serializers.DateTimeField(source="deactivated_at", read_only=True)
    hasPostings = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = Account
        fields = [
            "id", "code", "name", "type", "normalBalance",
            "parent", "parentCode", "description",
            "active", "deactivatedAt", "hasPostings",
            "createdAt", "updatedAt",
        ]
        read_only_fields = fields

    def get_hasPostings(self, obj):
        # Use annotated value if available (from list query), else query
        if hasattr(obj, "_has_postings"):
            return obj._has_postings
        return obj.has_postings()


class AccountCreateSerializer(serializers.Serializer):
    """Input for POST /accounts/."""
    code = serializers.CharField(max_length=20)
    name = serializers.CharField(max_length=255)
    type = serializers.CharField(max_length=20)
    parent = serializers.IntegerField(required=False, allow_null=True, default=None)
    description = serializers.CharField(required=False, allow_blank=True, default="")

    def to_command_kwargs(self) -> dict:
        data = self.validated_data
        return {
            "code": data["code"],
            "name": data["name"],
            "account_type": data["type"],
            "parent_id": data["parent"],
            "description": data["description"],
        }


class AccountUpdateSerializer(serializers.Serializer):
    """Input for PUT /accounts/<id>/. Every field is optional."""
    code = serializers.CharField(max_length=20, required=False)
    name = serializers.CharField(max_length=255, required=False)
    type = serializers.CharField(max_length=20, required=False)
    parent = serializers.IntegerField(required=False, allow_null=True)
    description = serializers.CharField(required=False, allow_blank=True)

    def to_command_kwargs(self) -> dict:
        data = self.validated_data
        kwargs = {}
        for field, arg in (
            ("code", "code"),
            ("name", "name"),
            ("type", "account_type"),
            ("description", "description"),
        ):
            if field in data:
                kwargs[arg] = data[field]
        # Present-but-null detaches; absent keeps the current parent.
        if "parent" in data:
            kwargs["parent_id"] = data["parent"]
        return kwargs


# =============================================================================
# Journal Entry Serializers
# =============================================================================

class JournalLineSerializer(serializers.ModelSerializer):
    """Output shape for one posting."""
    lineNo = serializers.IntegerField(source="line_no", read_only=True)
    accountCode = serializers.CharField(source="account.code", read_only=True)
    accountName = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalLine
        fields = ["lineNo", "account", "accountCode", "accountName", "description", "debit", "credit"]
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    """Output shape for JournalEntry with its lines."""
    entryNumber = serializers.CharField(source="entry_number", read_only=True)
    reversedBy = serializers.SerializerMethodField()
    createdBy = serializers.CharField(source="created_by", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    totalDebit = serializers.SerializerMethodField()
    totalCredit = serializers.SerializerMethodField()
    lines = JournalLineSerializer(many=True, read_only=True)

    class Meta:
        model = JournalEntry
        fields = [
            "id", "entryNumber", "sequence", "date", "period",
            "description", "reference", "kind",
            "reverses", "reversedBy",
            "createdBy", "createdAt",
            "totalDebit", "totalCredit", "lines",
        ]
        read_only_fields = fields

    def get_reversedBy(self, obj):
        try:
            return obj.reversal.id
        except JournalEntry.DoesNotExist:
            return None

    def _total(self, obj, side: str) -> str:
        # Sum over prefetched lines; avoids one aggregate query per entry.
        total = sum((getattr(line, side) for line in obj.lines.all()), Decimal("0.00"))
        return f"{total:.2f}"

    def get_totalDebit(self, obj):
        return self._total(obj, "debit")

    def get_totalCredit(self, obj):
        return self._total(obj, "credit")


class JournalLineInputSerializer(serializers.Serializer):
    account = serializers.IntegerField()
    debit = serializers.DecimalField(**AMOUNT_FIELD_KWARGS)
    credit = serializers.DecimalField(**AMOUNT_FIELD_KWARGS)
    description = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class JournalEntryCreateSerializer(serializers.Serializer):
    """Input for POST /journal-entries/."""
    date = serializers.DateField()
    description = serializers.CharField(max_length=255)
    reference = serializers.CharField(required=False, allow_blank=True, default="", max_length=100)
    lines = JournalLineInputSerializer(many=True, allow_empty=True)

    def to_command_kwargs(self) -> dict:
        data = self.validated_data
        return {
            "date": data["date"],
            "description": data["description"],
            "reference": data["reference"],
            "lines": [
                {
                    "account_id": line["account"],
                    "debit": line["debit"],
                    "credit": line["credit"],
                    "description": line["description"],
                }
                for line in data["lines"]
            ],
        }


class JournalEntryReverseSerializer(serializers.Serializer):
    """Input for POST /journal-entries/<id>/reverse/."""
    date = serializers.DateField(required=False, allow_null=True, default=None)
    description = serializers.CharField(required=False, allow_blank=True, default="", max_length=255)


class JournalEntryFilterSerializer(serializers.Serializer):
    """Query params for GET /journal-entries/."""
    period = serializers.CharField(required=False, allow_blank=True)
    accountId = serializers.IntegerField(required=False)
    dateFrom = serializers.DateField(required=False)
    dateTo = serializers.DateField(required=False)


# =============================================================================
# Period Serializers
# =============================================================================

class PeriodSerializer(serializers.ModelSerializer):
    """Output shape for Period."""
    period = serializers.CharField(source="period_key", read_only=True)
    closed = serializers.BooleanField(source="is_closed", read_only=True)
    closedAt = serializers.DateTimeField(source="closed_at", read_only=True)
    closedBy = serializers.SerializerMethodField()

    class Meta:
        model = Period
        fields = ["period", "status", "closed", "closedAt", "closedBy"]
        read_only_fields = fields

    def get_closedBy(self, obj):
        return obj.closed_by or None


class PeriodCloseSerializer(serializers.Serializer):
    """Input for POST /periods/close/."""
    period = serializers.CharField(max_length=7)
    closedBy = serializers.CharField(required=False, allow_blank=True, default="", max_length=150)
