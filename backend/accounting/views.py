# accounting/views.py
"""
Thin views that delegate to the commands layer.

Views handle: HTTP parsing, authentication, response formatting.
Commands handle: business logic, validation, locking.

CRITICAL: All mutations MUST go through commands. Views never call .save()
on models.
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from .commands import (
    CommandResult,
    close_period,
    create_account,
    create_journal_entry,
    deactivate_account,
    reverse_journal_entry,
    update_account,
)
from .periods import PeriodLabelError
from .queries import (
    get_entry,
    get_period,
    list_accounts,
    list_entries,
    list_periods,
    resolve_account,
)
from .serializers import (
    AccountCreateSerializer,
    AccountSerializer,
    AccountUpdateSerializer,
    JournalEntryCreateSerializer,
    JournalEntryFilterSerializer,
    JournalEntryReverseSerializer,
    JournalEntrySerializer,
    PeriodCloseSerializer,
    PeriodSerializer,
)


ERROR_STATUS = {
    CommandResult.VALIDATION: status.HTTP_400_BAD_REQUEST,
    CommandResult.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    CommandResult.CONFLICT: status.HTTP_409_CONFLICT,
}


def error_response(result: CommandResult) -> Response:
    """Map a failed CommandResult to its HTTP status."""
    return Response(
        {"detail": result.error, "code": result.error_type},
        status=ERROR_STATUS.get(result.error_type, status.HTTP_400_BAD_REQUEST),
    )


def not_found(detail: str) -> Response:
    return Response(
        {"detail": detail, "code": CommandResult.NOT_FOUND},
        status=status.HTTP_404_NOT_FOUND,
    )


def bad_request(detail: str) -> Response:
    return Response(
        {"detail": detail, "code": CommandResult.VALIDATION},
        status=status.HTTP_400_BAD_REQUEST,
    )


def query_flag(request, name: str) -> bool:
    return request.query_params.get(name, "").lower() in ("1", "true", "yes")


# =============================================================================
# Account Views
# =============================================================================

class AccountListCreateView(APIView):
    """
    GET /api/accounts/ -> list accounts (?includeInactive=true&type=ASSET&search=cash)
    POST /api/accounts/ -> create account
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounting.view_account")

        accounts = list_accounts(
            include_inactive=query_flag(request, "includeInactive"),
            account_type=request.query_params.get("type", "").strip().upper() or None,
            search=request.query_params.get("search", "").strip() or None,
        )
        serializer = AccountSerializer(accounts, many=True)
        return Response(serializer.data)

    def post(self, request):
        actor = resolve_actor(request)
        # Permission check happens in command

        input_serializer = AccountCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_account(actor, **input_serializer.to_command_kwargs())

        if not result.success:
            return error_response(result)

        output_serializer = AccountSerializer(result.data)
        return Response(output_serializer.data, status=status.HTTP_201_CREATED)


class AccountDetailView(APIView):
    """
    GET /api/accounts/<id>/ -> retrieve account
    PUT /api/accounts/<id>/ -> edit mutable fields
    DELETE /api/accounts/<id>/ -> deactivate (soft retirement)
    """
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "accounting.view_account")

        account = resolve_account(pk)
        if account is None:
            return not_found("Account not found.")
        return Response(AccountSerializer(account).data)

    def put(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = AccountUpdateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = update_account(actor, pk, **input_serializer.to_command_kwargs())

        if not result.success:
            return error_response(result)

        return Response(AccountSerializer(result.data).data)

    def delete(self, request, pk):
        actor = resolve_actor(request)

        result = deactivate_account(actor, pk)

        if not result.success:
            return error_response(result)

        return Response(status=status.HTTP_204_NO_CONTENT)


# =============================================================================
# Journal Entry Views
# =============================================================================

class JournalEntryListCreateView(APIView):
    """
    GET /api/journal-entries/ -> list entries (?period=&accountId=&dateFrom=&dateTo=)
    POST /api/journal-entries/ -> post a balanced entry
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounting.view_journalentry")

        filters = JournalEntryFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        data = filters.validated_data

        try:
            entries = list_entries(
                period=data.get("period") or None,
                account_id=data.get("accountId"),
                date_from=data.get("dateFrom"),
                date_to=data.get("dateTo"),
            )
        except PeriodLabelError as exc:
            return bad_request(str(exc))

        serializer = JournalEntrySerializer(entries, many=True)
        return Response(serializer.data)

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = JournalEntryCreateSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)

        result = create_journal_entry(actor, **input_serializer.to_command_kwargs())

        if not result.success:
            return error_response(result)

        entry = get_entry(result.data.id)
        return Response(JournalEntrySerializer(entry).data, status=status.HTTP_201_CREATED)


class JournalEntryDetailView(APIView):
    """GET /api/journal-entries/<id>/"""
    permission_classes = [IsAuthenticated]

    def get(self, request, pk):
        actor = resolve_actor(request)
        require(actor, "accounting.view_journalentry")

        entry = get_entry(pk)
        if entry is None:
            return not_found("Journal entry not found.")
        return Response(JournalEntrySerializer(entry).data)


class JournalEntryReverseView(APIView):
    """
    POST /api/journal-entries/<id>/reverse/ -> post the offsetting entry

    Body (optional): {"date": "2024-06-01", "description": "..."}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request, pk):
        actor = resolve_actor(request)

        input_serializer = JournalEntryReverseSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        result = reverse_journal_entry(
            actor,
            pk,
            date=data.get("date"),
            description=data.get("description") or None,
        )

        if not result.success:
            return error_response(result)

        reversal = get_entry(result.data["reversal"].id)
        return Response(JournalEntrySerializer(reversal).data, status=status.HTTP_201_CREATED)


# =============================================================================
# Period Views
# =============================================================================

class PeriodListView(APIView):
    """GET /api/periods/ -> every month with a lock record"""
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounting.view_period")

        serializer = PeriodSerializer(list_periods(), many=True)
        return Response(serializer.data)


class PeriodDetailView(APIView):
    """GET /api/periods/<YYYY-MM>/ -> lock status of one month"""
    permission_classes = [IsAuthenticated]

    def get(self, request, period_key):
        actor = resolve_actor(request)
        require(actor, "accounting.view_period")

        try:
            period = get_period(period_key)
        except PeriodLabelError as exc:
            return bad_request(str(exc))
        return Response(PeriodSerializer(period).data)


class PeriodCloseView(APIView):
    """
    POST /api/periods/close/ -> close a month

    Body: {"period": "2024-05", "closedBy": "controller@example.com"}
    """
    permission_classes = [IsAuthenticated]

    def post(self, request):
        actor = resolve_actor(request)

        input_serializer = PeriodCloseSerializer(data=request.data)
        input_serializer.is_valid(raise_exception=True)
        data = input_serializer.validated_data

        result = close_period(actor, data["period"], closed_by=data["closedBy"] or None)

        if not result.success:
            return error_response(result)

        return Response(PeriodSerializer(result.data).data)
