# projections/views.py
"""
API views for ledger reports.

Reports are computed on demand from committed journal lines; nothing is
materialized, so there is no lag to report.
"""

from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounts.authz import resolve_actor, require
from accounting.exceptions import LedgerNotFound, LedgerValidationError
from accounting.views import query_flag
from projections.general_ledger import general_ledger
from projections.trial_balance import trial_balance


class GeneralLedgerView(APIView):
    """
    GET /api/accounts/general-ledger/?accountId=<id>&period=<label>

    Returns LedgerRow[]: the postings of one account in (date, sequence)
    order with a running balance that starts at zero.

    Query params:
    - accountId: Account ID (required)
    - period: "2024-05", "2024-Q2", "2024-H1" or "2024" (optional)
    - includeOpening: return {account, period, openingBalance, closingBalance, rows}
      instead, with the running balance carried in from earlier postings
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounting.view_reports")

        account_id = request.query_params.get("accountId", "").strip()
        if not account_id.isdigit():
            return Response(
                {"detail": "accountId is required and must be an integer.", "code": "validation_error"},
                status=status.HTTP_400_BAD_REQUEST,
            )

        period = request.query_params.get("period", "").strip() or None
        with_opening = query_flag(request, "includeOpening")
        try:
            ledger = general_ledger(int(account_id), period, with_opening=with_opening)
            data = ledger.to_dict() if with_opening else ledger.rows()
        except LedgerNotFound as exc:
            return Response(
                {"detail": str(exc), "code": exc.error_type},
                status=status.HTTP_404_NOT_FOUND,
            )
        except LedgerValidationError as exc:
            return Response(
                {"detail": str(exc), "code": exc.error_type},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(data)


class TrialBalanceView(APIView):
    """
    GET /api/accounts/trial-balance/

    Query params:
    - period: "2024-05", "2024-Q2", "2024-H1" or "2024" (optional, default all time)
    - includeZero: also list active accounts without postings
    - rollup: add rollupDebit/rollupCredit/rollupBalance per account subtree

    Returns:
        {"balances": [...], "totalDebit": "...", "totalCredit": "...", "balanced": true}
    """
    permission_classes = [IsAuthenticated]

    def get(self, request):
        actor = resolve_actor(request)
        require(actor, "accounting.view_reports")

        try:
            result = trial_balance(
                period=request.query_params.get("period", "").strip() or None,
                include_zero=query_flag(request, "includeZero"),
                rollup=query_flag(request, "rollup"),
            )
        except LedgerValidationError as exc:
            return Response(
                {"detail": str(exc), "code": exc.error_type},
                status=status.HTTP_400_BAD_REQUEST,
            )

        return Response(result.to_dict())
