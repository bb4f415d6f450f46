"""
PATH: accounting/api/views/general_ledger.py

GENERAL LEDGER API VIEW (READ-ONLY)

GET /api/accounting/general-ledger/<account_code>/?business=<uuid>&start_date=&end_date=

- Permission-gated: requires accounting.view_generalledgerentry
- Unknown account code for the business -> 404
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.params import accounting_error_response, date_window, resolve_business
from accounting.services.exceptions import AccountResolutionError, ErrorKind
from accounting.services.general_ledger_service import get_general_ledger


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(name="business", type=str, location=OpenApiParameter.QUERY, required=True),
        OpenApiParameter(name="start_date", type=str, location=OpenApiParameter.QUERY, required=False),
        OpenApiParameter(name="end_date", type=str, location=OpenApiParameter.QUERY, required=False),
    ],
    responses={200: dict, 404: dict},
)
class GeneralLedgerView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request, account_code: str):
        if not request.user.has_perm("accounting.view_generalledgerentry"):
            return Response(
                {"detail": "You do not have permission to view the general ledger."},
                status=status.HTTP_403_FORBIDDEN,
            )

        business = resolve_business(request)
        start_date, end_date = date_window(request)

        try:
            data = get_general_ledger(business.id, account_code, start_date, end_date)
        except AccountResolutionError as exc:
            return accounting_error_response(
                exc,
                status_overrides={ErrorKind.ACCOUNT_NOT_FOUND: status.HTTP_404_NOT_FOUND},
            )

        return Response(data, status=status.HTTP_200_OK)
