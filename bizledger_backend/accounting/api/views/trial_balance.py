"""
PATH: accounting/api/views/trial_balance.py

TRIAL BALANCE API VIEW (READ-ONLY)

GET /api/accounting/trial-balance/?business=<uuid>&start_date=&end_date=

- Permission-gated: requires accounting.view_journalentry
- Business isolation: only the requested business's accounts and lines
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from accounting.api.params import date_window, resolve_business
from accounting.services.trial_balance_service import get_trial_balance


@extend_schema(
    tags=["accounting"],
    parameters=[
        OpenApiParameter(
            name="business",
            type=str,
            location=OpenApiParameter.QUERY,
            required=True,
            description="Business UUID.",
        ),
        OpenApiParameter(
            name="start_date",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Inclusive lower bound on transaction date (YYYY-MM-DD).",
        ),
        OpenApiParameter(
            name="end_date",
            type=str,
            location=OpenApiParameter.QUERY,
            required=False,
            description="Inclusive upper bound on transaction date (YYYY-MM-DD).",
        ),
    ],
    responses={200: dict},
)
class TrialBalanceView(APIView):
    permission_classes = [IsAuthenticated]

    def get(self, request):
        if not request.user.has_perm("accounting.view_journalentry"):
            return Response(
                {"detail": "You do not have permission to view trial balance."},
                status=status.HTTP_403_FORBIDDEN,
            )

        business = resolve_business(request)
        start_date, end_date = date_window(request)

        data = get_trial_balance(business.id, start_date, end_date)
        data["business"] = {"id": business.id, "name": business.name}

        return Response(data, status=status.HTTP_200_OK)
