# accounting/api/views/accounts.py

"""
PATH: accounting/api/views/accounts.py

CHART OF ACCOUNTS API (READ-ONLY)

GET /api/accounting/accounts/?business=<uuid>[&include_inactive=true]

- Permission-gated: requires accounting.view_account
- Accounts are setup data; the API never creates or edits them
"""

from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from drf_spectacular.utils import extend_schema

from accounting.api.params import resolve_business
from accounting.api.serializers.accounts import AccountListSerializer
from accounting.services.chart_of_accounts import list_accounts


class BusinessAccountsView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = AccountListSerializer

    @extend_schema(
        tags=["accounting"],
        responses=AccountListSerializer(many=True),
    )
    def get(self, request, *args, **kwargs):
        if not request.user.has_perm("accounting.view_account"):
            return Response(
                {"detail": "You do not have permission to view accounts."},
                status=status.HTTP_403_FORBIDDEN,
            )

        business = resolve_business(request)
        include_inactive = str(request.query_params.get("include_inactive", "")).lower() in ("1", "true", "yes")

        qs = list_accounts(business.id, include_inactive=include_inactive)

        return Response(AccountListSerializer(qs, many=True).data, status=status.HTTP_200_OK)
