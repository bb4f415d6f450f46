# PATH: accounting/api/view.py

"""
PATH: accounting/api/view.py

JOURNAL ENTRY VIEWSET (APPEND-ONLY / AUDIT SAFE)

GET  /api/accounting/journal-entries/?business=<uuid>
        [&start_date=&end_date=&reference_type=&reference_id=]
GET  /api/accounting/journal-entries/{id}/?business=<uuid>
POST /api/accounting/journal-entries/                (business in body)
POST /api/accounting/journal-entries/{id}/reverse/?business=<uuid>

Security rules:
- list / retrieve require accounting.view_journalentry
- create / reverse require accounting.add_journalentry
- Every query is scoped to one business; ids from another business 404

There is no update or delete: corrections are reversing entries.
"""

from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.viewsets import ReadOnlyModelViewSet

from accounting.api.filters import JournalEntryFilter
from accounting.api.params import accounting_error_response, resolve_business
from accounting.api.serializers import (
    JournalEntryCreateSerializer,
    JournalEntryReverseSerializer,
    JournalEntrySerializer,
)
from accounting.services.exceptions import AccountingServiceError
from accounting.services.journal_entry_service import post_journal_entry, reverse_journal_entry
from accounting.services.journal_query_service import journal_entries_for_business

VIEW_PERMISSION = "accounting.view_journalentry"
POST_PERMISSION = "accounting.add_journalentry"

BUSINESS_PARAM = OpenApiParameter(
    name="business",
    type=str,
    location=OpenApiParameter.QUERY,
    required=True,
    description="Business UUID (tenant scope).",
)


@extend_schema(tags=["accounting"], parameters=[BUSINESS_PARAM])
class JournalEntryViewSet(ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = JournalEntrySerializer
    filterset_class = JournalEntryFilter
    http_method_names = ["get", "post", "head", "options"]

    def get_queryset(self):
        required = POST_PERMISSION if self.action == "reverse" else VIEW_PERMISSION
        if not self.request.user.has_perm(required):
            raise PermissionDenied("You do not have permission to view journal entries.")

        business = resolve_business(self.request)
        return journal_entries_for_business(business.id)

    def _reload(self, posted):
        return journal_entries_for_business(posted.journal_entry.business_id).get(id=posted.journal_entry.id)

    @extend_schema(
        tags=["accounting"],
        parameters=[],
        request=JournalEntryCreateSerializer,
        responses={201: JournalEntrySerializer, 400: dict, 403: dict, 503: dict},
    )
    def create(self, request, *args, **kwargs):
        if not request.user.has_perm(POST_PERMISSION):
            return Response(
                {"detail": "You do not have permission to post journal entries."},
                status=status.HTTP_403_FORBIDDEN,
            )

        s = JournalEntryCreateSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            posted = post_journal_entry(s.validated_data["entry"], request.user.id)
        except AccountingServiceError as exc:
            return accounting_error_response(exc)

        return Response(JournalEntrySerializer(self._reload(posted)).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["accounting"],
        request=JournalEntryReverseSerializer,
        responses={201: JournalEntrySerializer, 400: dict, 403: dict, 404: dict, 503: dict},
    )
    @action(detail=True, methods=["post"], url_path="reverse")
    def reverse(self, request, *args, **kwargs):
        original = self.get_object()

        s = JournalEntryReverseSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            posted = reverse_journal_entry(
                original.business_id,
                original.id,
                request.user.id,
                reason=s.validated_data.get("reason", ""),
                transaction_date=s.validated_data.get("transaction_date"),
            )
        except AccountingServiceError as exc:
            return accounting_error_response(exc)

        return Response(JournalEntrySerializer(self._reload(posted)).data, status=status.HTTP_201_CREATED)
