# accounting/api/params.py

"""
PATH: accounting/api/params.py

Request helpers shared by the accounting views:
- business scoping (every ledger read/write is for exactly one business)
- date query parameters
- domain error -> HTTP response mapping
"""

from __future__ import annotations

import uuid

from django.utils.dateparse import parse_date
from rest_framework import status
from rest_framework.exceptions import NotFound, ParseError
from rest_framework.response import Response

from accounting.services.exceptions import AccountingServiceError, ErrorKind
from businesses.models import Business

STATUS_BY_KIND = {
    ErrorKind.INVALID_ENTRY: status.HTTP_400_BAD_REQUEST,
    ErrorKind.UNBALANCED: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NORMAL_BALANCE_MISMATCH: status.HTTP_400_BAD_REQUEST,
    ErrorKind.ACCOUNT_NOT_FOUND: status.HTTP_400_BAD_REQUEST,
    ErrorKind.STORAGE_FAILURE: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def resolve_business(request) -> Business:
    """
    Business comes from ?business=<uuid> (reads) or the body field (writes).
    """
    raw = request.query_params.get("business")
    if raw is None and hasattr(request.data, "get"):
        raw = request.data.get("business")

    raw = str(raw or "").strip()
    if not raw:
        raise ParseError("business is required")

    try:
        business_id = uuid.UUID(raw)
    except ValueError as exc:
        raise ParseError("business must be a UUID") from exc

    try:
        return Business.objects.get(id=business_id, is_active=True)
    except Business.DoesNotExist as exc:
        raise NotFound("Business not found") from exc


def date_param(request, name: str):
    raw = request.query_params.get(name)
    if raw is None or str(raw).strip() == "":
        return None

    d = parse_date(str(raw).strip())
    if d is None:
        raise ParseError(f"Invalid {name} (expected YYYY-MM-DD)")
    return d


def date_window(request):
    start_date = date_param(request, "start_date")
    end_date = date_param(request, "end_date")
    if start_date and end_date and start_date > end_date:
        raise ParseError("start_date must be on or before end_date")
    return start_date, end_date


def accounting_error_response(exc: AccountingServiceError, *, status_overrides: dict | None = None) -> Response:
    kind = getattr(exc, "kind", ErrorKind.INVALID_ENTRY)
    code = (status_overrides or {}).get(kind) or STATUS_BY_KIND.get(kind, status.HTTP_400_BAD_REQUEST)
    return Response({"detail": str(exc), "code": kind.value}, status=code)
