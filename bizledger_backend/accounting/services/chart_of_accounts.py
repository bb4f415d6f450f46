# accounting/services/chart_of_accounts.py

"""
CHART OF ACCOUNTS LOOKUP (AUTHORITATIVE)

This module answers ONE question:
"Which live account does this code mean for this business?"

Design goals:
- business-scoped (tenant isolation: a code never resolves across businesses)
- read-only (the ledger never creates or edits accounts)
- hard-fail on missing setup (so we don't post to wrong accounts)

Callers never supply account metadata (type, polarity); it is always read
from the Account row resolved here.
"""

from __future__ import annotations

import logging

from django.core.exceptions import ValidationError
from django.db import DEFAULT_DB_ALIAS

from accounting.models.account import Account
from accounting.services.exceptions import AccountResolutionError

logger = logging.getLogger(__name__)

# ------------------------------------------------------------
# DOCUMENTED CODES (used by posting builders)
# ------------------------------------------------------------

STANDARD_CODES = {
    "CASH": "1110",
    "BANK": "1120",
    "MOBILE_MONEY": "1130",
    "ACCOUNTS_RECEIVABLE": "1200",
    "INVENTORY": "1300",
    "ACCOUNTS_PAYABLE": "2100",
    "SALES_REVENUE": "4100",
    "EARLY_PAYMENT_DISCOUNTS": "4112",
    "SERVICE_REVENUE": "4200",
    "COGS": "5100",
}


def _alias(uow) -> str:
    return getattr(uow, "using", None) or DEFAULT_DB_ALIAS


def resolve_account(uow, business_id, account_code: str, *, include_inactive: bool = False) -> Account:
    """
    Resolve an account by code within one business.

    Posting resolves active accounts only; readers replaying posted history
    pass include_inactive=True.

    Raises:
        AccountResolutionError if the code is blank, unknown, or (for posting)
        inactive.
    """
    code = (account_code or "").strip()
    if not code:
        raise AccountResolutionError(business_id, account_code, "Account code is required")

    filters = {"business_id": business_id, "code": code}
    if not include_inactive:
        filters["is_active"] = True

    try:
        return Account.objects.using(_alias(uow)).get(**filters)
    except (Account.DoesNotExist, ValidationError, ValueError) as exc:
        logger.warning("Account %s not found for business %s", code, business_id)
        raise AccountResolutionError(business_id, code) from exc


def list_accounts(business_id, *, include_inactive: bool = False, uow=None):
    qs = Account.objects.using(_alias(uow)).filter(business_id=business_id)
    if not include_inactive:
        qs = qs.filter(is_active=True)
    return qs.order_by("code")
