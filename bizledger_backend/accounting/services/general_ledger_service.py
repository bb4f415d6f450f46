# accounting/services/general_ledger_service.py

"""
GENERAL LEDGER READER

Read-only replay of one account's GeneralLedgerEntry rows.

RULES:
- READ-ONLY: no writes, ever
- Order is (transaction_date, id); the id breaks same-day ties in
  creation order
- Running balance starts at 0.00 at the start of the window and folds with
  the account's polarity:
  - debit-normal  -> += debit - credit
  - credit-normal -> += credit - debit
- Replaying the same window twice returns identical output
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal

from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.chart_of_accounts import _alias, resolve_account

TWOPLACES = Decimal("0.01")


def _q2(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


def _account_payload(account) -> dict:
    return {
        "id": account.id,
        "code": account.code,
        "name": account.name,
        "account_type": account.account_type,
        "normal_balance": account.normal_balance,
    }


def get_general_ledger(business_id, account_code, start_date=None, end_date=None, *, uow=None) -> dict:
    """
    Raises:
        AccountResolutionError when the code does not exist for the business.
        Deactivated accounts still replay their posted history.
    """
    account = resolve_account(uow, business_id, account_code, include_inactive=True)

    qs = (
        GeneralLedgerEntry.objects.using(_alias(uow))
        .filter(business_id=business_id, account=account)
        .select_related("journal_entry", "journal_entry_line")
    )
    if start_date is not None:
        qs = qs.filter(transaction_date__gte=start_date)
    if end_date is not None:
        qs = qs.filter(transaction_date__lte=end_date)

    running = Decimal("0.00")
    entries = []

    for row in qs.order_by("transaction_date", "id"):
        debit = _q2(row.debit_amount)
        credit = _q2(row.credit_amount)

        if account.is_debit_normal:
            running += debit - credit
        else:
            running += credit - debit

        journal = row.journal_entry
        entries.append(
            {
                "ledger_entry_id": row.id,
                "journal_entry_id": journal.id,
                "journal_entry_line_id": row.journal_entry_line_id,
                "reference_number": journal.reference_number,
                "transaction_date": row.transaction_date,
                "journal_description": journal.description,
                "line_description": row.journal_entry_line.description,
                "reference_type": journal.reference_type,
                "reference_id": journal.reference_id,
                "debit_amount": debit,
                "credit_amount": credit,
                "signed_amount": _q2(row.balance),
                "running_balance": _q2(running),
            }
        )

    return {
        "account": _account_payload(account),
        "entries": entries,
        "ending_balance": _q2(running),
        "period": {
            "start_date": start_date,
            "end_date": end_date,
        },
    }
