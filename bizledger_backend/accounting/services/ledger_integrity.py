# accounting/services/ledger_integrity.py

"""
LEDGER INTEGRITY CHECK (READ-ONLY)

Recomputes what the poster guarantees and reports every disagreement:

1. Each journal entry balances (sum of debit lines == sum of credit lines)
2. Each journal header total equals its debit total
3. Each line has exactly one general ledger row
4. Per account: sum of cached GeneralLedgerEntry.balance equals the balance
   recomputed from JournalEntryLine with the account's polarity

An empty result means the ledger is internally consistent.
"""

from __future__ import annotations

from decimal import Decimal

from django.db.models import Case, DecimalField, F, Sum, Value, When
from django.db.models.functions import Coalesce

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.chart_of_accounts import _alias

ZERO = Decimal("0.00")
MONEY = DecimalField(max_digits=16, decimal_places=2)


def _side_sum(side: str):
    return Coalesce(
        Sum(Case(When(lines__side=side, then=F("lines__amount")), output_field=MONEY)),
        Value(ZERO),
        output_field=MONEY,
    )


def _entry_discrepancies(business_id, using) -> list[dict]:
    problems = []

    entries = (
        JournalEntry.objects.using(using)
        .filter(business_id=business_id)
        .annotate(
            debit_total=_side_sum(JournalEntryLine.DEBIT),
            credit_total=_side_sum(JournalEntryLine.CREDIT),
        )
        .order_by("transaction_date", "id")
    )

    for je in entries:
        if je.debit_total != je.credit_total:
            problems.append(
                {
                    "kind": "unbalanced_entry",
                    "journal_entry_id": je.id,
                    "reference_number": je.reference_number,
                    "total_debits": je.debit_total,
                    "total_credits": je.credit_total,
                }
            )
        if je.total_amount != je.debit_total:
            problems.append(
                {
                    "kind": "header_total_mismatch",
                    "journal_entry_id": je.id,
                    "reference_number": je.reference_number,
                    "total_amount": je.total_amount,
                    "total_debits": je.debit_total,
                }
            )

    return problems


def _orphan_lines(business_id, using) -> list[dict]:
    missing = (
        JournalEntryLine.objects.using(using)
        .filter(business_id=business_id, general_ledger_entry__isnull=True)
        .values_list("id", "journal_entry_id")
    )
    return [
        {
            "kind": "missing_ledger_row",
            "journal_entry_line_id": line_id,
            "journal_entry_id": je_id,
        }
        for line_id, je_id in missing
    ]


def _account_discrepancies(business_id, using) -> list[dict]:
    problems = []

    line_totals: dict = {}
    rows = (
        JournalEntryLine.objects.using(using)
        .filter(business_id=business_id)
        .values("account_id", "side")
        .annotate(total=Sum("amount"))
    )
    for r in rows:
        debits, credits = line_totals.get(r["account_id"], (ZERO, ZERO))
        if r["side"] == JournalEntryLine.DEBIT:
            debits = r["total"] or ZERO
        else:
            credits = r["total"] or ZERO
        line_totals[r["account_id"]] = (debits, credits)

    cached = dict(
        GeneralLedgerEntry.objects.using(using)
        .filter(business_id=business_id)
        .values("account_id")
        .annotate(total=Sum("balance"))
        .values_list("account_id", "total")
    )

    accounts = Account.objects.using(using).filter(business_id=business_id).order_by("code")
    for account in accounts:
        debits, credits = line_totals.get(account.id, (ZERO, ZERO))
        recomputed = debits - credits if account.is_debit_normal else credits - debits
        cached_total = cached.get(account.id) or ZERO

        if cached_total != recomputed:
            problems.append(
                {
                    "kind": "cached_balance_mismatch",
                    "account_id": account.id,
                    "account_code": account.code,
                    "cached_balance": cached_total,
                    "recomputed_balance": recomputed,
                }
            )

    return problems


def find_ledger_discrepancies(business_id, *, uow=None) -> list[dict]:
    using = _alias(uow)
    return (
        _entry_discrepancies(business_id, using)
        + _orphan_lines(business_id, using)
        + _account_discrepancies(business_id, using)
    )
