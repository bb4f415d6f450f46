# accounting/services/trial_balance_service.py

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

from django.db import DEFAULT_DB_ALIAS
from django.db.models import Sum

from accounting.models.account import Account
from accounting.models.journal_line import JournalEntryLine
from accounting.services.validator import is_balanced


TWOPLACES = Decimal("0.01")


def _q2(amount: Decimal) -> Decimal:
    return (amount or Decimal("0.00")).quantize(TWOPLACES, rounding=ROUND_HALF_UP)


class TrialBalanceService:
    """
    Trial Balance computation service.

    Guarantees:
    - Scopes to ONE business
    - Lists EVERY account of the business (zero rows included), ordered by code
    - Recomputes from JournalEntryLine (never the cached ledger balance)
    - Filters on journal_entry.transaction_date, both bounds inclusive
    - Avoids N+1 queries by aggregating in bulk
    """

    def __init__(self, account_model=Account, line_model=JournalEntryLine, using=DEFAULT_DB_ALIAS):
        self.Account = account_model
        self.Line = line_model
        self.using = using

    def generate(self, *, business_id, start_date=None, end_date=None):
        accounts = list(
            self.Account.objects.using(self.using)
            .filter(business_id=business_id)
            .only("id", "code", "name", "account_type", "normal_balance")
            .order_by("code")
        )

        lines = self.Line.objects.using(self.using).filter(business_id=business_id)
        if start_date is not None:
            lines = lines.filter(journal_entry__transaction_date__gte=start_date)
        if end_date is not None:
            lines = lines.filter(journal_entry__transaction_date__lte=end_date)

        rows = lines.values("account_id", "side").annotate(total=Sum("amount"))

        debit_by_account: dict = {}
        credit_by_account: dict = {}

        for r in rows:
            if r["side"] == self.Line.DEBIT:
                debit_by_account[r["account_id"]] = _q2(r["total"])
            elif r["side"] == self.Line.CREDIT:
                credit_by_account[r["account_id"]] = _q2(r["total"])

        accounts_output = []
        total_debits = Decimal("0.00")
        total_credits = Decimal("0.00")

        for acc in accounts:
            debits = debit_by_account.get(acc.id, Decimal("0.00"))
            credits = credit_by_account.get(acc.id, Decimal("0.00"))

            if acc.is_debit_normal:
                balance = debits - credits
            else:
                balance = credits - debits

            accounts_output.append(
                {
                    "account_id": acc.id,
                    "account_code": acc.code,
                    "account_name": acc.name,
                    "account_type": acc.account_type,
                    "normal_balance": acc.normal_balance,
                    "total_debits": debits,
                    "total_credits": credits,
                    "balance": _q2(balance),
                }
            )

            total_debits += debits
            total_credits += credits

        total_debits = _q2(total_debits)
        total_credits = _q2(total_credits)

        return {
            "business_id": business_id,
            "accounts": accounts_output,
            "summary": {
                "total_debits": total_debits,
                "total_credits": total_credits,
                "is_balanced": is_balanced(total_debits, total_credits),
            },
            "period": {
                "start_date": start_date,
                "end_date": end_date,
            },
        }


def get_trial_balance(business_id, start_date=None, end_date=None, *, uow=None) -> dict:
    using = getattr(uow, "using", None) or DEFAULT_DB_ALIAS
    return TrialBalanceService(using=using).generate(
        business_id=business_id,
        start_date=start_date,
        end_date=end_date,
    )
