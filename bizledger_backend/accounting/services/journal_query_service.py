# accounting/services/journal_query_service.py

from __future__ import annotations

from decimal import Decimal

from django.db.models import Prefetch

from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from accounting.services.chart_of_accounts import _alias
from accounting.services.validator import is_balanced


def journal_entries_for_business(business_id, *, uow=None):
    """
    Journal entries of one business, newest first, lines prefetched in
    line order. Request filters are applied by JournalEntryFilter.
    """
    lines = JournalEntryLine.objects.select_related("account").order_by("line_number")

    return (
        JournalEntry.objects.using(_alias(uow))
        .filter(business_id=business_id)
        .select_related("created_by", "reversal_of")
        .prefetch_related(Prefetch("lines", queryset=lines))
        .order_by("-transaction_date", "-created_at", "-id")
    )


def summarize_entry(entry: JournalEntry) -> dict:
    total_debits = Decimal("0.00")
    total_credits = Decimal("0.00")
    count = 0

    for line in entry.lines.all():
        count += 1
        if line.side == JournalEntryLine.DEBIT:
            total_debits += line.amount
        else:
            total_credits += line.amount

    return {
        "total_debits": total_debits,
        "total_credits": total_credits,
        "is_balanced": is_balanced(total_debits, total_credits),
        "line_count": count,
    }
