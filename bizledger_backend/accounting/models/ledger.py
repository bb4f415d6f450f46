# accounting/models/ledger.py

"""
======================================================
PATH: accounting/models/ledger.py
======================================================
GENERAL LEDGER ENTRY MODEL

Per-account projection of a JournalEntryLine, written in the same
transaction as the line.

Guarantees:
- Exactly one row per JournalEntryLine
- Immutable once created (no updates, no deletes)
- balance is the signed contribution at write time:
  +amount when the line side matches the account's normal balance, else -amount
- The primary key is the creation order used to replay same-day entries

This table is a read index. Trial balance recomputes from
JournalEntryLine and never trusts the cached balance.
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from businesses.models import Business


class GeneralLedgerEntry(models.Model):
    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="general_ledger_entries",
    )

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="general_ledger_entries",
    )

    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.PROTECT,
        related_name="general_ledger_entries",
    )

    journal_entry_line = models.OneToOneField(
        JournalEntryLine,
        on_delete=models.PROTECT,
        related_name="general_ledger_entry",
    )

    transaction_date = models.DateField()

    debit_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    credit_amount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    balance = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        help_text="Signed contribution to the account balance (normal-balance polarity)",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        verbose_name = "General Ledger Entry"
        verbose_name_plural = "General Ledger Entries"
        ordering = ["transaction_date", "id"]
        indexes = [
            models.Index(fields=["business", "account", "transaction_date", "id"]),
            models.Index(fields=["journal_entry"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(Q(debit_amount__gt=0) & Q(credit_amount=0))
                | (Q(debit_amount=0) & Q(credit_amount__gt=0)),
                name="chk_gl_one_sided",
            ),
        ]

    def __str__(self):
        return f"GL {self.account} {self.transaction_date} {self.balance}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("GeneralLedgerEntry records are immutable and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("GeneralLedgerEntry records are immutable and cannot be deleted")
