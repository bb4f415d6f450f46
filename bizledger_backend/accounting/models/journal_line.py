# accounting/models/journal_line.py

"""
JOURNAL ENTRY LINE MODEL

One debit or credit leg of a JournalEntry.

Guarantees:
- Immutable once created (no updates, no deletes)
- Amount is always positive; direction is via side
- This table is the authoritative record that reports recompute from
"""

from __future__ import annotations

from decimal import Decimal

from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from businesses.models import Business


class JournalEntryLine(models.Model):
    DEBIT = "debit"
    CREDIT = "credit"

    SIDES = [
        (DEBIT, "Debit"),
        (CREDIT, "Credit"),
    ]

    journal_entry = models.ForeignKey(
        JournalEntry,
        on_delete=models.PROTECT,
        related_name="lines",
    )

    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="journal_entry_lines",
    )

    account = models.ForeignKey(
        Account,
        on_delete=models.PROTECT,
        related_name="journal_entry_lines",
    )

    line_number = models.PositiveSmallIntegerField()

    side = models.CharField(max_length=6, choices=SIDES)

    amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0.01"))],
        help_text="Positive monetary value",
    )

    description = models.CharField(max_length=500, blank=True, default="")

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["journal_entry_id", "line_number"]
        indexes = [
            models.Index(fields=["business", "account"]),
            models.Index(fields=["journal_entry"]),
            models.Index(fields=["account", "side"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["journal_entry", "line_number"],
                name="uniq_journal_line_number",
            ),
        ]
        verbose_name = "Journal Entry Line"
        verbose_name_plural = "Journal Entry Lines"

    def __str__(self):
        return f"{self.side} {self.amount} → {self.account}"

    def clean(self):
        if self.side not in (self.DEBIT, self.CREDIT):
            raise ValidationError("Invalid side")

        if self.amount is None or self.amount <= 0:
            raise ValidationError("Line amount must be > 0")

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("JournalEntryLine records are immutable and cannot be modified")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("JournalEntryLine records are immutable and cannot be deleted")
