# accounting/models/journal.py

"""
======================================================
PATH: accounting/models/journal.py
======================================================
JOURNAL ENTRY MODEL

Represents a single balanced accounting transaction (journal header).

Guarantees:
- Immutable once created (no updates, no deletes)
- total_amount equals the debit total (== credit total) of its lines
- reference_type/reference_id form a closed tagged pair:
  reference_id is present for every type except "none"
- Corrections are new reversing entries (reversal_of), never edits
"""

from __future__ import annotations

from django.conf import settings
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import Q

from businesses.models import Business

User = settings.AUTH_USER_MODEL


class JournalEntry(models.Model):
    REF_INVOICE = "invoice"
    REF_POS_SALE = "pos_sale"
    REF_EXPENSE = "expense"
    REF_PURCHASE_ORDER = "purchase_order"
    REF_VENDOR_PAYMENT = "vendor_payment"
    REF_NONE = "none"

    REFERENCE_TYPES = [
        (REF_INVOICE, "Invoice"),
        (REF_POS_SALE, "POS Sale"),
        (REF_EXPENSE, "Expense"),
        (REF_PURCHASE_ORDER, "Purchase Order"),
        (REF_VENDOR_PAYMENT, "Vendor Payment"),
        (REF_NONE, "None"),
    ]

    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="journal_entries",
    )

    reference_number = models.CharField(
        max_length=40,
        unique=True,
        help_text="Generated human-facing journal number",
    )

    description = models.TextField(help_text="Narrative description of the journal entry")

    transaction_date = models.DateField(help_text="Accounting effective date")

    reference_type = models.CharField(
        max_length=20,
        choices=REFERENCE_TYPES,
        default=REF_NONE,
    )

    reference_id = models.CharField(
        max_length=64,
        null=True,
        blank=True,
        help_text="Id of the originating business event (invoice, POS sale, ...)",
    )

    total_amount = models.DecimalField(
        max_digits=14,
        decimal_places=2,
        validators=[MinValueValidator(0)],
    )

    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="journal_entries",
    )

    reversal_of = models.OneToOneField(
        "self",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="reversed_by",
        help_text="The entry this one reverses (an entry can be reversed at most once)",
    )

    created_at = models.DateTimeField(
        auto_now_add=True,
        help_text="Timestamp when the journal entry was created",
    )

    class Meta:
        ordering = ["-transaction_date", "-created_at", "-id"]
        indexes = [
            models.Index(fields=["business", "transaction_date"]),
            models.Index(fields=["business", "reference_type", "reference_id"]),
            models.Index(fields=["created_at"]),
        ]
        constraints = [
            models.CheckConstraint(
                condition=(Q(reference_type="none") & Q(reference_id__isnull=True))
                | (~Q(reference_type="none") & Q(reference_id__isnull=False) & ~Q(reference_id="")),
                name="chk_journal_reference_pair",
            ),
        ]
        verbose_name = "Journal Entry"
        verbose_name_plural = "Journal Entries"

    def __str__(self):
        return f"{self.reference_number} – {self.transaction_date}"

    @property
    def is_reversal(self) -> bool:
        return self.reversal_of_id is not None

    def clean(self):
        self.description = (self.description or "").strip()
        if not self.description:
            raise ValidationError("Journal entry description is required")

        if self.reference_id is not None:
            self.reference_id = str(self.reference_id).strip() or None

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValidationError("JournalEntry records are immutable once created")

        self.full_clean()
        return super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise ValidationError("JournalEntry records are immutable and cannot be deleted")
