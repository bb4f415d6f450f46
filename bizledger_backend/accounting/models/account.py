# accounting/models/account.py

from __future__ import annotations

from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q

from businesses.models import Business


class Account(models.Model):
    """
    A single account within a business's Chart of Accounts.

    Guarantees:
    - Account codes are unique per business
    - Code + name are normalized (trimmed)
    - normal_balance is always set (derived from account_type when blank)

    The ledger treats accounts as read-only reference data.
    """

    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    REVENUE = "revenue"
    EXPENSE = "expense"

    ACCOUNT_TYPES = [
        (ASSET, "Asset"),
        (LIABILITY, "Liability"),
        (EQUITY, "Equity"),
        (REVENUE, "Revenue"),
        (EXPENSE, "Expense"),
    ]

    DEBIT = "debit"
    CREDIT = "credit"

    NORMAL_BALANCES = [
        (DEBIT, "Debit"),
        (CREDIT, "Credit"),
    ]

    DEBIT_NORMAL_TYPES = (ASSET, EXPENSE)

    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        related_name="accounts",
    )

    code = models.CharField(max_length=20)
    name = models.CharField(max_length=150)

    account_type = models.CharField(
        max_length=20,
        choices=ACCOUNT_TYPES,
    )

    normal_balance = models.CharField(
        max_length=6,
        choices=NORMAL_BALANCES,
        blank=True,
        help_text="Leave blank to derive from account type (contra accounts set it explicitly).",
    )

    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["code"]
        verbose_name = "Account"
        verbose_name_plural = "Accounts"
        indexes = [
            models.Index(fields=["business", "code"]),
            models.Index(fields=["business", "account_type"]),
            models.Index(fields=["is_active"]),
        ]
        constraints = [
            models.UniqueConstraint(
                fields=["business", "code"],
                name="uniq_account_business_code",
            ),
            models.CheckConstraint(
                condition=~Q(code=""),
                name="chk_account_code_not_blank",
            ),
            models.CheckConstraint(
                condition=~Q(name=""),
                name="chk_account_name_not_blank",
            ),
        ]

    def __str__(self):
        return f"{self.code} – {self.name}"

    @classmethod
    def default_normal_balance(cls, account_type: str) -> str:
        return cls.DEBIT if account_type in cls.DEBIT_NORMAL_TYPES else cls.CREDIT

    @property
    def is_debit_normal(self) -> bool:
        return self.normal_balance == self.DEBIT

    def clean(self):
        self.code = (self.code or "").strip()
        self.name = (self.name or "").strip()

        if not self.code:
            raise ValidationError("Account code is required")
        if not self.name:
            raise ValidationError("Account name is required")

        if not self.normal_balance:
            self.normal_balance = self.default_normal_balance(self.account_type)

    def save(self, *args, **kwargs):
        self.full_clean()
        return super().save(*args, **kwargs)
