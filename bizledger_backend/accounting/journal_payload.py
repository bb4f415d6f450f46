# accounting/journal_payload.py

"""
PATH: accounting/journal_payload.py

JOURNAL PAYLOAD DOMAIN (FRAMEWORK-AGNOSTIC)

Purpose:
- The shape every caller hands to the ledger: a ProposedEntry made of
  ProposedLines and a closed Reference to the originating business event.
- Used by BOTH:
  - DRF serializer validation (API layer)
  - posting builders (POS sale, inventory purchase, early-payment discount)

Rules:
- side is "debit" or "credit"
- amount > 0, normalized to 2dp
- normal_balance is the caller's claim about the account's polarity;
  when omitted the line claims that it increases the account (claim == side)
- Reference kinds are a closed set; "none" carries no id, every other kind does
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional, Tuple

from accounting.services.exceptions import JournalEntryCreationError

MONEY_QUANT = Decimal("0.01")

DEBIT = "debit"
CREDIT = "credit"
SIDES = (DEBIT, CREDIT)

REF_INVOICE = "invoice"
REF_POS_SALE = "pos_sale"
REF_EXPENSE = "expense"
REF_PURCHASE_ORDER = "purchase_order"
REF_VENDOR_PAYMENT = "vendor_payment"
REF_NONE = "none"

REFERENCE_KINDS = (
    REF_INVOICE,
    REF_POS_SALE,
    REF_EXPENSE,
    REF_PURCHASE_ORDER,
    REF_VENDOR_PAYMENT,
    REF_NONE,
)


def to_money(value) -> Decimal:
    try:
        if isinstance(value, Decimal):
            d = value
        else:
            d = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError) as e:
        raise JournalEntryCreationError(f"Invalid amount: {value!r}") from e

    if not d.is_finite():
        raise JournalEntryCreationError(f"Invalid amount: {value!r}")

    return d.quantize(MONEY_QUANT, rounding=ROUND_HALF_UP)


def opposite_side(side: str) -> str:
    return CREDIT if side == DEBIT else DEBIT


@dataclass(frozen=True)
class Reference:
    """
    Pointer to the business event that produced a journal entry.

    Build with the named constructors:
        Reference.pos_sale(sale.id)
        Reference.none()
    """

    kind: str = REF_NONE
    id: Optional[str] = None

    def __post_init__(self):
        if self.kind not in REFERENCE_KINDS:
            raise JournalEntryCreationError(f"Invalid reference type: {self.kind!r}")

        ref_id = None if self.id is None else (str(self.id).strip() or None)
        object.__setattr__(self, "id", ref_id)

        if self.kind == REF_NONE and ref_id is not None:
            raise JournalEntryCreationError("reference_id must be empty when reference_type is 'none'")
        if self.kind != REF_NONE and ref_id is None:
            raise JournalEntryCreationError(f"reference_id is required for reference_type '{self.kind}'")

    @classmethod
    def invoice(cls, ref_id) -> "Reference":
        return cls(REF_INVOICE, ref_id)

    @classmethod
    def pos_sale(cls, ref_id) -> "Reference":
        return cls(REF_POS_SALE, ref_id)

    @classmethod
    def expense(cls, ref_id) -> "Reference":
        return cls(REF_EXPENSE, ref_id)

    @classmethod
    def purchase_order(cls, ref_id) -> "Reference":
        return cls(REF_PURCHASE_ORDER, ref_id)

    @classmethod
    def vendor_payment(cls, ref_id) -> "Reference":
        return cls(REF_VENDOR_PAYMENT, ref_id)

    @classmethod
    def none(cls) -> "Reference":
        return cls(REF_NONE, None)

    @classmethod
    def from_raw(cls, reference_type, reference_id) -> "Reference":
        kind = (reference_type or REF_NONE).strip().lower()
        ref_id = None if reference_id in (None, "") else reference_id
        return cls(kind, ref_id)


@dataclass(frozen=True)
class ProposedLine:
    """
    One proposed journal line.

    - account_code: chart account code (opaque string)
    - amount: Decimal money (2dp), always positive
    - side: "debit" or "credit"
    - normal_balance: optional claim of the account's polarity
    """

    account_code: str
    amount: Decimal
    side: str
    description: str = ""
    normal_balance: Optional[str] = None

    @property
    def claimed_normal_balance(self) -> str:
        return self.normal_balance or self.side

    @staticmethod
    def from_raw(raw: dict, *, index: int | None = None) -> "ProposedLine":
        prefix = f"Line {index} " if index is not None else ""

        if not isinstance(raw, dict):
            raise JournalEntryCreationError(f"{prefix}must be an object/dict")

        account_code = str(raw.get("account_code") or "").strip()
        if not account_code:
            raise JournalEntryCreationError(f"{prefix}account_code is required")

        side = str(raw.get("side") or "").strip().lower()
        if side not in SIDES:
            raise JournalEntryCreationError(
                f"{prefix}side must be 'debit' or 'credit', got {raw.get('side')!r}"
            )

        claim = raw.get("normal_balance")
        if claim in (None, ""):
            claim = None
        else:
            claim = str(claim).strip().lower()
            if claim not in SIDES:
                raise JournalEntryCreationError(
                    f"{prefix}normal_balance must be 'debit' or 'credit', got {raw.get('normal_balance')!r}"
                )

        amount = to_money(raw.get("amount"))
        if amount <= Decimal("0.00"):
            raise JournalEntryCreationError(f"{prefix}amount must be > 0 for account {account_code}")

        return ProposedLine(
            account_code=account_code,
            amount=amount,
            side=side,
            description=str(raw.get("description") or "").strip(),
            normal_balance=claim,
        )


@dataclass(frozen=True)
class ProposedEntry:
    """
    A journal entry as proposed by a caller, before validation.

    - business_id: owning business
    - transaction_date: accounting effective date (None means today)
    - reference: closed pointer to the originating event
    - reverses: id of the entry this one reverses (reversal path only)
    """

    business_id: object
    description: str
    lines: Tuple[ProposedLine, ...]
    transaction_date: Optional[date] = None
    reference: Reference = field(default_factory=Reference.none)
    reverses: Optional[int] = None

    @property
    def total_debits(self) -> Decimal:
        return sum((ln.amount for ln in self.lines if ln.side == DEBIT), Decimal("0.00"))

    @property
    def total_credits(self) -> Decimal:
        return sum((ln.amount for ln in self.lines if ln.side == CREDIT), Decimal("0.00"))

    @staticmethod
    def from_raw(
        *,
        business_id,
        description,
        raw_lines,
        transaction_date: date | None = None,
        reference_type: str | None = None,
        reference_id=None,
    ) -> "ProposedEntry":
        if business_id is None or str(business_id).strip() == "":
            raise JournalEntryCreationError("business_id is required")

        if transaction_date is not None and not isinstance(transaction_date, date):
            raise JournalEntryCreationError("transaction_date must be a date")

        lines = tuple(
            ProposedLine.from_raw(raw, index=i) for i, raw in enumerate(raw_lines or [], start=1)
        )

        return ProposedEntry(
            business_id=business_id,
            description=(description or "").strip(),
            lines=lines,
            transaction_date=transaction_date,
            reference=Reference.from_raw(reference_type, reference_id),
        )
