# accounting/services/posting_rules.py

"""
POSTING RULES (AUTHORITATIVE)

Defines HOW business events map to accounting intent.

RESPONSIBILITIES:
- Pick documented account codes for each event
- Construct debit / credit lines (with explicit polarity when a line
  decreases its account)
- Delegate validation and persistence to journal_entry_service

THIS MODULE DOES NOT:
- Write to the database directly
- Create JournalEntry / JournalEntryLine / GeneralLedgerEntry
- Enforce debit == credit math (the validator does)

Accounting effects:
- Inventory purchase:       Dr 1300 Inventory        / Cr 1110 Cash | 1120 Bank | 2100 Payables
- POS sale (revenue):       Dr 1110 | 1120 | 1200    / Cr 4100 Sales, Cr 4200 Services
- POS sale (COGS):          Dr 5100 COGS             / Cr 1300 Inventory
- Early-payment discount:   Dr 4112 Discounts        / Cr 1200 Receivables
- Vendor payment:           Dr 2100 Payables         / Cr 1110 | 1120 | 1130
"""

from __future__ import annotations

import logging
from decimal import Decimal

from accounting.journal_payload import (
    CREDIT,
    DEBIT,
    ProposedEntry,
    ProposedLine,
    Reference,
    to_money,
)
from accounting.services.chart_of_accounts import STANDARD_CODES
from accounting.services.exceptions import JournalEntryCreationError, PostingRuleError
from accounting.services.journal_entry_service import post_journal_entry
from accounting.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

CASH = STANDARD_CODES["CASH"]
BANK = STANDARD_CODES["BANK"]
MOBILE_MONEY = STANDARD_CODES["MOBILE_MONEY"]
RECEIVABLES = STANDARD_CODES["ACCOUNTS_RECEIVABLE"]
INVENTORY = STANDARD_CODES["INVENTORY"]
PAYABLES = STANDARD_CODES["ACCOUNTS_PAYABLE"]
SALES_REVENUE = STANDARD_CODES["SALES_REVENUE"]
SERVICE_REVENUE = STANDARD_CODES["SERVICE_REVENUE"]
EARLY_PAYMENT_DISCOUNTS = STANDARD_CODES["EARLY_PAYMENT_DISCOUNTS"]
COGS = STANDARD_CODES["COGS"]

PURCHASE_SETTLEMENT_ACCOUNTS = {
    "cash": CASH,
    "bank": BANK,
    "credit": PAYABLES,
    "on_account": PAYABLES,
}

SALE_RECEIPT_ACCOUNTS = {
    "cash": CASH,
    "card": BANK,
    "bank": BANK,
}

VENDOR_PAYMENT_ACCOUNTS = {
    "cash": CASH,
    "bank": BANK,
    "mobile_money": MOBILE_MONEY,
}


# ============================================================
# INPUT HELPERS
# ============================================================


def _money(value, label: str, *, allow_zero: bool = False) -> Decimal:
    try:
        amount = to_money(ZERO if value is None else value)
    except JournalEntryCreationError as exc:
        raise PostingRuleError(f"{label} is not a valid amount: {value!r}") from exc

    if amount < ZERO or (amount == ZERO and not allow_zero):
        qualifier = ">= 0" if allow_zero else "> 0"
        raise PostingRuleError(f"{label} must be {qualifier}, got {amount}")
    return amount


def _method(value) -> str:
    return str(value or "").strip().lower()


def _required_id(value, label: str) -> str:
    ref = str(value or "").strip()
    if not ref:
        raise PostingRuleError(f"{label} is required")
    return ref


def _post_all(entries, user_id, uow):
    if uow is None:
        with UnitOfWork() as own:
            return [post_journal_entry(e, user_id, uow=own) for e in entries]
    return [post_journal_entry(e, user_id, uow=uow) for e in entries]


# ============================================================
# INVENTORY PURCHASE
# ============================================================


def build_inventory_purchase_entry(
    *,
    business_id,
    purchase_order_id,
    amount,
    payment_method: str,
    transaction_date=None,
    description: str | None = None,
) -> ProposedEntry:
    total = _money(amount, "Purchase amount")
    method = _method(payment_method)

    credit_code = PURCHASE_SETTLEMENT_ACCOUNTS.get(method)
    if credit_code is None:
        raise PostingRuleError(f"Unsupported purchase payment method: {payment_method!r}")

    ref = _required_id(purchase_order_id, "purchase_order_id")

    # Paying from cash/bank reduces a debit-normal asset.
    credit_polarity = CREDIT if credit_code == PAYABLES else DEBIT

    return ProposedEntry(
        business_id=business_id,
        description=description or f"Inventory purchase {ref}",
        transaction_date=transaction_date,
        reference=Reference.purchase_order(ref),
        lines=(
            ProposedLine(INVENTORY, total, DEBIT, "Inventory received"),
            ProposedLine(
                credit_code,
                total,
                CREDIT,
                "Supplier payable" if credit_code == PAYABLES else "Paid to supplier",
                normal_balance=credit_polarity,
            ),
        ),
    )


def post_inventory_purchase(*, user_id, uow: UnitOfWork | None = None, **kwargs):
    entry = build_inventory_purchase_entry(**kwargs)
    (posted,) = _post_all([entry], user_id, uow)
    return posted


# ============================================================
# POS SALE (REVENUE + COGS)
# ============================================================


def build_pos_sale_entries(
    *,
    business_id,
    sale_id,
    payment_method: str,
    product_revenue=ZERO,
    service_revenue=ZERO,
    cogs_amount=ZERO,
    transaction_date=None,
) -> list[ProposedEntry]:
    """
    Revenue entry always; COGS entry only when cogs_amount > 0.
    """
    products = _money(product_revenue, "Product revenue", allow_zero=True)
    services = _money(service_revenue, "Service revenue", allow_zero=True)
    cogs = _money(cogs_amount, "COGS amount", allow_zero=True)

    total = products + services
    if total <= ZERO:
        raise PostingRuleError("POS sale must have revenue > 0")

    method = _method(payment_method)
    if not method:
        raise PostingRuleError("POS sale payment_method is required")

    debit_code = SALE_RECEIPT_ACCOUNTS.get(method, RECEIVABLES)
    ref = _required_id(sale_id, "sale_id")
    reference = Reference.pos_sale(ref)

    revenue_lines = [ProposedLine(debit_code, total, DEBIT, f"POS sale {ref} ({method})")]
    if products > ZERO:
        revenue_lines.append(ProposedLine(SALES_REVENUE, products, CREDIT, "Product sales"))
    if services > ZERO:
        revenue_lines.append(ProposedLine(SERVICE_REVENUE, services, CREDIT, "Service sales"))

    entries = [
        ProposedEntry(
            business_id=business_id,
            description=f"POS sale {ref}",
            transaction_date=transaction_date,
            reference=reference,
            lines=tuple(revenue_lines),
        )
    ]

    if cogs > ZERO:
        entries.append(
            ProposedEntry(
                business_id=business_id,
                description=f"Cost of goods sold for POS sale {ref}",
                transaction_date=transaction_date,
                reference=reference,
                lines=(
                    ProposedLine(COGS, cogs, DEBIT, "Cost of goods sold"),
                    ProposedLine(INVENTORY, cogs, CREDIT, "Inventory relieved", normal_balance=DEBIT),
                ),
            )
        )

    return entries


def post_pos_sale(*, user_id, uow: UnitOfWork | None = None, **kwargs):
    """
    Post the revenue and COGS entries of one sale together: both commit or
    neither does.
    """
    entries = build_pos_sale_entries(**kwargs)
    posted = _post_all(entries, user_id, uow)
    logger.info(
        "POS sale %s posted as %s",
        kwargs.get("sale_id"),
        ", ".join(p.journal_entry.reference_number for p in posted),
    )
    return posted


# ============================================================
# EARLY-PAYMENT DISCOUNT
# ============================================================


def build_early_payment_discount_entry(
    *,
    business_id,
    invoice_id,
    discount_amount,
    transaction_date=None,
    description: str | None = None,
) -> ProposedEntry:
    amount = _money(discount_amount, "Discount amount")
    ref = _required_id(invoice_id, "invoice_id")

    return ProposedEntry(
        business_id=business_id,
        description=description or f"Early payment discount on invoice {ref}",
        transaction_date=transaction_date,
        reference=Reference.invoice(ref),
        lines=(
            ProposedLine(EARLY_PAYMENT_DISCOUNTS, amount, DEBIT, "Early payment discount"),
            ProposedLine(RECEIVABLES, amount, CREDIT, "Receivable reduced", normal_balance=DEBIT),
        ),
    )


def post_early_payment_discount(*, user_id, uow: UnitOfWork | None = None, **kwargs):
    entry = build_early_payment_discount_entry(**kwargs)
    (posted,) = _post_all([entry], user_id, uow)
    return posted


# ============================================================
# VENDOR PAYMENT
# ============================================================


def build_vendor_payment_entry(
    *,
    business_id,
    payment_id,
    amount,
    payment_method: str,
    transaction_date=None,
    description: str | None = None,
) -> ProposedEntry:
    total = _money(amount, "Payment amount")
    method = _method(payment_method)

    credit_code = VENDOR_PAYMENT_ACCOUNTS.get(method)
    if credit_code is None:
        raise PostingRuleError(f"Unsupported vendor payment method: {payment_method!r}")

    ref = _required_id(payment_id, "payment_id")

    return ProposedEntry(
        business_id=business_id,
        description=description or f"Vendor payment {ref}",
        transaction_date=transaction_date,
        reference=Reference.vendor_payment(ref),
        lines=(
            ProposedLine(PAYABLES, total, DEBIT, "Payable settled", normal_balance=CREDIT),
            ProposedLine(credit_code, total, CREDIT, f"Paid via {method}", normal_balance=DEBIT),
        ),
    )


def post_vendor_payment(*, user_id, uow: UnitOfWork | None = None, **kwargs):
    entry = build_vendor_payment_entry(**kwargs)
    (posted,) = _post_all([entry], user_id, uow)
    return posted
