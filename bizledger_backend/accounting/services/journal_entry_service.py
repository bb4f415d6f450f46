# accounting/services/journal_entry_service.py

"""
======================================================
PATH: accounting/services/journal_entry_service.py
======================================================
JOURNAL ENTRY SERVICE (ACCOUNTING ENGINE)

This module is the ONLY place allowed to:
- Create JournalEntry
- Create JournalEntryLine
- Create GeneralLedgerEntry
- Guarantee atomicity of the three (plus the audit record)

Everything else (POS sales, purchases, discounts, reversals, the API) must
pass through post_journal_entry().

Transaction rules:
- Every write happens inside an explicit UnitOfWork passed by the caller.
- post_journal_entry() opens its own UnitOfWork only when none is given.
- Any failure (validation, database, audit sink) rolls back the whole
  posting. Nothing is retried here; the caller owns retry policy.

Concurrency:
- Touched Account rows are locked (ascending id) before the first insert,
  so concurrent postings to the same account serialize and cannot deadlock
  on lock order.
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import DatabaseError
from django.utils import timezone

from accounting.journal_payload import (
    DEBIT,
    ProposedEntry,
    ProposedLine,
    Reference,
    opposite_side,
)
from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.exceptions import (
    AccountingServiceError,
    JournalEntryCreationError,
    ReversalError,
    StorageFailureError,
)
from accounting.services.unit_of_work import UnitOfWork
from accounting.services.validator import (
    ValidatedEntry,
    is_balanced,
    validate_journal_entry,
)
from audit.services import get_audit_sink

logger = logging.getLogger(__name__)

ACTION_CREATED = "accounting.journal_entry.created"
ACTION_REVERSED = "accounting.journal_entry.reversed"
RESOURCE_TYPE = "journal_entry"


@dataclass(frozen=True)
class PostedEntry:
    journal_entry: JournalEntry
    lines: tuple
    ledger_entries: tuple
    total_debits: Decimal
    total_credits: Decimal

    @property
    def summary(self) -> dict:
        return {
            "total_debits": self.total_debits,
            "total_credits": self.total_credits,
            "is_balanced": is_balanced(self.total_debits, self.total_credits),
        }


def generate_reference_number() -> str:
    prefix = (getattr(settings, "LEDGER_REFERENCE_PREFIX", "") or "JE").strip()
    stamp = timezone.now().strftime("%Y%m%d%H%M%S")
    return f"{prefix}-{stamp}-{uuid.uuid4().hex[:6].upper()}"


def _validation_message(exc: ValidationError) -> str:
    return "; ".join(exc.messages) or "Invalid journal entry"


def _lock_accounts(uow: UnitOfWork, validated: ValidatedEntry) -> None:
    if not getattr(settings, "LEDGER_LOCK_ACCOUNTS", True):
        return

    account_ids = sorted({vl.account.id for vl in validated.lines})
    list(
        Account.objects.using(uow.using)
        .select_for_update()
        .filter(id__in=account_ids)
        .order_by("id")
        .values_list("id", flat=True)
    )


def _emit_audit(
    uow: UnitOfWork,
    *,
    journal_entry: JournalEntry,
    line_count: int,
    user_id,
    action: str,
    extra: dict | None = None,
) -> None:
    new_values = {
        "description": journal_entry.description,
        "total_amount": str(journal_entry.total_amount),
        "line_count": line_count,
        "reference_number": journal_entry.reference_number,
    }
    new_values.update(extra or {})

    try:
        sink = get_audit_sink()
        sink(
            business_id=journal_entry.business_id,
            user_id=user_id,
            action=action,
            resource_type=RESOURCE_TYPE,
            resource_id=journal_entry.id,
            new_values=new_values,
            using=uow.using,
        )
    except Exception as exc:
        raise StorageFailureError(
            f"Audit logging failed for journal entry {journal_entry.reference_number}: {exc}"
        ) from exc


def post_validated_entry(
    uow: UnitOfWork,
    validated: ValidatedEntry,
    user_id,
    *,
    action: str = ACTION_CREATED,
    audit_extra: dict | None = None,
) -> PostedEntry:
    uow.assert_active()
    entry = validated.entry

    try:
        with uow.savepoint():
            _lock_accounts(uow, validated)

            journal_entry = JournalEntry(
                business_id=entry.business_id,
                reference_number=generate_reference_number(),
                description=entry.description,
                transaction_date=validated.transaction_date,
                reference_type=entry.reference.kind,
                reference_id=entry.reference.id,
                total_amount=validated.total_debits,
                created_by_id=user_id,
                reversal_of_id=entry.reverses,
            )
            journal_entry.save(using=uow.using)

            lines: list[JournalEntryLine] = []
            ledger_entries: list[GeneralLedgerEntry] = []

            for number, vl in enumerate(validated.lines, start=1):
                line = JournalEntryLine(
                    journal_entry=journal_entry,
                    business_id=entry.business_id,
                    account=vl.account,
                    line_number=number,
                    side=vl.line.side,
                    amount=vl.amount,
                    description=vl.line.description,
                )
                line.save(using=uow.using)
                lines.append(line)

                is_debit = vl.line.side == DEBIT
                ledger_entry = GeneralLedgerEntry(
                    business_id=entry.business_id,
                    account=vl.account,
                    journal_entry=journal_entry,
                    journal_entry_line=line,
                    transaction_date=validated.transaction_date,
                    debit_amount=vl.amount if is_debit else Decimal("0.00"),
                    credit_amount=Decimal("0.00") if is_debit else vl.amount,
                    balance=vl.signed_amount,
                )
                ledger_entry.save(using=uow.using)
                ledger_entries.append(ledger_entry)

            _emit_audit(
                uow,
                journal_entry=journal_entry,
                line_count=len(lines),
                user_id=user_id,
                action=action,
                extra=audit_extra,
            )
    except AccountingServiceError:
        raise
    except ValidationError as exc:
        raise JournalEntryCreationError(_validation_message(exc)) from exc
    except DatabaseError as exc:
        raise StorageFailureError(f"Failed to post journal entry: {exc}") from exc

    logger.info(
        "Posted journal entry %s (%s) business=%s total=%s lines=%s",
        journal_entry.id,
        journal_entry.reference_number,
        entry.business_id,
        journal_entry.total_amount,
        len(lines),
    )

    return PostedEntry(
        journal_entry=journal_entry,
        lines=tuple(lines),
        ledger_entries=tuple(ledger_entries),
        total_debits=validated.total_debits,
        total_credits=validated.total_credits,
    )


def _validate_and_post(uow: UnitOfWork, entry: ProposedEntry, user_id, **kwargs) -> PostedEntry:
    try:
        validated = validate_journal_entry(uow, entry)
        return post_validated_entry(uow, validated, user_id, **kwargs)
    except AccountingServiceError as exc:
        logger.warning(
            "Journal entry rejected (%s) business=%s description=%r: %s",
            exc.kind.value,
            entry.business_id,
            entry.description,
            exc,
        )
        raise


def post_journal_entry(entry: ProposedEntry, user_id, *, uow: UnitOfWork | None = None) -> PostedEntry:
    """
    Validate and post one journal entry.

    With uow=None the posting commits on return. With a caller-owned
    UnitOfWork it commits (or rolls back) with the caller's transaction.

    Raises:
        JournalEntryCreationError, UnbalancedEntryError, AccountResolutionError,
        NormalBalanceMismatchError, StorageFailureError
    """
    if uow is None:
        with UnitOfWork() as own:
            return _validate_and_post(own, entry, user_id)

    uow.assert_active()
    return _validate_and_post(uow, entry, user_id)


# ------------------------------------------------------------
# REVERSALS (corrections are new entries, never edits)
# ------------------------------------------------------------


def _build_reversal(original: JournalEntry, lines, *, reason: str, transaction_date) -> ProposedEntry:
    reason = (reason or "").strip()
    description = f"Reversal of {original.reference_number}"
    if reason:
        description = f"{description}: {reason}"

    reversed_lines = tuple(
        ProposedLine(
            account_code=line.account.code,
            amount=line.amount,
            side=opposite_side(line.side),
            description=f"Reversal: {line.description}" if line.description else "Reversal",
            normal_balance=line.account.normal_balance,
        )
        for line in lines
    )

    return ProposedEntry(
        business_id=original.business_id,
        description=description,
        lines=reversed_lines,
        transaction_date=transaction_date,
        reference=Reference(original.reference_type, original.reference_id),
        reverses=original.id,
    )


def _reverse(uow: UnitOfWork, business_id, journal_entry_id, user_id, *, reason, transaction_date) -> PostedEntry:
    try:
        original = (
            JournalEntry.objects.using(uow.using)
            .select_for_update()
            .get(id=journal_entry_id, business_id=business_id)
        )
    except (JournalEntry.DoesNotExist, ValidationError, ValueError) as exc:
        raise ReversalError(
            f"Journal entry {journal_entry_id} not found for business {business_id}"
        ) from exc

    if original.reversal_of_id is not None:
        raise ReversalError(
            f"Journal entry {original.reference_number} is itself a reversal and cannot be reversed"
        )

    if JournalEntry.objects.using(uow.using).filter(reversal_of_id=original.id).exists():
        raise ReversalError(f"Journal entry {original.reference_number} has already been reversed")

    lines = list(
        JournalEntryLine.objects.using(uow.using)
        .filter(journal_entry_id=original.id)
        .select_related("account")
        .order_by("line_number")
    )

    proposed = _build_reversal(original, lines, reason=reason, transaction_date=transaction_date)
    return _validate_and_post(
        uow,
        proposed,
        user_id,
        action=ACTION_REVERSED,
        audit_extra={
            "reverses": original.reference_number,
            "reason": (reason or "").strip(),
        },
    )


def reverse_journal_entry(
    business_id,
    journal_entry_id,
    user_id,
    *,
    reason: str = "",
    transaction_date=None,
    uow: UnitOfWork | None = None,
) -> PostedEntry:
    """
    Post a reversing entry for a previously posted journal entry.

    Every line is re-posted with its side flipped, so each touched account
    returns to its prior balance. The original stays untouched.
    """
    if uow is None:
        with UnitOfWork() as own:
            return _reverse(
                own,
                business_id,
                journal_entry_id,
                user_id,
                reason=reason,
                transaction_date=transaction_date,
            )

    uow.assert_active()
    return _reverse(
        uow,
        business_id,
        journal_entry_id,
        user_id,
        reason=reason,
        transaction_date=transaction_date,
    )
