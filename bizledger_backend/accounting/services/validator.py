# accounting/services/validator.py

"""
JOURNAL ENTRY VALIDATOR

A pure gate in front of the poster. No writes, ever.

Order of checks:
0. Structure (description, >= 2 lines, positive amounts, date policy)
1. Sum debits and credits as Decimal
2. Reject unbalanced entries
3. Resolve every line's account for the business
4. Reject lines whose normal-balance claim disagrees with the account

The ValidatedEntry carries the resolved Account for each line so the poster
never re-queries the chart.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional, Tuple

from django.conf import settings
from django.utils import timezone

from accounting.journal_payload import SIDES, ProposedEntry, ProposedLine, to_money
from accounting.models.account import Account
from accounting.services.chart_of_accounts import resolve_account
from accounting.services.exceptions import (
    JournalEntryCreationError,
    NormalBalanceMismatchError,
    UnbalancedEntryError,
)

BALANCE_TOLERANCE = Decimal("0.01")
MAX_DESCRIPTION_LENGTH = 1000


@dataclass(frozen=True)
class ValidatedLine:
    line: ProposedLine
    account: Account
    amount: Decimal

    @property
    def signed_amount(self) -> Decimal:
        return self.amount if self.line.side == self.account.normal_balance else -self.amount


@dataclass(frozen=True)
class ValidatedEntry:
    entry: ProposedEntry
    lines: Tuple[ValidatedLine, ...]
    transaction_date: date
    total_debits: Decimal
    total_credits: Decimal

    @property
    def business_id(self):
        return self.entry.business_id

    @property
    def reverses(self) -> Optional[int]:
        return self.entry.reverses


def is_balanced(total_debits: Decimal, total_credits: Decimal) -> bool:
    return abs(total_debits - total_credits) < BALANCE_TOLERANCE


def _check_structure(entry: ProposedEntry) -> date:
    if not entry.description:
        raise JournalEntryCreationError("Journal entry description is required")
    if len(entry.description) > MAX_DESCRIPTION_LENGTH:
        raise JournalEntryCreationError(
            f"Description must not exceed {MAX_DESCRIPTION_LENGTH} characters"
        )

    lines = entry.lines or ()
    if len(lines) < 2:
        raise JournalEntryCreationError(
            "Journal entry must have at least 2 lines (debit and credit)"
        )

    for i, line in enumerate(lines, start=1):
        if not (line.account_code or "").strip():
            raise JournalEntryCreationError(f"Line {i} account_code is required")
        if line.side not in SIDES:
            raise JournalEntryCreationError(f"Line {i} side must be 'debit' or 'credit'")
        if line.normal_balance is not None and line.normal_balance not in SIDES:
            raise JournalEntryCreationError(
                f"Line {i} normal_balance must be 'debit' or 'credit'"
            )
        if to_money(line.amount) <= Decimal("0.00"):
            raise JournalEntryCreationError(
                f"Line {i} amount must be > 0 for account {line.account_code}"
            )

    tx_date = entry.transaction_date or timezone.localdate()
    allow_future = bool(getattr(settings, "LEDGER_ALLOW_FUTURE_DATES", True))
    if not allow_future and tx_date > timezone.localdate():
        raise JournalEntryCreationError("Journal date cannot be in the future")

    return tx_date


def validate_journal_entry(uow, entry: ProposedEntry) -> ValidatedEntry:
    tx_date = _check_structure(entry)

    total_debits = Decimal("0.00")
    total_credits = Decimal("0.00")
    for line in entry.lines:
        amount = to_money(line.amount)
        if line.side == Account.DEBIT:
            total_debits += amount
        else:
            total_credits += amount

    if not is_balanced(total_debits, total_credits):
        raise UnbalancedEntryError(total_debits, total_credits)

    validated: list[ValidatedLine] = []
    for line in entry.lines:
        account = resolve_account(uow, entry.business_id, line.account_code)

        claimed = line.claimed_normal_balance
        if claimed != account.normal_balance:
            raise NormalBalanceMismatchError(
                account_code=account.code,
                claimed=claimed,
                configured=account.normal_balance,
            )

        validated.append(ValidatedLine(line=line, account=account, amount=to_money(line.amount)))

    return ValidatedEntry(
        entry=entry,
        lines=tuple(validated),
        transaction_date=tx_date,
        total_debits=total_debits,
        total_credits=total_credits,
    )
