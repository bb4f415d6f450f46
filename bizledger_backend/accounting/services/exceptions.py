# accounting/services/exceptions.py

"""
ACCOUNTING SERVICE ERRORS

Centralized domain errors for accounting services.

Every error carries an ErrorKind so callers (API views, posting builders,
management commands) can branch on the failure class without parsing
messages. Messages stay human readable: most failures come from
misconfigured chart-of-accounts data and must be actionable.
"""

from __future__ import annotations

from enum import Enum


class ErrorKind(str, Enum):
    INVALID_ENTRY = "invalid_entry"
    UNBALANCED = "unbalanced"
    ACCOUNT_NOT_FOUND = "account_not_found"
    NORMAL_BALANCE_MISMATCH = "normal_balance_mismatch"
    STORAGE_FAILURE = "storage_failure"


class AccountingServiceError(Exception):
    """Base exception for all accounting service failures."""

    kind: ErrorKind = ErrorKind.INVALID_ENTRY


class JournalEntryCreationError(AccountingServiceError):
    """Raised when a proposed journal entry is structurally invalid."""


class UnbalancedEntryError(JournalEntryCreationError):
    """Raised when debits and credits of a proposed entry differ."""

    kind = ErrorKind.UNBALANCED

    def __init__(self, total_debits, total_credits):
        self.total_debits = total_debits
        self.total_credits = total_credits
        super().__init__(
            f"Journal entry not balanced: debits={total_debits} credits={total_credits}"
        )


class AccountResolutionError(AccountingServiceError):
    """Raised when an account code cannot be resolved for a business."""

    kind = ErrorKind.ACCOUNT_NOT_FOUND

    def __init__(self, business_id, account_code, message: str | None = None):
        self.business_id = business_id
        self.account_code = account_code
        super().__init__(
            message or f"Account {account_code} not found for business {business_id}"
        )


class NormalBalanceMismatchError(JournalEntryCreationError):
    """Raised when a line's normal-balance claim disagrees with the account."""

    kind = ErrorKind.NORMAL_BALANCE_MISMATCH

    def __init__(self, *, account_code, claimed, configured):
        self.account_code = account_code
        self.claimed = claimed
        self.configured = configured
        super().__init__(
            f"Account {account_code} is {configured}-normal but the line claims {claimed}"
        )


class ReversalError(JournalEntryCreationError):
    """Raised when a journal entry cannot be reversed."""


class StorageFailureError(AccountingServiceError):
    """Raised when the posting transaction (or its audit record) fails to write."""

    kind = ErrorKind.STORAGE_FAILURE


class PostingRuleError(AccountingServiceError):
    """Raised when a posting rule cannot be applied."""
