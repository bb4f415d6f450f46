# accounting/api/views/__init__.py

"""
accounting.api.views package

Important:
- The JournalEntryViewSet is defined in accounting.api.view (singular).
- Do NOT import accounting.api.urls from here to avoid circular imports.
"""

from accounting.api.view import JournalEntryViewSet
from accounting.api.views.accounts import BusinessAccountsView
from accounting.api.views.general_ledger import GeneralLedgerView
from accounting.api.views.trial_balance import TrialBalanceView

__all__ = [
    "JournalEntryViewSet",
    "BusinessAccountsView",
    "GeneralLedgerView",
    "TrialBalanceView",
]
