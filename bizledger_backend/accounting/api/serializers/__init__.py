# accounting/api/serializers/__init__.py

from accounting.api.serializers.accounts import AccountListSerializer
from accounting.api.serializers.journal_entries import (
    JournalEntryCreateSerializer,
    JournalEntryLineSerializer,
    JournalEntryReverseSerializer,
    JournalEntrySerializer,
)

__all__ = [
    "AccountListSerializer",
    "JournalEntryCreateSerializer",
    "JournalEntryLineSerializer",
    "JournalEntryReverseSerializer",
    "JournalEntrySerializer",
]
