from django.contrib import admin

from accounting.models.account import Account
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from accounting.models.ledger import GeneralLedgerEntry


class ImmutableAdminMixin:
    def has_add_permission(self, request, obj=None):
        return False

    def has_change_permission(self, request, obj=None):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


# ============================================================
# ACCOUNT
# ============================================================


@admin.register(Account)
class AccountAdmin(admin.ModelAdmin):
    list_display = (
        "code",
        "name",
        "account_type",
        "normal_balance",
        "business",
        "is_active",
    )
    list_filter = ("account_type", "normal_balance", "is_active", "business")
    search_fields = ("code", "name")
    ordering = ("business", "code")
    readonly_fields = ("created_at", "updated_at")

    fieldsets = (
        (
            "Account Identity",
            {
                "fields": ("business", "code", "name", "account_type", "normal_balance"),
            },
        ),
        (
            "Status",
            {
                "fields": ("is_active",),
            },
        ),
        (
            "System Fields",
            {
                "fields": ("created_at", "updated_at"),
            },
        ),
    )


# ============================================================
# JOURNAL ENTRY (READ-ONLY)
# ============================================================


class JournalEntryLineInline(ImmutableAdminMixin, admin.TabularInline):
    model = JournalEntryLine
    extra = 0
    fields = ("line_number", "account", "side", "amount", "description")
    readonly_fields = fields
    ordering = ("line_number",)


@admin.register(JournalEntry)
class JournalEntryAdmin(ImmutableAdminMixin, admin.ModelAdmin):
    list_display = (
        "reference_number",
        "business",
        "transaction_date",
        "description",
        "reference_type",
        "reference_id",
        "total_amount",
        "created_at",
    )
    list_filter = ("reference_type", "transaction_date", "business")
    search_fields = ("reference_number", "description", "reference_id")
    ordering = ("-transaction_date", "-id")
    inlines = [JournalEntryLineInline]

    readonly_fields = (
        "business",
        "reference_number",
        "description",
        "transaction_date",
        "reference_type",
        "reference_id",
        "total_amount",
        "created_by",
        "reversal_of",
        "created_at",
    )


# ============================================================
# GENERAL LEDGER ENTRY (STRICTLY IMMUTABLE)
# ============================================================


@admin.register(GeneralLedgerEntry)
class GeneralLedgerEntryAdmin(ImmutableAdminMixin, admin.ModelAdmin):
    list_display = (
        "id",
        "transaction_date",
        "journal_entry",
        "account",
        "debit_amount",
        "credit_amount",
        "balance",
    )
    list_filter = ("account__business", "account")
    search_fields = ("journal_entry__reference_number", "account__code")
    ordering = ("transaction_date", "id")

    readonly_fields = (
        "business",
        "account",
        "journal_entry",
        "journal_entry_line",
        "transaction_date",
        "debit_amount",
        "credit_amount",
        "balance",
        "created_at",
    )
