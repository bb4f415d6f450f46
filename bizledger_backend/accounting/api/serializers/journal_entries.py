# accounting/api/serializers/journal_entries.py

from decimal import Decimal

from rest_framework import serializers

from accounting.journal_payload import REFERENCE_KINDS, REF_NONE, SIDES, ProposedEntry
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from accounting.services.exceptions import JournalEntryCreationError
from accounting.services.journal_query_service import summarize_entry
from businesses.models import Business


# ============================================================
# READ
# ============================================================


class JournalEntryLineSerializer(serializers.ModelSerializer):
    account_id = serializers.IntegerField(read_only=True)
    account_code = serializers.CharField(source="account.code", read_only=True)
    account_name = serializers.CharField(source="account.name", read_only=True)

    class Meta:
        model = JournalEntryLine
        fields = (
            "id",
            "line_number",
            "account_id",
            "account_code",
            "account_name",
            "side",
            "amount",
            "description",
        )
        read_only_fields = fields


class JournalEntrySerializer(serializers.ModelSerializer):
    """
    Journal header + nested lines + recomputed totals
    (total_debits, total_credits, is_balanced, line_count).
    """

    lines = JournalEntryLineSerializer(many=True, read_only=True)

    class Meta:
        model = JournalEntry
        fields = (
            "id",
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
            "lines",
        )
        read_only_fields = fields

    def to_representation(self, instance):
        data = super().to_representation(instance)
        summary = summarize_entry(instance)
        data["total_debits"] = str(summary["total_debits"])
        data["total_credits"] = str(summary["total_credits"])
        data["is_balanced"] = summary["is_balanced"]
        data["line_count"] = summary["line_count"]
        return data


# ============================================================
# WRITE
# ============================================================


class JournalEntryLineInputSerializer(serializers.Serializer):
    account_code = serializers.CharField(max_length=20)
    amount = serializers.DecimalField(
        max_digits=14,
        decimal_places=2,
        min_value=Decimal("0.01"),
    )
    side = serializers.ChoiceField(choices=SIDES)
    description = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    normal_balance = serializers.ChoiceField(choices=SIDES, required=False, allow_null=True, default=None)


class JournalEntryCreateSerializer(serializers.Serializer):
    """
    Validates request shape and builds the ProposedEntry handed to the poster.
    Balance and chart checks are the ledger's job, not the serializer's.
    """

    business = serializers.PrimaryKeyRelatedField(queryset=Business.objects.filter(is_active=True))
    description = serializers.CharField(max_length=1000)
    transaction_date = serializers.DateField(required=False, allow_null=True, default=None)
    reference_type = serializers.ChoiceField(choices=REFERENCE_KINDS, required=False, default=REF_NONE)
    reference_id = serializers.CharField(max_length=64, required=False, allow_null=True, allow_blank=True, default=None)
    lines = JournalEntryLineInputSerializer(many=True, allow_empty=False)

    def validate(self, attrs):
        try:
            attrs["entry"] = ProposedEntry.from_raw(
                business_id=attrs["business"].id,
                description=attrs["description"],
                raw_lines=[dict(line) for line in attrs["lines"]],
                transaction_date=attrs.get("transaction_date"),
                reference_type=attrs.get("reference_type"),
                reference_id=attrs.get("reference_id"),
            )
        except JournalEntryCreationError as exc:
            raise serializers.ValidationError({"detail": str(exc)}) from exc
        return attrs


class JournalEntryReverseSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=500, required=False, allow_blank=True, default="")
    transaction_date = serializers.DateField(required=False, allow_null=True, default=None)
