# accounting/api/serializers/accounts.py

from rest_framework import serializers
from accounting.models.account import Account


class AccountListSerializer(serializers.ModelSerializer):
    """
    Read-only serializer for listing a business's chart of accounts.
    UI needs: code, name, type, polarity (and id for keys).
    """

    class Meta:
        model = Account
        fields = ("id", "business", "code", "name", "account_type", "normal_balance", "is_active")
        read_only_fields = fields
