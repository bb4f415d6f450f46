# accounting/api/filters.py

import django_filters

from accounting.models.journal import JournalEntry


class JournalEntryFilter(django_filters.FilterSet):
    """
    ?start_date=YYYY-MM-DD&end_date=YYYY-MM-DD&reference_type=pos_sale
    Date bounds are inclusive on transaction_date.
    """

    start_date = django_filters.DateFilter(field_name="transaction_date", lookup_expr="gte")
    end_date = django_filters.DateFilter(field_name="transaction_date", lookup_expr="lte")
    reference_type = django_filters.ChoiceFilter(choices=JournalEntry.REFERENCE_TYPES)
    reference_id = django_filters.CharFilter(field_name="reference_id")

    class Meta:
        model = JournalEntry
        fields = ["start_date", "end_date", "reference_type", "reference_id"]
