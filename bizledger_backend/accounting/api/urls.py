# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

# The ViewSet lives in accounting/api/view.py (singular); import it directly
# to avoid circular imports through views/__init__.py.
from accounting.api.view import JournalEntryViewSet
from accounting.api.views.accounts import BusinessAccountsView
from accounting.api.views.general_ledger import GeneralLedgerView
from accounting.api.views.trial_balance import TrialBalanceView

router = DefaultRouter()
router.register("journal-entries", JournalEntryViewSet, basename="journal-entry")

urlpatterns = [
    # Router endpoints
    path("", include(router.urls)),
    # Reports
    path("trial-balance/", TrialBalanceView.as_view(), name="trial-balance"),
    path(
        "general-ledger/<str:account_code>/",
        GeneralLedgerView.as_view(),
        name="general-ledger",
    ),
    # Master data (read-only, business-scoped)
    path("accounts/", BusinessAccountsView.as_view(), name="accounts"),
]
