# accounting/tests/test_commands.py

from __future__ import annotations

from decimal import Decimal
from io import StringIO

from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase

from accounting.journal_payload import CREDIT, DEBIT
from accounting.models.account import Account
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.journal_entry_service import post_journal_entry
from accounting.tests.utils import entry, line, make_business, make_user, seed_standard_chart
from businesses.models import Business


class SeedBusinessChartCommandTests(TestCase):
    def _seed(self, **options):
        out = StringIO()
        call_command("seed_business_chart", stdout=out, **options)
        return out.getvalue()

    def test_creates_business_and_chart(self):
        output = self._seed(business_name="Mama Put Kitchen", code="MPK")

        business = Business.objects.get(code="MPK")
        self.assertIn(f"business_id={business.id}", output)

        accounts = {a.code: a for a in Account.objects.filter(business=business)}
        self.assertEqual(accounts["1110"].normal_balance, Account.DEBIT)
        self.assertEqual(accounts["2100"].normal_balance, Account.CREDIT)
        self.assertEqual(accounts["4100"].normal_balance, Account.CREDIT)
        # contra-revenue
        self.assertEqual(accounts["4112"].normal_balance, Account.DEBIT)

    def test_is_idempotent(self):
        self._seed(business_name="Repeat Ltd", code="REP")
        count = Account.objects.filter(business__code="REP").count()

        output = self._seed(business_name="Repeat Ltd", code="REP")

        self.assertEqual(Business.objects.filter(code="REP").count(), 1)
        self.assertEqual(Account.objects.filter(business__code="REP").count(), count)
        self.assertIn("0 new accounts, 0 updated", output)

    def test_repairs_drifted_accounts(self):
        self._seed(business_name="Drift Ltd", code="DRF")
        Account.objects.filter(business__code="DRF", code="1300").update(name="Stock", is_active=False)

        output = self._seed(business_name="Drift Ltd", code="DRF")

        inventory = Account.objects.get(business__code="DRF", code="1300")
        self.assertEqual(inventory.name, "Inventory")
        self.assertTrue(inventory.is_active)
        self.assertIn("1 updated", output)

    def test_polarity_of_posted_accounts_is_kept(self):
        self._seed(business_name="Polarity Ltd", code="POL")
        business = Business.objects.get(code="POL")
        Account.objects.filter(business=business, code__in=("4112", "4113")).update(normal_balance=Account.CREDIT)

        post_journal_entry(
            entry(business, [line("1200", "8.00", DEBIT), line("4112", "8.00", CREDIT)]),
            make_user().id,
        )

        err = StringIO()
        out = StringIO()
        call_command("seed_business_chart", business_name="Polarity Ltd", code="POL", stdout=out, stderr=err)

        self.assertEqual(Account.objects.get(business=business, code="4112").normal_balance, Account.CREDIT)
        self.assertEqual(Account.objects.get(business=business, code="4113").normal_balance, Account.DEBIT)
        self.assertIn("Account 4112 has postings", err.getvalue())
        self.assertIn("1 account(s) kept their polarity", out.getvalue())

    def test_blank_name_is_rejected(self):
        with self.assertRaises(CommandError):
            self._seed(business_name="   ")


class VerifyLedgerCommandTests(TestCase):
    def setUp(self):
        self.business = make_business("Verified Ltd")
        seed_standard_chart(self.business)
        post_journal_entry(
            entry(self.business, [line("1110", "25.00", DEBIT), line("4100", "25.00", CREDIT)]),
            make_user().id,
        )

    def test_clean_ledger_verifies(self):
        out = StringIO()
        call_command("verify_ledger", "--strict", stdout=out, stderr=StringIO())

        self.assertIn("LEDGER VERIFIED", out.getvalue())
        self.assertIn("debits=25.00 credits=25.00", out.getvalue())

    def test_single_business(self):
        out = StringIO()
        call_command("verify_ledger", business_id=str(self.business.id), stdout=out, stderr=StringIO())
        self.assertIn(str(self.business.id), out.getvalue())

    def test_strict_exits_non_zero_on_discrepancy(self):
        GeneralLedgerEntry.objects.filter(account__code="1110").update(balance=Decimal("-25.00"))

        err = StringIO()
        with self.assertRaises(SystemExit) as ctx:
            call_command("verify_ledger", "--strict", stdout=StringIO(), stderr=err)

        self.assertEqual(ctx.exception.code, 1)
        self.assertIn("cached_balance_mismatch", err.getvalue())

    def test_non_strict_reports_without_exiting(self):
        GeneralLedgerEntry.objects.filter(account__code="1110").update(balance=Decimal("-25.00"))

        err = StringIO()
        call_command("verify_ledger", stdout=StringIO(), stderr=err)

        self.assertIn("VERIFICATION FOUND ISSUES", err.getvalue())

    def test_bad_business_argument(self):
        with self.assertRaises(CommandError):
            call_command("verify_ledger", business_id="not-a-uuid", stdout=StringIO())
        with self.assertRaises(CommandError):
            call_command(
                "verify_ledger",
                business_id="00000000-0000-0000-0000-000000000000",
                stdout=StringIO(),
            )
