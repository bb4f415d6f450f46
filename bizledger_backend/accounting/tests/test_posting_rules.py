# accounting/tests/test_posting_rules.py

from __future__ import annotations

from decimal import Decimal

from django.test import TestCase

from accounting.journal_payload import CREDIT, DEBIT
from accounting.models.journal import JournalEntry
from accounting.services.exceptions import AccountResolutionError, PostingRuleError
from accounting.services.general_ledger_service import get_general_ledger
from accounting.services.ledger_integrity import find_ledger_discrepancies
from accounting.services.posting_rules import (
    build_inventory_purchase_entry,
    build_pos_sale_entries,
    post_early_payment_discount,
    post_inventory_purchase,
    post_pos_sale,
    post_vendor_payment,
)
from accounting.services.trial_balance_service import get_trial_balance
from accounting.tests.utils import make_business, make_user, seed_standard_chart


def _balances(business_id):
    return {row["account_code"]: row["balance"] for row in get_trial_balance(business_id)["accounts"]}


class PostingRuleBuilderTests(TestCase):
    """
    Builders are pure: they only shape ProposedEntry objects.
    """

    def setUp(self):
        self.business = make_business("Builder Co")

    def test_inventory_purchase_on_credit_targets_payables(self):
        proposed = build_inventory_purchase_entry(
            business_id=self.business.id,
            purchase_order_id="PO-1",
            amount="120.00",
            payment_method="credit",
        )

        self.assertEqual(
            [(ln.account_code, ln.side, ln.claimed_normal_balance) for ln in proposed.lines],
            [("1300", DEBIT, DEBIT), ("2100", CREDIT, CREDIT)],
        )
        self.assertEqual(proposed.reference.kind, "purchase_order")
        self.assertEqual(proposed.reference.id, "PO-1")

    def test_inventory_purchase_in_cash_claims_cash_polarity(self):
        proposed = build_inventory_purchase_entry(
            business_id=self.business.id,
            purchase_order_id="PO-2",
            amount="10",
            payment_method="Cash",
        )
        self.assertEqual(
            [(ln.account_code, ln.side, ln.claimed_normal_balance) for ln in proposed.lines],
            [("1300", DEBIT, DEBIT), ("1110", CREDIT, DEBIT)],
        )

    def test_pos_sale_without_cogs_builds_one_entry(self):
        entries = build_pos_sale_entries(
            business_id=self.business.id,
            sale_id="S-1",
            payment_method="card",
            product_revenue="15.00",
        )
        self.assertEqual(len(entries), 1)
        self.assertEqual([ln.account_code for ln in entries[0].lines], ["1120", "4100"])

    def test_pos_sale_on_account_debits_receivables(self):
        (revenue,) = build_pos_sale_entries(
            business_id=self.business.id,
            sale_id="S-2",
            payment_method="invoice",
            service_revenue="40.00",
        )
        self.assertEqual([ln.account_code for ln in revenue.lines], ["1200", "4200"])

    def test_invalid_inputs_raise_before_posting(self):
        cases = [
            lambda: build_inventory_purchase_entry(
                business_id=self.business.id, purchase_order_id="PO", amount="0", payment_method="cash"
            ),
            lambda: build_inventory_purchase_entry(
                business_id=self.business.id, purchase_order_id="PO", amount="5", payment_method="barter"
            ),
            lambda: build_inventory_purchase_entry(
                business_id=self.business.id, purchase_order_id="", amount="5", payment_method="cash"
            ),
            lambda: build_pos_sale_entries(
                business_id=self.business.id, sale_id="S", payment_method="cash"
            ),
            lambda: build_pos_sale_entries(
                business_id=self.business.id, sale_id="S", payment_method="cash", product_revenue="-1"
            ),
            lambda: build_pos_sale_entries(
                business_id=self.business.id, sale_id="S", payment_method="", product_revenue="1"
            ),
            lambda: build_pos_sale_entries(
                business_id=self.business.id, sale_id="S", payment_method="cash", product_revenue="abc"
            ),
        ]

        for build in cases:
            with self.subTest(build=build):
                with self.assertRaises(PostingRuleError):
                    build()


class PostingRulePostingTests(TestCase):
    def setUp(self):
        self.business = make_business("Posting Co")
        seed_standard_chart(self.business)
        self.user = make_user()

    def test_inventory_purchase_posts_and_balances(self):
        post_inventory_purchase(
            user_id=self.user.id,
            business_id=self.business.id,
            purchase_order_id="PO-9",
            amount="300.00",
            payment_method="bank",
        )

        balances = _balances(self.business.id)
        self.assertEqual(balances["1300"], Decimal("300.00"))
        self.assertEqual(balances["1120"], Decimal("-300.00"))
        self.assertEqual(find_ledger_discrepancies(self.business.id), [])

    def test_pos_sale_posts_revenue_and_cogs_together(self):
        posted = post_pos_sale(
            user_id=self.user.id,
            business_id=self.business.id,
            sale_id="S-10",
            payment_method="cash",
            product_revenue="80.00",
            service_revenue="20.00",
            cogs_amount="45.00",
        )

        self.assertEqual(len(posted), 2)
        self.assertEqual(JournalEntry.objects.filter(reference_type="pos_sale", reference_id="S-10").count(), 2)

        balances = _balances(self.business.id)
        self.assertEqual(balances["1110"], Decimal("100.00"))
        self.assertEqual(balances["4100"], Decimal("80.00"))
        self.assertEqual(balances["4200"], Decimal("20.00"))
        self.assertEqual(balances["5100"], Decimal("45.00"))
        self.assertEqual(balances["1300"], Decimal("-45.00"))

    def test_pos_sale_is_all_or_nothing(self):
        # COGS leg cannot resolve: revenue leg must not survive either
        self.business.accounts.filter(code="5100").update(is_active=False)

        with self.assertRaises(AccountResolutionError):
            post_pos_sale(
                user_id=self.user.id,
                business_id=self.business.id,
                sale_id="S-11",
                payment_method="cash",
                product_revenue="10.00",
                cogs_amount="4.00",
            )

        self.assertFalse(JournalEntry.objects.filter(reference_id="S-11").exists())

    def test_early_payment_discount_reduces_receivables(self):
        post_pos_sale(
            user_id=self.user.id,
            business_id=self.business.id,
            sale_id="S-12",
            payment_method="on_account",
            product_revenue="200.00",
        )
        post_early_payment_discount(
            user_id=self.user.id,
            business_id=self.business.id,
            invoice_id="INV-12",
            discount_amount="4.00",
        )

        balances = _balances(self.business.id)
        self.assertEqual(balances["1200"], Decimal("196.00"))
        self.assertEqual(balances["4112"], Decimal("4.00"))

        ar = get_general_ledger(self.business.id, "1200")
        self.assertEqual(ar["ending_balance"], Decimal("196.00"))

    def test_vendor_payment_settles_payables(self):
        post_inventory_purchase(
            user_id=self.user.id,
            business_id=self.business.id,
            purchase_order_id="PO-20",
            amount="60.00",
            payment_method="credit",
        )
        post_vendor_payment(
            user_id=self.user.id,
            business_id=self.business.id,
            payment_id="VP-20",
            amount="60.00",
            payment_method="mobile_money",
        )

        balances = _balances(self.business.id)
        self.assertEqual(balances["2100"], Decimal("0.00"))
        self.assertEqual(balances["1130"], Decimal("-60.00"))
        self.assertEqual(balances["1300"], Decimal("60.00"))

    def test_vendor_payment_rejects_unknown_method(self):
        with self.assertRaises(PostingRuleError):
            post_vendor_payment(
                user_id=self.user.id,
                business_id=self.business.id,
                payment_id="VP-21",
                amount="1.00",
                payment_method="credit",
            )
        self.assertFalse(JournalEntry.objects.exists())
