# accounting/tests/test_journal_integrity.py

from __future__ import annotations

from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.core.exceptions import ValidationError
from django.db import DatabaseError, connection
from django.test import TestCase, override_settings
from django.test.utils import CaptureQueriesContext
from django.utils import timezone

from accounting.journal_payload import CREDIT, DEBIT, Reference
from accounting.models.journal import JournalEntry
from accounting.models.journal_line import JournalEntryLine
from accounting.models.ledger import GeneralLedgerEntry
from accounting.services.exceptions import (
    AccountResolutionError,
    ErrorKind,
    JournalEntryCreationError,
    NormalBalanceMismatchError,
    StorageFailureError,
    UnbalancedEntryError,
)
from accounting.services.chart_of_accounts import resolve_account
from accounting.services.journal_entry_service import post_journal_entry
from accounting.services.ledger_integrity import find_ledger_discrepancies
from accounting.services.unit_of_work import UnitOfWork
from accounting.tests.utils import entry, line, make_business, make_user, seed_standard_chart
from audit.models import AuditLog


def failing_audit_sink(**kwargs):
    raise RuntimeError("audit store offline")


class JournalEntryServiceTests(TestCase):
    """
    Posting through the ledger engine.

    GUARANTEES:
    - Header, lines, ledger rows and audit record are written together
    - Every rejection writes nothing
    """

    def setUp(self):
        self.business = make_business("Acme Retail")
        self.accounts = seed_standard_chart(self.business)
        self.user = make_user("accountant")

    def _row_counts(self):
        return (
            JournalEntry.objects.count(),
            JournalEntryLine.objects.count(),
            GeneralLedgerEntry.objects.count(),
            AuditLog.objects.count(),
        )

    # --------------------------------------------------
    # Happy path
    # --------------------------------------------------

    def test_balanced_entry_creates_header_lines_and_ledger(self):
        posted = post_journal_entry(
            entry(
                self.business,
                [line("1110", "100.00", DEBIT), line("4100", "100.00", CREDIT)],
                description="Cash sale",
                reference=Reference.pos_sale("S-1"),
            ),
            self.user.id,
        )

        je = posted.journal_entry
        self.assertEqual(je.total_amount, Decimal("100.00"))
        self.assertEqual(je.reference_type, JournalEntry.REF_POS_SALE)
        self.assertEqual(je.reference_id, "S-1")
        self.assertEqual(je.created_by_id, self.user.id)
        self.assertTrue(je.reference_number.startswith("JE-"))

        self.assertEqual(JournalEntryLine.objects.filter(journal_entry=je).count(), 2)
        self.assertEqual(GeneralLedgerEntry.objects.filter(journal_entry=je).count(), 2)
        self.assertEqual(len(posted.lines), 2)
        self.assertEqual(len(posted.ledger_entries), 2)

        self.assertEqual(
            posted.summary,
            {
                "total_debits": Decimal("100.00"),
                "total_credits": Decimal("100.00"),
                "is_balanced": True,
            },
        )

    def test_ledger_rows_carry_signed_balance_by_account_polarity(self):
        posted = post_journal_entry(
            entry(self.business, [line("1110", "100.00", DEBIT), line("4100", "100.00", CREDIT)]),
            self.user.id,
        )

        cash_row = GeneralLedgerEntry.objects.get(journal_entry=posted.journal_entry, account__code="1110")
        revenue_row = GeneralLedgerEntry.objects.get(journal_entry=posted.journal_entry, account__code="4100")

        self.assertEqual(cash_row.debit_amount, Decimal("100.00"))
        self.assertEqual(cash_row.credit_amount, Decimal("0.00"))
        self.assertEqual(cash_row.balance, Decimal("100.00"))

        self.assertEqual(revenue_row.debit_amount, Decimal("0.00"))
        self.assertEqual(revenue_row.credit_amount, Decimal("100.00"))
        self.assertEqual(revenue_row.balance, Decimal("100.00"))

    def test_crediting_debit_normal_account_with_explicit_polarity_is_negative(self):
        posted = post_journal_entry(
            entry(
                self.business,
                [
                    line("1300", "40.00", DEBIT),
                    line("1110", "40.00", CREDIT, normal_balance=DEBIT),
                ],
            ),
            self.user.id,
        )

        cash_row = GeneralLedgerEntry.objects.get(journal_entry=posted.journal_entry, account__code="1110")
        self.assertEqual(cash_row.balance, Decimal("-40.00"))

    def test_line_numbers_follow_input_order(self):
        posted = post_journal_entry(
            entry(
                self.business,
                [
                    line("1110", "70.00", DEBIT),
                    line("4100", "50.00", CREDIT),
                    line("4200", "20.00", CREDIT),
                ],
            ),
            self.user.id,
        )

        codes = list(
            JournalEntryLine.objects.filter(journal_entry=posted.journal_entry)
            .order_by("line_number")
            .values_list("line_number", "account__code")
        )
        self.assertEqual(codes, [(1, "1110"), (2, "4100"), (3, "4200")])

    def test_audit_record_written_once_per_posting(self):
        posted = post_journal_entry(
            entry(self.business, [line("1110", "25.00", DEBIT), line("4100", "25.00", CREDIT)], description="Audit me"),
            self.user.id,
        )

        logs = AuditLog.objects.filter(resource_type="journal_entry", resource_id=str(posted.journal_entry.id))
        self.assertEqual(logs.count(), 1)

        log = logs.get()
        self.assertEqual(log.action, "accounting.journal_entry.created")
        self.assertEqual(log.business_id, self.business.id)
        self.assertEqual(log.user_id, self.user.id)
        self.assertEqual(log.new_values["description"], "Audit me")
        self.assertEqual(log.new_values["total_amount"], "25.00")
        self.assertEqual(log.new_values["line_count"], 2)
        self.assertEqual(log.new_values["reference_number"], posted.journal_entry.reference_number)

    def test_posting_logs_info_on_success(self):
        with self.assertLogs("accounting.services.journal_entry_service", level="INFO") as cm:
            post_journal_entry(
                entry(self.business, [line("1110", "5.00", DEBIT), line("4100", "5.00", CREDIT)]),
                self.user.id,
            )
        self.assertTrue(any("Posted journal entry" in m for m in cm.output))

    # --------------------------------------------------
    # Rejections (nothing written)
    # --------------------------------------------------

    def test_unbalanced_raises_and_writes_nothing(self):
        with self.assertRaises(UnbalancedEntryError) as ctx:
            post_journal_entry(
                entry(self.business, [line("1110", "100.00", DEBIT), line("4100", "90.00", CREDIT)]),
                self.user.id,
            )

        self.assertEqual(ctx.exception.kind, ErrorKind.UNBALANCED)
        self.assertEqual(self._row_counts(), (0, 0, 0, 0))

    def test_unknown_account_raises_actionable_message(self):
        other = make_business("Other Co")

        with self.assertRaises(AccountResolutionError) as ctx:
            post_journal_entry(
                entry(other, [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)]),
                self.user.id,
            )

        self.assertEqual(ctx.exception.kind, ErrorKind.ACCOUNT_NOT_FOUND)
        self.assertIn(f"Account 1110 not found for business {other.id}", str(ctx.exception))
        self.assertEqual(self._row_counts(), (0, 0, 0, 0))

    def test_inactive_account_is_not_resolved(self):
        account = self.accounts["4200"]
        account.is_active = False
        account.save()

        with self.assertRaises(AccountResolutionError):
            post_journal_entry(
                entry(self.business, [line("1110", "10.00", DEBIT), line("4200", "10.00", CREDIT)]),
                self.user.id,
            )

    def test_debit_on_credit_normal_account_is_mismatch(self):
        with self.assertRaises(NormalBalanceMismatchError) as ctx:
            post_journal_entry(
                entry(self.business, [line("4100", "10.00", DEBIT), line("1110", "10.00", CREDIT, normal_balance=DEBIT)]),
                self.user.id,
            )

        self.assertEqual(ctx.exception.kind, ErrorKind.NORMAL_BALANCE_MISMATCH)
        self.assertEqual(ctx.exception.account_code, "4100")
        self.assertEqual(self._row_counts(), (0, 0, 0, 0))

    def test_wrong_polarity_claim_is_mismatch(self):
        with self.assertRaises(NormalBalanceMismatchError):
            post_journal_entry(
                entry(
                    self.business,
                    [line("1300", "10.00", DEBIT), line("1110", "10.00", CREDIT, normal_balance=CREDIT)],
                ),
                self.user.id,
            )

    def test_rejection_logs_warning_with_kind(self):
        with self.assertLogs("accounting.services.journal_entry_service", level="WARNING") as cm:
            with self.assertRaises(UnbalancedEntryError):
                post_journal_entry(
                    entry(self.business, [line("1110", "1.00", DEBIT), line("4100", "2.00", CREDIT)]),
                    self.user.id,
                )
        self.assertTrue(any("unbalanced" in m for m in cm.output))

    def test_structural_rejections(self):
        cases = [
            entry(self.business, [line("1110", "10.00", DEBIT)]),
            entry(self.business, [line("1110", "0.00", DEBIT), line("4100", "0.00", CREDIT)]),
            entry(self.business, [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)], description=""),
        ]

        for proposed in cases:
            with self.subTest(proposed=proposed):
                with self.assertRaises(JournalEntryCreationError) as ctx:
                    post_journal_entry(proposed, self.user.id)
                self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_ENTRY)

        self.assertEqual(self._row_counts(), (0, 0, 0, 0))

    def test_future_dates_allowed_by_default(self):
        future = timezone.localdate() + timedelta(days=3)
        posted = post_journal_entry(
            entry(self.business, [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)], transaction_date=future),
            self.user.id,
        )
        self.assertEqual(posted.journal_entry.transaction_date, future)

    @override_settings(LEDGER_ALLOW_FUTURE_DATES=False)
    def test_future_dates_rejected_when_disabled(self):
        with self.assertRaises(JournalEntryCreationError) as ctx:
            post_journal_entry(
                entry(
                    self.business,
                    [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)],
                    transaction_date=timezone.localdate() + timedelta(days=1),
                ),
                self.user.id,
            )

        self.assertEqual(ctx.exception.kind, ErrorKind.INVALID_ENTRY)
        self.assertEqual(self._row_counts(), (0, 0, 0, 0))

    # --------------------------------------------------
    # Account locking
    # --------------------------------------------------

    def _lock_queries(self, queries):
        return [
            q["sql"]
            for q in queries
            if '"accounting_account"."id" IN (' in q["sql"]
            and 'ORDER BY "accounting_account"."id" ASC' in q["sql"]
        ]

    def test_touched_accounts_are_locked_in_id_order(self):
        with CaptureQueriesContext(connection) as ctx:
            post_journal_entry(
                entry(self.business, [line("4100", "10.00", CREDIT), line("1110", "10.00", DEBIT)]),
                self.user.id,
            )

        locks = self._lock_queries(ctx.captured_queries)
        self.assertEqual(len(locks), 1)
        if connection.features.has_select_for_update:
            self.assertIn("FOR UPDATE", locks[0])

    @override_settings(LEDGER_LOCK_ACCOUNTS=False)
    def test_locking_can_be_disabled(self):
        with CaptureQueriesContext(connection) as ctx:
            post_journal_entry(
                entry(self.business, [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)]),
                self.user.id,
            )

        self.assertEqual(self._lock_queries(ctx.captured_queries), [])

    # --------------------------------------------------
    # Atomicity
    # --------------------------------------------------

    def test_account_resolution_failure_on_second_of_three_lines_writes_nothing(self):
        calls = {"n": 0}

        def flaky_resolve(uow, business_id, account_code):
            calls["n"] += 1
            if calls["n"] == 2:
                raise AccountResolutionError(business_id, account_code)
            return resolve_account(uow, business_id, account_code)

        with mock.patch("accounting.services.validator.resolve_account", side_effect=flaky_resolve):
            with self.assertRaises(AccountResolutionError):
                post_journal_entry(
                    entry(
                        self.business,
                        [
                            line("1110", "70.00", DEBIT),
                            line("4100", "50.00", CREDIT),
                            line("4200", "20.00", CREDIT),
                        ],
                    ),
                    self.user.id,
                )

        self.assertEqual(calls["n"], 2)
        self.assertEqual(self._row_counts(), (0, 0, 0, 0))

    def test_storage_failure_mid_posting_rolls_back_everything(self):
        original_save = GeneralLedgerEntry.save
        calls = {"n": 0}

        def flaky_save(instance, *args, **kwargs):
            calls["n"] += 1
            if calls["n"] == 2:
                raise DatabaseError("disk full")
            return original_save(instance, *args, **kwargs)

        with mock.patch.object(GeneralLedgerEntry, "save", flaky_save):
            with self.assertRaises(StorageFailureError) as ctx:
                post_journal_entry(
                    entry(self.business, [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)]),
                    self.user.id,
                )

        self.assertEqual(ctx.exception.kind, ErrorKind.STORAGE_FAILURE)
        self.assertEqual(self._row_counts(), (0, 0, 0, 0))

    @override_settings(LEDGER_AUDIT_SINK="accounting.tests.test_journal_integrity.failing_audit_sink")
    def test_audit_failure_rolls_back_posting(self):
        with self.assertRaises(StorageFailureError) as ctx:
            post_journal_entry(
                entry(self.business, [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)]),
                self.user.id,
            )

        self.assertIn("audit store offline", str(ctx.exception))
        self.assertEqual(self._row_counts(), (0, 0, 0, 0))

    def test_caller_unit_of_work_commits_both_or_neither(self):
        with self.assertRaises(UnbalancedEntryError):
            with UnitOfWork() as uow:
                post_journal_entry(
                    entry(self.business, [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)]),
                    self.user.id,
                    uow=uow,
                )
                post_journal_entry(
                    entry(self.business, [line("5100", "4.00", DEBIT), line("1300", "3.00", CREDIT, normal_balance=DEBIT)]),
                    self.user.id,
                    uow=uow,
                )

        self.assertEqual(self._row_counts(), (0, 0, 0, 0))

    def test_inactive_unit_of_work_is_rejected(self):
        uow = UnitOfWork()
        with self.assertRaises(RuntimeError):
            post_journal_entry(
                entry(self.business, [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)]),
                self.user.id,
                uow=uow,
            )

    # --------------------------------------------------
    # Immutability + integrity
    # --------------------------------------------------

    def test_posted_rows_are_immutable(self):
        posted = post_journal_entry(
            entry(self.business, [line("1110", "10.00", DEBIT), line("4100", "10.00", CREDIT)]),
            self.user.id,
        )

        je = posted.journal_entry
        je.description = "edited"
        with self.assertRaises(ValidationError):
            je.save()
        with self.assertRaises(ValidationError):
            je.delete()
        with self.assertRaises(ValidationError):
            posted.lines[0].delete()
        with self.assertRaises(ValidationError):
            posted.ledger_entries[0].save()

    def test_no_discrepancies_after_many_postings(self):
        for amount in ("10.00", "0.01", "999.99", "33.33"):
            post_journal_entry(
                entry(self.business, [line("1110", amount, DEBIT), line("4100", amount, CREDIT)]),
                self.user.id,
            )
        post_journal_entry(
            entry(self.business, [line("1300", "12.50", DEBIT), line("1110", "12.50", CREDIT, normal_balance=DEBIT)]),
            self.user.id,
        )

        self.assertEqual(find_ledger_discrepancies(self.business.id), [])
