# accounting/management/commands/verify_ledger.py

from __future__ import annotations

import uuid

from django.core.management.base import BaseCommand, CommandError

from accounting.services.ledger_integrity import find_ledger_discrepancies
from accounting.services.trial_balance_service import get_trial_balance
from businesses.models import Business


class Command(BaseCommand):
    help = "Verify ledger integrity (balanced entries, cached vs recomputed balances, trial balance)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--business",
            dest="business_id",
            help="Business UUID (default: every active business)",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any error is found.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))
        business_id = (options.get("business_id") or "").strip()

        businesses = Business.objects.filter(is_active=True).order_by("name")
        if business_id:
            try:
                business_id = uuid.UUID(business_id)
            except ValueError as exc:
                raise CommandError(f"--business must be a UUID, got {business_id!r}") from exc

            businesses = Business.objects.filter(id=business_id)
            if not businesses.exists():
                raise CommandError(f"Business {business_id} not found")

        self.stdout.write(self.style.MIGRATE_HEADING("Ledger Integrity Verification"))

        errors = 0

        for business in businesses:
            self.stdout.write(f"Business: {business}  ({business.id})")

            problems = find_ledger_discrepancies(business.id)
            for p in problems[:20]:
                details = " ".join(f"{k}={v}" for k, v in p.items() if k != "kind")
                self.stderr.write(self.style.ERROR(f"  [FAIL] {p['kind']}: {details}"))
            if len(problems) > 20:
                self.stderr.write(f"  ... {len(problems) - 20} more")

            tb = get_trial_balance(business.id)
            summary = tb["summary"]
            if summary["is_balanced"]:
                self.stdout.write(
                    self.style.SUCCESS(
                        f"  [OK] Trial balance: debits={summary['total_debits']} credits={summary['total_credits']}"
                    )
                )
            else:
                errors += 1
                self.stderr.write(
                    self.style.ERROR(
                        f"  [FAIL] Trial balance not balanced: debits={summary['total_debits']} "
                        f"credits={summary['total_credits']}"
                    )
                )

            if not problems:
                self.stdout.write(self.style.SUCCESS("  [OK] Entries balanced, ledger rows match lines"))
            errors += len(problems)

        self.stdout.write("")
        if errors == 0:
            self.stdout.write(self.style.SUCCESS("✅ LEDGER VERIFIED"))
        else:
            self.stderr.write(self.style.ERROR(f"❌ VERIFICATION FOUND ISSUES: {errors} problem(s)"))

        if strict and errors > 0:
            raise SystemExit(1)
