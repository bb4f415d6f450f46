# accounting/management/commands/seed_business_chart.py

from django.core.management.base import BaseCommand, CommandError
from django.db import transaction

from accounting.models.account import Account
from businesses.models import Business

# (code, name, type, explicit normal balance or None to derive from type)
STANDARD_CHART = [
    # ASSETS
    ("1110", "Cash on Hand", Account.ASSET, None),
    ("1120", "Bank Account", Account.ASSET, None),
    ("1130", "Mobile Money", Account.ASSET, None),
    ("1200", "Accounts Receivable", Account.ASSET, None),
    ("1300", "Inventory", Account.ASSET, None),
    # LIABILITIES
    ("2100", "Accounts Payable", Account.LIABILITY, None),
    ("2200", "VAT Payable", Account.LIABILITY, None),
    # EQUITY
    ("3100", "Owner Capital", Account.EQUITY, None),
    # REVENUE
    ("4100", "Sales Revenue", Account.REVENUE, None),
    ("4110", "Sales Discounts", Account.REVENUE, Account.DEBIT),  # contra-revenue
    ("4111", "Volume Discounts", Account.REVENUE, Account.DEBIT),  # contra-revenue
    ("4112", "Early Payment Discounts", Account.REVENUE, Account.DEBIT),  # contra-revenue
    ("4113", "Promotional Discounts", Account.REVENUE, Account.DEBIT),  # contra-revenue
    ("4200", "Service Revenue", Account.REVENUE, None),
    # EXPENSES
    ("5100", "Cost of Goods Sold", Account.EXPENSE, None),
    ("5110", "Cost of Services", Account.EXPENSE, None),
    ("6100", "Operating Expenses", Account.EXPENSE, None),
]


class Command(BaseCommand):
    help = "Create (or update) a business and seed its standard Chart of Accounts"

    def add_arguments(self, parser):
        parser.add_argument("--business-name", required=True, help="Business display name")
        parser.add_argument("--code", default=None, help="Stable business code (optional, unique)")

    @transaction.atomic
    def handle(self, *args, **options):
        name = (options.get("business_name") or "").strip()
        code = (options.get("code") or "").strip() or None

        if not name:
            raise CommandError("--business-name must not be blank")

        # ------------------------------------------------------------
        # Resolve by STABLE code first (tenant-safe key), then by name
        # ------------------------------------------------------------
        business = None
        if code:
            business = Business.objects.filter(code=code).first()
        if business is None:
            business = Business.objects.filter(name__iexact=name).order_by("created_at").first()

        if business is None:
            business = Business.objects.create(name=name, code=code)
            self.stdout.write(f"Created business {business.name} ({business.id})")
        else:
            changed = False
            if business.name != name:
                business.name = name
                changed = True
            if code and business.code != code:
                business.code = code
                changed = True
            if not business.is_active:
                business.is_active = True
                changed = True
            if changed:
                business.save()
            self.stdout.write(f"Business {business.name} already exists (updated if needed)")

        created_count = 0
        updated_count = 0
        skipped_polarity = 0

        for acc_code, acc_name, account_type, normal_balance in STANDARD_CHART:
            polarity = normal_balance or Account.default_normal_balance(account_type)

            acc, acc_created = Account.objects.get_or_create(
                business=business,
                code=acc_code,
                defaults={
                    "name": acc_name,
                    "account_type": account_type,
                    "normal_balance": polarity,
                    "is_active": True,
                },
            )

            if acc_created:
                created_count += 1
                continue

            needs_update = False
            if acc.name != acc_name:
                acc.name = acc_name
                needs_update = True
            if acc.account_type != account_type:
                acc.account_type = account_type
                needs_update = True
            if acc.normal_balance != polarity:
                # cached ledger balances are signed with the current polarity
                if acc.journal_entry_lines.exists():
                    skipped_polarity += 1
                    self.stderr.write(
                        self.style.WARNING(
                            f"Account {acc.code} has postings; keeping normal_balance={acc.normal_balance} "
                            f"(chart says {polarity})"
                        )
                    )
                else:
                    acc.normal_balance = polarity
                    needs_update = True
            if not acc.is_active:
                acc.is_active = True
                needs_update = True

            if needs_update:
                acc.save(update_fields=["name", "account_type", "normal_balance", "is_active", "updated_at"])
                updated_count += 1

        self.stdout.write(
            self.style.SUCCESS(
                f"✔ Chart seeded for {business.name} ({created_count} new accounts, {updated_count} updated)."
            )
        )
        if skipped_polarity:
            self.stdout.write(
                self.style.WARNING(f"{skipped_polarity} account(s) kept their polarity because they have postings.")
            )
        self.stdout.write(f"business_id={business.id}")
