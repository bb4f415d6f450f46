# accounting/tests/utils.py

"""
Shared fixtures for ledger tests (plain helpers, no pytest fixtures so the
suite runs under both `manage.py test` and pytest-django).
"""

from __future__ import annotations

import uuid
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission

from accounting.journal_payload import ProposedEntry, ProposedLine, Reference
from accounting.management.commands.seed_business_chart import STANDARD_CHART
from accounting.models.account import Account
from businesses.models import Business

User = get_user_model()


def make_business(name: str = "Test Business", code: str | None = None) -> Business:
    return Business.objects.create(name=name, code=code)


def make_account(
    business: Business,
    code: str,
    *,
    name: str | None = None,
    account_type: str = Account.ASSET,
    normal_balance: str = "",
    is_active: bool = True,
) -> Account:
    return Account.objects.create(
        business=business,
        code=code,
        name=name or f"Account {code}",
        account_type=account_type,
        normal_balance=normal_balance,
        is_active=is_active,
    )


def seed_standard_chart(business: Business) -> dict:
    """Create the standard chart for a business; returns {code: Account}."""
    accounts = {}
    for code, name, account_type, normal_balance in STANDARD_CHART:
        accounts[code] = make_account(
            business,
            code,
            name=name,
            account_type=account_type,
            normal_balance=normal_balance or "",
        )
    return accounts


def make_user(username: str | None = None, *, perms=()):
    user = User.objects.create_user(
        username=username or f"user-{uuid.uuid4().hex[:8]}",
        password="pass",
    )
    for codename in perms:
        user.user_permissions.add(
            Permission.objects.get(content_type__app_label="accounting", codename=codename)
        )
    # fresh instance: has_perm caches permissions on first use
    return User.objects.get(pk=user.pk)


def line(code: str, amount, side: str, *, description: str = "", normal_balance: str | None = None) -> ProposedLine:
    return ProposedLine(
        account_code=code,
        amount=Decimal(str(amount)),
        side=side,
        description=description,
        normal_balance=normal_balance,
    )


def entry(business, lines, *, description: str = "Test entry", transaction_date=None, reference=None) -> ProposedEntry:
    return ProposedEntry(
        business_id=business.id,
        description=description,
        lines=tuple(lines),
        transaction_date=transaction_date,
        reference=reference or Reference.none(),
    )
