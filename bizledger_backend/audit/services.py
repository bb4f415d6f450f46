# audit/services.py

"""
AUDIT SINK

log_action() is the default sink the ledger calls once per successful
posting. The sink actually used is configurable through
settings.LEDGER_AUDIT_SINK (dotted path) so deployments can route audit
records elsewhere.

Failure policy:
- The sink raises on failure. It never swallows errors: callers that
  require strict audit coupling (the ledger does) roll back on raise.
"""

from __future__ import annotations

import logging

from django.conf import settings
from django.db import DEFAULT_DB_ALIAS
from django.utils.module_loading import import_string

from audit.models import AuditLog

logger = logging.getLogger(__name__)

DEFAULT_AUDIT_SINK = "audit.services.log_action"


def _jsonable(values: dict | None) -> dict:
    out = {}
    for key, value in (values or {}).items():
        if isinstance(value, (str, int, float, bool)) or value is None:
            out[key] = value
        else:
            out[key] = str(value)
    return out


def log_action(
    *,
    business_id,
    user_id,
    action: str,
    resource_type: str,
    resource_id,
    new_values: dict | None = None,
    using: str = DEFAULT_DB_ALIAS,
) -> AuditLog:
    action = (action or "").strip()
    if not action:
        raise ValueError("Audit action is required")

    entry = AuditLog(
        business_id=business_id,
        user_id=user_id,
        action=action,
        resource_type=(resource_type or "").strip(),
        resource_id=str(resource_id),
        new_values=_jsonable(new_values),
    )
    entry.save(using=using)

    logger.debug(
        "Audit %s %s:%s business=%s user=%s",
        action,
        entry.resource_type,
        entry.resource_id,
        business_id,
        user_id,
    )
    return entry


def get_audit_sink():
    path = getattr(settings, "LEDGER_AUDIT_SINK", "") or DEFAULT_AUDIT_SINK
    return import_string(path)
