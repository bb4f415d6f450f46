# audit/models.py

"""
AUDIT LOG (IMMUTABLE)

Purpose:
- Append-only record of business actions (who did what, to which resource).
- Written inside the same transaction as the action it describes, so an
  audit row exists if and only if the action committed.
"""

from django.conf import settings
from django.db import models
from django.utils import timezone

from businesses.models import Business

User = settings.AUTH_USER_MODEL


class AuditLog(models.Model):
    business = models.ForeignKey(
        Business,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="audit_logs",
    )

    user = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="audit_logs",
    )

    action = models.CharField(max_length=120)
    resource_type = models.CharField(max_length=60)
    resource_id = models.CharField(max_length=64)

    new_values = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["business", "created_at"]),
            models.Index(fields=["resource_type", "resource_id"]),
            models.Index(fields=["action"]),
        ]

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("AuditLog records are immutable")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("AuditLog records cannot be deleted")

    def __str__(self):
        return f"{self.action} {self.resource_type}:{self.resource_id}"
