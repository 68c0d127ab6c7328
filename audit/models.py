"""
Audit log model.

One row per administrative action. Rows are append-only; nothing in the
application updates or deletes them.
"""

from django.conf import settings
from django.db import models


class AuditLog(models.Model):
    """A single administrative action with its target and client IP."""

    admin = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        related_name='audit_logs',
        help_text="Admin who performed the action"
    )
    action_type = models.CharField(max_length=64, db_index=True)
    target_type = models.CharField(max_length=64, blank=True, null=True)
    target_id = models.CharField(max_length=64, blank=True, null=True)
    ip = models.CharField(max_length=64, blank=True)
    metadata_json = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = 'audit_logs'
        ordering = ['-created_at']

    def __str__(self):
        target = f" {self.target_type}:{self.target_id}" if self.target_type else ''
        return f"{self.action_type}{target}"
