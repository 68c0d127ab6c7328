"""
Helpers for writing audit entries from API views.
"""

import logging
from typing import Any, Dict, Optional

from .models import AuditLog

logger = logging.getLogger(__name__)


def get_client_ip(request) -> str:
    """Return the first X-Forwarded-For hop, falling back to REMOTE_ADDR."""
    x_forwarded_for = request.META.get('HTTP_X_FORWARDED_FOR')
    if x_forwarded_for:
        return x_forwarded_for.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR', '') or ''


def record_audit_log(
    request,
    action_type: str,
    target_type: Optional[str] = None,
    target_id: Optional[Any] = None,
    metadata: Optional[Dict[str, Any]] = None,
) -> AuditLog:
    """
    Append an audit entry for the authenticated admin of ``request``.

    Args:
        request: DRF or Django request carrying the admin user
        action_type: Short action code, e.g. ``csv_import_start``
        target_type: Kind of object acted upon
        target_id: Identifier of that object (stored as text)
        metadata: Extra JSON-serializable details

    Returns:
        The created AuditLog row
    """
    user = getattr(request, 'user', None)
    admin = user if user is not None and user.is_authenticated else None

    entry = AuditLog.objects.create(
        admin=admin,
        action_type=action_type,
        target_type=target_type,
        target_id=str(target_id) if target_id is not None else None,
        ip=get_client_ip(request),
        metadata_json=metadata or {},
    )
    logger.info(f"Audit: {action_type} {target_type or ''}:{target_id or ''} by {admin}")
    return entry
