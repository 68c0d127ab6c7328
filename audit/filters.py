from django_filters import rest_framework as filters

from .models import AuditLog


class AuditLogFilter(filters.FilterSet):
    """Filters matching the admin panel's audit log query parameters."""

    userId = filters.NumberFilter(field_name='admin_id')
    actionType = filters.CharFilter(field_name='action_type')

    class Meta:
        model = AuditLog
        fields = ['userId', 'actionType']
