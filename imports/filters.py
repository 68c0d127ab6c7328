from django_filters import rest_framework as filters

from .models import ImportJob


class ImportJobFilter(filters.FilterSet):
    """Query parameters of the admin panel's import history table."""

    search = filters.CharFilter(field_name='filename', lookup_expr='icontains')
    entityType = filters.ChoiceFilter(field_name='entity_type', choices=ImportJob.ENTITY_TYPE_CHOICES)
    status = filters.ChoiceFilter(field_name='status', choices=ImportJob.STATUS_CHOICES)

    class Meta:
        model = ImportJob
        fields = ['search', 'entityType', 'status']
