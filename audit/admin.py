from django.contrib import admin

from .models import AuditLog


@admin.register(AuditLog)
class AuditLogAdmin(admin.ModelAdmin):
    list_display = ['created_at', 'action_type', 'target_type', 'target_id', 'admin', 'ip']
    list_filter = ['action_type', 'target_type']
    search_fields = ['action_type', 'target_id', 'ip', 'admin__username']
    readonly_fields = [
        'admin', 'action_type', 'target_type', 'target_id', 'ip', 'metadata_json', 'created_at'
    ]

    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False
