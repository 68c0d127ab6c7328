"""
Serializers for the audit log API.
"""

from rest_framework import serializers

from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    adminId = serializers.PrimaryKeyRelatedField(source='admin', read_only=True)
    adminUsername = serializers.CharField(source='admin.username', read_only=True, default=None)
    actionType = serializers.CharField(source='action_type', read_only=True)
    targetType = serializers.CharField(source='target_type', read_only=True)
    targetId = serializers.CharField(source='target_id', read_only=True)
    metadataJson = serializers.JSONField(source='metadata_json', read_only=True)
    createdAt = serializers.DateTimeField(source='created_at', read_only=True)

    class Meta:
        model = AuditLog
        fields = [
            'id',
            'adminId',
            'adminUsername',
            'actionType',
            'targetType',
            'targetId',
            'ip',
            'metadataJson',
            'createdAt',
        ]
