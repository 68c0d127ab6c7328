"""
Serializers for the listings admin API.
"""

from rest_framework import serializers

from .models import Bank, Developer, Project


class DeveloperSerializer(serializers.ModelSerializer):
    project_count = serializers.SerializerMethodField()

    class Meta:
        model = Developer
        fields = [
            'id',
            'name',
            'logo_url',
            'description',
            'project_count',
            'created_at',
            'updated_at',
            'deleted_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at', 'deleted_at']

    def get_project_count(self, obj):
        return obj.projects.filter(deleted_at__isnull=True).count()


class BankSerializer(serializers.ModelSerializer):
    class Meta:
        model = Bank
        fields = [
            'id',
            'name',
            'logo_url',
            'description',
            'created_at',
            'updated_at',
            'deleted_at',
        ]
        read_only_fields = ['id', 'created_at', 'updated_at', 'deleted_at']


class ProjectSerializer(serializers.ModelSerializer):
    """
    Project with its resolved reference names.
    Bank links are exposed as a list of bank ids.
    """

    developer_name = serializers.CharField(source='developer.name', read_only=True)
    city_name = serializers.CharField(source='city.name', read_only=True)
    district_name = serializers.CharField(source='district.name', read_only=True)
    bank_ids = serializers.PrimaryKeyRelatedField(source='banks', many=True, read_only=True)

    class Meta:
        model = Project
        fields = [
            'id',
            'name',
            'developer',
            'developer_name',
            'city',
            'city_name',
            'district',
            'district_name',
            'address',
            'latitude',
            'longitude',
            'short_description',
            'description',
            'cover_image_url',
            'price_from',
            'currency',
            'completion_date',
            'bank_ids',
            'created_at',
            'updated_at',
            'deleted_at',
        ]
        read_only_fields = fields
