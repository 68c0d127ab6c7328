"""
Listings Admin - Realty Back Office
Django admin configuration for projects and their reference directories.
"""

from django.contrib import admin
from django.db.models import Count
from django.utils.html import format_html

from .models import Bank, City, Developer, District, Project, ProjectBank


# =============================================================================
# INLINE ADMIN CLASSES
# =============================================================================

class ProjectBankInline(admin.TabularInline):
    """Bank links of a project"""
    model = ProjectBank
    extra = 0
    autocomplete_fields = ['bank']
    readonly_fields = ['created_at']


class DistrictInline(admin.TabularInline):
    model = District
    extra = 0


# =============================================================================
# SOFT DELETE ACTIONS
# =============================================================================

@admin.action(description='Soft-delete selected rows')
def soft_delete_selected(modeladmin, request, queryset):
    for obj in queryset:
        obj.soft_delete()


@admin.action(description='Restore selected rows')
def restore_selected(modeladmin, request, queryset):
    for obj in queryset:
        obj.restore()


class SoftDeleteListFilter(admin.SimpleListFilter):
    title = 'deleted'
    parameter_name = 'deleted'

    def lookups(self, request, model_admin):
        return [('no', 'Live'), ('yes', 'Deleted')]

    def queryset(self, request, queryset):
        if self.value() == 'no':
            return queryset.filter(deleted_at__isnull=True)
        if self.value() == 'yes':
            return queryset.filter(deleted_at__isnull=False)
        return queryset


# =============================================================================
# MAIN ADMIN CLASSES
# =============================================================================

@admin.register(Project)
class ProjectAdmin(admin.ModelAdmin):
    """
    Admin interface for projects.

    Features:
    - Filtering by city, developer and deletion state
    - Inline bank links
    - Bulk soft delete / restore
    """

    list_display = [
        'name',
        'developer',
        'city',
        'district',
        'price_display',
        'has_coordinates',
        'deleted_state',
    ]
    list_filter = [SoftDeleteListFilter, 'city', 'developer', 'currency']
    search_fields = ['name', 'address', 'developer__name']
    readonly_fields = ['id', 'created_at', 'updated_at', 'deleted_at']
    autocomplete_fields = ['developer']
    inlines = [ProjectBankInline]
    actions = [soft_delete_selected, restore_selected]
    list_per_page = 25

    fieldsets = (
        ('Identity', {
            'fields': ('id', 'name', 'developer'),
        }),
        ('Location', {
            'fields': ('city', 'district', 'address', 'latitude', 'longitude'),
        }),
        ('Listing', {
            'fields': (
                'short_description',
                'description',
                'cover_image_url',
                'price_from',
                'currency',
                'completion_date',
            ),
        }),
        ('System Metadata', {
            'fields': ('created_at', 'updated_at', 'deleted_at'),
            'classes': ('collapse',),
        }),
    )

    def price_display(self, obj):
        if obj.price_from is not None:
            return f"{obj.price_from:,} {obj.currency}"
        return '-'
    price_display.short_description = 'Price From'
    price_display.admin_order_field = 'price_from'

    def has_coordinates(self, obj):
        if obj.has_coordinates:
            return format_html('<span style="color: green;">✓</span>')
        return format_html('<span style="color: red;">✗</span>')
    has_coordinates.short_description = 'Coords'

    def deleted_state(self, obj):
        return 'deleted' if obj.is_deleted else ''
    deleted_state.short_description = 'State'


@admin.register(Developer)
class DeveloperAdmin(admin.ModelAdmin):
    list_display = ['name', 'project_count', 'created_at', 'deleted_at']
    list_filter = [SoftDeleteListFilter]
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at', 'deleted_at']
    actions = [soft_delete_selected, restore_selected]

    def project_count(self, obj):
        return obj.project_total
    project_count.short_description = 'Projects'
    project_count.admin_order_field = 'project_total'

    def get_queryset(self, request):
        return super().get_queryset(request).annotate(project_total=Count('projects'))


@admin.register(Bank)
class BankAdmin(admin.ModelAdmin):
    list_display = ['name', 'created_at', 'deleted_at']
    list_filter = [SoftDeleteListFilter]
    search_fields = ['name']
    readonly_fields = ['created_at', 'updated_at', 'deleted_at']
    actions = [soft_delete_selected, restore_selected]


@admin.register(City)
class CityAdmin(admin.ModelAdmin):
    list_display = ['name']
    search_fields = ['name']
    inlines = [DistrictInline]


@admin.register(District)
class DistrictAdmin(admin.ModelAdmin):
    list_display = ['name', 'city']
    list_filter = ['city']
    search_fields = ['name', 'city__name']


# =============================================================================
# ADMIN SITE CUSTOMIZATION
# =============================================================================

admin.site.site_header = 'Realty Administration'
admin.site.site_title = 'Realty Admin'
admin.site.index_title = 'Listings & Import Management'
