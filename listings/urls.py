"""
URL configuration for the listings admin API.

Included by the project URLs at /api/admin/:

/api/admin/projects                  -> ProjectViewSet (list)
/api/admin/projects/{id}             -> retrieve, soft delete
/api/admin/projects/{id}/restore     -> restore (POST)
/api/admin/projects/export           -> CSV export
/api/admin/developers[/{id}]         -> DeveloperViewSet (CRUD, restore, export)
/api/admin/banks[/{id}]              -> BankViewSet (CRUD, restore, export)
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from .views import BankViewSet, DeveloperViewSet, ProjectViewSet

router = SimpleRouter(trailing_slash=False)
router.register(r'projects', ProjectViewSet, basename='project')
router.register(r'developers', DeveloperViewSet, basename='developer')
router.register(r'banks', BankViewSet, basename='bank')

urlpatterns = [
    path('', include(router.urls)),
]
