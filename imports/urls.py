"""
URL configuration for imports app.

Included by the project URLs at /api/admin/:

    POST /api/admin/projects/import        - Start a project CSV import
    POST /api/admin/developers/import      - Start a developer CSV import
    POST /api/admin/banks/import           - Start a bank CSV import
    GET  /api/admin/imports                - Import history
    GET  /api/admin/imports/{id}           - One import job
    GET  /api/admin/imports/{id}/errors    - Row errors of a job
    POST /api/admin/imports/{id}/undo      - Undo a completed import
    GET  /api/admin/imports/template       - CSV template download
"""

from django.urls import include, path
from rest_framework.routers import SimpleRouter

from . import views

router = SimpleRouter(trailing_slash=False)
router.register(r'imports', views.ImportJobViewSet, basename='import-job')

urlpatterns = [
    path('projects/import', views.ProjectImportView.as_view(), name='project-import'),
    path('developers/import', views.DeveloperImportView.as_view(), name='developer-import'),
    path('banks/import', views.BankImportView.as_view(), name='bank-import'),
    path('', include(router.urls)),
]
