"""
URL configuration for the realty project.

/admin/                              - Django admin interface
/api/health                          - Health check
/api/auth/token[/refresh|/verify]    - JWT authentication
/api/admin/...                       - Staff-only admin API (imports, listings, audit logs)
"""

from django.conf import settings
from django.contrib import admin
from django.db import connection
from django.http import JsonResponse
from django.urls import include, path
from django.utils import timezone
from django.views.decorators.cache import cache_control
from django.views.decorators.http import require_http_methods
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)
import logging

logger = logging.getLogger(__name__)


# =============================================================================
# HEALTH CHECK ENDPOINT
# =============================================================================

@require_http_methods(["GET"])
@cache_control(no_cache=True, must_revalidate=True, no_store=True)
def health_check(request):
    """
    Health check endpoint for deployment monitoring.

    Returns:
        JSON response with system status and database connectivity
    """
    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
    except Exception as e:
        logger.exception(f"Health check failed: {str(e)}")
        return JsonResponse({
            "status": "unhealthy",
            "database": "error",
            "error": str(e) if settings.DEBUG else "Database connection failed",
        }, status=503)

    return JsonResponse({
        "status": "healthy",
        "database": "connected",
        "timestamp": timezone.now().isoformat(),
    }, status=200)


# =============================================================================
# MAIN URL PATTERNS
# =============================================================================

urlpatterns = [
    # Django Admin Interface
    path('admin/', admin.site.urls),

    # Health and System Status
    path('api/health', health_check, name='health-check'),

    # Authentication Endpoints (JWT)
    path('api/auth/token', TokenObtainPairView.as_view(), name='token_obtain_pair'),
    path('api/auth/token/refresh', TokenRefreshView.as_view(), name='token_refresh'),
    path('api/auth/token/verify', TokenVerifyView.as_view(), name='token_verify'),

    # Admin API; imports first so projects/import wins over the projects routes
    path('api/admin/', include('imports.urls')),
    path('api/admin/', include('listings.urls')),
    path('api/admin/', include('audit.urls')),
]


# =============================================================================
# CUSTOM ERROR HANDLERS
# =============================================================================

def custom_404_handler(request, exception):
    """JSON 404 for API paths"""
    if request.path.startswith('/api/'):
        return JsonResponse({
            'message': f'The requested endpoint {request.path} does not exist',
        }, status=404)

    from django.views.defaults import page_not_found
    return page_not_found(request, exception)


def custom_500_handler(request):
    """JSON 500 for API paths"""
    if request.path.startswith('/api/'):
        return JsonResponse({'message': 'An unexpected error occurred'}, status=500)

    from django.views.defaults import server_error
    return server_error(request)


handler404 = custom_404_handler
handler500 = custom_500_handler
