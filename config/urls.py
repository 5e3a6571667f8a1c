"""URL configuration for the loft rental project.

The `urlpatterns` list routes URLs to views. It includes the Django admin,
the application-level routers provided by Django Rest Framework and each
app, and the OpenAPI schema.
"""
from django.contrib import admin  # type: ignore
from django.urls import path, include  # type: ignore
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView  # type: ignore

from apps.lofts.views import PricingCalculateView

from .views import healthz

# API versioning. v1 is our initial version; future versions can be added here.

urlpatterns = [
    path('admin/', admin.site.urls),
    path('healthz/', healthz, name='healthz'),
    # Application URLs
    path('api/v1/pricing/calculate/', PricingCalculateView.as_view(), name='pricing-calculate'),
    path('api/v1/lofts/', include('apps.lofts.urls')),
    path('api/v1/reservations/', include('apps.bookings.urls')),
    path('api/v1/partners/', include('apps.users.urls')),
    # OpenAPI schema and docs
    path('api/schema/', SpectacularAPIView.as_view(), name='schema'),
    path('api/docs/', SpectacularSwaggerView.as_view(url_name='schema'), name='api-docs'),
]
