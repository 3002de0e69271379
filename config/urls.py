# config/urls.py
from django.urls import path, include
from rest_framework import permissions
from drf_yasg.views import get_schema_view
from drf_yasg import openapi


schema_view = get_schema_view(
    openapi.Info(
        title="Patient Service API",
        default_version='v1',
        description="Odontograma, planes de tratamiento y consultas odontológicas",
    ),
    public=True,
    permission_classes=[permissions.AllowAny],
)

urlpatterns = [
    # Endpoints del sistema
    path('api/dental-chart/', include('api.odontogram.urls.dental_chart', namespace='dental-chart')),
    path('api/treatment-plan/', include('api.odontogram.urls.treatment_plan', namespace='treatment-plan')),
    path('api/consultation/', include('api.clinical_records.urls', namespace='consultation')),

    # Documentación
    path('swagger/', schema_view.with_ui('swagger', cache_timeout=0), name='schema-swagger-ui'),
    path('redoc/', schema_view.with_ui('redoc', cache_timeout=0), name='schema-redoc'),
]
