# api/clinical_records/urls.py

from django.urls import path

from .views import ConsultationView

app_name = 'consultation'

urlpatterns = [
    path('<uuid:appointment_id>/', ConsultationView.as_view(), name='consult'),
]
