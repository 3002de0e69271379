# odontogram/repositories/treatment_plan_repository.py
"""
Repository Pattern: acceso a datos de planes de tratamiento
"""

from django.db.models import QuerySet

from common.repositories.base_repository import BaseRepository
from api.odontogram.models import TreatmentPlan


class TreatmentPlanRepository(BaseRepository[TreatmentPlan]):
    model = TreatmentPlan

    @classmethod
    def get_queryset(cls) -> QuerySet:
        return TreatmentPlan.objects.select_related('patient')

    @classmethod
    def get_by_patient(cls, patient_id, status=None) -> QuerySet:
        queryset = cls.get_queryset().filter(patient_id=patient_id)
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by('-created_at')

    @staticmethod
    def delete(plan):
        plan.delete()
