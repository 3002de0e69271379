# api/odontogram/services/__init__.py
from .dental_chart_service import DentalChartService
from .treatment_plan_service import TreatmentPlanService

__all__ = [
    'DentalChartService',
    'TreatmentPlanService',
]
