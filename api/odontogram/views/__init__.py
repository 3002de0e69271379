from .dental_chart_views import DentalChartViewSet
from .treatment_plan_views import TreatmentPlanViewSet

__all__ = [
    'DentalChartViewSet',
    'TreatmentPlanViewSet',
]
