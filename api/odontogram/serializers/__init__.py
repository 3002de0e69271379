# api/odontogram/serializers/__init__.py
from .dental_chart_serializers import (
    ToothWorkSerializer,
    ProcedureWorkSerializer,
    ConflictCheckSerializer,
    AddProcedureSerializer,
    ToothStatusSerializer,
    ConflictResultSerializer,
)
from .treatment_plan_serializers import (
    TreatmentPlanCreateSerializer,
    AddStageSerializer,
    UpdateProceduresSerializer,
    StageCompletionSerializer,
    RemoveProcedureSerializer,
    CancelPlanSerializer,
    FinishPlanSerializer,
    TreatmentPlanSerializer,
    TreatmentPlanListSerializer,
)

__all__ = [
    'ToothWorkSerializer',
    'ProcedureWorkSerializer',
    'ConflictCheckSerializer',
    'AddProcedureSerializer',
    'ToothStatusSerializer',
    'ConflictResultSerializer',
    'TreatmentPlanCreateSerializer',
    'AddStageSerializer',
    'UpdateProceduresSerializer',
    'StageCompletionSerializer',
    'RemoveProcedureSerializer',
    'CancelPlanSerializer',
    'FinishPlanSerializer',
    'TreatmentPlanSerializer',
    'TreatmentPlanListSerializer',
]
