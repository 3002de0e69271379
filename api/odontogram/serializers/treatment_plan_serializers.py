from rest_framework import serializers

from api.odontogram.constants import ProcedureStatus, ToothPriority
from api.odontogram.models import TreatmentPlan
from .dental_chart_serializers import SurfaceField, ToothNumberField


class PlannedProcedureInputSerializer(serializers.Serializer):
    name = serializers.CharField(max_length=200)
    surface = SurfaceField()
    stage = serializers.IntegerField(min_value=1, default=1)
    status = serializers.ChoiceField(choices=ProcedureStatus.choices, default=ProcedureStatus.PLANNED.value)
    estimated_cost = serializers.FloatField(min_value=0, required=False, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class ToothPlanInputSerializer(serializers.Serializer):
    tooth_number = ToothNumberField()
    priority = serializers.ChoiceField(choices=ToothPriority.choices, default=ToothPriority.MEDIUM.value)
    procedures = PlannedProcedureInputSerializer(many=True, allow_empty=False)


class StageInputSerializer(serializers.Serializer):
    stage_name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    scheduled_date = serializers.DateField(required=False, allow_null=True)


class TreatmentPlanCreateSerializer(serializers.Serializer):
    """Datos para iniciar un plan (fuera o dentro de una consulta)"""
    plan_name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    teeth = ToothPlanInputSerializer(many=True, required=False, default=list)
    stages = StageInputSerializer(many=True, required=False, default=list)

    def validate(self, attrs):
        stage_count = len(attrs.get('stages') or [])
        if stage_count:
            for tooth in attrs.get('teeth') or []:
                for procedure in tooth['procedures']:
                    if procedure['stage'] > stage_count:
                        raise serializers.ValidationError({
                            'teeth': f"Diente {tooth['tooth_number']}: la etapa "
                                     f"{procedure['stage']} no está definida"
                        })
        return attrs


class SurfaceProceduresSerializer(serializers.Serializer):
    surface = SurfaceField(default=serializers.empty)
    procedure_names = serializers.ListField(child=serializers.CharField(max_length=200), allow_empty=False)


class ToothSurfaceProceduresSerializer(serializers.Serializer):
    tooth_number = ToothNumberField()
    surface_procedures = SurfaceProceduresSerializer(many=True)


class AddStageSerializer(serializers.Serializer):
    stage_name = serializers.CharField(max_length=200)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    scheduled_date = serializers.DateField(required=False, allow_null=True)
    tooth_surface_procedures = ToothSurfaceProceduresSerializer(many=True, required=False, default=list)


class ProcedureRefSerializer(serializers.Serializer):
    tooth_number = ToothNumberField()
    procedure_name = serializers.CharField(max_length=200)
    surface = SurfaceField()
    stage_number = serializers.IntegerField(min_value=1, required=False, allow_null=True)


class UpdateProceduresSerializer(serializers.Serializer):
    completed_procedures = ProcedureRefSerializer(many=True, allow_empty=False)
    visit_id = serializers.UUIDField(required=False, allow_null=True)


class StageCompletionSerializer(serializers.Serializer):
    visit_id = serializers.UUIDField(required=False, allow_null=True)


class RemoveProcedureSerializer(serializers.Serializer):
    procedure_name = serializers.CharField(max_length=200)
    surface = SurfaceField()


class CancelPlanSerializer(serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, default='')


class FinishPlanSerializer(serializers.Serializer):
    visit_id = serializers.UUIDField(required=False, allow_null=True)


class TreatmentPlanSerializer(serializers.ModelSerializer):
    """Plan completo con dientes y etapas"""
    patient_id = serializers.UUIDField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    progress = serializers.SerializerMethodField()

    class Meta:
        model = TreatmentPlan
        fields = [
            'id', 'patient_id', 'clinic_id', 'created_by_doctor_id',
            'plan_name', 'description', 'teeth', 'stages',
            'status', 'status_display', 'current_stage', 'progress',
            'started_at', 'completed_at',
            'cancellation_reason', 'cancelled_at', 'cancelled_by',
            'created_at', 'updated_at',
        ]
        read_only_fields = fields

    def get_progress(self, obj):
        procedures = [p for tooth in obj.teeth for p in tooth.get('procedures', [])]
        completed = sum(1 for p in procedures if p['status'] == ProcedureStatus.COMPLETED)
        return {'total': len(procedures), 'completed': completed}


class TreatmentPlanListSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    total_stages = serializers.SerializerMethodField()

    class Meta:
        model = TreatmentPlan
        fields = [
            'id', 'patient_id', 'plan_name', 'status', 'status_display',
            'current_stage', 'total_stages', 'started_at', 'completed_at', 'created_at',
        ]

    def get_total_stages(self, obj):
        return len(obj.stages)
