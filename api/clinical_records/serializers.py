from rest_framework import serializers

from api.appointment.models import Appointment
from api.clinical_records.models import Visit
from api.odontogram.serializers import (
    ToothWorkSerializer,
    TreatmentPlanCreateSerializer,
    TreatmentPlanSerializer,
)
from api.odontogram.serializers.treatment_plan_serializers import ProcedureRefSerializer


class PrescriptionSerializer(serializers.Serializer):
    medicine_name = serializers.CharField(max_length=200)
    dosage = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    frequency = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    duration = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')


class RecallSerializer(serializers.Serializer):
    """Cita de control agendada al cerrar la consulta"""
    date = serializers.DateField()
    time = serializers.TimeField()
    department = serializers.CharField(max_length=100, required=False, allow_blank=True, default='')
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class TreatmentPlanStatusSerializer(serializers.Serializer):
    """Avance de un plan existente: etapa completa y/o procedimientos concretos"""
    treatment_plan_id = serializers.UUIDField()
    stage_number = serializers.IntegerField(min_value=1, required=False, allow_null=True)
    completed_procedures = ProcedureRefSerializer(many=True, required=False, default=list)


class ConsultationSerializer(serializers.Serializer):
    """
    Payload de la consulta.

    Un plan nuevo (treatment_plan) y el avance de un plan existente
    (treatment_plan_status) son excluyentes.
    """
    chief_complaints = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    examination_findings = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    dental_history = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    diagnosis = serializers.ListField(child=serializers.CharField(), required=False, default=list)
    prescriptions = PrescriptionSerializer(many=True, required=False, default=list)
    notes = serializers.CharField(required=False, allow_blank=True, default='')

    performed_teeth = ToothWorkSerializer(many=True, required=False, default=list)
    planned_teeth = ToothWorkSerializer(many=True, required=False, default=list)

    treatment_plan = TreatmentPlanCreateSerializer(required=False, allow_null=True)
    treatment_plan_status = TreatmentPlanStatusSerializer(required=False, allow_null=True)
    recall = RecallSerializer(required=False, allow_null=True)

    def validate(self, attrs):
        if attrs.get('treatment_plan') and attrs.get('treatment_plan_status'):
            raise serializers.ValidationError({
                'treatment_plan': "No se puede crear un plan y actualizar otro en la misma consulta"
            })
        return attrs


class VisitSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    appointment_id = serializers.UUIDField(read_only=True)
    treatment_plan_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Visit
        fields = [
            'id', 'patient_id', 'clinic_id', 'doctor_id', 'appointment_id',
            'visit_date', 'chief_complaints', 'examination_findings',
            'dental_history', 'diagnosis', 'prescriptions', 'notes',
            'dental_work', 'procedures', 'dental_chart_snapshot',
            'consultation_fee', 'total_amount', 'treatment_plan_id', 'status',
            'created_at',
        ]
        read_only_fields = fields


class RecallAppointmentSerializer(serializers.ModelSerializer):
    patient_id = serializers.UUIDField(read_only=True)
    recall_from_visit_id = serializers.UUIDField(read_only=True)

    class Meta:
        model = Appointment
        fields = [
            'id', 'patient_id', 'clinic_id', 'doctor_id', 'department',
            'appointment_date', 'appointment_time', 'status', 'notes',
            'recall_from_visit_id',
        ]
        read_only_fields = fields


class ConsultationResultSerializer(serializers.Serializer):
    visit = VisitSerializer()
    treatment_plan = TreatmentPlanSerializer(allow_null=True)
    plan_updated = serializers.BooleanField()
    recall_appointment = RecallAppointmentSerializer(allow_null=True)
