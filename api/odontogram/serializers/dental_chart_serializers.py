from rest_framework import serializers

from api.odontogram.constants import (
    TOOTH_NUMBER_MIN,
    TOOTH_NUMBER_MAX,
    ProcedureStatus,
    ToothSurface,
)


class ToothNumberField(serializers.IntegerField):
    def __init__(self, **kwargs):
        kwargs.setdefault('min_value', TOOTH_NUMBER_MIN)
        kwargs.setdefault('max_value', TOOTH_NUMBER_MAX)
        super().__init__(**kwargs)


class SurfaceField(serializers.ChoiceField):
    def __init__(self, **kwargs):
        kwargs.setdefault('default', ToothSurface.ENTIRE.value)
        super().__init__(choices=ToothSurface.choices, **kwargs)


class ProcedureWorkSerializer(serializers.Serializer):
    """Procedimiento aplicado (o planificado) sobre una superficie"""
    name = serializers.CharField(max_length=200)
    surface = SurfaceField()
    status = serializers.ChoiceField(choices=ProcedureStatus.choices, default=ProcedureStatus.PLANNED.value)
    cost = serializers.FloatField(min_value=0, required=False, allow_null=True)
    estimated_cost = serializers.FloatField(min_value=0, required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)


class SurfaceConditionSerializer(serializers.Serializer):
    surface = SurfaceField(default=serializers.empty)
    conditions = serializers.ListField(child=serializers.CharField(max_length=100), allow_empty=False)


class ToothWorkSerializer(serializers.Serializer):
    """Trabajo sobre un diente: condiciones, condiciones por superficie y procedimientos"""
    tooth_number = ToothNumberField()
    conditions = serializers.ListField(child=serializers.CharField(max_length=100), required=False, default=list)
    surface_conditions = SurfaceConditionSerializer(many=True, required=False, default=list)
    procedures = ProcedureWorkSerializer(many=True, required=False, default=list)


class ConflictCheckSerializer(serializers.Serializer):
    tooth_number = ToothNumberField()
    surface = SurfaceField(default=serializers.empty)


class AddProcedureSerializer(serializers.Serializer):
    tooth_number = ToothNumberField()
    procedure_name = serializers.CharField(max_length=200)
    surface = SurfaceField()
    notes = serializers.CharField(required=False, allow_blank=True, default='')
    fee = serializers.FloatField(min_value=0, required=False, default=0)
    treatment_plan_id = serializers.UUIDField(required=False, allow_null=True)


class ToothStatusSerializer(serializers.Serializer):
    status = serializers.CharField(max_length=50)
    notes = serializers.CharField(required=False, allow_blank=True, default='')


class ConflictResultSerializer(serializers.Serializer):
    has_conflict = serializers.BooleanField()
    message = serializers.CharField()
    details = serializers.DictField(allow_null=True)
