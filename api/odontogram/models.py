# odontogram/models.py
"""
Plan de tratamiento por etapas.

Los dientes del plan y sus etapas se guardan embebidos en JSON en la misma
fila, de modo que cada mutación del plan es una sola escritura:
- teeth:  [{tooth_number, priority, is_completed, procedures: [...]}]
- stages: [{stage_number, stage_name, status, tooth_surface_procedures, ...}]
"""

from django.db import models
from django.core.exceptions import ValidationError
import uuid

from api.odontogram.constants import PlanStatus, LOCKED_PLAN_STATUSES
from api.odontogram.schemas import PLAN_STAGES_SCHEMA, PLAN_TEETH_SCHEMA, validate_document


class TreatmentPlan(models.Model):
    """Plan de tratamiento de un paciente"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.CASCADE,
        related_name='treatment_plans',
        verbose_name="Paciente"
    )
    clinic_id = models.CharField(max_length=64, db_index=True, verbose_name="Clínica")
    created_by_doctor_id = models.CharField(max_length=64, blank=True, verbose_name="Creado por")

    plan_name = models.CharField(max_length=200, verbose_name="Nombre del plan")
    description = models.TextField(blank=True, verbose_name="Descripción")

    teeth = models.JSONField(default=list, blank=True, verbose_name="Dientes")
    stages = models.JSONField(default=list, blank=True, verbose_name="Etapas")

    status = models.CharField(
        max_length=20,
        choices=PlanStatus.choices,
        default=PlanStatus.DRAFT,
        verbose_name="Estado"
    )
    current_stage = models.PositiveIntegerField(default=0, verbose_name="Etapa actual")

    started_at = models.DateTimeField(null=True, blank=True, verbose_name="Inicio")
    completed_at = models.DateTimeField(null=True, blank=True, verbose_name="Finalización")

    cancellation_reason = models.TextField(blank=True, verbose_name="Motivo de cancelación")
    cancelled_at = models.DateTimeField(null=True, blank=True, verbose_name="Fecha de cancelación")
    cancelled_by = models.CharField(max_length=64, blank=True, verbose_name="Cancelado por")

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Plan de Tratamiento"
        verbose_name_plural = "Planes de Tratamiento"
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['patient', 'status']),
            models.Index(fields=['clinic_id', 'created_at']),
        ]

    def __str__(self):
        return f"{self.plan_name} ({self.get_status_display()})"

    def clean(self):
        if not self.plan_name or not self.plan_name.strip():
            raise ValidationError({'plan_name': "El nombre del plan es obligatorio."})

        validate_document(self.teeth, PLAN_TEETH_SCHEMA, 'teeth')
        validate_document(self.stages, PLAN_STAGES_SCHEMA, 'stages')

        numbers = [stage['stage_number'] for stage in self.stages]
        if numbers != list(range(1, len(numbers) + 1)):
            raise ValidationError({'stages': "Las etapas deben numerarse 1..N sin huecos."})

        for tooth in self.teeth:
            for procedure in tooth['procedures']:
                if procedure['stage'] > len(self.stages):
                    raise ValidationError({
                        'teeth': f"Diente {tooth['tooth_number']}: la etapa "
                                 f"{procedure['stage']} no existe."
                    })

    def save(self, *args, **kwargs):
        self.full_clean()
        super().save(*args, **kwargs)

    @property
    def is_locked(self):
        """Completado o cancelado: solo lectura"""
        return self.status in LOCKED_PLAN_STATUSES

    def get_stage(self, stage_number):
        for stage in self.stages:
            if stage['stage_number'] == stage_number:
                return stage
        return None

    def get_tooth(self, tooth_number):
        for tooth in self.teeth:
            if tooth['tooth_number'] == tooth_number:
                return tooth
        return None
