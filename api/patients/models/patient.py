# patients/models/patient.py
from django.db import models
from django.core.validators import RegexValidator
from django.core.exceptions import ValidationError

from api.odontogram.schemas import DENTAL_CHART_SCHEMA, validate_document
from .base import BaseModel
from .constants import GENDERS


class Patient(BaseModel):
    """
    Paciente del consultorio.

    El odontograma completo vive embebido en `dental_chart` (un registro por
    diente tratado o con condiciones). Los planes y visitas se referencian por
    id para poder reconstruir el historial sin joins.
    """

    name = models.CharField(max_length=150, verbose_name="Nombre completo")
    phone = models.CharField(
        max_length=10,
        blank=True,
        validators=[
            RegexValidator(regex=r'^\d{10}$', message="El teléfono debe tener 10 dígitos.")
        ],
        verbose_name="Teléfono"
    )
    email = models.EmailField(blank=True, verbose_name="Correo electrónico")
    age = models.PositiveIntegerField(null=True, blank=True, verbose_name="Edad")
    gender = models.CharField(max_length=1, choices=GENDERS, blank=True, verbose_name="Sexo")
    clinic_id = models.CharField(max_length=64, db_index=True, verbose_name="Clínica")

    dental_chart = models.JSONField(default=list, blank=True, verbose_name="Odontograma")
    treatment_plan_ids = models.JSONField(default=list, blank=True, verbose_name="Planes de tratamiento")
    visit_history = models.JSONField(default=list, blank=True, verbose_name="Historial de visitas")

    class Meta:
        verbose_name = "Paciente"
        verbose_name_plural = "Pacientes"
        ordering = ['name']
        indexes = [
            models.Index(fields=['clinic_id', 'name']),
            models.Index(fields=['active']),
        ]

    def __str__(self):
        return f"{self.name} ({self.id})"

    def clean(self):
        """Validaciones del documento embebido"""
        if not self.name or not self.name.strip():
            raise ValidationError({'name': "El nombre es obligatorio."})

        validate_document(self.dental_chart, DENTAL_CHART_SCHEMA, 'dental_chart')

        tooth_numbers = [tooth['tooth_number'] for tooth in self.dental_chart]
        if len(tooth_numbers) != len(set(tooth_numbers)):
            raise ValidationError({'dental_chart': "Cada diente debe aparecer una sola vez."})

    def save(self, *args, **kwargs):
        """Método save con validaciones automáticas"""
        self.full_clean()
        super().save(*args, **kwargs)

    # ================== ODONTOGRAMA ==================
    def get_tooth(self, tooth_number):
        """Registro del diente o None si nunca se registró nada"""
        for tooth in self.dental_chart:
            if tooth['tooth_number'] == tooth_number:
                return tooth
        return None

    def add_visit(self, visit_id):
        visit_id = str(visit_id)
        if visit_id not in self.visit_history:
            self.visit_history.append(visit_id)

    def add_treatment_plan(self, plan_id):
        plan_id = str(plan_id)
        if plan_id not in self.treatment_plan_ids:
            self.treatment_plan_ids.append(plan_id)

    def remove_treatment_plan(self, plan_id):
        plan_id = str(plan_id)
        self.treatment_plan_ids = [pid for pid in self.treatment_plan_ids if pid != plan_id]
