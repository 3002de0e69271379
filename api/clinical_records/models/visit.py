from decimal import Decimal, ROUND_HALF_UP

from django.db import models
from django.core.exceptions import ValidationError
from django.core.validators import MinValueValidator
from django.utils import timezone

from api.patients.models.base import BaseModel


class VisitStatus(models.TextChoices):
    PENDING = 'pending', 'En atención'
    COMPLETED = 'completed', 'Finalizada'


class Visit(BaseModel):
    """
    Registro de una consulta odontológica.

    Se crea dentro de la transacción de la consulta y desde entonces solo
    cambia su enlace al plan de tratamiento y su estado final. El snapshot
    del odontograma queda como evidencia de lo que se vio en la visita.
    """

    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.PROTECT,
        related_name='visits',
        verbose_name='Paciente'
    )
    clinic_id = models.CharField(max_length=64, db_index=True, verbose_name='Clínica')
    doctor_id = models.CharField(max_length=64, verbose_name='Odontólogo')
    appointment = models.ForeignKey(
        'appointment.Appointment',
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='visits',
        verbose_name='Cita'
    )
    visit_date = models.DateTimeField(default=timezone.now, verbose_name='Fecha de la visita')

    # === ANAMNESIS Y DIAGNÓSTICO ===
    chief_complaints = models.JSONField(default=list, blank=True, verbose_name='Motivos de consulta')
    examination_findings = models.JSONField(default=list, blank=True, verbose_name='Hallazgos')
    dental_history = models.JSONField(default=list, blank=True, verbose_name='Antecedentes dentales')
    diagnosis = models.JSONField(default=list, blank=True, verbose_name='Diagnóstico')
    prescriptions = models.JSONField(default=list, blank=True, verbose_name='Prescripciones')
    notes = models.TextField(blank=True, verbose_name='Notas')

    # === TRABAJO REALIZADO ===
    dental_work = models.JSONField(default=list, blank=True, verbose_name='Trabajo dental')
    procedures = models.JSONField(default=list, blank=True, verbose_name='Procedimientos facturables')
    dental_chart_snapshot = models.JSONField(default=list, blank=True, verbose_name='Snapshot del odontograma')

    consultation_fee = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'),
        validators=[MinValueValidator(Decimal('0'))],
        verbose_name='Tarifa de consulta'
    )
    total_amount = models.DecimalField(
        max_digits=10, decimal_places=2, default=Decimal('0.00'),
        verbose_name='Total'
    )

    treatment_plan = models.ForeignKey(
        'odontogram.TreatmentPlan',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='visits',
        verbose_name='Plan de tratamiento'
    )
    status = models.CharField(
        max_length=20,
        choices=VisitStatus.choices,
        default=VisitStatus.PENDING,
        verbose_name='Estado'
    )
    created_by = models.CharField(max_length=64, blank=True, verbose_name='Registrado por')

    class Meta:
        verbose_name = 'Visita'
        verbose_name_plural = 'Visitas'
        ordering = ['-visit_date']
        indexes = [
            models.Index(fields=['patient', '-visit_date']),
            models.Index(fields=['clinic_id', 'doctor_id']),
        ]

    def __str__(self):
        return f"Visita {self.id} - {self.visit_date:%Y-%m-%d}"

    def clean(self):
        for line in self.procedures:
            if not isinstance(line, dict) or not line.get('name'):
                raise ValidationError({'procedures': 'Cada procedimiento debe tener nombre.'})
            if Decimal(str(line.get('fee') or 0)) < 0:
                raise ValidationError({'procedures': 'Las tarifas no pueden ser negativas.'})

    def calculate_total(self):
        """Tarifa de consulta + suma de los procedimientos"""
        procedures_total = sum(
            (Decimal(str(line.get('fee') or 0)) for line in self.procedures),
            Decimal('0')
        )
        total = Decimal(str(self.consultation_fee or 0)) + procedures_total
        return total.quantize(Decimal('0.01'), rounding=ROUND_HALF_UP)

    def save(self, *args, **kwargs):
        self.total_amount = self.calculate_total()
        self.full_clean()
        super().save(*args, **kwargs)
