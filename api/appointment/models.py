# api/appointment/models.py
import uuid
from django.db import models
from django.core.exceptions import ValidationError


class AppointmentStatus(models.TextChoices):
    """Estados posibles de una cita"""
    SCHEDULED = 'scheduled', 'Programada'
    CANCELLED = 'cancelled', 'Cancelada'
    COMPLETED = 'completed', 'Atendida'
    NEEDS_RESCHEDULE = 'needs_reschedule', 'Por reprogramar'
    RECALL = 'recall', 'Control'
    PENDING_APPROVAL = 'pending_approval', 'Pendiente de aprobación'


class Appointment(models.Model):
    """Cita odontológica; la consulta la cierra y puede agendar un control"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    patient = models.ForeignKey(
        'patients.Patient',
        on_delete=models.CASCADE,
        related_name='appointments',
        verbose_name="Paciente"
    )
    clinic_id = models.CharField(max_length=64, db_index=True, verbose_name="Clínica")
    doctor_id = models.CharField(max_length=64, blank=True, null=True, verbose_name="Odontólogo")
    department = models.CharField(max_length=100, blank=True, verbose_name="Departamento")

    appointment_date = models.DateField(verbose_name="Fecha de la cita")
    appointment_time = models.TimeField(verbose_name="Hora de la cita")

    status = models.CharField(
        max_length=20,
        choices=AppointmentStatus.choices,
        default=AppointmentStatus.SCHEDULED,
        verbose_name="Estado"
    )
    notes = models.TextField(blank=True, verbose_name="Observaciones")

    # Visita que atendió la cita
    visit = models.ForeignKey(
        'clinical_records.Visit',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='attended_appointments',
        verbose_name="Visita"
    )
    # Visita que originó esta cita de control
    recall_from_visit = models.ForeignKey(
        'clinical_records.Visit',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='recall_appointments',
        verbose_name="Control de la visita"
    )

    created_by = models.CharField(max_length=64, blank=True, verbose_name="Creado por")
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Cita"
        verbose_name_plural = "Citas"
        ordering = ['-appointment_date', '-appointment_time']
        indexes = [
            models.Index(fields=['appointment_date', 'doctor_id']),
            models.Index(fields=['patient', 'appointment_date']),
            models.Index(fields=['status', 'appointment_date']),
        ]

    def __str__(self):
        return f"Cita {self.id} - {self.appointment_date} {self.appointment_time} ({self.status})"

    def clean(self):
        if self.status == AppointmentStatus.COMPLETED and self.visit_id is None:
            raise ValidationError({'visit': "Una cita atendida debe tener su visita."})

    @property
    def is_cancelled(self):
        return self.status == AppointmentStatus.CANCELLED

    @property
    def is_completed(self):
        return self.status == AppointmentStatus.COMPLETED

    def is_assigned_to(self, doctor_id):
        """Sin odontólogo asignado, cualquiera puede atenderla"""
        return not self.doctor_id or str(self.doctor_id) == str(doctor_id)
