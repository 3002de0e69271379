# api/appointment/signals.py
from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver
from .models import Appointment
import logging

logger = logging.getLogger(__name__)


@receiver(pre_save, sender=Appointment)
def appointment_pre_save(sender, instance, **kwargs):
    """Registra cambios de estado de la cita"""
    if not instance.pk:
        return

    previous = Appointment.objects.filter(pk=instance.pk).values_list('status', flat=True).first()
    if previous and previous != instance.status:
        logger.info(f"Cita {instance.id} cambió de estado: {previous} -> {instance.status}")


@receiver(post_save, sender=Appointment)
def appointment_audit(sender, instance, created, **kwargs):
    if created:
        logger.info(
            f"[AUDIT] Cita creada: {instance.id} ({instance.status}) "
            f"paciente {instance.patient_id}"
        )
