# patients/signals.py
from django.db.models.signals import post_save
from django.dispatch import receiver
from .models import Patient
import logging

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Patient)
def patient_audit(sender, instance, created, **kwargs):
    """Auditoría de altas y cambios de pacientes"""
    if created:
        logger.info(f"[AUDIT] Paciente creado: {instance.name} (ID: {instance.id})")
    else:
        logger.info(
            f"[AUDIT] Paciente actualizado: {instance.name} (ID: {instance.id}) "
            f"- dientes en odontograma: {len(instance.dental_chart)}"
        )
