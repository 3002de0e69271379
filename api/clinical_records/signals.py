from django.db.models.signals import post_save
from django.dispatch import receiver
import logging

from api.clinical_records.models import Visit

logger = logging.getLogger(__name__)


@receiver(post_save, sender=Visit)
def visit_audit(sender, instance, created, **kwargs):
    """Auditoría de visitas"""
    if created:
        logger.info(
            f"[AUDIT] Visita creada: {instance.id} - Paciente: {instance.patient_id} "
            f"- Odontólogo: {instance.doctor_id}"
        )
    else:
        logger.info(
            f"[AUDIT] Visita actualizada: {instance.id} ({instance.status}) "
            f"- Total: {instance.total_amount}"
        )
