# odontogram/signals.py
"""
Observer Pattern con Django Signals para planes de tratamiento y odontograma
"""

from django.db.models.signals import post_save, pre_save
from django.dispatch import receiver, Signal
import logging

from api.odontogram.models import TreatmentPlan

logger = logging.getLogger(__name__)

# =============================================================================
# SEÑALES PERSONALIZADAS
# =============================================================================

# Cambio de estado derivado de un plan (draft -> ongoing -> completed, cancelled)
treatment_plan_status_changed = Signal()

# Se rechazó un procedimiento sobre una superficie ya tratada
surface_conflict_detected = Signal()

# =============================================================================
# RECEIVERS
# =============================================================================

@receiver(pre_save, sender=TreatmentPlan)
def remember_previous_plan_status(sender, instance, **kwargs):
    """Guarda el estado anterior para detectar transiciones en post_save"""
    instance._previous_status = (
        TreatmentPlan.objects.filter(pk=instance.pk).values_list('status', flat=True).first()
    )


@receiver(post_save, sender=TreatmentPlan)
def log_treatment_plan_changes(sender, instance, created, **kwargs):
    """Registra altas de planes y emite la transición de estado"""
    if created:
        logger.info(
            f"[AUDIT] Plan de tratamiento creado: {instance.plan_name} "
            f"(ID: {instance.id}) - Paciente: {instance.patient_id}"
        )

    previous = getattr(instance, '_previous_status', None)
    if previous != instance.status:
        treatment_plan_status_changed.send(
            sender=sender,
            plan=instance,
            previous_status=previous,
            status=instance.status,
        )


@receiver(treatment_plan_status_changed)
def log_treatment_plan_status(sender, plan, previous_status, status, **kwargs):
    logger.info(f"Plan {plan.id}: estado {previous_status or '-'} → {status}")


@receiver(surface_conflict_detected)
def log_surface_conflict(sender, patient_id, tooth_number, surface, last_procedure, **kwargs):
    logger.warning(
        f"Conflicto de superficie: paciente {patient_id}, diente {tooth_number} "
        f"({surface}) ya tratado con '{last_procedure}'"
    )
