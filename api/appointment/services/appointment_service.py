# api/appointment/services/appointment_service.py
import logging
from datetime import date, time

from django.db import transaction
from rest_framework.exceptions import NotFound, PermissionDenied, ValidationError

from api.utils.exceptions import InvalidState
from ..models import Appointment, AppointmentStatus
from ..repositories import AppointmentRepository

logger = logging.getLogger(__name__)


class AppointmentService:
    """Servicio con lógica de negocio para citas"""

    @staticmethod
    def get_appointment(appointment_id):
        appointment = AppointmentRepository.get_by_id(appointment_id)
        if appointment is None:
            raise NotFound(f"Cita {appointment_id} no encontrada")
        return appointment

    @staticmethod
    def lock_for_consultation(appointment_id, doctor_id):
        """
        Bloquea la cita y verifica que pueda atenderse.
        Debe llamarse dentro de una transacción.
        """
        appointment = AppointmentRepository.get_for_update(appointment_id)
        if appointment is None:
            raise NotFound(f"Cita {appointment_id} no encontrada")

        if not appointment.is_assigned_to(doctor_id):
            logger.warning(
                f"Odontólogo {doctor_id} intentó atender la cita {appointment_id} "
                f"asignada a {appointment.doctor_id}"
            )
            raise PermissionDenied("La cita está asignada a otro odontólogo")

        if appointment.is_cancelled:
            raise ValidationError({'appointment': ["La cita está cancelada"]})

        if appointment.is_completed:
            raise InvalidState("La cita ya fue atendida")

        return appointment

    @staticmethod
    def complete(appointment, visit):
        """Marca la cita como atendida y la enlaza a la visita"""
        AppointmentRepository.update_status(appointment, AppointmentStatus.COMPLETED, visit=visit)
        logger.info(f"Cita {appointment.id} atendida en visita {visit.id}")
        return appointment

    @staticmethod
    @transaction.atomic
    def create_recall(appointment, visit, recall_date, recall_time, department='', notes='',
                      created_by=''):
        """Agenda la cita de control originada en una visita"""
        if not isinstance(recall_date, date) or not isinstance(recall_time, time):
            raise ValidationError({'recall': ["Fecha y hora de control son obligatorias"]})

        if recall_date < appointment.appointment_date:
            raise ValidationError({'recall': ["El control no puede ser anterior a la cita"]})

        recall = AppointmentRepository.create(
            patient=appointment.patient,
            clinic_id=appointment.clinic_id,
            doctor_id=appointment.doctor_id or created_by or None,
            department=department or appointment.department,
            appointment_date=recall_date,
            appointment_time=recall_time,
            status=AppointmentStatus.RECALL,
            notes=notes or '',
            recall_from_visit=visit,
            created_by=created_by or '',
        )
        logger.info(
            f"Control agendado {recall.id} para {recall_date} {recall_time} "
            f"desde visita {visit.id}"
        )
        return recall
