# api/appointment/repositories/appointment_repository.py
from common.repositories.base_repository import BaseRepository
from ..models import Appointment, AppointmentStatus


class AppointmentRepository(BaseRepository[Appointment]):
    """Repositorio para operaciones de base de datos de Citas"""
    model = Appointment

    @classmethod
    def get_queryset(cls):
        return Appointment.objects.select_related('patient')

    @staticmethod
    def get_recalls_for_visit(visit_id):
        return Appointment.objects.filter(
            recall_from_visit_id=visit_id,
            status=AppointmentStatus.RECALL,
        )

    @staticmethod
    def update_status(appointment, status, **fields):
        appointment.status = status
        for key, value in fields.items():
            setattr(appointment, key, value)
        appointment.full_clean()
        appointment.save()
        return appointment
