# api/appointment/services/__init__.py
from .appointment_service import AppointmentService

__all__ = [
    'AppointmentService',
]
