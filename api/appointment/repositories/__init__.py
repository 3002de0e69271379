# api/appointment/repositories/__init__.py
from .appointment_repository import AppointmentRepository

__all__ = [
    'AppointmentRepository',
]
