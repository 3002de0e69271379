"""
Servicios para lógica de negocio de consultas y visitas
"""
from .consultation_service import ConsultationService

__all__ = [
    'ConsultationService',
]
