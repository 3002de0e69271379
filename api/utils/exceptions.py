# api/utils/exceptions.py
"""
Excepciones de dominio del servicio de pacientes.

Las de validación, no encontrado y permisos son las propias de DRF; aquí solo
se agregan los conflictos clínicos y los fallos de servicios externos.
"""
from rest_framework import status
from rest_framework.exceptions import APIException


SURFACE_CONFLICT_SUGGESTION = (
    "This surface has already been treated. Please review the dental chart "
    "or select a different surface."
)


class SurfaceConflict(APIException):
    """Se intentó registrar un procedimiento sobre una superficie ya tratada"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'La superficie ya fue tratada'
    default_code = 'surface_conflict'
    error_type = 'SURFACE_CONFLICT'

    def __init__(self, tooth_number, surface, last_treated_at=None, last_procedure=None,
                 suggestion=SURFACE_CONFLICT_SUGGESTION):
        self.tooth_number = tooth_number
        self.surface = surface
        self.last_treated_at = last_treated_at
        self.last_procedure = last_procedure
        self.suggestion = suggestion
        super().__init__(
            detail=f"Surface '{surface}' of tooth {tooth_number} has already been treated"
        )

    @property
    def details(self):
        return {
            'tooth_number': self.tooth_number,
            'surface': self.surface,
            'last_treated_at': self.last_treated_at,
            'last_procedure': self.last_procedure,
            'suggestion': self.suggestion,
        }


class InvalidState(APIException):
    """Mutación estructural sobre un plan/etapa completado o cancelado"""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'La operación no es válida en el estado actual'
    default_code = 'invalid_state'
    error_type = 'INVALID_STATE'


class UpstreamUnavailable(Exception):
    """Un servicio externo (directorio, notificaciones) no respondió"""

    def __init__(self, service, reason=''):
        self.service = service
        self.reason = reason
        super().__init__(f"{service} no disponible: {reason}")
