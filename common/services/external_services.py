# common/services/external_services.py
"""
Factory que selecciona los backends de servicios externos según configuración.
Implementa patrón Singleton para reutilizar la instancia.

Todas las llamadas son best-effort: un fallo se registra como warning y se
devuelve el valor por defecto, nunca se propaga a la transacción clínica.
"""
from typing import Optional
import logging

from django.conf import settings

from api.utils.exceptions import UpstreamUnavailable
from .external_backend import (
    ClinicDirectoryBackend,
    NotificationBackend,
    HTTPClinicDirectoryBackend,
    HTTPNotificationBackend,
    NoopClinicDirectoryBackend,
    NoopNotificationBackend,
)

logger = logging.getLogger(__name__)


class ExternalServices:
    """
    Punto único de acceso al directorio de clínicas y a notificaciones.
    Cambia entre HTTP (prod) y noop (dev/tests) con EXTERNAL_SERVICES_BACKEND.
    """

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._directory, cls._instance._notifications = cls._create_backends()
        return cls._instance

    @classmethod
    def reset(cls):
        """Descarta la instancia (cambios de settings en pruebas)"""
        cls._instance = None

    @staticmethod
    def _create_backends():
        backend_type = getattr(settings, 'EXTERNAL_SERVICES_BACKEND', 'noop')
        timeout = getattr(settings, 'EXTERNAL_SERVICES_TIMEOUT', 3)

        if backend_type == 'http':
            logger.info("Usando servicios externos HTTP")
            return (
                HTTPClinicDirectoryBackend({'base_url': settings.CLINIC_DIRECTORY_URL, 'timeout': timeout}),
                HTTPNotificationBackend({'base_url': settings.NOTIFICATION_SERVICE_URL, 'timeout': timeout}),
            )

        logger.info("Usando servicios externos noop")
        return NoopClinicDirectoryBackend(), NoopNotificationBackend()

    @property
    def directory(self) -> ClinicDirectoryBackend:
        return self._directory

    @property
    def notifications(self) -> NotificationBackend:
        return self._notifications

    def consultation_fee(self, clinic_id, doctor_id) -> float:
        """Tarifa de consulta; 0 si el directorio no responde"""
        try:
            return self._directory.get_consultation_fee(str(clinic_id), str(doctor_id))
        except UpstreamUnavailable as e:
            logger.warning(
                f"No se pudo obtener la tarifa de consulta: {e}",
                extra={'clinic_id': str(clinic_id), 'doctor_id': str(doctor_id)}
            )
            return 0.0

    def doctor(self, doctor_id) -> Optional[dict]:
        try:
            return self._directory.get_doctor(str(doctor_id))
        except UpstreamUnavailable as e:
            logger.warning(f"No se pudo obtener el odontólogo {doctor_id}: {e}")
            return None

    def notify(self, event: str, payload: dict) -> bool:
        """Fire-and-forget; False si no se pudo entregar"""
        try:
            return self._notifications.send(event, payload)
        except UpstreamUnavailable as e:
            logger.warning(f"Notificación '{event}' no entregada: {e}")
            return False
