# common/services/external_backend.py
"""
Patrón Strategy para los servicios externos del consultorio.
El directorio de clínicas (tarifas, datos del odontólogo) y el servicio de
notificaciones se consumen por HTTP en producción; en desarrollo y pruebas
se usa la variante noop, que devuelve valores por defecto.
"""
from abc import ABC, abstractmethod
from typing import Optional
import logging

import requests

from api.utils.exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)


class ClinicDirectoryBackend(ABC):
    """Interfaz abstracta del directorio de clínicas y odontólogos"""

    @abstractmethod
    def get_consultation_fee(self, clinic_id: str, doctor_id: str) -> float:
        """Tarifa de consulta del odontólogo en la clínica"""
        pass

    @abstractmethod
    def get_doctor(self, doctor_id: str) -> Optional[dict]:
        """Datos públicos del odontólogo"""
        pass


class NotificationBackend(ABC):
    """Interfaz abstracta del servicio de notificaciones"""

    @abstractmethod
    def send(self, event: str, payload: dict) -> bool:
        """Envía un evento; True si el servicio lo aceptó"""
        pass


class _HTTPBackend:
    service_name = 'external'

    def __init__(self, config: dict):
        self.base_url = config['base_url'].rstrip('/')
        self.timeout = config.get('timeout', 3)
        self.session = requests.Session()

    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base_url}/{path.lstrip('/')}"
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
            response.raise_for_status()
        except requests.RequestException as e:
            raise UpstreamUnavailable(self.service_name, str(e)) from e
        return response


class HTTPClinicDirectoryBackend(_HTTPBackend, ClinicDirectoryBackend):
    """Directorio de clínicas vía HTTP"""
    service_name = 'clinic-directory'

    def __init__(self, config: dict):
        super().__init__(config)
        logger.info(f"Directorio de clínicas HTTP: {self.base_url}")

    def get_consultation_fee(self, clinic_id: str, doctor_id: str) -> float:
        response = self._request(
            'GET',
            f'clinics/{clinic_id}/consultation-fee/',
            params={'doctor_id': doctor_id},
        )
        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(self.service_name, 'respuesta no es JSON') from e

        data = body.get('data', body) if isinstance(body, dict) else {}
        fee = data.get('consultation_fee', data.get('fee')) if isinstance(data, dict) else None
        if fee is None:
            raise UpstreamUnavailable(self.service_name, 'respuesta sin tarifa')
        try:
            return float(fee)
        except (TypeError, ValueError) as e:
            raise UpstreamUnavailable(self.service_name, f'tarifa inválida: {fee!r}') from e

    def get_doctor(self, doctor_id: str) -> Optional[dict]:
        response = self._request('GET', f'doctors/{doctor_id}/')
        try:
            body = response.json()
        except ValueError as e:
            raise UpstreamUnavailable(self.service_name, 'respuesta no es JSON') from e
        return body.get('data', body) if isinstance(body, dict) else None


class HTTPNotificationBackend(_HTTPBackend, NotificationBackend):
    """Servicio de notificaciones vía HTTP"""
    service_name = 'notifications'

    def send(self, event: str, payload: dict) -> bool:
        self._request('POST', 'notifications/', json={'event': event, 'payload': payload})
        logger.debug(f"Notificación enviada: {event}")
        return True


class NoopClinicDirectoryBackend(ClinicDirectoryBackend):
    """Sin directorio configurado: tarifa 0 y sin datos del odontólogo"""

    def get_consultation_fee(self, clinic_id: str, doctor_id: str) -> float:
        return 0.0

    def get_doctor(self, doctor_id: str) -> Optional[dict]:
        return None


class NoopNotificationBackend(NotificationBackend):

    def send(self, event: str, payload: dict) -> bool:
        logger.debug(f"Notificación descartada (noop): {event}")
        return False
