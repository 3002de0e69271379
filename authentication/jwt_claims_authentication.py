"""
============================================================================
JWT CLAIMS AUTHENTICATION - Identidad odontólogo/clínica desde el token
============================================================================
Los tokens los emite el servicio de autenticación. Este servicio no tiene
tabla de usuarios: solo valida la firma y lee los claims.
"""
import logging

from django.conf import settings
from django.utils.functional import cached_property
from rest_framework_simplejwt.authentication import JWTStatelessUserAuthentication
from rest_framework_simplejwt.models import TokenUser

logger = logging.getLogger(__name__)


class DoctorClinicUser(TokenUser):
    """Usuario sin estado construido a partir de los claims del token"""

    @cached_property
    def doctor_id(self):
        return self.token.get(settings.DOCTOR_ID_CLAIM)

    @cached_property
    def clinic_id(self):
        return self.token.get(settings.CLINIC_ID_CLAIM)

    @cached_property
    def role(self):
        return self.token.get('role', '')

    @property
    def is_doctor(self):
        return bool(self.doctor_id)


class DoctorClinicJWTAuthentication(JWTStatelessUserAuthentication):
    """
    Autenticación JWT que lee el token de la cookie o del header Authorization.
    """

    def authenticate(self, request):
        # Primero intentar leer de cookie
        cookie_name = getattr(settings, 'SIMPLE_JWT', {}).get('AUTH_COOKIE', 'access_token')
        raw_token = request.COOKIES.get(cookie_name)

        # Si no hay cookie, intentar con header
        if raw_token is None:
            header = self.get_header(request)
            if header is None:
                return None

            raw_token = self.get_raw_token(header)

        if raw_token is None:
            return None

        validated_token = self.get_validated_token(raw_token)
        user = self.get_user(validated_token)
        logger.debug(f"Token válido para doctor={user.doctor_id} clinic={user.clinic_id}")
        return user, validated_token
