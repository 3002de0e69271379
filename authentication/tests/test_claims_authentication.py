# authentication/tests/test_claims_authentication.py
"""
Autenticación sin tabla de usuarios: la identidad sale de los claims del JWT.
"""
import pytest
from rest_framework import status
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from authentication.jwt_claims_authentication import DoctorClinicUser


def _token(**claims):
    token = AccessToken()
    token['user_id'] = 'user-1'
    for key, value in claims.items():
        token[key] = value
    return token


def test_usuario_desde_claims():
    user = DoctorClinicUser(_token(doctor_id='doctor-1', clinic_id='clinic-1', role='doctor'))

    assert user.is_authenticated
    assert user.doctor_id == 'doctor-1'
    assert user.clinic_id == 'clinic-1'
    assert user.role == 'doctor'
    assert user.is_doctor


def test_token_sin_odontologo():
    user = DoctorClinicUser(_token(clinic_id='clinic-1'))

    assert user.doctor_id is None
    assert not user.is_doctor
    assert user.role == ''


@pytest.mark.django_db
class TestJWTAuthentication:

    def setup_method(self):
        self.client = APIClient()

    def test_token_en_header(self, patient):
        token = _token(doctor_id='doctor-1', clinic_id='clinic-1')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        response = self.client.get(f'/api/dental-chart/{patient.id}/')

        assert response.status_code == status.HTTP_200_OK

    def test_token_en_cookie(self, patient):
        token = _token(doctor_id='doctor-1', clinic_id='clinic-1')
        self.client.cookies['access_token'] = str(token)

        response = self.client.get(f'/api/dental-chart/{patient.id}/')

        assert response.status_code == status.HTTP_200_OK

    def test_token_invalido(self, patient):
        self.client.credentials(HTTP_AUTHORIZATION='Bearer no-es-un-token')

        response = self.client.get(f'/api/dental-chart/{patient.id}/')

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_lectura_permitida_sin_identidad_de_odontologo(self, patient):
        token = _token(role='assistant')
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {token}')

        assert self.client.get(f'/api/dental-chart/{patient.id}/').status_code == status.HTTP_200_OK

        response = self.client.post(
            f'/api/dental-chart/{patient.id}/check-conflict/',
            {'tooth_number': 11, 'surface': 'mesial'},
            format='json',
        )
        assert response.status_code == status.HTTP_403_FORBIDDEN
