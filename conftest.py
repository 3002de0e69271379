"""
Fixtures compartidas: paciente, cita y un cliente API autenticado con los
claims de odontólogo/clínica que emitiría el servicio de autenticación.
"""
import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import AccessToken

from api.appointment.factories import AppointmentFactory
from api.patients.factories import PatientFactory
from authentication.jwt_claims_authentication import DoctorClinicUser
from common.services.external_services import ExternalServices


def build_doctor_user(doctor_id='doctor-1', clinic_id='clinic-1', role='doctor'):
    token = AccessToken()
    token['user_id'] = f'user-{doctor_id}'
    if doctor_id:
        token['doctor_id'] = doctor_id
    if clinic_id:
        token['clinic_id'] = clinic_id
    token['role'] = role
    return DoctorClinicUser(token)


@pytest.fixture(autouse=True)
def reset_external_services():
    ExternalServices.reset()
    yield
    ExternalServices.reset()


@pytest.fixture
def doctor_id():
    return 'doctor-1'


@pytest.fixture
def clinic_id():
    return 'clinic-1'


@pytest.fixture
def patient(db, clinic_id):
    return PatientFactory(clinic_id=clinic_id)


@pytest.fixture
def appointment(db, patient, doctor_id):
    return AppointmentFactory(patient=patient, doctor_id=doctor_id)


@pytest.fixture
def doctor_user(doctor_id, clinic_id):
    return build_doctor_user(doctor_id, clinic_id)


@pytest.fixture
def api_client(doctor_user):
    client = APIClient()
    client.force_authenticate(user=doctor_user)
    return client


@pytest.fixture
def make_api_client():
    """Cliente autenticado con otros claims (otro odontólogo, otra clínica)"""
    def _make(**claims):
        client = APIClient()
        client.force_authenticate(user=build_doctor_user(**claims))
        return client
    return _make
