# api/odontogram/tests/test_endpoints.py
"""
Tests de los endpoints de odontograma y planes de tratamiento.
Las respuestas llegan envueltas en {success, status_code, message, data, errors}.
"""
import uuid

import pytest
from rest_framework import status
from rest_framework.test import APIClient

from api.clinical_records.factories import VisitFactory
from api.odontogram.models import TreatmentPlan

PLAN_PAYLOAD = {
    'plan_name': 'Rehabilitación',
    'teeth': [
        {'tooth_number': 11, 'procedures': [
            {'name': 'Filling', 'surface': 'mesial', 'stage': 1, 'estimated_cost': 50},
            {'name': 'Crown', 'surface': 'entire', 'stage': 2, 'estimated_cost': 300},
        ]},
    ],
    'stages': [{'stage_name': 'Restauración'}, {'stage_name': 'Prótesis'}],
}


@pytest.mark.django_db
class TestDentalChartEndpoints:

    @pytest.fixture(autouse=True)
    def _setup(self, api_client, patient):
        self.client = api_client
        self.patient = patient
        self.base_url = f'/api/dental-chart/{patient.id}/'

    def test_odontograma_vacio(self):
        response = self.client.get(self.base_url)

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['success'] is True
        assert body['data']['dental_chart'] == []

    def test_requiere_autenticacion(self):
        response = APIClient().get(self.base_url)
        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_paciente_inexistente(self):
        response = self.client.get(f'/api/dental-chart/{uuid.uuid4()}/')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        assert response.json()['success'] is False

    def test_registrar_procedimiento_y_conflicto(self):
        visit = VisitFactory(patient=self.patient)
        url = f'{self.base_url}visit/{visit.id}/procedure/'
        payload = {'tooth_number': 16, 'procedure_name': 'Filling', 'surface': 'occlusal', 'fee': 45}

        response = self.client.post(url, payload, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body['message'] == 'Procedimiento registrado'
        assert body['data']['total_amount'] == '65.00'
        assert body['data']['dental_chart'][0]['tooth_number'] == 16

        visit.refresh_from_db()
        assert visit.procedures[0]['name'] == 'Filling'
        assert visit.dental_chart_snapshot[0]['tooth_number'] == 16

        response = self.client.post(url, payload, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        body = response.json()
        assert body['error_type'] == 'SURFACE_CONFLICT'
        assert body['details']['tooth_number'] == 16
        assert body['details']['last_procedure'] == 'Filling'

    def test_procedimiento_actualiza_el_plan(self):
        plan_response = self.client.post(
            f'/api/treatment-plan/{self.patient.id}/start/', PLAN_PAYLOAD, format='json'
        )
        plan_id = plan_response.json()['data']['id']
        visit = VisitFactory(patient=self.patient)

        response = self.client.post(
            f'{self.base_url}visit/{visit.id}/procedure/',
            {'tooth_number': 11, 'procedure_name': 'Filling', 'surface': 'mesial', 'treatment_plan_id': plan_id},
            format='json',
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()['data']['treatment_plan_status'] == 'ongoing'

    def test_visita_de_otro_paciente(self):
        visit = VisitFactory()

        response = self.client.post(
            f'{self.base_url}visit/{visit.id}/procedure/',
            {'tooth_number': 16, 'procedure_name': 'Filling'},
            format='json',
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_check_conflict(self):
        visit = VisitFactory(patient=self.patient)
        self.client.post(
            f'{self.base_url}visit/{visit.id}/procedure/',
            {'tooth_number': 16, 'procedure_name': 'Crown', 'surface': 'entire'},
            format='json',
        )

        response = self.client.post(
            f'{self.base_url}check-conflict/', {'tooth_number': 16, 'surface': 'buccal'}, format='json'
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['has_conflict'] is True
        assert data['details']['last_procedure'] == 'Crown'

    def test_check_conflict_requiere_superficie(self):
        response = self.client.post(f'{self.base_url}check-conflict/', {'tooth_number': 16}, format='json')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_historial_del_diente(self):
        response = self.client.get(f'{self.base_url}tooth/16/')

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['tooth_number'] == 16

    def test_diente_fuera_de_rango(self):
        response = self.client.get(f'{self.base_url}tooth/40/')
        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_escritura_sin_identidad_de_odontologo(self, make_api_client):
        client = make_api_client(doctor_id=None)
        visit = VisitFactory(patient=self.patient)

        response = client.post(
            f'{self.base_url}visit/{visit.id}/procedure/',
            {'tooth_number': 16, 'procedure_name': 'Filling'},
            format='json',
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_comparacion_con_plan(self):
        plan_response = self.client.post(
            f'/api/treatment-plan/{self.patient.id}/start/', PLAN_PAYLOAD, format='json'
        )
        plan_id = plan_response.json()['data']['id']

        response = self.client.get(f'{self.base_url}comparison/{plan_id}/')

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['plan_status'] == 'draft'
        assert len(data['planned_work']) == 2
        assert data['progress'] == {'total': 2, 'completed': 0, 'percentage': 0}

    def _registrar(self, tooth_number=16, procedure_name='Crown', surface='entire'):
        visit = VisitFactory(patient=self.patient)
        response = self.client.post(
            f'{self.base_url}visit/{visit.id}/procedure/',
            {'tooth_number': tooth_number, 'procedure_name': procedure_name, 'surface': surface},
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED

    def test_actualizar_estado_del_diente(self):
        self._registrar()

        response = self.client.patch(
            f'{self.base_url}tooth/16/status/',
            {'status': 'crowned', 'notes': 'Corona de zirconio'},
            format='json',
        )

        assert response.status_code == status.HTTP_200_OK
        body = response.json()
        assert body['message'] == 'Estado del diente actualizado'
        assert body['data']['current_status'] == 'crowned'
        assert body['data']['general_notes'] == 'Corona de zirconio'
        assert body['data']['last_updated_by'] == 'doctor-1'

        response = self.client.patch(f'{self.base_url}tooth/16/status/', {'status': 'extracted'}, format='json')

        assert response.status_code == status.HTTP_200_OK
        self.patient.refresh_from_db()
        tooth = self.patient.get_tooth(16)
        assert tooth['current_status'] == 'extracted'
        assert tooth['general_notes'] == 'Corona de zirconio'
        assert [p['name'] for p in tooth['procedures']] == ['Crown']

    def test_estado_de_diente_sin_registro(self):
        response = self.client.patch(f'{self.base_url}tooth/16/status/', {'status': 'missing'}, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        self.patient.refresh_from_db()
        assert self.patient.dental_chart == []

    def test_estado_de_diente_paciente_inexistente(self):
        response = self.client.patch(
            f'/api/dental-chart/{uuid.uuid4()}/tooth/16/status/', {'status': 'missing'}, format='json'
        )
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def test_estado_de_diente_requiere_estado(self):
        self._registrar()

        response = self.client.patch(f'{self.base_url}tooth/16/status/', {'notes': 'Sin estado'}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'status' in response.json()['errors']

    def test_odontograma_de_otra_clinica(self, make_api_client):
        self._registrar()
        client = make_api_client(clinic_id='clinic-2')
        visit = VisitFactory(patient=self.patient)

        responses = [
            client.get(self.base_url),
            client.get(f'{self.base_url}tooth/16/'),
            client.post(f'{self.base_url}check-conflict/', {'tooth_number': 16, 'surface': 'buccal'}, format='json'),
            client.patch(f'{self.base_url}tooth/16/status/', {'status': 'missing'}, format='json'),
            client.post(
                f'{self.base_url}visit/{visit.id}/procedure/',
                {'tooth_number': 21, 'procedure_name': 'Filling', 'surface': 'mesial'},
                format='json',
            ),
        ]

        assert [r.status_code for r in responses] == [status.HTTP_404_NOT_FOUND] * len(responses)
        self.patient.refresh_from_db()
        assert self.patient.get_tooth(16).get('current_status') is None
        assert self.patient.get_tooth(21) is None


@pytest.mark.django_db
class TestTreatmentPlanEndpoints:

    @pytest.fixture(autouse=True)
    def _setup(self, api_client, patient):
        self.client = api_client
        self.patient = patient
        response = self.client.post(f'/api/treatment-plan/{patient.id}/start/', PLAN_PAYLOAD, format='json')
        assert response.status_code == status.HTTP_201_CREATED
        self.plan_id = response.json()['data']['id']
        self.plan_url = f'/api/treatment-plan/{self.plan_id}/'

    def test_plan_creado(self):
        response = self.client.get(self.plan_url)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['status'] == 'draft'
        assert data['created_by_doctor_id'] == 'doctor-1'
        assert data['clinic_id'] == 'clinic-1'
        assert data['progress'] == {'total': 2, 'completed': 0}

    def test_payload_invalido(self):
        payload = dict(PLAN_PAYLOAD, stages=[{'stage_name': 'Única'}])

        response = self.client.post(f'/api/treatment-plan/{self.patient.id}/start/', payload, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert 'teeth' in response.json()['errors']

    def test_listar_por_paciente_y_estado(self):
        response = self.client.get('/api/treatment-plan/', {'patient_id': str(self.patient.id)})
        results = response.json()['data']['results']
        assert [plan['id'] for plan in results] == [self.plan_id]

        response = self.client.get('/api/treatment-plan/', {'status': 'completed'})
        assert response.json()['data']['results'] == []

    def test_no_lista_planes_de_otra_clinica(self, make_api_client):
        client = make_api_client(clinic_id='clinic-2')

        response = client.get('/api/treatment-plan/')

        assert response.json()['data']['results'] == []

    def test_flujo_completo_por_etapas(self):
        response = self.client.post(f'{self.plan_url}stage/1/start/')
        assert response.json()['data']['status'] == 'ongoing'

        response = self.client.post(f'{self.plan_url}stage/1/complete/', {}, format='json')
        assert response.status_code == status.HTTP_200_OK
        data = response.json()['data']
        assert data['current_stage'] == 2
        assert data['stages'][0]['status'] == 'completed'

        response = self.client.patch(
            f'{self.plan_url}procedures/',
            {'completed_procedures': [{'tooth_number': 11, 'procedure_name': 'Crown', 'surface': 'entire'}]},
            format='json',
        )
        assert response.status_code == status.HTTP_200_OK
        assert response.json()['message'] == '1 procedimientos completados'
        assert response.json()['data']['status'] == 'completed'

        response = self.client.post(f'{self.plan_url}stage/', {'stage_name': 'Control'}, format='json')
        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()['error_type'] == 'INVALID_STATE'

    def test_agregar_y_eliminar_etapa(self):
        response = self.client.post(
            f'{self.plan_url}stage/',
            {
                'stage_name': 'Control',
                'tooth_surface_procedures': [
                    {'tooth_number': 16, 'surface_procedures': [{'surface': 'occlusal', 'procedure_names': ['Sealant']}]},
                ],
            },
            format='json',
        )
        assert response.status_code == status.HTTP_201_CREATED
        assert len(response.json()['data']['stages']) == 3

        response = self.client.delete(f'{self.plan_url}stage/1/')
        assert response.status_code == status.HTTP_200_OK
        stages = response.json()['data']['stages']
        assert [s['stage_name'] for s in stages] == ['Prótesis', 'Control']

    def test_eliminar_procedimiento_por_query(self):
        response = self.client.delete(f'{self.plan_url}procedure/11/?procedure_name=Crown&surface=entire')

        assert response.status_code == status.HTTP_200_OK
        procedures = response.json()['data']['teeth'][0]['procedures']
        assert [p['name'] for p in procedures] == ['Filling']

    def test_finalizar(self):
        response = self.client.post(f'{self.plan_url}finish/', {}, format='json')

        assert response.status_code == status.HTTP_200_OK
        assert response.json()['data']['status'] == 'completed'

    def test_cancelar_dos_veces(self):
        response = self.client.post(f'{self.plan_url}cancel/', {'reason': 'Sin cobertura'}, format='json')
        assert response.json()['data']['status'] == 'cancelled'
        assert response.json()['data']['cancellation_reason'] == 'Sin cobertura'

        response = self.client.post(f'{self.plan_url}cancel/', {}, format='json')
        assert response.status_code == status.HTTP_409_CONFLICT

    def test_eliminar_plan(self):
        response = self.client.delete(self.plan_url)

        assert response.status_code == status.HTTP_200_OK
        assert not TreatmentPlan.objects.filter(id=self.plan_id).exists()

    def test_plan_inexistente(self):
        response = self.client.post(f'/api/treatment-plan/{uuid.uuid4()}/finish/', {}, format='json')
        assert response.status_code == status.HTTP_404_NOT_FOUND

    def _chart(self, tooth_number):
        response = self.client.get(f'/api/dental-chart/{self.patient.id}/')
        chart = response.json()['data']['dental_chart']
        tooth = next((t for t in chart if t['tooth_number'] == tooth_number), {'procedures': []})
        return {p['name']: p for p in tooth['procedures']}

    def test_plan_creado_aparece_en_el_odontograma(self):
        entries = self._chart(11)

        assert set(entries) == {'Filling', 'Crown'}
        assert {p['status'] for p in entries.values()} == {'planned'}
        assert {p['treatment_plan_id'] for p in entries.values()} == {self.plan_id}

    def test_completar_etapa_marca_el_odontograma(self):
        response = self.client.post(f'{self.plan_url}stage/1/complete/', {}, format='json')
        assert response.status_code == status.HTTP_200_OK

        entries = self._chart(11)
        assert entries['Filling']['status'] == 'completed'
        assert entries['Filling']['cost'] == 50
        assert entries['Crown']['status'] == 'planned'

    def test_cancelar_limpia_lo_planificado_del_odontograma(self):
        self.client.post(f'{self.plan_url}cancel/', {'reason': 'Sin cobertura'}, format='json')

        assert self._chart(11) == {}

    @pytest.mark.parametrize('method, path, payload', [
        ('post', 'cancel/', {}),
        ('post', 'finish/', {}),
        ('post', 'stage/', {'stage_name': 'Control'}),
        ('delete', 'stage/1/', None),
        ('post', 'stage/1/start/', None),
        ('post', 'stage/1/complete/', {}),
        ('patch', 'procedures/', {
            'completed_procedures': [{'tooth_number': 11, 'procedure_name': 'Filling', 'surface': 'mesial'}],
        }),
        ('delete', 'procedure/11/?procedure_name=Crown&surface=entire', None),
        ('delete', '', None),
        ('get', '', None),
    ])
    def test_plan_de_otra_clinica(self, make_api_client, method, path, payload):
        client = make_api_client(clinic_id='clinic-2')

        response = getattr(client, method)(f'{self.plan_url}{path}', payload, format='json')

        assert response.status_code == status.HTTP_404_NOT_FOUND
        plan = TreatmentPlan.objects.get(id=self.plan_id)
        assert plan.status == 'draft'
        assert len(plan.stages) == 2
        assert [p['status'] for p in plan.get_tooth(11)['procedures']] == ['planned', 'planned']
        assert set(self._chart(11)) == {'Filling', 'Crown'}
