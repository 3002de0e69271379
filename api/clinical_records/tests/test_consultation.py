# api/clinical_records/tests/test_consultation.py
"""
Tests de la consulta odontológica: todo o nada sobre visita, odontograma,
plan de tratamiento, cita y control.
"""
import datetime
from decimal import Decimal
from unittest import mock

import pytest
from rest_framework import status
from rest_framework.exceptions import PermissionDenied, ValidationError

from api.appointment.factories import AppointmentFactory
from api.appointment.models import Appointment, AppointmentStatus
from api.clinical_records.models import Visit, VisitStatus
from api.clinical_records.services import ConsultationService
from api.odontogram.constants import PlanStatus
from api.odontogram.models import TreatmentPlan
from api.odontogram.services import DentalChartService
from api.utils.exceptions import InvalidState, SurfaceConflict, UpstreamUnavailable
from common.repositories.unit_of_work import PatientUnitOfWork
from common.services.external_backend import NoopClinicDirectoryBackend


def _performed(tooth_number, name, surface, cost=None):
    procedure = {'name': name, 'surface': surface, 'status': 'completed'}
    if cost is not None:
        procedure['cost'] = cost
    return {'tooth_number': tooth_number, 'procedures': [procedure]}


NEW_PLAN = {
    'plan_name': 'Rehabilitación',
    'teeth': [{'tooth_number': 11, 'procedures': [
        {'name': 'Filling', 'surface': 'mesial', 'stage': 1, 'estimated_cost': 50},
        {'name': 'Crown', 'surface': 'entire', 'stage': 2, 'estimated_cost': 300},
    ]}],
    'stages': [{'stage_name': 'Restauración'}, {'stage_name': 'Prótesis'}],
}


@pytest.mark.django_db
class TestConsultationService:

    @pytest.fixture(autouse=True)
    def _setup(self, patient, appointment):
        self.patient = patient
        self.appointment = appointment
        self.external = mock.Mock()
        self.external.consultation_fee.return_value = 0.0
        self.service = ConsultationService(external=self.external)

    def _consult(self, payload, appointment=None, doctor_id='doctor-1', clinic_id='clinic-1'):
        appointment = appointment or self.appointment
        return self.service.consult(appointment.id, doctor_id, clinic_id, payload)

    def test_consulta_completa(self):
        recall_date = datetime.date.today() + datetime.timedelta(days=15)

        result = self._consult({
            'chief_complaints': ['Dolor en molar'],
            'diagnosis': ['Caries oclusal'],
            'prescriptions': [{'medicine_name': 'Ibuprofeno', 'dosage': '400mg',
                               'frequency': 'c/8h', 'duration': '3 días'}],
            'performed_teeth': [dict(_performed(16, 'Filling', 'occlusal', cost=45), conditions=['Caries'])],
            'planned_teeth': [{'tooth_number': 21, 'procedures': [
                {'name': 'Root Canal', 'surface': 'entire', 'status': 'planned', 'estimated_cost': 200},
            ]}],
            'recall': {'date': recall_date.isoformat(), 'time': '10:00'},
        })

        visit = Visit.objects.get(id=result['visit'].id)
        assert visit.status == VisitStatus.COMPLETED
        assert visit.total_amount == Decimal('45.00')
        assert visit.procedures == [{
            'name': 'Filling', 'tooth_number': 16, 'surface': 'occlusal', 'fee': 45.0, 'notes': '',
        }]
        assert visit.dental_work == [{'tooth_number': 16, 'surface': 'occlusal', 'procedure': 'Filling', 'status': 'completed'}]
        assert [t['tooth_number'] for t in visit.dental_chart_snapshot] == [16, 21]

        self.appointment.refresh_from_db()
        assert self.appointment.status == AppointmentStatus.COMPLETED
        assert self.appointment.visit_id == visit.id

        recall = result['recall_appointment']
        assert recall.status == AppointmentStatus.RECALL
        assert recall.appointment_date == recall_date
        assert recall.appointment_time == datetime.time(10, 0)
        assert recall.recall_from_visit_id == visit.id

        self.patient.refresh_from_db()
        assert self.patient.visit_history == [str(visit.id)]
        filling = [e for e in self.patient.get_tooth(16)['procedures'] if e['type'] == 'treatment'][0]
        assert filling['status'] == 'completed'
        assert filling['completed_in_visit_id'] == str(visit.id)
        assert self.patient.get_tooth(16)['conditions'] == ['Caries']
        assert self.patient.get_tooth(21)['procedures'][0]['status'] == 'planned'

        assert result['treatment_plan'] is None
        assert result['plan_updated'] is False

    def test_conflicto_en_el_segundo_diente_no_deja_cambios(self):
        with PatientUnitOfWork(self.patient.id) as uow:
            DentalChartService().apply_work(uow, [_performed(21, 'Crown', 'entire')])
        self.patient.refresh_from_db()
        chart_before = self.patient.dental_chart

        with pytest.raises(SurfaceConflict):
            self._consult({
                'performed_teeth': [
                    _performed(16, 'Filling', 'occlusal'),
                    _performed(21, 'Filling', 'occlusal'),
                ],
                'treatment_plan': NEW_PLAN,
                'recall': {'date': datetime.date.today().isoformat(), 'time': '10:00'},
            })

        assert not Visit.objects.exists()
        assert not TreatmentPlan.objects.exists()
        assert Appointment.objects.count() == 1
        self.appointment.refresh_from_db()
        assert self.appointment.status == AppointmentStatus.SCHEDULED
        self.patient.refresh_from_db()
        assert self.patient.dental_chart == chart_before
        assert self.patient.visit_history == []

    def test_plan_nuevo_se_refleja_en_el_odontograma(self):
        result = self._consult({'treatment_plan': NEW_PLAN})

        plan = result['treatment_plan']
        assert plan.status == PlanStatus.DRAFT
        assert result['visit'].treatment_plan_id == plan.id

        self.patient.refresh_from_db()
        assert self.patient.treatment_plan_ids == [str(plan.id)]
        entries = self.patient.get_tooth(11)['procedures']
        assert {(e['name'], e['status']) for e in entries} == {('Filling', 'planned'), ('Crown', 'planned')}
        assert all(e['treatment_plan_id'] == str(plan.id) for e in entries)

    def test_completar_etapa_refleja_la_misma_visita(self):
        plan = self._consult({'treatment_plan': NEW_PLAN})['treatment_plan']
        follow_up = AppointmentFactory(patient=self.patient, doctor_id='doctor-1')

        result = self._consult(
            {'treatment_plan_status': {'treatment_plan_id': plan.id, 'stage_number': 1}},
            appointment=follow_up,
        )

        visit_id = str(result['visit'].id)
        plan = TreatmentPlan.objects.get(id=plan.id)
        assert result['plan_updated'] is True
        assert plan.status == PlanStatus.ONGOING
        filling_in_plan = plan.get_tooth(11)['procedures'][0]
        assert filling_in_plan['completed_in_visit_id'] == visit_id

        self.patient.refresh_from_db()
        entries = {e['name']: e for e in self.patient.get_tooth(11)['procedures']}
        assert len(self.patient.get_tooth(11)['procedures']) == 2
        assert entries['Filling']['status'] == 'completed'
        assert entries['Filling']['completed_in_visit_id'] == visit_id
        assert entries['Filling']['cost'] == 50
        assert entries['Crown']['status'] == 'planned'

    def test_procedimientos_puntuales_del_plan(self):
        plan = self._consult({'treatment_plan': NEW_PLAN})['treatment_plan']
        follow_up = AppointmentFactory(patient=self.patient, doctor_id='doctor-1')

        self._consult(
            {'treatment_plan_status': {
                'treatment_plan_id': plan.id,
                'completed_procedures': [{'tooth_number': 11, 'procedure_name': 'Crown', 'surface': 'entire'}],
            }},
            appointment=follow_up,
        )

        self.patient.refresh_from_db()
        entries = {e['name']: e for e in self.patient.get_tooth(11)['procedures']}
        assert entries['Crown']['status'] == 'completed'
        assert entries['Filling']['status'] == 'planned'

    def test_lo_completado_del_plan_se_factura_en_la_visita(self):
        plan = self._consult({'treatment_plan': NEW_PLAN})['treatment_plan']
        follow_up = AppointmentFactory(patient=self.patient, doctor_id='doctor-1')

        result = self._consult(
            {
                'performed_teeth': [_performed(16, 'Sealant', 'occlusal', cost=40)],
                'treatment_plan_status': {'treatment_plan_id': plan.id, 'stage_number': 1},
            },
            appointment=follow_up,
        )

        visit = Visit.objects.get(id=result['visit'].id)
        lines = {(line['tooth_number'], line['name']): line for line in visit.procedures}
        assert set(lines) == {(16, 'Sealant'), (11, 'Filling')}
        assert lines[(11, 'Filling')]['fee'] == 50
        assert lines[(11, 'Filling')]['surface'] == 'mesial'
        assert {'tooth_number': 11, 'surface': 'mesial', 'procedure': 'Filling',
                'status': 'completed'} in visit.dental_work
        assert visit.total_amount == Decimal('90.00')

    def test_trabajo_realizado_del_plan_no_se_factura_dos_veces(self):
        plan = self._consult({'treatment_plan': NEW_PLAN})['treatment_plan']
        follow_up = AppointmentFactory(patient=self.patient, doctor_id='doctor-1')

        result = self._consult(
            {
                'performed_teeth': [_performed(11, 'Crown', 'entire', cost=280)],
                'treatment_plan_status': {
                    'treatment_plan_id': plan.id,
                    'completed_procedures': [{'tooth_number': 11, 'procedure_name': 'Crown', 'surface': 'entire'}],
                },
            },
            appointment=follow_up,
        )

        visit = Visit.objects.get(id=result['visit'].id)
        assert [(line['name'], line['fee']) for line in visit.procedures] == [('Crown', 280)]
        assert visit.total_amount == Decimal('280.00')

        self.patient.refresh_from_db()
        crowns = [e for e in self.patient.get_tooth(11)['procedures'] if e['name'] == 'Crown']
        assert len(crowns) == 1
        assert crowns[0]['status'] == 'completed'
        assert crowns[0]['cost'] == 280

    def test_plan_de_otro_paciente(self):
        other = AppointmentFactory(doctor_id='doctor-1')
        plan = self.service.consult(other.id, 'doctor-1', 'clinic-1', {'treatment_plan': NEW_PLAN})['treatment_plan']

        with pytest.raises(ValidationError):
            self._consult({'treatment_plan_status': {'treatment_plan_id': plan.id, 'stage_number': 1}})

    def test_plan_nuevo_y_avance_son_excluyentes(self):
        with pytest.raises(ValidationError):
            self._consult({
                'treatment_plan': NEW_PLAN,
                'treatment_plan_status': {'treatment_plan_id': 'x', 'stage_number': 1},
            })

    def test_odontologo_distinto(self):
        with pytest.raises(PermissionDenied):
            self._consult({}, doctor_id='doctor-2')

    def test_clinica_distinta(self):
        with pytest.raises(PermissionDenied):
            self._consult({}, clinic_id='clinic-2')

    def test_cita_cancelada(self):
        self.appointment.status = AppointmentStatus.CANCELLED
        self.appointment.save()

        with pytest.raises(ValidationError):
            self._consult({})

    def test_cita_ya_atendida(self):
        self._consult({})

        with pytest.raises(InvalidState):
            self._consult({})

    def test_tarifa_de_consulta(self):
        self.external.consultation_fee.return_value = 35.5

        result = self._consult({'performed_teeth': [_performed(16, 'Filling', 'occlusal', cost=45)]})

        assert result['visit'].consultation_fee == Decimal('35.50')
        assert result['visit'].total_amount == Decimal('80.50')

    def test_notificaciones_despues_del_commit(self, django_capture_on_commit_callbacks):
        recall_date = datetime.date.today() + datetime.timedelta(days=7)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            result = self._consult({'recall': {'date': recall_date, 'time': datetime.time(9, 0)}})

        assert len(callbacks) == 1
        events = [call.args[0] for call in self.external.notify.call_args_list]
        assert events == [
            ConsultationService.EVENT_CONSULTATION_COMPLETED,
            ConsultationService.EVENT_RECALL_BOOKED,
        ]
        payload = self.external.notify.call_args_list[0].args[1]
        assert payload['visit_id'] == str(result['visit'].id)

    def test_sin_notificaciones_si_falla(self, django_capture_on_commit_callbacks):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            with pytest.raises(ValidationError):
                self._consult({'recall': {'date': '2000-01-01', 'time': '09:00'}})

        assert callbacks == []
        self.external.notify.assert_not_called()


@pytest.mark.django_db
class TestConsultationFee:

    def test_directorio_caido_usa_tarifa_cero(self, patient, appointment):
        with mock.patch.object(
            NoopClinicDirectoryBackend,
            'get_consultation_fee',
            side_effect=UpstreamUnavailable('clinic-directory', 'timeout'),
        ):
            result = ConsultationService().consult(appointment.id, 'doctor-1', 'clinic-1', {})

        assert result['visit'].consultation_fee == Decimal('0.00')
        assert result['visit'].status == VisitStatus.COMPLETED


@pytest.mark.django_db
class TestConsultationEndpoint:

    @pytest.fixture(autouse=True)
    def _setup(self, api_client, appointment):
        self.client = api_client
        self.appointment = appointment
        self.url = f'/api/consultation/{appointment.id}/'

    def test_consulta(self):
        response = self.client.post(self.url, {
            'chief_complaints': ['Sensibilidad'],
            'performed_teeth': [_performed(16, 'Filling', 'occlusal', cost=45)],
            'treatment_plan': NEW_PLAN,
            'recall': {'date': (datetime.date.today() + datetime.timedelta(days=30)).isoformat(), 'time': '11:30'},
        }, format='json')

        assert response.status_code == status.HTTP_201_CREATED
        body = response.json()
        assert body['message'] == 'Consulta registrada correctamente'
        data = body['data']
        assert data['visit']['total_amount'] == '45.00'
        assert data['visit']['status'] == 'completed'
        assert data['treatment_plan']['plan_name'] == 'Rehabilitación'
        assert data['recall_appointment']['status'] == 'recall'
        assert data['recall_appointment']['appointment_time'] == '11:30:00'
        assert data['plan_updated'] is False

    def test_conflicto(self, patient):
        with PatientUnitOfWork(patient.id) as uow:
            DentalChartService().apply_work(uow, [_performed(16, 'Crown', 'entire')])

        response = self.client.post(self.url, {
            'performed_teeth': [_performed(16, 'Filling', 'occlusal')],
        }, format='json')

        assert response.status_code == status.HTTP_409_CONFLICT
        body = response.json()
        assert body['error_type'] == 'SURFACE_CONFLICT'
        assert body['details']['surface'] == 'occlusal'
        assert body['details']['last_procedure'] == 'Crown'

    def test_payload_excluyente(self):
        response = self.client.post(self.url, {
            'treatment_plan': NEW_PLAN,
            'treatment_plan_status': {'treatment_plan_id': '6f1c2a3e-8d4b-4c1e-9a7f-2b3c4d5e6f70', 'stage_number': 1},
        }, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_odontologo_distinto(self, make_api_client):
        client = make_api_client(doctor_id='doctor-2')

        response = client.post(self.url, {}, format='json')

        assert response.status_code == status.HTTP_403_FORBIDDEN

    def test_cita_cancelada(self):
        self.appointment.status = AppointmentStatus.CANCELLED
        self.appointment.save()

        response = self.client.post(self.url, {}, format='json')

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_cita_inexistente(self):
        response = self.client.post('/api/consultation/6f1c2a3e-8d4b-4c1e-9a7f-2b3c4d5e6f70/', {}, format='json')
        assert response.status_code == status.HTTP_404_NOT_FOUND
