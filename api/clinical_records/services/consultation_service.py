"""
Coordinador de la consulta odontológica.

Una consulta toca cinco documentos (cita, visita, odontograma, plan y cita de
control). Todo ocurre dentro de una única PatientUnitOfWork: si cualquier
paso falla (por ejemplo un SurfaceConflict en el segundo diente) no queda
ningún cambio persistido. Las llamadas a servicios externos son best-effort y
quedan fuera del camino crítico: la tarifa se consulta antes de abrir la
transacción y las notificaciones salen después del commit.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, List, Optional

from django.utils.dateparse import parse_date, parse_time
from rest_framework.exceptions import PermissionDenied, ValidationError

from api.appointment.services import AppointmentService
from api.clinical_records.repositories.visit_repository import VisitRepository
from api.odontogram.constants import ProcedureStatus, ToothSurface
from api.odontogram.services import DentalChartService, TreatmentPlanService
from api.odontogram.services.dental_chart_service import build_snapshot
from api.odontogram.services.treatment_plan_service import (
    completed_procedure_refs,
    refs_to_tooth_work,
)
from common.repositories.unit_of_work import PatientUnitOfWork
from common.services.external_services import ExternalServices

logger = logging.getLogger(__name__)


def _ref_key(ref):
    return ref['tooth_number'], ref['procedure_name'], ref['surface']


class ConsultationService:
    """Servicio que atiende una cita de principio a fin"""

    EVENT_CONSULTATION_COMPLETED = 'consultation.completed'
    EVENT_RECALL_BOOKED = 'appointment.recall_booked'

    def __init__(self, chart_service=None, plan_service=None, external=None):
        self.chart_service = chart_service or DentalChartService()
        self.plan_service = plan_service or TreatmentPlanService(chart_service=self.chart_service)
        self.external = external or ExternalServices()

    def consult(self, appointment_id, doctor_id, clinic_id, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Atiende la cita y devuelve {visit, treatment_plan, plan_updated, recall_appointment}.

        Pasos: validar cita, tarifa, crear visita, aplicar trabajo realizado y
        planificado al odontograma, crear o avanzar el plan (reflejando los
        procedimientos en el odontograma), enlazar visita y plan, agendar
        control, cerrar la cita y registrar la visita en el paciente.
        """
        payload = payload or {}
        plan_status_payload = payload.get('treatment_plan_status')
        new_plan_payload = payload.get('treatment_plan')
        if plan_status_payload and new_plan_payload:
            raise ValidationError({
                'treatment_plan': ["No se puede crear un plan y actualizar otro en la misma consulta"]
            })

        appointment = AppointmentService.get_appointment(appointment_id)
        if clinic_id and str(appointment.clinic_id) != str(clinic_id):
            raise PermissionDenied("La cita pertenece a otra clínica")
        if not appointment.is_assigned_to(doctor_id):
            raise PermissionDenied("La cita está asignada a otro odontólogo")

        fee = self.external.consultation_fee(appointment.clinic_id, doctor_id)

        with PatientUnitOfWork(appointment.patient_id) as uow:
            appointment = AppointmentService.lock_for_consultation(appointment_id, doctor_id)
            patient = uow.patient

            existing_plan = None
            if plan_status_payload:
                existing_plan = self.plan_service.get_plan(plan_status_payload.get('treatment_plan_id'))
                if existing_plan.patient_id != patient.id:
                    raise ValidationError({
                        'treatment_plan_status': ["El plan no pertenece al paciente de la cita"]
                    })

            performed = payload.get('performed_teeth') or []
            planned = payload.get('planned_teeth') or []

            visit = VisitRepository.create(
                patient=patient,
                clinic_id=appointment.clinic_id,
                doctor_id=str(doctor_id),
                appointment=appointment,
                chief_complaints=payload.get('chief_complaints') or [],
                examination_findings=payload.get('examination_findings') or [],
                dental_history=payload.get('dental_history') or [],
                diagnosis=payload.get('diagnosis') or [],
                prescriptions=payload.get('prescriptions') or [],
                notes=payload.get('notes') or '',
                dental_work=self._dental_work(performed),
                procedures=self._billing_lines(performed),
                consultation_fee=Decimal(str(fee or 0)).quantize(Decimal('0.01'), rounding=ROUND_HALF_UP),
                created_by=str(doctor_id),
            )

            if performed:
                self.chart_service.apply_work(
                    uow, performed, visit.id, doctor_id,
                    treatment_plan_id=existing_plan.id if existing_plan else None,
                    check_conflicts=True,
                )
            if planned:
                self.chart_service.apply_work(uow, planned, visit.id, doctor_id)

            plan, plan_updated = None, False
            if existing_plan is not None:
                plan, plan_updated = self._advance_plan(uow, existing_plan, plan_status_payload,
                                                        visit, doctor_id)
            elif new_plan_payload:
                plan = self.plan_service.create_plan(
                    uow,
                    appointment.clinic_id,
                    doctor_id,
                    new_plan_payload.get('plan_name'),
                    teeth=new_plan_payload.get('teeth'),
                    stages=new_plan_payload.get('stages'),
                    description=new_plan_payload.get('description', ''),
                    visit_id=visit.id,
                )

            if plan is not None:
                VisitRepository.link_treatment_plan(visit, plan)

            recall_appointment = None
            recall = payload.get('recall')
            if recall:
                recall_appointment = AppointmentService.create_recall(
                    appointment,
                    visit,
                    self._as_date(recall.get('date')),
                    self._as_time(recall.get('time')),
                    department=recall.get('department') or '',
                    notes=recall.get('notes') or '',
                    created_by=str(doctor_id),
                )

            AppointmentService.complete(appointment, visit)

            patient.add_visit(visit.id)
            uow.mark_dirty()
            VisitRepository.finalize(visit, build_snapshot(patient.dental_chart))

            uow.on_commit(lambda: self._notify(visit, appointment, recall_appointment))

        logger.info(
            f"Consulta atendida: cita {appointment.id}, visita {visit.id}",
            extra={
                'doctor_id': str(doctor_id),
                'patient_id': str(patient.id),
                'treatment_plan_id': str(plan.id) if plan else None,
            }
        )
        return {
            'visit': visit,
            'treatment_plan': plan,
            'plan_updated': plan_updated,
            'recall_appointment': recall_appointment,
        }

    def _advance_plan(self, uow, plan, plan_status_payload, visit, doctor_id):
        """
        Avanza el plan existente dentro de la unidad de trabajo de la consulta
        (el servicio del plan lo refleja en el odontograma) y agrega a la
        visita lo completado del plan, facturado a su costo estimado.
        """
        stage_number = plan_status_payload.get('stage_number')
        completed_procedures = plan_status_payload.get('completed_procedures') or []
        newly_completed: List[Dict] = []

        if stage_number:
            stage_number = int(stage_number)
            before = {_ref_key(ref) for ref in completed_procedure_refs(plan, stage_number)}
            plan = self.plan_service.update_stage_completion(
                plan.id, stage_number, visit.id, doctor_id, uow=uow
            )
            newly_completed.extend(
                ref for ref in completed_procedure_refs(plan, stage_number)
                if _ref_key(ref) not in before
            )

        if completed_procedures:
            plan, refs = self.plan_service.update_specific_procedures(
                plan.id, completed_procedures, visit.id, doctor_id, uow=uow
            )
            newly_completed.extend(refs)

        self._record_plan_work(visit, newly_completed)
        return plan, bool(stage_number or completed_procedures)

    def _record_plan_work(self, visit, refs):
        """Lo ya facturado como trabajo realizado no se repite"""
        billed = {(line['tooth_number'], line['name'], line['surface']) for line in visit.procedures}
        pending = []
        for ref in refs:
            key = (ref['tooth_number'], ref['procedure_name'], ref['surface'])
            if key not in billed:
                billed.add(key)
                pending.append(ref)
        if not pending:
            return
        work = refs_to_tooth_work(pending)
        visit.dental_work.extend(self._dental_work(work))
        visit.procedures.extend(self._billing_lines(work))

    @staticmethod
    def _dental_work(tooth_work_list) -> List[Dict]:
        return [
            {
                'tooth_number': work.get('tooth_number'),
                'surface': procedure.get('surface') or ToothSurface.ENTIRE.value,
                'procedure': procedure.get('name'),
                'status': procedure.get('status') or ProcedureStatus.PLANNED.value,
            }
            for work in tooth_work_list
            for procedure in work.get('procedures') or []
        ]

    @staticmethod
    def _billing_lines(tooth_work_list) -> List[Dict]:
        """Un renglón facturable por procedimiento completado"""
        return [
            {
                'name': procedure.get('name'),
                'tooth_number': work.get('tooth_number'),
                'surface': procedure.get('surface') or ToothSurface.ENTIRE.value,
                'fee': float(procedure.get('cost') or 0),
                'notes': procedure.get('notes') or '',
            }
            for work in tooth_work_list
            for procedure in work.get('procedures') or []
            if procedure.get('status') == ProcedureStatus.COMPLETED
        ]

    @staticmethod
    def _as_date(value):
        return parse_date(value) if isinstance(value, str) else value

    @staticmethod
    def _as_time(value):
        return parse_time(value) if isinstance(value, str) else value

    def _notify(self, visit, appointment, recall_appointment: Optional[Any]):
        self.external.notify(self.EVENT_CONSULTATION_COMPLETED, {
            'visit_id': str(visit.id),
            'appointment_id': str(appointment.id),
            'patient_id': str(visit.patient_id),
            'doctor_id': visit.doctor_id,
            'clinic_id': visit.clinic_id,
            'total_amount': str(visit.total_amount),
        })
        if recall_appointment is not None:
            self.external.notify(self.EVENT_RECALL_BOOKED, {
                'appointment_id': str(recall_appointment.id),
                'patient_id': str(recall_appointment.patient_id),
                'date': recall_appointment.appointment_date.isoformat(),
                'time': recall_appointment.appointment_time.isoformat(),
            })
