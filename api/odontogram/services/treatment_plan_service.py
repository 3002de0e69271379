from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple
from datetime import date, datetime
import logging

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from api.odontogram.constants import ProcedureStatus, StageStatus, PlanStatus, ToothPriority
from api.odontogram.models import TreatmentPlan
from api.odontogram.repositories.treatment_plan_repository import TreatmentPlanRepository
from api.odontogram.services import conflict_service, plan_status
from api.odontogram.services.dental_chart_service import (
    DentalChartService,
    validate_surface,
    validate_tooth_number,
)
from api.utils.exceptions import InvalidState
from common.repositories.unit_of_work import PatientUnitOfWork

logger = logging.getLogger(__name__)


def _iso(value) -> Optional[str]:
    if value in (None, ''):
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _amount(value) -> float:
    if value in (None, ''):
        return 0
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError({'estimated_cost': [f"Monto inválido: {value!r}"]})
    if amount < 0:
        raise ValidationError({'estimated_cost': ["El monto no puede ser negativo"]})
    return amount


def procedure_ref(tooth_number: int, procedure: Dict) -> Dict:
    return {
        'tooth_number': tooth_number,
        'procedure_name': procedure['name'],
        'surface': procedure['surface'],
        'stage_number': procedure['stage'],
        'estimated_cost': procedure.get('estimated_cost', 0),
    }


def completed_procedure_refs(plan: TreatmentPlan, stage_number: Optional[int] = None) -> List[Dict]:
    """Procedimientos completados del plan (opcionalmente de una etapa)"""
    return [
        procedure_ref(tooth['tooth_number'], procedure)
        for tooth in plan.teeth
        for procedure in tooth['procedures']
        if procedure['status'] == ProcedureStatus.COMPLETED
        and (stage_number is None or procedure['stage'] == stage_number)
    ]


def refs_to_tooth_work(refs: List[Dict]) -> List[Dict]:
    """Convierte referencias completadas del plan en trabajo para el odontograma"""
    by_tooth: Dict[int, List[Dict]] = {}
    for ref in refs:
        by_tooth.setdefault(ref['tooth_number'], []).append({
            'name': ref['procedure_name'],
            'surface': ref['surface'],
            'status': ProcedureStatus.COMPLETED,
            'cost': ref.get('estimated_cost', 0),
        })
    return [
        {'tooth_number': tooth_number, 'procedures': procedures}
        for tooth_number, procedures in sorted(by_tooth.items())
    ]


def plan_tooth_work(plan: TreatmentPlan) -> List[Dict]:
    """Todo el plan como trabajo para el odontograma, cada procedimiento con su estado"""
    work = []
    for tooth in sorted(plan.teeth, key=lambda t: t['tooth_number']):
        procedures = []
        for procedure in tooth['procedures']:
            item = {
                'name': procedure['name'],
                'surface': procedure['surface'],
                'status': procedure['status'],
                'notes': procedure.get('notes', ''),
            }
            cost_field = 'cost' if procedure['status'] == ProcedureStatus.COMPLETED else 'estimated_cost'
            item[cost_field] = procedure.get('estimated_cost', 0)
            procedures.append(item)
        if procedures:
            work.append({'tooth_number': tooth['tooth_number'], 'procedures': procedures})
    return work


class TreatmentPlanService:
    """
    Motor de planes de tratamiento.

    Cada mutación bloquea el plan, modifica teeth/stages en memoria, recalcula
    estados con plan_status.recompute y guarda una vez. Un plan completado o
    cancelado solo admite lectura.

    Las mutaciones que agregan, completan o quitan procedimientos corren en la
    PatientUnitOfWork del paciente del plan (la del llamador si se pasa `uow`)
    y reflejan el cambio en el odontograma.
    """

    def __init__(self, chart_service=None):
        self.chart_service = chart_service or DentalChartService()

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    @staticmethod
    def get_plan(plan_id) -> TreatmentPlan:
        plan = TreatmentPlanRepository.get_by_id(plan_id)
        if plan is None:
            raise NotFound(f"Plan de tratamiento {plan_id} no encontrado")
        return plan

    @staticmethod
    def list_plans(patient_id=None, status=None, clinic_id=None):
        if patient_id:
            queryset = TreatmentPlanRepository.get_by_patient(patient_id, status)
        else:
            queryset = TreatmentPlanRepository.get_queryset().order_by('-created_at')
            if status:
                queryset = queryset.filter(status=status)
        if clinic_id:
            queryset = queryset.filter(clinic_id=clinic_id)
        return queryset

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _lock(plan_id) -> TreatmentPlan:
        plan = TreatmentPlanRepository.get_for_update(plan_id)
        if plan is None:
            raise NotFound(f"Plan de tratamiento {plan_id} no encontrado")
        return plan

    @contextmanager
    def _unit_of_work(self, plan_id, uow=None):
        """Reusa la unidad de trabajo del llamador o abre una sobre el paciente del plan"""
        if uow is not None:
            if not uow.is_active:
                raise RuntimeError("La PatientUnitOfWork recibida no está activa")
            yield uow
            return

        plan = self.get_plan(plan_id)
        with PatientUnitOfWork(plan.patient_id) as own:
            yield own

    def _lock_in(self, uow, plan_id) -> TreatmentPlan:
        plan = self._lock(plan_id)
        if plan.patient_id != uow.patient.id:
            raise ValidationError({'treatment_plan_id': ["El plan no pertenece al paciente"]})
        return plan

    def _mirror_completed(self, uow, plan, refs, visit_id, doctor_id):
        if refs:
            self.chart_service.apply_work(
                uow, refs_to_tooth_work(refs), visit_id, doctor_id, treatment_plan_id=plan.id
            )

    def _discard_dropped(self, uow, plan, dropped):
        """Quita del odontograma lo planificado que el plan ya no contiene"""
        still_planned = {
            (tooth['tooth_number'], p['name'], p['surface'])
            for tooth in plan.teeth
            for p in tooth['procedures']
            if p['status'] != ProcedureStatus.COMPLETED
        }
        targets = [key for key in dropped if key not in still_planned]
        if targets:
            self.chart_service.discard_planned(uow, plan.id, procedures=targets)

    @staticmethod
    def _ensure_mutable(plan):
        if plan.is_locked:
            raise InvalidState(
                f"El plan está {plan.get_status_display().lower()} y no admite cambios"
            )

    @staticmethod
    def _get_stage(plan, stage_number):
        try:
            stage_number = int(stage_number)
        except (TypeError, ValueError):
            raise ValidationError({'stage_number': [f"Etapa inválida: {stage_number!r}"]})
        stage = plan.get_stage(stage_number)
        if stage is None:
            raise NotFound(f"La etapa {stage_number} no existe en el plan")
        return stage

    @staticmethod
    def _complete(procedure, now, visit_id, doctor_id):
        procedure['status'] = ProcedureStatus.COMPLETED.value
        procedure['completed_at'] = now
        procedure['completed_in_visit_id'] = str(visit_id) if visit_id else None
        procedure['performed_by'] = str(doctor_id) if doctor_id else None

    @staticmethod
    def _save(plan):
        plan_status.recompute(plan)
        plan.save()
        return plan

    @staticmethod
    def _new_stage(stage_number, stage_name, description='', scheduled_date=None):
        if not stage_name or not str(stage_name).strip():
            raise ValidationError({'stage_name': ["El nombre de la etapa es obligatorio"]})
        return {
            'stage_number': stage_number,
            'stage_name': str(stage_name).strip(),
            'description': description or '',
            'status': StageStatus.PENDING.value,
            'scheduled_date': _iso(scheduled_date),
            'tooth_surface_procedures': [],
            'started_at': None,
            'completed_at': None,
        }

    @staticmethod
    def _get_or_add_tooth(plan_teeth, tooth_number, priority=None):
        for tooth in plan_teeth:
            if tooth['tooth_number'] == tooth_number:
                if priority:
                    tooth['priority'] = priority
                return tooth
        tooth = {
            'tooth_number': tooth_number,
            'priority': priority or ToothPriority.MEDIUM.value,
            'is_completed': False,
            'procedures': [],
        }
        plan_teeth.append(tooth)
        return tooth

    def _normalize_teeth(self, teeth_input, stage_count, doctor_id, visit_id, now):
        teeth: List[Dict] = []
        for tooth_input in teeth_input or []:
            tooth_number = validate_tooth_number(tooth_input.get('tooth_number'))
            priority = tooth_input.get('priority')
            if priority and priority not in ToothPriority.values:
                raise ValidationError({'priority': [f"Prioridad inválida: {priority!r}"]})
            tooth = self._get_or_add_tooth(teeth, tooth_number, priority)

            for procedure_input in tooth_input.get('procedures') or []:
                name = (procedure_input.get('name') or '').strip()
                if not name:
                    raise ValidationError({'procedures': ["El procedimiento debe tener nombre"]})
                surface = validate_surface(procedure_input.get('surface'))
                stage = procedure_input.get('stage') or 1
                try:
                    stage = int(stage)
                except (TypeError, ValueError):
                    raise ValidationError({'stage': [f"Etapa inválida: {stage!r}"]})
                if stage < 1 or (stage_count is not None and stage > stage_count):
                    raise ValidationError({'stage': [f"La etapa {stage} no está definida en el plan"]})
                status = procedure_input.get('status') or ProcedureStatus.PLANNED
                if status not in ProcedureStatus.values:
                    raise ValidationError({'status': [f"Estado inválido: {status!r}"]})

                if conflict_service.is_procedure_planned(teeth, tooth_number, surface, name, stage):
                    continue

                procedure = {
                    'name': name,
                    'surface': surface,
                    'stage': stage,
                    'status': str(status),
                    'estimated_cost': _amount(procedure_input.get('estimated_cost')),
                    'notes': procedure_input.get('notes') or '',
                    'completed_at': None,
                    'completed_in_visit_id': None,
                    'performed_by': None,
                }
                if status == ProcedureStatus.COMPLETED:
                    self._complete(procedure, now, visit_id, doctor_id)
                tooth['procedures'].append(procedure)
        return sorted(teeth, key=lambda t: t['tooth_number'])

    # ------------------------------------------------------------------
    # Creación
    # ------------------------------------------------------------------

    def create_plan(
        self,
        uow: PatientUnitOfWork,
        clinic_id,
        doctor_id,
        plan_name,
        teeth=None,
        stages=None,
        description='',
        visit_id=None,
    ) -> TreatmentPlan:
        """
        Crea el plan para el paciente bloqueado en la unidad de trabajo y
        copia sus procedimientos al odontograma con su estado.
        Sin etapas explícitas se generan 'Etapa N' hasta la mayor etapa usada.
        """
        if uow is None or not uow.is_active:
            raise RuntimeError("create_plan requiere una PatientUnitOfWork activa")
        if not plan_name or not str(plan_name).strip():
            raise ValidationError({'plan_name': ["El nombre del plan es obligatorio"]})

        now = timezone.now().isoformat()
        stage_list = [
            self._new_stage(number, stage.get('stage_name'), stage.get('description'),
                            stage.get('scheduled_date'))
            for number, stage in enumerate(stages or [], start=1)
        ]
        plan_teeth = self._normalize_teeth(
            teeth, len(stage_list) if stage_list else None, doctor_id, visit_id, now
        )
        if not stage_list:
            highest = max(
                (p['stage'] for tooth in plan_teeth for p in tooth['procedures']), default=0
            )
            stage_list = [self._new_stage(n, f"Etapa {n}") for n in range(1, highest + 1)]

        patient = uow.patient
        plan = TreatmentPlan(
            patient=patient,
            clinic_id=str(clinic_id or patient.clinic_id),
            created_by_doctor_id=str(doctor_id or ''),
            plan_name=str(plan_name).strip(),
            description=description or '',
            teeth=plan_teeth,
            stages=stage_list,
        )
        self._save(plan)

        patient.add_treatment_plan(plan.id)
        uow.mark_dirty()

        work = plan_tooth_work(plan)
        if work:
            self.chart_service.apply_work(uow, work, visit_id, doctor_id, treatment_plan_id=plan.id)

        logger.info(
            f"Plan {plan.id} creado para paciente {patient.id}: "
            f"{len(plan.teeth)} dientes, {len(plan.stages)} etapas",
            extra={'doctor_id': str(doctor_id), 'plan_id': str(plan.id)}
        )
        return plan

    def start_plan(self, patient_id, clinic_id, doctor_id, plan_name, teeth=None, stages=None,
                   description='') -> TreatmentPlan:
        """Crea un plan fuera de una consulta (abre su propia unidad de trabajo)"""
        with PatientUnitOfWork(patient_id) as uow:
            if clinic_id and str(uow.patient.clinic_id) != str(clinic_id):
                raise NotFound(f"Paciente {patient_id} no encontrado en la clínica")
            return self.create_plan(
                uow, clinic_id, doctor_id, plan_name,
                teeth=teeth, stages=stages, description=description,
            )

    # ------------------------------------------------------------------
    # Avance
    # ------------------------------------------------------------------

    def update_stage_completion(self, plan_id, stage_number, visit_id=None, doctor_id=None,
                                uow=None) -> TreatmentPlan:
        """Completa todos los procedimientos de una etapa y los marca en el odontograma"""
        with self._unit_of_work(plan_id, uow) as uow:
            plan = self._lock_in(uow, plan_id)
            self._ensure_mutable(plan)
            stage = self._get_stage(plan, stage_number)
            number = stage['stage_number']
            if stage['status'] == StageStatus.COMPLETED:
                raise InvalidState(f"La etapa {number} ya está completada")

            now = timezone.now().isoformat()
            completed = []
            for tooth in plan.teeth:
                for procedure in tooth['procedures']:
                    if procedure['stage'] == number and procedure['status'] != ProcedureStatus.COMPLETED:
                        self._complete(procedure, now, visit_id, doctor_id)
                        completed.append(procedure_ref(tooth['tooth_number'], procedure))
            stage['completed_at'] = now

            self._save(plan)
            self._mirror_completed(uow, plan, completed, visit_id, doctor_id)

        logger.info(f"Plan {plan.id}: etapa {number} completada ({plan.status})")
        return plan

    def update_specific_procedures(self, plan_id, procedure_refs, visit_id=None, doctor_id=None,
                                   strict=True, uow=None) -> Tuple[TreatmentPlan, List[Dict]]:
        """
        Completa procedimientos puntuales. Cada referencia:
            {tooth_number, procedure_name, surface, stage_number?}
        Devuelve el plan y las referencias que pasaron a completadas.
        Con strict=False, las referencias que no existen en el plan se ignoran.
        """
        if not procedure_refs:
            raise ValidationError({'completed_procedures': ["Debe indicar al menos un procedimiento"]})

        with self._unit_of_work(plan_id, uow) as uow:
            plan = self._lock_in(uow, plan_id)
            self._ensure_mutable(plan)

            now = timezone.now().isoformat()
            completed = []
            for ref in procedure_refs:
                if not isinstance(ref, dict):
                    raise ValidationError({'completed_procedures': ["Referencia de procedimiento inválida"]})
                tooth_number = validate_tooth_number(ref.get('tooth_number'))
                name = (ref.get('procedure_name') or '').strip()
                if not name:
                    raise ValidationError({'procedure_name': ["El nombre del procedimiento es obligatorio"]})
                surface = validate_surface(ref.get('surface'))

                procedure = self._find_procedure(plan, tooth_number, name, surface, ref.get('stage_number'))
                if procedure is None:
                    if strict:
                        raise NotFound(
                            f"'{name}' ({surface}) no está planificado para el diente {tooth_number}"
                        )
                    continue
                if procedure['status'] == ProcedureStatus.COMPLETED:
                    continue

                self._complete(procedure, now, visit_id, doctor_id)
                completed.append(procedure_ref(tooth_number, procedure))

            self._save(plan)
            self._mirror_completed(uow, plan, completed, visit_id, doctor_id)

        logger.info(f"Plan {plan.id}: {len(completed)} procedimientos completados ({plan.status})")
        return plan, completed

    @staticmethod
    def _find_procedure(plan, tooth_number, name, surface, stage_number=None):
        tooth = plan.get_tooth(tooth_number)
        if tooth is None:
            return None
        if stage_number not in (None, ''):
            try:
                stage_number = int(stage_number)
            except (TypeError, ValueError):
                raise ValidationError({'stage_number': [f"Etapa inválida: {stage_number!r}"]})
        else:
            stage_number = None

        matches = [
            p for p in tooth['procedures']
            if p['name'] == name and p['surface'] == surface
            and (stage_number is None or p['stage'] == stage_number)
        ]
        pending = [p for p in matches if p['status'] != ProcedureStatus.COMPLETED]
        if pending:
            return pending[0]
        return matches[0] if matches else None

    @transaction.atomic
    def start_stage(self, plan_id, stage_number) -> TreatmentPlan:
        plan = self._lock(plan_id)
        self._ensure_mutable(plan)
        stage = self._get_stage(plan, stage_number)
        if stage['status'] == StageStatus.COMPLETED:
            raise InvalidState(f"La etapa {stage['stage_number']} ya está completada")

        stage['started_at'] = stage.get('started_at') or timezone.now().isoformat()
        return self._save(plan)

    # ------------------------------------------------------------------
    # Cambios estructurales
    # ------------------------------------------------------------------

    def add_stage(self, plan_id, stage_name, description='', scheduled_date=None,
                  tooth_surface_procedures=None, uow=None) -> TreatmentPlan:
        """
        Agrega una etapa al final. tooth_surface_procedures:
            [{tooth_number, surface_procedures: [{surface, procedure_names[]}]}]
        se agregan como procedimientos planificados de la nueva etapa.
        """
        with self._unit_of_work(plan_id, uow) as uow:
            plan = self._lock_in(uow, plan_id)
            self._ensure_mutable(plan)

            stage = self._new_stage(len(plan.stages) + 1, stage_name, description, scheduled_date)
            plan.stages.append(stage)

            added = []
            for item in tooth_surface_procedures or []:
                tooth_number = validate_tooth_number(item.get('tooth_number'))
                for surface_item in item.get('surface_procedures') or []:
                    surface = validate_surface(surface_item.get('surface'))
                    for name in surface_item.get('procedure_names') or []:
                        name = (name or '').strip()
                        if not name or conflict_service.is_procedure_planned(
                            plan.teeth, tooth_number, surface, name, stage['stage_number']
                        ):
                            continue
                        tooth = self._get_or_add_tooth(plan.teeth, tooth_number)
                        tooth['procedures'].append({
                            'name': name,
                            'surface': surface,
                            'stage': stage['stage_number'],
                            'status': ProcedureStatus.PLANNED.value,
                            'estimated_cost': 0,
                            'notes': '',
                            'completed_at': None,
                            'completed_in_visit_id': None,
                            'performed_by': None,
                        })
                        added.append({
                            'tooth_number': tooth_number,
                            'procedures': [{'name': name, 'surface': surface,
                                            'status': ProcedureStatus.PLANNED.value}],
                        })
            plan.teeth.sort(key=lambda t: t['tooth_number'])

            self._save(plan)
            if added:
                self.chart_service.apply_work(uow, added, treatment_plan_id=plan.id)

        logger.info(f"Plan {plan.id}: etapa {stage['stage_number']} agregada")
        return plan

    def remove_stage(self, plan_id, stage_number, uow=None) -> TreatmentPlan:
        """
        Elimina una etapa sin procedimientos completados, renumera las
        siguientes y quita sus procedimientos planificados del odontograma.
        """
        with self._unit_of_work(plan_id, uow) as uow:
            plan = self._lock_in(uow, plan_id)
            self._ensure_mutable(plan)
            stage = self._get_stage(plan, stage_number)
            number = stage['stage_number']

            if any(p['status'] == ProcedureStatus.COMPLETED
                   for p in plan_status.procedures_in_stage(plan.teeth, number)):
                raise InvalidState(f"La etapa {number} tiene procedimientos completados")

            dropped = []
            for tooth in plan.teeth:
                dropped.extend(
                    (tooth['tooth_number'], p['name'], p['surface'])
                    for p in tooth['procedures'] if p['stage'] == number
                )
                tooth['procedures'] = [p for p in tooth['procedures'] if p['stage'] != number]
                for procedure in tooth['procedures']:
                    if procedure['stage'] > number:
                        procedure['stage'] -= 1
            plan.teeth = [tooth for tooth in plan.teeth if tooth['procedures']]

            plan.stages = [s for s in plan.stages if s['stage_number'] != number]
            for s in plan.stages:
                if s['stage_number'] > number:
                    s['stage_number'] -= 1

            self._save(plan)
            self._discard_dropped(uow, plan, dropped)

        logger.info(f"Plan {plan.id}: etapa {number} eliminada")
        return plan

    def remove_procedure(self, plan_id, tooth_number, procedure_name, surface, uow=None) -> TreatmentPlan:
        tooth_number = validate_tooth_number(tooth_number)
        surface = validate_surface(surface)
        name = (procedure_name or '').strip()
        if not name:
            raise ValidationError({'procedure_name': ["El nombre del procedimiento es obligatorio"]})

        with self._unit_of_work(plan_id, uow) as uow:
            plan = self._lock_in(uow, plan_id)
            self._ensure_mutable(plan)

            procedure = self._find_procedure(plan, tooth_number, name, surface)
            if procedure is None:
                raise NotFound(f"'{name}' ({surface}) no está planificado para el diente {tooth_number}")
            if procedure['status'] == ProcedureStatus.COMPLETED:
                raise InvalidState("No se puede eliminar un procedimiento completado")

            tooth = plan.get_tooth(tooth_number)
            tooth['procedures'].remove(procedure)
            if not tooth['procedures']:
                plan.teeth.remove(tooth)

            self._save(plan)
            self._discard_dropped(uow, plan, [(tooth_number, name, surface)])

        logger.info(f"Plan {plan.id}: '{name}' eliminado del diente {tooth_number}")
        return plan

    # ------------------------------------------------------------------
    # Cierre
    # ------------------------------------------------------------------

    def finish(self, plan_id, doctor_id=None, visit_id=None, uow=None) -> TreatmentPlan:
        """Completa a la fuerza todos los procedimientos y etapas"""
        with self._unit_of_work(plan_id, uow) as uow:
            plan = self._lock_in(uow, plan_id)
            if plan.status == PlanStatus.COMPLETED:
                raise InvalidState("El plan ya está completado")
            if plan.status == PlanStatus.CANCELLED:
                raise InvalidState("El plan está cancelado")
            if not plan.stages:
                raise InvalidState("El plan no tiene etapas que finalizar")

            now = timezone.now().isoformat()
            completed = []
            for tooth in plan.teeth:
                for procedure in tooth['procedures']:
                    if procedure['status'] != ProcedureStatus.COMPLETED:
                        self._complete(procedure, now, visit_id, doctor_id)
                        completed.append(procedure_ref(tooth['tooth_number'], procedure))
            for stage in plan.stages:
                stage['completed_at'] = stage.get('completed_at') or now

            self._save(plan)
            self._mirror_completed(uow, plan, completed, visit_id, doctor_id)

        logger.info(f"Plan {plan.id} finalizado por {doctor_id}")
        return plan

    def cancel(self, plan_id, reason='', doctor_id=None, uow=None) -> TreatmentPlan:
        """Cancela el plan y quita del odontograma lo que quedó sin hacer"""
        with self._unit_of_work(plan_id, uow) as uow:
            plan = self._lock_in(uow, plan_id)
            if plan.status == PlanStatus.COMPLETED:
                raise InvalidState("Un plan completado no puede cancelarse")
            if plan.status == PlanStatus.CANCELLED:
                raise InvalidState("El plan ya está cancelado")

            plan.status = PlanStatus.CANCELLED
            plan.cancellation_reason = reason or ''
            plan.cancelled_at = timezone.now()
            plan.cancelled_by = str(doctor_id or '')
            plan.save()
            self.chart_service.discard_planned(uow, plan.id)

        logger.info(f"Plan {plan.id} cancelado por {doctor_id}: {reason}")
        return plan

    def delete_plan(self, plan_id):
        """
        Borrado definitivo, solo si nada se completó todavía.
        También quita el plan del paciente y sus entradas planificadas del odontograma.
        """
        with self._unit_of_work(plan_id) as uow:
            plan = self._lock_in(uow, plan_id)
            if completed_procedure_refs(plan):
                raise InvalidState("El plan tiene procedimientos completados; cancélelo en su lugar")

            uow.patient.remove_treatment_plan(plan.id)
            self.chart_service.discard_planned(uow, plan.id)
            TreatmentPlanRepository.delete(plan)

        logger.info(f"Plan {plan_id} eliminado")
