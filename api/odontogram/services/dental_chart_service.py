# odontogram/services/dental_chart_service.py
"""
Servicio del odontograma embebido en el paciente.

Todo cambio al odontograma pasa por `apply_work`, que exige una
PatientUnitOfWork activa: el paciente ya está bloqueado, el odontograma se
modifica en memoria y se guarda una sola vez al cerrar la unidad de trabajo.
"""

from typing import Any, Dict, List, Optional, Tuple
import uuid

from django.conf import settings
from django.utils import timezone
from rest_framework.exceptions import NotFound, ValidationError

from api.odontogram.constants import (
    TOOTH_NUMBER_MIN,
    TOOTH_NUMBER_MAX,
    SURFACES,
    EntryType,
    ProcedureStatus,
    ToothSurface,
    procedure_type_for,
)
from api.odontogram.services import conflict_service
from api.odontogram.signals import surface_conflict_detected
from api.patients.repositories.patient_repository import PatientRepository
from api.utils.exceptions import SurfaceConflict
from common.repositories.unit_of_work import PatientUnitOfWork


EntryKey = Tuple[str, str, str, Optional[str]]


def validate_tooth_number(value) -> int:
    try:
        tooth_number = int(value)
    except (TypeError, ValueError):
        raise ValidationError({'tooth_number': [f"Número de diente inválido: {value!r}"]})
    if isinstance(value, bool) or not TOOTH_NUMBER_MIN <= tooth_number <= TOOTH_NUMBER_MAX:
        raise ValidationError({
            'tooth_number': [f"El diente debe estar entre {TOOTH_NUMBER_MIN} y {TOOTH_NUMBER_MAX}"]
        })
    return tooth_number


def validate_surface(value) -> str:
    surface = value or ToothSurface.ENTIRE
    if surface not in SURFACES:
        raise ValidationError({'surface': [f"Superficie inválida: {value!r}"]})
    return str(surface)


def _validate_status(value) -> str:
    status = value or ProcedureStatus.PLANNED
    if status not in ProcedureStatus.values:
        raise ValidationError({'status': [f"Estado de procedimiento inválido: {value!r}"]})
    return str(status)


def _money(value, field) -> Optional[float]:
    if value is None or value == '':
        return None
    try:
        amount = float(value)
    except (TypeError, ValueError):
        raise ValidationError({field: [f"Monto inválido: {value!r}"]})
    if amount < 0:
        raise ValidationError({field: ["El monto no puede ser negativo"]})
    return amount


def entry_key(entry: Dict[str, Any]) -> EntryKey:
    return (entry['type'], entry['name'], entry['surface'], entry.get('treatment_plan_id'))


def dedupe_entries(entries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Conserva la primera entrada por type-name-surface-status-treatment_plan_id"""
    seen = set()
    result = []
    for entry in entries:
        key = (entry['type'], entry['name'], entry['surface'], entry['status'],
               entry.get('treatment_plan_id'))
        if key in seen:
            continue
        seen.add(key)
        result.append(entry)
    return result


def build_snapshot(chart: List[Dict[str, Any]], procedures_per_tooth: Optional[int] = None) -> List[Dict]:
    """Copia resumida del odontograma: condiciones y últimos N procedimientos por diente"""
    size = procedures_per_tooth or getattr(settings, 'DENTAL_CHART_SNAPSHOT_PROCEDURES', 5)
    return [
        {
            'tooth_number': tooth['tooth_number'],
            'status': tooth.get('current_status'),
            'notes': tooth.get('general_notes', ''),
            'conditions': list(tooth.get('conditions', [])),
            'procedures': [dict(entry) for entry in tooth.get('procedures', [])[-size:]],
        }
        for tooth in sorted(chart, key=lambda t: t['tooth_number'])
    ]


class DentalChartService:
    """
    Registro por diente de condiciones y procedimientos.
    Nunca aplica dos veces el mismo procedimiento a la misma superficie.
    """

    # ------------------------------------------------------------------
    # Escritura
    # ------------------------------------------------------------------

    def apply_work(
        self,
        uow: PatientUnitOfWork,
        tooth_work_list: List[Dict[str, Any]],
        visit_id=None,
        doctor_id=None,
        treatment_plan_id=None,
        check_conflicts: bool = False,
    ) -> List[Dict[str, Any]]:
        """
        Aplica condiciones y procedimientos al odontograma del paciente de la
        unidad de trabajo y devuelve el odontograma resultante.

        Cada elemento de `tooth_work_list`:
            {tooth_number, conditions[], surface_conditions[{surface, conditions[]}],
             procedures[{name, surface, status, cost, estimated_cost, notes}]}

        Con `check_conflicts`, cada tratamiento completado se verifica contra
        el odontograma (incluyendo lo aplicado en esta misma llamada) y lanza
        SurfaceConflict si la superficie ya fue tratada.
        """
        if uow is None or not uow.is_active:
            raise RuntimeError("apply_work requiere una PatientUnitOfWork activa")

        patient = uow.patient
        chart = patient.dental_chart
        context = {
            'now': timezone.now().isoformat(),
            'visit_id': str(visit_id) if visit_id else None,
            'doctor_id': str(doctor_id) if doctor_id else None,
            'treatment_plan_id': str(treatment_plan_id) if treatment_plan_id else None,
        }

        for work in tooth_work_list or []:
            tooth_number = validate_tooth_number(work.get('tooth_number'))
            tooth = self._get_or_create_tooth(chart, tooth_number)
            index = self._build_index(tooth)

            for condition in work.get('conditions') or []:
                self._add_condition(tooth, index, condition, ToothSurface.ENTIRE, context)

            for surface_condition in work.get('surface_conditions') or []:
                surface = validate_surface(surface_condition.get('surface'))
                for condition in surface_condition.get('conditions') or []:
                    self._add_condition(tooth, index, condition, surface, context)

            for procedure in work.get('procedures') or []:
                self._apply_procedure(patient, chart, tooth, index, procedure, context, check_conflicts)

            tooth['procedures'] = dedupe_entries(tooth['procedures'])
            tooth['last_updated'] = context['now']
            tooth['last_updated_by'] = context['doctor_id']
            if context['visit_id']:
                tooth['last_visit_id'] = context['visit_id']

        chart.sort(key=lambda t: t['tooth_number'])
        uow.mark_dirty()
        return chart

    def _get_or_create_tooth(self, chart, tooth_number):
        for tooth in chart:
            if tooth['tooth_number'] == tooth_number:
                return tooth
        tooth = {
            'tooth_number': tooth_number,
            'conditions': [],
            'procedures': [],
            'last_updated': None,
            'last_updated_by': None,
            'last_visit_id': None,
            'current_status': None,
            'general_notes': '',
        }
        chart.append(tooth)
        return tooth

    @staticmethod
    def _build_index(tooth) -> Dict[EntryKey, List[Dict[str, Any]]]:
        index = {}
        for entry in tooth['procedures']:
            index.setdefault(entry_key(entry), []).append(entry)
        return index

    @staticmethod
    def _append(tooth, index, entry):
        tooth['procedures'].append(entry)
        index.setdefault(entry_key(entry), []).append(entry)

    def _add_condition(self, tooth, index, condition, surface, context):
        name = (condition or '').strip() if isinstance(condition, str) else ''
        if not name:
            raise ValidationError({'conditions': ["La condición no puede estar vacía"]})

        if surface == ToothSurface.ENTIRE and name not in tooth['conditions']:
            tooth['conditions'].append(name)

        if index.get((EntryType.CONDITION.value, name, surface, None)):
            return

        self._append(tooth, index, {
            'id': str(uuid.uuid4()),
            'type': EntryType.CONDITION.value,
            'name': name,
            'surface': surface,
            'status': ProcedureStatus.COMPLETED.value,
            'date': context['now'],
            'performed_by': context['doctor_id'],
            'visit_ids': [context['visit_id']] if context['visit_id'] else [],
            'treatment_plan_id': None,
            'notes': '',
            'procedure_type': 'other',
        })

    def _apply_procedure(self, patient, chart, tooth, index, procedure, context, check_conflicts):
        name = (procedure.get('name') or '').strip()
        if not name:
            raise ValidationError({'procedures': ["El procedimiento debe tener nombre"]})
        surface = validate_surface(procedure.get('surface'))
        status = _validate_status(procedure.get('status'))
        notes = procedure.get('notes')
        cost = _money(procedure.get('cost'), 'cost')
        estimated_cost = _money(procedure.get('estimated_cost'), 'estimated_cost')

        entries = index.get((EntryType.TREATMENT.value, name, surface, context['treatment_plan_id']), [])
        live = next((e for e in entries if e['status'] != ProcedureStatus.COMPLETED), None)
        done = next((e for e in entries if e['status'] == ProcedureStatus.COMPLETED), None)

        if status == ProcedureStatus.COMPLETED:
            if check_conflicts:
                self._raise_on_conflict(patient, chart, tooth['tooth_number'], surface)

            if live is not None:
                live['status'] = ProcedureStatus.COMPLETED.value
                live.pop('estimated_cost', None)
                live['cost'] = cost if cost is not None else 0
                live['performed_by'] = context['doctor_id']
                live['date'] = context['now']
                live['completed_in_visit_id'] = context['visit_id']
                if notes is not None:
                    live['notes'] = notes
                self._add_visit(live, context['visit_id'])
            elif done is not None:
                self._add_visit(done, context['visit_id'])
            else:
                entry = self._new_entry(name, surface, status, notes, context)
                entry['cost'] = cost if cost is not None else 0
                entry['completed_in_visit_id'] = context['visit_id']
                self._append(tooth, index, entry)
            return

        if live is not None:
            live['status'] = status
            if notes is not None:
                live['notes'] = notes
            if estimated_cost is not None:
                live['estimated_cost'] = estimated_cost
            self._add_visit(live, context['visit_id'])
        else:
            entry = self._new_entry(name, surface, status, notes, context)
            entry['estimated_cost'] = estimated_cost if estimated_cost is not None else 0
            self._append(tooth, index, entry)

    def _raise_on_conflict(self, patient, chart, tooth_number, surface):
        conflict = conflict_service.find_conflict(chart, tooth_number, surface)
        if conflict is None:
            return

        surface_conflict_detected.send(
            sender=self.__class__,
            patient_id=patient.id,
            tooth_number=tooth_number,
            surface=surface,
            last_procedure=conflict['last_procedure'],
        )
        raise SurfaceConflict(
            tooth_number=tooth_number,
            surface=surface,
            last_treated_at=conflict['last_treated_at'],
            last_procedure=conflict['last_procedure'],
        )

    @staticmethod
    def _new_entry(name, surface, status, notes, context):
        return {
            'id': str(uuid.uuid4()),
            'type': EntryType.TREATMENT.value,
            'name': name,
            'surface': surface,
            'status': status,
            'date': context['now'],
            'performed_by': context['doctor_id'],
            'visit_ids': [context['visit_id']] if context['visit_id'] else [],
            'treatment_plan_id': context['treatment_plan_id'],
            'notes': notes or '',
            'procedure_type': procedure_type_for(name),
        }

    @staticmethod
    def _add_visit(entry, visit_id):
        if visit_id and visit_id not in entry.setdefault('visit_ids', []):
            entry['visit_ids'].append(visit_id)

    def discard_planned(self, uow: PatientUnitOfWork, treatment_plan_id,
                        procedures=None) -> List[Dict[str, Any]]:
        """
        Quita las entradas no completadas de un plan. Con `procedures`
        (tuplas tooth_number, name, surface) solo quita esas; sin él,
        todas las del plan (cancelación o borrado).
        """
        if uow is None or not uow.is_active:
            raise RuntimeError("discard_planned requiere una PatientUnitOfWork activa")

        plan_id = str(treatment_plan_id)
        targets = None
        if procedures is not None:
            targets = {(int(number), name, surface) for number, name, surface in procedures}

        def should_discard(tooth_number, entry):
            if entry.get('treatment_plan_id') != plan_id or entry['status'] == ProcedureStatus.COMPLETED:
                return False
            return targets is None or (tooth_number, entry['name'], entry['surface']) in targets

        chart = uow.patient.dental_chart
        for tooth in chart:
            tooth['procedures'] = [
                entry for entry in tooth['procedures']
                if not should_discard(tooth['tooth_number'], entry)
            ]
        uow.mark_dirty()
        return chart

    def add_procedure(
        self,
        patient_id,
        visit_id,
        doctor_id,
        tooth_number,
        procedure_name,
        surface=ToothSurface.ENTIRE,
        notes='',
        fee=0,
        treatment_plan_id=None,
        clinic_id=None,
    ) -> Dict[str, Any]:
        """
        Registra un procedimiento completado durante una visita ya creada.
        Verifica conflicto, actualiza odontograma, visita y (si aplica) plan.
        """
        from api.clinical_records.repositories.visit_repository import VisitRepository
        from api.odontogram.services.treatment_plan_service import TreatmentPlanService

        tooth_number = validate_tooth_number(tooth_number)
        surface = validate_surface(surface)
        fee = _money(fee, 'fee') or 0

        with PatientUnitOfWork(patient_id) as uow:
            self._ensure_clinic(uow.patient, clinic_id)
            visit = VisitRepository.get_for_update(visit_id)
            if visit is None:
                raise NotFound(f"Visita {visit_id} no encontrada")
            if visit.patient_id != uow.patient.id:
                raise ValidationError({'visit_id': ["La visita no pertenece al paciente"]})

            plan_service = TreatmentPlanService(chart_service=self)
            plan = None
            if treatment_plan_id:
                plan = plan_service.get_plan(treatment_plan_id)
                if plan.patient_id != uow.patient.id:
                    raise ValidationError({'treatment_plan_id': ["El plan no pertenece al paciente"]})

            chart = self.apply_work(
                uow,
                [{
                    'tooth_number': tooth_number,
                    'procedures': [{
                        'name': procedure_name,
                        'surface': surface,
                        'status': ProcedureStatus.COMPLETED,
                        'cost': fee,
                        'notes': notes,
                    }],
                }],
                visit_id=visit.id,
                doctor_id=doctor_id,
                treatment_plan_id=plan.id if plan else None,
                check_conflicts=True,
            )

            VisitRepository.add_procedure(
                visit,
                billing_line={
                    'name': procedure_name,
                    'tooth_number': tooth_number,
                    'surface': surface,
                    'fee': fee,
                    'notes': notes or '',
                },
                dental_work={'tooth_number': tooth_number, 'surface': surface, 'procedure': procedure_name},
                snapshot=build_snapshot(chart),
            )

            if plan is not None:
                plan, _ = plan_service.update_specific_procedures(
                    plan.id,
                    [{'tooth_number': tooth_number, 'procedure_name': procedure_name, 'surface': surface}],
                    visit_id=visit.id,
                    doctor_id=doctor_id,
                    strict=False,
                    uow=uow,
                )

        return {'visit': visit, 'dental_chart': chart, 'treatment_plan': plan}

    def update_tooth_status(self, patient_id, tooth_number, status, notes=None,
                            doctor_id=None, clinic_id=None) -> Dict[str, Any]:
        """Estado general de un diente ya registrado (extraído, con corona, ...)"""
        tooth_number = validate_tooth_number(tooth_number)
        status = (status or '').strip()
        if not status:
            raise ValidationError({'status': ["El estado del diente es obligatorio"]})

        with PatientUnitOfWork(patient_id) as uow:
            self._ensure_clinic(uow.patient, clinic_id)
            tooth = uow.patient.get_tooth(tooth_number)
            if tooth is None:
                raise NotFound(f"El diente {tooth_number} no está en el odontograma")

            tooth['current_status'] = status
            if notes:
                tooth['general_notes'] = notes
            tooth['last_updated'] = timezone.now().isoformat()
            tooth['last_updated_by'] = str(doctor_id) if doctor_id else None
            uow.mark_dirty()

        return tooth

    # ------------------------------------------------------------------
    # Lectura
    # ------------------------------------------------------------------

    @staticmethod
    def _ensure_clinic(patient, clinic_id):
        if clinic_id and str(patient.clinic_id) != str(clinic_id):
            raise NotFound(f"Paciente {patient.id} no encontrado en la clínica")

    def _get_patient(self, patient_id, clinic_id=None):
        patient = PatientRepository.get_by_id(patient_id)
        if patient is None:
            raise NotFound(f"Paciente {patient_id} no encontrado")
        self._ensure_clinic(patient, clinic_id)
        return patient

    def get_chart(self, patient_id, clinic_id=None) -> List[Dict[str, Any]]:
        """Odontograma completo ordenado por número de diente"""
        patient = self._get_patient(patient_id, clinic_id)
        return sorted(patient.dental_chart, key=lambda t: t['tooth_number'])

    def get_tooth_history(self, patient_id, tooth_number, clinic_id=None) -> Dict[str, Any]:
        tooth_number = validate_tooth_number(tooth_number)
        patient = self._get_patient(patient_id, clinic_id)
        tooth = patient.get_tooth(tooth_number) or {}
        procedures = sorted(
            tooth.get('procedures', []),
            key=lambda entry: entry.get('date') or '',
            reverse=True,
        )
        return {
            'tooth_number': tooth_number,
            'conditions': tooth.get('conditions', []),
            'procedures': procedures,
            'treated_surfaces': conflict_service.treated_surfaces(tooth),
            'last_updated': tooth.get('last_updated'),
        }

    def check_conflict(self, patient_id, tooth_number, surface, clinic_id=None) -> Dict[str, Any]:
        """Pre-verificación sin efectos: ¿se puede tratar esta superficie?"""
        tooth_number = validate_tooth_number(tooth_number)
        surface = validate_surface(surface)
        patient = self._get_patient(patient_id, clinic_id)

        conflict = conflict_service.find_conflict(patient.dental_chart, tooth_number, surface)
        if conflict is None:
            return {
                'has_conflict': False,
                'message': f"La superficie '{surface}' del diente {tooth_number} está disponible",
                'details': None,
            }

        exc = SurfaceConflict(
            tooth_number=tooth_number,
            surface=surface,
            last_treated_at=conflict['last_treated_at'],
            last_procedure=conflict['last_procedure'],
        )
        details = exc.details
        details['treated_surfaces'] = conflict['treated_surfaces']
        return {'has_conflict': True, 'message': str(exc.detail), 'details': details}

    def compare_with_plan(self, patient_id, plan_id, clinic_id=None) -> Dict[str, Any]:
        """Odontograma actual frente a lo planificado y lo ya realizado del plan"""
        from api.odontogram.services.treatment_plan_service import TreatmentPlanService

        patient = self._get_patient(patient_id, clinic_id)
        plan = TreatmentPlanService.get_plan(plan_id)
        if plan.patient_id != patient.id:
            raise NotFound(f"Plan {plan_id} no encontrado para el paciente {patient_id}")

        planned_work, completed_work = [], []
        for tooth in plan.teeth:
            for procedure in tooth['procedures']:
                item = {'tooth_number': tooth['tooth_number'], **procedure}
                if procedure['status'] == ProcedureStatus.COMPLETED:
                    completed_work.append(item)
                else:
                    planned_work.append(item)

        total = len(planned_work) + len(completed_work)
        return {
            'current_chart': sorted(patient.dental_chart, key=lambda t: t['tooth_number']),
            'planned_work': planned_work,
            'completed_work': completed_work,
            'plan_status': plan.status,
            'progress': {
                'total': total,
                'completed': len(completed_work),
                'percentage': round(len(completed_work) * 100 / total, 1) if total else 0,
            },
        }
