# api/odontogram/services/plan_status.py
"""
Derivación de estados del plan de tratamiento.

El estado de cada etapa y del plan nunca se asigna a mano: se recalcula a
partir de los procedimientos después de cada mutación. `derive_stage_status`
y `derive_plan_status` son funciones puras; `recompute` las aplica sobre un
TreatmentPlan en memoria (teeth/stages son listas JSON).
"""
from typing import Iterable, List, Optional

from django.utils import timezone

from api.odontogram.constants import PlanStatus, ProcedureStatus, StageStatus


def derive_stage_status(procedure_statuses: Iterable[str], started: bool = False,
                        closed: bool = False) -> str:
    """
    - sin procedimientos: pending (completed si la etapa se cerró explícitamente)
    - todos completados: completed
    - alguno completado o en progreso, o la etapa fue iniciada: in-progress
    - resto: pending
    """
    statuses = list(procedure_statuses)
    if not statuses:
        return StageStatus.COMPLETED if closed else StageStatus.PENDING

    completed = sum(1 for status in statuses if status == ProcedureStatus.COMPLETED)
    if completed == len(statuses):
        return StageStatus.COMPLETED

    if completed or started or ProcedureStatus.IN_PROGRESS in statuses:
        return StageStatus.IN_PROGRESS

    return StageStatus.PENDING


def derive_plan_status(stage_statuses: Iterable[str], current: Optional[str] = None) -> str:
    """
    cancelled es terminal y nunca se recalcula. completed se evalúa antes que
    ongoing: un plan con todas sus etapas completadas está completado.
    """
    if current == PlanStatus.CANCELLED:
        return PlanStatus.CANCELLED

    statuses = list(stage_statuses)
    if statuses and all(status == StageStatus.COMPLETED for status in statuses):
        return PlanStatus.COMPLETED

    if any(status in (StageStatus.IN_PROGRESS, StageStatus.COMPLETED) for status in statuses):
        return PlanStatus.ONGOING

    return PlanStatus.DRAFT


def procedures_in_stage(teeth: List[dict], stage_number: int) -> List[dict]:
    return [
        procedure
        for tooth in teeth
        for procedure in tooth.get('procedures', [])
        if procedure.get('stage') == stage_number
    ]


def build_stage_summary(teeth: List[dict], stage_number: int) -> List[dict]:
    """Resumen diente -> superficie -> nombres de procedimiento de una etapa"""
    summary = []
    for tooth in sorted(teeth, key=lambda t: t['tooth_number']):
        by_surface = {}
        for procedure in tooth.get('procedures', []):
            if procedure.get('stage') != stage_number:
                continue
            names = by_surface.setdefault(procedure['surface'], [])
            if procedure['name'] not in names:
                names.append(procedure['name'])

        if by_surface:
            summary.append({
                'tooth_number': tooth['tooth_number'],
                'surface_procedures': [
                    {'surface': surface, 'procedure_names': names}
                    for surface, names in by_surface.items()
                ],
            })
    return summary


def recompute(plan) -> str:
    """
    Recalcula resúmenes, estados de etapas y dientes, etapa actual y estado
    del plan. Devuelve el nuevo estado del plan.
    """
    now = timezone.now().isoformat()

    for tooth in plan.teeth:
        statuses = [p['status'] for p in tooth.get('procedures', [])]
        tooth['is_completed'] = bool(statuses) and all(
            status == ProcedureStatus.COMPLETED for status in statuses
        )

    for stage in plan.stages:
        number = stage['stage_number']
        statuses = [p['status'] for p in procedures_in_stage(plan.teeth, number)]
        status = derive_stage_status(
            statuses,
            started=bool(stage.get('started_at')),
            closed=bool(stage.get('completed_at')),
        )
        stage['status'] = status
        stage['tooth_surface_procedures'] = build_stage_summary(plan.teeth, number)

        if status != StageStatus.PENDING and not stage.get('started_at'):
            stage['started_at'] = now
        if status == StageStatus.COMPLETED:
            stage['completed_at'] = stage.get('completed_at') or now
        else:
            stage['completed_at'] = None

    plan.current_stage = _current_stage(plan.stages)

    status = derive_plan_status([s['status'] for s in plan.stages], current=plan.status)
    if status in (PlanStatus.ONGOING, PlanStatus.COMPLETED) and plan.started_at is None:
        plan.started_at = timezone.now()
    if status == PlanStatus.COMPLETED:
        plan.completed_at = plan.completed_at or timezone.now()
    elif status != PlanStatus.CANCELLED:
        plan.completed_at = None

    plan.status = status
    return status


def _current_stage(stages: List[dict]) -> int:
    """Primera etapa sin completar; la última si todas lo están; 0 sin etapas"""
    if not stages:
        return 0
    for stage in stages:
        if stage['status'] != StageStatus.COMPLETED:
            return stage['stage_number']
    return stages[-1]['stage_number']
