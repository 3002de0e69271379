# api/odontogram/tests/test_plan_status.py
from types import SimpleNamespace

from api.odontogram.constants import PlanStatus, StageStatus
from api.odontogram.services.plan_status import (
    build_stage_summary,
    derive_plan_status,
    derive_stage_status,
    recompute,
)


class TestDeriveStageStatus:

    def test_etapa_vacia_es_pendiente(self):
        assert derive_stage_status([]) == StageStatus.PENDING

    def test_etapa_vacia_cerrada_es_completada(self):
        assert derive_stage_status([], closed=True) == StageStatus.COMPLETED

    def test_todos_completados(self):
        assert derive_stage_status(['completed', 'completed']) == StageStatus.COMPLETED

    def test_alguno_completado_es_en_progreso(self):
        assert derive_stage_status(['completed', 'planned']) == StageStatus.IN_PROGRESS

    def test_procedimiento_en_progreso(self):
        assert derive_stage_status(['in-progress', 'planned']) == StageStatus.IN_PROGRESS

    def test_etapa_iniciada_sin_avance(self):
        assert derive_stage_status(['planned'], started=True) == StageStatus.IN_PROGRESS

    def test_todo_planificado_es_pendiente(self):
        assert derive_stage_status(['planned', 'planned']) == StageStatus.PENDING


class TestDerivePlanStatus:

    def test_sin_etapas_es_borrador(self):
        assert derive_plan_status([]) == PlanStatus.DRAFT

    def test_todas_pendientes_es_borrador(self):
        assert derive_plan_status(['pending', 'pending']) == PlanStatus.DRAFT

    def test_alguna_en_progreso_es_en_curso(self):
        assert derive_plan_status(['in-progress', 'pending']) == PlanStatus.ONGOING

    def test_alguna_completada_es_en_curso(self):
        assert derive_plan_status(['completed', 'pending']) == PlanStatus.ONGOING

    def test_todas_completadas_es_completado(self):
        assert derive_plan_status(['completed', 'completed']) == PlanStatus.COMPLETED

    def test_cancelado_no_se_recalcula(self):
        assert derive_plan_status(['completed'], current=PlanStatus.CANCELLED) == PlanStatus.CANCELLED


def _procedure(name, surface, stage, status='planned'):
    return {'name': name, 'surface': surface, 'stage': stage, 'status': status, 'estimated_cost': 0}


def test_build_stage_summary_agrupa_por_diente_y_superficie():
    teeth = [
        {'tooth_number': 21, 'procedures': [_procedure('Crown', 'entire', 2)]},
        {'tooth_number': 11, 'procedures': [
            _procedure('Filling', 'mesial', 1),
            _procedure('Polish', 'mesial', 1),
            _procedure('Filling', 'distal', 1),
        ]},
    ]

    summary = build_stage_summary(teeth, 1)

    assert summary == [{
        'tooth_number': 11,
        'surface_procedures': [
            {'surface': 'mesial', 'procedure_names': ['Filling', 'Polish']},
            {'surface': 'distal', 'procedure_names': ['Filling']},
        ],
    }]


class TestRecompute:

    def _plan(self, teeth, stages, status=PlanStatus.DRAFT):
        return SimpleNamespace(
            teeth=teeth, stages=stages, status=status,
            current_stage=0, started_at=None, completed_at=None,
        )

    def _stages(self, count):
        return [
            {'stage_number': n, 'stage_name': f'Etapa {n}', 'status': 'pending',
             'started_at': None, 'completed_at': None, 'tooth_surface_procedures': []}
            for n in range(1, count + 1)
        ]

    def test_primera_etapa_completa_deja_el_plan_en_curso(self):
        plan = self._plan(
            teeth=[{'tooth_number': 11, 'procedures': [
                _procedure('Filling', 'mesial', 1, 'completed'),
                _procedure('Crown', 'entire', 2),
            ]}],
            stages=self._stages(2),
        )

        status = recompute(plan)

        assert status == PlanStatus.ONGOING
        assert plan.stages[0]['status'] == StageStatus.COMPLETED
        assert plan.stages[0]['completed_at'] is not None
        assert plan.stages[1]['status'] == StageStatus.PENDING
        assert plan.current_stage == 2
        assert plan.started_at is not None
        assert plan.completed_at is None
        assert plan.teeth[0]['is_completed'] is False

    def test_todo_completado(self):
        plan = self._plan(
            teeth=[{'tooth_number': 11, 'procedures': [_procedure('Filling', 'mesial', 1, 'completed')]}],
            stages=self._stages(1),
        )

        assert recompute(plan) == PlanStatus.COMPLETED
        assert plan.current_stage == 1
        assert plan.completed_at is not None
        assert plan.teeth[0]['is_completed'] is True

    def test_plan_sin_etapas(self):
        plan = self._plan(teeth=[], stages=[])

        assert recompute(plan) == PlanStatus.DRAFT
        assert plan.current_stage == 0
