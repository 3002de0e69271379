# api/odontogram/tests/test_conflict_service.py
"""
Tests de detección de conflictos de superficie (funciones puras).
"""
from api.odontogram.services import conflict_service


def _entry(name, surface, status='completed', entry_type='treatment', date='2024-01-10T10:00:00'):
    return {
        'id': f'{name}-{surface}',
        'type': entry_type,
        'name': name,
        'surface': surface,
        'status': status,
        'date': date,
    }


def _chart(*entries, tooth_number=16):
    return [{'tooth_number': tooth_number, 'conditions': [], 'procedures': list(entries)}]


class TestFindConflict:

    def test_sin_registro_del_diente_no_hay_conflicto(self):
        assert conflict_service.find_conflict([], 16, 'occlusal') is None

    def test_misma_superficie_completada_es_conflicto(self):
        chart = _chart(_entry('Filling', 'occlusal'))

        conflict = conflict_service.find_conflict(chart, 16, 'occlusal')

        assert conflict is not None
        assert conflict['last_procedure'] == 'Filling'
        assert conflict['last_treated_at'] == '2024-01-10T10:00:00'

    def test_otra_superficie_no_es_conflicto(self):
        chart = _chart(_entry('Filling', 'occlusal'))
        assert conflict_service.find_conflict(chart, 16, 'mesial') is None

    def test_diente_completo_tratado_bloquea_cualquier_superficie(self):
        chart = _chart(_entry('Crown', 'entire'))
        assert conflict_service.is_surface_treated(chart, 16, 'buccal')

    def test_pedir_diente_completo_choca_con_cualquier_superficie(self):
        chart = _chart(_entry('Filling', 'distal'))
        assert conflict_service.is_surface_treated(chart, 16, 'entire')

    def test_planificados_y_condiciones_no_cuentan(self):
        chart = _chart(
            _entry('Filling', 'occlusal', status='planned'),
            _entry('Root Canal', 'occlusal', status='in-progress'),
            _entry('Caries', 'occlusal', entry_type='condition'),
        )
        assert conflict_service.find_conflict(chart, 16, 'occlusal') is None

    def test_devuelve_el_tratamiento_mas_reciente(self):
        chart = _chart(
            _entry('Sealant', 'occlusal', date='2023-05-01T09:00:00'),
            _entry('Crown', 'entire', date='2024-02-01T09:00:00'),
        )

        conflict = conflict_service.find_conflict(chart, 16, 'occlusal')

        assert conflict['last_procedure'] == 'Crown'


class TestTreatedSurfaces:

    def test_resumen_por_superficie_mas_reciente_primero(self):
        tooth = _chart(
            _entry('Sealant', 'occlusal', date='2023-05-01T09:00:00'),
            _entry('Filling', 'occlusal', date='2024-03-01T09:00:00'),
            _entry('Filling', 'mesial', date='2023-12-01T09:00:00'),
        )[0]

        summary = conflict_service.treated_surfaces(tooth)

        assert summary == [
            {'surface': 'occlusal', 'last_treated_at': '2024-03-01T09:00:00', 'last_procedure': 'Filling'},
            {'surface': 'mesial', 'last_treated_at': '2023-12-01T09:00:00', 'last_procedure': 'Filling'},
        ]

    def test_diente_inexistente(self):
        assert conflict_service.treated_surfaces(None) == []


def test_is_procedure_planned_compara_nombre_superficie_y_etapa():
    plan_teeth = [{
        'tooth_number': 11,
        'procedures': [{'name': 'Filling', 'surface': 'mesial', 'stage': 1, 'status': 'planned'}],
    }]

    assert conflict_service.is_procedure_planned(plan_teeth, 11, 'mesial', 'Filling', 1)
    assert not conflict_service.is_procedure_planned(plan_teeth, 11, 'mesial', 'Filling', 2)
    assert not conflict_service.is_procedure_planned(plan_teeth, 11, 'distal', 'Filling', 1)
    assert not conflict_service.is_procedure_planned(plan_teeth, 12, 'mesial', 'Filling', 1)
