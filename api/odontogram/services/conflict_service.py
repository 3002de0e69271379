# api/odontogram/services/conflict_service.py
"""
Detección de conflictos de superficie sobre el odontograma.

Una superficie está tratada cuando existe un tratamiento completado sobre
esa misma superficie o sobre el diente completo ('entire'). Pedir el diente
completo choca con cualquier superficie ya tratada. Las condiciones
(caries, fracturas...) no cuentan como tratamiento.
"""
from typing import List, Optional

from api.odontogram.constants import EntryType, ProcedureStatus, ToothSurface


def _find_tooth(chart: List[dict], tooth_number: int) -> Optional[dict]:
    for tooth in chart:
        if tooth['tooth_number'] == tooth_number:
            return tooth
    return None


def _completed_treatments(tooth: dict) -> List[dict]:
    return [
        entry for entry in tooth.get('procedures', [])
        if entry.get('type') == EntryType.TREATMENT
        and entry.get('status') == ProcedureStatus.COMPLETED
    ]


def _blocks(entry_surface: str, requested_surface: str) -> bool:
    if requested_surface == ToothSurface.ENTIRE or entry_surface == ToothSurface.ENTIRE:
        return True
    return entry_surface == requested_surface


def treated_surfaces(tooth: Optional[dict]) -> List[dict]:
    """Última intervención completada por superficie, más reciente primero"""
    if not tooth:
        return []

    latest = {}
    for entry in _completed_treatments(tooth):
        current = latest.get(entry['surface'])
        if current is None or (entry.get('date') or '') >= (current.get('date') or ''):
            latest[entry['surface']] = entry

    summary = [
        {
            'surface': surface,
            'last_treated_at': entry.get('date'),
            'last_procedure': entry['name'],
        }
        for surface, entry in latest.items()
    ]
    return sorted(summary, key=lambda item: item['last_treated_at'] or '', reverse=True)


def find_conflict(chart: List[dict], tooth_number: int, surface: str) -> Optional[dict]:
    """
    Devuelve el tratamiento completado más reciente que bloquea la superficie,
    o None si la superficie está libre.
    """
    tooth = _find_tooth(chart, tooth_number)
    if tooth is None:
        return None

    blocking = [
        entry for entry in _completed_treatments(tooth)
        if _blocks(entry['surface'], surface)
    ]
    if not blocking:
        return None

    last = max(blocking, key=lambda entry: entry.get('date') or '')
    return {
        'last_treated_at': last.get('date'),
        'last_procedure': last['name'],
        'treated_surfaces': treated_surfaces(tooth),
    }


def is_surface_treated(chart: List[dict], tooth_number: int, surface: str) -> bool:
    return find_conflict(chart, tooth_number, surface) is not None


def is_procedure_planned(plan_teeth: List[dict], tooth_number: int, surface: str,
                         procedure_name: str, stage_number: int) -> bool:
    """¿El mismo procedimiento ya está planificado en esa etapa?"""
    tooth = _find_tooth(plan_teeth, tooth_number)
    if tooth is None:
        return False
    return any(
        procedure['name'] == procedure_name
        and procedure['surface'] == surface
        and procedure['stage'] == stage_number
        for procedure in tooth.get('procedures', [])
    )
