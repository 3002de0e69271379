# api/odontogram/constants.py

"""
Constantes del odontograma y de los planes de tratamiento
"""
from django.db import models


# Numeración universal: 1-32 dientes permanentes
TOOTH_NUMBER_MIN = 1
TOOTH_NUMBER_MAX = 32


class ToothSurface(models.TextChoices):
    """Superficies dentales; 'entire' es el diente completo"""
    MESIAL = 'mesial', 'Mesial'
    DISTAL = 'distal', 'Distal'
    OCCLUSAL = 'occlusal', 'Oclusal'
    BUCCAL = 'buccal', 'Vestibular'
    LINGUAL = 'lingual', 'Lingual'
    PALATAL = 'palatal', 'Palatina'
    INCISAL = 'incisal', 'Incisal'
    ENTIRE = 'entire', 'Diente completo'


class EntryType(models.TextChoices):
    """Tipo de registro en el historial de un diente"""
    CONDITION = 'condition', 'Condición'
    TREATMENT = 'treatment', 'Tratamiento'


class ProcedureStatus(models.TextChoices):
    PLANNED = 'planned', 'Planificado'
    IN_PROGRESS = 'in-progress', 'En progreso'
    COMPLETED = 'completed', 'Completado'


class StageStatus(models.TextChoices):
    PENDING = 'pending', 'Pendiente'
    IN_PROGRESS = 'in-progress', 'En progreso'
    COMPLETED = 'completed', 'Completada'


class PlanStatus(models.TextChoices):
    DRAFT = 'draft', 'Borrador'
    ONGOING = 'ongoing', 'En curso'
    COMPLETED = 'completed', 'Completado'
    CANCELLED = 'cancelled', 'Cancelado'


class ToothPriority(models.TextChoices):
    LOW = 'low', 'Baja'
    MEDIUM = 'medium', 'Media'
    HIGH = 'high', 'Alta'
    URGENT = 'urgent', 'Urgente'


SURFACES = ToothSurface.values

# Planes sobre los que ya no se permite mutación estructural
LOCKED_PLAN_STATUSES = (PlanStatus.COMPLETED, PlanStatus.CANCELLED)


# Palabras clave -> categoría de procedimiento (el orden importa)
PROCEDURE_TYPE_KEYWORDS = (
    ('filling', ('filling', 'fill', 'composite')),
    ('extraction', ('extraction', 'extract')),
    ('root-canal', ('root canal', 'rct')),
    ('crown', ('crown',)),
    ('denture', ('denture',)),
    ('cleaning', ('cleaning', 'prophylaxis', 'scale', 'scaling')),
)


def procedure_type_for(procedure_name):
    """Clasifica un nombre libre de procedimiento en una categoría conocida"""
    if not procedure_name:
        return 'other'

    name = procedure_name.lower()
    for procedure_type, keywords in PROCEDURE_TYPE_KEYWORDS:
        if any(keyword in name for keyword in keywords):
            return procedure_type
    return 'other'
