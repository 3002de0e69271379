# api/odontogram/schemas.py
"""
Esquemas JSON de los documentos embebidos (odontograma y plan de tratamiento).
Se validan con jsonschema en el clean() de cada modelo antes de guardar.
"""
from django.core.exceptions import ValidationError
from jsonschema import Draft7Validator

from .constants import (
    TOOTH_NUMBER_MIN,
    TOOTH_NUMBER_MAX,
    SURFACES,
    EntryType,
    ProcedureStatus,
    StageStatus,
    ToothPriority,
)

_TOOTH_NUMBER = {'type': 'integer', 'minimum': TOOTH_NUMBER_MIN, 'maximum': TOOTH_NUMBER_MAX}
_NULLABLE_STRING = {'type': ['string', 'null']}
_MONEY = {'type': 'number', 'minimum': 0}

PROCEDURE_ENTRY_SCHEMA = {
    'type': 'object',
    'required': ['id', 'type', 'name', 'surface', 'status'],
    'properties': {
        'id': {'type': 'string'},
        'type': {'enum': EntryType.values},
        'name': {'type': 'string', 'minLength': 1},
        'surface': {'enum': SURFACES},
        'status': {'enum': ProcedureStatus.values},
        'date': _NULLABLE_STRING,
        'performed_by': _NULLABLE_STRING,
        'visit_ids': {'type': 'array', 'items': {'type': 'string'}},
        'treatment_plan_id': _NULLABLE_STRING,
        'completed_in_visit_id': _NULLABLE_STRING,
        'notes': {'type': 'string'},
        'procedure_type': {'type': 'string'},
        'cost': _MONEY,
        'estimated_cost': _MONEY,
    },
    # cost solo cuando está completado; estimated_cost solo mientras no
    'allOf': [
        {
            'if': {'properties': {'status': {'const': ProcedureStatus.COMPLETED.value}}},
            'then': {'not': {'required': ['estimated_cost']}},
            'else': {'not': {'required': ['cost']}},
        },
    ],
}

TOOTH_RECORD_SCHEMA = {
    'type': 'object',
    'required': ['tooth_number', 'conditions', 'procedures'],
    'properties': {
        'tooth_number': _TOOTH_NUMBER,
        'conditions': {'type': 'array', 'items': {'type': 'string'}, 'uniqueItems': True},
        'procedures': {'type': 'array', 'items': PROCEDURE_ENTRY_SCHEMA},
        'last_updated': _NULLABLE_STRING,
        'last_updated_by': _NULLABLE_STRING,
        'last_visit_id': _NULLABLE_STRING,
        'current_status': {'type': ['string', 'null'], 'maxLength': 50},
        'general_notes': {'type': 'string'},
    },
}

DENTAL_CHART_SCHEMA = {
    'type': 'array',
    'items': TOOTH_RECORD_SCHEMA,
}

PLANNED_PROCEDURE_SCHEMA = {
    'type': 'object',
    'required': ['name', 'surface', 'stage', 'status'],
    'properties': {
        'name': {'type': 'string', 'minLength': 1},
        'surface': {'enum': SURFACES},
        'stage': {'type': 'integer', 'minimum': 1},
        'status': {'enum': ProcedureStatus.values},
        'estimated_cost': _MONEY,
        'notes': {'type': 'string'},
        'completed_at': _NULLABLE_STRING,
        'completed_in_visit_id': _NULLABLE_STRING,
        'performed_by': _NULLABLE_STRING,
    },
}

PLAN_TEETH_SCHEMA = {
    'type': 'array',
    'items': {
        'type': 'object',
        'required': ['tooth_number', 'procedures'],
        'properties': {
            'tooth_number': _TOOTH_NUMBER,
            'priority': {'enum': ToothPriority.values},
            'is_completed': {'type': 'boolean'},
            'procedures': {'type': 'array', 'items': PLANNED_PROCEDURE_SCHEMA},
        },
    },
}

PLAN_STAGES_SCHEMA = {
    'type': 'array',
    'items': {
        'type': 'object',
        'required': ['stage_number', 'stage_name', 'status'],
        'properties': {
            'stage_number': {'type': 'integer', 'minimum': 1},
            'stage_name': {'type': 'string', 'minLength': 1},
            'description': {'type': 'string'},
            'status': {'enum': StageStatus.values},
            'scheduled_date': _NULLABLE_STRING,
            'started_at': _NULLABLE_STRING,
            'completed_at': _NULLABLE_STRING,
            'tooth_surface_procedures': {
                'type': 'array',
                'items': {
                    'type': 'object',
                    'required': ['tooth_number', 'surface_procedures'],
                    'properties': {
                        'tooth_number': _TOOTH_NUMBER,
                        'surface_procedures': {
                            'type': 'array',
                            'items': {
                                'type': 'object',
                                'required': ['surface', 'procedure_names'],
                                'properties': {
                                    'surface': {'enum': SURFACES},
                                    'procedure_names': {'type': 'array', 'items': {'type': 'string'}},
                                },
                            },
                        },
                    },
                },
            },
        },
    },
}


def validate_document(document, schema, field_name):
    """
    Valida un documento embebido contra su esquema.
    Lanza django ValidationError con todos los errores bajo `field_name`.
    """
    errors = sorted(Draft7Validator(schema).iter_errors(document), key=lambda e: list(e.path))
    if errors:
        messages = []
        for error in errors[:10]:
            location = '.'.join(str(part) for part in error.path)
            messages.append(f"{location}: {error.message}" if location else error.message)
        raise ValidationError({field_name: messages})
