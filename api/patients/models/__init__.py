# patients/models/__init__.py
from .base import BaseModel
from .constants import *
from .patient import Patient

__all__ = [
    'BaseModel',
    'Patient',
]
