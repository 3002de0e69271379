import logging
import sys

from django.apps import apps
from django.core.exceptions import ValidationError
from django.db import transaction
from rest_framework.exceptions import NotFound

logger = logging.getLogger(__name__)


class PatientUnitOfWork:
    """
    Unidad de trabajo sobre el documento de un paciente.

    Abre una transacción, bloquea la fila del paciente (select_for_update) y
    la mantiene hasta el commit. Todos los cambios al odontograma se aplican
    sobre `uow.patient` en memoria y se guardan una sola vez al salir.
    Cualquier excepción dentro del bloque revierte todo.

        with PatientUnitOfWork(patient_id) as uow:
            DentalChartService().apply_work(uow, ...)
    """

    def __init__(self, patient_id, using=None):
        self.patient_id = patient_id
        self.using = using
        self.patient = None
        self._atomic = None
        self._dirty = False

    @property
    def is_active(self):
        return self._atomic is not None and self.patient is not None

    def __enter__(self):
        self._atomic = transaction.atomic(using=self.using)
        self._atomic.__enter__()
        try:
            self.patient = self._load_patient()
        except BaseException:
            self._close(*sys.exc_info())
            raise
        return self

    def __exit__(self, exc_type, exc, tb):
        if exc_type is None and self._dirty:
            try:
                self._flush()
            except BaseException:
                self._close(*sys.exc_info())
                raise
        self._close(exc_type, exc, tb)
        return False

    def mark_dirty(self):
        """Marca el paciente para guardarse al cerrar la unidad de trabajo"""
        self._dirty = True

    def save_patient(self):
        """Guarda de inmediato (p. ej. antes de leer el paciente desde otra consulta)"""
        self._flush()

    def on_commit(self, func):
        transaction.on_commit(func, using=self.using)

    def _load_patient(self):
        patient_model = apps.get_model('patients', 'Patient')
        try:
            patient_model._meta.pk.to_python(self.patient_id)
        except ValidationError:
            raise NotFound(f'Paciente {self.patient_id} no encontrado')

        patient = (
            patient_model.objects.using(self.using or 'default')
            .select_for_update()
            .filter(pk=self.patient_id, active=True)
            .first()
        )
        if patient is None:
            raise NotFound(f'Paciente {self.patient_id} no encontrado')
        return patient

    def _flush(self):
        self.patient.save()
        self._dirty = False
        logger.debug(f"Paciente {self.patient.id} guardado en unidad de trabajo")

    def _close(self, exc_type, exc, tb):
        atomic, self._atomic = self._atomic, None
        if atomic is not None:
            atomic.__exit__(exc_type, exc, tb)
