# patients/repositories/patient_repository.py
from common.repositories.base_repository import BaseRepository
from ..models import Patient


class PatientRepository(BaseRepository[Patient]):
    model = Patient

    @classmethod
    def get_queryset(cls):
        return Patient.objects.filter(active=True)

    @classmethod
    def get_by_clinic(cls, clinic_id):
        return cls.get_queryset().filter(clinic_id=clinic_id).order_by('name')

    @staticmethod
    def soft_delete(patient):
        patient.active = False
        patient.save()
