# clinical_records/factories.py
from decimal import Decimal

import factory
from api.appointment.factories import AppointmentFactory
from api.patients.factories import PatientFactory
from .models import Visit


class VisitFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Visit

    patient = factory.SubFactory(PatientFactory)
    clinic_id = factory.SelfAttribute('patient.clinic_id')
    doctor_id = 'doctor-1'
    appointment = factory.SubFactory(AppointmentFactory, patient=factory.SelfAttribute('..patient'))
    chief_complaints = factory.LazyFunction(lambda: ['Dolor al masticar'])
    consultation_fee = Decimal('20.00')
    created_by = 'doctor-1'
