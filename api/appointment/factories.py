# api/appointment/factories.py
import datetime

import factory
from api.patients.factories import PatientFactory
from .models import Appointment, AppointmentStatus


class AppointmentFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Appointment

    patient = factory.SubFactory(PatientFactory)
    clinic_id = factory.SelfAttribute('patient.clinic_id')
    doctor_id = 'doctor-1'
    department = 'Odontología general'
    appointment_date = factory.LazyFunction(datetime.date.today)
    appointment_time = datetime.time(9, 30)
    status = AppointmentStatus.SCHEDULED
    created_by = 'reception'
