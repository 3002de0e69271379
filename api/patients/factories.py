# patients/factories.py
import factory
from .models import Patient


class PatientFactory(factory.django.DjangoModelFactory):
    class Meta:
        model = Patient

    name = factory.Faker('name')
    phone = factory.Sequence(lambda n: f"09{n:08d}")
    email = factory.Faker('email')
    age = factory.Faker('random_int', min=5, max=90)
    gender = factory.Iterator(['M', 'F'])
    clinic_id = 'clinic-1'
    dental_chart = factory.LazyFunction(list)
    treatment_plan_ids = factory.LazyFunction(list)
    visit_history = factory.LazyFunction(list)
