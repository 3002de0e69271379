# patients/models/constants.py
# Opciones comunes para los modelos de pacientes

GENDERS = [
    ('M', 'Masculino'),
    ('F', 'Femenino'),
    ('O', 'Otro'),
]
