# patients/models/base.py

#Modelo base con campos comunes
import uuid
from django.db import models


class BaseModel(models.Model):
    """Modelo base abstracto con campos comunes a todos los modelos"""
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False, unique=True)

    created_at = models.DateTimeField(auto_now_add=True, verbose_name="Fecha de creación")
    updated_at = models.DateTimeField(auto_now=True, verbose_name="Fecha de modificación")
    active = models.BooleanField(default=True, verbose_name="Activo")

    class Meta:
        abstract = True
