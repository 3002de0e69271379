# api/permissions.py
from rest_framework import permissions


class EsOdontologoDeClinica(permissions.BasePermission):
    """
    Permite lecturas a cualquier usuario autenticado y escrituras solo a
    tokens que traen identidad de odontólogo y clínica.

    Uso:
        permission_classes = [EsOdontologoDeClinica]
    """

    # Roles que pueden escribir aunque el token no traiga doctor_id
    ROLES_ESCRITURA = {'clinic_admin'}

    message = 'Se requiere una identidad de odontólogo y clínica válida'

    def has_permission(self, request, view):
        user = request.user

        # 1. Usuario no autenticado = sin acceso
        if not user or not user.is_authenticated:
            return False

        # 2. Lecturas permitidas
        if request.method in permissions.SAFE_METHODS:
            return True

        # 3. Escrituras: odontólogo con clínica o rol administrativo
        if getattr(user, 'role', '') in self.ROLES_ESCRITURA:
            return True

        return bool(getattr(user, 'doctor_id', None) and getattr(user, 'clinic_id', None))
