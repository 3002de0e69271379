from django.apps import AppConfig

class AuthenticationConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'authentication'  # ← Solo esto porque está en raíz
    label = 'authentication'
    verbose_name = 'Autenticación por claims'
