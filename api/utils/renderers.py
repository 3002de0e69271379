# api/utils/renderers.py
from rest_framework.renderers import JSONRenderer


class StandardizedJSONRenderer(JSONRenderer):
    """
    Renderer que envuelve todas las respuestas en el formato estándar
    {success, status_code, message, data, errors}.
    """

    STATUS_MESSAGES = {
        200: 'Operación exitosa',
        201: 'Recurso creado exitosamente',
        204: 'Recurso eliminado exitosamente',
        400: 'Error en los datos enviados',
        401: 'No autenticado',
        403: 'No tiene permisos para esta acción',
        404: 'Recurso no encontrado',
        409: 'Conflicto con el estado actual del recurso',
        500: 'Error interno del servidor'
    }

    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = renderer_context.get('response') if renderer_context else None

        # Sin response (browsable API / swagger) se devuelve tal cual
        if not response:
            return super().render(data, accepted_media_type, renderer_context)

        # Respuestas de error ya formateadas por el exception handler
        if isinstance(data, dict) and 'success' in data and 'status_code' in data:
            return super().render(data, accepted_media_type, renderer_context)

        ok = response.status_code < 400
        standardized_response = {
            'success': ok,
            'status_code': response.status_code,
            'message': self._get_message(data, response),
            'data': data if ok else None,
            'errors': None if ok else data
        }

        return super().render(standardized_response, accepted_media_type, renderer_context)

    def _get_message(self, data, response):
        """Usa el 'message' de la vista si existe, si no uno según el status"""
        if isinstance(data, dict) and 'message' in data:
            return data.pop('message')

        return self.STATUS_MESSAGES.get(response.status_code, 'Operación completada')
