# api/utils/exception_handlers.py
from django.core.exceptions import ValidationError as DjangoValidationError
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework import status
import logging

from api.utils.exceptions import SurfaceConflict

logger = logging.getLogger(__name__)


def custom_exception_handler(exc, context):
    """
    Envuelve cualquier error en {success, status_code, message, data, errors}.
    Los conflictos clínicos (409) agregan error_type y, si es de superficie,
    los details del tratamiento previo.
    """
    # full_clean() de los documentos embebidos falla como 400
    if isinstance(exc, DjangoValidationError):
        detail = exc.message_dict if hasattr(exc, 'error_dict') else exc.messages
        exc = DRFValidationError(detail=detail)

    # El handler de DRF marca el rollback del atomic activo
    response = exception_handler(exc, context)

    if response is None:
        logger.critical(f"Unhandled Exception: {exc.__class__.__name__} - {exc}", exc_info=True)
        return Response(
            {
                'success': False,
                'status_code': 500,
                'message': 'Error interno del servidor',
                'data': None,
                'errors': {'detail': ['Ha ocurrido un error inesperado']}
            },
            status=status.HTTP_500_INTERNAL_SERVER_ERROR
        )

    log = logger.error if response.status_code >= 500 else logger.warning
    log(f"API Error: {exc.__class__.__name__} - {exc}", extra={'status_code': response.status_code})

    body = {
        'success': False,
        'status_code': response.status_code,
        'message': _first_message(response.data) or 'Error en la solicitud',
        'data': None,
        'errors': _format_errors(response.data),
    }
    error_type = getattr(exc, 'error_type', None)
    if error_type:
        body['error_type'] = error_type
    if isinstance(exc, SurfaceConflict):
        body['details'] = exc.details

    response.data = body
    return response


def _first_message(data):
    """Primer mensaje, bajando por errores anidados (teeth[0].procedures[1]...)"""
    if isinstance(data, dict):
        data = next(iter(data.values()), None)
        return _first_message(data) if data is not None else None
    if isinstance(data, list):
        return _first_message(data[0]) if data else None
    return str(data)


def _format_errors(data):
    if isinstance(data, list):
        return {'non_field_errors': data}
    if not isinstance(data, dict):
        return {'detail': [str(data)]}
    return {
        field: messages if isinstance(messages, list)
        else _format_errors(messages) if isinstance(messages, dict)
        else [str(messages)]
        for field, messages in data.items()
    }
