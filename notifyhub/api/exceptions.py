import time
import logging
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import ProtectedError, RestrictedError
from rest_framework import status
from rest_framework.views import exception_handler
from rest_framework.response import Response
from rest_framework.exceptions import ValidationError
from django.utils.translation import gettext as _

logger = logging.getLogger(__name__)

def _envelope(code, message, data=None):
    return {
        "success": False,
        "code": code,
        "message": str(message),
        "timestamp": int(time.time()),
        "data": data
    }

def custom_exception_handler(exc, context):
    request = context.get('request')
    view_name = context['view'].__class__.__name__ if 'view' in context else 'unknown_view'
    path = request.path if request else 'unknown_path'

    if isinstance(exc, (RestrictedError, ProtectedError)):
        logger.warning(f"Delete refused in {view_name} on path {path}: {exc.args[0]}")
        return Response(_envelope(status.HTTP_409_CONFLICT, exc.args[0]), status=status.HTTP_409_CONFLICT)

    if isinstance(exc, DjangoValidationError):
        exc = ValidationError(exc.message_dict if hasattr(exc, 'error_dict') else exc.messages)

    response = exception_handler(exc, context)

    if response is not None:
        status_code = response.status_code
        data = None

        if isinstance(exc, ValidationError):
            message = _("Invalid input. Please check the provided data.")
            data = response.data
        elif isinstance(response.data, dict) and 'detail' in response.data:
            message = response.data['detail']
        elif isinstance(response.data, list) and response.data:
            message = response.data[0]
        else:
            message = _("An error occurred.")

        logger.warning(
            f"Handled API exception in {view_name} on path {path}. "
            f"Status: {status_code}, Error: {exc}"
        )

        response.data = _envelope(status_code, message, data)
    else:
        logger.error(
            f"Unhandled API exception in {view_name} on path {path}. Error: {exc}",
            exc_info=True
        )
        response = Response(
            _envelope(500, _("A critical server error occurred. Our team has been notified.")),
            status=500
        )

    return response
