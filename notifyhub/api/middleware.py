import time
import logging
import json
from urllib.parse import parse_qs, urlencode

logger = logging.getLogger(__name__)

API_PREFIX = '/api/'
MASKED_PARAMS = ('token', 'refresh', 'access')


def sanitized_path(request):
    path = request.path
    query_string = request.META.get('QUERY_STRING')
    if not query_string:
        return path
    try:
        query_dict = parse_qs(query_string, keep_blank_values=True)
    except ValueError:
        return f"{path}?<malformed_query>"
    for param in MASKED_PARAMS:
        if param in query_dict:
            query_dict[param] = ['***']
    return f"{path}?{urlencode(query_dict, doseq=True)}"


def request_user_label(request):
    user = getattr(request, 'user', None)
    if user is not None and user.is_authenticated:
        return user.pk
    return "Anon"


class APILoggingMiddleware:
    """
    Logs one line per request under ``/api/``: method, path with masked
    credentials, status, duration and user. Client errors are warnings and
    server errors are errors, both with the response envelope attached.
    """
    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        if not request.path.startswith(API_PREFIX):
            return self.get_response(request)

        start_time = time.monotonic()
        response = self.get_response(request)
        duration_ms = round((time.monotonic() - start_time) * 1000, 2)

        status_code = response.status_code
        log_message = (
            f"[{request.method}] {sanitized_path(request)} - {status_code} "
            f"({duration_ms}ms) user={request_user_label(request)}"
        )
        if status_code < 400:
            logger.info(log_message)
            return response

        try:
            details = json.loads(response.content.decode('utf-8')) if response.content else None
        except (ValueError, UnicodeDecodeError, AttributeError):
            details = "Binary/Non-JSON Content"
        log = logger.error if status_code >= 500 else logger.warning
        log(f"{log_message} | Response: {details}")
        return response
