import time
from rest_framework.renderers import JSONRenderer

class CustomJSONRenderer(JSONRenderer):
    """
    Wraps successful responses into the standard envelope. Error responses are
    already shaped by custom_exception_handler and pass through untouched.
    """
    def render(self, data, accepted_media_type=None, renderer_context=None):
        response = renderer_context['response'] if renderer_context else None
        if response is None:
            return super().render(data, accepted_media_type, renderer_context)
        status_code = response.status_code

        if isinstance(data, dict) and 'success' in data or not (200 <= status_code < 300):
            return super().render(data, accepted_media_type, renderer_context)

        # 204 carries no body
        if status_code == 204:
            return b''

        message = "Operation successful."
        if status_code == 201:
            message = "Resource created successfully."
        elif status_code == 202:
            message = "Request accepted for processing."

        response_data = {
            "success": True,
            "code": status_code,
            "message": message,
            "timestamp": int(time.time()),
            "data": data
        }

        return super().render(response_data, accepted_media_type, renderer_context)
