"""
Request ID tracking.

Reuses an incoming ``X-Request-ID`` header (or generates one), stores it on
``g.request_id`` for the logging filter and echoes it on the response.
"""
import re
import uuid

from flask import Flask, g, request

REQUEST_ID_HEADER = 'X-Request-ID'

# Accept client ids that are safe to log verbatim
_VALID_REQUEST_ID = re.compile(r'^[A-Za-z0-9._-]{1,64}$')


def init_request_id_tracking(app: Flask) -> None:
    """Register before/after request hooks for request ids."""

    @app.before_request
    def assign_request_id():
        incoming = request.headers.get(REQUEST_ID_HEADER, '')
        g.request_id = incoming if _VALID_REQUEST_ID.match(incoming) else uuid.uuid4().hex

    @app.after_request
    def echo_request_id(response):
        request_id = getattr(g, 'request_id', None)
        if request_id:
            response.headers[REQUEST_ID_HEADER] = request_id
        return response
