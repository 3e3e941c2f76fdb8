"""HTTP middleware for request ID propagation and correlation.

Every request/response pair carries a request id (the incoming
``X-Request-ID`` header or a fresh UUID). The id is stored in a context
variable for log correlation and echoed back together with the request
duration.

Usage:
    app.middleware("http")(request_id_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response

from practice_api.core.config import settings
from practice_api.core.logging import clear_request_id, set_request_id


async def request_id_middleware(request: Request, call_next) -> Response:
    """Attach a correlation id to the request context and the response.

    Side Effects:
        - Sets request_id in contextvars for the duration of the request
        - Adds the request id header and ``X-Request-Duration-ms`` to the response
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response
