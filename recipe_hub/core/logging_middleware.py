import logging
import json
import time
import random
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from recipe_hub.core.config import settings

# One JSON line per kept request. Not propagated, so root handlers don't print it twice.
structured_logger = logging.getLogger("recipe_hub.structured_log")
structured_logger.propagate = False

# logging.ini normally configures this logger; fall back to a bare stream handler.
if not structured_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    structured_logger.addHandler(handler)
    structured_logger.setLevel(logging.INFO)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    Wide-event structured logging with tail sampling.

    Rules:
    1. Always log server errors (status >= 500)
    2. Always log slow requests (> SLOW_REQUEST_MS)
    3. Always log denied requests (401/403) so access problems are traceable
    4. Sample everything else at LOG_SAMPLE_RATE
    """

    def __init__(self, app, slow_threshold_ms: float = None, sample_rate: float = None):
        super().__init__(app)
        self.slow_threshold_ms = settings.SLOW_REQUEST_MS if slow_threshold_ms is None else slow_threshold_ms
        self.sample_rate = settings.LOG_SAMPLE_RATE if sample_rate is None else sample_rate

    def should_log(self, status_code: int, duration_ms: float) -> bool:
        if status_code >= 500:
            return True
        if duration_ms > self.slow_threshold_ms:
            return True
        if status_code in (401, 403):
            return True
        return random.random() < self.sample_rate

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = None
        error_details = None
        status_code = 500  # stays 500 if call_next raises

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            error_details = str(e)
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000

            if self.should_log(status_code, duration_ms):
                user_id = None
                user_email = None
                user_name = None
                user_role = None

                user = getattr(request.state, "user", None)
                if user is not None:
                    user_id = str(user.id)
                    user_email = user.email
                    user_name = user.full_name or None
                    user_role = user.role.value

                log_payload = {
                    "timestamp": time.time(),
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "duration_ms": round(duration_ms, 2),
                    "client_ip": request.client.host if request.client else None,
                    "user_agent": request.headers.get("user-agent"),
                    "query_params": dict(request.query_params),
                    "error": error_details,
                    "user_id": user_id,
                    "user_email": user_email,
                    "user_name": user_name,
                    "user_role": user_role,
                }

                structured_logger.info(json.dumps(log_payload))

        return response
