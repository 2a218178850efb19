from starlette.middleware.base import BaseHTTPMiddleware
from fastapi import Request
import logging
import json
import time
import uuid
from datetime import datetime, timezone

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"

# POST endpoints that queue a sync pass
SYNC_TRIGGER_PATHS = ("/readings", "/readings/json", "/sync", "/sync/online")


class LoggingMiddleware(BaseHTTPMiddleware):
	"""One structured log line per request, correlated by ``X-Request-ID``"""

	async def dispatch(self, request: Request, call_next):
		request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
		request.state.request_id = request_id
		start_time = time.time()

		response = await call_next(request)

		duration = time.time() - start_time
		response.headers[REQUEST_ID_HEADER] = request_id

		log_dict = {
			"timestamp": datetime.now(timezone.utc).isoformat(),
			"level": "INFO",
			"request_id": request_id,
			"method": request.method,
			"path": request.url.path,
			"query_params": dict(request.query_params),
			"status_code": response.status_code,
			"duration_seconds": round(duration, 3),
		}

		user_id = request.headers.get("X-Telegram-User-Id")
		if user_id:
			log_dict["user_id"] = user_id

		if request.method == "POST" and request.url.path.rstrip("/").endswith(SYNC_TRIGGER_PATHS):
			log_dict["sync_trigger"] = True

		if response.status_code >= 400:
			log_dict["level"] = "WARNING" if response.status_code < 500 else "ERROR"

		logger.info(json.dumps(log_dict))

		if duration > 1.0:
			logger.warning(f"Slow request detected: {request.method} {request.url.path} took {duration:.2f}s [{request_id}]")

		return response
