from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import httpx
import logging

from watercounter.config import settings
from watercounter.core.exceptions import NetworkError

logger = logging.getLogger(__name__)

USER_ID_HEADER = "X-Telegram-User-Id"


def format_counter_value(value: Decimal) -> str:
	"""Plain decimal string, without exponent or trailing zeros"""
	return format(Decimal(value).normalize(), "f")


def format_timestamp(value: datetime) -> str:
	if value.tzinfo is None:
		value = value.replace(tzinfo=timezone.utc)
	return value.isoformat()


def _error_detail(response: httpx.Response) -> str:
	"""Best human-readable reason from an error response"""
	try:
		body = response.json()
	except ValueError:
		body = None

	if isinstance(body, dict):
		for key in ("error", "detail", "message"):
			if body.get(key):
				return str(body[key])
	return response.reason_phrase or "Unknown error"


class ReadingsApiClient:
	"""HTTP client for the remote reading-ingestion server"""

	def __init__(
			self,
			base_url: str = None,
			health_timeout: float = None,
			upload_timeout: float = None,
			transport: Optional[httpx.AsyncBaseTransport] = None
	):
		self.base_url = (base_url or settings.REMOTE_API_URL).rstrip("/")
		self.health_timeout = health_timeout or settings.HEALTH_TIMEOUT_SECONDS
		self.upload_timeout = upload_timeout or settings.UPLOAD_TIMEOUT_SECONDS
		self._transport = transport
		self._http_client: Optional[httpx.AsyncClient] = None

	async def _get_http_client(self) -> httpx.AsyncClient:
		"""Get or create HTTP client"""
		if self._http_client is None or self._http_client.is_closed:
			self._http_client = httpx.AsyncClient(
				base_url=self.base_url,
				timeout=httpx.Timeout(self.upload_timeout),
				transport=self._transport,
			)
		return self._http_client

	async def close(self) -> None:
		"""Close the HTTP client"""
		if self._http_client and not self._http_client.is_closed:
			await self._http_client.aclose()

	async def check_connection(self) -> bool:
		"""Liveness probe: True only when the server answers 200 on /health"""
		client = await self._get_http_client()
		try:
			response = await client.get("/health", timeout=self.health_timeout)
			return response.status_code == 200
		except httpx.HTTPError as e:
			logger.debug(f"Health check failed: {e}")
			return False

	async def submit_reading(
			self,
			user_id: int,
			device_id: int,
			counter_value: Decimal,
			photo: bytes,
			client_timestamp: datetime,
			notes: Optional[str] = None,
			content_type: str = "image/jpeg"
	) -> int:
		"""Upload one reading and return the server-assigned reading id"""
		data = {
			"device_id": str(device_id),
			"counter_value": format_counter_value(counter_value),
			"client_timestamp": format_timestamp(client_timestamp),
		}
		if notes:
			data["notes"] = notes

		client = await self._get_http_client()
		try:
			response = await client.post(
				"/readings",
				data=data,
				files={"photo": ("photo.jpg", photo, content_type)},
				headers={USER_ID_HEADER: str(user_id)},
				timeout=self.upload_timeout,
			)
		except httpx.TimeoutException as e:
			raise NetworkError(f"Upload timed out: {e}") from e
		except httpx.RequestError as e:
			raise NetworkError(f"Network error during upload: {e}") from e

		if response.is_error:
			raise NetworkError(
				f"Server rejected reading ({response.status_code}): {_error_detail(response)}",
				status_code=response.status_code
			)

		try:
			return int(response.json()["id"])
		except (ValueError, KeyError, TypeError) as e:
			raise NetworkError("Server response does not contain a reading id") from e

	async def _get_json(self, path: str, user_id: int) -> Any:
		client = await self._get_http_client()
		try:
			response = await client.get(
				path,
				headers={USER_ID_HEADER: str(user_id)},
				timeout=self.health_timeout,
			)
			response.raise_for_status()
			return response.json()
		except httpx.HTTPStatusError as e:
			raise NetworkError(
				f"GET {path} failed ({e.response.status_code}): {_error_detail(e.response)}",
				status_code=e.response.status_code
			) from e
		except httpx.RequestError as e:
			raise NetworkError(f"Network error during GET {path}: {e}") from e
		except ValueError as e:
			raise NetworkError(f"GET {path} returned invalid JSON") from e

	async def fetch_me(self, user_id: int) -> Dict[str, Any]:
		return await self._get_json("/me", user_id)

	async def fetch_devices(self, user_id: int) -> List[Dict[str, Any]]:
		return await self._get_json("/devices", user_id)
