import asyncio
import re
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from typing import AsyncGenerator, Dict, Optional

import httpx
import pytest
from httpx import AsyncClient, ASGITransport

from watercounter.api.dependencies import get_local_store, get_sync_engine, get_sync_worker, get_catalog_service
from watercounter.database import build_engine, build_session_factory, init_db
from watercounter.main import app
from watercounter.services.api_client import ReadingsApiClient
from watercounter.services.catalog_service import CatalogService
from watercounter.services.local_store import LocalStore
from watercounter.services.photo_codec import encode_photo
from watercounter.services.sync_service import SyncEngine
from watercounter.workers.sync_worker import SyncWorker

REMOTE_URL = "http://ingest.test/api"
USER_ID = 5294958157

# JPEG magic bytes followed by filler; no CRLF so the multipart parser below stays trivial
PHOTO_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00" + bytes(range(32, 127)) * 4 + b"\xff\xd9"

_FIELD_RE = re.compile(
	rb'name="(?P<name>[^"]+)"(?:; filename="[^"]*")?\r\n(?:Content-Type: [^\r]+\r\n)?\r\n(?P<value>.*?)\r\n--',
	re.DOTALL
)


def parse_multipart(content: bytes) -> Dict[str, bytes]:
	return {m.group("name").decode(): m.group("value") for m in _FIELD_RE.finditer(content)}


class FakeIngestionServer:
	"""In-memory stand-in for the remote reading-ingestion server"""

	def __init__(self):
		self.healthy = True
		self.reject_devices: Dict[int, int] = {}  # device_id -> HTTP status
		self.unreachable_devices = set()
		self.uploads = []
		self.health_calls = 0
		self.next_id = 1000
		self.probe_gate: Optional[asyncio.Event] = None
		self.probe_started = asyncio.Event()
		self.devices = [
			{"id": 1, "name": "Boiler room", "location": "Basement", "serial_number": "WC-001"},
			{"id": 2, "name": "Kitchen", "location": "Floor 1", "serial_number": "WC-002"},
		]
		self.profile = {"id": 7, "telegram_id": USER_ID, "first_name": "Anna", "username": "anna", "role": "employee"}

	async def __call__(self, request: httpx.Request) -> httpx.Response:
		path = request.url.path

		if path.endswith("/health"):
			self.health_calls += 1
			self.probe_started.set()
			if self.probe_gate is not None:
				await self.probe_gate.wait()
			if not self.healthy:
				raise httpx.ConnectError("Network is unreachable", request=request)
			return httpx.Response(200, json={"status": "ok"})

		if not self.healthy:
			raise httpx.ConnectError("Network is unreachable", request=request)

		if path.endswith("/readings") and request.method == "POST":
			fields = parse_multipart(request.content)
			device_id = int(fields["device_id"])
			if device_id in self.unreachable_devices:
				raise httpx.ReadTimeout("Upload stalled", request=request)
			if device_id in self.reject_devices:
				return httpx.Response(self.reject_devices[device_id], json={"error": "Internal server error"})
			self.next_id += 1
			self.uploads.append({"headers": request.headers, "fields": fields, "id": self.next_id})
			return httpx.Response(201, json={"id": self.next_id, "device_id": device_id})

		if path.endswith("/devices"):
			return httpx.Response(200, json=self.devices)

		if path.endswith("/me"):
			return httpx.Response(200, json=self.profile)

		return httpx.Response(404, json={"error": "Not found"})


@pytest.fixture
async def db_engine(tmp_path):
	"""Fresh SQLite file per test"""
	engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'local.db'}", echo=False)
	await init_db(engine)
	yield engine
	await engine.dispose()


@pytest.fixture
def store(db_engine) -> LocalStore:
	return LocalStore(build_session_factory(db_engine))


@pytest.fixture
def remote() -> FakeIngestionServer:
	return FakeIngestionServer()


@pytest.fixture
async def api_client(remote) -> AsyncGenerator[ReadingsApiClient, None]:
	client = ReadingsApiClient(
		base_url=REMOTE_URL,
		health_timeout=1.0,
		upload_timeout=2.0,
		transport=httpx.MockTransport(remote)
	)
	yield client
	await client.close()


@pytest.fixture
def sync_engine(store, api_client) -> SyncEngine:
	return SyncEngine(store, api_client)


@pytest.fixture
async def sync_worker(sync_engine) -> AsyncGenerator[SyncWorker, None]:
	worker = SyncWorker(sync_engine, interval_seconds=3600, user_id=USER_ID)
	yield worker
	await worker.stop()


@pytest.fixture
def catalog(store, api_client) -> CatalogService:
	return CatalogService(store, api_client)


@pytest.fixture
def make_reading():
	"""Build a valid reading payload; later calls get later timestamps"""
	base_time = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)
	counter = {"n": 0}

	def _make(**overrides) -> dict:
		counter["n"] += 1
		reading = {
			"device_id": 1,
			"device_name": "Boiler room",
			"counter_value": Decimal("12345.678"),
			"photo_base64": encode_photo(PHOTO_BYTES),
			"timestamp": base_time + timedelta(minutes=counter["n"]),
		}
		reading.update(overrides)
		return reading

	return _make


@pytest.fixture
async def client(store, sync_engine, sync_worker, catalog) -> AsyncGenerator[AsyncClient, None]:
	"""Local API client with test collaborators injected"""
	app.dependency_overrides[get_local_store] = lambda: store
	app.dependency_overrides[get_sync_engine] = lambda: sync_engine
	app.dependency_overrides[get_sync_worker] = lambda: sync_worker
	app.dependency_overrides[get_catalog_service] = lambda: catalog

	async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
		yield client

	app.dependency_overrides.clear()


@pytest.fixture
def auth_headers() -> Dict[str, str]:
	return {"X-Telegram-User-Id": str(USER_ID)}
