import asyncio
import time
from datetime import datetime, timezone
from typing import Optional, Union

import logging

from watercounter.core.exceptions import WaterCounterError, NotFoundError
from watercounter.models.reading import LocalReading, SyncStatus, SYNCABLE_STATUSES
from watercounter.monitoring.metrics import sync_operations, sync_passes, sync_pass_duration, readings_pending
from watercounter.schemas.reading import ReadingCreate, ReadingUpdate, SyncResult
from watercounter.services.api_client import ReadingsApiClient
from watercounter.services.local_store import LocalStore
from watercounter.services.photo_codec import decode_photo, photo_content_type

logger = logging.getLogger(__name__)


class SyncEngine:
	"""
	Delivers locally queued readings to the ingestion server.

	One instance per client session. At most one sync pass runs at a time;
	a call made while a pass is in flight returns an empty result instead of
	waiting. Readings are uploaded one by one, in local id order, and a
	failure only moves that reading to ``error``.
	"""

	def __init__(self, store: LocalStore, api_client: ReadingsApiClient):
		self.store = store
		self.api_client = api_client
		# Single slot: a request made while one is already waiting is coalesced
		self.requests: asyncio.Queue = asyncio.Queue(maxsize=1)
		self.online: Optional[bool] = None
		self.last_result: Optional[SyncResult] = None
		self.last_synced_at: Optional[datetime] = None
		self._in_progress = False

	@property
	def is_syncing(self) -> bool:
		return self._in_progress

	async def probe(self) -> bool:
		"""Check reachability of the server and remember the outcome"""
		online = await self.api_client.check_connection()
		if online and self.online is False:
			logger.info("Ingestion server is reachable again")
		elif not online and self.online is not False:
			logger.warning("Ingestion server is unreachable, readings stay queued")
		self.online = online
		return online

	async def sync_all(self, user_id: int) -> SyncResult:
		"""Run one sync pass over every pending or failed reading"""
		if self._in_progress:
			logger.info("Sync already in progress, skipping")
			sync_passes.labels(outcome="busy").inc()
			return SyncResult()

		self._in_progress = True
		start_time = time.time()
		try:
			if not await self.probe():
				sync_passes.labels(outcome="offline").inc()
				return SyncResult()

			readings = await self.store.query_by_status(SYNCABLE_STATUSES)
			if not readings:
				return SyncResult()

			logger.info(f"Syncing {len(readings)} readings for user {user_id}")

			result = SyncResult()
			for reading in readings:
				if await self._sync_reading(reading, user_id):
					result.success += 1
				else:
					result.failed += 1

			self.last_result = result
			self.last_synced_at = datetime.now(timezone.utc)
			sync_passes.labels(outcome="completed").inc()
			logger.info(f"Sync pass finished: {result.success} synced, {result.failed} failed")
			return result

		finally:
			self._in_progress = False
			sync_pass_duration.observe(time.time() - start_time)

	async def _sync_reading(self, reading: LocalReading, user_id: int) -> bool:
		"""Upload a single reading; returns True when the server acknowledged it"""
		try:
			await self.store.update(reading.id, ReadingUpdate(
				sync_status=SyncStatus.SYNCING,
				error_message=None
			))

			server_reading_id = await self.api_client.submit_reading(
				user_id=user_id,
				device_id=reading.device_id,
				counter_value=reading.counter_value,
				photo=decode_photo(reading.photo_base64),
				client_timestamp=reading.timestamp,
				notes=reading.notes,
				content_type=photo_content_type(reading.photo_base64),
			)

			await self.store.update(reading.id, ReadingUpdate(
				sync_status=SyncStatus.SYNCED,
				server_reading_id=server_reading_id
			))

		except Exception as e:
			message = str(e) or e.__class__.__name__
			logger.error(f"Failed to sync reading {reading.id}: {message}")
			sync_operations.labels(status="error").inc()
			await self._mark_failed(reading.id, message)
			return False

		sync_operations.labels(status="synced").inc()
		logger.info(f"Reading {reading.id} synced as server reading {server_reading_id}")
		return True

	async def _mark_failed(self, reading_id: int, message: str):
		try:
			await self.store.update(reading_id, ReadingUpdate(
				sync_status=SyncStatus.ERROR,
				error_message=message
			))
		except NotFoundError:
			logger.warning(f"Reading {reading_id} disappeared during sync, skipping")
		except WaterCounterError as e:
			# Left in ``syncing``; recover_interrupted() picks it up on next start
			logger.error(f"Could not record failure for reading {reading_id}: {e}")

	async def recover_interrupted(self) -> int:
		"""Move readings stuck in ``syncing`` (process died mid-upload) to ``error``"""
		if self._in_progress:
			return 0

		stuck = await self.store.query_by_status({SyncStatus.SYNCING})
		for reading in stuck:
			await self.store.update(reading.id, ReadingUpdate(
				sync_status=SyncStatus.ERROR,
				error_message="Upload interrupted before the server confirmed it"
			))

		if stuck:
			logger.warning(f"Recovered {len(stuck)} readings interrupted during sync")
		return len(stuck)

	async def pending_count(self) -> int:
		"""Readings still waiting for delivery (pending or error)"""
		count = await self.store.count_by_status(SYNCABLE_STATUSES)
		readings_pending.set(count)
		return count

	def request_sync(self, user_id: int) -> bool:
		"""Post a sync request for the worker without waiting for the pass"""
		try:
			self.requests.put_nowait(user_id)
		except asyncio.QueueFull:
			logger.debug("Sync already requested, coalescing")
			return False
		return True

	async def enqueue_and_kick(self, reading: Union[ReadingCreate, dict], user_id: int) -> int:
		"""Save a reading locally and nudge the worker to deliver it"""
		reading_id = await self.store.save(reading)
		self.request_sync(user_id)
		return reading_id
