import asyncio
from typing import Optional

from watercounter.services.sync_service import SyncEngine
import logging

logger = logging.getLogger(__name__)


class SyncWorker:
	"""Background worker that turns sync requests and timer ticks into sync passes"""

	def __init__(self, engine: SyncEngine, interval_seconds: float = 10.0, user_id: Optional[int] = None):
		self.engine = engine
		self.interval_seconds = interval_seconds
		self.user_id = user_id
		self.running = False
		self._tasks = []

	async def start(self):
		"""Start the consumer and the polling ticker"""
		if self.running:
			return
		self.running = True

		try:
			await self.engine.recover_interrupted()
		except Exception as e:
			logger.error(f"Could not recover interrupted readings: {e}")

		self._tasks = [
			asyncio.create_task(self._consume(), name="sync-consumer"),
			asyncio.create_task(self._tick_forever(), name="sync-ticker"),
		]
		logger.info("Sync worker started")

	async def stop(self):
		"""Stop the sync worker"""
		self.running = False
		for task in self._tasks:
			task.cancel()
		await asyncio.gather(*self._tasks, return_exceptions=True)
		self._tasks = []
		logger.info("Sync worker stopped")

	def set_user(self, user_id: int):
		"""Identity used for timer-driven passes"""
		self.user_id = user_id

	def kick(self, user_id: Optional[int] = None) -> bool:
		user_id = user_id or self.user_id
		if user_id is None:
			logger.debug("No active user, sync request ignored")
			return False
		self.user_id = user_id
		return self.engine.request_sync(user_id)

	def notify_online(self) -> bool:
		"""Connectivity came back: try to deliver right away"""
		was_offline = self.engine.online is False
		self.engine.online = True
		if was_offline:
			logger.info("Back online, requesting sync")
		return self.kick()

	def notify_offline(self):
		self.engine.online = False

	async def _consume(self):
		"""Single consumer of the engine's request queue"""
		while self.running:
			user_id = await self.engine.requests.get()
			try:
				self.user_id = user_id
				await self.engine.sync_all(user_id)
			except Exception as e:
				logger.error(f"Sync pass failed: {e}")
			finally:
				self.engine.requests.task_done()

	async def _tick_forever(self):
		while self.running:
			await asyncio.sleep(self.interval_seconds)
			try:
				await self.tick()
			except Exception as e:
				logger.error(f"Sync worker error: {e}")

	async def tick(self) -> bool:
		"""One polling step; returns True when a sync was requested"""
		count = await self.engine.pending_count()
		if count == 0 or self.user_id is None:
			return False

		if self.engine.online is False:
			# Offline -> online transition is detected here
			if not await self.engine.probe():
				return False

		return self.engine.request_sync(self.user_id)
