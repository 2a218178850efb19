from datetime import datetime, timezone
from typing import Iterable, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import select, delete, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from watercounter.core.exceptions import StorageError, NotFoundError, ValidationError
from watercounter.models.device import LocalDevice
from watercounter.models.reading import LocalReading, SyncStatus
from watercounter.models.user import LocalUser
from watercounter.schemas.device import DeviceBase
from watercounter.schemas.reading import ReadingCreate, ReadingUpdate
from watercounter.schemas.user import UserProfile
import logging

logger = logging.getLogger(__name__)


def _status_values(statuses: Iterable[Union[SyncStatus, str]]) -> List[str]:
	return [SyncStatus(s).value for s in statuses]


class LocalStore:
	"""Durable storage of readings and the device/user caches"""

	def __init__(self, session_factory: async_sessionmaker):
		self.session_factory = session_factory

	# =====================================
	# Readings
	# =====================================

	async def save(self, reading: Union[ReadingCreate, dict]) -> int:
		"""Persist a newly captured reading as pending and return its local id"""
		if not isinstance(reading, ReadingCreate):
			try:
				reading = ReadingCreate.model_validate(reading)
			except PydanticValidationError as e:
				raise ValidationError(f"Invalid reading: {e}") from e

		async with self.session_factory() as db:
			try:
				record = LocalReading(
					**reading.model_dump(),
					sync_status=SyncStatus.PENDING.value
				)
				db.add(record)
				await db.commit()
			except SQLAlchemyError as e:
				await db.rollback()
				logger.error(f"Failed to save reading for device {reading.device_id}: {e}")
				raise StorageError(f"Failed to save reading: {e}") from e

			logger.info(f"Reading {record.id} saved locally for device {reading.device_id}")
			return record.id

	async def update(self, reading_id: int, changes: Union[ReadingUpdate, dict]) -> LocalReading:
		"""Apply a partial status mutation to an existing reading"""
		if not isinstance(changes, ReadingUpdate):
			changes = ReadingUpdate.model_validate(changes)

		async with self.session_factory() as db:
			try:
				record = await db.get(LocalReading, reading_id)
				if record is None:
					raise NotFoundError("Reading", reading_id)

				for field, value in changes.model_dump(exclude_unset=True).items():
					if isinstance(value, SyncStatus):
						value = value.value
					setattr(record, field, value)

				await db.commit()
				return record
			except SQLAlchemyError as e:
				await db.rollback()
				raise StorageError(f"Failed to update reading {reading_id}: {e}") from e

	async def get(self, reading_id: int) -> LocalReading:
		async with self.session_factory() as db:
			try:
				record = await db.get(LocalReading, reading_id)
			except SQLAlchemyError as e:
				raise StorageError(f"Failed to load reading {reading_id}: {e}") from e

		if record is None:
			raise NotFoundError("Reading", reading_id)
		return record

	async def query_by_status(
			self,
			statuses: Iterable[Union[SyncStatus, str]],
			newest_first: bool = False,
			limit: Optional[int] = None
	) -> List[LocalReading]:
		"""
		Readings whose status is in ``statuses``.

		Oldest local id first, which is the upload order. ``newest_first`` gives
		the history order of ``list_readings`` instead.
		"""
		values = _status_values(statuses)
		query = select(LocalReading).where(LocalReading.sync_status.in_(values))
		if newest_first:
			query = query.order_by(LocalReading.timestamp.desc(), LocalReading.id.desc())
		else:
			query = query.order_by(LocalReading.id)
		if limit:
			query = query.limit(limit)

		async with self.session_factory() as db:
			try:
				result = await db.execute(query)
				return list(result.scalars().all())
			except SQLAlchemyError as e:
				raise StorageError(f"Failed to query readings: {e}") from e

	async def count_by_status(self, statuses: Iterable[Union[SyncStatus, str]]) -> int:
		values = _status_values(statuses)
		async with self.session_factory() as db:
			try:
				total = await db.scalar(
					select(func.count()).select_from(LocalReading)
					.where(LocalReading.sync_status.in_(values))
				)
				return total or 0
			except SQLAlchemyError as e:
				raise StorageError(f"Failed to count readings: {e}") from e

	async def list_readings(self, limit: Optional[int] = None) -> List[LocalReading]:
		"""Full scan for history rendering, newest capture first"""
		async with self.session_factory() as db:
			try:
				query = select(LocalReading).order_by(LocalReading.timestamp.desc(), LocalReading.id.desc())
				if limit:
					query = query.limit(limit)
				result = await db.execute(query)
				return list(result.scalars().all())
			except SQLAlchemyError as e:
				raise StorageError(f"Failed to list readings: {e}") from e

	# =====================================
	# Device cache
	# =====================================

	async def replace_devices(self, devices: Iterable[Union[DeviceBase, dict]]) -> List[LocalDevice]:
		"""Replace the whole device cache with a fresh server snapshot"""
		synced_at = datetime.now(timezone.utc)
		records = []
		for device in devices:
			if not isinstance(device, DeviceBase):
				device = DeviceBase.model_validate(device)
			records.append(LocalDevice(**device.model_dump(), last_synced_at=synced_at))

		async with self.session_factory() as db:
			try:
				await db.execute(delete(LocalDevice))
				db.add_all(records)
				await db.commit()
			except SQLAlchemyError as e:
				await db.rollback()
				raise StorageError(f"Failed to refresh device cache: {e}") from e

		logger.info(f"Device cache refreshed with {len(records)} devices")
		return records

	async def list_devices(self) -> List[LocalDevice]:
		async with self.session_factory() as db:
			try:
				result = await db.execute(select(LocalDevice).order_by(LocalDevice.name))
				return list(result.scalars().all())
			except SQLAlchemyError as e:
				raise StorageError(f"Failed to load device cache: {e}") from e

	# =====================================
	# User cache
	# =====================================

	async def put_user(self, profile: Union[UserProfile, dict]) -> LocalUser:
		if not isinstance(profile, UserProfile):
			profile = UserProfile.model_validate(profile)

		values = profile.model_dump()
		values["role"] = profile.role.value
		async with self.session_factory() as db:
			try:
				user = await db.merge(LocalUser(**values, last_synced_at=datetime.now(timezone.utc)))
				await db.commit()
				return user
			except SQLAlchemyError as e:
				await db.rollback()
				raise StorageError(f"Failed to cache user {profile.telegram_id}: {e}") from e

	async def get_user(self, telegram_id: int) -> Optional[LocalUser]:
		async with self.session_factory() as db:
			try:
				return await db.get(LocalUser, telegram_id)
			except SQLAlchemyError as e:
				raise StorageError(f"Failed to load user {telegram_id}: {e}") from e
