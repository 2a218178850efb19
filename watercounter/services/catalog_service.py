from typing import List, Optional

from pydantic import ValidationError as PydanticValidationError

from watercounter.core.exceptions import NetworkError
from watercounter.models.device import LocalDevice
from watercounter.models.user import LocalUser
from watercounter.schemas.device import DeviceBase
from watercounter.schemas.user import UserProfile
from watercounter.services.api_client import ReadingsApiClient
from watercounter.services.local_store import LocalStore
import logging

logger = logging.getLogger(__name__)


class CatalogService:
	"""Keeps the device list and the user profile available offline"""

	def __init__(self, store: LocalStore, api_client: ReadingsApiClient):
		self.store = store
		self.api_client = api_client

	async def refresh_user(self, user_id: int) -> Optional[LocalUser]:
		"""Fetch the profile from the server, falling back to the cached copy"""
		try:
			data = await self.api_client.fetch_me(user_id)
		except NetworkError as e:
			logger.warning(f"Using cached profile for user {user_id}: {e}")
			return await self.store.get_user(user_id)

		try:
			profile = UserProfile(
				telegram_id=user_id,
				first_name=data.get("first_name"),
				last_name=data.get("last_name"),
				username=data.get("username"),
				role=data.get("role") or "employee",
			)
		except (PydanticValidationError, AttributeError) as e:
			logger.error(f"Server returned a malformed profile for user {user_id}: {e}")
			return await self.store.get_user(user_id)

		return await self.store.put_user(profile)

	async def refresh_devices(self, user_id: int) -> List[LocalDevice]:
		"""Replace the device cache from the server, or serve the last cached list"""
		try:
			data = await self.api_client.fetch_devices(user_id)
		except NetworkError as e:
			logger.warning(f"Using cached device list: {e}")
			return await self.store.list_devices()

		try:
			devices = [DeviceBase.model_validate(item) for item in data]
		except (PydanticValidationError, TypeError) as e:
			logger.error(f"Server returned a malformed device list: {e}")
			return await self.store.list_devices()

		await self.store.replace_devices(devices)
		return await self.store.list_devices()
