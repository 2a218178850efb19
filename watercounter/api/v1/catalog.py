import logging
from typing import List

from fastapi import APIRouter, HTTPException, status, Depends

from watercounter.api.dependencies import get_catalog_service, get_sync_worker
from watercounter.auth.dependencies import get_current_user_id
from watercounter.schemas.device import DeviceResponse
from watercounter.schemas.user import UserResponse
from watercounter.services.catalog_service import CatalogService
from watercounter.workers.sync_worker import SyncWorker

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/devices", response_model=List[DeviceResponse])
async def list_devices(
		catalog: CatalogService = Depends(get_catalog_service),
		user_id: int = Depends(get_current_user_id)
):
	"""Devices from the server, or the cached list when offline"""
	devices = await catalog.refresh_devices(user_id)
	return [DeviceResponse.model_validate(d) for d in devices]


@router.get("/me", response_model=UserResponse)
async def get_me(
		catalog: CatalogService = Depends(get_catalog_service),
		worker: SyncWorker = Depends(get_sync_worker),
		user_id: int = Depends(get_current_user_id)
):
	"""Current user profile; also makes this user the one the timer syncs for"""
	worker.set_user(user_id)
	user = await catalog.refresh_user(user_id)
	if not user:
		raise HTTPException(
			status_code=status.HTTP_404_NOT_FOUND,
			detail="User profile unavailable offline"
		)
	return UserResponse.model_validate(user)
