import logging
from datetime import datetime, timezone
from typing import List, Optional

from fastapi import APIRouter, HTTPException, status, Query, Depends, Form, File, UploadFile

from watercounter.api.dependencies import get_local_store, get_sync_engine
from watercounter.auth.dependencies import get_current_user_id
from watercounter.config import settings
from watercounter.models.reading import SyncStatus
from watercounter.schemas.reading import (
	ReadingCreate, ReadingQueuedResponse, ReadingListResponse, ReadingResponse, ReadingDetailResponse
)
from watercounter.services.local_store import LocalStore
from watercounter.services.photo_codec import encode_photo, DEFAULT_CONTENT_TYPE
from watercounter.services.sync_service import SyncEngine

router = APIRouter()
logger = logging.getLogger(__name__)


@router.post("/", response_model=ReadingQueuedResponse, status_code=status.HTTP_201_CREATED)
async def create_reading(
		device_id: int = Form(...),
		counter_value: str = Form(...),
		photo: UploadFile = File(...),
		device_name: str = Form(""),
		notes: Optional[str] = Form(None),
		client_timestamp: Optional[datetime] = Form(None),
		engine: SyncEngine = Depends(get_sync_engine),
		user_id: int = Depends(get_current_user_id)
):
	"""Queue a reading captured with a photo upload"""
	content = await photo.read()
	if len(content) > settings.MAX_UPLOAD_SIZE:
		raise HTTPException(
			status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
			detail=f"Photo too large: {len(content)} bytes (max: {settings.MAX_UPLOAD_SIZE})"
		)

	payload = {
		"device_id": device_id,
		"device_name": device_name,
		"counter_value": counter_value.replace(",", "."),
		"photo_base64": encode_photo(content, photo.content_type or DEFAULT_CONTENT_TYPE),
		"notes": notes,
		"timestamp": client_timestamp or datetime.now(timezone.utc),
	}

	reading_id = await engine.enqueue_and_kick(payload, user_id)
	logger.info(f"Reading {reading_id} queued by user {user_id} for device {device_id}")
	return ReadingQueuedResponse(id=reading_id)


@router.post("/json", response_model=ReadingQueuedResponse, status_code=status.HTTP_201_CREATED)
async def create_reading_json(
		reading_data: ReadingCreate,
		engine: SyncEngine = Depends(get_sync_engine),
		user_id: int = Depends(get_current_user_id)
):
	"""Queue a reading whose photo is already a base64 data URL (mini-app)"""
	reading_id = await engine.enqueue_and_kick(reading_data, user_id)
	logger.info(f"Reading {reading_id} queued by user {user_id} for device {reading_data.device_id}")
	return ReadingQueuedResponse(id=reading_id)


@router.get("/", response_model=ReadingListResponse)
async def list_readings(
		sync_status: Optional[List[SyncStatus]] = Query(None, alias="status"),
		limit: int = Query(100, ge=1, le=1000),
		store: LocalStore = Depends(get_local_store)
):
	"""Local reading history, newest first, optionally filtered by sync status"""
	if sync_status:
		readings = await store.query_by_status(sync_status, newest_first=True, limit=limit)
		total = await store.count_by_status(sync_status)
	else:
		readings = await store.list_readings(limit=limit)
		total = await store.count_by_status(SyncStatus)

	return ReadingListResponse(
		total=total,
		data=[ReadingResponse.model_validate(r) for r in readings]
	)


@router.get("/{reading_id}", response_model=ReadingDetailResponse)
async def get_reading(
		reading_id: int,
		store: LocalStore = Depends(get_local_store)
):
	"""Get a specific reading, photo included"""
	reading = await store.get(reading_id)
	return ReadingDetailResponse.model_validate(reading)
