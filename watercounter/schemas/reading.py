from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, List

from pydantic import BaseModel, Field, ConfigDict, field_validator

from watercounter.core.exceptions import ValidationError
from watercounter.models.reading import SyncStatus
from watercounter.services.photo_codec import decode_photo


def _as_utc(value: datetime) -> datetime:
	# SQLite hands datetimes back naive; everything stored locally is UTC
	if value.tzinfo is None:
		return value.replace(tzinfo=timezone.utc)
	return value.astimezone(timezone.utc)


class ReadingCreate(BaseModel):
	device_id: int = Field(..., gt=0)
	device_name: str = ""
	counter_value: Decimal = Field(..., ge=0, max_digits=14, decimal_places=3)
	photo_base64: str = Field(..., min_length=1)
	notes: Optional[str] = None
	timestamp: datetime

	@field_validator("photo_base64")
	def check_photo(cls, v):
		try:
			content = decode_photo(v)
		except ValidationError as e:
			raise ValueError(str(e))
		if not content:
			raise ValueError("Photo is required")
		return v

	@field_validator("notes")
	def blank_notes_to_none(cls, v):
		if v is not None and not v.strip():
			return None
		return v

	@field_validator("timestamp")
	def normalize_timestamp(cls, v):
		return _as_utc(v)


class ReadingUpdate(BaseModel):
	"""Fields the sync engine is allowed to change on an existing record"""
	sync_status: Optional[SyncStatus] = None
	server_reading_id: Optional[int] = None
	error_message: Optional[str] = None


class ReadingResponse(BaseModel):
	id: int
	device_id: int
	device_name: str
	counter_value: Decimal
	notes: Optional[str] = None
	timestamp: datetime
	sync_status: SyncStatus
	server_reading_id: Optional[int] = None
	error_message: Optional[str] = None
	created_at: Optional[datetime] = None
	updated_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)

	@field_validator("timestamp")
	def normalize_timestamp(cls, v):
		return _as_utc(v)


class ReadingDetailResponse(ReadingResponse):
	photo_base64: str


class ReadingQueuedResponse(BaseModel):
	id: int
	sync_status: SyncStatus = SyncStatus.PENDING


class ReadingListResponse(BaseModel):
	total: int
	data: List[ReadingResponse]


class SyncResult(BaseModel):
	success: int = 0
	failed: int = 0


class SyncStatusResponse(BaseModel):
	pending_count: int
	is_syncing: bool
	online: Optional[bool] = None
	last_result: Optional[SyncResult] = None
	last_synced_at: Optional[datetime] = None
