import enum

from sqlalchemy import Column, Integer, Numeric, DateTime, String, Text

from watercounter.database import Base
from watercounter.models.base import BaseModel


class SyncStatus(str, enum.Enum):
	PENDING = "pending"
	SYNCING = "syncing"
	SYNCED = "synced"
	ERROR = "error"


# Statuses eligible to start a sync attempt
SYNCABLE_STATUSES = frozenset({SyncStatus.PENDING, SyncStatus.ERROR})


class LocalReading(Base, BaseModel):
	__tablename__ = "readings"

	device_id = Column(Integer, nullable=False, index=True)
	device_name = Column(String(255), nullable=False, default="")
	counter_value = Column(Numeric(14, 3), nullable=False)
	photo_base64 = Column(Text, nullable=False)
	notes = Column(Text)
	timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
	sync_status = Column(String(20), nullable=False, default=SyncStatus.PENDING.value, index=True)
	server_reading_id = Column(Integer)  # Set once the server acknowledged the reading
	error_message = Column(Text)

	def __repr__(self):
		return f"<LocalReading id={self.id} device={self.device_id} status={self.sync_status}>"
