from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, AliasChoices


class DeviceBase(BaseModel):
	id: int
	name: str
	location: Optional[str] = None
	serial_number: Optional[str] = Field(None, validation_alias=AliasChoices("serial_number", "serialNumber"))
	description: Optional[str] = None


class DeviceResponse(DeviceBase):
	last_synced_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)
