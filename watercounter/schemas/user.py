from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict

from watercounter.models.user import UserRole


class UserProfile(BaseModel):
	"""Profile as returned by the remote ``/me`` endpoint"""
	telegram_id: int
	first_name: Optional[str] = None
	last_name: Optional[str] = None
	username: Optional[str] = None
	role: UserRole = UserRole.EMPLOYEE


class UserResponse(UserProfile):
	last_synced_at: Optional[datetime] = None

	model_config = ConfigDict(from_attributes=True)
