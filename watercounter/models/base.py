from datetime import datetime, timezone

from sqlalchemy import Column, Integer, DateTime


def utcnow() -> datetime:
	return datetime.now(timezone.utc)


class BaseModel:
	"""Common columns for locally-owned records"""

	id = Column(Integer, primary_key=True, autoincrement=True)
	created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
	updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
