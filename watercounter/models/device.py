from sqlalchemy import Column, Integer, String, Text, DateTime

from watercounter.database import Base


class LocalDevice(Base):
	__tablename__ = "devices"

	id = Column(Integer, primary_key=True, autoincrement=False)  # Server-side device id
	name = Column(String(255), nullable=False, index=True)
	location = Column(Text)
	serial_number = Column(String(100))
	description = Column(Text)
	last_synced_at = Column(DateTime(timezone=True))
