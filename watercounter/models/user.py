import enum

from sqlalchemy import Column, BigInteger, String, DateTime

from watercounter.database import Base


class UserRole(str, enum.Enum):
	ADMIN = "admin"
	EMPLOYEE = "employee"


class LocalUser(Base):
	__tablename__ = "users"

	telegram_id = Column(BigInteger, primary_key=True, autoincrement=False)
	first_name = Column(String(255))
	last_name = Column(String(255))
	username = Column(String(255))
	role = Column(String(20), nullable=False, default=UserRole.EMPLOYEE.value)
	last_synced_at = Column(DateTime(timezone=True))
