import logging

from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.orm import declarative_base

from watercounter.config import settings

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(url: str = None, echo: bool = None) -> AsyncEngine:
	"""Create the async engine backing the local store"""
	return create_async_engine(
		url or settings.LOCAL_DATABASE_URL,
		echo=settings.DB_ECHO if echo is None else echo,
	)


def build_session_factory(bind: AsyncEngine) -> async_sessionmaker:
	return async_sessionmaker(
		bind,
		class_=AsyncSession,
		expire_on_commit=False,
		autocommit=False,
		autoflush=False,
	)


engine = build_engine()

# Session factory
AsyncSessionLocal = build_session_factory(engine)


async def init_db(bind: AsyncEngine = None):
	"""Initialize local database - create tables if not exist"""
	# Register models on Base.metadata
	from watercounter.models import device, reading, user  # noqa: F401

	try:
		async with (bind or engine).begin() as conn:
			await conn.run_sync(Base.metadata.create_all)
		logger.info("Local database initialized successfully")
	except Exception as e:
		logger.error(f"Local database initialization failed: {e}")
		raise


async def close_db(bind: AsyncEngine = None):
	"""Close database connections"""
	await (bind or engine).dispose()
	logger.info("Local database connections closed")


async def check_db_connection(session_factory: async_sessionmaker = None) -> bool:
	"""Check if the local database is healthy"""
	try:
		async with (session_factory or AsyncSessionLocal)() as session:
			await session.execute(text("SELECT 1"))
			return True
	except Exception as e:
		logger.error(f"Local database health check failed: {e}")
		return False
