import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from starlette.middleware.gzip import GZipMiddleware

from watercounter.config import settings
from watercounter.api.v1 import readings, sync, catalog, health
from watercounter.core.exceptions import ValidationError, NotFoundError, StorageError
from watercounter.core.logging_setup import setup_logging
from watercounter.database import AsyncSessionLocal, engine as db_engine, init_db, close_db
from watercounter.middleware.logging import LoggingMiddleware
from watercounter.middleware.monitoring import MonitoringMiddleware
from watercounter.monitoring import metrics
from watercounter.services.api_client import ReadingsApiClient
from watercounter.services.catalog_service import CatalogService
from watercounter.services.local_store import LocalStore
from watercounter.services.sync_service import SyncEngine
from watercounter.workers.sync_worker import SyncWorker

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
	"""Wire the local store, the sync engine and its worker for this session"""
	setup_logging()

	if settings.AUTO_CREATE_TABLES:
		await init_db(db_engine)

	store = LocalStore(AsyncSessionLocal)
	api_client = ReadingsApiClient()
	sync_engine = SyncEngine(store, api_client)
	worker = SyncWorker(
		sync_engine,
		interval_seconds=settings.SYNC_INTERVAL_SECONDS,
		user_id=settings.DEFAULT_TELEGRAM_USER_ID
	)

	app.state.store = store
	app.state.sync_engine = sync_engine
	app.state.sync_worker = worker
	app.state.catalog = CatalogService(store, api_client)

	await worker.start()
	if settings.SYNC_ON_STARTUP:
		worker.kick()

	logger.info(f"{settings.APP_NAME} started, syncing to {api_client.base_url}")
	try:
		yield
	finally:
		await worker.stop()
		await api_client.close()
		await close_db(db_engine)


app = FastAPI(
	title=settings.APP_NAME,
	description="Offline-first queue for counter readings with background delivery to the ingestion server",
	version=settings.APP_VERSION,
	lifespan=lifespan,
	openapi_tags=[
		{"name": "readings", "description": "Local reading queue and history"},
		{"name": "sync", "description": "Delivery to the ingestion server"},
		{"name": "catalog", "description": "Devices and user profile with offline cache"},
		{"name": "monitoring", "description": "System monitoring"},
	],
	docs_url="/docs",
	redoc_url="/redoc" if settings.DEBUG else None,
)


# =====================================
# Domain error translation
# =====================================
@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
	return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(NotFoundError)
async def not_found_handler(request: Request, exc: NotFoundError):
	return JSONResponse(status_code=status.HTTP_404_NOT_FOUND, content={"detail": str(exc)})


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError):
	logger.error(f"Local storage failure on {request.method} {request.url.path}: {exc}")
	return JSONResponse(
		status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
		content={"detail": "Local storage unavailable"}
	)


# =====================================
# Configure Middleware Stack
# =====================================

# GZIP Compression (minimum 1KB)
app.add_middleware(GZipMiddleware, minimum_size=1000)

app.add_middleware(
	CORSMiddleware,
	allow_origins=settings.CORS_ORIGINS,
	allow_credentials=True,
	allow_methods=["GET", "POST", "OPTIONS"],
	allow_headers=["*"],
	expose_headers=["X-Request-ID"],
	max_age=3600,
)

app.add_middleware(MonitoringMiddleware)
app.add_middleware(LoggingMiddleware)

# Include routers
app.include_router(readings.router, prefix=f"{settings.API_V1_PREFIX}/readings", tags=["readings"])
app.include_router(sync.router, prefix=f"{settings.API_V1_PREFIX}/sync", tags=["sync"])
app.include_router(catalog.router, prefix=settings.API_V1_PREFIX, tags=["catalog"])
app.include_router(health.router, prefix=f"{settings.API_V1_PREFIX}/health", tags=["monitoring"])

# Monitoring endpoints (internal use)
if settings.EXPOSE_METRICS:
	app.include_router(
		metrics.router,
		prefix="/internal",
		tags=["monitoring"]
	)


@app.get("/health", tags=["monitoring"])
async def health_check():
	return {
		"status": "healthy",
		"timestamp": datetime.now(timezone.utc).isoformat(),
		"version": settings.APP_VERSION
	}
