from fastapi import Request

from watercounter.services.catalog_service import CatalogService
from watercounter.services.local_store import LocalStore
from watercounter.services.sync_service import SyncEngine
from watercounter.workers.sync_worker import SyncWorker


def get_local_store(request: Request) -> LocalStore:
	return request.app.state.store


def get_sync_engine(request: Request) -> SyncEngine:
	return request.app.state.sync_engine


def get_sync_worker(request: Request) -> SyncWorker:
	return request.app.state.sync_worker


def get_catalog_service(request: Request) -> CatalogService:
	return request.app.state.catalog
