import logging

from fastapi import APIRouter, Depends

from watercounter.api.dependencies import get_sync_engine, get_sync_worker
from watercounter.auth.dependencies import get_current_user_id
from watercounter.schemas.reading import SyncResult, SyncStatusResponse
from watercounter.services.sync_service import SyncEngine
from watercounter.workers.sync_worker import SyncWorker

router = APIRouter()
logger = logging.getLogger(__name__)


@router.get("/status", response_model=SyncStatusResponse)
async def sync_status(engine: SyncEngine = Depends(get_sync_engine)):
	"""Queue size and state of the last pass, for the UI badge"""
	return SyncStatusResponse(
		pending_count=await engine.pending_count(),
		is_syncing=engine.is_syncing,
		online=engine.online,
		last_result=engine.last_result,
		last_synced_at=engine.last_synced_at,
	)


@router.post("/", response_model=SyncResult)
async def sync_now(
		engine: SyncEngine = Depends(get_sync_engine),
		user_id: int = Depends(get_current_user_id)
):
	"""Run a sync pass now; returns zero counts if one is already running"""
	result = await engine.sync_all(user_id)
	logger.info(f"Manual sync by user {user_id}: {result.success} synced, {result.failed} failed")
	return result


@router.post("/online", status_code=202)
async def report_online(
		worker: SyncWorker = Depends(get_sync_worker),
		user_id: int = Depends(get_current_user_id)
):
	"""Front-end regained connectivity"""
	worker.set_user(user_id)
	return {"requested": worker.notify_online()}


@router.post("/offline", status_code=202)
async def report_offline(worker: SyncWorker = Depends(get_sync_worker)):
	worker.notify_offline()
	return {"online": False}
