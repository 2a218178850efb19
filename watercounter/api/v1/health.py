from fastapi import APIRouter, Depends

from watercounter.api.dependencies import get_sync_engine
from watercounter.services.health_service import get_detailed_health
from watercounter.services.sync_service import SyncEngine

router = APIRouter()


@router.get("/detailed")
async def detailed_health(engine: SyncEngine = Depends(get_sync_engine)):
	"""Local store, remote reachability and queue size"""
	return await get_detailed_health(engine)
