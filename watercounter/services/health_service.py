from typing import Dict, Any
from datetime import datetime, timezone
import platform
from watercounter.database import check_db_connection
from watercounter.services.sync_service import SyncEngine
import logging

logger = logging.getLogger(__name__)


async def get_detailed_health(engine: SyncEngine) -> Dict[str, Any]:
	"""Get detailed health status of the agent and its collaborators"""
	health_status = {
		"services": {},
		"queue": {},
		"system": {
			"python_version": platform.python_version(),
			"platform": platform.platform(),
		},
		"timestamp": datetime.now(timezone.utc).isoformat(),
	}

	# Local store
	db_healthy = await check_db_connection(engine.store.session_factory)
	health_status["services"]["local_database"] = {
		"healthy": db_healthy,
		"type": "SQLite",
		"status": "connected" if db_healthy else "disconnected",
	}

	# Remote ingestion server
	remote_healthy = await engine.probe()
	health_status["services"]["remote_server"] = {
		"healthy": remote_healthy,
		"url": engine.api_client.base_url,
		"status": "reachable" if remote_healthy else "unreachable",
	}

	# Queue
	try:
		health_status["queue"] = {
			"pending_count": await engine.pending_count(),
			"is_syncing": engine.is_syncing,
			"last_synced_at": engine.last_synced_at.isoformat() if engine.last_synced_at else None,
		}
	except Exception as e:
		logger.error(f"Failed to read queue size: {e}")
		health_status["queue"] = {"error": str(e)}

	# Offline is an expected state for this agent, only the local store is critical
	if not db_healthy:
		health_status["overall_health"] = "unhealthy"
	elif not remote_healthy:
		health_status["overall_health"] = "offline"
	else:
		health_status["overall_health"] = "healthy"

	return health_status
