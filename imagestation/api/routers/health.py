"""
Health check endpoints for monitoring and diagnostics.
"""

import os
import time
from fastapi import APIRouter, Depends
from datetime import datetime, timezone

from ..models.common import HealthStatus
from ..dependencies.session import get_result_store, get_model_manager, ResultStore
from imagestation import __version__
from imagestation.models.manager import ModelManager

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()


def _configured_keys(model_manager: ModelManager) -> dict:
    """Which vendor API keys are present in the environment, by provider/service name."""
    sections = {**model_manager.config.get("providers", {}), **(model_manager.config.get("services") or {})}
    status = {}
    for name, cfg in sections.items():
        settings = cfg.get("settings") or {}
        env_name = settings.get("api_key_env")
        status[name] = bool(settings.get("api_key") or (env_name and os.getenv(env_name)))
    return status


@router.get("/", response_model=HealthStatus)
async def health_check(
    result_store: ResultStore = Depends(get_result_store),
    model_manager: ModelManager = Depends(get_model_manager)
):
    """
    Basic health check endpoint.

    Reports whether each vendor has an API key configured. No vendor is
    contacted.
    """
    uptime = time.time() - _server_start_time
    dependencies = {}

    stats = result_store.get_stats()
    dependencies["result_store"] = f"Active ({stats['stored_results']} results)"

    for name, configured in _configured_keys(model_manager).items():
        dependencies[name] = "API key configured" if configured else "API key missing"

    return HealthStatus(
        status="healthy",
        version=__version__,
        uptime=uptime,
        dependencies=dependencies
    )


@router.get("/detailed")
async def detailed_health_check(
    result_store: ResultStore = Depends(get_result_store),
    model_manager: ModelManager = Depends(get_model_manager)
):
    """Health plus result store and per-task call statistics."""
    uptime = time.time() - _server_start_time
    stats = result_store.get_stats()

    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "uptime_seconds": uptime,
        "uptime_human": f"{uptime//3600:.0f}h {(uptime%3600)//60:.0f}m {uptime%60:.0f}s",
        "results": {
            "stored_count": stats["stored_results"],
            "ttl_minutes": stats["ttl_minutes"],
            "oldest_result_age_seconds": stats["oldest_result_age"]
        },
        "tasks": model_manager.get_stats()
    }


@router.get("/ready")
async def readiness_check(model_manager: ModelManager = Depends(get_model_manager)):
    """Ready once every vendor has an API key."""
    missing = [name for name, configured in _configured_keys(model_manager).items() if not configured]
    if missing:
        return {"ready": False, "reason": f"Missing API keys for: {', '.join(missing)}"}
    return {"ready": True, "message": "Service ready to handle requests"}
