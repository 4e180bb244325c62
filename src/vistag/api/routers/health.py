"""
Health check endpoints for monitoring and diagnostics.
"""

import time
from fastapi import APIRouter, Depends

from ..models.common import HealthStatus
from ..dependencies.manager import get_model_manager
from vistag import __version__
from vistag.models.manager import ModelManager

router = APIRouter()

# Track server start time for uptime calculation
_server_start_time = time.time()

ANALYSIS_TASK = "analysis"


@router.get("/", response_model=HealthStatus)
async def health_check(model_manager: ModelManager = Depends(get_model_manager)):
    """
    Basic health check endpoint.

    Reports credential presence per provider and call statistics for the
    analysis task. Does not call the providers.
    """
    uptime = time.time() - _server_start_time
    missing = model_manager.missing_credentials()

    dependencies = {}
    for name in model_manager.config["providers"]:
        if name in missing:
            dependencies[name] = f"missing credential ({missing[name]})"
        else:
            dependencies[name] = "configured"

    stats = model_manager.get_stats(ANALYSIS_TASK)
    if stats:
        dependencies["analysis_calls"] = f"{stats['successful_calls']}/{stats['total_calls']} succeeded"

    return HealthStatus(
        status="healthy" if model_manager.is_task_ready(ANALYSIS_TASK) else "degraded",
        version=__version__,
        uptime=uptime,
        dependencies=dependencies,
    )


@router.get("/ready")
def readiness_check(model_manager: ModelManager = Depends(get_model_manager)):
    """
    Readiness check.

    Checks the analysis provider's credential, then contacts the provider.
    Requests are still served when not ready; they return the fallback result.
    """
    task_cfg = model_manager.task_config(ANALYSIS_TASK)
    missing = model_manager.missing_credentials()
    if task_cfg.provider in missing:
        return {"ready": False, "reason": f"{missing[task_cfg.provider]} is not set"}
    if not model_manager.is_provider_reachable(ANALYSIS_TASK):
        return {"ready": False, "reason": f"Provider '{task_cfg.provider}' is unreachable"}
    return {"ready": True, "message": "Service ready to handle requests"}
