"""
Model manager dependency.

The manager is built once by the application lifespan and shared by all
requests; it holds no per-request state.
"""

from typing import Any, Dict

from fastapi import HTTPException

from vistag.models.manager import ModelManager

# Global application state, filled in by the lifespan hook
app_state: Dict[str, Any] = {}


def get_model_manager() -> ModelManager:
    """FastAPI dependency to get the model manager from app state."""
    manager = app_state.get("model_manager")
    if manager is None:
        raise HTTPException(status_code=503, detail="Model manager is not initialized")
    return manager
