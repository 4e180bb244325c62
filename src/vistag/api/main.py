"""
FastAPI application entry point.

Wires the routers, CORS and the model manager lifecycle together.
"""

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator, List

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from vistag import __version__
from vistag.models.manager import ModelManager
from .dependencies.manager import app_state
from .routers import analyze, health, ui

load_dotenv()

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO").upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path(__file__).parents[3] / "config" / "config.yaml"


def config_path() -> Path:
    return Path(os.getenv("VISTAG_CONFIG", str(DEFAULT_CONFIG_PATH)))


def cors_origins() -> List[str]:
    raw = os.getenv("CORS_ALLOW_ORIGINS", "*")
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """
    Build the ModelManager once at startup and release it at shutdown.

    A missing provider credential is only a warning: the service starts and
    analysis requests get the fallback result until it is configured.
    """
    model_manager = ModelManager(config_path=config_path())
    for provider_name, env_var in model_manager.missing_credentials().items():
        logger.warning("%s is not set; provider '%s' will fail and analysis falls back. Set it in a local .env file.", env_var, provider_name)
    app_state["model_manager"] = model_manager
    logger.info("vistag API ready (config: %s)", model_manager.config_path)

    yield

    logger.info("Shutting down vistag API")
    model_manager.cleanup()
    app_state.clear()


def create_app() -> FastAPI:
    app = FastAPI(
        title="vistag",
        description="Image title, description and tag generation with vision language models",
        version=__version__,
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cors_origins(),
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(ui.router, tags=["ui"])
    app.include_router(health.router, prefix="/health", tags=["health"])
    app.include_router(analyze.router, prefix="/api", tags=["analysis"])

    return app


app = create_app()
