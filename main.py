"""
Database status service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_middleware
from api.routes import router as databases_router
from config.settings import config
from connectors.encryption import get_default_cipher
from connectors.errors import EncryptionError
from connectors.registry import ConnectorRegistry
from core.config_store import ConfigStore, EncryptedJsonConfigStore, InMemoryConfigStore
from core.verification import VerificationController

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("httpcore", "httpx", "urllib3"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def build_config_store() -> ConfigStore:
    """Encrypted JSON file when CONFIG_STORE_PATH is set, otherwise memory."""
    if not config.config_store_path:
        return InMemoryConfigStore()
    try:
        return EncryptedJsonConfigStore(config.config_store_path, get_default_cipher())
    except EncryptionError as exc:
        logger.warning("Config store falls back to memory: %s", exc)
        return InMemoryConfigStore()


def create_app(
    registry: Optional[ConnectorRegistry] = None,
    store: Optional[ConfigStore] = None,
) -> FastAPI:
    app = FastAPI(
        title="Database Status Service",
        version="1.0.0",
        description="On-demand connectivity checks for ResilientDB and MongoDB.",
    )

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app)

    registry = registry or ConnectorRegistry()
    registry.discover()
    store = store or build_config_store()

    app.state.registry = registry
    app.state.controllers = {
        provider.type: VerificationController(registry.get(provider.type), store=store)
        for provider in registry.list_providers()
    }

    # Routes
    app.include_router(databases_router, prefix="/api/v1/databases")

    logger.info("Application ready to accept requests.")
    return app


if __name__ == "__main__":
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
