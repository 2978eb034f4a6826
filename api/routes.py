"""
Database status API routes — list backends, read status, run checks,
edit the MongoDB config.

Route prefix: /api/v1/databases
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends

from api.dependencies import get_controller, get_mongo_controller, get_registry
from connectors.mongodb import mask_credentials
from connectors.registry import ConnectorRegistry
from core.verification import VerificationController
from utils.schemas import (
    ConnectionStatus,
    MongoConfig,
    MongoConfigView,
    ProviderInfo,
)

logger = logging.getLogger(__name__)

router = APIRouter(tags=["databases"])


@router.get("")
async def list_providers(
    registry: ConnectorRegistry = Depends(get_registry),
) -> List[ProviderInfo]:
    """List every backend and whether it is configured."""
    return registry.list_providers()


@router.get("/mongodb/config")
async def get_mongo_config(
    controller: VerificationController = Depends(get_mongo_controller),
) -> MongoConfigView:
    """Current MongoDB config with the connection string masked."""
    cfg: MongoConfig = controller.config
    return MongoConfigView(
        database=cfg.database,
        collection=cfg.collection,
        uri=mask_credentials(cfg.uri),
    )


@router.put("/mongodb/config")
async def update_mongo_config(
    new_config: MongoConfig,
    controller: VerificationController = Depends(get_mongo_controller),
) -> ConnectionStatus:
    """Save a new MongoDB config and check it immediately."""
    logger.info(
        "MongoDB config updated (db=%s, collection=%s, uri=%s)",
        new_config.database,
        new_config.collection,
        mask_credentials(new_config.uri),
    )
    return await controller.reconfigure(new_config)


@router.get("/{db_type}/status")
async def get_status(
    controller: VerificationController = Depends(get_controller),
) -> ConnectionStatus:
    """Last known status; ``checking`` until the first check completes."""
    return controller.status


@router.post("/{db_type}/check")
async def run_check(
    controller: VerificationController = Depends(get_controller),
) -> ConnectionStatus:
    """Run one connectivity check with the saved config."""
    return await controller.start()
