"""
FastAPI dependencies (shared across routes).
"""

from __future__ import annotations

from typing import Dict

from fastapi import HTTPException, Request, status

from connectors.registry import ConnectorRegistry
from core.verification import VerificationController
from utils.schemas import DatabaseType


def get_registry(request: Request) -> ConnectorRegistry:
    return request.app.state.registry


def get_controllers(request: Request) -> Dict[DatabaseType, VerificationController]:
    return request.app.state.controllers


def get_controller(db_type: DatabaseType, request: Request) -> VerificationController:
    """Resolve the controller for the ``{db_type}`` path parameter."""
    controller = get_controllers(request).get(db_type)
    if controller is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Database '{db_type.value}' is not available",
        )
    return controller


def get_mongo_controller(request: Request) -> VerificationController:
    return get_controller(DatabaseType.MONGODB, request)
