"""Providers router — registry and availability of generation providers."""
from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter

from backend.routers.dependencies import get_provider_router

logger = logging.getLogger("clip_studio.routers.providers")
router = APIRouter()


@router.get("")
async def list_providers() -> Dict[str, Any]:
    """Every registered provider with tier, capabilities, cost and quota."""
    providers = get_provider_router().describe_providers()
    return {"providers": providers, "total": len(providers)}


@router.get("/available")
async def available_providers() -> Dict[str, Any]:
    """Names of providers whose quota is currently available."""
    names = [p.name() for p in get_provider_router().get_available_providers()]
    return {"available": names, "total": len(names)}
