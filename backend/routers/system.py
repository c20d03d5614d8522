"""System router — health check."""
from __future__ import annotations

import logging
from typing import Dict

from fastapi import APIRouter

logger = logging.getLogger("clip_studio.routers.system")
router = APIRouter()


@router.get("/health")
async def health_check() -> Dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok", "version": "1.0.0"}
