"""Clip Studio — FastAPI application entry point.

All routers are mounted here. If a router module exists, it must be mounted
in this file.
"""
from __future__ import annotations

import logging
import os

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.routers import agents, providers, smart_video, system
from backend.services.shared.config import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_PATH,
    get_config,
)
from backend.services.shared.logging import setup_logging_from_config

logger = logging.getLogger("clip_studio.main")

# ── Config + logging ──────────────────────────────────────────────────────────
_config = get_config(os.environ.get(CONFIG_ENV_VAR, str(DEFAULT_CONFIG_PATH)))
setup_logging_from_config(_config)

app = FastAPI(
    title="Clip Studio",
    version="1.0.0",
    description="AI-assisted short video generation — specialist preparation + provider routing.",
)

# ── CORS ──────────────────────────────────────────────────────────────────────
app.add_middleware(
    CORSMiddleware,
    allow_origins=["http://localhost:3000", "http://localhost:5173"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ── Routers ───────────────────────────────────────────────────────────────────
app.include_router(agents.router,       prefix="/api/ai-agents",   tags=["AI Agents"])
app.include_router(smart_video.router,  prefix="/api/smart-video", tags=["Smart Video"])
app.include_router(providers.router,    prefix="/api/providers",   tags=["Providers"])
app.include_router(system.router,       prefix="/api/system",      tags=["System"])

logger.info("Clip Studio ready (config=%s)", _config.path)
