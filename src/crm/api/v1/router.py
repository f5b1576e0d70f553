"""V1 API router -- aggregates all v1 endpoint routers."""

from __future__ import annotations

from fastapi import APIRouter

from src.crm.api.v1 import admin, assistant, health, recommendations, records, search

router = APIRouter()

router.include_router(health.router)
router.include_router(records.router)
router.include_router(recommendations.router)
router.include_router(search.router)
router.include_router(assistant.router)
router.include_router(admin.router)
