from fastapi import APIRouter

from crm_overlay.api.v1.endpoints import config, evaluations, health, tier_overrides

router = APIRouter(prefix="/api/v1")

router.include_router(config.router)
router.include_router(evaluations.router)
router.include_router(tier_overrides.router)
router.include_router(health.router)
