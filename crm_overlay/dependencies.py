import logging
from typing import AsyncGenerator, Optional

from fastapi import Depends, Header
from sqlalchemy.ext.asyncio import AsyncSession

from redis.asyncio import Redis

from crm_overlay.core.config import settings
from crm_overlay.core.database import get_db
from crm_overlay.services.config_store import ConfigStore
from crm_overlay.services.crm_client import CrmClient
from crm_overlay.services.evaluation_service import EvaluationService
from crm_overlay.services.tier_override_service import TierOverrideService

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Acting user
# ---------------------------------------------------------------------------


async def get_current_user_name(
    x_user_name: Optional[str] = Header(None, max_length=255),
) -> str:
    """Name recorded as ``modified_by`` on admin writes.

    Authentication happens upstream; the gateway forwards the user's
    display name in ``X-User-Name``.
    """
    return (x_user_name or "").strip() or "unknown"


# ---------------------------------------------------------------------------
# Redis client factory
# ---------------------------------------------------------------------------


async def get_redis_client() -> AsyncGenerator[Optional[Redis], None]:
    """Yield an async Redis client when the config cache is enabled.

    The client is closed once the request finishes.
    """
    if settings.CONFIG_CACHE_TTL <= 0:
        yield None
        return

    client: Optional[Redis] = None
    try:
        client = Redis.from_url(
            settings.REDIS_URL,
            decode_responses=True,
        )
        await client.ping()
    except Exception:
        logger.warning("Redis unavailable – config cache disabled for this request")
        if client is not None:
            await client.aclose()
        client = None

    try:
        yield client
    finally:
        if client is not None:
            await client.aclose()


async def get_cache_service(
    redis_client: Optional[Redis] = Depends(get_redis_client),
):
    """Build a :class:`CacheService` backed by the request's Redis client."""
    from crm_overlay.core.cache import CacheService

    return CacheService(redis_client=redis_client)


# ---------------------------------------------------------------------------
# Repository factory functions (one per repository, each gets the shared db)
# ---------------------------------------------------------------------------


async def get_config_repo(
    db: AsyncSession = Depends(get_db),
):
    from crm_overlay.repositories.config_repository import ConfigRepository

    return ConfigRepository(db)


async def get_tier_override_repo(
    db: AsyncSession = Depends(get_db),
):
    from crm_overlay.repositories.tier_override_repository import (
        TierOverrideRepository,
    )

    return TierOverrideRepository(db)


# ---------------------------------------------------------------------------
# Service factory functions
# ---------------------------------------------------------------------------


async def get_config_store(
    config_repo=Depends(get_config_repo),
    cache=Depends(get_cache_service),
) -> ConfigStore:
    return ConfigStore(config_repo=config_repo, cache=cache)


async def get_crm_client() -> CrmClient:
    return CrmClient()


async def get_tier_override_service(
    tier_override_repo=Depends(get_tier_override_repo),
) -> TierOverrideService:
    return TierOverrideService(tier_override_repo=tier_override_repo)


async def get_evaluation_service(
    config_store: ConfigStore = Depends(get_config_store),
    crm_client: CrmClient = Depends(get_crm_client),
    tier_overrides: TierOverrideService = Depends(get_tier_override_service),
) -> EvaluationService:
    return EvaluationService(
        config_store=config_store,
        crm_client=crm_client,
        tier_overrides=tier_overrides,
    )
