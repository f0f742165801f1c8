"""API-layer dependency functions.

Re-exports all dependency factories from ``crm_overlay.dependencies`` so
that endpoint modules only need to import from ``crm_overlay.api.deps``.
"""

from crm_overlay.dependencies import (
    # Request context
    get_current_user_name,
    # Repository factories
    get_config_repo,
    get_tier_override_repo,
    # Service factories
    get_config_store,
    get_crm_client,
    get_tier_override_service,
    get_evaluation_service,
    # Redis
    get_redis_client,
    get_cache_service,
)

__all__ = [
    "get_current_user_name",
    "get_config_repo",
    "get_tier_override_repo",
    "get_config_store",
    "get_crm_client",
    "get_tier_override_service",
    "get_evaluation_service",
    "get_redis_client",
    "get_cache_service",
]
