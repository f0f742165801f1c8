"""Repository layer – all database access goes through here.

Repositories encapsulate SQLAlchemy queries so that the service layer
only contains business logic.
"""

from crm_overlay.repositories.config_repository import ConfigRepository
from crm_overlay.repositories.tier_override_repository import TierOverrideRepository

__all__ = [
    "ConfigRepository",
    "TierOverrideRepository",
]
