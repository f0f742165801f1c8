from crm_overlay.models.base import Base
from crm_overlay.models.config_document import ConfigDocument
from crm_overlay.models.tier_override import AccountTierOverride

__all__ = [
    "Base",
    "ConfigDocument",
    "AccountTierOverride",
]
