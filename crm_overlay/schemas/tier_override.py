from datetime import datetime
from typing import Optional

from pydantic import Field

from crm_overlay.schemas.common import CamelModel, Tier


class TierOverrideUpdate(CamelModel):
    """Request body for PUT /api/v1/accounts/{account_id}/tier-override.

    ``tier=None`` removes any existing override.
    """

    tier: Optional[Tier] = None
    reason: Optional[str] = Field(None, max_length=500)


class AccountTierOverrideOut(CamelModel):
    account_id: str
    tier: Tier
    reason: Optional[str] = None
    overridden_by: str
    overridden_at: datetime
