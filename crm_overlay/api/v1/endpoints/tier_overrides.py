from typing import Dict

from fastapi import APIRouter, Depends, Path

from crm_overlay.schemas.common import RECORD_ID_PATTERN
from crm_overlay.schemas.tier_override import AccountTierOverrideOut, TierOverrideUpdate
from crm_overlay.services.tier_override_service import TierOverrideService
from crm_overlay.api.deps import get_current_user_name, get_tier_override_service

router = APIRouter(prefix="/accounts", tags=["Tier Overrides"])


@router.get("/tier-overrides", response_model=Dict[str, AccountTierOverrideOut])
async def list_tier_overrides(
    service: TierOverrideService = Depends(get_tier_override_service),
) -> Dict[str, AccountTierOverrideOut]:
    """All account tier overrides keyed by account id."""
    return await service.get_overrides()


@router.put(
    "/{account_id}/tier-override",
    response_model=Dict[str, AccountTierOverrideOut],
)
async def set_tier_override(
    update: TierOverrideUpdate,
    account_id: str = Path(..., pattern=RECORD_ID_PATTERN),
    service: TierOverrideService = Depends(get_tier_override_service),
    user_name: str = Depends(get_current_user_name),
) -> Dict[str, AccountTierOverrideOut]:
    """Pin a tier to an account, or remove the pin with ``{"tier": null}``.

    Returns every override after the change.
    """
    return await service.set_override(
        account_id=account_id,
        tier=update.tier,
        reason=update.reason,
        overridden_by=user_name,
    )
