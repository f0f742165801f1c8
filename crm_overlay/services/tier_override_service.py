import logging
from typing import Dict, Optional

from sqlalchemy.exc import SQLAlchemyError

from crm_overlay.core.exceptions import ConfigStoreUnavailableError
from crm_overlay.models.tier_override import AccountTierOverride
from crm_overlay.repositories.tier_override_repository import TierOverrideRepository
from crm_overlay.schemas.common import Tier
from crm_overlay.schemas.tier_override import AccountTierOverrideOut

logger = logging.getLogger(__name__)

_READ_FAILED = "Could not load tier overrides. Please try again."
_WRITE_FAILED = "Could not save tier override. Please try again."


def _to_out(override: AccountTierOverride) -> AccountTierOverrideOut:
    return AccountTierOverrideOut(
        account_id=override.account_id,
        tier=override.tier,
        reason=override.reason,
        overridden_by=override.overridden_by,
        overridden_at=override.overridden_at,
    )


class TierOverrideService:
    """Manage admin-pinned account tiers.

    All database operations are delegated to the injected repository.
    Database failures surface as :class:`ConfigStoreUnavailableError`;
    a failed write is rolled back first.
    """

    def __init__(self, tier_override_repo: TierOverrideRepository) -> None:
        self._repo = tier_override_repo

    async def get_overrides(self) -> Dict[str, AccountTierOverrideOut]:
        try:
            overrides = await self._repo.get_all()
        except SQLAlchemyError as exc:
            logger.error("Failed to read tier overrides: %s", exc)
            raise ConfigStoreUnavailableError(_READ_FAILED) from exc
        return {
            override.account_id: _to_out(override)
            for override in overrides
        }

    async def get_override(self, account_id: str) -> Optional[AccountTierOverrideOut]:
        try:
            override = await self._repo.get(account_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to read tier override for %s: %s", account_id, exc)
            raise ConfigStoreUnavailableError(_READ_FAILED) from exc
        if override is None:
            return None
        return _to_out(override)

    async def set_override(
        self,
        account_id: str,
        tier: Optional[Tier],
        reason: Optional[str],
        overridden_by: str,
    ) -> Dict[str, AccountTierOverrideOut]:
        """Pin *tier* to the account, or remove the pin when *tier* is ``None``.

        Returns every override after the change.
        """
        tier_value = Tier(tier).value if tier is not None else None
        try:
            if tier_value is None:
                await self._repo.delete(account_id)
            else:
                await self._repo.upsert(
                    account_id=account_id,
                    tier=tier_value,
                    reason=reason,
                    overridden_by=overridden_by,
                )
            await self._repo.commit()
        except SQLAlchemyError as exc:
            logger.error("Failed to save tier override for %s: %s", account_id, exc)
            await self._repo.rollback()
            raise ConfigStoreUnavailableError(_WRITE_FAILED) from exc

        if tier_value is None:
            logger.info("Tier override removed for %s by %s", account_id, overridden_by)
        else:
            logger.info(
                "Tier override for %s set to %s by %s", account_id, tier_value, overridden_by
            )
        return await self.get_overrides()
