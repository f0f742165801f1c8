from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import select, delete

from crm_overlay.models.tier_override import AccountTierOverride
from crm_overlay.repositories.base import BaseRepository


class TierOverrideRepository(BaseRepository):
    """Encapsulates queries against the ``account_tier_overrides`` table."""

    async def get_all(self) -> List[AccountTierOverride]:
        result = await self._db.execute(
            select(AccountTierOverride).order_by(AccountTierOverride.account_id)
        )
        return list(result.scalars().all())

    async def get(self, account_id: str) -> Optional[AccountTierOverride]:
        result = await self._db.execute(
            select(AccountTierOverride).where(
                AccountTierOverride.account_id == account_id
            )
        )
        return result.scalar_one_or_none()

    async def upsert(
        self,
        account_id: str,
        tier: str,
        reason: Optional[str],
        overridden_by: str,
    ) -> AccountTierOverride:
        """Pin *tier* to *account_id*, replacing any earlier override."""
        override = await self.get(account_id)
        if override is None:
            override = AccountTierOverride(account_id=account_id)
            self._db.add(override)
        override.tier = tier
        override.reason = reason
        override.overridden_by = overridden_by
        override.overridden_at = datetime.now(timezone.utc)
        await self._db.flush()
        return override

    async def delete(self, account_id: str) -> None:
        await self._db.execute(
            delete(AccountTierOverride).where(
                AccountTierOverride.account_id == account_id
            )
        )
