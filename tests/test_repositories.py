from unittest.mock import AsyncMock, MagicMock

import pytest

from crm_overlay.models.config_document import ConfigDocument
from crm_overlay.repositories.config_repository import ConfigRepository
from crm_overlay.repositories.tier_override_repository import TierOverrideRepository
from tests.fakes import ACCOUNT_ID


def _mock_session(found=None) -> AsyncMock:
    """AsyncSession whose SELECTs return *found*."""
    result = MagicMock()
    result.scalar_one_or_none.return_value = found
    session = AsyncMock()
    session.execute = AsyncMock(return_value=result)
    session.add = MagicMock()
    return session


class TestConfigRepository:
    @pytest.mark.asyncio
    async def test_seed_if_missing_inserts_and_commits(self):
        session = _mock_session(found=None)
        repo = ConfigRepository(session)

        document = await repo.seed_if_missing("risk_rules", [])

        session.add.assert_called_once()
        session.commit.assert_awaited_once()
        assert document.value == []
        assert document.modified_by == "system"

    @pytest.mark.asyncio
    async def test_seed_if_missing_keeps_existing_document(self):
        existing = ConfigDocument(key="risk_rules", value=[{"id": "r1"}], modified_by="Dana")
        session = _mock_session(found=existing)
        repo = ConfigRepository(session)

        document = await repo.seed_if_missing("risk_rules", [])

        assert document is existing
        session.add.assert_not_called()
        session.commit.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_upsert_updates_existing_document(self):
        existing = ConfigDocument(key="risk_rules", value=[], modified_by="system")
        session = _mock_session(found=existing)
        repo = ConfigRepository(session)

        document = await repo.upsert("risk_rules", [{"id": "r2"}], modified_by="Dana")

        assert document is existing
        assert document.value == [{"id": "r2"}]
        assert document.modified_by == "Dana"
        assert document.updated_at is not None
        session.flush.assert_awaited_once()
        session.commit.assert_not_awaited()


class TestTierOverrideRepository:
    @pytest.mark.asyncio
    async def test_upsert_inserts_new_override(self):
        session = _mock_session(found=None)
        repo = TierOverrideRepository(session)

        override = await repo.upsert(ACCOUNT_ID, "hot", "Strategic", "Dana")

        session.add.assert_called_once_with(override)
        assert override.account_id == ACCOUNT_ID
        assert override.tier == "hot"
        assert override.overridden_at is not None
