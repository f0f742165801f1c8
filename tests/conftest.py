from typing import Any, AsyncGenerator, Dict
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from crm_overlay.main import app
from crm_overlay.schemas.priority import PriorityScoringConfig
from tests.fakes import ACCOUNT_ID


@pytest.fixture
def scenario_scoring() -> PriorityScoringConfig:
    """IntentScore (60, direct field) + HealthScore (40, score ranges)."""
    return PriorityScoringConfig.model_validate(
        {
            "components": [
                {
                    "id": "IntentScore",
                    "name": "Intent Score",
                    "weight": 60,
                    "field": "accountIntentScore6sense__c",
                },
                {
                    "id": "HealthScore",
                    "name": "Health Score",
                    "weight": 40,
                    "field": "Current_Gainsight_Score__c",
                    "scoreRanges": [
                        {"min": 0, "max": 49, "score": 10},
                        {"min": 50, "max": 100, "score": 90},
                    ],
                },
            ],
            "thresholds": {
                "hot": {"min": 85, "max": 100},
                "warm": {"min": 65, "max": 84},
                "cool": {"min": 40, "max": 64},
                "cold": {"min": 0, "max": 39},
            },
            "roleConfigs": {
                "csm": {
                    "componentWeights": {"HealthScore": 100},
                    "thresholds": {
                        "hot": {"min": 85, "max": 100},
                        "warm": {"min": 65, "max": 84},
                        "cool": {"min": 40, "max": 64},
                        "cold": {"min": 0, "max": 39},
                    },
                },
                "ae": {"componentWeights": {}},
            },
        }
    )


@pytest.fixture
def scenario_record() -> Dict[str, Any]:
    return {
        "Id": ACCOUNT_ID,
        "Name": "Acme Logistics",
        "accountIntentScore6sense__c": 80,
        "Current_Gainsight_Score__c": 60,
    }


@pytest_asyncio.fixture
async def async_client() -> AsyncGenerator[AsyncClient, None]:
    """Yield an ``httpx.AsyncClient`` wired to the FastAPI app."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


@pytest.fixture
def mock_redis() -> AsyncMock:
    """Return an ``AsyncMock`` that behaves like ``redis.asyncio.Redis``."""
    redis = AsyncMock()
    redis.get = AsyncMock(return_value=None)
    redis.set = AsyncMock()
    redis.setex = AsyncMock()
    redis.delete = AsyncMock()
    redis.ping = AsyncMock()
    return redis


@pytest.fixture
def mock_cache(mock_redis):
    """Return a ``CacheService`` backed by the mock Redis client."""
    from crm_overlay.core.cache import CacheService

    return CacheService(redis_client=mock_redis)
