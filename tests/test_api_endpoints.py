import copy
from types import SimpleNamespace
from unittest.mock import AsyncMock

import pytest
from sqlalchemy.exc import OperationalError

from crm_overlay.core.constants import PRIORITY_SCORING_KEY, RISK_RULES_KEY
from crm_overlay.core.default_config import DEFAULT_PRIORITY_SCORING
from crm_overlay.dependencies import (
    get_config_store,
    get_evaluation_service,
    get_tier_override_service,
)
from crm_overlay.main import app
from crm_overlay.services.config_store import ConfigStore
from crm_overlay.services.evaluation_service import EvaluationService
from crm_overlay.services.tier_override_service import TierOverrideService
from tests.fakes import (
    ACCOUNT_ID,
    OTHER_ACCOUNT_ID,
    FakeCrmClient,
    InMemoryConfigRepository,
    InMemoryTierOverrideRepository,
)

ADMIN = {"X-User-Name": "Dana Admin"}


@pytest.fixture
def backend(scenario_scoring, scenario_record):
    """Wire the app to in-memory repositories and a fake CRM."""
    state = SimpleNamespace(
        config_repo=InMemoryConfigRepository(
            {
                PRIORITY_SCORING_KEY: scenario_scoring.model_dump(
                    mode="json", by_alias=True, exclude_none=True
                )
            }
        ),
        tier_repo=InMemoryTierOverrideRepository(),
        crm=FakeCrmClient({ACCOUNT_ID: scenario_record}),
    )

    def _config_store():
        return ConfigStore(config_repo=state.config_repo, cache_ttl=0)

    def _tier_overrides():
        return TierOverrideService(tier_override_repo=state.tier_repo)

    def _evaluation_service():
        return EvaluationService(
            config_store=_config_store(),
            crm_client=state.crm,
            tier_overrides=_tier_overrides(),
        )

    app.dependency_overrides[get_config_store] = _config_store
    app.dependency_overrides[get_tier_override_service] = _tier_overrides
    app.dependency_overrides[get_evaluation_service] = _evaluation_service
    yield state
    app.dependency_overrides.clear()


class TestHealthEndpoint:
    @pytest.mark.asyncio
    async def test_health_returns_ok(self, async_client):
        response = await async_client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestCORSMiddleware:
    @pytest.mark.asyncio
    async def test_cors_headers_on_preflight(self, async_client):
        response = await async_client.options(
            "/api/v1/health",
            headers={
                "Origin": "http://localhost:3000",
                "Access-Control-Request-Method": "GET",
            },
        )
        assert "access-control-allow-origin" in response.headers

    @pytest.mark.asyncio
    async def test_unknown_origin_is_not_echoed(self, async_client):
        response = await async_client.get(
            "/api/v1/health", headers={"Origin": "http://evil.example"}
        )
        assert "access-control-allow-origin" not in response.headers


class TestEvaluationEndpoint:
    """GET /api/v1/evaluations/{objectType}/{recordId}"""

    @pytest.mark.asyncio
    async def test_returns_flags_score_and_tier(self, async_client, backend):
        response = await async_client.get(f"/api/v1/evaluations/Account/{ACCOUNT_ID}")

        assert response.status_code == 200
        body = response.json()
        assert body["recordId"] == ACCOUNT_ID
        assert body["flags"] == []
        assert body["score"] == 84
        assert body["tier"] == "warm"
        assert body["tierOverridden"] is False

    @pytest.mark.asyncio
    async def test_role_query_parameter(self, async_client, backend):
        response = await async_client.get(
            f"/api/v1/evaluations/Account/{ACCOUNT_ID}", params={"role": "csm"}
        )
        assert response.json()["score"] == 90
        assert response.json()["tier"] == "hot"

    @pytest.mark.asyncio
    async def test_unknown_record_returns_404(self, async_client, backend):
        response = await async_client.get(f"/api/v1/evaluations/Account/{OTHER_ACCOUNT_ID}")
        assert response.status_code == 404
        assert response.json()["type"] == "record_not_found"

    @pytest.mark.asyncio
    async def test_invalid_record_id_returns_422(self, async_client, backend):
        response = await async_client.get("/api/v1/evaluations/Account/not-an-id")
        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_unknown_object_type_returns_422(self, async_client, backend):
        response = await async_client.get(f"/api/v1/evaluations/Lead/{ACCOUNT_ID}")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_unconfigured_crm_returns_503(self, async_client, backend):
        """Without the fake CRM the real client reports it is not configured."""
        del app.dependency_overrides[get_evaluation_service]

        def _service_with_real_client():
            from crm_overlay.services.crm_client import CrmClient

            return EvaluationService(
                config_store=ConfigStore(config_repo=backend.config_repo, cache_ttl=0),
                crm_client=CrmClient(instance_url=""),
            )

        app.dependency_overrides[get_evaluation_service] = _service_with_real_client
        response = await async_client.get(f"/api/v1/evaluations/Account/{ACCOUNT_ID}")
        assert response.status_code == 503
        assert response.json()["type"] == "crm_unavailable"


class TestBatchEndpoint:
    @pytest.mark.asyncio
    async def test_batch_evaluation(self, async_client, backend):
        response = await async_client.post(
            "/api/v1/evaluations/batch",
            json={
                "objectType": "Account",
                "role": "csm",
                "recordIds": [ACCOUNT_ID, OTHER_ACCOUNT_ID],
            },
        )
        assert response.status_code == 200
        body = response.json()
        assert body["total"] == 2
        assert body["failed"] == 1
        assert body["tierCounts"] == {"hot": 1}
        assert body["errors"][0]["recordId"] == OTHER_ACCOUNT_ID

    @pytest.mark.asyncio
    async def test_empty_batch_returns_422(self, async_client, backend):
        response = await async_client.post(
            "/api/v1/evaluations/batch",
            json={"objectType": "Account", "recordIds": []},
        )
        assert response.status_code == 422


class TestConfigEndpoints:
    """Admin configuration reads and writes."""

    @pytest.mark.asyncio
    async def test_get_config(self, async_client, backend):
        response = await async_client.get("/api/v1/config")
        assert response.status_code == 200
        body = response.json()
        assert {"riskRules", "priorityScoring", "lastModified"} <= set(body)

    @pytest.mark.asyncio
    async def test_get_risk_rules_seeds_defaults(self, async_client, backend):
        response = await async_client.get("/api/v1/config/risk-rules")
        assert response.status_code == 200
        assert [rule["id"] for rule in response.json()] == [
            "rule_low_health",
            "rule_stuck_deal",
            "rule_critical_deal",
        ]

    @pytest.mark.asyncio
    async def test_update_risk_rules_records_user(self, async_client, backend):
        rule = {
            "id": "rule_critical_health",
            "name": "Critical Health",
            "objectType": "Account",
            "conditions": [
                {"field": "Current_Gainsight_Score__c", "operator": "<", "value": 70}
            ],
            "logic": "AND",
            "flag": "critical",
            "active": True,
        }
        response = await async_client.put(
            "/api/v1/config/risk-rules", json={"rules": [rule]}, headers=ADMIN
        )

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert backend.config_repo.documents[RISK_RULES_KEY].modified_by == "Dana Admin"

        evaluation = await async_client.get(f"/api/v1/evaluations/Account/{ACCOUNT_ID}")
        assert evaluation.json()["flags"] == ["critical"]

    @pytest.mark.asyncio
    async def test_active_rule_without_conditions_returns_422(self, async_client, backend):
        rule = {"id": "r1", "objectType": "Account", "flag": "warning", "conditions": []}
        response = await async_client.put(
            "/api/v1/config/risk-rules", json={"rules": [rule]}, headers=ADMIN
        )
        assert response.status_code == 422
        assert response.json()["type"] == "invalid_configuration"

    @pytest.mark.asyncio
    async def test_unknown_operator_returns_validation_error(self, async_client, backend):
        rule = {
            "id": "r1",
            "objectType": "Account",
            "flag": "warning",
            "conditions": [{"field": "X", "operator": "LIKE", "value": 1}],
        }
        response = await async_client.put("/api/v1/config/risk-rules", json={"rules": [rule]})
        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_weights_not_summing_to_100_are_rejected(self, async_client, backend):
        config = copy.deepcopy(DEFAULT_PRIORITY_SCORING)
        config["components"][0]["weight"] = 50
        stored_before = copy.deepcopy(backend.config_repo.documents[PRIORITY_SCORING_KEY].value)

        response = await async_client.put(
            "/api/v1/config/priority-scoring",
            json={"priorityScoring": config},
            headers=ADMIN,
        )

        assert response.status_code == 422
        assert response.json() == {
            "detail": "Default component weights must sum to 100%. Current total: 110%",
            "type": "invalid_configuration",
        }
        assert backend.config_repo.documents[PRIORITY_SCORING_KEY].value == stored_before

    @pytest.mark.asyncio
    async def test_update_priority_scoring(self, async_client, backend):
        response = await async_client.put(
            "/api/v1/config/priority-scoring",
            json={"priorityScoring": DEFAULT_PRIORITY_SCORING},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert len(response.json()["data"]["components"]) == 3

        scored = await async_client.get(f"/api/v1/evaluations/Account/{ACCOUNT_ID}")
        # intent 80 * 0.4, no employee count or signal recency
        assert scored.json()["score"] == 32

    @pytest.mark.asyncio
    async def test_export_then_import(self, async_client, backend):
        exported = (await async_client.get("/api/v1/config/export")).json()

        response = await async_client.post(
            "/api/v1/config/import",
            json={
                "riskRules": [],
                "priorityScoring": exported["priorityScoring"],
            },
            headers=ADMIN,
        )

        assert response.status_code == 200
        assert response.json()["riskRules"] == []
        assert response.json()["lastModified"]["by"] == "Dana Admin"

    @pytest.mark.asyncio
    async def test_import_rejects_unknown_operator(self, async_client, backend):
        exported = (await async_client.get("/api/v1/config/export")).json()
        rule = {
            "id": "r1",
            "objectType": "Account",
            "flag": "warning",
            "conditions": [{"field": "X", "operator": "LIKE", "value": 1}],
        }

        response = await async_client.post(
            "/api/v1/config/import",
            json={"riskRules": [rule], "priorityScoring": exported["priorityScoring"]},
            headers=ADMIN,
        )

        assert response.status_code == 422
        assert response.json()["type"] == "validation_error"

    @pytest.mark.asyncio
    async def test_reset(self, async_client, backend):
        response = await async_client.post("/api/v1/config/reset", headers=ADMIN)
        assert response.status_code == 200
        components = response.json()["priorityScoring"]["components"]
        assert [c["id"] for c in components] == [
            "comp_intent",
            "comp_employee_count",
            "comp_signal_recency",
        ]


class TestTierOverrideEndpoints:
    @pytest.mark.asyncio
    async def test_pin_and_evaluate(self, async_client, backend):
        response = await async_client.put(
            f"/api/v1/accounts/{ACCOUNT_ID}/tier-override",
            json={"tier": "cold", "reason": "On hold"},
            headers=ADMIN,
        )
        assert response.status_code == 200
        assert response.json()[ACCOUNT_ID]["tier"] == "cold"
        assert response.json()[ACCOUNT_ID]["overriddenBy"] == "Dana Admin"

        evaluation = (
            await async_client.get(f"/api/v1/evaluations/Account/{ACCOUNT_ID}")
        ).json()
        assert evaluation["tier"] == "cold"
        assert evaluation["computedTier"] == "warm"
        assert evaluation["tierOverridden"] is True

    @pytest.mark.asyncio
    async def test_null_tier_removes_pin(self, async_client, backend):
        await async_client.put(
            f"/api/v1/accounts/{ACCOUNT_ID}/tier-override", json={"tier": "hot"}
        )
        response = await async_client.put(
            f"/api/v1/accounts/{ACCOUNT_ID}/tier-override", json={"tier": None}
        )
        assert response.json() == {}

        listed = await async_client.get("/api/v1/accounts/tier-overrides")
        assert listed.json() == {}

    @pytest.mark.asyncio
    async def test_unknown_tier_returns_422(self, async_client, backend):
        response = await async_client.put(
            f"/api/v1/accounts/{ACCOUNT_ID}/tier-override", json={"tier": "lukewarm"}
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_database_outage_returns_503(self, async_client, backend):
        backend.tier_repo.upsert = AsyncMock(
            side_effect=OperationalError("INSERT", {}, Exception("down"))
        )
        response = await async_client.put(
            f"/api/v1/accounts/{ACCOUNT_ID}/tier-override", json={"tier": "hot"}
        )
        assert response.status_code == 503
        assert response.json() == {
            "detail": "Could not save tier override. Please try again.",
            "type": "config_store_unavailable",
        }
        assert backend.tier_repo.rollbacks == 1

        backend.tier_repo.get = AsyncMock(
            side_effect=OperationalError("SELECT", {}, Exception("down"))
        )
        evaluation = await async_client.get(f"/api/v1/evaluations/Account/{ACCOUNT_ID}")
        assert evaluation.status_code == 503
        assert evaluation.json()["type"] == "config_store_unavailable"
