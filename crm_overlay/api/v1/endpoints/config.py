from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Request

from crm_overlay.core.rate_limit import limiter
from crm_overlay.schemas.config import (
    AppConfig,
    ConfigImport,
    PriorityScoringResponse,
    PriorityScoringUpdate,
    RiskRulesResponse,
)
from crm_overlay.schemas.priority import PriorityScoringConfig
from crm_overlay.schemas.risk_rule import RiskRule, RiskRulesUpdate
from crm_overlay.services.config_store import ConfigStore
from crm_overlay.api.deps import get_config_store, get_current_user_name

router = APIRouter(prefix="/config", tags=["Configuration"])


@router.get("", response_model=AppConfig)
async def get_config(
    store: ConfigStore = Depends(get_config_store),
) -> AppConfig:
    """Both configuration documents plus who last modified them."""
    return await store.get_config()


@router.get("/export")
async def export_config(
    store: ConfigStore = Depends(get_config_store),
) -> Dict[str, Any]:
    """Full configuration as a JSON document suitable for ``/import``."""
    return await store.export_config()


@router.post("/import", response_model=AppConfig)
@limiter.limit("5/minute")
async def import_config(
    request: Request,
    document: ConfigImport,
    store: ConfigStore = Depends(get_config_store),
    user_name: str = Depends(get_current_user_name),
) -> AppConfig:
    """Replace both documents.  Nothing is saved unless both validate."""
    return await store.import_config(document, modified_by=user_name)


@router.post("/reset", response_model=AppConfig)
async def reset_config(
    store: ConfigStore = Depends(get_config_store),
    user_name: str = Depends(get_current_user_name),
) -> AppConfig:
    return await store.reset_to_defaults(modified_by=user_name)


@router.get("/risk-rules", response_model=List[RiskRule])
async def get_risk_rules(
    store: ConfigStore = Depends(get_config_store),
) -> List[RiskRule]:
    return await store.get_risk_rules()


@router.put("/risk-rules", response_model=RiskRulesResponse)
async def update_risk_rules(
    update: RiskRulesUpdate,
    store: ConfigStore = Depends(get_config_store),
    user_name: str = Depends(get_current_user_name),
) -> RiskRulesResponse:
    """Replace the risk-rule set.

    Active rules must have at least one condition, each with a field.
    """
    rules = await store.update_risk_rules(update.rules, modified_by=user_name)
    return RiskRulesResponse(data=rules)


@router.get("/priority-scoring", response_model=PriorityScoringConfig)
async def get_priority_scoring(
    store: ConfigStore = Depends(get_config_store),
) -> PriorityScoringConfig:
    return await store.get_priority_scoring()


@router.put("/priority-scoring", response_model=PriorityScoringResponse)
async def update_priority_scoring(
    update: PriorityScoringUpdate,
    store: ConfigStore = Depends(get_config_store),
    user_name: str = Depends(get_current_user_name),
) -> PriorityScoringResponse:
    """Replace the priority-scoring configuration.

    Default weights, and the weights of every role with an override,
    must sum to 100; otherwise the request fails with 422 and nothing
    is saved.
    """
    config = await store.update_priority_scoring(
        update.priority_scoring, modified_by=user_name
    )
    return PriorityScoringResponse(data=config)
