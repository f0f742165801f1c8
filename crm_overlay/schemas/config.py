"""Whole-configuration schemas (GET /config, export, import)."""

from datetime import datetime
from typing import List, Optional

from crm_overlay.schemas.common import CamelModel, SuccessResponse
from crm_overlay.schemas.priority import PriorityScoringConfig
from crm_overlay.schemas.risk_rule import RiskRule, RiskRuleIn


class LastModified(CamelModel):
    by: str
    date: datetime


class AppConfig(CamelModel):
    """The two configuration documents read together."""

    risk_rules: List[RiskRule]
    priority_scoring: PriorityScoringConfig
    last_modified: Optional[LastModified] = None


class ConfigImport(CamelModel):
    """Request body for POST /api/v1/config/import.

    Both documents are required; a partial import is rejected during
    request parsing.
    """

    risk_rules: List[RiskRuleIn]
    priority_scoring: PriorityScoringConfig


class RiskRulesResponse(SuccessResponse):
    data: List[RiskRule]
    message: str = "Risk rules updated successfully"


class PriorityScoringResponse(SuccessResponse):
    data: PriorityScoringConfig
    message: str = "Priority scoring updated successfully"


class PriorityScoringUpdate(CamelModel):
    """Request body for PUT /api/v1/config/priority-scoring."""

    priority_scoring: PriorityScoringConfig
