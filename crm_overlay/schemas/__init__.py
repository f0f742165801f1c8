"""Pydantic schemas package – re-exports for convenience."""

# Common enums
from crm_overlay.schemas.common import (
    ObjectType as ObjectType,
    Operator as Operator,
    Logic as Logic,
    Flag as Flag,
    Tier as Tier,
    CamelModel as CamelModel,
    SuccessResponse as SuccessResponse,
)

# Risk-rule schemas
from crm_overlay.schemas.risk_rule import (
    Condition as Condition,
    ConditionIn as ConditionIn,
    RiskRule as RiskRule,
    RiskRuleIn as RiskRuleIn,
    RiskRulesUpdate as RiskRulesUpdate,
)

# Priority-scoring schemas
from crm_overlay.schemas.priority import (
    ScoreRange as ScoreRange,
    PriorityComponent as PriorityComponent,
    TierRange as TierRange,
    TierThresholds as TierThresholds,
    RoleConfig as RoleConfig,
    PriorityScoringConfig as PriorityScoringConfig,
    ComponentBreakdown as ComponentBreakdown,
    ScoreResult as ScoreResult,
)

# Whole-configuration schemas
from crm_overlay.schemas.config import (
    AppConfig as AppConfig,
    ConfigImport as ConfigImport,
    LastModified as LastModified,
    PriorityScoringUpdate as PriorityScoringUpdate,
    RiskRulesResponse as RiskRulesResponse,
    PriorityScoringResponse as PriorityScoringResponse,
)

# Evaluation schemas
from crm_overlay.schemas.evaluation import (
    EvaluationResult as EvaluationResult,
    BatchEvaluationRequest as BatchEvaluationRequest,
    BatchEvaluationResponse as BatchEvaluationResponse,
    RecordError as RecordError,
)

# Tier-override schemas
from crm_overlay.schemas.tier_override import (
    TierOverrideUpdate as TierOverrideUpdate,
    AccountTierOverrideOut as AccountTierOverrideOut,
)
