"""Risk-rule document schemas.

Stored rules are read leniently: a condition with an operator this
service does not know still loads and simply evaluates to ``False``.
Request bodies use the ``*In`` models, which only accept known
operators.
"""

from typing import Any, List, Optional

from pydantic import Field

from crm_overlay.schemas.common import CamelModel, Flag, Logic, ObjectType, Operator


class Condition(CamelModel):
    """Atomic comparison of one record field against a literal value."""

    field: str = ""
    operator: str = ""
    value: Any = None


class RiskRule(CamelModel):
    """Admin-defined condition set that attaches a flag when satisfied."""

    id: str = Field(..., min_length=1)
    name: str = ""
    object_type: ObjectType
    conditions: List[Condition] = Field(default_factory=list)
    logic: Logic = Logic.and_
    flag: Flag
    active: bool = True
    created_by: Optional[str] = None
    created_date: Optional[str] = None


class ConditionIn(Condition):
    operator: Operator


class RiskRuleIn(RiskRule):
    conditions: List[ConditionIn] = Field(default_factory=list)


class RiskRulesUpdate(CamelModel):
    """Request body for PUT /api/v1/config/risk-rules."""

    rules: List[RiskRuleIn]
