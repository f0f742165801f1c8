"""Orchestrated evaluation schemas."""

from typing import Dict, List

from pydantic import Field
from typing_extensions import Annotated

from crm_overlay.schemas.common import RECORD_ID_PATTERN, CamelModel, Flag, ObjectType
from crm_overlay.schemas.priority import ComponentBreakdown


class EvaluationResult(CamelModel):
    """Combined risk flags and priority score for one CRM record."""

    record_id: str
    object_type: ObjectType
    role: str
    flags: List[Flag] = Field(default_factory=list)
    score: int = Field(..., ge=0, le=100)
    tier: str
    computed_tier: str
    tier_overridden: bool = False
    breakdown: List[ComponentBreakdown] = Field(default_factory=list)


class BatchEvaluationRequest(CamelModel):
    """Request body for POST /api/v1/evaluations/batch."""

    object_type: ObjectType
    role: str = "default"
    record_ids: List[Annotated[str, Field(pattern=RECORD_ID_PATTERN)]] = Field(
        ..., min_length=1
    )


class RecordError(CamelModel):
    record_id: str
    detail: str
    type: str


class BatchEvaluationResponse(CamelModel):
    results: List[EvaluationResult] = Field(default_factory=list)
    errors: List[RecordError] = Field(default_factory=list)
    total: int
    failed: int = 0
    tier_counts: Dict[str, int] = Field(default_factory=dict)
