from fastapi import APIRouter, Depends, Path, Query, Request

from crm_overlay.core.constants import DEFAULT_ROLE
from crm_overlay.core.rate_limit import limiter
from crm_overlay.schemas.common import RECORD_ID_PATTERN, ObjectType
from crm_overlay.schemas.evaluation import (
    BatchEvaluationRequest,
    BatchEvaluationResponse,
    EvaluationResult,
)
from crm_overlay.services.evaluation_service import EvaluationService
from crm_overlay.api.deps import get_evaluation_service

router = APIRouter(prefix="/evaluations", tags=["Evaluations"])


@router.get("/{object_type}/{record_id}", response_model=EvaluationResult)
async def evaluate_record(
    object_type: ObjectType,
    record_id: str = Path(..., pattern=RECORD_ID_PATTERN),
    role: str = Query(
        DEFAULT_ROLE,
        max_length=50,
        description="Role whose weights and thresholds apply; unknown roles use the defaults.",
    ),
    service: EvaluationService = Depends(get_evaluation_service),
) -> EvaluationResult:
    """Risk flags, priority score and tier for one CRM record.

    Business logic is delegated to :class:`EvaluationService`.
    """
    return await service.evaluate(record_id, object_type, role)


@router.post("/batch", response_model=BatchEvaluationResponse)
@limiter.limit("30/minute")
async def evaluate_batch(
    request: Request,
    request_body: BatchEvaluationRequest,
    service: EvaluationService = Depends(get_evaluation_service),
) -> BatchEvaluationResponse:
    """Evaluate many records against one configuration snapshot.

    Rate-limited to 30 requests/minute per IP; each batch may fan out
    to many CRM reads.
    """
    return await service.evaluate_batch(
        record_ids=request_body.record_ids,
        object_type=request_body.object_type,
        role=request_body.role,
    )
