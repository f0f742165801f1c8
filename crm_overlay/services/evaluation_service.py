import logging
from collections import Counter
from typing import Any, Dict, List, Mapping, Optional

from crm_overlay.core.config import settings
from crm_overlay.core.constants import DEFAULT_ROLE, FLAG_SEVERITY
from crm_overlay.core.exceptions import BatchTooLargeError, RecordNotFoundError
from crm_overlay.schemas.common import Flag, ObjectType
from crm_overlay.schemas.evaluation import (
    BatchEvaluationResponse,
    EvaluationResult,
    RecordError,
)
from crm_overlay.services.config_store import ConfigSnapshot, ConfigStore
from crm_overlay.services.crm_client import CrmClient
from crm_overlay.services.priority_scoring import PriorityScoringEngine
from crm_overlay.services.risk_rules import RiskRuleEngine
from crm_overlay.services.tier_override_service import TierOverrideService

logger = logging.getLogger(__name__)


def _ordered_flags(flags) -> List[Flag]:
    return sorted(flags, key=lambda flag: FLAG_SEVERITY.get(Flag(flag).value, 99))


class EvaluationService:
    """Orchestrates risk-flag and priority-score evaluation for CRM records.

    Fetches the record from the CRM collaborator and the configuration
    from the :class:`ConfigStore`, then runs both engines.  Read-only
    with respect to CRM data.  Collaborator failures propagate as
    domain exceptions; data-quality issues never do.
    """

    def __init__(
        self,
        config_store: ConfigStore,
        crm_client: CrmClient,
        tier_overrides: Optional[TierOverrideService] = None,
        risk_engine: Optional[RiskRuleEngine] = None,
        scoring_engine: Optional[PriorityScoringEngine] = None,
    ) -> None:
        self._config_store = config_store
        self._crm = crm_client
        self._tier_overrides = tier_overrides
        self._risk_engine = risk_engine or RiskRuleEngine()
        self._scoring_engine = scoring_engine or PriorityScoringEngine()

    def evaluate_record(
        self,
        record_id: str,
        record: Mapping[str, Any],
        object_type: ObjectType,
        role: Optional[str],
        snapshot: ConfigSnapshot,
        tier_override: Optional[str] = None,
    ) -> EvaluationResult:
        """Evaluate an already-fetched record against a config snapshot."""
        role = role or DEFAULT_ROLE
        flags = self._risk_engine.evaluate_rules(snapshot.risk_rules, record, object_type)
        scored = self._scoring_engine.compute_score(
            snapshot.priority_scoring, record, role
        )
        return EvaluationResult(
            record_id=record_id,
            object_type=object_type,
            role=role,
            flags=_ordered_flags(flags),
            score=scored.score,
            tier=tier_override or scored.tier,
            computed_tier=scored.tier,
            tier_overridden=tier_override is not None,
            breakdown=scored.breakdown,
        )

    async def _override_for(
        self, record_id: str, object_type: ObjectType
    ) -> Optional[str]:
        if self._tier_overrides is None or ObjectType(object_type) != ObjectType.account:
            return None
        override = await self._tier_overrides.get_override(record_id)
        return override.tier.value if override else None

    async def evaluate(
        self,
        record_id: str,
        object_type: ObjectType,
        role: Optional[str] = DEFAULT_ROLE,
    ) -> EvaluationResult:
        record = await self._crm.fetch_record(record_id, object_type)
        snapshot = await self._config_store.snapshot()
        tier_override = await self._override_for(record_id, object_type)

        result = self.evaluate_record(
            record_id, record, object_type, role, snapshot, tier_override
        )
        logger.info(
            "Evaluated %s %s for role %s: score=%d tier=%s flags=%s",
            ObjectType(object_type).value,
            record_id,
            result.role,
            result.score,
            result.tier,
            [flag.value for flag in result.flags],
        )
        return result

    async def evaluate_batch(
        self,
        record_ids: List[str],
        object_type: ObjectType,
        role: Optional[str] = DEFAULT_ROLE,
    ) -> BatchEvaluationResponse:
        """Evaluate many records against a single configuration snapshot.

        Records the CRM reports as missing are listed in ``errors``; a
        CRM outage or configuration failure aborts the whole batch.
        """
        unique_ids = list(dict.fromkeys(record_ids))
        if len(unique_ids) > settings.BATCH_MAX_RECORDS:
            raise BatchTooLargeError(
                f"Batch of {len(unique_ids)} records exceeds the limit of "
                f"{settings.BATCH_MAX_RECORDS}"
            )

        snapshot = await self._config_store.snapshot()
        overrides: Dict[str, str] = {}
        if self._tier_overrides is not None and ObjectType(object_type) == ObjectType.account:
            overrides = {
                account_id: override.tier.value
                for account_id, override in (
                    await self._tier_overrides.get_overrides()
                ).items()
            }

        results: List[EvaluationResult] = []
        errors: List[RecordError] = []
        for record_id in unique_ids:
            try:
                record = await self._crm.fetch_record(record_id, object_type)
            except RecordNotFoundError as exc:
                errors.append(
                    RecordError(record_id=record_id, detail=exc.detail, type="record_not_found")
                )
                continue
            results.append(
                self.evaluate_record(
                    record_id,
                    record,
                    object_type,
                    role,
                    snapshot,
                    overrides.get(record_id),
                )
            )

        tier_counts = dict(Counter(result.tier for result in results))
        logger.info(
            "Batch evaluation of %d %s records for role %s: tiers=%s, failed=%d",
            len(unique_ids),
            ObjectType(object_type).value,
            role or DEFAULT_ROLE,
            tier_counts,
            len(errors),
        )
        return BatchEvaluationResponse(
            results=results,
            errors=errors,
            total=len(unique_ids),
            failed=len(errors),
            tier_counts=tier_counts,
        )
