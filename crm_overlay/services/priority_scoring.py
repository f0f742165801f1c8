import logging
import math
from typing import Any, Dict, Mapping, Optional

from crm_overlay.core.constants import (
    DEFAULT_ROLE,
    SCORE_MAX,
    SCORE_MIN,
    TIER_PRIORITY_ORDER,
    TOTAL_WEIGHT,
    UNCLASSIFIED_TIER,
)
from crm_overlay.schemas.priority import (
    ComponentBreakdown,
    PriorityScoringConfig,
    RoleConfig,
    ScoreResult,
    TierThresholds,
)
from crm_overlay.services.component_scorer import ComponentScorer

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, with .5 always rounding up."""
    return int(math.floor(value + 0.5))


class PriorityScoringEngine:
    """Compute the composite priority score and tier for a record.

    Weights and tier thresholds are resolved per role with a two-level
    lookup: the role's override when it has one, otherwise the
    role-agnostic defaults.  A role only has an override when its
    ``componentWeights`` map is non-empty.  Inside an override, a
    component missing from the map gets weight ``0``; it does **not**
    inherit its default weight.

    The engine is stateless: the same (config, record, role) always
    produces the same result.
    """

    def __init__(self, scorer: Optional[ComponentScorer] = None) -> None:
        self._scorer = scorer or ComponentScorer()

    @staticmethod
    def _role_override(
        config: PriorityScoringConfig, role: Optional[str]
    ) -> Optional[RoleConfig]:
        if not role or role == DEFAULT_ROLE:
            return None
        role_config = (config.role_configs or {}).get(role)
        if role_config is None:
            logger.debug("No role config for %r, using defaults", role)
            return None
        if not role_config.has_override:
            return None
        return role_config

    def resolve_weights(
        self, config: PriorityScoringConfig, role: Optional[str]
    ) -> Dict[str, float]:
        """Return ``{component_id: weight}`` in effect for *role*."""
        override = self._role_override(config, role)
        if override is None:
            return {component.id: component.weight for component in config.components}
        return {
            component.id: override.component_weights.get(component.id, 0)
            for component in config.components
        }

    def resolve_thresholds(
        self, config: PriorityScoringConfig, role: Optional[str]
    ) -> TierThresholds:
        """Return the tier thresholds in effect for *role*."""
        override = self._role_override(config, role)
        if override is not None and override.thresholds is not None:
            return override.thresholds
        return config.thresholds

    @staticmethod
    def resolve_tier(score: float, thresholds: TierThresholds) -> str:
        """Return the first tier (hot, warm, cool, cold) containing *score*.

        Ranges are not required to be exhaustive; a score outside every
        configured range resolves to ``"unclassified"``.
        """
        for tier in TIER_PRIORITY_ORDER:
            tier_range = getattr(thresholds, tier, None)
            if tier_range is not None and tier_range.contains(score):
                return tier
        logger.warning("Score %s is not covered by any tier threshold", score)
        return UNCLASSIFIED_TIER

    def compute_score(
        self,
        config: PriorityScoringConfig,
        record: Mapping[str, Any],
        role: Optional[str] = DEFAULT_ROLE,
    ) -> ScoreResult:
        weights = self.resolve_weights(config, role)

        total = 0.0
        breakdown = []
        for component in config.components:
            raw_score = self._scorer.score(component, record)
            weight = weights.get(component.id, 0)
            contribution = raw_score * weight / TOTAL_WEIGHT
            total += contribution
            breakdown.append(
                ComponentBreakdown(
                    component_id=component.id,
                    name=component.name,
                    raw_score=raw_score,
                    weight=weight,
                    contribution=contribution,
                )
            )

        if not math.isfinite(total):
            logger.warning("Composite score is not finite for role %r, using 0", role)
            total = 0.0

        score = min(SCORE_MAX, max(SCORE_MIN, round_half_up(total)))
        tier = self.resolve_tier(score, self.resolve_thresholds(config, role))
        return ScoreResult(score=score, tier=tier, breakdown=breakdown)
