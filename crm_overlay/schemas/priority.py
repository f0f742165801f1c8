"""Priority-scoring document schemas.

The models describe the *shape* of the stored document only.  Invariants
(weights summing to 100, thresholds inside 0–100) are enforced when a
document is written, see
:func:`crm_overlay.services.config_validation.validate_priority_scoring`,
so that a stored document which predates a rule change still loads.
"""

from typing import Dict, List, Optional

from pydantic import Field

from crm_overlay.schemas.common import CamelModel


class ScoreRange(CamelModel):
    """Inclusive ``[min, max]`` bucket mapping a raw value to a sub-score."""

    min: float
    max: float
    score: float


class PriorityComponent(CamelModel):
    """One weighted input to the composite priority score."""

    id: str = Field(..., min_length=1)
    name: str = ""
    weight: float = 0
    field: Optional[str] = None
    score_ranges: Optional[List[ScoreRange]] = None


class TierRange(CamelModel):
    min: float
    max: float

    def contains(self, score: float) -> bool:
        return self.min <= score <= self.max


class TierThresholds(CamelModel):
    hot: Optional[TierRange] = None
    warm: Optional[TierRange] = None
    cool: Optional[TierRange] = None
    cold: Optional[TierRange] = None


class RoleConfig(CamelModel):
    """Role-specific replacement of default weights and thresholds.

    A role only overrides the defaults when ``component_weights`` is
    non-empty; an empty map inherits everything from the defaults.
    """

    component_weights: Dict[str, float] = Field(default_factory=dict)
    thresholds: Optional[TierThresholds] = None

    @property
    def has_override(self) -> bool:
        return bool(self.component_weights)


class PriorityScoringConfig(CamelModel):
    components: List[PriorityComponent] = Field(default_factory=list)
    thresholds: TierThresholds = Field(default_factory=TierThresholds)
    role_configs: Optional[Dict[str, RoleConfig]] = None


class ComponentBreakdown(CamelModel):
    """How much a single component contributed to a composite score."""

    component_id: str
    name: str
    raw_score: float
    weight: float
    contribution: float


class ScoreResult(CamelModel):
    score: int = Field(..., ge=0, le=100)
    tier: str
    breakdown: List[ComponentBreakdown] = Field(default_factory=list)
