from typing import Dict, FrozenSet, Tuple

from crm_overlay.schemas.common import Flag, ObjectType, Operator, Tier

VALID_OBJECT_TYPES: FrozenSet[str] = frozenset(o.value for o in ObjectType)
VALID_OPERATORS: FrozenSet[str] = frozenset(o.value for o in Operator)
VALID_FLAGS: FrozenSet[str] = frozenset(f.value for f in Flag)

# Tiers are checked in this order; the first range containing the score wins
TIER_PRIORITY_ORDER: Tuple[str, ...] = (
    Tier.hot.value,
    Tier.warm.value,
    Tier.cool.value,
    Tier.cold.value,
)

# Returned when no configured tier range contains the composite score
UNCLASSIFIED_TIER: str = "unclassified"

# Role id that always resolves to the role-agnostic configuration
DEFAULT_ROLE: str = "default"

KNOWN_ROLES: FrozenSet[str] = frozenset(
    {"ae", "am", "csm", "admin", "executive", "sales-leader"}
)

# Display order for flags in orchestrated results (most severe first)
FLAG_SEVERITY: Dict[str, int] = {
    Flag.critical.value: 0,
    Flag.at_risk.value: 1,
    Flag.warning.value: 2,
}

SCORE_MIN: int = 0
SCORE_MAX: int = 100
TOTAL_WEIGHT: float = 100.0

# Keys of the two persisted configuration documents
RISK_RULES_KEY: str = "risk_rules"
PRIORITY_SCORING_KEY: str = "priority_scoring"
CONFIG_DOCUMENT_KEYS: FrozenSet[str] = frozenset({RISK_RULES_KEY, PRIORITY_SCORING_KEY})
