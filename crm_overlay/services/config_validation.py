"""Write-time validation of the configuration documents.

Evaluation never validates and tolerates whatever is stored.  These
checks run before a document is persisted so that, in normal operation,
the stored configuration already satisfies its invariants.
"""

import logging
from collections import Counter
from typing import Iterable, List, Optional

from crm_overlay.core.config import settings
from crm_overlay.core.constants import (
    SCORE_MAX,
    SCORE_MIN,
    TIER_PRIORITY_ORDER,
    TOTAL_WEIGHT,
    VALID_OPERATORS,
)
from crm_overlay.core.exceptions import ConfigValidationError
from crm_overlay.schemas.priority import PriorityScoringConfig, TierThresholds
from crm_overlay.schemas.risk_rule import RiskRule

logger = logging.getLogger(__name__)


def _format_total(total: float) -> str:
    return f"{total:g}"


def _duplicates(ids: Iterable[str]) -> List[str]:
    return sorted(key for key, count in Counter(ids).items() if count > 1)


def validate_risk_rules(rules: List[RiskRule]) -> None:
    """Raise :class:`ConfigValidationError` if *rules* cannot be saved.

    Active rules need at least one condition and every one of their
    conditions needs a field name.  Fields are not checked against the
    CRM schema; inactive rules may be incomplete drafts, but every
    condition, active or not, must use a known operator.
    """
    errors: List[str] = []

    duplicate_ids = _duplicates(rule.id for rule in rules)
    if duplicate_ids:
        errors.append(f"Duplicate rule ids: {', '.join(duplicate_ids)}")

    for rule in rules:
        for position, condition in enumerate(rule.conditions, start=1):
            if condition.operator not in VALID_OPERATORS:
                errors.append(
                    f"Rule '{rule.id}' condition {position} has unknown operator "
                    f"'{condition.operator}'"
                )
        if not rule.active:
            continue
        if not rule.conditions:
            errors.append(f"Active rule '{rule.id}' must have at least one condition")
            continue
        for position, condition in enumerate(rule.conditions, start=1):
            if not (condition.field or "").strip():
                errors.append(
                    f"Active rule '{rule.id}' condition {position} has no field"
                )

    if errors:
        raise ConfigValidationError("; ".join(errors))


def _check_weight_sum(label: str, total: float, tolerance: float) -> Optional[str]:
    if abs(total - TOTAL_WEIGHT) > tolerance:
        return (
            f"{label} component weights must sum to 100%. "
            f"Current total: {_format_total(total)}%"
        )
    return None


def _check_thresholds(label: str, thresholds: TierThresholds) -> List[str]:
    errors = []
    for tier in TIER_PRIORITY_ORDER:
        tier_range = getattr(thresholds, tier)
        if tier_range is None:
            errors.append(f"{label} thresholds are missing the '{tier}' tier")
            continue
        if tier_range.min > tier_range.max:
            errors.append(f"{label} '{tier}' threshold min is greater than max")
        if tier_range.min < SCORE_MIN or tier_range.max > SCORE_MAX:
            errors.append(f"{label} '{tier}' threshold must lie within 0-100")
    return errors


def find_threshold_issues(thresholds: TierThresholds) -> List[str]:
    """Describe integer scores in 0–100 that are uncovered or multiply covered.

    Gaps and overlaps are legal (gaps resolve to ``"unclassified"``,
    overlaps to the hottest tier), so these are reported, not rejected.
    """
    gaps, overlaps = [], []
    for score in range(SCORE_MIN, SCORE_MAX + 1):
        covering = [
            tier
            for tier in TIER_PRIORITY_ORDER
            if getattr(thresholds, tier) is not None
            and getattr(thresholds, tier).contains(score)
        ]
        if not covering:
            gaps.append(score)
        elif len(covering) > 1:
            overlaps.append(score)

    issues = []
    if gaps:
        issues.append(f"scores not covered by any tier: {_ranges(gaps)}")
    if overlaps:
        issues.append(f"scores covered by more than one tier: {_ranges(overlaps)}")
    return issues


def _ranges(scores: List[int]) -> str:
    spans, start, previous = [], scores[0], scores[0]
    for score in scores[1:]:
        if score != previous + 1:
            spans.append((start, previous))
            start = score
        previous = score
    spans.append((start, previous))
    return ", ".join(str(a) if a == b else f"{a}-{b}" for a, b in spans)


def validate_priority_scoring(
    config: PriorityScoringConfig, tolerance: Optional[float] = None
) -> None:
    """Raise :class:`ConfigValidationError` if *config* cannot be saved.

    The default component weights must sum to 100 (within *tolerance*),
    and so must every role override with a non-empty weight map.
    """
    if tolerance is None:
        tolerance = settings.WEIGHT_SUM_TOLERANCE
    errors: List[str] = []

    duplicate_ids = _duplicates(component.id for component in config.components)
    if duplicate_ids:
        errors.append(f"Duplicate component ids: {', '.join(duplicate_ids)}")

    for component in config.components:
        if not SCORE_MIN <= component.weight <= TOTAL_WEIGHT:
            errors.append(f"Component '{component.id}' weight must be within 0-100")
        for score_range in component.score_ranges or []:
            if score_range.min > score_range.max:
                errors.append(
                    f"Component '{component.id}' has a score range with min > max"
                )

    total = sum(component.weight for component in config.components)
    weight_error = _check_weight_sum("Default", total, tolerance)
    if weight_error:
        errors.append(weight_error)

    errors.extend(_check_thresholds("Default", config.thresholds))

    component_ids = {component.id for component in config.components}
    for role, role_config in (config.role_configs or {}).items():
        if not role_config.has_override:
            continue
        label = role.upper()
        weights = role_config.component_weights
        if any(not SCORE_MIN <= weight <= TOTAL_WEIGHT for weight in weights.values()):
            errors.append(f"{label} component weights must be within 0-100")
        weight_error = _check_weight_sum(label, sum(weights.values()), tolerance)
        if weight_error:
            errors.append(weight_error)
        if role_config.thresholds is not None:
            errors.extend(_check_thresholds(label, role_config.thresholds))

        unknown = sorted(set(weights) - component_ids)
        if unknown:
            logger.warning(
                "Role %s weights reference unknown components: %s",
                role,
                ", ".join(unknown),
            )

    if errors:
        raise ConfigValidationError("; ".join(errors))

    for issue in find_threshold_issues(config.thresholds):
        logger.warning("Default tier thresholds: %s", issue)
