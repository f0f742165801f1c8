import logging
from typing import Any, Mapping, Optional

from crm_overlay.core.constants import SCORE_MAX, SCORE_MIN
from crm_overlay.schemas.priority import PriorityComponent
from crm_overlay.services.condition_evaluator import to_number

logger = logging.getLogger(__name__)


def clamp_score(value: float) -> float:
    return min(float(SCORE_MAX), max(float(SCORE_MIN), value))


class ComponentScorer:
    """Compute one priority component's 0–100 sub-score for a record.

    Two input modes are supported:

        - **score ranges**  the value of ``component.field`` is bucketed
          into the first configured range with ``min <= value <= max``
          (both ends inclusive) and that range's ``score`` is returned
        - **direct field**  the numeric value of ``component.field`` is
          already a score and is clamped into 0–100

    Score ranges take precedence when a component defines both.  Any
    value that cannot be resolved scores ``0`` rather than raising.
    """

    def _field_value(
        self, component: PriorityComponent, record: Mapping[str, Any]
    ) -> Optional[float]:
        if not component.field or not isinstance(record, Mapping):
            return None
        return to_number(record.get(component.field))

    def score(self, component: PriorityComponent, record: Mapping[str, Any]) -> float:
        value = self._field_value(component, record)

        if component.score_ranges:
            if value is None:
                return 0.0
            for score_range in component.score_ranges:
                if score_range.min <= value <= score_range.max:
                    return clamp_score(score_range.score)
            logger.debug(
                "Component %s: value %s outside all score ranges", component.id, value
            )
            return 0.0

        if value is None:
            return 0.0
        return clamp_score(value)
