import logging
from typing import Any, Iterable, List, Mapping, Set

from crm_overlay.schemas.common import Flag, Logic, ObjectType
from crm_overlay.schemas.risk_rule import RiskRule
from crm_overlay.services import condition_evaluator

logger = logging.getLogger(__name__)


class RiskRuleEngine:
    """Evaluate admin-authored risk rules against a CRM record.

    Only ``active`` rules for the record's object type are considered.
    A rule's conditions are reduced with its ``logic``:

        - ``AND``  fires when every condition holds (stops at first miss)
        - ``OR``   fires when any condition holds (stops at first hit)

    A rule without conditions never fires.  Evaluation is read-only and
    deterministic for a given (rules, record) pair.
    """

    def rule_fires(self, rule: RiskRule, record: Mapping[str, Any]) -> bool:
        if not rule.conditions:
            return False

        results = (
            condition_evaluator.evaluate(condition, record)
            for condition in rule.conditions
        )
        if rule.logic == Logic.and_:
            return all(results)
        if rule.logic == Logic.or_:
            return any(results)

        logger.warning("Rule %s has unsupported logic %r", rule.id, rule.logic)
        return False

    def triggered_rules(
        self,
        rules: Iterable[RiskRule],
        record: Mapping[str, Any],
        object_type: ObjectType,
    ) -> List[RiskRule]:
        """Return the applicable rules that fire, in configured order."""
        object_type = ObjectType(object_type)
        return [
            rule
            for rule in rules
            if rule.active
            and rule.object_type == object_type
            and self.rule_fires(rule, record)
        ]

    def evaluate_rules(
        self,
        rules: Iterable[RiskRule],
        record: Mapping[str, Any],
        object_type: ObjectType,
    ) -> Set[Flag]:
        """Return the set of flags raised by *rules* for *record*."""
        fired = self.triggered_rules(rules, record, object_type)
        if fired:
            logger.debug(
                "Rules fired for %s record: %s",
                ObjectType(object_type).value,
                ", ".join(rule.id for rule in fired),
            )
        return {rule.flag for rule in fired}
