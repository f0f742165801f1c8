import pytest

from crm_overlay.core.default_config import DEFAULT_RISK_RULES
from crm_overlay.schemas.common import Flag, ObjectType
from crm_overlay.schemas.risk_rule import RiskRule
from crm_overlay.services.risk_rules import RiskRuleEngine


def _rule(**overrides) -> RiskRule:
    data = {
        "id": "rule_low_health",
        "name": "Low Health",
        "objectType": "Account",
        "conditions": [
            {"field": "Current_Gainsight_Score__c", "operator": "<", "value": 60}
        ],
        "logic": "AND",
        "flag": "at-risk",
        "active": True,
    }
    data.update(overrides)
    return RiskRule.model_validate(data)


@pytest.fixture
def engine() -> RiskRuleEngine:
    return RiskRuleEngine()


class TestEvaluateRules:
    """Verify which flags a rule set raises for a record."""

    @pytest.mark.parametrize("health,expected", [(35, {Flag.critical}), (45, set())])
    def test_critical_health_rule(self, engine: RiskRuleEngine, health, expected):
        rule = _rule(
            flag="critical",
            conditions=[
                {"field": "Current_Gainsight_Score__c", "operator": "<", "value": 40}
            ],
        )
        flags = engine.evaluate_rules(
            [rule], {"Current_Gainsight_Score__c": health}, ObjectType.account
        )
        assert flags == expected

    def test_low_health_account_is_flagged(self, engine: RiskRuleEngine):
        """An account with health 55 against a `< 60` rule is at-risk."""
        flags = engine.evaluate_rules(
            [_rule()], {"Current_Gainsight_Score__c": 55}, ObjectType.account
        )
        assert flags == {Flag.at_risk}

    def test_healthy_account_is_not_flagged(self, engine: RiskRuleEngine):
        flags = engine.evaluate_rules(
            [_rule()], {"Current_Gainsight_Score__c": 75}, ObjectType.account
        )
        assert flags == set()

    def test_inactive_rule_is_ignored(self, engine: RiskRuleEngine):
        flags = engine.evaluate_rules(
            [_rule(active=False)], {"Current_Gainsight_Score__c": 10}, ObjectType.account
        )
        assert flags == set()

    def test_rule_for_other_object_type_is_ignored(self, engine: RiskRuleEngine):
        flags = engine.evaluate_rules(
            [_rule()], {"Current_Gainsight_Score__c": 10}, ObjectType.opportunity
        )
        assert flags == set()

    def test_object_type_accepts_plain_string(self, engine: RiskRuleEngine):
        flags = engine.evaluate_rules(
            [_rule()], {"Current_Gainsight_Score__c": 10}, "Account"
        )
        assert flags == {Flag.at_risk}

    def test_duplicate_flags_collapse(self, engine: RiskRuleEngine):
        rules = [_rule(id="a"), _rule(id="b")]
        flags = engine.evaluate_rules(
            rules, {"Current_Gainsight_Score__c": 10}, ObjectType.account
        )
        assert flags == {Flag.at_risk}

    def test_multiple_flags_are_collected(self, engine: RiskRuleEngine):
        rules = [
            _rule(id="a"),
            _rule(
                id="b",
                flag="critical",
                conditions=[
                    {"field": "Current_Gainsight_Score__c", "operator": "<", "value": 20}
                ],
            ),
        ]
        flags = engine.evaluate_rules(
            rules, {"Current_Gainsight_Score__c": 10}, ObjectType.account
        )
        assert flags == {Flag.at_risk, Flag.critical}

    def test_empty_rule_set(self, engine: RiskRuleEngine):
        assert engine.evaluate_rules([], {"x": 1}, ObjectType.account) == set()


class TestRuleLogic:
    """Verify AND / OR reduction and the no-conditions edge case."""

    def test_rule_without_conditions_never_fires(self, engine: RiskRuleEngine):
        """An empty AND would be vacuously true; it must not fire."""
        assert engine.rule_fires(_rule(conditions=[]), {}) is False
        assert engine.rule_fires(_rule(conditions=[], logic="OR"), {}) is False

    def test_and_requires_every_condition(self, engine: RiskRuleEngine):
        rule = _rule(
            objectType="Opportunity",
            conditions=[
                {"field": "Days_Since_Last_Modified__c", "operator": ">", "value": 14},
                {"field": "MEDDPICC_Overall_Score__c", "operator": "<", "value": 60},
            ],
        )
        stale_weak = {"Days_Since_Last_Modified__c": 20, "MEDDPICC_Overall_Score__c": 40}
        stale_strong = {"Days_Since_Last_Modified__c": 20, "MEDDPICC_Overall_Score__c": 80}
        assert engine.rule_fires(rule, stale_weak) is True
        assert engine.rule_fires(rule, stale_strong) is False

    def test_or_requires_any_condition(self, engine: RiskRuleEngine):
        rule = _rule(
            logic="OR",
            conditions=[
                {"field": "Current_Gainsight_Score__c", "operator": "<", "value": 30},
                {"field": "Churn_Risk__c", "operator": "=", "value": "High"},
            ],
        )
        assert engine.rule_fires(rule, {"Churn_Risk__c": "High"}) is True
        assert engine.rule_fires(rule, {"Current_Gainsight_Score__c": 25}) is True
        assert engine.rule_fires(rule, {"Current_Gainsight_Score__c": 90}) is False

    def test_missing_field_does_not_fire_and_rule(self, engine: RiskRuleEngine):
        assert engine.rule_fires(_rule(), {}) is False

    def test_unknown_operator_only_fails_its_own_condition(self, engine: RiskRuleEngine):
        rule = _rule(
            flag="critical",
            logic="OR",
            conditions=[
                {"field": "Score__c", "operator": "<", "value": 40},
                {"field": "Name", "operator": "LIKE", "value": "x"},
            ],
        )
        flags = engine.evaluate_rules([rule], {"Score__c": 35}, ObjectType.account)
        assert flags == {Flag.critical}
        assert engine.rule_fires(rule, {"Score__c": 50, "Name": "x"}) is False


class TestTriggeredRules:
    def test_returns_fired_rules_in_configured_order(self, engine: RiskRuleEngine):
        rules = [_rule(id="first"), _rule(id="skipped", active=False), _rule(id="second")]
        fired = engine.triggered_rules(
            rules, {"Current_Gainsight_Score__c": 5}, ObjectType.account
        )
        assert [rule.id for rule in fired] == ["first", "second"]


class TestDefaultRules:
    """Verify the seeded rule set behaves as documented."""

    def test_stale_opportunity_is_critical_and_at_risk(self, engine: RiskRuleEngine):
        rules = [RiskRule.model_validate(rule) for rule in DEFAULT_RISK_RULES]
        record = {"Days_Since_Last_Modified__c": 45, "MEDDPICC_Overall_Score__c": 30}
        flags = engine.evaluate_rules(rules, record, ObjectType.opportunity)
        assert flags == {Flag.at_risk, Flag.critical}

    def test_fresh_opportunity_is_clean(self, engine: RiskRuleEngine):
        rules = [RiskRule.model_validate(rule) for rule in DEFAULT_RISK_RULES]
        record = {"Days_Since_Last_Modified__c": 3, "MEDDPICC_Overall_Score__c": 30}
        assert engine.evaluate_rules(rules, record, ObjectType.opportunity) == set()
