from typing import Any, Dict, List


DEFAULT_RISK_RULES: List[Dict[str, Any]] = [
    {
        "id": "rule_low_health",
        "name": "Low Health Score",
        "objectType": "Account",
        "conditions": [
            {"field": "Current_Gainsight_Score__c", "operator": "<", "value": 60},
        ],
        "logic": "AND",
        "flag": "at-risk",
        "active": True,
    },
    {
        "id": "rule_stuck_deal",
        "name": "Stuck in Stage",
        "objectType": "Opportunity",
        "conditions": [
            # days since last modification
            {"field": "Days_Since_Last_Modified__c", "operator": ">", "value": 14},
            {"field": "MEDDPICC_Overall_Score__c", "operator": "<", "value": 60},
        ],
        "logic": "AND",
        "flag": "at-risk",
        "active": True,
    },
    {
        "id": "rule_critical_deal",
        "name": "Critical Deal Risk",
        "objectType": "Opportunity",
        "conditions": [
            {"field": "Days_Since_Last_Modified__c", "operator": ">", "value": 30},
        ],
        "logic": "OR",
        "flag": "critical",
        "active": True,
    },
]


DEFAULT_PRIORITY_SCORING: Dict[str, Any] = {
    "components": [
        {
            "id": "comp_intent",
            "name": "Intent Score",
            "weight": 40,
            "field": "accountIntentScore6sense__c",
        },
        {
            "id": "comp_employee_count",
            "name": "Employee Count",
            "weight": 30,
            "field": "Clay_Employee_Count__c",
            "scoreRanges": [
                {"min": 200, "max": 2000, "score": 100},
                {"min": 100, "max": 200, "score": 75},
                {"min": 50, "max": 100, "score": 50},
                {"min": 2000, "max": 999999, "score": 60},
            ],
        },
        {
            "id": "comp_signal_recency",
            "name": "Signal Recency",
            "weight": 30,
            "field": "Days_Since_Last_Signal__c",
            "scoreRanges": [
                {"min": 0, "max": 7, "score": 100},
                {"min": 7, "max": 14, "score": 75},
                {"min": 14, "max": 30, "score": 50},
                {"min": 30, "max": 9999, "score": 25},
            ],
        },
    ],
    "thresholds": {
        "hot": {"min": 85, "max": 100},
        "warm": {"min": 65, "max": 84},
        "cool": {"min": 40, "max": 64},
        "cold": {"min": 0, "max": 39},
    },
    "roleConfigs": {},
}
