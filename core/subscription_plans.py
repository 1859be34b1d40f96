# core/subscription_plans.py

"""
Paid subscription plans and what each one unlocks.
"""

from typing import Dict, Optional


SUBSCRIPTION_PLANS: Dict[str, Dict[str, object]] = {
    "basic": {
        "name": "Basic",
        "max_properties": 10,
        "max_users": 5,
        "advanced_reporting": False,
        "document_storage": True,
    },
    "standard": {
        "name": "Standard",
        "max_properties": 50,
        "max_users": 15,
        "advanced_reporting": True,
        "document_storage": True,
    },
    "premium": {
        "name": "Premium",
        "max_properties": 200,
        "max_users": 50,
        "advanced_reporting": True,
        "document_storage": True,
    },
}


def get_plan(plan_id: Optional[str]) -> Optional[Dict[str, object]]:
    """Plan definition, or None for a missing / unknown plan id."""
    if not plan_id:
        return None
    return SUBSCRIPTION_PLANS.get(plan_id)
