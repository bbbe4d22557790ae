"""Eligibility rules package."""

from charter.rules.base import Rule, get_registered_rules, register_rule

__all__ = ["get_registered_rules", "register_rule", "Rule"]
