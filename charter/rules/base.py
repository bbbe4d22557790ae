"""Eligibility rule engine base: protocol, registry, and decorators."""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional, Protocol

from charter.knobs import PricingKnobs
from charter.models import RejectReason, Trip

if TYPE_CHECKING:
    from charter.eligibility import EligibilityContext


class Rule(Protocol):
    """Protocol for eligibility rules.

    A rule returns the first reason the trip is inadmissible, or None.
    """

    rule_id: str
    rule_name: str

    def check(
        self, trip: Trip, knobs: PricingKnobs, context: "EligibilityContext"
    ) -> Optional[RejectReason]: ...


# Global rule registry, evaluated in registration order
_RULE_REGISTRY: list[type] = []


def register_rule(cls: type) -> type:
    """Decorator to register a rule class."""
    if cls not in _RULE_REGISTRY:
        _RULE_REGISTRY.append(cls)
    return cls


def get_registered_rules() -> list[type]:
    """Return all registered rule classes."""
    return list(_RULE_REGISTRY)
