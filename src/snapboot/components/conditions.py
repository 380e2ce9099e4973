"""
Property conditions and activators.

Conditions express "activate when property X has value Y" style rules.
A :class:`PropertyActivator` wraps a condition so that the auto-configuration
engine can veto a built-in component:

    auto_config.add_activator(
        PropertyActivator("web", conditional_on_property("features.http", "on"))
    )
"""
from dataclasses import dataclass
from enum import Enum
from typing import Any, TYPE_CHECKING

if TYPE_CHECKING:
    from ..config.properties import PropertySource


class ConditionOperator(str, Enum):
    EQUALS = "equals"
    NOT_EQUALS = "not-equals"
    EXISTS = "exists"
    NOT_EXISTS = "not-exists"


@dataclass(frozen=True)
class PropertyCondition:
    key: str
    value: Any = None
    operator: ConditionOperator = ConditionOperator.EQUALS

    def matches(self, props: "PropertySource") -> bool:
        actual, exists = props.get_property(self.key)
        operator = ConditionOperator(self.operator)

        if operator is ConditionOperator.EXISTS:
            return exists
        if operator is ConditionOperator.NOT_EXISTS:
            return not exists
        if operator is ConditionOperator.EQUALS:
            return exists and _same(actual, self.value)
        return not exists or not _same(actual, self.value)


def _same(actual: Any, expected: Any) -> bool:
    # Environment variables arrive as strings; compare textually as well.
    if actual == expected:
        return True
    if isinstance(expected, bool) and isinstance(actual, str):
        return actual.lower() == str(expected).lower()
    return str(actual) == str(expected)


def conditional_on_property(key: str, value: Any) -> PropertyCondition:
    """Condition that holds when ``key`` equals ``value``."""
    return PropertyCondition(key, value, ConditionOperator.EQUALS)


def conditional_on_property_exists(key: str) -> PropertyCondition:
    """Condition that holds when ``key`` is set."""
    return PropertyCondition(key, operator=ConditionOperator.EXISTS)


def conditional_on_missing_property(key: str) -> PropertyCondition:
    """Condition that holds when ``key`` is not set."""
    return PropertyCondition(key, operator=ConditionOperator.NOT_EXISTS)


class PropertyActivator:
    """Activator for ``component_type`` driven by property conditions; all must hold."""

    def __init__(self, component_type: str, *conditions: PropertyCondition) -> None:
        self.component_type = component_type
        self.conditions = conditions

    def should_activate(self, props: "PropertySource") -> bool:
        return all(condition.matches(props) for condition in self.conditions)

    def __repr__(self) -> str:
        return f"PropertyActivator({self.component_type!r}, {len(self.conditions)} conditions)"
