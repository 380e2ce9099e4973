"""
Configuration schemas declared by component factories.

A :class:`ConfigSchema` documents which properties a factory reads, their
types and defaults, and which of them are required. Schemas are usually
derived from the pydantic settings model a factory validates against, see
:meth:`ConfigSchema.from_settings`.
"""
from typing import Any, Literal, Optional, TYPE_CHECKING

import pydantic

from ..config.properties import parse_bool, parse_int, parse_float

if TYPE_CHECKING:
    from ..config.properties import PropertySource

PropertyType = Literal["string", "bool", "int", "float"]

_PYTHON_TYPES: dict[type, PropertyType] = {
    str: "string",
    bool: "bool",
    int: "int",
    float: "float",
}


def parse_string(value: Any) -> Optional[str]:
    """Scalars are read as their text; mappings, sequences and None are not strings."""
    if isinstance(value, str):
        return value
    if isinstance(value, (bool, int, float)):
        return str(value)
    return None


_PARSERS = {
    "bool": parse_bool,
    "int": parse_int,
    "float": parse_float,
    "string": parse_string,
}


class PropertySchema(pydantic.BaseModel):
    type: PropertyType = "string"
    default: Any = None
    description: str = ""
    required: bool = False

    def coerce(self, value: Any) -> Any:
        """Coerce a raw property value; returns None when it cannot be coerced."""
        return _PARSERS[self.type](value)


class ConfigSchema(pydantic.BaseModel):
    required_properties: list[str] = pydantic.Field(default_factory=list)
    properties: dict[str, PropertySchema] = pydantic.Field(default_factory=dict)
    dependencies: list[str] = pydantic.Field(default_factory=list)

    @classmethod
    def from_settings(
            cls,
            prefix: str,
            model: type[pydantic.BaseModel],
            dependencies: Optional[list[str]] = None
    ) -> "ConfigSchema":
        """
        Build a schema from a pydantic settings model.

        Field ``port`` of a model registered under prefix ``web`` documents the
        property ``web.port``; a field alias replaces the field name in the key.

        :param prefix: Property key prefix.
        :param model: Settings model describing the properties.
        :param dependencies: Component names the factory depends on.
        """
        properties: dict[str, PropertySchema] = {}
        required: list[str] = []
        for name, field in model.model_fields.items():
            key = f"{prefix}.{field.alias or name}"
            is_required = field.is_required()
            properties[key] = PropertySchema(
                type=_PYTHON_TYPES.get(field.annotation, "string"),
                default=None if is_required else field.get_default(call_default_factory=True),
                description=field.description or "",
                required=is_required,
            )
            if is_required:
                required.append(key)
        return cls(
            required_properties=required,
            properties=properties,
            dependencies=list(dependencies or []),
        )

    def check(self, props: "PropertySource") -> list[str]:
        """
        Check a property source against the schema.

        :return: Human-readable violations; empty when the properties are valid.
        """
        violations = []
        for key in self.required_properties:
            if not props.has_property(key):
                violations.append(f"missing required property {key}")
        for key, schema in self.properties.items():
            value, exists = props.get_property(key)
            if exists and schema.coerce(value) is None:
                violations.append(f"property {key} is not a valid {schema.type}: {value!r}")
        return violations
