"""
Schema helpers
Type predicates over resolved OpenAPI schema objects
"""

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

Schema = Dict[str, Any]


def schema_type(schema: Optional[Schema]) -> Optional[str]:
    """
    Get the primitive type of a schema

    OpenAPI 3.1 list types resolve to their first non-null entry; untyped
    schemas are inferred from ``properties``/``items``/``enum``.
    """
    if not schema:
        return None

    declared = schema.get("type")
    if isinstance(declared, list):
        declared = next((t for t in declared if t != "null"), None)
    if declared:
        return declared

    if "properties" in schema:
        return "object"
    if "items" in schema:
        return "array"
    enum = schema.get("enum")
    if enum and all(isinstance(value, str) for value in enum):
        return "string"
    return None


@dataclass(frozen=True)
class SchemaPredicate:
    """Named schema type filter"""
    name: str
    test: Callable[[Optional[Schema]], bool]

    def __call__(self, schema: Optional[Schema]) -> bool:
        return bool(schema) and self.test(schema)

    def __str__(self) -> str:
        return self.name


def _typed(expected: str) -> Callable[[Optional[Schema]], bool]:
    return lambda schema: schema_type(schema) == expected


NUMBER = SchemaPredicate("number", _typed("number"))
INTEGER = SchemaPredicate("integer", _typed("integer"))
STRING = SchemaPredicate("string", lambda schema: schema_type(schema) == "string" and schema.get("format") != "binary")
BOOLEAN = SchemaPredicate("boolean", _typed("boolean"))
OBJECT = SchemaPredicate("object", _typed("object"))
ARRAY = SchemaPredicate("array", _typed("array"))
ANY_PRIMITIVE = SchemaPredicate(
    "primitive",
    lambda schema: schema_type(schema) in ("number", "integer", "string", "boolean")
)


def matches_any(schema: Optional[Schema], predicates) -> bool:
    """Check if any predicate accepts the schema"""
    return any(predicate(schema) for predicate in predicates)


def get_number(schema: Schema, key: str) -> Optional[Any]:
    """Read a numeric constraint, ignoring booleans (OpenAPI 3.0 exclusive flags)"""
    value = schema.get(key)
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        return value
    return None


def get_minimum(schema: Schema) -> Optional[Any]:
    """Lowest accepted value, honouring OpenAPI 3.1 ``exclusiveMinimum``"""
    minimum = get_number(schema, "minimum")
    if minimum is None:
        minimum = get_number(schema, "exclusiveMinimum")
    return minimum


def get_maximum(schema: Schema) -> Optional[Any]:
    maximum = get_number(schema, "maximum")
    if maximum is None:
        maximum = get_number(schema, "exclusiveMaximum")
    return maximum


def get_length(schema: Schema, key: str) -> Optional[int]:
    value = schema.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


def effective_schema(schema: Optional[Schema], depth: int = 0) -> Schema:
    """
    Flatten composition keywords into a single schema

    ``allOf`` members are merged (properties and required lists combined),
    ``oneOf``/``anyOf`` use their first member.
    """
    if not schema or depth > 10:
        return schema or {}

    if "allOf" in schema:
        merged: Schema = {key: value for key, value in schema.items() if key != "allOf"}
        properties: Dict[str, Any] = dict(merged.get("properties", {}))
        required = list(merged.get("required", []))
        for member in schema["allOf"]:
            member = effective_schema(member, depth + 1)
            for key, value in member.items():
                if key == "properties":
                    properties.update(value)
                elif key == "required":
                    required.extend(name for name in value if name not in required)
                else:
                    merged.setdefault(key, value)
        if properties:
            merged["properties"] = properties
            merged.setdefault("type", "object")
        if required:
            merged["required"] = required
        return merged

    for keyword in ("oneOf", "anyOf"):
        members = schema.get(keyword)
        if members:
            base = {key: value for key, value in schema.items() if key != keyword}
            return {**effective_schema(members[0], depth + 1), **base}

    return schema
