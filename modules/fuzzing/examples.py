"""
Example Generator
Builds a valid looking payload template from a resolved schema
"""

import copy
import datetime
import math
from typing import Any

from .boundaries import generate_string
from .schemas import Schema, effective_schema, schema_type, get_length, get_maximum, get_minimum, get_number

MAX_DEPTH = 5
DEFAULT_STRING_LENGTH = 8

FORMAT_SAMPLES = {
    "email": "contractfuzz@example.com",
    "idn-email": "contractfuzz@example.com",
    "uri": "https://example.com",
    "url": "https://example.com",
    "date": "2020-01-01",
    "date-time": "2020-01-01T10:00:00Z",
    "time": "10:00:00",
    "uuid": "123e4567-e89b-12d3-a456-426614174000",
    "ipv4": "10.10.10.10",
    "ip": "10.10.10.10",
    "ipv6": "2001:db8:85a3::8a2e:370:7334",
    "hostname": "example.com",
    "byte": "Y29udHJhY3RmdXp6",
    "password": "Contract#Fuzz1",
}


def json_safe(value: Any) -> Any:
    """YAML turns unquoted dates into date objects, JSON needs strings"""
    if isinstance(value, (datetime.date, datetime.datetime)):
        return value.isoformat()
    if isinstance(value, dict):
        return {str(key): json_safe(item) for key, item in value.items()}
    if isinstance(value, list):
        return [json_safe(item) for item in value]
    return value


class ExampleGenerator:
    """
    Deterministic example values

    Declared ``example``, ``default`` and ``enum`` values are preferred; other
    values are generated to satisfy the declared constraints.
    """

    def generate(self, schema: Schema, depth: int = 0) -> Any:
        schema = effective_schema(schema)
        if not schema:
            return None

        for keyword in ("example", "default", "const"):
            if keyword in schema:
                return json_safe(copy.deepcopy(schema[keyword]))
        examples = schema.get("examples")
        if isinstance(examples, list) and examples:
            return json_safe(copy.deepcopy(examples[0]))
        if schema.get("enum"):
            return json_safe(schema["enum"][0])

        kind = schema_type(schema)
        if kind == "object":
            if depth >= MAX_DEPTH:
                return {}
            return {
                name: self.generate(property_schema, depth + 1)
                for name, property_schema in (schema.get("properties") or {}).items()
            }
        if kind == "array":
            if depth >= MAX_DEPTH:
                return []
            count = max(1, get_length(schema, "minItems") or 1)
            return [self.generate(schema.get("items") or {}, depth + 1) for _ in range(count)]
        if kind == "string":
            return self._string(schema)
        if kind == "integer":
            return self._integer(schema)
        if kind == "number":
            return self._number(schema)
        if kind == "boolean":
            return True
        return None

    @staticmethod
    def _string(schema: Schema) -> str:
        sample = FORMAT_SAMPLES.get(schema.get("format"))
        min_length = get_length(schema, "minLength") or 0
        max_length = get_length(schema, "maxLength")
        if sample is not None and len(sample) >= min_length and (max_length is None or len(sample) <= max_length):
            return sample

        length = max(min_length, DEFAULT_STRING_LENGTH)
        if max_length is not None:
            length = min(length, max_length)
        return generate_string(length)

    @staticmethod
    def _integer(schema: Schema) -> int:
        minimum = get_number(schema, "minimum")
        maximum = get_number(schema, "maximum")
        exclusive_minimum = get_number(schema, "exclusiveMinimum")
        exclusive_maximum = get_number(schema, "exclusiveMaximum")

        low = None
        if minimum is not None:
            low = math.floor(minimum) + 1 if schema.get("exclusiveMinimum") is True else math.ceil(minimum)
        elif exclusive_minimum is not None:
            low = math.floor(exclusive_minimum) + 1
        high = None
        if maximum is not None:
            high = math.ceil(maximum) - 1 if schema.get("exclusiveMaximum") is True else math.floor(maximum)
        elif exclusive_maximum is not None:
            high = math.ceil(exclusive_maximum) - 1

        if low is not None:
            return low
        if high is not None:
            return min(high, 1)
        return 1

    @staticmethod
    def _number(schema: Schema) -> float:
        minimum = get_minimum(schema)
        maximum = get_maximum(schema)

        if minimum is not None and maximum is not None:
            return (float(minimum) + float(maximum)) / 2
        if minimum is not None:
            return float(minimum) + 1
        if maximum is not None:
            return min(float(maximum) - 1, 1.5)
        return 1.5
