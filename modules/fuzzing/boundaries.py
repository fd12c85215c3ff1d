"""
Boundary Value Providers
Per schema type algorithms deriving edge case values from declared constraints

Each entry of ``BOUNDARIES`` is a data record consumed by
``BoundaryFieldFuzzer``; adding a variant means adding a record, not a class.
"""

import math
import string
import sys
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation, localcontext
from enum import Enum
from typing import Callable, FrozenSet, Optional, Tuple

from utils.http_client import RequestMethod
from .schemas import Schema, SchemaPredicate, NUMBER, INTEGER, STRING, get_number, get_length

DECIMAL_STEP = Decimal("0.0001")
INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1
EXTREME_OFFSET = 10
VERY_LARGE_STRING_LENGTH = 20000
WRONG_TYPE_VALUE = "contractfuzz"
BODY_LESS_METHODS: FrozenSet[RequestMethod] = frozenset({RequestMethod.GET, RequestMethod.DELETE})


class BoundaryDirection(str, Enum):
    LEFT = "left"
    RIGHT = "right"
    NONE = "none"


class ValueKind(str, Enum):
    """Primitive kind every generated value is a literal of"""
    NUMBER = "number"
    INTEGER = "integer"
    STRING = "string"

    def accepts(self, value: object) -> bool:
        if not isinstance(value, str):
            return False
        if self is ValueKind.STRING:
            return True
        if self is ValueKind.INTEGER:
            try:
                int(value)
            except ValueError:
                return False
            return True
        try:
            return Decimal(value).is_finite()
        except InvalidOperation:
            return False

    def to_json(self, literal: str):
        """JSON value sent for a literal of this kind"""
        if self is ValueKind.STRING:
            return literal
        if self is ValueKind.INTEGER:
            return int(literal)
        value = Decimal(literal)
        if value == value.to_integral_value():
            return int(value)
        return float(value)


@dataclass(frozen=True)
class Boundary:
    """A boundary fuzzer variant"""
    name: str
    applies_to: Tuple[SchemaPredicate, ...]
    direction: BoundaryDirection
    value_kind: ValueKind
    is_defined: Callable[[Schema], bool]
    value: Callable[[Schema], str]
    description: str
    skip_for: FrozenSet[RequestMethod] = field(default=BODY_LESS_METHODS)


def generate_string(length: int) -> str:
    """Deterministic alphanumeric string of the given length"""
    if length <= 0:
        return ""
    alphabet = string.ascii_letters + string.digits
    repeats = length // len(alphabet) + 1
    return (alphabet * repeats)[:length]


def _to_decimal(value) -> Decimal:
    return Decimal(str(value))


def _format_decimal(value: Decimal) -> str:
    return format(value, "f")


def _extreme_decimal(sign: int) -> str:
    with localcontext() as ctx:
        ctx.prec = 1000
        return _format_decimal(Decimal(sys.float_info.max) * 2 * sign)


def _extreme_integer(schema: Schema, sign: int) -> str:
    # int32 fields overflow with the plain int64 limits, int64 fields need more
    if schema.get("format") == "int32":
        return str(INT64_MIN if sign < 0 else INT64_MAX)
    if sign < 0:
        return str(INT64_MIN - EXTREME_OFFSET)
    return str(INT64_MAX + EXTREME_OFFSET)


def _lower_limit(schema: Schema) -> Optional[Tuple[Decimal, bool]]:
    """(limit, exclusive) for both OpenAPI 3.0 and 3.1 exclusive styles"""
    minimum = get_number(schema, "minimum")
    if minimum is not None:
        return _to_decimal(minimum), schema.get("exclusiveMinimum") is True
    exclusive = get_number(schema, "exclusiveMinimum")
    if exclusive is not None:
        return _to_decimal(exclusive), True
    return None


def _upper_limit(schema: Schema) -> Optional[Tuple[Decimal, bool]]:
    maximum = get_number(schema, "maximum")
    if maximum is not None:
        return _to_decimal(maximum), schema.get("exclusiveMaximum") is True
    exclusive = get_number(schema, "exclusiveMaximum")
    if exclusive is not None:
        return _to_decimal(exclusive), True
    return None


def _sent_outside(candidate: Decimal, limit: Decimal, sign: int, exclusive: bool) -> Decimal:
    """
    Candidate adjusted so its JSON rendition stays outside the limit

    Non integral literals go out as doubles, which drop the step for large
    limits; the nearest double past the limit is used instead.
    """
    if candidate == candidate.to_integral_value():
        sent = candidate
    else:
        sent = Decimal(float(candidate))
    if (sent > limit if sign > 0 else sent < limit) or (exclusive and sent == limit):
        return candidate
    nearest = math.nextafter(float(limit), sign * math.inf)
    if math.isinf(nearest):
        return Decimal(math.ceil(limit) + 1 if sign > 0 else math.floor(limit) - 1)
    return Decimal(nearest)


def _decimal_left(schema: Schema) -> str:
    limit = _lower_limit(schema)
    if limit is None:
        return _extreme_decimal(-1)
    value, exclusive = limit
    with localcontext() as ctx:
        ctx.prec = 100
        candidate = value if exclusive else value - DECIMAL_STEP
    return _format_decimal(_sent_outside(candidate, value, -1, exclusive))


def _decimal_right(schema: Schema) -> str:
    limit = _upper_limit(schema)
    if limit is None:
        return _extreme_decimal(1)
    value, exclusive = limit
    with localcontext() as ctx:
        ctx.prec = 100
        candidate = value if exclusive else value + DECIMAL_STEP
    return _format_decimal(_sent_outside(candidate, value, 1, exclusive))


def _integer_left(schema: Schema) -> str:
    limit = _lower_limit(schema)
    if limit is None:
        return _extreme_integer(schema, -1)
    value, exclusive = limit
    if exclusive or value != value.to_integral_value():
        return str(math.floor(value))
    return str(int(value) - 1)


def _integer_right(schema: Schema) -> str:
    limit = _upper_limit(schema)
    if limit is None:
        return _extreme_integer(schema, 1)
    value, exclusive = limit
    if exclusive or value != value.to_integral_value():
        return str(math.ceil(value))
    return str(int(value) + 1)


def _has_lower_limit(schema: Schema) -> bool:
    return _lower_limit(schema) is not None


def _has_upper_limit(schema: Schema) -> bool:
    return _upper_limit(schema) is not None


def _string_left(schema: Schema) -> str:
    min_length = get_length(schema, "minLength")
    if not min_length:
        return ""
    return generate_string(min_length - 1)


def _string_right(schema: Schema) -> str:
    max_length = get_length(schema, "maxLength")
    if max_length is None:
        return generate_string(VERY_LARGE_STRING_LENGTH)
    return generate_string(max_length + 1)


ALMOST_VALID_FORMAT_VALUES = {
    "email": "email@bubu.",
    "idn-email": "email@bubu.",
    "uri": "http://l",
    "url": "http://l",
    "date": "2021-02-30",
    "date-time": "2021-02-30T10:00:00Z",
    "time": "25:00:00",
    "uuid": "123e4567-e89b-12d3-a456-42661417400",
    "ipv4": "10.10.10.300",
    "ip": "10.10.10.300",
    "ipv6": "2001:db8:85a3:0:0:8a2e:370:7334:",
    "hostname": "host_name.example",
    "byte": "Y2F0cw=",
}

TOTALLY_WRONG_FORMAT_VALUES = {
    "email": "bubulina",
    "idn-email": "bubulina",
    "uri": "bubulina",
    "url": "bubulina",
    "date": "bubulina",
    "date-time": "bubulina",
    "time": "bubulina",
    "uuid": "bubulina",
    "ipv4": "bubulina",
    "ip": "bubulina",
    "ipv6": "bubulina",
    "hostname": "$$$$",
    "byte": "$$$$",
}


def _has_known_format(schema: Schema) -> bool:
    return schema.get("format") in ALMOST_VALID_FORMAT_VALUES


def _always(schema: Schema) -> bool:
    return True


BOUNDARIES: Tuple[Boundary, ...] = (
    Boundary(
        name="DecimalFieldsLeftBoundaryFuzzer",
        applies_to=(NUMBER,),
        direction=BoundaryDirection.LEFT,
        value_kind=ValueKind.NUMBER,
        is_defined=_has_lower_limit,
        value=_decimal_left,
        description="iterate through each Number field and send values just below the declared minimum",
    ),
    Boundary(
        name="DecimalFieldsRightBoundaryFuzzer",
        applies_to=(NUMBER,),
        direction=BoundaryDirection.RIGHT,
        value_kind=ValueKind.NUMBER,
        is_defined=_has_upper_limit,
        value=_decimal_right,
        description="iterate through each Number field and send values just above the declared maximum",
    ),
    Boundary(
        name="IntegerFieldsLeftBoundaryFuzzer",
        applies_to=(INTEGER,),
        direction=BoundaryDirection.LEFT,
        value_kind=ValueKind.INTEGER,
        is_defined=_has_lower_limit,
        value=_integer_left,
        description="iterate through each Integer field and send values just below the declared minimum",
    ),
    Boundary(
        name="IntegerFieldsRightBoundaryFuzzer",
        applies_to=(INTEGER,),
        direction=BoundaryDirection.RIGHT,
        value_kind=ValueKind.INTEGER,
        is_defined=_has_upper_limit,
        value=_integer_right,
        description="iterate through each Integer field and send values just above the declared maximum",
    ),
    Boundary(
        name="ExtremeNegativeValueDecimalFieldsFuzzer",
        applies_to=(NUMBER,),
        direction=BoundaryDirection.LEFT,
        value_kind=ValueKind.NUMBER,
        is_defined=_always,
        value=lambda schema: _extreme_decimal(-1),
        description="iterate through each Number field and send values far below the double range",
    ),
    Boundary(
        name="ExtremePositiveValueDecimalFieldsFuzzer",
        applies_to=(NUMBER,),
        direction=BoundaryDirection.RIGHT,
        value_kind=ValueKind.NUMBER,
        is_defined=_always,
        value=lambda schema: _extreme_decimal(1),
        description="iterate through each Number field and send values far above the double range",
    ),
    Boundary(
        name="ExtremeNegativeValueIntegerFieldsFuzzer",
        applies_to=(INTEGER,),
        direction=BoundaryDirection.LEFT,
        value_kind=ValueKind.INTEGER,
        is_defined=_always,
        value=lambda schema: _extreme_integer(schema, -1),
        description="iterate through each Integer field and send values below the range of its format",
    ),
    Boundary(
        name="ExtremePositiveValueIntegerFieldsFuzzer",
        applies_to=(INTEGER,),
        direction=BoundaryDirection.RIGHT,
        value_kind=ValueKind.INTEGER,
        is_defined=_always,
        value=lambda schema: _extreme_integer(schema, 1),
        description="iterate through each Integer field and send values above the range of its format",
    ),
    Boundary(
        name="StringFieldsLeftBoundaryFuzzer",
        applies_to=(STRING,),
        direction=BoundaryDirection.LEFT,
        value_kind=ValueKind.STRING,
        is_defined=lambda schema: bool(get_length(schema, "minLength")),
        value=_string_left,
        description="iterate through each String field and send values one character shorter than minLength",
    ),
    Boundary(
        name="StringFieldsRightBoundaryFuzzer",
        applies_to=(STRING,),
        direction=BoundaryDirection.RIGHT,
        value_kind=ValueKind.STRING,
        is_defined=lambda schema: get_length(schema, "maxLength") is not None,
        value=_string_right,
        description="iterate through each String field and send values one character longer than maxLength",
    ),
    Boundary(
        name="VeryLargeStringsFuzzer",
        applies_to=(STRING,),
        direction=BoundaryDirection.RIGHT,
        value_kind=ValueKind.STRING,
        is_defined=_always,
        value=lambda schema: generate_string(VERY_LARGE_STRING_LENGTH),
        description=f"iterate through each String field and send {VERY_LARGE_STRING_LENGTH} characters long values",
    ),
    Boundary(
        name="StringsInNumericFieldsFuzzer",
        applies_to=(NUMBER, INTEGER),
        direction=BoundaryDirection.NONE,
        value_kind=ValueKind.STRING,
        is_defined=_always,
        value=lambda schema: WRONG_TYPE_VALUE,
        description="iterate through each Number and Integer field and send string values",
    ),
    Boundary(
        name="StringFormatAlmostValidValuesFuzzer",
        applies_to=(STRING,),
        direction=BoundaryDirection.NONE,
        value_kind=ValueKind.STRING,
        is_defined=_has_known_format,
        value=lambda schema: ALMOST_VALID_FORMAT_VALUES.get(schema.get("format"), "bubulina"),
        description="iterate through each String field with a known format and send almost valid values",
    ),
    Boundary(
        name="StringFormatTotallyWrongValuesFuzzer",
        applies_to=(STRING,),
        direction=BoundaryDirection.NONE,
        value_kind=ValueKind.STRING,
        is_defined=_has_known_format,
        value=lambda schema: TOTALLY_WRONG_FORMAT_VALUES.get(schema.get("format"), "bubulina"),
        description="iterate through each String field with a known format and send totally wrong values",
    ),
)
