"""
Property-Based Tests for Boundary Value Providers
Tests universal properties of every boundary variant using Hypothesis
"""

import json
from decimal import Decimal

import pytest
from hypothesis import given, strategies as st, settings
from hypothesis.strategies import composite

from modules.fuzzing.boundaries import (
    BOUNDARIES, BODY_LESS_METHODS, INT64_MAX, INT64_MIN, VERY_LARGE_STRING_LENGTH,
    WRONG_TYPE_VALUE, BoundaryDirection, ValueKind, generate_string
)
from modules.fuzzing.schemas import INTEGER, NUMBER, STRING
from utils.http_client import RequestMethod

BOUNDARIES_BY_NAME = {boundary.name: boundary for boundary in BOUNDARIES}
KNOWN_FORMATS = ["email", "uri", "date", "date-time", "uuid", "ipv4", "ipv6", "hostname", "byte"]


def boundary(name):
    return BOUNDARIES_BY_NAME[name]


# Custom strategies for generating schemas
@composite
def number_schema_strategy(draw):
    """Generate number schemas with optional limits in both OpenAPI styles"""
    schema = {"type": "number"}
    bound = st.one_of(
        st.integers(min_value=-10 ** 6, max_value=10 ** 6),
        st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)
    )
    if draw(st.booleans()):
        schema["minimum"] = draw(bound)
        if draw(st.booleans()):
            schema["exclusiveMinimum"] = True
    elif draw(st.booleans()):
        schema["exclusiveMinimum"] = draw(bound)
    if draw(st.booleans()):
        schema["maximum"] = draw(bound)
        if draw(st.booleans()):
            schema["exclusiveMaximum"] = True
    elif draw(st.booleans()):
        schema["exclusiveMaximum"] = draw(bound)
    if draw(st.booleans()):
        schema["format"] = draw(st.sampled_from(["float", "double"]))
    return schema


@composite
def integer_schema_strategy(draw):
    """Generate integer schemas with optional limits and formats"""
    schema = {"type": "integer"}
    bound = st.one_of(
        st.integers(min_value=-2 ** 40, max_value=2 ** 40),
        st.floats(min_value=-1e6, max_value=1e6, allow_nan=False, allow_infinity=False)
    )
    if draw(st.booleans()):
        schema["minimum"] = draw(bound)
    elif draw(st.booleans()):
        schema["exclusiveMinimum"] = draw(bound)
    if draw(st.booleans()):
        schema["maximum"] = draw(bound)
    elif draw(st.booleans()):
        schema["exclusiveMaximum"] = draw(bound)
    if draw(st.booleans()):
        schema["format"] = draw(st.sampled_from(["int32", "int64"]))
    return schema


@composite
def string_schema_strategy(draw):
    """Generate string schemas with optional lengths and formats"""
    schema = {"type": "string"}
    if draw(st.booleans()):
        schema["minLength"] = draw(st.integers(min_value=0, max_value=200))
    if draw(st.booleans()):
        schema["maxLength"] = draw(st.integers(min_value=0, max_value=500))
    if draw(st.booleans()):
        schema["format"] = draw(st.sampled_from(KNOWN_FORMATS + ["custom"]))
    return schema


SCHEMAS_BY_PREDICATE = {
    NUMBER: number_schema_strategy(),
    INTEGER: integer_schema_strategy(),
    STRING: string_schema_strategy(),
}


@composite
def applicable_schema_strategy(draw):
    """Generate a (boundary, schema) pair where the schema matches the boundary types"""
    variant = draw(st.sampled_from(BOUNDARIES))
    predicate = draw(st.sampled_from(variant.applies_to))
    schema = draw(SCHEMAS_BY_PREDICATE[predicate])
    return variant, schema


class TestBoundaryProperties:
    """Property-based tests over every boundary variant"""

    @given(pair=applicable_schema_strategy())
    @settings(max_examples=300, deadline=5000)
    def test_value_parses_as_declared_kind(self, pair):
        """
        For any schema matching a variant's types, the boundary value is a
        literal of the variant's value kind
        """
        variant, schema = pair

        value = variant.value(schema)

        assert isinstance(value, str)
        assert variant.value_kind.accepts(value)

    @given(pair=applicable_schema_strategy())
    @settings(max_examples=200, deadline=5000)
    def test_defined_values_are_outside_the_limits(self, pair):
        """
        Left boundaries are never above the declared lower limit, right
        boundaries never below the declared upper limit
        """
        variant, schema = pair
        if not variant.is_defined(schema) or variant.value_kind is ValueKind.STRING:
            return

        value = Decimal(variant.value(schema))
        lower = schema.get("minimum", schema.get("exclusiveMinimum"))
        upper = schema.get("maximum", schema.get("exclusiveMaximum"))
        if variant.direction is BoundaryDirection.LEFT and not isinstance(lower, (bool, type(None))):
            assert value <= Decimal(str(lower))
        if variant.direction is BoundaryDirection.RIGHT and not isinstance(upper, (bool, type(None))):
            assert value >= Decimal(str(upper))

    @given(schema=string_schema_strategy())
    @settings(max_examples=100, deadline=5000)
    def test_string_lengths_break_the_declared_lengths(self, schema):
        """For any string schema, left values are too short and right values too long"""
        left = boundary("StringFieldsLeftBoundaryFuzzer")
        right = boundary("StringFieldsRightBoundaryFuzzer")

        if left.is_defined(schema):
            assert len(left.value(schema)) == schema["minLength"] - 1
        if right.is_defined(schema):
            assert len(right.value(schema)) == schema["maxLength"] + 1

    @pytest.mark.parametrize("variant", BOUNDARIES, ids=lambda b: b.name)
    def test_description_is_not_empty(self, variant):
        assert variant.description
        assert variant.description.strip()

    @pytest.mark.parametrize("variant", BOUNDARIES, ids=lambda b: b.name)
    def test_body_less_methods_are_skipped(self, variant):
        assert variant.skip_for == BODY_LESS_METHODS
        assert RequestMethod.GET in variant.skip_for
        assert RequestMethod.POST not in variant.skip_for

    def test_names_are_unique(self):
        assert len(BOUNDARIES_BY_NAME) == len(BOUNDARIES) == 14


class TestBoundaryDefinition:
    """Test variants report a missing constraint"""

    @pytest.mark.parametrize("name,schema", [
        ("DecimalFieldsLeftBoundaryFuzzer", {"type": "number", "maximum": 10}),
        ("DecimalFieldsRightBoundaryFuzzer", {"type": "number", "minimum": 10}),
        ("IntegerFieldsLeftBoundaryFuzzer", {"type": "integer"}),
        ("IntegerFieldsRightBoundaryFuzzer", {"type": "integer", "exclusiveMaximum": True}),
        ("StringFieldsLeftBoundaryFuzzer", {"type": "string"}),
        ("StringFieldsLeftBoundaryFuzzer", {"type": "string", "minLength": 0}),
        ("StringFieldsRightBoundaryFuzzer", {"type": "string", "minLength": 3}),
        ("StringFormatAlmostValidValuesFuzzer", {"type": "string"}),
        ("StringFormatTotallyWrongValuesFuzzer", {"type": "string", "format": "custom"}),
    ])
    def test_missing_constraint_is_not_defined(self, name, schema):
        assert not boundary(name).is_defined(schema)

    @pytest.mark.parametrize("name", [
        "ExtremeNegativeValueDecimalFieldsFuzzer",
        "ExtremePositiveValueDecimalFieldsFuzzer",
        "ExtremeNegativeValueIntegerFieldsFuzzer",
        "ExtremePositiveValueIntegerFieldsFuzzer",
        "VeryLargeStringsFuzzer",
        "StringsInNumericFieldsFuzzer",
    ])
    def test_unconstrained_variants_are_always_defined(self, name):
        assert boundary(name).is_defined({})


class TestBoundaryValues:
    """Test concrete boundary values"""

    def test_decimal_limits(self):
        assert boundary("DecimalFieldsLeftBoundaryFuzzer").value({"type": "number", "minimum": 10}) == "9.9999"
        assert boundary("DecimalFieldsRightBoundaryFuzzer").value({"type": "number", "maximum": 10}) == "10.0001"
        assert boundary("DecimalFieldsLeftBoundaryFuzzer").value({"type": "number", "minimum": 0.5}) == "0.4999"

    def test_decimal_limits_survive_json_doubles(self):
        """Test large limits still produce values outside the range once sent as doubles"""
        left = boundary("DecimalFieldsLeftBoundaryFuzzer")
        right = boundary("DecimalFieldsRightBoundaryFuzzer")

        sent_right = ValueKind.NUMBER.to_json(right.value({"type": "number", "maximum": 10 ** 13}))
        sent_left = ValueKind.NUMBER.to_json(left.value({"type": "number", "minimum": -10 ** 13}))

        assert sent_right > 10 ** 13
        assert sent_left < -10 ** 13
        assert json.loads(json.dumps(sent_right)) > 10 ** 13

    def test_exclusive_decimal_limit_is_not_rounded_inside(self):
        left = boundary("DecimalFieldsLeftBoundaryFuzzer")

        sent = ValueKind.NUMBER.to_json(left.value({"type": "number", "exclusiveMinimum": 0.1}))

        assert Decimal(sent) <= Decimal("0.1")

    def test_huge_decimal_limits_stay_outside(self):
        right = boundary("DecimalFieldsRightBoundaryFuzzer")

        sent = ValueKind.NUMBER.to_json(right.value({"type": "number", "maximum": 1e100}))

        assert Decimal(sent) > Decimal("1e100")

    def test_exclusive_limits_are_sent_as_is(self):
        """Test both the boolean and the numeric exclusive styles"""
        left = boundary("DecimalFieldsLeftBoundaryFuzzer")
        right = boundary("IntegerFieldsRightBoundaryFuzzer")

        assert left.value({"type": "number", "minimum": 10, "exclusiveMinimum": True}) == "10"
        assert left.value({"type": "number", "exclusiveMinimum": 10}) == "10"
        assert right.value({"type": "integer", "exclusiveMaximum": 40}) == "40"

    def test_integer_limits(self):
        assert boundary("IntegerFieldsLeftBoundaryFuzzer").value({"type": "integer", "minimum": 0}) == "-1"
        assert boundary("IntegerFieldsRightBoundaryFuzzer").value({"type": "integer", "maximum": 40}) == "41"
        assert boundary("IntegerFieldsLeftBoundaryFuzzer").value({"type": "integer", "minimum": 1.5}) == "1"
        assert boundary("IntegerFieldsRightBoundaryFuzzer").value({"type": "integer", "maximum": 1.5}) == "2"

    def test_missing_limit_falls_back_to_extremes(self):
        assert boundary("IntegerFieldsLeftBoundaryFuzzer").value({"type": "integer"}) == str(INT64_MIN - 10)
        assert boundary("DecimalFieldsRightBoundaryFuzzer").value({"type": "number"}) == \
            boundary("ExtremePositiveValueDecimalFieldsFuzzer").value({"type": "number"})

    def test_extreme_integers_depend_on_format(self):
        negative = boundary("ExtremeNegativeValueIntegerFieldsFuzzer")
        positive = boundary("ExtremePositiveValueIntegerFieldsFuzzer")

        assert negative.value({"type": "integer", "format": "int32"}) == str(INT64_MIN)
        assert positive.value({"type": "integer", "format": "int32"}) == str(INT64_MAX)
        assert negative.value({"type": "integer", "format": "int64"}) == str(INT64_MIN - 10)
        assert positive.value({"type": "integer"}) == "9223372036854775817"

    def test_extreme_decimals_exceed_double_range(self):
        negative = Decimal(boundary("ExtremeNegativeValueDecimalFieldsFuzzer").value({"type": "number"}))
        positive = Decimal(boundary("ExtremePositiveValueDecimalFieldsFuzzer").value({"type": "number"}))

        assert positive > Decimal("1.7976931348623157e308")
        assert negative == positive.copy_negate()

    def test_string_lengths(self):
        assert boundary("StringFieldsLeftBoundaryFuzzer").value({"type": "string", "minLength": 2}) == "a"
        assert len(boundary("StringFieldsRightBoundaryFuzzer").value({"type": "string", "maxLength": 40})) == 41
        assert len(boundary("VeryLargeStringsFuzzer").value({"type": "string"})) == VERY_LARGE_STRING_LENGTH

    def test_format_values(self):
        schema = {"type": "string", "format": "email"}

        assert boundary("StringFormatAlmostValidValuesFuzzer").value(schema) == "email@bubu."
        assert boundary("StringFormatTotallyWrongValuesFuzzer").value(schema) == "bubulina"

    def test_strings_in_numeric_fields(self):
        variant = boundary("StringsInNumericFieldsFuzzer")

        assert variant.value({"type": "integer"}) == WRONG_TYPE_VALUE
        assert variant.applies_to == (NUMBER, INTEGER)


class TestValueKind:
    """Test literal parsing and JSON conversion"""

    def test_accepts(self):
        assert ValueKind.INTEGER.accepts("-12")
        assert not ValueKind.INTEGER.accepts("1.5")
        assert ValueKind.NUMBER.accepts("0.4999")
        assert not ValueKind.NUMBER.accepts("contractfuzz")
        assert not ValueKind.NUMBER.accepts("NaN")
        assert ValueKind.STRING.accepts("")
        assert not ValueKind.STRING.accepts(1)

    def test_to_json(self):
        assert ValueKind.INTEGER.to_json("41") == 41
        assert ValueKind.NUMBER.to_json("10") == 10
        assert isinstance(ValueKind.NUMBER.to_json("10"), int)
        assert ValueKind.NUMBER.to_json("9.9999") == pytest.approx(9.9999)
        assert ValueKind.STRING.to_json("41") == "41"


class TestGenerateString:
    """Test deterministic string generation"""

    @given(length=st.integers(min_value=-5, max_value=500))
    @settings(max_examples=50, deadline=5000)
    def test_length_is_exact(self, length):
        assert len(generate_string(length)) == max(length, 0)

    def test_is_deterministic(self):
        assert generate_string(100) == generate_string(100)
        assert generate_string(3) == "abc"
