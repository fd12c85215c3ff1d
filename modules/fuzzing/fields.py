"""
Field Fuzzers
Null, empty, whitespace and structural mutations of request body fields
"""

import itertools
from abc import abstractmethod
from typing import Iterator, List, Optional, Tuple

from core.config import EdgeSpacesStrategy, FieldsFuzzingStrategy
from utils.payload import add_field, remove_fields
from utils.test_case_listener import FOUR_XX, TWO_XX, ResponseCodeFamily
from .base import BaseFieldsFuzzer, Fuzzer
from .boundaries import BODY_LESS_METHODS
from .data import FuzzingData
from .schemas import ANY_PRIMITIVE, ARRAY, OBJECT, STRING
from .strategy import FuzzingStrategy

EDGE_SPACES = "    "
NEW_FIELD_NAME = "contractfuzzFuzzyField"
NEW_FIELD_VALUE = "contractfuzzFuzzyValue"


class RequiredDependentFuzzer(BaseFieldsFuzzer):
    """Required fields must be rejected, optional ones accepted"""

    def expected_response(self, field_name: str, data: FuzzingData) -> ResponseCodeFamily:
        return FOUR_XX if data.is_required(field_name) else TWO_XX


class NullValuesInFieldsFuzzer(RequiredDependentFuzzer):
    applies_to = (ANY_PRIMITIVE, OBJECT, ARRAY)

    def description(self) -> str:
        return "iterate through each field and send null values; required fields are expected to be rejected"

    def field_strategy(self, field_name: str, data: FuzzingData) -> FuzzingStrategy:
        return FuzzingStrategy.replace().with_data(None)


class EmptyStringValuesInFieldsFuzzer(RequiredDependentFuzzer):
    applies_to = (ANY_PRIMITIVE,)

    def description(self) -> str:
        return "iterate through each field and send empty strings; required fields are expected to be rejected"

    def field_strategy(self, field_name: str, data: FuzzingData) -> FuzzingStrategy:
        return FuzzingStrategy.replace().with_data("")


class OnlySpacesInFieldsFuzzer(RequiredDependentFuzzer):
    applies_to = (STRING,)

    def description(self) -> str:
        return "iterate through each String field and send values made only of spaces"

    def field_strategy(self, field_name: str, data: FuzzingData) -> FuzzingStrategy:
        return FuzzingStrategy.replace().with_data(EDGE_SPACES)


class EdgeSpacesFuzzer(BaseFieldsFuzzer):
    """
    Spaces around otherwise valid values

    With ``trimAndValidate`` the service is expected to trim before validating
    and accept the request, with ``validateAndTrim`` to reject it.
    """
    applies_to = (STRING,)

    def expected_response(self, field_name: str, data: FuzzingData) -> ResponseCodeFamily:
        if self.config.edge_spaces_strategy is EdgeSpacesStrategy.TRIM_AND_VALIDATE:
            return TWO_XX
        return FOUR_XX

    def field_strategy(self, field_name: str, data: FuzzingData) -> FuzzingStrategy:
        schema = data.field_schema(field_name) or {}
        if schema.get("enum") or schema.get("format"):
            return FuzzingStrategy.skip().with_data("Field has an enum or format")
        return self.edge_strategy()

    @abstractmethod
    def edge_strategy(self) -> FuzzingStrategy:
        """Strategy adding the spaces"""


class LeadingSpacesInFieldsFuzzer(EdgeSpacesFuzzer):
    def description(self) -> str:
        return "iterate through each String field and prefix values with spaces"

    def edge_strategy(self) -> FuzzingStrategy:
        return FuzzingStrategy.prefix().with_data(EDGE_SPACES)


class TrailingSpacesInFieldsFuzzer(EdgeSpacesFuzzer):
    def description(self) -> str:
        return "iterate through each String field and append spaces to values"

    def edge_strategy(self) -> FuzzingStrategy:
        return FuzzingStrategy.trail().with_data(EDGE_SPACES)


def removal_sets(fields: List[str], strategy: FieldsFuzzingStrategy, max_fields: Optional[int] = None) -> Iterator[Tuple[str, ...]]:
    """
    Field sets removed by RemoveFieldsFuzzer

    ONEBYONE removes every field alone, SIZE every combination of up to
    ``max_fields`` fields and POWERSET every non empty combination, still
    bounded by ``max_fields`` when given.
    """
    if strategy is FieldsFuzzingStrategy.ONEBYONE:
        for field_name in fields:
            yield (field_name,)
        return

    largest = len(fields)
    if max_fields is not None:
        largest = min(largest, max_fields)
    elif strategy is FieldsFuzzingStrategy.SIZE:
        largest = min(largest, 1)
    for size in range(1, largest + 1):
        yield from itertools.combinations(fields, size)


class RemoveFieldsFuzzer(Fuzzer):
    """Sends payloads without some of their fields"""

    def description(self) -> str:
        return "remove fields from the request based on the supplied fields fuzzing strategy"

    def skip_for(self):
        return BODY_LESS_METHODS

    async def fuzz(self, data: FuzzingData) -> None:
        fields = list(data.all_fields)
        if not fields:
            self.logger.debug("No fields to remove", path=data.path, method=data.method.value)
            return

        for removed in removal_sets(fields, self.config.fields_fuzzing_strategy, self.config.max_fields_to_remove):
            required = any(data.is_required(field_name) for field_name in removed)
            await self._execute(
                data,
                scenario=f"Remove fields {list(removed)}",
                payload=remove_fields(data.payload_copy(), removed),
                expected=FOUR_XX if required else TWO_XX
            )


class NewFieldsFuzzer(Fuzzer):
    """Sends payloads with a field the contract does not declare"""

    def description(self) -> str:
        return "send a new field not declared in the request schema, the service is expected to reject it"

    def skip_for(self):
        return BODY_LESS_METHODS

    async def fuzz(self, data: FuzzingData) -> None:
        await self._execute(
            data,
            scenario=f"Add new field [{NEW_FIELD_NAME}]",
            payload=add_field(data.payload_copy(), NEW_FIELD_NAME, NEW_FIELD_VALUE),
            expected=FOUR_XX,
            field_name=NEW_FIELD_NAME
        )
