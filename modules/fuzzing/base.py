"""
Fuzzer base classes
Shared request/response plumbing of every fuzzer and the data driven boundary fuzzer
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, FrozenSet, Optional, Tuple

from core.config import FuzzingConfig
from core.logging import get_logger
from utils.http_client import Request, RequestMethod, ServiceCaller
from utils.payload import get_field, has_field, replace_field, to_json_text
from utils.test_case_listener import FOUR_XX, ResponseCodeFamily, ResultKind, TestCaseListener
from .boundaries import BODY_LESS_METHODS, Boundary
from .data import FuzzingData
from .schemas import Schema, SchemaPredicate, matches_any
from .strategy import FuzzingStrategy, merge_fuzzing


def edge_whitespace(value: Any) -> Optional[str]:
    """Whitespace a fuzzed value carries at its edges, the whole value if blank"""
    if not isinstance(value, str):
        return None
    if not value.strip():
        return value
    stripped = value.lstrip(" ")
    if stripped != value:
        return value[:len(value) - len(stripped)]
    stripped = value.rstrip(" ")
    if stripped != value:
        return value[len(stripped):]
    return None


def apply_reference_data(payload: Any, reference_data: Dict[str, Any], field_name: str, fuzzed_value: Any) -> Any:
    """
    Reconcile a fuzzed field with its reference data value

    The payload template already carries the reference values; the fuzzed
    field keeps its edge whitespace around the reference value. Non string
    fuzzed values are sent as they are.
    """
    if field_name not in reference_data:
        return payload
    if fuzzed_value is not None and not isinstance(fuzzed_value, str):
        return payload
    merged = merge_fuzzing(fuzzed_value, reference_data[field_name], edge_whitespace(fuzzed_value))
    return replace_field(payload, field_name, merged)


class Fuzzer(ABC):
    """
    Base class for fuzzers

    Fuzzers keep no per attempt state, one instance serves every path.
    """

    def __init__(self, service_caller: ServiceCaller, listener: TestCaseListener,
                 config: Optional[FuzzingConfig] = None):
        self.service_caller = service_caller
        self.listener = listener
        self.config = config or FuzzingConfig()
        self.logger = get_logger(__name__).bind(fuzzer=self.name)

    @property
    def name(self) -> str:
        return self.__class__.__name__

    @abstractmethod
    def description(self) -> str:
        """Human readable summary used in listings"""

    def skip_for(self) -> FrozenSet[RequestMethod]:
        """HTTP methods the fuzzer does not apply to"""
        return frozenset()

    @abstractmethod
    async def fuzz(self, data: FuzzingData) -> None:
        """Run every test case of the fuzzer against one operation"""

    async def _execute(self, data: FuzzingData, scenario: str, payload: Any,
                       expected: ResponseCodeFamily, field_name: Optional[str] = None,
                       strategy: Optional[FuzzingStrategy] = None,
                       headers: Optional[Dict[str, str]] = None,
                       method: Optional[RequestMethod] = None,
                       body_text: Optional[str] = None,
                       check_documented: bool = True) -> ResultKind:
        """Send one fuzzed request and hand the response to the listener"""
        method = method or data.method
        test_case = self.listener.create_test_case(
            fuzzer=self.name,
            path=data.path,
            method=method.value,
            scenario=scenario,
            expected=expected,
            field_name=field_name,
            strategy=strategy.truncated_value() if strategy else None
        )
        request = Request(
            method=method,
            path=data.path,
            payload=payload,
            headers=dict(data.headers if headers is None else headers),
            query_params=data.query_params,
            body_text=body_text
        )
        response = await self.service_caller.call(request)
        return self.listener.report_result(
            test_case,
            response,
            payload=body_text if body_text is not None else to_json_text(payload),
            documented_codes=data.response_codes if check_documented else None
        )

    def _skip(self, data: FuzzingData, scenario: str, reason: str,
              field_name: Optional[str] = None) -> ResultKind:
        test_case = self.listener.create_test_case(
            fuzzer=self.name,
            path=data.path,
            method=data.method.value,
            scenario=scenario,
            expected=FOUR_XX,
            field_name=field_name
        )
        return self.listener.skip(test_case, reason)

    def __str__(self) -> str:
        return self.name


class BaseFieldsFuzzer(Fuzzer):
    """
    Template for fuzzers mutating one field at a time

    Subclasses pick the fields they target and the strategy used for each
    one; a SKIP strategy records a skipped test case with the strategy data
    as reason.
    """

    applies_to: Tuple[SchemaPredicate, ...] = ()

    def skip_for(self) -> FrozenSet[RequestMethod]:
        return BODY_LESS_METHODS

    def is_field_targeted(self, field_name: str, data: FuzzingData) -> bool:
        return matches_any(data.field_schema(field_name), self.applies_to)

    @abstractmethod
    def field_strategy(self, field_name: str, data: FuzzingData) -> FuzzingStrategy:
        """Strategy applied to the current value of the field"""

    @abstractmethod
    def expected_response(self, field_name: str, data: FuzzingData) -> ResponseCodeFamily:
        """Response code family the service should answer with"""

    async def fuzz(self, data: FuzzingData) -> None:
        for field_name in data.all_fields:
            if not self.is_field_targeted(field_name, data):
                continue
            await self.fuzz_field(field_name, data)

    async def fuzz_field(self, field_name: str, data: FuzzingData) -> ResultKind:
        strategy = self.field_strategy(field_name, data)
        if strategy.is_skip():
            return self._skip(data, f"Fuzz field [{field_name}]", str(strategy.data), field_name)

        payload = data.payload_copy()
        if not has_field(payload, field_name):
            return self._skip(data, f"Fuzz field [{field_name}]", "Field is not present in the payload", field_name)

        fuzzed_value = strategy.process(get_field(payload, field_name))
        payload = replace_field(payload, field_name, fuzzed_value)
        payload = apply_reference_data(payload, data.reference_data, field_name, fuzzed_value)

        return await self._execute(
            data,
            scenario=f"Send [{strategy.truncated_value()}] in field [{field_name}]",
            payload=payload,
            expected=self.expected_response(field_name, data),
            field_name=field_name,
            strategy=strategy
        )


class BoundaryFieldFuzzer(BaseFieldsFuzzer):
    """
    Boundary fuzzer configured by a ``Boundary`` record

    Fields whose schema lacks the constraint of the variant are recorded as
    skipped, no boundary value is computed for them.
    """

    def __init__(self, boundary: Boundary, service_caller: ServiceCaller,
                 listener: TestCaseListener, config: Optional[FuzzingConfig] = None):
        self.boundary = boundary
        super().__init__(service_caller, listener, config)
        self.applies_to = boundary.applies_to

    @property
    def name(self) -> str:
        return self.boundary.name

    def description(self) -> str:
        return self.boundary.description

    def skip_for(self) -> FrozenSet[RequestMethod]:
        return self.boundary.skip_for

    def get_schemas_that_the_fuzzer_will_apply_to(self) -> Tuple[SchemaPredicate, ...]:
        return self.boundary.applies_to

    def has_boundary_defined(self, field_name: str, data: FuzzingData) -> bool:
        schema = data.field_schema(field_name)
        return matches_any(schema, self.boundary.applies_to) and self.boundary.is_defined(schema)

    def get_boundary_value(self, schema: Schema) -> str:
        return self.boundary.value(schema)

    def field_strategy(self, field_name: str, data: FuzzingData) -> FuzzingStrategy:
        if not self.has_boundary_defined(field_name, data):
            return FuzzingStrategy.skip().with_data(f"No {self.boundary.direction.value} boundary defined")
        literal = self.get_boundary_value(data.field_schema(field_name))
        return FuzzingStrategy.replace().with_data(self.boundary.value_kind.to_json(literal))

    def expected_response(self, field_name: str, data: FuzzingData) -> ResponseCodeFamily:
        return FOUR_XX
