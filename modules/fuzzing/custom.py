"""
Custom Fuzzer
User supplied test cases read from the custom fuzzer file

File format::

    /pets:
      createWithNegativeAge:
        age: -1
        expectedResponseCode: "400"
        httpMethod: POST
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from core.config import ALL, load_yaml_file
from utils.http_client import RequestMethod
from utils.payload import FIELD_SEPARATOR, add_field, has_field, replace_field
from utils.test_case_listener import ResponseCodeFamily
from .base import Fuzzer
from .data import FuzzingData
from .examples import json_safe

CustomTests = Dict[str, Dict[str, "CustomTestCase"]]


class CustomTestCase(BaseModel):
    """One named test of the custom fuzzer file, extra keys are field values"""
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    expected_response_code: str = Field(alias="expectedResponseCode")
    http_method: Optional[RequestMethod] = Field(default=None, alias="httpMethod")
    description: Optional[str] = None

    @field_validator("expected_response_code", mode="before")
    @classmethod
    def validate_expected_response_code(cls, v: Any) -> str:
        return ResponseCodeFamily.parse(v).label

    @field_validator("http_method", mode="before")
    @classmethod
    def validate_http_method(cls, v: Any) -> Any:
        return v.upper() if isinstance(v, str) else v

    def field_values(self) -> Dict[str, Any]:
        return {str(name): json_safe(value) for name, value in (self.model_extra or {}).items()}

    def applies_to(self, method: RequestMethod) -> bool:
        return self.http_method is None or self.http_method is method


def load_custom_tests(file_path: Optional[str]) -> CustomTests:
    """
    Read and validate a custom fuzzer file

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the file is not valid YAML or a test is invalid
    """
    if not file_path:
        return {}

    tests: CustomTests = {}
    for path, entries in load_yaml_file(file_path).items():
        if not isinstance(entries, dict):
            raise ValueError(f"Entry '{path}' in {file_path} must be a mapping of test names")
        tests[str(path)] = {}
        for test_name, values in entries.items():
            try:
                tests[str(path)][str(test_name)] = CustomTestCase.model_validate(values or {})
            except ValidationError as e:
                raise ValueError(f"Invalid custom test '{test_name}' for path '{path}': {e}")
    return tests


class CustomFuzzer(Fuzzer):
    """
    Runs the user supplied test cases of a path

    Field values override the payload template; fields missing from the
    template are added at the top level.
    """

    def __init__(self, *args, custom_tests: Optional[CustomTests] = None, **kwargs):
        super().__init__(*args, **kwargs)
        self.custom_tests = custom_tests or {}

    def description(self) -> str:
        return "send the requests described in the custom fuzzer file with their expected response codes"

    def tests_for(self, path: str) -> Dict[str, CustomTestCase]:
        return {**self.custom_tests.get(ALL, {}), **self.custom_tests.get(path, {})}

    async def fuzz(self, data: FuzzingData) -> None:
        tests = self.tests_for(data.path)
        if not tests:
            self.logger.debug("No custom tests for path", path=data.path)
            return

        for test_name, test in tests.items():
            if not test.applies_to(data.method):
                continue

            payload = data.payload_copy()
            for field_name, value in test.field_values().items():
                if has_field(payload, field_name):
                    payload = replace_field(payload, field_name, value)
                elif FIELD_SEPARATOR not in field_name:
                    payload = add_field(payload, field_name, value)

            await self._execute(
                data,
                scenario=test.description or f"Custom test [{test_name}]",
                payload=payload,
                expected=ResponseCodeFamily.parse(test.expected_response_code)
            )
