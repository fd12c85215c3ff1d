"""
HTTP Fuzzers
Whole request mutations: the unmodified request, undocumented methods and broken bodies
"""

from utils.payload import to_json_text
from utils.test_case_listener import FOUR_XX, TWO_XX, ResponseCodeFamily
from .base import Fuzzer
from .boundaries import BODY_LESS_METHODS
from .data import SUPPORTED_METHODS, FuzzingData

METHOD_NOT_ALLOWED = ResponseCodeFamily("405")
MALFORMED_SUFFIX = "bla"


class HappyFuzzer(Fuzzer):
    def description(self) -> str:
        return "send a request with all fields and headers populated, the service is expected to accept it"

    async def fuzz(self, data: FuzzingData) -> None:
        await self._execute(
            data,
            scenario="Send a valid request",
            payload=data.payload_copy(),
            expected=TWO_XX
        )


class HttpMethodsFuzzer(Fuzzer):
    """
    Calls a path with every supported method it does not document

    Runs once per path, on the first documented method.
    """

    def description(self) -> str:
        return "iterate through each undocumented HTTP method and send a request, expecting 405"

    async def fuzz(self, data: FuzzingData) -> None:
        documented = [method for method in SUPPORTED_METHODS if method.value in data.path_methods]
        if not documented or documented[0] is not data.method:
            return

        for method in SUPPORTED_METHODS:
            if method.value in data.path_methods:
                continue
            await self._execute(
                data,
                scenario=f"Send undocumented HTTP method {method.value}",
                payload=data.payload_copy(),
                expected=METHOD_NOT_ALLOWED,
                method=method,
                check_documented=False
            )


class MalformedJsonFuzzer(Fuzzer):
    def description(self) -> str:
        return "send a request body which is not valid JSON, the service is expected to reject it"

    def skip_for(self):
        return BODY_LESS_METHODS

    async def fuzz(self, data: FuzzingData) -> None:
        payload = data.payload_copy()
        await self._execute(
            data,
            scenario="Send a malformed JSON body",
            payload=payload,
            expected=FOUR_XX,
            body_text=to_json_text(payload) + MALFORMED_SUFFIX
        )

