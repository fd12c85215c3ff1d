"""
Header Fuzzers
Mutations of the request headers declared in the contract or the headers file
"""

from utils.test_case_listener import FOUR_XX, TWO_XX
from .base import Fuzzer
from .boundaries import VERY_LARGE_STRING_LENGTH, generate_string
from .data import FuzzingData

EXTRA_HEADER_NAME = "X-Contractfuzz-Fuzzy-Header"
EXTRA_HEADER_VALUE = "contractfuzz"


class RemoveHeadersFuzzer(Fuzzer):
    def description(self) -> str:
        return "iterate through each header and remove it; only required headers are expected to be rejected"

    async def fuzz(self, data: FuzzingData) -> None:
        if not data.headers:
            self.logger.debug("No headers to remove", path=data.path, method=data.method.value)
            return

        for header in data.headers:
            headers = {name: value for name, value in data.headers.items() if name != header}
            await self._execute(
                data,
                scenario=f"Remove header [{header}]",
                payload=data.payload_copy(),
                expected=FOUR_XX if header in data.required_headers else TWO_XX,
                headers=headers
            )


class ExtraHeaderFuzzer(Fuzzer):
    def description(self) -> str:
        return "send an extra header not declared in the contract, the service is expected to ignore it"

    async def fuzz(self, data: FuzzingData) -> None:
        headers = dict(data.headers)
        headers[EXTRA_HEADER_NAME] = EXTRA_HEADER_VALUE
        await self._execute(
            data,
            scenario=f"Add extra header [{EXTRA_HEADER_NAME}]",
            payload=data.payload_copy(),
            expected=TWO_XX,
            headers=headers
        )


class LargeValuesInHeadersFuzzer(Fuzzer):
    def description(self) -> str:
        return f"iterate through each header and send {VERY_LARGE_STRING_LENGTH} characters long values"

    async def fuzz(self, data: FuzzingData) -> None:
        large_value = generate_string(VERY_LARGE_STRING_LENGTH)
        for header in data.headers:
            headers = dict(data.headers)
            headers[header] = large_value
            await self._execute(
                data,
                scenario=f"Send a large value in header [{header}]",
                payload=data.payload_copy(),
                expected=FOUR_XX,
                headers=headers
            )
