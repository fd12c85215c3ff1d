"""
Fuzzer Registry
Registry of every fuzzer available to a fuzzing session
"""

from typing import Dict, List, Optional, Sequence

from core.config import ALL, FuzzingConfig
from core.logging import get_logger
from utils.http_client import ServiceCaller
from utils.test_case_listener import TestCaseListener
from .base import BoundaryFieldFuzzer, Fuzzer
from .boundaries import BOUNDARIES
from .custom import CustomFuzzer, CustomTests
from .fields import (
    EmptyStringValuesInFieldsFuzzer,
    LeadingSpacesInFieldsFuzzer,
    NewFieldsFuzzer,
    NullValuesInFieldsFuzzer,
    OnlySpacesInFieldsFuzzer,
    RemoveFieldsFuzzer,
    TrailingSpacesInFieldsFuzzer,
)
from .headers import ExtraHeaderFuzzer, LargeValuesInHeadersFuzzer, RemoveHeadersFuzzer
from .http import HappyFuzzer, HttpMethodsFuzzer, MalformedJsonFuzzer

FUZZER_CLASSES = (
    NullValuesInFieldsFuzzer,
    EmptyStringValuesInFieldsFuzzer,
    OnlySpacesInFieldsFuzzer,
    LeadingSpacesInFieldsFuzzer,
    TrailingSpacesInFieldsFuzzer,
    RemoveFieldsFuzzer,
    NewFieldsFuzzer,
    RemoveHeadersFuzzer,
    ExtraHeaderFuzzer,
    LargeValuesInHeadersFuzzer,
    HappyFuzzer,
    HttpMethodsFuzzer,
    MalformedJsonFuzzer,
)


class FuzzerRegistry:
    """
    Registry for fuzzers

    Fuzzers are registered once per session and always iterated sorted by
    name, independent of the registration order.
    """

    def __init__(self):
        self.fuzzers: Dict[str, Fuzzer] = {}
        self.logger = get_logger(__name__)

    def register(self, fuzzer: Fuzzer) -> None:
        """
        Register a fuzzer

        Raises:
            ValueError: If a fuzzer with the same name is already registered
        """
        if fuzzer.name in self.fuzzers:
            raise ValueError(f"Fuzzer already registered: {fuzzer.name}")
        self.fuzzers[fuzzer.name] = fuzzer
        self.logger.debug("Fuzzer registered", fuzzer=fuzzer.name)

    def get_fuzzer(self, name: str) -> Optional[Fuzzer]:
        return self.fuzzers.get(name)

    def get_registered_fuzzers(self) -> List[str]:
        """Registered fuzzer names in iteration order"""
        return sorted(self.fuzzers)

    def all(self) -> List[Fuzzer]:
        return [self.fuzzers[name] for name in self.get_registered_fuzzers()]

    def select(self, supplied: Sequence[str]) -> List[Fuzzer]:
        """
        Fuzzers picked by the user, in name order

        Args:
            supplied: Fuzzer names, ``all`` (or nothing) selects every fuzzer

        Returns:
            Selected fuzzers; every supplied name matching no fuzzer is
            reported with a warning
        """
        names = [name.strip() for name in supplied if name.strip()]
        if not names or any(name.lower() == ALL for name in names):
            return self.all()

        for name in names:
            if name not in self.fuzzers:
                self.logger.warning("Fuzzer not registered, ignoring", fuzzer=name)

        selected = set(names)
        for name in self.get_registered_fuzzers():
            if name not in selected:
                self.logger.debug("Fuzzer not selected", fuzzer=name)
        return [fuzzer for fuzzer in self.all() if fuzzer.name in selected]

    @classmethod
    def default(cls, service_caller: ServiceCaller, listener: TestCaseListener,
                config: Optional[FuzzingConfig] = None,
                custom_tests: Optional[CustomTests] = None) -> "FuzzerRegistry":
        """
        Registry with every built-in fuzzer

        The custom fuzzer is registered only when custom tests are supplied.
        """
        registry = cls()
        for boundary in BOUNDARIES:
            registry.register(BoundaryFieldFuzzer(boundary, service_caller, listener, config))
        for fuzzer_class in FUZZER_CLASSES:
            registry.register(fuzzer_class(service_caller, listener, config))
        if custom_tests:
            registry.register(CustomFuzzer(service_caller, listener, config, custom_tests=custom_tests))

        registry.logger.debug("Fuzzer registry initialized", fuzzers=len(registry.fuzzers))
        return registry
