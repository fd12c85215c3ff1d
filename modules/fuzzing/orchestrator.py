"""
Fuzzing Orchestrator
Matches the registered fuzzers to the operations of the selected contract paths
"""

from dataclasses import dataclass
from typing import Dict, Iterator, List

from core.config import FuzzingConfig
from core.logging import get_logger
from utils.contract_loader import Contract
from .base import Fuzzer
from .data import FuzzingData, FuzzingDataFactory
from .registry import FuzzerRegistry


@dataclass(frozen=True)
class Invocation:
    """One fuzzer run against one operation"""
    path: str
    fuzzer: Fuzzer
    data: FuzzingData

    def __str__(self) -> str:
        return f"{self.path} {self.data.method.value} {self.fuzzer.name}"


class FuzzingOrchestrator:
    """
    Fuzzing Orchestrator for contract driven fuzzing

    A fuzz pass walks the selected paths in contract order and, for every
    path, the selected fuzzers in name order. Every FuzzingData whose method
    the fuzzer does not skip is handed to the fuzzer. Calls are awaited one at
    a time.
    """

    def __init__(self, contract: Contract, registry: FuzzerRegistry,
                 factory: FuzzingDataFactory, config: FuzzingConfig):
        """
        Initialize Fuzzing Orchestrator

        Args:
            contract: Resolved contract
            registry: Registered fuzzers
            factory: Builder of the per operation fuzzing data
            config: Fuzzing configuration with the path and fuzzer selection
        """
        self.contract = contract
        self.registry = registry
        self.factory = factory
        self.config = config
        self.logger = get_logger(__name__)

    def match_supplied_paths(self) -> List[str]:
        """
        Contract paths selected for fuzzing, in contract order

        Supplied paths missing from the contract are reported with a warning.
        """
        contract_paths = self.contract.path_names()
        if self.config.all_paths:
            return contract_paths

        supplied = [path.strip() for path in self.config.paths if path.strip()]
        for path in supplied:
            if path not in self.contract.paths:
                self.logger.warning("Supplied path is not part of the contract, ignoring", path=path)
        return [path for path in contract_paths if path in supplied]

    def configured_fuzzers(self) -> List[Fuzzer]:
        return self.registry.select(self.config.fuzzers)

    def fuzzing_data_for(self, path: str) -> List[FuzzingData]:
        return self.factory.from_path_item(path, self.contract.paths.get(path) or {})

    def iter_invocations(self) -> Iterator[Invocation]:
        """
        Ordered fuzzing plan

        The same contract and selection always yield the same sequence.
        """
        fuzzers = self.configured_fuzzers()
        for path in self.match_supplied_paths():
            fuzzing_data = self.fuzzing_data_for(path)
            if not fuzzing_data:
                self.logger.info("HTTP method not supported, skipping path", path=path)
                continue

            for fuzzer in fuzzers:
                skipped = fuzzer.skip_for()
                for data in fuzzing_data:
                    if data.method in skipped:
                        self.logger.debug("Fuzzer skips HTTP method",
                                          fuzzer=fuzzer.name,
                                          path=path,
                                          method=data.method.value)
                        continue
                    yield Invocation(path=path, fuzzer=fuzzer, data=data)

    async def start_fuzzing(self) -> Dict[str, int]:
        """
        Run the fuzzing plan

        Returns:
            Number of fuzzer invocations per path
        """
        self.logger.info("Starting fuzzing",
                         contract=self.contract.source,
                         fuzzers=len(self.configured_fuzzers()))

        invocations: Dict[str, int] = {}
        for invocation in self.iter_invocations():
            self.logger.debug("Running fuzzer", invocation=str(invocation))
            try:
                await invocation.fuzzer.fuzz(invocation.data)
            except Exception as e:
                self.logger.exception("Fuzzer failed",
                                      fuzzer=invocation.fuzzer.name,
                                      path=invocation.path,
                                      method=invocation.data.method.value,
                                      error=str(e))
            invocations[invocation.path] = invocations.get(invocation.path, 0) + 1

        self.logger.info("Fuzzing completed",
                         paths=len(invocations),
                         invocations=sum(invocations.values()))
        return invocations
