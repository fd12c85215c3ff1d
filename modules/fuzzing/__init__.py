"""
Fuzzing Modules Package
Strategies, boundary values, fuzzers and the orchestration of a fuzz pass
"""

from .strategy import FuzzingStrategy, StrategyKind, merge_fuzzing
from .boundaries import BOUNDARIES, Boundary
from .data import FuzzingData, FuzzingDataFactory
from .base import Fuzzer, BaseFieldsFuzzer, BoundaryFieldFuzzer
from .registry import FuzzerRegistry
from .orchestrator import FuzzingOrchestrator, Invocation

__all__ = [
    "FuzzingStrategy",
    "StrategyKind",
    "merge_fuzzing",
    "BOUNDARIES",
    "Boundary",
    "FuzzingData",
    "FuzzingDataFactory",
    "Fuzzer",
    "BaseFieldsFuzzer",
    "BoundaryFieldFuzzer",
    "FuzzerRegistry",
    "FuzzingOrchestrator",
    "Invocation"
]
