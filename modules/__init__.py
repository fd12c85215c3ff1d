"""
contractfuzz Modules Package
Contains the fuzzing engine
"""

from .fuzzing import FuzzingOrchestrator, FuzzerRegistry

__all__ = [
    "FuzzingOrchestrator",
    "FuzzerRegistry"
]
