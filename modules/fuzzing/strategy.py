"""
Fuzzing Strategies
Named policies describing how a fuzzed value is combined with the original one
"""

from enum import Enum
from typing import Any, Callable, Dict, Optional

TRUNCATION_THRESHOLD = 30


class StrategyKind(str, Enum):
    """Closed set of strategy kinds"""
    TRAIL = "TRAIL"
    REPLACE = "REPLACE"
    PREFIX = "PREFIX"
    NOOP = "NOOP"
    SKIP = "SKIP"


def _skip(value: Any, data: Any) -> Any:
    raise ValueError("SKIP strategy cannot process values, check is_skip() first")


_PROCESSORS: Dict[StrategyKind, Callable[[Any, Any], Any]] = {
    StrategyKind.REPLACE: lambda value, data: data,
    StrategyKind.PREFIX: lambda value, data: f"{data}{value}",
    StrategyKind.TRAIL: lambda value, data: f"{value}{data}",
    StrategyKind.NOOP: lambda value, data: value,
    StrategyKind.SKIP: _skip,
}


class FuzzingStrategy:
    """
    A value mutation policy with an optional payload

    The kind is fixed at construction, the payload is attached afterwards with
    ``with_data``. Instances are created per fuzz attempt through the factory
    methods and are not shared between fields.
    """

    __slots__ = ("_kind", "data")

    def __init__(self, kind: StrategyKind):
        self._kind = kind
        self.data: Optional[Any] = None

    @property
    def kind(self) -> StrategyKind:
        return self._kind

    @classmethod
    def trail(cls) -> "FuzzingStrategy":
        return cls(StrategyKind.TRAIL)

    @classmethod
    def replace(cls) -> "FuzzingStrategy":
        return cls(StrategyKind.REPLACE)

    @classmethod
    def prefix(cls) -> "FuzzingStrategy":
        return cls(StrategyKind.PREFIX)

    @classmethod
    def noop(cls) -> "FuzzingStrategy":
        return cls(StrategyKind.NOOP)

    @classmethod
    def skip(cls) -> "FuzzingStrategy":
        return cls(StrategyKind.SKIP)

    def with_data(self, data: Optional[Any]) -> "FuzzingStrategy":
        """Attach the payload used by ``process``, None means no payload"""
        self.data = data
        return self

    def is_skip(self) -> bool:
        return self._kind is StrategyKind.SKIP

    def process(self, value: Any) -> Any:
        """
        Apply the strategy to a value

        Raises:
            ValueError: If the strategy is SKIP
        """
        return _PROCESSORS[self._kind](value, self.data)

    def name(self) -> str:
        return self._kind.value

    def truncated_value(self) -> str:
        """String form with the payload cut to the truncation threshold"""
        if self.data is None:
            return self.name()
        data = str(self.data)
        if len(data) > TRUNCATION_THRESHOLD:
            data = data[:TRUNCATION_THRESHOLD] + "..."
        return f"{self.name()} with {data}"

    def __str__(self) -> str:
        if self.data is None:
            return self.name()
        return f"{self.name()} with {self.data}"

    def __repr__(self) -> str:
        return f"FuzzingStrategy({self.truncated_value()!r})"

    @classmethod
    def from_value(cls, value: Optional[str], whitespace: Optional[str]) -> "FuzzingStrategy":
        """
        Pick the strategy matching the whitespace structure of ``value``

        Blank values are replaced, values starting with a space get the
        whitespace prefixed, values ending with a space get it appended and
        anything else is left untouched.
        """
        if value is None or not value.strip():
            return cls.replace().with_data(whitespace)
        if value.startswith(" "):
            return cls.prefix().with_data(whitespace)
        if value.endswith(" "):
            return cls.trail().with_data(whitespace)
        return cls.noop().with_data(value)


def merge_fuzzing(original: Optional[str], replacement: Any, fallback: Optional[str]) -> Any:
    """
    Combine a fuzzed value with a replacement based on its edge whitespace

    >>> merge_fuzzing(" test", "air", "  ")
    '  air'
    >>> merge_fuzzing("test  ", "air", "  ")
    'air  '
    >>> merge_fuzzing("test", "air", "replaced")
    'test'
    """
    strategy = FuzzingStrategy.from_value(original, fallback)
    if strategy.kind is StrategyKind.NOOP:
        return original
    return strategy.process(replacement)
