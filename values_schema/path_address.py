"""
Path addresses for locations inside a values schema.
A path is an ordered, immutable sequence of steps that renders to a canonical
dotted string such as ``service.ports[0].name`` or ``auth.oneOf[1].token``.
"""

from dataclasses import dataclass
from typing import Tuple, Union, Optional
import json
import re

VARIANT_KEYWORDS = ("oneOf", "anyOf")

# Names that can be joined with "." without changing how the path reads
_PLAIN_NAME = re.compile(r'^[^.\[\]"\s]+$')


@dataclass(frozen=True)
class KeyStep:
    """Step into an object property."""
    name: str

    def render(self, first: bool) -> str:
        if not _PLAIN_NAME.match(self.name) or self.name in VARIANT_KEYWORDS:
            # Bracketed JSON string, e.g. a["app.kubernetes.io/name"]
            return f"[{json.dumps(self.name, ensure_ascii=False)}]"
        return self.name if first else f".{self.name}"


@dataclass(frozen=True)
class IndexStep:
    """Step into an array element."""
    index: int

    def render(self, first: bool) -> str:
        return f"[{self.index}]"


@dataclass(frozen=True)
class VariantStep:
    """Step into one alternative of a oneOf/anyOf combinator."""
    keyword: str
    index: int

    def render(self, first: bool) -> str:
        text = f"{self.keyword}[{self.index}]"
        return text if first else f".{text}"


Step = Union[KeyStep, IndexStep, VariantStep]


@dataclass(frozen=True)
class PathAddress:
    """Location inside the schema tree.

    Equality and hashing follow the step sequence, so two addresses built
    independently compare equal when they point at the same location.
    """

    steps: Tuple[Step, ...] = ()

    @classmethod
    def root(cls) -> 'PathAddress':
        return cls(())

    def child(self, name: str) -> 'PathAddress':
        return PathAddress(self.steps + (KeyStep(name),))

    def item(self, index: int) -> 'PathAddress':
        return PathAddress(self.steps + (IndexStep(index),))

    def variant(self, keyword: str, index: int) -> 'PathAddress':
        return PathAddress(self.steps + (VariantStep(keyword, index),))

    @property
    def parent(self) -> Optional['PathAddress']:
        if not self.steps:
            return None
        return PathAddress(self.steps[:-1])

    @property
    def last_step(self) -> Optional[Step]:
        return self.steps[-1] if self.steps else None

    @property
    def is_root(self) -> bool:
        return not self.steps

    @property
    def is_variant(self) -> bool:
        """True when any step selects a combinator alternative."""
        return any(isinstance(step, VariantStep) for step in self.steps)

    def ancestors(self) -> Tuple['PathAddress', ...]:
        """All proper prefixes, shortest first, excluding the root."""
        return tuple(PathAddress(self.steps[:size]) for size in range(1, len(self.steps)))

    def startswith(self, other: 'PathAddress') -> bool:
        return self.steps[:len(other.steps)] == other.steps

    def canonical(self) -> str:
        return "".join(step.render(position == 0) for position, step in enumerate(self.steps))

    def __str__(self) -> str:
        return self.canonical()

    def __len__(self) -> int:
        return len(self.steps)
