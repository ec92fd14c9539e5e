"""
Data models - categories, log entries, derived views and error types.
"""

import enum
import threading
from dataclasses import dataclass, field
from typing import Optional, Union

from daylog import constants
from daylog.utils import calculate_duration


class NoValidEntries(ValueError):
    """Raised when a log contains no parseable time entries."""

    def __init__(self, message: str = constants.MESSAGES["no_valid_log"]):
        super().__init__(message)


class ClassificationTransportFailure(RuntimeError):
    """Remote classification failed (transport, envelope or response shape)."""


class AdviceGenerationFailure(RuntimeError):
    """Remote advice generation failed."""


class Category(enum.Enum):
    """Closed set of life categories. Values are the display labels."""

    WORK = constants.WORK
    ROUTINE = constants.ROUTINE
    DEVELOPMENT = constants.DEVELOPMENT
    FAMILY = constants.FAMILY
    SOCIAL = constants.SOCIAL
    RESTING = constants.RESTING

    @classmethod
    def parse(cls, value: Union["Category", str]) -> "Category":
        """
        Resolve a category from a member, display label or member name.

        Raises:
            ValueError: if the value is not one of the six categories
        """
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            text = value.strip()
            for member in cls:
                if text == member.value or text.upper() == member.name:
                    return member
        raise ValueError(f"Unknown category: {value!r}")

    @classmethod
    def ordered(cls) -> list["Category"]:
        """Categories in display order."""
        return [cls(label) for label in constants.CATEGORY_ORDER]

    @property
    def color(self) -> str:
        return constants.CATEGORY_COLORS[self.value]

    @property
    def is_productive(self) -> bool:
        return self in (Category.WORK, Category.DEVELOPMENT)


class Entry:
    """A single time block parsed from the log."""

    def __init__(
        self,
        id: int,
        start: str,
        end: str,
        content: str = "",
        immersion: int = 0,
        category: Union[Category, str] = Category.ROUTINE,
    ):
        self.id = id
        self.start = start
        self.end = end
        self.content = content
        self.immersion = immersion
        self.category = category

    @property
    def category(self) -> Category:
        return self._category

    @category.setter
    def category(self, value: Union[Category, str]) -> None:
        self._category = Category.parse(value)

    @property
    def duration(self) -> int:
        """Duration in minutes, wrapping past midnight."""
        return calculate_duration(self.start, self.end)

    @property
    def time_range(self) -> str:
        return f"{self.start}-{self.end}"

    @property
    def is_synthetic(self) -> bool:
        return self.id == constants.SLEEP_ENTRY_ID

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "start": self.start,
            "end": self.end,
            "content": self.content,
            "immersion": self.immersion,
            "duration": self.duration,
            "category": self.category.value,
        }

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Entry):
            return NotImplemented
        return self.to_dict() == other.to_dict()

    def __repr__(self) -> str:
        return (
            f"Entry(id={self.id}, {self.time_range}, {self.content!r}, "
            f"immersion={self.immersion}, category={self.category.name})"
        )


@dataclass
class ParsedLog:
    """Entries plus the free-floating thought and action annotations."""
    entries: list = field(default_factory=list)
    thoughts: list = field(default_factory=list)
    actions: list = field(default_factory=list)


@dataclass(frozen=True)
class CategoryImmersion:
    """Duration-weighted average immersion for one category."""
    category: Category
    average_immersion: float
    total_time: int

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "averageImmersion": self.average_immersion,
            "totalTime": self.total_time,
        }


@dataclass(frozen=True)
class TransitionPoint:
    content: str
    immersion: int


@dataclass(frozen=True)
class EnergyTransition:
    """A jump in immersion between two consecutive active entries."""
    time: str
    type: str  # "increase" or "decrease"
    difference: int
    from_: TransitionPoint
    to: TransitionPoint

    def to_dict(self) -> dict:
        return {
            "time": self.time,
            "type": self.type,
            "difference": self.difference,
            "from": {"content": self.from_.content, "immersion": self.from_.immersion},
            "to": {"content": self.to.content, "immersion": self.to.immersion},
        }


@dataclass(frozen=True)
class SummaryStats:
    """Snapshot of every statistic computed from one entry sequence."""
    total_time: int
    category_stats: dict
    immersion_distribution: dict
    immersion_analysis: list
    transitions: list
    productivity_score: int
    entry_count: int

    def to_dict(self) -> dict:
        return {
            "totalTime": self.total_time,
            "categoryStats": {c.value: m for c, m in self.category_stats.items()},
            "immersionDistribution": dict(self.immersion_distribution),
            "immersionAnalysis": [a.to_dict() for a in self.immersion_analysis],
            "transitions": [t.to_dict() for t in self.transitions],
            "productivityScore": self.productivity_score,
            "entryCount": self.entry_count,
        }


class AdviceStatus(enum.Enum):
    NOT_STARTED = "not_started"
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


class AdviceState:
    """
    Lifecycle of the background advice request.

    Each analysis bumps the generation; results carrying an older generation
    are ignored so two analyses never interleave.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._done = threading.Event()
        self.generation = 0
        self.status = AdviceStatus.NOT_STARTED
        self.text: Optional[str] = None
        self.error: Optional[str] = None
        self._done.set()

    def reset(self) -> int:
        """Return to NOT_STARTED and start a new generation."""
        with self._lock:
            self.generation += 1
            self.status = AdviceStatus.NOT_STARTED
            self.text = None
            self.error = None
            self._done.set()
            return self.generation

    def mark_pending(self, generation: int) -> bool:
        with self._lock:
            if generation != self.generation:
                return False
            self.status = AdviceStatus.PENDING
            self._done.clear()
            return True

    def resolve(self, generation: int, text: str) -> bool:
        """Store advice text. Returns False if the result is stale."""
        with self._lock:
            if generation != self.generation:
                return False
            self.status = AdviceStatus.READY
            self.text = text
            self._done.set()
            return True

    def fail(self, generation: int, error: str) -> bool:
        """Record a failure. Returns False if the result is stale."""
        with self._lock:
            if generation != self.generation:
                return False
            self.status = AdviceStatus.FAILED
            self.error = error
            self._done.set()
            return True

    @property
    def in_flight(self) -> bool:
        return self.status is AdviceStatus.PENDING

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Block until the current request settles. Returns False on timeout."""
        return self._done.wait(timeout)
