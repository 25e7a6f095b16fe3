"""
Type definitions and data structures for today.

This module provides the value types passed between the repository accessor,
the commit selection engine and the aggregator.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from today.exceptions import TodayError


class OrderingPolicy(Enum):
    """How the selection engine treats the first commit outside the window."""
    EARLY_EXIT = "early_exit"
    FULL_SCAN = "full_scan"

    def __str__(self) -> str:
        return self.value


class ErrorPolicy(Enum):
    """How the aggregator reacts to a directory that fails mid-run."""
    ABORT = "abort"
    KEEP_GOING = "keep_going"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Commit:
    """
    A single commit as produced by a commit walk.

    Attributes:
        sha: Full commit hash
        author_name: Recorded author name
        author_email: Recorded author email
        authored_at: Author timestamp, normalized to UTC
        message: Commit message, may span several lines
    """
    sha: str
    author_name: str
    author_email: str
    authored_at: datetime
    message: str

    def __post_init__(self):
        """Normalize authored_at to an aware UTC datetime."""
        when = self.authored_at
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        object.__setattr__(self, "authored_at", when.astimezone(timezone.utc))


@dataclass(frozen=True)
class SelectionCriteria:
    """
    Immutable input to one selection run.

    Attributes:
        threshold: Only commits authored strictly after this instant qualify
        author: Optional case-sensitive substring of the author name
        truncate: Keep only the first line of each message
        ordering: Stop at the first out-of-window commit, or scan everything
    """
    threshold: datetime
    author: Optional[str] = None
    truncate: bool = False
    ordering: OrderingPolicy = OrderingPolicy.EARLY_EXIT

    def __post_init__(self):
        if self.threshold.tzinfo is None:
            object.__setattr__(self, "threshold", self.threshold.replace(tzinfo=timezone.utc))
        # An empty filter means no filtering
        if self.author == "":
            object.__setattr__(self, "author", None)

    @classmethod
    def from_lookback(
        cls,
        lookback: timedelta,
        author: Optional[str] = None,
        truncate: bool = False,
        ordering: OrderingPolicy = OrderingPolicy.EARLY_EXIT,
        now: Optional[datetime] = None,
    ) -> SelectionCriteria:
        """
        Build criteria whose threshold is ``now - lookback``.

        Args:
            lookback: How far back to look for commits
            author: Optional author substring filter
            truncate: Keep only the first line of each message
            ordering: Early exit or full scan
            now: Reference instant. Defaults to the current UTC time.

        Returns:
            SelectionCriteria with a single fixed threshold for the whole run
        """
        if lookback < timedelta(0):
            raise ValueError(f"Lookback must not be negative: {lookback}")
        if now is None:
            now = datetime.now(timezone.utc)
        try:
            threshold = now - lookback
        except OverflowError:
            raise ValueError(f"Lookback reaches before the earliest representable date: {lookback}") from None
        return cls(
            threshold=threshold,
            author=author,
            truncate=truncate,
            ordering=ordering,
        )

    @property
    def has_author_filter(self) -> bool:
        return self.author is not None


@dataclass
class DirectoryResult:
    """
    Selected messages for a single requested directory.

    Attributes:
        label: Display label, the directory's base name
        path: Path as requested on the command line
        messages: Selected messages, most recent first
        error: Failure recorded in keep-going mode, None on success
    """
    label: str
    path: Path
    messages: List[str] = field(default_factory=list)
    error: Optional[TodayError] = None

    def __post_init__(self):
        """Ensure path is a Path object."""
        if not isinstance(self.path, Path):
            self.path = Path(self.path)

    @property
    def message_count(self) -> int:
        return len(self.messages)

    @property
    def failed(self) -> bool:
        return self.error is not None


@dataclass
class RunResult:
    """
    Results of one invocation across every requested directory.

    Attributes:
        directories: Per-directory results in request order
        threshold: The instant every directory was compared against
    """
    directories: List[DirectoryResult] = field(default_factory=list)
    threshold: Optional[datetime] = None

    @property
    def messages(self) -> Dict[str, List[str]]:
        """
        Return the run-level aggregate keyed by directory label.

        Every requested directory is present, with an empty list when no
        commit qualified. Directories sharing a label are merged in request
        order.
        """
        aggregate: Dict[str, List[str]] = {}
        for result in self.directories:
            aggregate.setdefault(result.label, []).extend(result.messages)
        return aggregate

    @property
    def errors(self) -> List[TodayError]:
        return [result.error for result in self.directories if result.error is not None]

    @property
    def total_messages(self) -> int:
        """Return the number of selected messages across all directories."""
        return sum(result.message_count for result in self.directories)
