"""
Repository scanning service for today.

Validates requested directories, opens each repository, runs the commit
selection engine over its history and aggregates the messages per directory.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Callable, Dict, Iterable, Iterator, List, Mapping, Optional, Union

import gitlog.repository as git_repository
from today.exceptions import TodayError
from today.selection import select_messages
from today.types import Commit, DirectoryResult, ErrorPolicy, RunResult, SelectionCriteria

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


def base_directory_name(path: PathLike) -> str:
    """
    Return the label for a directory: its base name.

    ``.`` and ``./`` resolve to the current working directory so that running
    from inside a project shows the project name rather than a dot.
    """
    p = str(path)
    if p in (".", "./"):
        return os.path.basename(os.getcwd())

    name = os.path.basename(p.rstrip("/\\"))
    if name in ("", ".", ".."):
        return Path(p).resolve().name or p
    return name


def aggregate(
    directory_to_walk: Mapping[str, Iterable[Commit]],
    criteria: SelectionCriteria,
) -> Dict[str, List[str]]:
    """
    Run the selection engine over each directory's walk.

    Args:
        directory_to_walk: Requested directory path -> its commit walk
        criteria: Criteria shared by every directory in the run

    Returns:
        Directory label -> selected messages, with an entry for every directory
    """
    messages: Dict[str, List[str]] = {}
    for directory, walk in directory_to_walk.items():
        label = base_directory_name(directory)
        if label in messages:
            logger.warning(f"Directory label '{label}' is used by more than one path, merging results")
        messages.setdefault(label, []).extend(_select_and_close(walk, criteria))
    return messages


def _select_and_close(walk: Iterable[Commit], criteria: SelectionCriteria) -> List[str]:
    try:
        return select_messages(walk, criteria)
    finally:
        close = getattr(walk, "close", None)
        if close is not None:
            close()


class RepositoryScanner:
    """
    Service for collecting commit messages across several repositories.

    Directories are processed one at a time, in the order requested.
    """

    def __init__(
        self,
        error_policy: ErrorPolicy = ErrorPolicy.ABORT,
        opener: Optional[Callable[[Path], "git_repository.GitRepository"]] = None,
    ):
        """
        Initialize the repository scanner.

        Args:
            error_policy: Abort on the first failing directory or keep going
            opener: Callable that opens a repository from a validated path.
                    If None, uses gitlog.repository.open_repository.
        """
        self.error_policy = error_policy
        self.opener = opener if opener is not None else git_repository.open_repository
        logger.debug(f"RepositoryScanner initialized (error_policy={error_policy})")

    def validate(self, directories: Iterable[PathLike]) -> List[Path]:
        """Validate every directory up front; the first invalid one aborts the run."""
        return git_repository.validate_paths(directories)

    def scan_directory(self, directory: PathLike, criteria: SelectionCriteria) -> DirectoryResult:
        """
        Open a single repository and select its messages.

        Raises:
            TodayError: If the repository cannot be opened or walked
        """
        path = Path(directory)
        label = base_directory_name(directory)
        logger.info(f"Scanning repository: {label} ({directory})")

        repo = self.opener(path)
        messages = _select_and_close(repo.iter_commits(), criteria)

        logger.info(f"Found {len(messages)} messages in {label}")
        return DirectoryResult(label=label, path=path, messages=messages)

    def _unique(self, directories: Iterable[PathLike]) -> Iterator[PathLike]:
        seen = set()
        for directory in directories:
            key = os.path.realpath(str(directory))
            if key in seen:
                logger.debug(f"Skipping duplicate directory {directory}")
                continue
            seen.add(key)
            yield directory

    def scan_all(self, directories: Iterable[PathLike], criteria: SelectionCriteria) -> RunResult:
        """
        Validate, open and scan every requested directory.

        Args:
            directories: Directory paths as given on the command line
            criteria: Criteria shared by every directory in the run

        Returns:
            RunResult with one DirectoryResult per distinct directory

        Raises:
            InvalidPathError, NotTrackedError: Before anything is scanned
            TodayError: On the first failing directory, unless keep-going
        """
        directories = list(directories)
        self.validate(directories)

        logger.info(f"Scanning {len(directories)} directories since {criteria.threshold.isoformat()}")
        results: List[DirectoryResult] = []

        for directory in self._unique(directories):
            try:
                results.append(self.scan_directory(directory, criteria))
            except TodayError as e:
                if self.error_policy is ErrorPolicy.ABORT:
                    logger.error(f"Aborting run: {e}")
                    raise
                logger.warning(f"Skipping {directory}: {e}")
                results.append(
                    DirectoryResult(label=base_directory_name(directory), path=Path(directory), error=e)
                )

        labels = [result.label for result in results]
        for label in {label for label in labels if labels.count(label) > 1}:
            logger.warning(f"Directory label '{label}' is used by more than one path, merging results")

        return RunResult(directories=results, threshold=criteria.threshold)

    def collect_messages(
        self, directories: Iterable[PathLike], criteria: SelectionCriteria
    ) -> Dict[str, List[str]]:
        """Return the run-level aggregate: directory label -> selected messages."""
        return self.scan_all(directories, criteria).messages
