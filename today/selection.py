"""
Commit selection engine for today.

Walks a repository's history from the current reference backward and picks
the messages authored inside the lookback window.

The walk is assumed to yield commits in non-increasing author-time order,
which holds for plain linear histories. Under OrderingPolicy.EARLY_EXIT the
first commit at or before the threshold ends the walk, so a rebased or
cherry-picked commit with an older author date hides everything behind it.
OrderingPolicy.FULL_SCAN walks the whole history instead and only skips
out-of-window commits.
"""

from __future__ import annotations

import logging
from typing import Iterable, List

from today.types import Commit, OrderingPolicy, SelectionCriteria

logger = logging.getLogger(__name__)


def contains_author(commit: Commit, author: str) -> bool:
    """Return whether the commit's author name contains ``author``."""
    return author in commit.author_name


def first_line(message: str) -> str:
    """Return the text before the first line break of a message."""
    return message.split("\n", 1)[0]


def select_messages(walk: Iterable[Commit], criteria: SelectionCriteria) -> List[str]:
    """
    Select the messages of commits authored after the criteria threshold.

    Args:
        walk: Commits from the current reference toward its ancestors
        criteria: Threshold, author filter, truncation and ordering policy

    Returns:
        Selected messages in walk order (most recent first)
    """
    messages: List[str] = []
    inspected = 0
    skipped = 0

    for commit in walk:
        inspected += 1

        if not commit.authored_at > criteria.threshold:
            if criteria.ordering is OrderingPolicy.EARLY_EXIT:
                logger.debug(f"Stopping at {commit.sha[:8]}: authored {commit.authored_at.isoformat()}")
                break
            continue

        if criteria.has_author_filter and not contains_author(commit, criteria.author):
            skipped += 1
            continue

        if criteria.truncate:
            messages.append(first_line(commit.message))
        else:
            messages.append(commit.message)

    logger.debug(
        f"Inspected {inspected} commits, selected {len(messages)}, skipped {skipped} by author filter"
    )
    return messages
