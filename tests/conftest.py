from __future__ import annotations

import logging
import os
import shutil
import subprocess
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Callable, Iterator, List

import pytest

from today.types import Commit

NOW = datetime(2024, 5, 14, 17, 30, 0, tzinfo=timezone.utc)

requires_git = pytest.mark.skipif(shutil.which("git") is None, reason="git is not installed")


@pytest.fixture(autouse=True)
def isolated_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.setenv("USERPROFILE", str(home))
    monkeypatch.setenv("GIT_CONFIG_NOSYSTEM", "1")
    for var in ("TODAY_SINCE", "TODAY_AUTHOR", "TODAY_SHORT", "TODAY_LOG_FILE", "GIT_DIR", "GIT_WORK_TREE"):
        monkeypatch.delenv(var, raising=False)

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    logging.disable(logging.NOTSET)


def make_commit(message: str, hours_ago: float, author: str = "testUser", now: datetime = NOW) -> Commit:
    return Commit(
        sha=f"{abs(hash((message, hours_ago, author))):040x}"[:40],
        author_name=author,
        author_email=f"{author.lower()}@example.com",
        authored_at=now - timedelta(hours=hours_ago),
        message=message,
    )


def git(repo: Path, *args: str, env: dict | None = None) -> str:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(repo),
        env={**os.environ, **(env or {})},
        capture_output=True,
        text=True,
        check=True,
    )
    return proc.stdout


def commit_at(repo: Path, message: str, when: datetime, author: str = "testUser") -> None:
    stamp = f"{int(when.timestamp())} +0000"
    git(
        repo,
        "commit",
        "--allow-empty",
        "--no-verify",
        "-q",
        "-m",
        message,
        env={
            "GIT_AUTHOR_NAME": author,
            "GIT_AUTHOR_EMAIL": f"{author.lower()}@example.com",
            "GIT_AUTHOR_DATE": stamp,
            "GIT_COMMITTER_NAME": author,
            "GIT_COMMITTER_EMAIL": f"{author.lower()}@example.com",
            "GIT_COMMITTER_DATE": stamp,
        },
    )


@pytest.fixture
def make_repo(tmp_path: Path) -> Callable[..., Path]:
    """Create a git repository under tmp_path with the given (message, hours_ago, author) commits."""

    def factory(name: str, commits: List[tuple] = ()) -> Path:
        repo = tmp_path / name
        repo.mkdir(parents=True)
        git(repo, "init", "-q")
        git(repo, "config", "commit.gpgsign", "false")
        now = datetime.now(timezone.utc)
        # Oldest first so HEAD ends up on the most recent commit
        for entry in reversed(list(commits)):
            message, hours_ago = entry[0], entry[1]
            author = entry[2] if len(entry) > 2 else "testUser"
            commit_at(repo, message, now - timedelta(hours=hours_ago), author=author)
        return repo

    return factory
