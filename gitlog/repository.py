"""
Read-only access to local git repositories.

Repositories are read through the git CLI. The commit walk streams
``git log`` output so that a caller which stops early never pays for the
rest of the history.
"""

from __future__ import annotations

import logging
import subprocess
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import IO, Iterable, Iterator, List, Optional, Tuple, Union

from today.exceptions import (
    HistoryUnavailableError,
    InvalidPathError,
    NotTrackedError,
    RepositoryOpenError,
    WalkError,
)
from today.types import Commit

logger = logging.getLogger(__name__)

FIELD_SEPARATOR = "\x1f"
RECORD_SEPARATOR = "\0"

# sha, author name, author email, author unix time, raw message
LOG_FORMAT = "%H%x1f%an%x1f%ae%x1f%at%x1f%B"

PathLike = Union[str, Path]


def run_git(args: List[str], cwd: Path, timeout_s: int = 60) -> Tuple[int, str, str]:
    proc = subprocess.run(
        ["git", *args],
        cwd=str(cwd),
        capture_output=True,
        text=True,
        timeout=timeout_s,
    )
    return proc.returncode, proc.stdout, proc.stderr


def validate_path(path: PathLike) -> Path:
    """
    Ensure a path is an existing directory tracked by git.

    Args:
        path: Directory as given on the command line

    Returns:
        The path as a Path object

    Raises:
        InvalidPathError: If the path does not exist or is not a directory
        NotTrackedError: If the directory has no .git entry
    """
    p = Path(path)
    if not p.is_dir():
        raise InvalidPathError(f"expected directory, but got {path}", path=str(path))

    # A .git file is fine too, worktrees and submodules use one
    if not (p / ".git").exists():
        raise NotTrackedError(f"{path} is not tracked by git", path=str(path))

    return p


def validate_paths(paths: Iterable[PathLike]) -> List[Path]:
    """Validate every path before any history is read; the first failure aborts."""
    return [validate_path(p) for p in paths]


def parse_commit_record(record: str) -> Commit:
    """
    Parse one ``git log -z --format=LOG_FORMAT`` record into a Commit.

    Raises:
        ValueError: If the record does not have the expected fields
    """
    parts = record.split(FIELD_SEPARATOR, 4)
    if len(parts) != 5:
        raise ValueError(f"unexpected git log record with {len(parts)} fields")

    sha, author_name, author_email, timestamp, message = parts
    return Commit(
        sha=sha.strip(),
        author_name=author_name,
        author_email=author_email,
        authored_at=datetime.fromtimestamp(int(timestamp), tz=timezone.utc),
        message=message.rstrip("\n"),
    )


def read_records(stream: IO[str], separator: str = RECORD_SEPARATOR, chunk_size: int = 8192) -> Iterator[str]:
    """Yield separator-delimited records from a text stream as they arrive."""
    pending = ""
    while True:
        chunk = stream.read(chunk_size)
        if not chunk:
            break
        pending += chunk
        *records, pending = pending.split(separator)
        for record in records:
            yield record
    if pending:
        yield pending


class GitRepository:
    """
    A local git repository opened for reading.

    Provides the current reference and a lazy, first-parent commit walk
    starting from it.
    """

    def __init__(self, path: Path, git_dir: Path):
        self.path = path
        self.git_dir = git_dir

    def __repr__(self) -> str:
        return f"GitRepository({str(self.path)!r})"

    def head(self) -> Optional[str]:
        """
        Resolve the current reference to a commit hash.

        Returns:
            The commit hash, or None when the current branch has no commits yet

        Raises:
            HistoryUnavailableError: If HEAD exists but does not resolve to a commit,
                or git cannot be run
        """
        try:
            code, out, _ = run_git(["rev-parse", "--verify", "-q", "HEAD^{commit}"], cwd=self.path)
            if code == 0:
                return out.strip()

            # An unborn branch still has a symbolic HEAD
            code, out, _ = run_git(["symbolic-ref", "-q", "HEAD"], cwd=self.path)
        except (OSError, subprocess.SubprocessError) as e:
            raise HistoryUnavailableError(
                f"Unable to resolve the current reference of '{self.path}': {e}", path=str(self.path)
            ) from e
        if code == 0:
            logger.info(f"{self.path} has no commits on {out.strip()}")
            return None

        raise HistoryUnavailableError(
            f"Unable to resolve the current reference of '{self.path}'", path=str(self.path)
        )

    def iter_commits(self) -> Iterator[Commit]:
        """
        Walk the history from HEAD toward its ancestors, following first parents.

        Commits are produced as ``git log`` emits them. Closing the iterator
        before it is exhausted stops the git process.

        Raises:
            HistoryUnavailableError: If HEAD cannot be resolved
            WalkError: If git log fails or emits a record that cannot be parsed
        """
        head = self.head()
        if head is None:
            return

        cmd = ["git", "log", "--first-parent", "-z", f"--format={LOG_FORMAT}", head]
        logger.debug(f"Running {' '.join(cmd)} in {self.path}")

        try:
            proc = subprocess.Popen(
                cmd,
                cwd=str(self.path),
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            raise WalkError(f"Failed to start git log in '{self.path}': {e}", path=str(self.path)) from e

        stderr_chunks: List[str] = []

        def drain_stderr() -> None:
            if proc.stderr is None:
                return
            while True:
                chunk = proc.stderr.read(8192)
                if not chunk:
                    return
                stderr_chunks.append(chunk)

        stderr_thread = threading.Thread(target=drain_stderr, daemon=True)
        stderr_thread.start()

        assert proc.stdout is not None
        exhausted = False
        count = 0
        try:
            for record in read_records(proc.stdout):
                if not record.strip():
                    continue
                try:
                    commit = parse_commit_record(record)
                except ValueError as e:
                    raise WalkError(
                        f"Unreadable history in '{self.path}' after {count} commits: {e}",
                        path=str(self.path),
                    ) from e
                count += 1
                yield commit
            exhausted = True
        finally:
            if not exhausted and proc.poll() is None:
                proc.kill()
            proc.stdout.close()
            code = proc.wait()
            stderr_thread.join()
            logger.debug(f"git log in {self.path} finished with {code} after {count} commits")

        if code != 0:
            stderr = "".join(stderr_chunks).strip()
            raise WalkError(f"git log exited {code} in '{self.path}': {stderr[:500]}", path=str(self.path))


def open_repository(path: PathLike) -> GitRepository:
    """
    Open a validated directory which is tracked by git.

    Raises:
        RepositoryOpenError: If git is unavailable or cannot read the repository
    """
    p = Path(path)
    try:
        code, out, err = run_git(["rev-parse", "--absolute-git-dir"], cwd=p)
    except (OSError, subprocess.SubprocessError) as e:
        raise RepositoryOpenError(f"Unable to open local directory '{path}': {e}", path=str(path)) from e

    if code != 0:
        raise RepositoryOpenError(
            f"Unable to open local directory '{path}': {err.strip()}", path=str(path)
        )

    git_dir = Path(out.strip())
    logger.debug(f"Opened {path} (git dir {git_dir})")
    return GitRepository(path=p, git_dir=git_dir)
