from __future__ import annotations

import io
import os
import subprocess
import sys
from datetime import timedelta
from pathlib import Path

import pytest

import gitlog.repository as git_repository
from gitlog.repository import (
    GitRepository,
    open_repository,
    parse_commit_record,
    read_records,
    validate_path,
    validate_paths,
)
from today.exceptions import (
    HistoryUnavailableError,
    InvalidPathError,
    NotTrackedError,
    RepositoryOpenError,
    WalkError,
)

from conftest import requires_git


def test_validate_path_rejects_missing_directory(tmp_path: Path) -> None:
    with pytest.raises(InvalidPathError) as exc:
        validate_path(tmp_path / "does" / "not" / "exist")
    assert "does" in str(exc.value)


def test_validate_path_rejects_regular_file(tmp_path: Path) -> None:
    f = tmp_path / "file.txt"
    f.write_text("x", encoding="utf-8")
    with pytest.raises(InvalidPathError):
        validate_path(f)


def test_validate_path_rejects_untracked_directory(tmp_path: Path) -> None:
    plain = tmp_path / "plain"
    plain.mkdir()
    with pytest.raises(NotTrackedError) as exc:
        validate_path(plain)
    assert exc.value.path == str(plain)


def test_validate_path_accepts_git_file(tmp_path: Path) -> None:
    worktree = tmp_path / "worktree"
    worktree.mkdir()
    (worktree / ".git").write_text("gitdir: /somewhere/else\n", encoding="utf-8")
    assert validate_path(worktree) == worktree


def test_validate_paths_stops_at_first_invalid(tmp_path: Path) -> None:
    good = tmp_path / "good"
    (good / ".git").mkdir(parents=True)
    with pytest.raises(InvalidPathError):
        validate_paths([good, tmp_path / "missing"])


def test_parse_commit_record() -> None:
    record = "\n" + "\x1f".join(["a" * 40, "Jane Doe", "jane@example.com", "1700000000", "subject\n\nbody\n"])
    commit = parse_commit_record(record)
    assert commit.sha == "a" * 40
    assert commit.author_name == "Jane Doe"
    assert commit.authored_at.timestamp() == 1700000000
    assert commit.message == "subject\n\nbody"


def test_parse_commit_record_rejects_short_record() -> None:
    with pytest.raises(ValueError):
        parse_commit_record("abc\x1fonly two")


def test_read_records_splits_across_chunks() -> None:
    stream = io.StringIO("first\0second record\0third\0")
    assert list(read_records(stream, chunk_size=4)) == ["first", "second record", "third"]


@requires_git
def test_walk_yields_most_recent_first(make_repo) -> None:
    repo_path = make_repo("proj", [
        ("fix bug", 0),
        ("add feature\nlonger body", 1),
        ("initial commit", 200),
    ])
    repo = open_repository(repo_path)
    commits = list(repo.iter_commits())

    assert [c.message for c in commits] == ["fix bug", "add feature\nlonger body", "initial commit"]
    assert commits[0].author_name == "testUser"
    assert commits[0].authored_at - commits[2].authored_at >= timedelta(hours=199)
    assert repo.head() == commits[0].sha


@requires_git
def test_walk_can_be_closed_early(make_repo) -> None:
    repo_path = make_repo("proj", [("b", 0), ("a", 1)])
    walk = open_repository(repo_path).iter_commits()
    assert next(walk).message == "b"
    walk.close()


@requires_git
def test_unborn_branch_is_an_empty_walk(make_repo) -> None:
    repo = open_repository(make_repo("empty"))
    assert repo.head() is None
    assert list(repo.iter_commits()) == []


@requires_git
def test_unresolvable_head_is_history_unavailable(make_repo) -> None:
    repo_path = make_repo("broken", [("a", 1)])
    (repo_path / ".git" / "HEAD").write_text("0123456789abcdef0123456789abcdef01234567\n", encoding="utf-8")
    repo = open_repository(repo_path)
    with pytest.raises(HistoryUnavailableError):
        list(repo.iter_commits())


@pytest.mark.parametrize(
    "error",
    [
        subprocess.TimeoutExpired(["git", "rev-parse"], 60),
        FileNotFoundError(2, "No such file or directory", "git"),
    ],
)
def test_head_reports_git_failures_as_history_unavailable(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, error: Exception
) -> None:
    def failing_run_git(args, cwd, timeout_s=60):
        raise error

    monkeypatch.setattr(git_repository, "run_git", failing_run_git)
    repo = GitRepository(tmp_path, tmp_path / ".git")
    with pytest.raises(HistoryUnavailableError, match="Unable to resolve the current reference") as exc:
        repo.head()
    assert exc.value.__cause__ is error


@requires_git
def test_unreadable_git_metadata_fails_to_open(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    broken = tmp_path / "broken"
    (broken / ".git").mkdir(parents=True)
    monkeypatch.setenv("GIT_CEILING_DIRECTORIES", str(tmp_path))
    with pytest.raises(RepositoryOpenError):
        open_repository(broken)


def _install_fake_git(tmp_path: Path, monkeypatch: pytest.MonkeyPatch, log_script: str) -> None:
    fake_bin = tmp_path / "bin"
    fake_bin.mkdir()
    fake_git = fake_bin / "git"
    fake_git.write_text(
        "\n".join([
            "#!/bin/sh",
            'case "$1" in',
            "  rev-parse)",
            '    if [ "$2" = "--verify" ]; then echo 0123456789abcdef0123456789abcdef01234567; else echo "$PWD/.git"; fi',
            "    exit 0 ;;",
            "  log)",
            log_script,
            "    ;;",
            "esac",
            "exit 2",
        ]) + "\n",
        encoding="utf-8",
    )
    fake_git.chmod(0o755)
    monkeypatch.setenv("PATH", str(fake_bin) + os.pathsep + os.environ.get("PATH", ""))


@pytest.mark.skipif(sys.platform == "win32", reason="fake git is a shell script")
def test_failing_git_log_is_walk_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_git(tmp_path, monkeypatch, "    echo 'fatal: bad object' >&2; exit 128")
    repo_dir = tmp_path / "repo"
    (repo_dir / ".git").mkdir(parents=True)

    with pytest.raises(WalkError) as exc:
        list(open_repository(repo_dir).iter_commits())
    assert "bad object" in str(exc.value)


@pytest.mark.skipif(sys.platform == "win32", reason="fake git is a shell script")
def test_garbled_git_log_is_walk_error(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    _install_fake_git(tmp_path, monkeypatch, "    printf 'garbage\\000'; exit 0")
    repo_dir = tmp_path / "repo"
    (repo_dir / ".git").mkdir(parents=True)

    with pytest.raises(WalkError):
        list(open_repository(repo_dir).iter_commits())
