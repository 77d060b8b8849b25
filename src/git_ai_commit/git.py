"""Thin wrappers around the ``git`` binary."""

from __future__ import annotations

import contextlib
import logging
import os
import pathlib
import subprocess
import sys
import tempfile

import git_ai_commit.errors
import git_ai_commit.lockfile

logger = logging.getLogger("git_ai_commit.git")


def _run(
    args: list[str],
    *,
    cwd: pathlib.Path | None = None,
    input: str | None = None,
) -> subprocess.CompletedProcess[str]:
    try:
        return subprocess.run(
            ["git", *args],
            cwd=cwd,
            input=input,
            capture_output=True,
            text=True,
        )
    except FileNotFoundError as exc:
        raise git_ai_commit.errors.GitError("git executable not found") from exc


def _check(args: list[str], *, cwd: pathlib.Path | None = None, input: str | None = None) -> str:
    result = _run(args, cwd=cwd, input=input)
    if result.returncode != 0:
        raise git_ai_commit.errors.GitError(
            f"git {args[0]} failed: exit status {result.returncode}: {result.stderr.strip()}"
        )
    return result.stdout


def repo_root(cwd: pathlib.Path | None = None) -> pathlib.Path | None:
    """Top-level directory of the work tree containing *cwd*, or None."""
    try:
        result = _run(["rev-parse", "--show-toplevel"], cwd=cwd)
    except git_ai_commit.errors.GitError:
        logger.debug("git not available; skipping repo config")
        return None
    if result.returncode != 0:
        logger.debug("not inside a git work tree: %s", result.stderr.strip())
        return None
    top = result.stdout.strip()
    return pathlib.Path(top) if top else None


def staged_diff(cwd: pathlib.Path | None = None) -> str:
    return _check(["diff", "--staged"], cwd=cwd)


def last_commit_diff(cwd: pathlib.Path | None = None) -> str:
    return _check(["show", "HEAD", "--format=", "--no-color"], cwd=cwd)


def staged_diff_with_summary(cwd: pathlib.Path | None = None) -> str:
    """Staged diff with oversized lock-file diffs replaced by a summary line."""
    stats = git_ai_commit.lockfile.parse_numstat(
        _check(["diff", "--staged", "--numstat"], cwd=cwd)
    )
    lock_stats = [s for s in stats if git_ai_commit.lockfile.is_lock_file(s.filename)]
    if not lock_stats:
        return staged_diff(cwd)

    per_file = {s.filename: _check(["diff", "--staged", "--", s.filename], cwd=cwd) for s in stats}
    large = {
        s.filename
        for s in lock_stats
        if len(per_file[s.filename]) >= git_ai_commit.lockfile.SUMMARY_THRESHOLD
    }
    if not large:
        return staged_diff(cwd)

    parts = []
    for stat in stats:
        diff = per_file[stat.filename]
        if stat.filename in large:
            logger.debug("summarising lock file %s (%d bytes)", stat.filename, len(diff))
            parts.append(git_ai_commit.lockfile.summary(stat, len(diff)))
        else:
            parts.append(diff)
    return "".join(parts)


def add_all(cwd: pathlib.Path | None = None) -> None:
    _check(["add", "-u"], cwd=cwd)


def add_files(files: list[str], cwd: pathlib.Path | None = None) -> None:
    if not files:
        raise git_ai_commit.errors.GitError("no files provided to add")
    _check(["add", "--", *files], cwd=cwd)


def write_index_tree(cwd: pathlib.Path | None = None) -> str:
    return _check(["write-tree"], cwd=cwd).strip()


def read_index_tree(tree: str, cwd: pathlib.Path | None = None) -> None:
    if not tree.strip():
        raise git_ai_commit.errors.GitError("empty tree id")
    _check(["read-tree", tree], cwd=cwd)


def has_head_commit(cwd: pathlib.Path | None = None) -> bool:
    result = _run(["rev-parse", "--verify", "HEAD"], cwd=cwd)
    if result.returncode == 0:
        return True
    msg = result.stderr.strip()
    if "Needed a single revision" in msg or "unknown revision" in msg:
        return False
    raise git_ai_commit.errors.GitError(f"git rev-parse failed: {msg}")


def commit_with_message(
    message: str,
    *,
    amend: bool = False,
    edit: bool = False,
    cwd: pathlib.Path | None = None,
) -> None:
    """Commit the index with *message*; ``edit`` opens git's editor first."""
    if edit:
        _commit_with_edit(message, amend=amend, cwd=cwd)
        return
    args = ["commit", "-F", "-"]
    if amend:
        args.append("--amend")
    result = _run(args, cwd=cwd, input=message)
    sys.stdout.write(result.stdout)
    if result.returncode != 0:
        raise git_ai_commit.errors.GitError(
            f"git commit failed: exit status {result.returncode}: {result.stderr.strip()}"
        )
    sys.stderr.write(result.stderr)


def _commit_with_edit(message: str, *, amend: bool, cwd: pathlib.Path | None) -> None:
    fd, name = tempfile.mkstemp(prefix="git-ai-commit-", suffix=".txt")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            fh.write(message)
        args = ["git", "commit", "--edit", "-F", name]
        if amend:
            args.append("--amend")
        # Inherit the terminal so the editor can run.
        returncode = subprocess.call(args, cwd=cwd)
        if returncode != 0:
            raise git_ai_commit.errors.GitError(f"git commit failed: exit status {returncode}")
    finally:
        with contextlib.suppress(OSError):
            os.unlink(name)
