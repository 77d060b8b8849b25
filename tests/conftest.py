"""Shared test fixtures for git-ai-commit tests."""

from __future__ import annotations

import io
import pathlib
import shutil
import subprocess

import pytest

import git_ai_commit.trust


@pytest.fixture(autouse=True)
def config_home(tmp_path: pathlib.Path, monkeypatch: pytest.MonkeyPatch) -> pathlib.Path:
    """Point $XDG_CONFIG_HOME at a temp dir so no test touches real config."""
    xdg = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg))
    monkeypatch.delenv("CLAUDECODE", raising=False)
    return xdg / "git-ai-commit"


@pytest.fixture
def user_config(config_home: pathlib.Path):
    """Factory writing the user config.toml."""

    def _create(text: str) -> pathlib.Path:
        config_home.mkdir(parents=True, exist_ok=True)
        path = config_home / "config.toml"
        path.write_text(text)
        return path

    return _create


@pytest.fixture
def repo_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """A plain directory standing in for a repository root (no git)."""
    root = tmp_path / "repo"
    root.mkdir()
    return root.resolve()


@pytest.fixture
def accepting_gate() -> git_ai_commit.trust.TrustGate:
    """Trust gate that behaves like a terminal user answering "y"."""
    return git_ai_commit.trust.TrustGate(
        ask=lambda question: True,
        interactive=lambda: True,
        out=io.StringIO(),
    )


def _git(args: list[str], cwd: pathlib.Path) -> str:
    result = subprocess.run(
        ["git", *args], cwd=cwd, capture_output=True, text=True, check=True
    )
    return result.stdout


@pytest.fixture
def git_repo(tmp_path: pathlib.Path) -> pathlib.Path:
    """An initialised git repository with a local identity."""
    if shutil.which("git") is None:
        pytest.skip("git not installed")
    root = tmp_path / "work"
    root.mkdir()
    _git(["init", "-q"], root)
    _git(["config", "user.name", "Test User"], root)
    _git(["config", "user.email", "test@example.com"], root)
    _git(["config", "commit.gpgsign", "false"], root)
    return root.resolve()


@pytest.fixture
def git():
    """Run a git command in a directory and return stdout."""
    return _git
