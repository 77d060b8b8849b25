"""Configuration locations and the repository path guard.

Config files:
    $XDG_CONFIG_HOME/git-ai-commit/config.toml   user-wide (falls back to
                                                 ~/.config/git-ai-commit)
    <repo>/.git-ai-commit.toml                   repository
    <config dir>/trusted_repos.json              trust store
"""

from __future__ import annotations

import os
import pathlib

APP_NAME = "git-ai-commit"
USER_CONFIG_NAME = "config.toml"
REPO_CONFIG_NAME = ".git-ai-commit.toml"
TRUST_STORE_NAME = "trusted_repos.json"


# ---------------------------------------------------------------------------
# Locations
# ---------------------------------------------------------------------------

def config_dir() -> pathlib.Path:
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return pathlib.Path(xdg) / APP_NAME
    return pathlib.Path.home() / ".config" / APP_NAME


def user_config_path() -> pathlib.Path:
    return config_dir() / USER_CONFIG_NAME


def trust_store_path() -> pathlib.Path:
    return config_dir() / TRUST_STORE_NAME


def repo_config_path(repo_root: pathlib.Path) -> pathlib.Path:
    return repo_root / REPO_CONFIG_NAME


# ---------------------------------------------------------------------------
# Path guard
# ---------------------------------------------------------------------------

def real_path(path: str | os.PathLike[str]) -> pathlib.Path:
    """Absolute, symlink-free form of *path*.

    Raises ``OSError`` (usually ``FileNotFoundError``) when the path does
    not exist or cannot be inspected.
    """
    return pathlib.Path(path).resolve(strict=True)


def _is_relative_inside(rel: str) -> bool:
    if rel == os.curdir:
        return True
    return rel != os.pardir and not rel.startswith(os.pardir + os.sep)


def within(candidate: str | os.PathLike[str], root: str | os.PathLike[str]) -> bool:
    """Return True if *candidate* canonically lies inside *root*.

    Both paths are resolved through symlinks first, so an in-tree link
    pointing elsewhere is judged by its target.
    """
    candidate_real = real_path(candidate)
    root_real = real_path(root)
    try:
        rel = os.path.relpath(candidate_real, root_real)
    except ValueError:
        # Different drives on Windows.
        return False
    return _is_relative_inside(rel)


def within_lexical(
    candidate: str | os.PathLike[str], root: str | os.PathLike[str]
) -> bool:
    """Return True if *candidate* lies inside *root* before symlink resolution.

    Catches ``..`` segments and absolute paths that leave the tree even when
    a symlink would bring the final target back inside it.
    """
    candidate_abs = os.path.abspath(candidate)
    root_abs = os.path.abspath(root)
    try:
        rel = os.path.relpath(candidate_abs, root_abs)
    except ValueError:
        return False
    return _is_relative_inside(rel)
