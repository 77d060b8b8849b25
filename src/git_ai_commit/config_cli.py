"""CLI for git-ai-commit configuration.

Usage:
    git-ai-commit config path                          Show file locations
    git-ai-commit config show                          Dump effective config
    git-ai-commit config set [--repo] <key> <value>    Write a config value
    git-ai-commit config reset [--repo] <key>          Remove a config value
    git-ai-commit config edit [--repo]                 Open the file in $EDITOR
    git-ai-commit config trust                         List trusted repo configs

Keys: engine, prompt, prompt_file, filter.max_file_lines,
filter.default_exclude_patterns, filter.exclude_patterns (comma-separated),
engines.<name>.args (shell-quoted).
"""

from __future__ import annotations

import argparse
import os
import subprocess
import sys
from pathlib import Path

import git_ai_commit.config
import git_ai_commit.errors
import git_ai_commit.git
import git_ai_commit.paths
import git_ai_commit.trust


def _scope(repo_flag: bool) -> str:
    return "repo" if repo_flag else "user"


def _repo_root(repo_flag: bool, cwd: Path) -> Path | None:
    return git_ai_commit.git.repo_root(cwd) if repo_flag else None


def cmd_path(cwd: Path) -> int:
    """Print where configuration is read from."""
    print(f"user config:  {git_ai_commit.paths.user_config_path()}")
    root = git_ai_commit.git.repo_root(cwd)
    if root is None:
        print("repo config:  - (not inside a git repository)")
    else:
        repo_config = git_ai_commit.paths.repo_config_path(root)
        suffix = "" if repo_config.is_file() else " (absent)"
        print(f"repo config:  {repo_config}{suffix}")
    print(f"trust store:  {git_ai_commit.paths.trust_store_path()}")
    return 0


def cmd_show(cwd: Path) -> int:
    """Dump the effective configuration."""
    try:
        cfg = git_ai_commit.config.load(cwd)
    except (git_ai_commit.errors.GitAICommitError, OSError) as exc:
        print(str(exc), file=sys.stderr)
        return 1

    print(f"engine = {cfg.engine or '-'!r}")
    print(f"prompt = {cfg.prompt_source}")
    print(f"repo_config = {str(cfg.repo_config) if cfg.repo_config else '-'}")
    print()
    print("[engines]")
    for name in sorted(cfg.engine_args):
        print(f"  {name}.args = {cfg.engine_args[name]!r}")
    print()
    print("[filter]")
    print(f"  max_file_lines = {cfg.filter.max_file_lines!r}")
    print(f"  default_exclude_patterns = {list(cfg.filter.default_exclude_patterns)!r}")
    print(f"  exclude_patterns = {list(cfg.filter.exclude_patterns)!r}")
    return 0


def cmd_set(key: str, value: str, *, repo_flag: bool, cwd: Path) -> int:
    """Set a config value in the TOML file."""
    scope = _scope(repo_flag)
    try:
        path = git_ai_commit.config.set_value(
            key, value, scope=scope, root=_repo_root(repo_flag, cwd)
        )
    except (KeyError, ValueError, git_ai_commit.errors.ConfigError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    print(f"Set {key} = {value} ({scope}: {path})")
    return 0


def cmd_reset(key: str, *, repo_flag: bool, cwd: Path) -> int:
    """Remove a config value."""
    scope = _scope(repo_flag)
    try:
        removed = git_ai_commit.config.reset_value(
            key, scope=scope, root=_repo_root(repo_flag, cwd)
        )
    except (KeyError, ValueError, git_ai_commit.errors.ConfigError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    if removed:
        print(f"Reset {key} ({scope})")
    else:
        print(f"{key} is not set ({scope})")
    return 0


def cmd_edit(*, repo_flag: bool, cwd: Path) -> int:
    """Open the config TOML in the user's editor."""
    try:
        path = git_ai_commit.config.scope_path(
            _scope(repo_flag), _repo_root(repo_flag, cwd)
        )
    except ValueError as exc:
        print(str(exc), file=sys.stderr)
        return 1

    path.parent.mkdir(parents=True, exist_ok=True)
    if not path.exists():
        path.write_text("# git-ai-commit configuration\n# See: git-ai-commit config --help\n")

    editor = os.environ.get("EDITOR", "vi")
    return subprocess.call([editor, str(path)])


def cmd_trust() -> int:
    """List trusted repository configs."""
    try:
        store = git_ai_commit.trust.TrustStore.load()
    except (git_ai_commit.errors.ConfigError, OSError) as exc:
        print(str(exc), file=sys.stderr)
        return 1
    if not store.entries:
        print("No trusted repo configs.")
        return 0
    for entry in store.entries:
        print(entry.config_path)
        print(f"  repo: {entry.repo_root}")
        print(f"  sha256: {entry.hash}")
    return 0


def main(argv: list[str] | None = None) -> int:
    """Entry point for ``git-ai-commit config``."""
    parser = argparse.ArgumentParser(
        prog="git-ai-commit config",
        description="git-ai-commit configuration.",
    )
    sub = parser.add_subparsers(dest="subcmd")

    p_path = sub.add_parser("path", help="Show config and trust store locations")
    p_path.add_argument("--path", type=Path, default=Path.cwd())

    p_show = sub.add_parser("show", help="Dump full effective config")
    p_show.add_argument("--path", type=Path, default=Path.cwd())

    p_set = sub.add_parser("set", help="Set a config value")
    p_set.add_argument("key", help="e.g. engine or filter.max_file_lines")
    p_set.add_argument("value", help="New value")
    p_set.add_argument("--repo", dest="repo_flag", action="store_true")
    p_set.add_argument("--path", type=Path, default=Path.cwd())

    p_reset = sub.add_parser("reset", help="Remove a config value")
    p_reset.add_argument("key")
    p_reset.add_argument("--repo", dest="repo_flag", action="store_true")
    p_reset.add_argument("--path", type=Path, default=Path.cwd())

    p_edit = sub.add_parser("edit", help="Open the config file in $EDITOR")
    p_edit.add_argument("--repo", dest="repo_flag", action="store_true")
    p_edit.add_argument("--path", type=Path, default=Path.cwd())

    sub.add_parser("trust", help="List trusted repo configs")

    args = parser.parse_args(argv)

    if args.subcmd is None:
        parser.print_help()
        return 1

    if args.subcmd == "path":
        return cmd_path(args.path)
    elif args.subcmd == "show":
        return cmd_show(args.path)
    elif args.subcmd == "set":
        return cmd_set(args.key, args.value, repo_flag=args.repo_flag, cwd=args.path)
    elif args.subcmd == "reset":
        return cmd_reset(args.key, repo_flag=args.repo_flag, cwd=args.path)
    elif args.subcmd == "edit":
        return cmd_edit(repo_flag=args.repo_flag, cwd=args.path)
    elif args.subcmd == "trust":
        return cmd_trust()
    else:
        parser.print_help()
        return 1
