"""Tests for writing settings with config.set_value / config.reset_value."""

from __future__ import annotations

import pathlib
import tomllib

import pytest

import git_ai_commit.config
import git_ai_commit.errors


def _read(path: pathlib.Path) -> dict:
    return tomllib.loads(path.read_text())


class TestSetValue:
    def test_user_scalar(self, config_home: pathlib.Path) -> None:
        path = git_ai_commit.config.set_value("engine", "claude")
        assert path == config_home / "config.toml"
        assert _read(path) == {"engine": "claude"}

    def test_preserves_other_keys(self, user_config) -> None:
        path = user_config('engine = "claude"\n[filter]\nmax_file_lines = 20\n')
        git_ai_commit.config.set_value("prompt", "gitmoji")
        assert _read(path) == {
            "engine": "claude",
            "prompt": "gitmoji",
            "filter": {"max_file_lines": 20},
        }

    def test_max_file_lines_coerced(self, config_home: pathlib.Path) -> None:
        path = git_ai_commit.config.set_value("filter.max_file_lines", "50")
        assert _read(path)["filter"]["max_file_lines"] == 50

    def test_max_file_lines_not_a_number(self, config_home: pathlib.Path) -> None:
        with pytest.raises(ValueError):
            git_ai_commit.config.set_value("filter.max_file_lines", "lots")

    def test_negative_rejected_before_write(self, config_home: pathlib.Path) -> None:
        with pytest.raises(git_ai_commit.errors.ParseError):
            git_ai_commit.config.set_value("filter.max_file_lines", "-5")
        assert not (config_home / "config.toml").exists()

    def test_list_comma_separated(self, config_home: pathlib.Path) -> None:
        path = git_ai_commit.config.set_value("filter.exclude_patterns", "docs/**, *.snap,")
        assert _read(path)["filter"]["exclude_patterns"] == ["docs/**", "*.snap"]

    def test_engine_args_shell_split(self, config_home: pathlib.Path) -> None:
        path = git_ai_commit.config.set_value("engines.claude.args", "-p --model 'opus large'")
        assert _read(path)["engines"]["claude"]["args"] == ["-p", "--model", "opus large"]

    def test_prompt_replaces_prompt_file(self, user_config) -> None:
        path = user_config('prompt_file = "mine.md"\n')
        git_ai_commit.config.set_value("prompt", "karma")
        assert _read(path) == {"prompt": "karma"}

    def test_prompt_file_replaces_prompt(self, user_config) -> None:
        path = user_config('prompt = "karma"\n')
        git_ai_commit.config.set_value("prompt_file", "mine.md")
        assert _read(path) == {"prompt_file": "mine.md"}

    @pytest.mark.parametrize("key", ["nope", "filter.nope", "engines.codex", "engines..args"])
    def test_unknown_key(self, key: str) -> None:
        with pytest.raises(KeyError, match="Unknown key"):
            git_ai_commit.config.set_value(key, "x")

    def test_repo_scope(self, repo_dir: pathlib.Path) -> None:
        path = git_ai_commit.config.set_value("engine", "codex", scope="repo", root=repo_dir)
        assert path == repo_dir / ".git-ai-commit.toml"
        assert _read(path) == {"engine": "codex"}

    def test_repo_scope_requires_root(self) -> None:
        with pytest.raises(ValueError, match="not inside a git repository"):
            git_ai_commit.config.set_value("engine", "codex", scope="repo")

    def test_invalid_existing_file(self, user_config) -> None:
        user_config("engine = ")
        with pytest.raises(git_ai_commit.errors.ParseError, match="user config"):
            git_ai_commit.config.set_value("engine", "codex")


class TestResetValue:
    def test_removes_key(self, user_config) -> None:
        path = user_config('engine = "claude"\nprompt = "karma"\n')
        assert git_ai_commit.config.reset_value("engine") is True
        assert _read(path) == {"prompt": "karma"}

    def test_drops_empty_tables(self, user_config) -> None:
        path = user_config('[engines.codex]\nargs = ["exec"]\n')
        assert git_ai_commit.config.reset_value("engines.codex.args") is True
        assert _read(path) == {}

    def test_keeps_non_empty_tables(self, user_config) -> None:
        path = user_config('[filter]\nmax_file_lines = 5\nexclude_patterns = ["x"]\n')
        git_ai_commit.config.reset_value("filter.max_file_lines")
        assert _read(path) == {"filter": {"exclude_patterns": ["x"]}}

    def test_not_set(self, user_config) -> None:
        user_config('engine = "claude"\n')
        assert git_ai_commit.config.reset_value("prompt") is False
        assert git_ai_commit.config.reset_value("filter.max_file_lines") is False

    def test_missing_file(self, config_home: pathlib.Path) -> None:
        assert git_ai_commit.config.reset_value("engine") is False
        assert not (config_home / "config.toml").exists()
