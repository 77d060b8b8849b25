"""Tests for git_ai_commit.layers: TOML parsing into config layers."""

from __future__ import annotations

import logging
import pathlib

import pytest

import git_ai_commit.errors
import git_ai_commit.layers

Source = git_ai_commit.layers.Source


class TestParse:
    def test_full_document(self) -> None:
        layer = git_ai_commit.layers.parse(
            """\
engine = "claude"
prompt = "conventional"

[engines.claude]
args = ["-p", "--model", "sonnet"]

[filter]
max_file_lines = 40
default_exclude_patterns = ["**/*.lock"]
exclude_patterns = ["docs/**"]
""",
            Source.USER,
        )
        assert layer.engine == "claude"
        assert layer.prompt == "conventional"
        assert layer.prompt_file is None
        assert layer.engine_args == {"claude": ["-p", "--model", "sonnet"]}
        assert layer.filter.max_file_lines == 40
        assert layer.filter.default_exclude_patterns == ["**/*.lock"]
        assert layer.filter.exclude_patterns == ["docs/**"]

    def test_empty_document_sets_nothing(self) -> None:
        layer = git_ai_commit.layers.parse("", Source.USER)
        assert layer.engine is None
        assert layer.prompt is None
        assert layer.engine_args == {}
        assert layer.filter.max_file_lines is None
        assert layer.filter.exclude_patterns is None

    def test_empty_values_are_kept(self) -> None:
        layer = git_ai_commit.layers.parse(
            'engine = ""\n[filter]\nmax_file_lines = 0\nexclude_patterns = []\n',
            Source.REPO,
        )
        assert layer.engine == ""
        assert layer.filter.max_file_lines == 0
        assert layer.filter.exclude_patterns == []

    def test_accepts_bytes(self) -> None:
        layer = git_ai_commit.layers.parse(b'engine = "gemini"\n', Source.REPO)
        assert layer.engine == "gemini"

    def test_records_path(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / ".git-ai-commit.toml"
        layer = git_ai_commit.layers.parse("", Source.REPO, path)
        assert layer.path == path
        assert layer.source is Source.REPO


class TestParseErrors:
    def test_invalid_toml(self) -> None:
        with pytest.raises(git_ai_commit.errors.ParseError, match="repo config: invalid TOML"):
            git_ai_commit.layers.parse("engine = ", Source.REPO)

    def test_invalid_utf8(self) -> None:
        with pytest.raises(git_ai_commit.errors.ParseError, match="not valid UTF-8"):
            git_ai_commit.layers.parse(b"engine = \"\xff\"", Source.USER)

    def test_engine_wrong_type(self) -> None:
        with pytest.raises(git_ai_commit.errors.ParseError, match="'engine' must be a string"):
            git_ai_commit.layers.parse("engine = 1", Source.USER)

    def test_args_wrong_type(self) -> None:
        with pytest.raises(
            git_ai_commit.errors.ParseError, match="'engines.codex.args' must be a list of strings"
        ):
            git_ai_commit.layers.parse('[engines.codex]\nargs = "exec"\n', Source.USER)

    def test_negative_max_lines(self) -> None:
        with pytest.raises(git_ai_commit.errors.ParseError, match="non-negative integer"):
            git_ai_commit.layers.parse("[filter]\nmax_file_lines = -1\n", Source.USER)

    def test_bool_max_lines(self) -> None:
        with pytest.raises(git_ai_commit.errors.ParseError, match="non-negative integer"):
            git_ai_commit.layers.parse("[filter]\nmax_file_lines = true\n", Source.USER)

    def test_filter_not_a_table(self) -> None:
        with pytest.raises(git_ai_commit.errors.ParseError, match="'filter' must be a table"):
            git_ai_commit.layers.parse('filter = "x"', Source.USER)

    def test_prompt_and_prompt_file(self) -> None:
        with pytest.raises(
            git_ai_commit.errors.ValidationError,
            match="user config: cannot set both 'prompt' and 'prompt_file'",
        ):
            git_ai_commit.layers.parse('prompt = "default"\nprompt_file = "p.md"\n', Source.USER)

    def test_config_errors_share_base(self) -> None:
        with pytest.raises(git_ai_commit.errors.GitAICommitError):
            git_ai_commit.layers.parse("engine = 1", Source.USER)


class TestUnknownKeys:
    def test_warns_and_ignores(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.WARNING, logger="git_ai_commit.layers"):
            layer = git_ai_commit.layers.parse(
                'engin = "codex"\n[filter]\nmax_lines = 3\n', Source.USER
            )
        assert layer.engine is None
        assert "'engin'" in caplog.text
        assert "'filter.max_lines'" in caplog.text


class TestLoadFile:
    def test_missing_file(self, tmp_path: pathlib.Path) -> None:
        assert git_ai_commit.layers.load_file(tmp_path / "none.toml", Source.USER) is None

    def test_reads_file(self, tmp_path: pathlib.Path) -> None:
        path = tmp_path / "config.toml"
        path.write_text('prompt_file = "p.md"\n')
        layer = git_ai_commit.layers.load_file(path, Source.USER)
        assert layer is not None
        assert layer.prompt_file == "p.md"
        assert layer.path == path


class TestBuiltinLayers:
    def test_default_layer(self) -> None:
        layer = git_ai_commit.layers.default_layer()
        assert layer.source is Source.DEFAULTS
        assert layer.engine is None
        assert layer.filter.max_file_lines == 100
        assert "**/go.sum" in layer.filter.default_exclude_patterns
        assert layer.filter.exclude_patterns == []

    def test_cli_layer_empty_flags_are_unset(self) -> None:
        layer = git_ai_commit.layers.cli_layer(engine="", prompt="", prompt_file="", exclude_patterns=[])
        assert layer.engine is None
        assert layer.prompt is None
        assert layer.prompt_file is None
        assert layer.filter.exclude_patterns is None

    def test_cli_layer_values(self) -> None:
        layer = git_ai_commit.layers.cli_layer(engine="codex", exclude_patterns=["*.snap"])
        assert layer.source is Source.CLI
        assert layer.engine == "codex"
        assert layer.filter.exclude_patterns == ["*.snap"]

    def test_cli_layer_rejects_both_prompts(self) -> None:
        with pytest.raises(git_ai_commit.errors.ValidationError, match="command line"):
            git_ai_commit.layers.cli_layer(prompt="default", prompt_file="p.md")
