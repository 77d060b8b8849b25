"""Tests for git_ai_commit.presets."""

from __future__ import annotations

import pytest

import git_ai_commit.errors
import git_ai_commit.presets


class TestBundledPresets:
    def test_names(self) -> None:
        names = git_ai_commit.presets.BundledPresets().names()
        assert names == ["conventional", "default", "gitmoji", "karma"]

    @pytest.mark.parametrize("name", ["default", "conventional", "gitmoji", "karma"])
    def test_get_each(self, name: str) -> None:
        text = git_ai_commit.presets.BundledPresets().get(name)
        assert text
        assert text == text.strip()

    def test_name_normalised(self) -> None:
        presets = git_ai_commit.presets.BundledPresets()
        assert presets.get("  Conventional ") == presets.get("conventional")

    def test_empty_name(self) -> None:
        with pytest.raises(git_ai_commit.errors.PresetNotFoundError, match="empty"):
            git_ai_commit.presets.BundledPresets().get("  ")

    def test_unknown_lists_available(self) -> None:
        with pytest.raises(
            git_ai_commit.errors.PresetNotFoundError,
            match=r"preset not found: 'limerick' \(available: conventional, default, gitmoji, karma\)",
        ):
            git_ai_commit.presets.BundledPresets().get("limerick")

    @pytest.mark.parametrize(
        "name", ["../assets/default", "./default", "/etc/passwd", "sub\\default", ".."]
    )
    def test_paths_are_not_names(self, name: str) -> None:
        with pytest.raises(git_ai_commit.errors.PresetNotFoundError, match="preset not found"):
            git_ai_commit.presets.BundledPresets().get(name)


class TestMappingPresets:
    def test_get(self) -> None:
        presets = git_ai_commit.presets.MappingPresets({"Short": "  Be brief.\n"})
        assert presets.get("short") == "Be brief."

    def test_unknown(self) -> None:
        presets = git_ai_commit.presets.MappingPresets({"a": "x"})
        with pytest.raises(git_ai_commit.errors.PresetNotFoundError, match="available: a"):
            presets.get("b")
