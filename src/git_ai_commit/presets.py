"""Bundled prompt presets.

Presets are markdown files shipped in ``git_ai_commit/assets``. Config
resolution never touches the package data directly; it receives a provider
object with a ``get(name)`` method so tests can substitute their own.
"""

from __future__ import annotations

import importlib.resources
from typing import Protocol

import git_ai_commit.errors

DEFAULT_PRESET = "default"


class PresetProvider(Protocol):
    def get(self, name: str) -> str: ...


def _normalize(name: str) -> str:
    return name.strip().lower()


class BundledPresets:
    """Presets read from the installed package."""

    def __init__(self, package: str = "git_ai_commit", directory: str = "assets") -> None:
        self._root = importlib.resources.files(package) / directory

    def names(self) -> list[str]:
        if not self._root.is_dir():
            return []
        return sorted(
            entry.name.removesuffix(".md")
            for entry in self._root.iterdir()
            if entry.is_file() and entry.name.endswith(".md")
        )

    def get(self, name: str) -> str:
        key = _normalize(name)
        if not key:
            raise git_ai_commit.errors.PresetNotFoundError("prompt preset is empty")
        names = self.names()
        # Bare names only, so a key can never be a path outside assets/.
        if key not in names:
            available = ", ".join(names)
            raise git_ai_commit.errors.PresetNotFoundError(
                f"preset not found: {key!r} (available: {available})"
            )
        resource = self._root / f"{key}.md"
        return resource.read_text(encoding="utf-8").strip()


class MappingPresets:
    """Presets from an in-memory ``{name: text}`` mapping."""

    def __init__(self, presets: dict[str, str]) -> None:
        self._presets = {_normalize(k): v for k, v in presets.items()}

    def names(self) -> list[str]:
        return sorted(self._presets)

    def get(self, name: str) -> str:
        key = _normalize(name)
        if not key:
            raise git_ai_commit.errors.PresetNotFoundError("prompt preset is empty")
        try:
            return self._presets[key].strip()
        except KeyError:
            available = ", ".join(self.names())
            raise git_ai_commit.errors.PresetNotFoundError(
                f"preset not found: {key!r} (available: {available})"
            ) from None
