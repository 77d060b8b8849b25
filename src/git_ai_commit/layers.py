"""Config layers: one parsed settings source each.

A layer records only what its source actually says. ``None`` means the key
was not mentioned; ``""``, ``0`` and ``[]`` are real values that override
whatever an earlier layer set.
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import pathlib
import tomllib
from typing import Any

import git_ai_commit.diff_filter
import git_ai_commit.errors

logger = logging.getLogger("git_ai_commit.layers")


class Source(str, enum.Enum):
    DEFAULTS = "defaults"
    USER = "user config"
    REPO = "repo config"
    CLI = "command line"

    def __str__(self) -> str:
        return self.value


@dataclasses.dataclass
class FilterLayer:
    max_file_lines: int | None = None
    default_exclude_patterns: list[str] | None = None
    exclude_patterns: list[str] | None = None


@dataclasses.dataclass
class ConfigLayer:
    source: Source
    path: pathlib.Path | None = None
    engine: str | None = None
    prompt: str | None = None
    prompt_file: str | None = None
    engine_args: dict[str, list[str]] = dataclasses.field(default_factory=dict)
    filter: FilterLayer = dataclasses.field(default_factory=FilterLayer)

    def validate(self) -> None:
        if self.prompt is not None and self.prompt_file is not None:
            raise git_ai_commit.errors.ValidationError(
                "cannot set both 'prompt' and 'prompt_file'", source=str(self.source)
            )


_TOP_LEVEL_KEYS = {"engine", "prompt", "prompt_file", "engines", "filter"}
_FILTER_KEYS = {"max_file_lines", "default_exclude_patterns", "exclude_patterns"}
_ENGINE_KEYS = {"args"}


# ---------------------------------------------------------------------------
# Typed field readers
# ---------------------------------------------------------------------------

def _type_error(source: Source, key: str, expected: str) -> git_ai_commit.errors.ParseError:
    return git_ai_commit.errors.ParseError(f"{key!r} must be {expected}", source=str(source))


def _get_str(table: dict[str, Any], key: str, source: Source, prefix: str = "") -> str | None:
    if key not in table:
        return None
    value = table[key]
    if not isinstance(value, str):
        raise _type_error(source, prefix + key, "a string")
    return value


def _get_str_list(
    table: dict[str, Any], key: str, source: Source, prefix: str = ""
) -> list[str] | None:
    if key not in table:
        return None
    value = table[key]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise _type_error(source, prefix + key, "a list of strings")
    return list(value)


def _get_count(table: dict[str, Any], key: str, source: Source, prefix: str = "") -> int | None:
    if key not in table:
        return None
    value = table[key]
    # bool is an int subclass; reject it explicitly.
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise _type_error(source, prefix + key, "a non-negative integer")
    return value


def _warn_unknown(table: dict[str, Any], known: set[str], source: Source, prefix: str = "") -> None:
    for key in sorted(set(table) - known):
        logger.warning("%s: ignoring unknown key %r", source, prefix + key)


# ---------------------------------------------------------------------------
# Parsing
# ---------------------------------------------------------------------------

def _decode(data: bytes | str, source: Source) -> dict[str, Any]:
    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise git_ai_commit.errors.ParseError(
                f"not valid UTF-8: {exc}", source=str(source)
            ) from exc
    try:
        return tomllib.loads(data)
    except tomllib.TOMLDecodeError as exc:
        raise git_ai_commit.errors.ParseError(
            f"invalid TOML: {exc}", source=str(source)
        ) from exc


def _parse_engines(raw: Any, source: Source) -> dict[str, list[str]]:
    if not isinstance(raw, dict):
        raise _type_error(source, "engines", "a table")
    engine_args: dict[str, list[str]] = {}
    for name, table in raw.items():
        prefix = f"engines.{name}."
        if not isinstance(table, dict):
            raise _type_error(source, f"engines.{name}", "a table")
        _warn_unknown(table, _ENGINE_KEYS, source, prefix)
        args = _get_str_list(table, "args", source, prefix)
        if args is not None:
            engine_args[name] = args
    return engine_args


def _parse_filter(raw: Any, source: Source) -> FilterLayer:
    if not isinstance(raw, dict):
        raise _type_error(source, "filter", "a table")
    _warn_unknown(raw, _FILTER_KEYS, source, "filter.")
    return FilterLayer(
        max_file_lines=_get_count(raw, "max_file_lines", source, "filter."),
        default_exclude_patterns=_get_str_list(
            raw, "default_exclude_patterns", source, "filter."
        ),
        exclude_patterns=_get_str_list(raw, "exclude_patterns", source, "filter."),
    )


def parse(
    data: bytes | str,
    source: Source,
    path: pathlib.Path | None = None,
) -> ConfigLayer:
    """Parse one TOML settings document into a validated layer."""
    doc = _decode(data, source)
    _warn_unknown(doc, _TOP_LEVEL_KEYS, source)

    layer = ConfigLayer(
        source=source,
        path=path,
        engine=_get_str(doc, "engine", source),
        prompt=_get_str(doc, "prompt", source),
        prompt_file=_get_str(doc, "prompt_file", source),
    )
    if "engines" in doc:
        layer.engine_args = _parse_engines(doc["engines"], source)
    if "filter" in doc:
        layer.filter = _parse_filter(doc["filter"], source)

    layer.validate()
    return layer


def load_file(path: pathlib.Path, source: Source) -> ConfigLayer | None:
    """Parse the settings file at *path*, or return None if it is absent."""
    try:
        data = path.read_bytes()
    except FileNotFoundError:
        logger.debug("%s not found at %s", source, path)
        return None
    logger.debug("loaded %s from %s", source, path)
    return parse(data, source, path)


# ---------------------------------------------------------------------------
# Built-in layers
# ---------------------------------------------------------------------------

def default_layer() -> ConfigLayer:
    """Built-in defaults, the bottom of every merge."""
    return ConfigLayer(
        source=Source.DEFAULTS,
        filter=FilterLayer(
            max_file_lines=git_ai_commit.diff_filter.DEFAULT_MAX_FILE_LINES,
            default_exclude_patterns=list(git_ai_commit.diff_filter.DEFAULT_EXCLUDE_PATTERNS),
            exclude_patterns=[],
        ),
    )


def cli_layer(
    *,
    engine: str | None = None,
    prompt: str | None = None,
    prompt_file: str | None = None,
    exclude_patterns: list[str] | None = None,
) -> ConfigLayer:
    """Layer for command-line overrides; empty flags count as unset."""
    layer = ConfigLayer(
        source=Source.CLI,
        engine=engine or None,
        prompt=prompt or None,
        prompt_file=prompt_file or None,
        filter=FilterLayer(exclude_patterns=list(exclude_patterns) if exclude_patterns else None),
    )
    layer.validate()
    return layer
