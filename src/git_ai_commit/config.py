"""Layered configuration with trust-gated repository settings.

``load()`` merges code defaults → user TOML → repo TOML → command line into
one read-only :class:`MergedConfig`, or raises. There is no partial result:
a repository config that is present but not trusted aborts the whole load
rather than being skipped.

Config files:
    ~/.config/git-ai-commit/config.toml   user-wide ($XDG_CONFIG_HOME honoured)
    <repo>/.git-ai-commit.toml            repository (trust-gated)
"""

from __future__ import annotations

import dataclasses
import logging
import os
import pathlib
import shlex
import shutil
import tomllib
from typing import TYPE_CHECKING, Any

import git_ai_commit.diff_filter
import git_ai_commit.engine
import git_ai_commit.errors
import git_ai_commit.git
import git_ai_commit.layers
import git_ai_commit.paths
import git_ai_commit.presets
import git_ai_commit.trust

if TYPE_CHECKING:
    from collections.abc import Callable

    from git_ai_commit.layers import ConfigLayer

Source = git_ai_commit.layers.Source

logger = logging.getLogger("git_ai_commit.config")


# ---------------------------------------------------------------------------
# Resolved shapes
# ---------------------------------------------------------------------------

@dataclasses.dataclass(frozen=True)
class PromptSelector:
    kind: str  # "preset" or "file"
    value: str
    source: Source
    base_dir: pathlib.Path | None = None


@dataclasses.dataclass(frozen=True)
class FilterSettings:
    max_file_lines: int
    default_exclude_patterns: tuple[str, ...]
    exclude_patterns: tuple[str, ...]

    @property
    def patterns(self) -> tuple[str, ...]:
        return self.default_exclude_patterns + self.exclude_patterns

    def options(self) -> git_ai_commit.diff_filter.FilterOptions:
        return git_ai_commit.diff_filter.FilterOptions(
            max_file_lines=self.max_file_lines,
            exclude_patterns=self.patterns,
        )


@dataclasses.dataclass
class MergedLayer:
    engine: str
    selector: PromptSelector | None
    engine_args: dict[str, list[str]]
    filter: FilterSettings


@dataclasses.dataclass(frozen=True)
class MergedConfig:
    engine: str
    prompt: str
    prompt_source: str
    engine_args: dict[str, list[str]]
    filter: FilterSettings
    repo_root: pathlib.Path | None = None
    repo_config: pathlib.Path | None = None


# ---------------------------------------------------------------------------
# Merge
# ---------------------------------------------------------------------------

def _selector_of(layer: ConfigLayer) -> PromptSelector | None:
    base_dir = layer.path.parent if layer.path is not None else None
    if layer.prompt is not None:
        return PromptSelector("preset", layer.prompt, layer.source, base_dir)
    if layer.prompt_file is not None:
        return PromptSelector("file", layer.prompt_file, layer.source, base_dir)
    return None


def merge(
    default: ConfigLayer,
    user: ConfigLayer | None = None,
    repo: ConfigLayer | None = None,
    cli: ConfigLayer | None = None,
) -> MergedLayer:
    """Combine layers in precedence order; later layers win.

    Scalars and the prompt selector come from the last layer that set them.
    Engine argument lists are replaced per engine name, never merged.
    ``default_exclude_patterns`` is replaced by the last layer that set it;
    ``exclude_patterns`` accumulate across all layers in order.
    """
    engine = ""
    selector: PromptSelector | None = None
    engine_args: dict[str, list[str]] = {}
    max_lines = 0
    default_patterns: list[str] = []
    extra_patterns: list[str] = []

    for layer in (default, user, repo, cli):
        if layer is None:
            continue
        if layer.engine is not None:
            engine = layer.engine
        layer_selector = _selector_of(layer)
        if layer_selector is not None:
            selector = layer_selector
        for name, args in layer.engine_args.items():
            engine_args[name] = list(args)
        if layer.filter.max_file_lines is not None:
            max_lines = layer.filter.max_file_lines
        if layer.filter.default_exclude_patterns is not None:
            default_patterns = list(layer.filter.default_exclude_patterns)
        if layer.filter.exclude_patterns is not None:
            extra_patterns.extend(layer.filter.exclude_patterns)

    return MergedLayer(
        engine=engine.strip(),
        selector=selector,
        engine_args=engine_args,
        filter=FilterSettings(
            max_file_lines=max_lines,
            default_exclude_patterns=tuple(default_patterns),
            exclude_patterns=tuple(extra_patterns),
        ),
    )


# ---------------------------------------------------------------------------
# Prompt resolution
# ---------------------------------------------------------------------------

def _prompt_file_path(
    selector: PromptSelector, cwd: pathlib.Path | None
) -> pathlib.Path:
    raw = selector.value
    if selector.source is not Source.REPO:
        raw = os.path.expanduser(raw)
    if selector.source is Source.CLI or selector.base_dir is None:
        base = cwd if cwd is not None else pathlib.Path.cwd()
    else:
        base = selector.base_dir
    # An absolute value replaces the base entirely.
    return base / raw


def _guard_repo_path(candidate: pathlib.Path, repo_root: pathlib.Path | None) -> None:
    if repo_root is None:
        raise git_ai_commit.errors.PathEscapeError(
            f"prompt_file from repo config has no repository root to check against: {candidate}"
        )
    if not git_ai_commit.paths.within_lexical(candidate, repo_root):
        raise git_ai_commit.errors.PathEscapeError(
            f"prompt_file from repo config escapes the repository: {candidate}"
        )
    if not git_ai_commit.paths.within(candidate, repo_root):
        raise git_ai_commit.errors.PathEscapeError(
            f"prompt_file from repo config resolves outside the repository: {candidate}"
        )


def resolve_prompt(
    selector: PromptSelector | None,
    *,
    presets: git_ai_commit.presets.PresetProvider,
    repo_root: pathlib.Path | None = None,
    cwd: pathlib.Path | None = None,
) -> tuple[str, str]:
    """Return ``(prompt text, origin)`` for the winning selector.

    No selector means the ``default`` preset. Files named by the repo
    config must stay inside *repo_root*, judged both before and after
    symlink resolution.
    """
    if selector is None or selector.kind == "preset":
        name = git_ai_commit.presets.DEFAULT_PRESET if selector is None else selector.value
        text = presets.get(name)
        return text.strip(), f"preset {name.strip().lower()!r}"

    candidate = _prompt_file_path(selector, cwd)
    if selector.source is Source.REPO:
        _guard_repo_path(candidate, repo_root)
    text = candidate.read_text(encoding="utf-8")
    logger.debug("prompt read from %s (%s)", candidate, selector.source)
    return text.strip(), f"file {candidate}"


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def load(
    cwd: pathlib.Path | None = None,
    *,
    cli: ConfigLayer | None = None,
    repo_root: pathlib.Path | None = None,
    presets: git_ai_commit.presets.PresetProvider | None = None,
    gate: git_ai_commit.trust.TrustGate | None = None,
    which: Callable[[str], str | None] = shutil.which,
) -> MergedConfig:
    """Resolve the effective configuration for a run.

    *repo_root* defaults to git's top-level directory for *cwd*; outside a
    work tree only the user layer applies.
    """
    if cwd is None:
        cwd = pathlib.Path.cwd()
    if presets is None:
        presets = git_ai_commit.presets.BundledPresets()
    if gate is None:
        gate = git_ai_commit.trust.TrustGate()

    user = git_ai_commit.layers.load_file(
        git_ai_commit.paths.user_config_path(), Source.USER
    )

    if repo_root is None:
        repo_root = git_ai_commit.git.repo_root(cwd)
    repo: ConfigLayer | None = None
    repo_config: pathlib.Path | None = None
    if repo_root is not None:
        candidate = git_ai_commit.paths.repo_config_path(repo_root)
        if candidate.is_file():
            data = gate.load(repo_root, candidate)
            repo = git_ai_commit.layers.parse(data, Source.REPO, candidate)
            repo_config = candidate
            logger.debug("loaded %s from %s", Source.REPO, candidate)

    merged = merge(git_ai_commit.layers.default_layer(), user, repo, cli)

    engine = merged.engine
    if not engine:
        engine = git_ai_commit.engine.detect_engine(which)

    prompt, origin = resolve_prompt(
        merged.selector, presets=presets, repo_root=repo_root, cwd=cwd
    )

    return MergedConfig(
        engine=engine,
        prompt=prompt,
        prompt_source=origin,
        engine_args=merged.engine_args,
        filter=merged.filter,
        repo_root=repo_root,
        repo_config=repo_config,
    )


# ---------------------------------------------------------------------------
# Writing settings files
# ---------------------------------------------------------------------------

_SCALAR_KEYS = {"engine", "prompt", "prompt_file"}
_FILTER_LIST_KEYS = {"default_exclude_patterns", "exclude_patterns"}
_EXCLUSIVE = {"prompt": "prompt_file", "prompt_file": "prompt"}


def _split_key(key: str) -> list[str]:
    parts = key.split(".")
    if len(parts) == 1 and parts[0] in _SCALAR_KEYS:
        return parts
    if len(parts) == 2 and parts[0] == "filter" and (
        parts[1] == "max_file_lines" or parts[1] in _FILTER_LIST_KEYS
    ):
        return parts
    if len(parts) == 3 and parts[0] == "engines" and parts[1] and parts[2] == "args":
        return parts
    raise KeyError(f"Unknown key: {key}")


def _coerce(parts: list[str], value: str) -> Any:
    """Coerce a CLI string to the type stored under *parts*."""
    leaf = parts[-1]
    if leaf == "max_file_lines":
        return int(value)
    if leaf in _FILTER_LIST_KEYS:
        return [p.strip() for p in value.split(",") if p.strip()]
    if leaf == "args":
        return shlex.split(value)
    return value


def scope_path(scope: str, root: pathlib.Path | None = None) -> pathlib.Path:
    if scope == "user":
        return git_ai_commit.paths.user_config_path()
    if scope == "repo":
        if root is None:
            raise ValueError("not inside a git repository")
        return git_ai_commit.paths.repo_config_path(root)
    raise ValueError(f"Unknown scope: {scope}")


def _scope_source(scope: str) -> Source:
    return Source.REPO if scope == "repo" else Source.USER


def _load_toml(path: pathlib.Path, source: Source) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        return tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as exc:
        raise git_ai_commit.errors.ParseError(
            f"invalid TOML in {path}: {exc}", source=str(source)
        ) from exc


def _write_toml(path: pathlib.Path, data: dict[str, Any]) -> None:
    import tomli_w

    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(tomli_w.dumps(data).encode())


def _validate_doc(data: dict[str, Any], source: Source, path: pathlib.Path) -> None:
    import tomli_w

    git_ai_commit.layers.parse(tomli_w.dumps(data), source, path)


def set_value(
    key: str,
    value: Any,
    *,
    scope: str = "user",
    root: pathlib.Path | None = None,
) -> pathlib.Path:
    """Write a setting to the user (or repo) TOML file.

    Setting ``prompt`` drops ``prompt_file`` and vice versa, so the file
    never ends up with both.
    """
    parts = _split_key(key)
    if isinstance(value, str):
        value = _coerce(parts, value)

    path = scope_path(scope, root)
    source = _scope_source(scope)
    data = _load_toml(path, source)

    table = data
    for part in parts[:-1]:
        table = table.setdefault(part, {})
    table[parts[-1]] = value
    if key in _EXCLUSIVE:
        data.pop(_EXCLUSIVE[key], None)

    _validate_doc(data, source, path)
    _write_toml(path, data)
    return path


def reset_value(
    key: str,
    *,
    scope: str = "user",
    root: pathlib.Path | None = None,
) -> bool:
    """Remove a setting; returns False when it was not set."""
    parts = _split_key(key)
    path = scope_path(scope, root)
    data = _load_toml(path, _scope_source(scope))

    chain = [data]
    for part in parts[:-1]:
        nxt = chain[-1].get(part)
        if not isinstance(nxt, dict):
            return False
        chain.append(nxt)
    if parts[-1] not in chain[-1]:
        return False
    del chain[-1][parts[-1]]

    # Drop tables left empty, innermost first.
    for depth in range(len(parts) - 1, 0, -1):
        parent, name = chain[depth - 1], parts[depth - 1]
        if not chain[depth]:
            del parent[name]
    _write_toml(path, data)
    return True
