"""Unified-diff filtering: drop noisy files and cap per-file length.

Operates on plain strings only. Callers decide which patterns and limits
apply (see ``FilterSettings.options()`` in :mod:`git_ai_commit.config`).
"""

from __future__ import annotations

import dataclasses
import functools

import pathspec

import git_ai_commit.errors

DEFAULT_MAX_FILE_LINES = 100

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    "**/*.lock",
    "**/*-lock.json",
    "**/*.lock.yaml",
    "**/*-lock.yaml",
    "**/*.lockfile",
    "**/*.min.js",
    "**/*.min.css",
    "**/*.map",
    "**/go.sum",
)

_DIFF_HEADER = "diff --git "
_CONTENT_PREFIXES = ("+", "-", " ")


@dataclasses.dataclass(frozen=True)
class FilterOptions:
    max_file_lines: int = 0  # 0 disables truncation
    exclude_patterns: tuple[str, ...] = ()


@dataclasses.dataclass
class FilterResult:
    diff: str
    truncated: bool = False
    truncated_files: list[str] = dataclasses.field(default_factory=list)
    excluded_files: list[str] = dataclasses.field(default_factory=list)

    def notice(self) -> str:
        """Trailer telling the engine what was left out, or ``""``."""
        parts = []
        if self.excluded_files:
            parts.append(f"Excluded files: {', '.join(self.excluded_files)}")
        if self.truncated_files:
            parts.append(f"Truncated files: {', '.join(self.truncated_files)}")
        if not parts:
            return ""
        return "\n\n[Filter notice: " + "; ".join(parts) + "]"


# ---------------------------------------------------------------------------
# Pattern matching
# ---------------------------------------------------------------------------

@functools.lru_cache(maxsize=64)
def compile_patterns(patterns: tuple[str, ...]) -> pathspec.PathSpec:
    """Build a gitignore-style matcher: ``**`` crosses directories, ``*`` does not.

    Patterns without a slash match at any depth, so ``go.sum`` excludes
    ``vendor/x/go.sum``. A later ``!pattern`` re-includes what an earlier
    one excluded.
    """
    try:
        return pathspec.GitIgnoreSpec.from_lines(patterns)
    except ValueError as exc:
        raise git_ai_commit.errors.ValidationError(
            f"invalid exclude pattern: {exc}", source="filter"
        ) from exc


def match_pattern(path: str, pattern: str) -> bool:
    return compile_patterns((pattern,)).match_file(path)


def matches_any(path: str, patterns: tuple[str, ...] | list[str]) -> bool:
    return compile_patterns(tuple(patterns)).match_file(path)


# ---------------------------------------------------------------------------
# Splitting and truncation
# ---------------------------------------------------------------------------

def _extract_file_path(header: str) -> str:
    # "diff --git a/path b/path" -> "path" (destination side)
    parts = header.split(" ", 3)
    if len(parts) < 4:
        return ""
    b_path = parts[3]
    return b_path[2:] if b_path.startswith("b/") else b_path


def split_by_file(diff: str) -> dict[str, str]:
    """Map each file path to its diff section, header included."""
    files: dict[str, str] = {}
    current: str | None = None
    chunk: list[str] = []
    lines = diff.split("\n")
    if lines and lines[-1] == "":
        lines.pop()
    for line in lines:
        if line.startswith(_DIFF_HEADER):
            if current:
                files[current] = "".join(chunk)
            current = _extract_file_path(line)
            chunk = [line + "\n"]
            continue
        if current is not None:
            chunk.append(line + "\n")
    if current:
        files[current] = "".join(chunk)
    return files


def truncate_file_diff(content: str, max_lines: int, file_name: str) -> tuple[bool, str]:
    lines = content.split("\n")

    header_end = 0
    for i, line in enumerate(lines):
        if line.startswith("@@"):
            header_end = i
            break
    total = sum(1 for line in lines[header_end:] if line.startswith(_CONTENT_PREFIXES))
    if total <= max_lines:
        return False, content

    out: list[str] = lines[:header_end]
    seen = 0
    for line in lines[header_end:]:
        if line.startswith("@@"):
            out.append(line)
        elif line.startswith(_CONTENT_PREFIXES):
            seen += 1
            if seen <= max_lines:
                out.append(line)
        elif seen <= max_lines:
            # "\ No newline at end of file" markers.
            out.append(line)
    body = "\n".join(out)
    if not body.endswith("\n"):
        body += "\n"
    marker = f"\n... [{file_name} truncated: showing {max_lines} of {total} lines]\n"
    return True, body + marker


def filter_diff(diff: str, options: FilterOptions) -> FilterResult:
    """Drop excluded files and truncate long ones, in path order."""
    if not diff.strip():
        return FilterResult(diff=diff)
    files = split_by_file(diff)
    if not files:
        return FilterResult(diff=diff)

    excluded = compile_patterns(tuple(options.exclude_patterns))
    result = FilterResult(diff="")
    kept: list[str] = []
    for name in sorted(files):
        content = files[name]
        if excluded.match_file(name):
            result.excluded_files.append(name)
            continue
        if options.max_file_lines > 0:
            truncated, content = truncate_file_diff(content, options.max_file_lines, name)
            if truncated:
                result.truncated = True
                result.truncated_files.append(name)
        kept.append(content)
    result.diff = "".join(kept)
    return result
