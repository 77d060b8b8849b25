"""Trust decisions for repository-level config files.

A repository's ``.git-ai-commit.toml`` chooses which command runs and what
text it receives, so it is only loaded once the user has seen and accepted
its exact content. Accepted content is remembered by SHA-256 in the trust
store; any change to the file asks again.

Trust store format (``trusted_repos.json``)::

    {"entries": [{"repo_root": "...", "config_path": "...", "hash": "..."}]}

Older releases wrote ``{"entries": {"<root>\\n<path>": "<hash>"}}``. That
form is read transparently and rewritten in the list form on the next save.
"""

from __future__ import annotations

import contextlib
import dataclasses
import enum
import hashlib
import json
import logging
import os
import pathlib
import sys
import tempfile
from typing import TYPE_CHECKING, Any, TextIO

import git_ai_commit.errors
import git_ai_commit.paths

if TYPE_CHECKING:
    from collections.abc import Callable

logger = logging.getLogger("git_ai_commit.trust")

_LEGACY_KEY_SEPARATOR = "\n"
_STORE_SOURCE = "trust store"
CONSENT_QUESTION = "Trust this config? [y/N]: "
BANNER_RULE = "----"


class TrustDecision(enum.Enum):
    TRUSTED = "trusted"
    CHANGED = "changed"
    UNKNOWN = "unknown"


@dataclasses.dataclass(frozen=True)
class TrustEntry:
    repo_root: str
    config_path: str
    hash: str

    @property
    def key(self) -> tuple[str, str]:
        return (self.repo_root, self.config_path)

    def to_dict(self) -> dict[str, str]:
        return {
            "repo_root": self.repo_root,
            "config_path": self.config_path,
            "hash": self.hash,
        }


def content_hash(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

def _parse_current(doc: Any) -> list[TrustEntry] | None:
    if isinstance(doc, dict) and doc.get("entries") is None:
        return []
    if not isinstance(doc, dict) or not isinstance(doc.get("entries"), list):
        return None
    entries = []
    for item in doc["entries"]:
        if not isinstance(item, dict):
            return None
        fields = (item.get("repo_root"), item.get("config_path"), item.get("hash"))
        if not all(isinstance(f, str) for f in fields):
            return None
        entries.append(TrustEntry(*fields))
    return entries


def _parse_legacy(doc: Any) -> list[TrustEntry] | None:
    if not isinstance(doc, dict) or not isinstance(doc.get("entries"), dict):
        return None
    entries = []
    for key, digest in doc["entries"].items():
        if not isinstance(digest, str):
            return None
        root, sep, config_path = key.partition(_LEGACY_KEY_SEPARATOR)
        if not sep:
            logger.debug("skipping malformed legacy trust key %r", key)
            continue
        entries.append(TrustEntry(root, config_path, digest))
    return entries


class TrustStore:
    """File-backed ``(repo root, config path) -> hash`` registry."""

    def __init__(self, path: pathlib.Path, entries: list[TrustEntry] | None = None) -> None:
        self.path = path
        self.entries: list[TrustEntry] = list(entries or [])

    @classmethod
    def load(cls, path: pathlib.Path | None = None) -> TrustStore:
        if path is None:
            path = git_ai_commit.paths.trust_store_path()
        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return cls(path)
        if not text.strip():
            return cls(path)
        try:
            doc = json.loads(text)
        except json.JSONDecodeError as exc:
            raise git_ai_commit.errors.ParseError(
                f"cannot parse {path}: {exc}", source=_STORE_SOURCE
            ) from exc

        entries = _parse_current(doc)
        if entries is None:
            entries = _parse_legacy(doc)
            if entries is None:
                raise git_ai_commit.errors.ParseError(
                    f"unrecognised format in {path}", source=_STORE_SOURCE
                )
            logger.debug("read legacy trust store format from %s", path)
        return cls(path, entries)

    def find(self, repo_root: str, config_path: str) -> TrustEntry | None:
        for entry in self.entries:
            if entry.repo_root == repo_root and entry.config_path == config_path:
                return entry
        return None

    def upsert(self, entry: TrustEntry) -> None:
        for i, existing in enumerate(self.entries):
            if existing.key == entry.key:
                self.entries[i] = entry
                return
        self.entries.append(entry)

    def save(self) -> None:
        """Write the store in the current format, readable by the owner only."""
        payload = json.dumps(
            {"entries": [e.to_dict() for e in self.entries]}, indent=2
        )
        self.path.parent.mkdir(parents=True, exist_ok=True)
        # mkstemp creates the file with mode 0o600.
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                fh.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            with contextlib.suppress(OSError):
                os.unlink(tmp_name)
            raise


# ---------------------------------------------------------------------------
# Consent
# ---------------------------------------------------------------------------

def is_interactive() -> bool:
    try:
        return sys.stdin is not None and sys.stdin.isatty()
    except ValueError:
        # stdin closed
        return False


def ask_yes_no(question: str, stdin: TextIO | None = None, out: TextIO | None = None) -> bool:
    """Print *question*, read one line, accept ``y``/``yes`` only."""
    stdin = stdin if stdin is not None else sys.stdin
    out = out if out is not None else sys.stderr
    out.write(question)
    out.flush()
    answer = stdin.readline().strip().lower()
    return answer in ("y", "yes")


# ---------------------------------------------------------------------------
# Gate
# ---------------------------------------------------------------------------

@dataclasses.dataclass
class Evaluation:
    decision: TrustDecision
    data: bytes
    entry: TrustEntry  # entry describing the current content


class TrustGate:
    """Decide whether a repository config may be loaded.

    Fails closed: unknown or changed content is loaded only after explicit
    consent, and never when no terminal is available to ask.
    """

    def __init__(
        self,
        store_path: pathlib.Path | None = None,
        *,
        ask: Callable[[str], bool] = ask_yes_no,
        interactive: Callable[[], bool] = is_interactive,
        out: TextIO | None = None,
    ) -> None:
        self.store_path = store_path
        self.ask = ask
        self.interactive = interactive
        self.out = out

    def evaluate(
        self, repo_root: pathlib.Path, config_path: pathlib.Path
    ) -> tuple[Evaluation, TrustStore]:
        root_real = git_ai_commit.paths.real_path(repo_root)
        config_real = git_ai_commit.paths.real_path(config_path)
        data = config_path.read_bytes()
        current = TrustEntry(str(root_real), str(config_real), content_hash(data))

        store = TrustStore.load(self.store_path)
        stored = store.find(current.repo_root, current.config_path)
        if stored is None:
            decision = TrustDecision.UNKNOWN
        elif stored.hash == current.hash:
            decision = TrustDecision.TRUSTED
        else:
            decision = TrustDecision.CHANGED
        logger.debug("trust decision for %s: %s", config_path, decision.value)
        return Evaluation(decision, data, current), store

    def load(self, repo_root: pathlib.Path, config_path: pathlib.Path) -> bytes:
        """Return the config bytes if trusted, asking for consent if needed."""
        evaluation, store = self.evaluate(repo_root, config_path)
        if evaluation.decision is TrustDecision.TRUSTED:
            return evaluation.data

        if not self.interactive():
            if evaluation.decision is TrustDecision.CHANGED:
                raise git_ai_commit.errors.TrustError(
                    f"untrusted repo config (changed since it was accepted): {config_path}; "
                    "run git-ai-commit in a terminal to review it"
                )
            raise git_ai_commit.errors.TrustError(
                f"untrusted repo config: {config_path}; "
                "run git-ai-commit in a terminal to review it"
            )

        self._show(config_path, evaluation)
        if not self.ask(CONSENT_QUESTION):
            raise git_ai_commit.errors.TrustError(f"repo config not trusted: {config_path}")

        store.upsert(evaluation.entry)
        store.save()
        logger.debug("trusted %s (%s)", config_path, evaluation.entry.hash)
        return evaluation.data

    def _show(self, config_path: pathlib.Path, evaluation: Evaluation) -> None:
        out = self.out if self.out is not None else sys.stderr
        if evaluation.decision is TrustDecision.CHANGED:
            print(f"Repo config changed: {config_path}", file=out)
        else:
            print(f"Untrusted repo config detected: {config_path}", file=out)
        text = evaluation.data.decode("utf-8", errors="replace")
        if not text.endswith("\n"):
            text += "\n"
        out.write(f"{BANNER_RULE}\n{text}{BANNER_RULE}\n")
        out.flush()
