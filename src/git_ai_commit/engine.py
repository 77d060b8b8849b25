"""Text-generation engines: external CLIs that read a prompt and print a message."""

from __future__ import annotations

import dataclasses
import logging
import os
import shutil
import subprocess
from typing import TYPE_CHECKING

import git_ai_commit.errors

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

logger = logging.getLogger("git_ai_commit.engine")

PROMPT_PLACEHOLDER = "{{prompt}}"

# Checked in order against PATH when no layer names an engine.
AUTODETECT_ORDER: tuple[str, ...] = ("codex", "claude", "gemini")

DEFAULT_ENGINE_ARGS: dict[str, list[str]] = {
    "codex": ["exec"],
    "claude": ["-p"],
    "gemini": [],
}

# Stripped from the child environment so a nested agent CLI does not think
# it is running inside another session.
_BLOCKED_ENV = ("CLAUDECODE",)


def detect_engine(
    which: Callable[[str], str | None] = shutil.which,
    candidates: tuple[str, ...] = AUTODETECT_ORDER,
) -> str:
    """Return the first candidate found on PATH, or ``""``."""
    for name in candidates:
        if which(name) is not None:
            logger.debug("autodetected engine %s", name)
            return name
    logger.debug("no engine found on PATH (tried %s)", ", ".join(candidates))
    return ""


def filtered_env(env: Mapping[str, str], blocked: tuple[str, ...] = _BLOCKED_ENV) -> dict[str, str]:
    return {k: v for k, v in env.items() if k not in blocked}


@dataclasses.dataclass
class CLIEngine:
    command: str
    args: list[str] = dataclasses.field(default_factory=list)

    def command_line(self) -> str:
        return " ".join([self.command, *self.args])

    def generate(self, prompt: str) -> str:
        """Run the engine and return its stdout.

        The prompt replaces ``{{prompt}}`` in any argument; without a
        placeholder it is written to stdin instead.
        """
        use_arg = any(PROMPT_PLACEHOLDER in a for a in self.args)
        args = [a.replace(PROMPT_PLACEHOLDER, prompt) for a in self.args]
        stdin = {"stdin": subprocess.DEVNULL} if use_arg else {"input": prompt}
        try:
            result = subprocess.run(
                [self.command, *args],
                **stdin,
                capture_output=True,
                text=True,
                env=filtered_env(os.environ),
            )
        except OSError as exc:
            raise git_ai_commit.errors.EngineError(
                f"engine command failed: {self.command}: {exc.strerror or exc}"
            ) from exc
        if result.returncode != 0:
            raise git_ai_commit.errors.EngineError(
                f"engine command failed: exit status {result.returncode}: "
                f"{result.stderr.strip()}"
            )
        return result.stdout


def select_engine(name: str, overrides: Mapping[str, list[str]]) -> CLIEngine:
    """Build the engine for *name*: config override, else built-in args."""
    name = name.strip()
    if not name:
        raise git_ai_commit.errors.EngineError(
            "no engine configured: set 'engine' in config.toml or pass --engine "
            f"(autodetection looked for {', '.join(AUTODETECT_ORDER)})"
        )
    if name in overrides:
        return CLIEngine(name, list(overrides[name]))
    return CLIEngine(name, list(DEFAULT_ENGINE_ARGS.get(name, [])))
