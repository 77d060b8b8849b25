"""Exception taxonomy for git-ai-commit.

Every failure the tool can report derives from :class:`GitAICommitError`,
except plain I/O failures, which stay ``OSError`` subclasses so the
offending filename travels with them.
"""

from __future__ import annotations


class GitAICommitError(Exception):
    """Base class for all git-ai-commit errors."""


class ConfigError(GitAICommitError):
    """A configuration source could not be used.

    *source* names the layer (``user config``, ``repo config``,
    ``command line``, ...) so the message tells the user which file to fix.
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class ParseError(ConfigError):
    """Malformed document or a value of the wrong type."""


class ValidationError(ConfigError):
    """Well-formed values that are not allowed together."""


class PresetNotFoundError(ConfigError):
    """Unknown bundled prompt preset."""


class TrustError(GitAICommitError):
    """Repository config was declined, changed, or cannot be confirmed."""


class PathEscapeError(GitAICommitError):
    """A repository-controlled path points outside the repository."""


class GitError(GitAICommitError):
    """A git command failed."""


class EngineError(GitAICommitError):
    """The text-generation engine is missing or failed."""
