"""git-ai-commit: commit messages from a text-generation CLI, with trusted repo config."""

__version__ = "0.4.0"
