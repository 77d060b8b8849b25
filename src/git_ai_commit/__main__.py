"""git-ai-commit: generate a commit message from the staged diff and commit.

Usage:
    git-ai-commit [options]          Generate a message and commit
    git-ai-commit config <cmd>       Inspect or edit configuration (see below)

Config commands:
    git-ai-commit config path        Show config and trust store locations
    git-ai-commit config show        Print the effective configuration
    git-ai-commit config set [--repo] <key> <value>
    git-ai-commit config reset [--repo] <key>
    git-ai-commit config edit [--repo]
    git-ai-commit config trust       List trusted repository configs
"""

from __future__ import annotations

import argparse
import logging
import sys

import git_ai_commit.app
import git_ai_commit.errors
import git_ai_commit.presets


def build_parser() -> argparse.ArgumentParser:
    presets = ", ".join(git_ai_commit.presets.BundledPresets().names())
    parser = argparse.ArgumentParser(
        prog="git-ai-commit",
        description="Generates a commit message from staged diff and commits safely.",
        epilog="Run 'git-ai-commit config --help' for configuration commands.",
    )
    parser.add_argument("--context", default="", help="Additional context for the commit message")
    parser.add_argument(
        "--context-file", default="", help="Path to a file containing additional context"
    )
    parser.add_argument("--prompt", default="", help=f"Bundled prompt preset: {presets}")
    parser.add_argument(
        "--prompt-file", default="", help="Path to a custom prompt file (relative to cwd)"
    )
    parser.add_argument("--engine", default="", help="LLM engine name override")
    parser.add_argument("--amend", action="store_true", help="Amend the previous commit")
    parser.add_argument(
        "-a", "--all", dest="add_all", action="store_true",
        help="Stage modified and deleted files before generating the message",
    )
    parser.add_argument(
        "-i", "--include", dest="include_files", action="append", default=[], metavar="FILE",
        help="Stage specific files before generating the message (repeatable)",
    )
    parser.add_argument(
        "-x", "--exclude", dest="exclude_files", action="append", default=[], metavar="PATTERN",
        help="Exclude files matching PATTERN from the diff (repeatable)",
    )
    parser.add_argument(
        "-e", "--edit", action="store_true", help="Open the generated message in the editor"
    )
    parser.add_argument(
        "--debug-prompt", action="store_true", help="Print the prompt before executing the engine"
    )
    parser.add_argument(
        "--debug-command", action="store_true", help="Print the engine command before execution"
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def parse_args(argv: list[str]) -> tuple[git_ai_commit.app.RunOptions, bool]:
    """Parse run options; returns ``(options, verbose)``."""
    parser = build_parser()
    args = parser.parse_args(argv)
    for flag, value in (("--include", args.include_files), ("--exclude", args.exclude_files)):
        if any(not v for v in value):
            parser.error(f"missing value for {flag}")
    opts = git_ai_commit.app.RunOptions(
        context=args.context,
        context_file=args.context_file,
        prompt=args.prompt,
        prompt_file=args.prompt_file,
        engine=args.engine,
        amend=args.amend,
        add_all=args.add_all,
        include_files=args.include_files,
        exclude_files=args.exclude_files,
        edit=args.edit,
        debug_prompt=args.debug_prompt,
        debug_command=args.debug_command,
    )
    return opts, args.verbose


def configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
    )


def _cmd_config(args: list[str]) -> int:
    """Configuration commands."""
    import git_ai_commit.config_cli

    return git_ai_commit.config_cli.main(args)


def main(argv: list[str] | None = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    if argv and argv[0] == "config":
        return _cmd_config(argv[1:])

    opts, verbose = parse_args(argv)
    configure_logging(verbose)
    try:
        git_ai_commit.app.run(opts)
    except (git_ai_commit.errors.GitAICommitError, OSError) as exc:
        print(exc, file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
