"""The commit workflow: config → diff → engine → ``git commit``."""

from __future__ import annotations

import dataclasses
import logging
import pathlib
import sys

import git_ai_commit.config
import git_ai_commit.diff_filter
import git_ai_commit.engine
import git_ai_commit.errors
import git_ai_commit.git
import git_ai_commit.layers
import git_ai_commit.prompt

logger = logging.getLogger("git_ai_commit.app")


@dataclasses.dataclass
class RunOptions:
    context: str = ""
    context_file: str = ""
    prompt: str = ""
    prompt_file: str = ""
    engine: str = ""
    amend: bool = False
    add_all: bool = False
    include_files: list[str] = dataclasses.field(default_factory=list)
    exclude_files: list[str] = dataclasses.field(default_factory=list)
    edit: bool = False
    debug_prompt: bool = False
    debug_command: bool = False


def load_context(context: str, context_file: str) -> str:
    if not context_file:
        return context.strip()
    text = pathlib.Path(context_file).read_text(encoding="utf-8")
    return "\n".join([text.strip(), context.strip()]).strip()


def sanitize_message(message: str) -> str:
    """Strip code fences and wrapping backticks that engines like to add."""
    clean = message.strip()
    if not clean:
        return ""
    lines = [line for line in clean.split("\n") if not line.strip().startswith("```")]
    clean = "\n".join(lines).strip()
    if len(clean) >= 2 and clean.startswith("`") and clean.endswith("`"):
        clean = clean[1:-1].strip()
    return clean


def commit_diff(
    cfg: git_ai_commit.config.MergedConfig,
    *,
    amend: bool,
    cwd: pathlib.Path | None = None,
) -> str:
    if amend:
        diff = git_ai_commit.git.last_commit_diff(cwd)
    else:
        diff = git_ai_commit.git.staged_diff_with_summary(cwd)
    result = git_ai_commit.diff_filter.filter_diff(diff, cfg.filter.options())
    if result.excluded_files:
        logger.debug("excluded from diff: %s", ", ".join(result.excluded_files))
    return result.diff + result.notice()


def _restore_index(tree: str, cwd: pathlib.Path | None) -> None:
    # Called while another error propagates; a failed restore is only logged.
    try:
        git_ai_commit.git.read_index_tree(tree, cwd)
    except git_ai_commit.errors.GitError as exc:
        logger.warning("could not restore the index to tree %s: %s", tree, exc)


def _stage(opts: RunOptions, cwd: pathlib.Path | None) -> str | None:
    """Stage requested files; return the index tree to restore on failure."""
    if not opts.add_all and not opts.include_files:
        return None
    tree = git_ai_commit.git.write_index_tree(cwd)
    try:
        if opts.add_all:
            git_ai_commit.git.add_all(cwd)
        else:
            git_ai_commit.git.add_files(opts.include_files, cwd)
    except git_ai_commit.errors.GitError:
        _restore_index(tree, cwd)
        raise
    return tree


def run(opts: RunOptions, cwd: pathlib.Path | None = None, **load_kwargs) -> str:
    """Generate a message for the staged (or last) commit and commit it.

    Configuration is resolved before the index is touched, so an untrusted
    repo config stops the run with no side effects. Returns the message.
    """
    cli = git_ai_commit.layers.cli_layer(
        engine=opts.engine,
        prompt=opts.prompt,
        prompt_file=opts.prompt_file,
        exclude_patterns=opts.exclude_files,
    )
    cfg = git_ai_commit.config.load(cwd, cli=cli, **load_kwargs)
    context = load_context(opts.context, opts.context_file)

    tree = _stage(opts, cwd)
    try:
        message = _generate_and_commit(cfg, context, opts, cwd)
    except BaseException:
        if tree is not None:
            _restore_index(tree, cwd)
        raise
    return message


def _generate_and_commit(
    cfg: git_ai_commit.config.MergedConfig,
    context: str,
    opts: RunOptions,
    cwd: pathlib.Path | None,
) -> str:
    if opts.amend and not git_ai_commit.git.has_head_commit(cwd):
        raise git_ai_commit.errors.GitError("cannot amend without an existing commit")

    diff = commit_diff(cfg, amend=opts.amend, cwd=cwd)
    if not diff.strip():
        if opts.amend:
            raise git_ai_commit.errors.GitError("no changes found in the last commit")
        raise git_ai_commit.errors.GitError("no staged changes to commit")

    engine = git_ai_commit.engine.select_engine(cfg.engine, cfg.engine_args)
    prompt_text = git_ai_commit.prompt.build(cfg.prompt, context, diff)
    if opts.debug_command:
        print(f"engine command: {engine.command_line()}", file=sys.stderr)
    if opts.debug_prompt:
        print("prompt:", file=sys.stderr)
        print(prompt_text, file=sys.stderr)

    message = sanitize_message(engine.generate(prompt_text))
    if not message:
        raise git_ai_commit.errors.EngineError("empty commit message from engine")

    git_ai_commit.git.commit_with_message(message, amend=opts.amend, edit=opts.edit, cwd=cwd)
    return message
