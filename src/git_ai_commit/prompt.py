"""Assemble the text sent to the engine."""

from __future__ import annotations


def build(system_prompt: str, context: str, diff: str) -> str:
    parts = []
    if system_prompt:
        parts.append(f"System Prompt:\n{system_prompt}\n\n")
    if context:
        parts.append(f"Context:\n{context}\n\n")
    parts.append(f"Git Diff:\n{diff}")
    return "".join(parts)
