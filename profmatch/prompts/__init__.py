"""Prompt templates used by the Answer Composer."""

from profmatch.prompts.system_prompt import SYSTEM_PROMPT

__all__ = ["SYSTEM_PROMPT"]
