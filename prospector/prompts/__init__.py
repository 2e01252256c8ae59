"""Prompt templates for the Gemini calls."""

from .templates import (
    SEARCH_PROMPT,
    FORMAT_PROMPT,
    ANALYST_PROMPT,
    ANALYSIS_SCHEMA,
)

__all__ = [
    "SEARCH_PROMPT",
    "FORMAT_PROMPT",
    "ANALYST_PROMPT",
    "ANALYSIS_SCHEMA",
]
