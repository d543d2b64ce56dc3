"""
LLM Review Engine

This module provides the Gemini client, prompt construction and parsing of
the model's JSON responses.
"""

from .prompts import PromptBuilder
from .parsing import extract_json, parse_global_review, parse_goal, parse_reviews

__all__ = [
    'PromptBuilder',
    'extract_json',
    'parse_global_review',
    'parse_goal',
    'parse_reviews',
]
