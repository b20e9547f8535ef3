"""Suggestion intake prompts"""

from . import conversation, prd

__all__ = [
    "conversation",
    "prd",
]
