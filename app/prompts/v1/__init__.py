"""Prompts v1 package

Version 1.0 prompts.

Package layout:
    - suggestion/: suggestion intake prompts
        - conversation: refinement dialogue persona, round guidance, greeting
        - prd: product requirements document generation

Usage:
    from app.prompts.v1.suggestion.conversation import ROUND_GUIDANCE_PROBLEM
    from app.prompts.v1.suggestion.prd import PRD_SYSTEM_PROMPT
"""

from . import suggestion

VERSION = "1.0.0"

__all__ = [
    "VERSION",
    "suggestion",
]
