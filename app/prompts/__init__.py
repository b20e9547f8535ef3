"""Prompt package

Prompts are versioned by subpackage.

Usage:
    from app.prompts.v1.suggestion.conversation import COLLABORATOR_PERSONA
    from app.prompts.v1.suggestion.prd import PRD_USER_PROMPT
"""
