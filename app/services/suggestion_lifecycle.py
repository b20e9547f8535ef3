"""Suggestion status lifecycle

pending -> approved | rejected | more_info_needed
more_info_needed -> approved | rejected | more_info_needed
approved, rejected: terminal for decisions

Archiving is a one-way overlay on any reviewed status.
"""

from datetime import datetime, timezone
from uuid import UUID

from app.models.suggestion import Suggestion, SuggestionStatus

ALLOWED_TRANSITIONS: dict[SuggestionStatus, frozenset[SuggestionStatus]] = {
    SuggestionStatus.PENDING: frozenset(
        {
            SuggestionStatus.APPROVED,
            SuggestionStatus.REJECTED,
            SuggestionStatus.MORE_INFO_NEEDED,
        }
    ),
    SuggestionStatus.MORE_INFO_NEEDED: frozenset(
        {
            SuggestionStatus.APPROVED,
            SuggestionStatus.REJECTED,
            SuggestionStatus.MORE_INFO_NEEDED,
        }
    ),
    SuggestionStatus.APPROVED: frozenset(),
    SuggestionStatus.REJECTED: frozenset(),
}

REVIEWED_STATUSES = frozenset(
    {
        SuggestionStatus.APPROVED,
        SuggestionStatus.REJECTED,
        SuggestionStatus.MORE_INFO_NEEDED,
    }
)


def can_transition(current: SuggestionStatus | str, target: SuggestionStatus | str) -> bool:
    return SuggestionStatus(target) in ALLOWED_TRANSITIONS[SuggestionStatus(current)]


def is_editable_by_submitter(suggestion: Suggestion) -> bool:
    """Conversation may only change while pending and neither archived nor submitted"""
    return (
        suggestion.status == SuggestionStatus.PENDING.value
        and not suggestion.archived
        and suggestion.submitted_at is None
    )


def apply_decision(
    suggestion: Suggestion,
    target: SuggestionStatus,
    notes: str | None,
    reviewer_id: UUID,
) -> SuggestionStatus:
    """Apply an admin decision in place

    Status, notes, reviewer and review time are set together; the caller
    commits once.

    Returns:
        the previous status

    Raises:
        ValueError: SUGGESTION_ARCHIVED, INVALID_TRANSITION
    """
    if suggestion.archived:
        raise ValueError("SUGGESTION_ARCHIVED")

    previous = SuggestionStatus(suggestion.status)
    if not can_transition(previous, target):
        raise ValueError("INVALID_TRANSITION")

    suggestion.status = target.value
    suggestion.admin_notes = notes.strip() if notes and notes.strip() else None
    suggestion.reviewed_by = reviewer_id
    suggestion.reviewed_at = datetime.now(timezone.utc)
    return previous


def apply_archive(suggestion: Suggestion) -> None:
    """Archive a reviewed suggestion in place

    Raises:
        ValueError: ALREADY_ARCHIVED, CANNOT_ARCHIVE_PENDING
    """
    if suggestion.archived:
        raise ValueError("ALREADY_ARCHIVED")
    if suggestion.status == SuggestionStatus.PENDING.value:
        raise ValueError("CANNOT_ARCHIVE_PENDING")

    suggestion.archived = True
    suggestion.archived_at = datetime.now(timezone.utc)
