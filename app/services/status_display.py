"""Status badge mapping for UI clients

Kept outside the lifecycle so labels and colours can change without
touching status policy.
"""

from app.models.suggestion import SuggestionStatus
from app.schemas.suggestion import StatusBadgeResponse

STATUS_DISPLAY: dict[SuggestionStatus, tuple[str, str]] = {
    SuggestionStatus.PENDING: ("Pending", "warning"),
    SuggestionStatus.APPROVED: ("Approved", "success"),
    SuggestionStatus.REJECTED: ("Rejected", "destructive"),
    SuggestionStatus.MORE_INFO_NEEDED: ("More info needed", "info"),
}


def status_badge(status: SuggestionStatus | str) -> StatusBadgeResponse:
    status = SuggestionStatus(status)
    label, color = STATUS_DISPLAY[status]
    return StatusBadgeResponse(status=status, label=label, color=color)


def all_status_badges() -> list[StatusBadgeResponse]:
    return [status_badge(status) for status in SuggestionStatus]
