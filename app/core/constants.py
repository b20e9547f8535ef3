"""Application constants and configuration values"""

# Refinement conversation
MAX_ROUNDS = 5
MIN_ROUNDS_TO_COMPLETE = 2

# Text stored for a turn that only carries attachments
ATTACHMENT_PLACEHOLDER_TEXT = "Attached files for review"

# File upload limits
MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024  # 10MB

ALLOWED_ATTACHMENT_TYPES = frozenset(
    {
        "image/jpeg",
        "image/png",
        "image/gif",
        "image/webp",
        "application/pdf",
        "text/plain",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    }
)

# URL expiration
ATTACHMENT_URL_EXPIRATION = 60 * 60 * 24  # 24 hours in seconds

# Storage buckets
BUCKET_CHAT_ATTACHMENTS = "chat-attachments"

# ARQ task names
GENERATE_PRD_TASK = "generate_prd_task"
