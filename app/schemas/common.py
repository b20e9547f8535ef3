from typing import Any

from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Error response"""

    error: str
    message: str
    details: dict[str, Any] | None = None
