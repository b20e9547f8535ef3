from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class UserResponse(BaseModel):
    """User response"""

    id: UUID
    email: str
    name: str
    role: str
    created_at: datetime = Field(serialization_alias="createdAt")

    class Config:
        populate_by_name = True
        from_attributes = True
