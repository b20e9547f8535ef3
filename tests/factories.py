"""Test data and stub builders shared across test modules"""

from datetime import datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

from langchain_core.language_models.fake_chat_models import FakeListChatModel
from sqlalchemy.ext.asyncio import AsyncSession

from app.infrastructure.agent.llm_client import LLMClient
from app.models.suggestion import Department, Suggestion, SuggestionStatus
from app.models.user import User


def make_llm_client(*responses: str) -> LLMClient:
    """LLMClient answering with the given replies in order"""
    return LLMClient(chat_model=FakeListChatModel(responses=list(responses)))


def make_failing_llm_client(error: Exception | None = None) -> LLMClient:
    """LLMClient whose every call fails"""
    chat_model = MagicMock()
    chat_model.ainvoke = AsyncMock(side_effect=error or RuntimeError("provider down"))
    return LLMClient(chat_model=chat_model)


def make_conversation(rounds: int) -> list[dict[str, Any]]:
    """Greeting plus the given number of submitter/assistant exchanges"""
    conversation = [
        {"role": "assistant", "content": "Hi! What problem would you like to solve?", "attachments": []}
    ]
    for i in range(1, rounds + 1):
        conversation.append({"role": "user", "content": f"answer {i}", "attachments": []})
        conversation.append({"role": "assistant", "content": f"question {i + 1}", "attachments": []})
    return conversation


async def create_suggestion(
    db_session: AsyncSession,
    user: User,
    *,
    title: str = "Reflective winter jacket",
    description: str = "add reflective stripes for child safety",
    department: Department = Department.DESIGN,
    status: SuggestionStatus = SuggestionStatus.PENDING,
    conversation: list[dict[str, Any]] | None = None,
    archived: bool = False,
    prd: str | None = None,
    created_at: datetime | None = None,
) -> Suggestion:
    suggestion = Suggestion(
        id=uuid4(),
        user_id=user.id,
        title=title,
        description=description,
        department=department.value,
        status=status.value,
        conversation=conversation or [],
        archived=archived,
        prd=prd,
    )
    if created_at is not None:
        suggestion.created_at = created_at
    db_session.add(suggestion)
    await db_session.commit()
    await db_session.refresh(suggestion)
    return suggestion
