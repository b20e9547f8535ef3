"""Bounded refinement dialogue between a submitter and the AI collaborator

The persisted conversation only ever holds confirmed turns. A turn whose
AI call fails is not written; the caller receives the provisional log
(durable log plus the unconfirmed submitter message) on the error so the
message can stay visible while the user retries.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.constants import ATTACHMENT_PLACEHOLDER_TEXT, MAX_ROUNDS, MIN_ROUNDS_TO_COMPLETE
from app.infrastructure.agent.llm_client import AICollaboratorError, LLMClient, LLMConfig
from app.infrastructure.agent.prompt_builder import build_suggestion_summary, build_system_prompt
from app.models.suggestion import MessageRole, Suggestion, SuggestionStatus, count_rounds
from app.prompts.v1.suggestion.conversation import (
    ATTACHMENT_HEADER,
    ATTACHMENT_LINE,
    COLLABORATOR_PERSONA,
    FALLBACK_GREETING,
    OPENING_INSTRUCTION,
)
from app.schemas.suggestion import ConversationResponse
from app.services.suggestion_lifecycle import is_editable_by_submitter

logger = logging.getLogger(__name__)

# suggestion ids with an AI call outstanding in this process
_turns_in_flight: set[UUID] = set()


def can_complete(conversation: list[dict[str, Any]]) -> bool:
    """True once the submitter has taken at least the minimum number of turns"""
    return count_rounds(conversation) >= MIN_ROUNDS_TO_COMPLETE


def chat_config_from_settings() -> LLMConfig:
    settings = get_settings()
    return LLMConfig(
        model=settings.chat_model,
        temperature=settings.chat_temperature,
        max_tokens=settings.chat_max_tokens,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.llm_timeout_seconds,
    )


def annotate_attachments(content: str, attachments: list[dict[str, Any]]) -> str:
    """Fold attachment metadata into the text sent to the AI collaborator"""
    if not attachments:
        return content
    lines = [
        ATTACHMENT_LINE.format(
            name=a.get("name", ""),
            mime_type=a.get("mime_type", ""),
            url=a.get("url", ""),
        )
        for a in attachments
    ]
    return f"{content}\n\n{ATTACHMENT_HEADER}\n" + "\n".join(lines)


@dataclass
class TurnResult:
    """Outcome of a confirmed submitter turn"""

    suggestion: Suggestion
    conversation: list[dict[str, Any]]
    round: int
    reply: str
    ready: bool


class TurnFailedError(Exception):
    """The AI call for a turn failed; nothing was persisted"""

    def __init__(
        self,
        provisional_conversation: list[dict[str, Any]],
        round: int,
        reason: str = "AI collaborator unavailable",
    ):
        super().__init__(reason)
        self.provisional_conversation = provisional_conversation
        self.round = round
        self.reason = reason


class ConversationEngine:
    """Refinement dialogue capped at max_rounds submitter turns"""

    def __init__(
        self,
        db: AsyncSession,
        llm_client: LLMClient | None = None,
        max_rounds: int = MAX_ROUNDS,
    ):
        self.db = db
        self.llm_client = llm_client or LLMClient(chat_config_from_settings(), purpose="chat")
        self.max_rounds = max_rounds

    def to_response(self, suggestion: Suggestion) -> ConversationResponse:
        conversation = list(suggestion.conversation or [])
        round_number = count_rounds(conversation)
        return ConversationResponse(
            suggestion_id=suggestion.id,
            status=suggestion.status,
            conversation=conversation,
            conversation_round=round_number,
            max_rounds=self.max_rounds,
            can_complete=can_complete(conversation),
            round_limit_reached=round_number >= self.max_rounds,
            submitted_at=suggestion.submitted_at,
        )

    async def _get_owned_suggestion(self, suggestion_id: UUID, user_id: UUID) -> Suggestion:
        result = await self.db.execute(
            select(Suggestion)
            .where(Suggestion.id == suggestion_id)
            .execution_options(populate_existing=True)
        )
        suggestion = result.scalar_one_or_none()

        if not suggestion:
            raise ValueError("SUGGESTION_NOT_FOUND")
        if suggestion.user_id != user_id:
            raise ValueError("NOT_SUGGESTION_OWNER")

        return suggestion

    def _system_prompt(self, suggestion: Suggestion, round_number: int) -> str:
        return build_system_prompt(
            persona=COLLABORATOR_PERSONA,
            round_number=round_number,
            max_rounds=self.max_rounds,
            summary=build_suggestion_summary(
                suggestion.title, suggestion.description, suggestion.department
            ),
            instructions=OPENING_INSTRUCTION if round_number == 0 else None,
        )

    async def get_conversation(self, suggestion_id: UUID, user_id: UUID) -> ConversationResponse:
        suggestion = await self._get_owned_suggestion(suggestion_id, user_id)
        return self.to_response(suggestion)

    async def start_conversation(self, suggestion_id: UUID, user_id: UUID) -> ConversationResponse:
        """Create the opening assistant message if the conversation is empty

        An existing conversation is returned unchanged.
        """
        suggestion = await self._get_owned_suggestion(suggestion_id, user_id)

        if suggestion.conversation:
            return self.to_response(suggestion)
        if not is_editable_by_submitter(suggestion):
            raise ValueError("SUGGESTION_LOCKED")

        try:
            greeting = await self.llm_client.complete(self._system_prompt(suggestion, 0))
        except AICollaboratorError as e:
            logger.warning(f"Opening message fell back to default: suggestion={suggestion_id}, error={e}")
            greeting = FALLBACK_GREETING.format(
                title=suggestion.title,
                description=suggestion.description,
            )

        suggestion.conversation = [
            {"role": MessageRole.ASSISTANT.value, "content": greeting, "attachments": []}
        ]
        await self.db.commit()
        await self.db.refresh(suggestion)

        logger.info(f"Conversation started: suggestion={suggestion_id}")
        return self.to_response(suggestion)

    async def submit_turn(
        self,
        suggestion_id: UUID,
        user_id: UUID,
        text: str,
        attachments: list[dict[str, Any]] | None = None,
    ) -> TurnResult:
        """Append a submitter message and the assistant reply

        Raises:
            ValueError: EMPTY_MESSAGE, ROUND_LIMIT_REACHED, SUGGESTION_LOCKED,
                TURN_IN_PROGRESS, SUGGESTION_NOT_FOUND, NOT_SUGGESTION_OWNER
            TurnFailedError: the AI call failed, nothing persisted
        """
        attachments = attachments or []
        text = (text or "").strip()

        if not text and not attachments:
            raise ValueError("EMPTY_MESSAGE")

        # held from reading the log until the new log is committed
        if suggestion_id in _turns_in_flight:
            raise ValueError("TURN_IN_PROGRESS")
        _turns_in_flight.add(suggestion_id)
        try:
            return await self._run_turn(suggestion_id, user_id, text, attachments)
        finally:
            _turns_in_flight.discard(suggestion_id)

    async def _run_turn(
        self,
        suggestion_id: UUID,
        user_id: UUID,
        text: str,
        attachments: list[dict[str, Any]],
    ) -> TurnResult:
        suggestion = await self._get_owned_suggestion(suggestion_id, user_id)

        if not is_editable_by_submitter(suggestion):
            raise ValueError("SUGGESTION_LOCKED")

        history = list(suggestion.conversation or [])
        current_round = count_rounds(history)
        if current_round >= self.max_rounds:
            raise ValueError("ROUND_LIMIT_REACHED")

        submitter_message = {
            "role": MessageRole.SUBMITTER.value,
            "content": text or ATTACHMENT_PLACEHOLDER_TEXT,
            "attachments": attachments,
        }
        provisional = [*history, submitter_message]
        new_round = current_round + 1

        request_messages = [
            *history,
            {
                "role": MessageRole.SUBMITTER.value,
                "content": annotate_attachments(submitter_message["content"], attachments),
            },
        ]

        try:
            reply = await self.llm_client.complete(
                self._system_prompt(suggestion, new_round),
                messages=request_messages,
            )
        except AICollaboratorError as e:
            logger.error(f"Turn failed: suggestion={suggestion_id}, round={new_round}, error={e}")
            raise TurnFailedError(provisional_conversation=provisional, round=current_round) from e

        conversation = [
            *provisional,
            {"role": MessageRole.ASSISTANT.value, "content": reply, "attachments": []},
        ]
        suggestion.conversation = conversation
        await self.db.commit()
        await self.db.refresh(suggestion)

        logger.info(f"Turn recorded: suggestion={suggestion_id}, round={new_round}")
        return TurnResult(
            suggestion=suggestion,
            conversation=conversation,
            round=new_round,
            reply=reply,
            ready=can_complete(conversation),
        )

    async def complete(self, suggestion_id: UUID, user_id: UUID) -> ConversationResponse:
        """Mark the refined suggestion as submitted for review

        Raises:
            ValueError: BELOW_MIN_ROUNDS, ALREADY_SUBMITTED, SUGGESTION_ALREADY_REVIEWED,
                SUGGESTION_LOCKED
        """
        if suggestion_id in _turns_in_flight:
            raise ValueError("TURN_IN_PROGRESS")

        suggestion = await self._get_owned_suggestion(suggestion_id, user_id)

        if suggestion.archived:
            raise ValueError("SUGGESTION_LOCKED")
        if suggestion.status != SuggestionStatus.PENDING.value:
            raise ValueError("SUGGESTION_ALREADY_REVIEWED")
        if suggestion.submitted_at is not None:
            raise ValueError("ALREADY_SUBMITTED")
        if not can_complete(suggestion.conversation or []):
            raise ValueError("BELOW_MIN_ROUNDS")

        suggestion.submitted_at = datetime.now(timezone.utc)
        await self.db.flush()
        await self.db.refresh(suggestion)

        logger.info(
            f"Suggestion submitted for review: suggestion={suggestion_id}, "
            f"rounds={suggestion.conversation_round}"
        )
        return self.to_response(suggestion)
