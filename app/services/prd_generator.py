"""PRD generation from an approved suggestion"""

import logging
from typing import Any

from app.core.config import get_settings
from app.infrastructure.agent.llm_client import LLMClient, LLMConfig
from app.infrastructure.agent.prompt_builder import build_suggestion_summary, build_system_prompt
from app.prompts.v1.suggestion.prd import (
    PRD_CONVERSATION_LINE,
    PRD_EMPTY_CONVERSATION,
    PRD_INSTRUCTIONS,
    PRD_PERSONA,
    PRD_USER_PROMPT,
)

logger = logging.getLogger(__name__)


def format_transcript(conversation: list[dict[str, Any]]) -> str:
    if not conversation:
        return PRD_EMPTY_CONVERSATION
    return "\n".join(
        PRD_CONVERSATION_LINE.format(role=m.get("role", ""), content=m.get("content", ""))
        for m in conversation
    )


def prd_config_from_settings() -> LLMConfig:
    settings = get_settings()
    return LLMConfig(
        model=settings.prd_model,
        temperature=settings.prd_temperature,
        max_tokens=settings.prd_max_tokens,
        api_key=settings.openai_api_key,
        base_url=settings.openai_base_url,
        timeout=settings.llm_timeout_seconds,
    )


class PRDGenerator:
    """Synthesizes a product requirements document

    Output is not deterministic. No retries; failures propagate as
    AICollaboratorError.
    """

    def __init__(self, llm_client: LLMClient | None = None) -> None:
        self.llm_client = llm_client or LLMClient(prd_config_from_settings(), purpose="prd")

    async def generate(
        self,
        title: str,
        description: str,
        conversation: list[dict[str, Any]],
        department: str = "",
    ) -> str:
        system_prompt = build_system_prompt(
            persona=PRD_PERSONA,
            summary=build_suggestion_summary(title, description, department),
            instructions=PRD_INSTRUCTIONS,
        )
        user_prompt = PRD_USER_PROMPT.format(
            title=title,
            description=description,
            conversation=format_transcript(conversation),
        )

        logger.info(f"Generating PRD: title={title[:50]}, messages={len(conversation)}")
        return await self.llm_client.complete(system_prompt, user_prompt=user_prompt)
