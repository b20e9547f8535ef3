"""AI collaborator client (LangChain chat model wrapper)

The chat model is created lazily from LLMConfig so that importing this
module never needs an API key. Tests inject any BaseChatModel instead.
"""

import logging
import time
from dataclasses import dataclass
from typing import Any

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import AIMessage, BaseMessage, HumanMessage, SystemMessage

from app.core.telemetry import get_app_metrics, get_tracer
from app.models.suggestion import MessageRole

logger = logging.getLogger(__name__)


class AICollaboratorError(Exception):
    """The language model call failed or returned nothing usable"""


@dataclass(frozen=True)
class LLMConfig:
    """Per-purpose model settings"""

    model: str = "gpt-4o-mini"
    temperature: float = 0.7
    max_tokens: int = 300
    api_key: str = ""
    base_url: str | None = None
    timeout: float = 60.0


def to_langchain_messages(messages: list[dict[str, Any]]) -> list[BaseMessage]:
    """Convert stored {"role", "content"} dicts into LangChain messages"""
    converted: list[BaseMessage] = []
    for message in messages:
        content = message.get("content", "")
        if message.get("role") == MessageRole.ASSISTANT.value:
            converted.append(AIMessage(content=content))
        else:
            converted.append(HumanMessage(content=content))
    return converted


class LLMClient:
    """Thin async wrapper around a chat model"""

    def __init__(
        self,
        config: LLMConfig | None = None,
        chat_model: BaseChatModel | None = None,
        purpose: str = "chat",
    ) -> None:
        self.config = config or LLMConfig()
        self.purpose = purpose
        self._llm = chat_model

    def _get_llm(self) -> BaseChatModel:
        if self._llm is None:
            if not self.config.api_key:
                raise AICollaboratorError("OPENAI_API_KEY is not configured")

            from langchain_openai import ChatOpenAI

            self._llm = ChatOpenAI(
                model=self.config.model,
                temperature=self.config.temperature,
                max_tokens=self.config.max_tokens,
                api_key=self.config.api_key,
                base_url=self.config.base_url,
                timeout=self.config.timeout,
                max_retries=0,
            )
            logger.info(
                "LLMClient initialized: purpose=%s, model=%s, temperature=%s, max_tokens=%s",
                self.purpose,
                self.config.model,
                self.config.temperature,
                self.config.max_tokens,
            )
        return self._llm

    async def complete(
        self,
        system_prompt: str,
        messages: list[dict[str, Any]] | None = None,
        user_prompt: str | None = None,
    ) -> str:
        """Send system framing plus history and return the reply text

        Raises:
            AICollaboratorError: on any provider failure or an empty reply
        """
        request: list[BaseMessage] = [SystemMessage(content=system_prompt)]
        request.extend(to_langchain_messages(messages or []))
        if user_prompt:
            request.append(HumanMessage(content=user_prompt))

        metrics = get_app_metrics()
        start_time = time.perf_counter()
        outcome = "success"

        with get_tracer().start_as_current_span(f"llm.{self.purpose}") as span:
            span.set_attribute("llm.purpose", self.purpose)
            span.set_attribute("llm.message_count", len(request))
            try:
                response = await self._get_llm().ainvoke(request)
            except AICollaboratorError:
                outcome = "failed"
                raise
            except Exception as e:
                outcome = "failed"
                logger.error(f"LLM call failed: purpose={self.purpose}, error={e}")
                raise AICollaboratorError(str(e)) from e
            finally:
                if metrics:
                    metrics.llm_request_total.add(
                        1, {"purpose": self.purpose, "status": outcome}
                    )
                    metrics.llm_request_duration.record(
                        time.perf_counter() - start_time, {"purpose": self.purpose}
                    )

        content = response.content if isinstance(response.content, str) else ""
        content = content.strip()
        if not content:
            logger.warning(f"LLM returned empty content: purpose={self.purpose}")
            raise AICollaboratorError("Empty response from language model")

        return content
