"""
src/llm/client.py
Chat-completion access through CrewAI's LLM wrapper.
Exports: LLMClient, LLMError, build_llm_client, build_messages
"""

import asyncio
import logging
from typing import Any, Protocol

from crewai import LLM

from src.agent.types import ProcessedImage
from src.config import AgentSettings, Config

logger = logging.getLogger(__name__)

EMPTY_LLM_RESPONSE_MESSAGE = "Invalid response from LLM call - None or empty."


class LLMError(RuntimeError):
    """The model returned nothing usable."""


class TextGenerator(Protocol):
    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        images: list[ProcessedImage] | None = None,
    ) -> str: ...


def build_messages(
    system_prompt: str,
    user_prompt: str,
    images: list[ProcessedImage] | None = None,
) -> list[dict[str, Any]]:
    """
    Build an OpenAI-style message list, multimodal when images are present.

    Args:
        system_prompt: System instruction.
        user_prompt: User message text.
        images: Optional images sent inline as base64 data URIs.
    Returns:
        Message dicts accepted by `LLM.call`.
    """
    messages: list[dict[str, Any]] = [{"role": "system", "content": system_prompt}]
    if not images:
        messages.append({"role": "user", "content": user_prompt})
        return messages
    content: list[dict[str, Any]] = [{"type": "text", "text": user_prompt}]
    for image in images:
        content.append({"type": "image_url", "image_url": {"url": image.data_uri}})
    messages.append({"role": "user", "content": content})
    return messages


class LLMClient:
    """Single-shot text generation. No streaming, no tools, no retries."""

    def __init__(self, llm: Any, model: str) -> None:
        self._llm = llm
        self.model = model

    async def generate(
        self,
        system_prompt: str,
        user_prompt: str,
        images: list[ProcessedImage] | None = None,
    ) -> str:
        messages = build_messages(system_prompt, user_prompt, images)
        logger.info(
            "LLM call start: model=%s system_chars=%d user_chars=%d images=%d",
            self.model,
            len(system_prompt),
            len(user_prompt),
            len(images or []),
        )
        # LLM.call blocks on network I/O.
        response = await asyncio.to_thread(self._llm.call, messages)
        text = str(response or "").strip()
        if not text:
            raise LLMError(EMPTY_LLM_RESPONSE_MESSAGE)
        logger.info("LLM call done: model=%s output_chars=%d", self.model, len(text))
        return text


def build_llm_client(settings: AgentSettings) -> LLMClient:
    """
    Create an LLMClient from per-request settings.

    Raises:
        RuntimeError: If no Gemini API key is configured.
    """
    api_key = Config.require_gemini_api_key()
    llm = LLM(
        model=settings.llm_model,
        temperature=settings.llm_temperature,
        max_tokens=settings.llm_max_tokens,
        api_key=api_key,
    )
    return LLMClient(llm=llm, model=settings.llm_model)
