"""Chat responders.

``RuleBasedResponder`` answers locally from the loaded clips.
``ModelBackedResponder`` forwards the rendered context to a hosted model.
Which one serves chat is chosen by ``chat_responder``.
"""

import logging
from abc import ABC, abstractmethod

from clipbook.config import get_settings
from clipbook.services.context_builder import ChatContext
from clipbook.services.intent_router import detect_intent, respond_with_rules
from clipbook.services.model_providers import ModelProvider, get_model_provider

logger = logging.getLogger(__name__)

SYSTEM_NOTE = (
    "You are ClipBook AI Assistant. Use the playlist context when provided. "
    "Be concise, helpful, and reference video titles when relevant."
)


def build_prompt(message: str, context: str) -> str:
    context_block = f"{context}\n\n" if context else ""
    return f"{SYSTEM_NOTE}\n\n{context_block}User: {message}\nAssistant:"


class Responder(ABC):
    """Produces a reply for one chat message."""

    @abstractmethod
    async def respond(self, message: str, context: ChatContext) -> str: ...


class RuleBasedResponder(Responder):
    async def respond(self, message: str, context: ChatContext) -> str:
        logger.debug(f"Rule-based intent: {detect_intent(message).value}")
        return respond_with_rules(message, context.clips)


class ModelBackedResponder(Responder):
    """Raises ``UpstreamModelError`` when the provider call fails."""

    def __init__(self, provider: ModelProvider) -> None:
        self.provider = provider

    async def respond(self, message: str, context: ChatContext) -> str:
        reply = await self.provider.generate(build_prompt(message, context.text))
        logger.info(f"Model reply from {reply.provider}/{reply.model} ({len(reply.text)} chars)")
        return reply.text


def get_responder() -> Responder:
    settings = get_settings()
    if settings.chat_responder == "model":
        return ModelBackedResponder(get_model_provider(settings))
    return RuleBasedResponder()
