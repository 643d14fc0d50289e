"""Follow-up questions about a previously generated summary."""
import logging
from typing import Optional, Sequence

from processor.errors import ConfigurationError, EmptyInput
from processor.models import ChatContext, ChatRequest, GenerationSettings, SynthesisResult
from providers.adapters import ProviderConfig
from providers.fallback_client import ProviderFallbackClient

logger = logging.getLogger(__name__)

CHAT_SETTINGS = GenerationSettings(temperature=0.5, max_output_tokens=2048, top_p=0.9)

NO_MESSAGES_MESSAGE = 'No messages provided.'
NO_PROVIDERS_MESSAGE = 'AI is not configured. Please add GEMINI_API_KEY or GROQ_API_KEY.'


def build_chat_system_prompt(summary: str) -> str:
    return f"""You are a ministry strategy advisor assisting a church leader in reviewing and discussing a Circle Event Summary Analysis.

The following analysis was just generated from this week's circle event reports. Use it as your primary source of truth when answering questions:

---
{summary}
---

Your role in this conversation:
- Answer follow-up questions about the analysis directly and specifically
- Reference specific circles, names, and quotes from the analysis when relevant
- Offer additional strategic insight when asked
- If asked something not covered in the analysis, say so clearly and offer what you can infer
- Keep responses concise and leadership-focused, no fluff
- Speak in the same direct, pastoral-strategic tone as the analysis itself"""


class FollowUpChat:
    """Answers questions about a summary using the same provider chain."""

    def __init__(self, client: Optional[ProviderFallbackClient] = None):
        self.client = client or ProviderFallbackClient()

    def reply(
        self,
        context: ChatContext,
        providers: Sequence[ProviderConfig]
    ) -> SynthesisResult:
        """
        Generate the assistant's next reply.

        Args:
            context: Summary text and the conversation so far
            providers: Providers in order of preference

        Returns:
            SynthesisResult whose text is the reply
        """
        if not providers:
            error = ConfigurationError(NO_PROVIDERS_MESSAGE)
            return SynthesisResult.failure(error.message, error.kind, error.status_code)
        if not context.messages:
            error = EmptyInput(NO_MESSAGES_MESSAGE)
            return SynthesisResult.failure(error.message, error.kind, error.status_code)

        request = ChatRequest(
            messages=context.messages,
            system_prompt=build_chat_system_prompt(context.summary),
            settings=CHAT_SETTINGS
        )
        logger.info(f"Follow-up chat with {len(context.messages)} messages")
        return self.client.complete(request, providers)
