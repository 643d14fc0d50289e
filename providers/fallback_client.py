"""Ordered fallback across text-generation providers."""
import logging
from typing import List, Optional, Sequence

from processor.errors import ConfigurationError, ErrorKind
from processor.models import (
    AttemptOutcome,
    ChatMessage,
    ChatRequest,
    GenerationSettings,
    ProviderAttempt,
    SynthesisResult,
)
from providers.adapters import ProviderConfig, RATE_LIMIT_STATUS

logger = logging.getLogger(__name__)

SUMMARY_SYSTEM_PROMPT = (
    "You are an expert ministry strategist and spiritual formation consultant. "
    "Follow the user's instructions exactly and produce thorough, structured "
    "leadership reports."
)

SUMMARY_SETTINGS = GenerationSettings(temperature=0.4, max_output_tokens=8192, top_p=0.9)

RATE_LIMITED_MESSAGE = 'AI rate limit reached. Please wait a moment and try again.'
ALL_RATE_LIMITED_MESSAGE = 'All AI providers are rate-limited. Please wait a moment and try again.'
NO_PROVIDERS_MESSAGE = (
    'AI summarization is not configured. Please add GEMINI_API_KEY or '
    'GROQ_API_KEY to your environment variables.'
)


class ProviderFallbackClient:
    """Tries each provider once, in order, and returns the first usable text."""

    def summarize(
        self,
        prompt: str,
        providers: Sequence[ProviderConfig],
        system_prompt: Optional[str] = SUMMARY_SYSTEM_PROMPT
    ) -> SynthesisResult:
        """
        Synthesize a report from a single prompt.

        Args:
            prompt: Full synthesis prompt sent as the user message
            providers: Providers in order of preference
            system_prompt: Role framing sent alongside the prompt

        Returns:
            SynthesisResult with the generated text or the terminal error

        Raises:
            ConfigurationError: providers is empty
        """
        request = ChatRequest(
            messages=(ChatMessage(role='user', content=prompt),),
            system_prompt=system_prompt,
            settings=SUMMARY_SETTINGS
        )
        return self.complete(request, providers)

    def complete(
        self,
        request: ChatRequest,
        providers: Sequence[ProviderConfig]
    ) -> SynthesisResult:
        """
        Send a request through the provider list until one succeeds.

        Rate-limited and failed attempts both move on to the next provider;
        only running out of providers is terminal. There is no retry within
        a provider.

        Args:
            request: Provider-neutral chat request
            providers: Providers in order of preference

        Returns:
            SynthesisResult; on failure it carries every attempt made

        Raises:
            ConfigurationError: providers is empty
        """
        if not providers:
            raise ConfigurationError(NO_PROVIDERS_MESSAGE)

        attempts: List[ProviderAttempt] = []
        for position, provider in enumerate(providers):
            attempt = provider.send(request)
            attempts.append(attempt)

            if attempt.succeeded:
                logger.info(
                    f"Provider {attempt.provider_id} produced a response",
                    extra={'provider': attempt.provider_id, 'attempts': len(attempts)}
                )
                return SynthesisResult(text=attempt.payload, attempts=attempts)

            remaining = len(providers) - position - 1
            if remaining:
                if attempt.outcome is AttemptOutcome.RATE_LIMITED:
                    logger.info(
                        f"{attempt.provider_id} rate-limited, falling back to "
                        f"{providers[position + 1].provider_id}"
                    )
                else:
                    logger.warning(
                        f"{attempt.provider_id} error, falling back to "
                        f"{providers[position + 1].provider_id}: {attempt.error_message}"
                    )

        return self._exhausted(attempts)

    def _exhausted(self, attempts: List[ProviderAttempt]) -> SynthesisResult:
        last = attempts[-1]
        if last.outcome is AttemptOutcome.RATE_LIMITED:
            all_limited = len(attempts) > 1 and all(
                a.outcome is AttemptOutcome.RATE_LIMITED for a in attempts
            )
            message = ALL_RATE_LIMITED_MESSAGE if all_limited else RATE_LIMITED_MESSAGE
            status = RATE_LIMIT_STATUS
        else:
            message = last.error_message or 'AI service error'
            status = last.http_status

        logger.error(
            f"All providers failed: {message}",
            extra={
                'last_outcome': last.outcome.value,
                'providers': [a.provider_id for a in attempts]
            }
        )
        return SynthesisResult.failure(
            message,
            ErrorKind.ALL_PROVIDERS_EXHAUSTED,
            status,
            attempts
        )
