"""Turns an aggregated event set into an AI-written leadership report."""
import logging
from typing import Optional, Sequence

from processor.errors import ConfigurationError, EmptyInput
from processor.models import EventRecord, SynthesisResult
from processor.report_formatter import DateLike, build_prompt
from providers.adapters import ProviderConfig
from providers.fallback_client import NO_PROVIDERS_MESSAGE, ProviderFallbackClient

logger = logging.getLogger(__name__)

NO_EVENTS_MESSAGE = 'No events provided to summarize.'


class SummaryRequestCoordinator:
    """Validates input, builds the prompt and hands it to the fallback client."""

    def __init__(self, client: Optional[ProviderFallbackClient] = None):
        self.client = client or ProviderFallbackClient()

    def synthesize(
        self,
        events: Sequence[EventRecord],
        start_date: DateLike,
        end_date: DateLike,
        group_filter: Optional[str],
        providers: Sequence[ProviderConfig]
    ) -> SynthesisResult:
        """
        Produce a synthesis for events already fetched by a range run.

        Args:
            events: Aggregated event records, in fetch order
            start_date: First day of the fetched range
            end_date: Last day of the fetched range
            group_filter: Group filter used for the fetch
            providers: Providers in order of preference

        Returns:
            SynthesisResult with the summary text, or the first error verbatim
        """
        if not providers:
            error = ConfigurationError(NO_PROVIDERS_MESSAGE)
            return SynthesisResult.failure(error.message, error.kind, error.status_code)

        if not events:
            error = EmptyInput(NO_EVENTS_MESSAGE)
            return SynthesisResult.failure(error.message, error.kind, error.status_code)

        prompt = build_prompt(events, start_date, end_date, group_filter)
        logger.info(
            f"Requesting synthesis for {len(events)} events",
            extra={
                'prompt_chars': len(prompt),
                'providers': [p.provider_id for p in providers]
            }
        )
        return self.client.summarize(prompt, providers)
