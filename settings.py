"""Runtime configuration read from environment variables."""
import os
from dataclasses import dataclass
from typing import List, Mapping, Optional

from providers.adapters import (
    GEMINI_DEFAULT_MODEL,
    GROQ_DEFAULT_MODEL,
    ProviderConfig,
    gemini_provider,
    groq_provider,
)


@dataclass(frozen=True)
class Settings:
    gemini_api_key: Optional[str]
    groq_api_key: Optional[str]
    gemini_model: str
    groq_model: str
    event_source_url: str
    timeout_seconds: int
    provider_timeout_seconds: int
    log_level: str

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'Settings':
        """
        Load settings from the environment.

        Args:
            environ: Mapping to read instead of os.environ

        Returns:
            Settings instance
        """
        env = os.environ if environ is None else environ
        return cls(
            gemini_api_key=env.get('GEMINI_API_KEY') or None,
            groq_api_key=env.get('GROQ_API_KEY') or None,
            gemini_model=env.get('GEMINI_MODEL', GEMINI_DEFAULT_MODEL),
            groq_model=env.get('GROQ_MODEL', GROQ_DEFAULT_MODEL),
            event_source_url=env.get('EVENT_SOURCE_URL', 'http://localhost:3000/api/ccb/event-attendance'),
            timeout_seconds=int(env.get('TIMEOUT_SECONDS', '30')),
            provider_timeout_seconds=int(env.get('PROVIDER_TIMEOUT_SECONDS', '120')),
            log_level=env.get('LOG_LEVEL', 'INFO')
        )

    def providers(self) -> List[ProviderConfig]:
        """Configured providers in preference order: Gemini, then Groq."""
        providers = []
        if self.gemini_api_key:
            providers.append(gemini_provider(
                self.gemini_api_key,
                model=self.gemini_model,
                timeout=self.provider_timeout_seconds
            ))
        if self.groq_api_key:
            providers.append(groq_provider(
                self.groq_api_key,
                model=self.groq_model,
                timeout=self.provider_timeout_seconds
            ))
        return providers
