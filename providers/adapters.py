"""HTTP adapters for the generative-text providers.

Each factory returns a ProviderConfig whose ``send`` closure turns a
provider-neutral ChatRequest into one HTTP call and classifies the response
as a ProviderAttempt: 429 is rate limited, any other non-2xx or a 2xx
without text is a hard error.
"""
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

import requests

from processor.models import AttemptOutcome, ChatRequest, ProviderAttempt

logger = logging.getLogger(__name__)

GEMINI_URL = 'https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent'
GROQ_URL = 'https://api.groq.com/openai/v1/chat/completions'

GEMINI_DEFAULT_MODEL = 'gemini-2.0-flash'
GROQ_DEFAULT_MODEL = 'llama-3.3-70b-versatile'

# Groq rejects completions above its own ceiling
GROQ_MAX_TOKENS = 8000

RATE_LIMIT_STATUS = 429
EMPTY_RESPONSE_STATUS = 502

GEMINI_SAFETY_SETTINGS = [
    {'category': 'HARM_CATEGORY_HARASSMENT', 'threshold': 'BLOCK_NONE'},
    {'category': 'HARM_CATEGORY_HATE_SPEECH', 'threshold': 'BLOCK_NONE'},
    {'category': 'HARM_CATEGORY_SEXUALLY_EXPLICIT', 'threshold': 'BLOCK_NONE'},
    {'category': 'HARM_CATEGORY_DANGEROUS_CONTENT', 'threshold': 'BLOCK_NONE'},
]


@dataclass(frozen=True)
class ProviderConfig:
    """One entry in the ordered provider list."""
    provider_id: str
    send: Callable[[ChatRequest], ProviderAttempt]


def gemini_payload(request: ChatRequest) -> Dict[str, Any]:
    contents = [
        {
            'role': 'model' if message.role == 'assistant' else 'user',
            'parts': [{'text': message.content}]
        }
        for message in request.messages
    ]
    payload = {
        'contents': contents,
        'generationConfig': {
            'temperature': request.settings.temperature,
            'maxOutputTokens': request.settings.max_output_tokens,
            'topP': request.settings.top_p
        },
        'safetySettings': GEMINI_SAFETY_SETTINGS
    }
    if request.system_prompt:
        payload['system_instruction'] = {'parts': [{'text': request.system_prompt}]}
    return payload


def gemini_text(data: Dict[str, Any]) -> Optional[str]:
    try:
        return data['candidates'][0]['content']['parts'][0]['text']
    except (KeyError, IndexError, TypeError):
        return None


def groq_payload(request: ChatRequest, model: str) -> Dict[str, Any]:
    messages = []
    if request.system_prompt:
        messages.append({'role': 'system', 'content': request.system_prompt})
    messages.extend(
        {'role': message.role, 'content': message.content}
        for message in request.messages
    )
    return {
        'model': model,
        'messages': messages,
        'temperature': request.settings.temperature,
        'max_tokens': min(request.settings.max_output_tokens, GROQ_MAX_TOKENS),
        'top_p': request.settings.top_p
    }


def groq_text(data: Dict[str, Any]) -> Optional[str]:
    try:
        return data['choices'][0]['message']['content']
    except (KeyError, IndexError, TypeError):
        return None


def classify_response(
    provider_id: str,
    label: str,
    response: requests.Response,
    extract: Callable[[Dict[str, Any]], Optional[str]]
) -> ProviderAttempt:
    """
    Normalize a provider HTTP response into a ProviderAttempt.

    Args:
        provider_id: Identifier recorded on the attempt
        label: Human-readable provider name used in error messages
        response: Raw HTTP response
        extract: Pulls the generated text out of a decoded 2xx body

    Returns:
        ProviderAttempt with outcome, status and payload or error message
    """
    if response.status_code == RATE_LIMIT_STATUS:
        return ProviderAttempt(
            provider_id=provider_id,
            outcome=AttemptOutcome.RATE_LIMITED,
            http_status=RATE_LIMIT_STATUS,
            error_message=f"{label} rate limit reached"
        )

    try:
        data = response.json()
    except ValueError:
        data = {}
    if not isinstance(data, dict):
        data = {}

    if not response.ok:
        error = data.get('error')
        message = error.get('message') if isinstance(error, dict) else None
        return ProviderAttempt(
            provider_id=provider_id,
            outcome=AttemptOutcome.HARD_ERROR,
            http_status=response.status_code,
            error_message=message or f"{label} error: {response.status_code}"
        )

    text = extract(data)
    if not isinstance(text, str) or not text.strip():
        return ProviderAttempt(
            provider_id=provider_id,
            outcome=AttemptOutcome.HARD_ERROR,
            http_status=EMPTY_RESPONSE_STATUS,
            error_message=f"{label} returned an empty response."
        )

    return ProviderAttempt(
        provider_id=provider_id,
        outcome=AttemptOutcome.SUCCESS,
        http_status=response.status_code,
        payload=text.strip()
    )


def _transport_failure(provider_id: str, label: str, exc: Exception) -> ProviderAttempt:
    logger.warning(f"{label} request failed: {exc}")
    return ProviderAttempt(
        provider_id=provider_id,
        outcome=AttemptOutcome.HARD_ERROR,
        http_status=EMPTY_RESPONSE_STATUS,
        error_message=f"{label} request failed: {exc}"
    )


def gemini_provider(
    api_key: str,
    model: str = GEMINI_DEFAULT_MODEL,
    timeout: int = 120
) -> ProviderConfig:
    """
    Build the Google Gemini adapter.

    Args:
        api_key: Gemini API key, sent as the ``key`` query parameter
        model: Model name (default: gemini-2.0-flash)
        timeout: HTTP request timeout in seconds

    Returns:
        ProviderConfig with id "gemini"
    """
    url = GEMINI_URL.format(model=model)

    def send(request: ChatRequest) -> ProviderAttempt:
        try:
            response = requests.post(
                url,
                params={'key': api_key},
                json=gemini_payload(request),
                timeout=timeout
            )
        except requests.RequestException as e:
            return _transport_failure('gemini', 'Gemini', e)
        return classify_response('gemini', 'Gemini', response, gemini_text)

    return ProviderConfig(provider_id='gemini', send=send)


def groq_provider(
    api_key: str,
    model: str = GROQ_DEFAULT_MODEL,
    timeout: int = 120
) -> ProviderConfig:
    """
    Build the Groq (OpenAI-compatible) adapter.

    Args:
        api_key: Groq API key, sent as a bearer token
        model: Model name (default: llama-3.3-70b-versatile)
        timeout: HTTP request timeout in seconds

    Returns:
        ProviderConfig with id "groq"
    """
    headers = {'Authorization': f"Bearer {api_key}"}

    def send(request: ChatRequest) -> ProviderAttempt:
        try:
            response = requests.post(
                GROQ_URL,
                headers=headers,
                json=groq_payload(request, model),
                timeout=timeout
            )
        except requests.RequestException as e:
            return _transport_failure('groq', 'Groq', e)
        return classify_response('groq', 'Groq', response, groq_text)

    return ProviderConfig(provider_id='groq', send=send)
