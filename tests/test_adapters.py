"""Unit tests for the Gemini and Groq provider adapters."""
import json

import responses
from requests.exceptions import ConnectionError

from processor.models import AttemptOutcome, ChatMessage, ChatRequest, GenerationSettings
from providers.adapters import GEMINI_URL, GROQ_URL, gemini_provider, groq_provider

GEMINI_ENDPOINT = GEMINI_URL.format(model='gemini-2.0-flash')


def make_request(**kwargs):
    defaults = {
        'messages': (ChatMessage(role='user', content='Summarize these reports'),),
        'system_prompt': 'You are a strategist.',
        'settings': GenerationSettings(temperature=0.4, max_output_tokens=8192, top_p=0.9)
    }
    defaults.update(kwargs)
    return ChatRequest(**defaults)


class TestGeminiProvider:
    """Test cases for the Gemini adapter."""

    @responses.activate
    def test_success(self):
        responses.add(
            responses.POST,
            GEMINI_ENDPOINT,
            json={'candidates': [{'content': {'parts': [{'text': '  The report.  '}]}}]},
            status=200
        )

        attempt = gemini_provider('g-key').send(make_request())

        assert attempt.outcome is AttemptOutcome.SUCCESS
        assert attempt.payload == 'The report.'
        assert attempt.http_status == 200
        assert attempt.provider_id == 'gemini'

    @responses.activate
    def test_request_shape(self):
        """Test key placement, roles and sampling parameters."""
        responses.add(
            responses.POST,
            GEMINI_ENDPOINT,
            json={'candidates': [{'content': {'parts': [{'text': 'ok'}]}}]},
            status=200
        )
        request = make_request(messages=(
            ChatMessage(role='user', content='Q1'),
            ChatMessage(role='assistant', content='A1'),
            ChatMessage(role='user', content='Q2'),
        ))

        gemini_provider('g-key').send(request)

        sent = responses.calls[0].request
        assert 'key=g-key' in sent.url
        body = json.loads(sent.body)
        assert [c['role'] for c in body['contents']] == ['user', 'model', 'user']
        assert body['contents'][2]['parts'][0]['text'] == 'Q2'
        assert body['system_instruction'] == {'parts': [{'text': 'You are a strategist.'}]}
        assert body['generationConfig'] == {
            'temperature': 0.4, 'maxOutputTokens': 8192, 'topP': 0.9
        }
        assert len(body['safetySettings']) == 4

    @responses.activate
    def test_429_is_rate_limited(self):
        responses.add(responses.POST, GEMINI_ENDPOINT, json={'error': {}}, status=429)

        attempt = gemini_provider('g-key').send(make_request())

        assert attempt.outcome is AttemptOutcome.RATE_LIMITED
        assert attempt.http_status == 429
        assert attempt.payload is None

    @responses.activate
    def test_error_message_passed_through(self):
        responses.add(
            responses.POST,
            GEMINI_ENDPOINT,
            json={'error': {'message': 'API key not valid.'}},
            status=400
        )

        attempt = gemini_provider('g-key').send(make_request())

        assert attempt.outcome is AttemptOutcome.HARD_ERROR
        assert attempt.http_status == 400
        assert attempt.error_message == 'API key not valid.'

    @responses.activate
    def test_error_without_body(self):
        responses.add(responses.POST, GEMINI_ENDPOINT, body='oops', status=503)

        attempt = gemini_provider('g-key').send(make_request())

        assert attempt.error_message == 'Gemini error: 503'
        assert attempt.http_status == 503

    @responses.activate
    def test_empty_payload_is_hard_error(self):
        """Test a 2xx without text is never reported as success."""
        responses.add(responses.POST, GEMINI_ENDPOINT, json={'candidates': []}, status=200)

        attempt = gemini_provider('g-key').send(make_request())

        assert attempt.outcome is AttemptOutcome.HARD_ERROR
        assert attempt.http_status == 502
        assert attempt.error_message == 'Gemini returned an empty response.'

    @responses.activate
    def test_whitespace_payload_is_hard_error(self):
        responses.add(
            responses.POST,
            GEMINI_ENDPOINT,
            json={'candidates': [{'content': {'parts': [{'text': '   '}]}}]},
            status=200
        )

        attempt = gemini_provider('g-key').send(make_request())

        assert attempt.outcome is AttemptOutcome.HARD_ERROR

    @responses.activate
    def test_transport_failure_is_hard_error(self):
        responses.add(responses.POST, GEMINI_ENDPOINT, body=ConnectionError('refused'))

        attempt = gemini_provider('g-key').send(make_request())

        assert attempt.outcome is AttemptOutcome.HARD_ERROR
        assert attempt.http_status == 502
        assert 'refused' in attempt.error_message


class TestGroqProvider:
    """Test cases for the Groq adapter."""

    @responses.activate
    def test_success_and_request_shape(self):
        responses.add(
            responses.POST,
            GROQ_URL,
            json={'choices': [{'message': {'content': 'Groq report\n'}}]},
            status=200
        )

        attempt = groq_provider('q-key', model='llama-test').send(make_request())

        assert attempt.outcome is AttemptOutcome.SUCCESS
        assert attempt.payload == 'Groq report'

        sent = responses.calls[0].request
        assert sent.headers['Authorization'] == 'Bearer q-key'
        body = json.loads(sent.body)
        assert body['model'] == 'llama-test'
        assert body['messages'][0] == {'role': 'system', 'content': 'You are a strategist.'}
        assert body['messages'][1] == {'role': 'user', 'content': 'Summarize these reports'}
        assert body['temperature'] == 0.4
        assert body['top_p'] == 0.9
        assert body['max_tokens'] == 8000

    @responses.activate
    def test_without_system_prompt(self):
        responses.add(
            responses.POST,
            GROQ_URL,
            json={'choices': [{'message': {'content': 'ok'}}]},
            status=200
        )

        groq_provider('q-key').send(make_request(system_prompt=None))

        body = json.loads(responses.calls[0].request.body)
        assert [m['role'] for m in body['messages']] == ['user']

    @responses.activate
    def test_429_is_rate_limited(self):
        responses.add(responses.POST, GROQ_URL, json={}, status=429)

        attempt = groq_provider('q-key').send(make_request())

        assert attempt.outcome is AttemptOutcome.RATE_LIMITED

    @responses.activate
    def test_empty_choice_is_hard_error(self):
        responses.add(
            responses.POST,
            GROQ_URL,
            json={'choices': [{'message': {'content': None}}]},
            status=200
        )

        attempt = groq_provider('q-key').send(make_request())

        assert attempt.outcome is AttemptOutcome.HARD_ERROR
        assert attempt.error_message == 'Groq returned an empty response.'
        assert attempt.http_status == 502
