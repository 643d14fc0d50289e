"""AWS Lambda handlers for the circle event explorer."""
import json
import logging
import time
from typing import Any, Dict

from fetcher.event_source import EventSource
from fetcher.range_fetch import RangeFetchOrchestrator
from processor.errors import EventExplorerError
from processor.models import ChatContext, ChatMessage, EventRecord, SynthesisResult
from settings import Settings
from synthesis.chat import FollowUpChat
from synthesis.coordinator import SummaryRequestCoordinator


# Configure JSON logging
class JsonFormatter(logging.Formatter):
    """Custom JSON formatter for structured logging."""

    RESERVED = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'asctime'}

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON, including any ``extra`` fields."""
        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'message': record.getMessage(),
            'logger': record.name
        }

        for key, value in vars(record).items():
            if key not in self.RESERVED and key not in log_data:
                log_data[key] = value

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(log_level: str = 'INFO') -> None:
    """
    Configure logging with JSON formatter.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
    """
    root_logger = logging.getLogger()

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(JsonFormatter())
    root_logger.addHandler(handler)

    root_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))


def _response(status_code: int, body: Dict[str, Any]) -> Dict[str, Any]:
    return {
        'statusCode': status_code,
        'headers': {'Content-Type': 'application/json'},
        'body': json.dumps(body)
    }


def _parse_body(event: Dict[str, Any]) -> Dict[str, Any]:
    """Accept both API Gateway events (JSON string body) and direct invokes."""
    body = event.get('body', event) if isinstance(event, dict) else {}
    if isinstance(body, str):
        body = json.loads(body) if body else {}
    if not isinstance(body, dict):
        raise ValueError('Request body must be a JSON object')
    return body


def _result_response(result: SynthesisResult, key: str) -> Dict[str, Any]:
    if result.ok:
        return _response(200, {key: result.text})
    return _response(result.status_code, {'error': result.error})


def _failure(logger: logging.Logger, label: str, e: Exception, start_time: float) -> Dict[str, Any]:
    duration = time.time() - start_time
    logger.error(
        f"{label} failed: {str(e)}",
        extra={
            'duration_seconds': round(duration, 2),
            'error_type': type(e).__name__
        },
        exc_info=True
    )
    return _response(500, {'error': str(e) or 'Internal server error'})


def summarize_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Generate a leadership report for an aggregated event set.

    Args:
        event: Request with body {events, startDate, endDate, groupName}
        context: Lambda context object

    Returns:
        Response dict with statusCode and a {summary} or {error} body
    """
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    start_time = time.time()

    try:
        body = _parse_body(event)
        events = [
            EventRecord.from_dict(item)
            for item in body.get('events') or []
            if isinstance(item, dict)
        ]
        start_date = body.get('startDate') or ''
        end_date = body.get('endDate') or start_date

        coordinator = SummaryRequestCoordinator()
        result = coordinator.synthesize(
            events,
            start_date,
            end_date,
            body.get('groupName') or '',
            settings.providers()
        )

        logger.info(
            'Summarize request completed',
            extra={
                'duration_seconds': round(time.time() - start_time, 2),
                'status_code': result.status_code,
                'events': len(events),
                'providers_tried': [a.provider_id for a in result.attempts]
            }
        )
        return _result_response(result, 'summary')

    except Exception as e:
        return _failure(logger, 'Summarize request', e, start_time)


def chat_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Answer a follow-up question about a generated summary.

    Args:
        event: Request with body {messages, summary}
        context: Lambda context object

    Returns:
        Response dict with statusCode and a {reply} or {error} body
    """
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    start_time = time.time()

    try:
        body = _parse_body(event)
        chat_context = ChatContext(
            summary=str(body.get('summary') or ''),
            messages=tuple(
                ChatMessage.from_dict(m)
                for m in body.get('messages') or []
                if isinstance(m, dict)
            )
        )
        result = FollowUpChat().reply(chat_context, settings.providers())
        return _result_response(result, 'reply')

    except Exception as e:
        return _failure(logger, 'Chat request', e, start_time)


def fetch_range_handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Fetch every day of a date range from the per-day event source.

    Args:
        event: Request with body {startDate, endDate, groupName}
        context: Lambda context object

    Returns:
        Response dict with events, per-date errors and the outcome
    """
    settings = Settings.from_env()
    setup_logging(settings.log_level)
    logger = logging.getLogger(__name__)
    start_time = time.time()

    try:
        body = _parse_body(event)
        orchestrator = RangeFetchOrchestrator(
            EventSource(settings.event_source_url, timeout=settings.timeout_seconds)
        )
        job = orchestrator.run(
            body.get('startDate') or '',
            body.get('endDate') or None,
            body.get('groupName') or ''
        )
    except EventExplorerError as e:
        logger.warning(f"Range fetch rejected: {e.message}", extra={'kind': e.kind.value})
        return _response(e.status_code, {'error': e.message})
    except Exception as e:
        return _failure(logger, 'Range fetch', e, start_time)

    return _response(200, {
        'events': [record.to_dict() for record in job.events],
        'errors': [
            {'date': error.date.isoformat(), 'message': error.message}
            for error in job.errors
        ],
        'outcome': job.outcome.value,
        'message': job.error_summary(),
        'duration_seconds': round(time.time() - start_time, 2)
    })
