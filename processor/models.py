"""Data models for event aggregation and report synthesis."""
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from processor.errors import ErrorKind, RangeTooLarge

MAX_RANGE_DAYS = 90


@dataclass(frozen=True)
class Attendee:
    """Attendance entry recorded against a circle event."""
    id: Optional[str] = None
    name: Optional[str] = None
    status: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Attendee':
        return cls(
            id=_optional_str(data.get('id')),
            name=_optional_str(data.get('name')),
            status=_optional_str(data.get('status'))
        )

    def to_dict(self) -> Dict[str, Any]:
        result = {}
        for key in ('id', 'name', 'status'):
            value = getattr(self, key)
            if value is not None:
                result[key] = value
        return result


@dataclass(frozen=True)
class EventRecord:
    """One circle meeting report as returned by the per-day source."""
    event_id: str
    title: str
    date: str
    link: str = ''
    notes: Optional[str] = None
    prayer_requests: Optional[str] = None
    topic: Optional[str] = None
    head_count: Optional[int] = None
    did_not_meet: bool = False
    attendees: Tuple[Attendee, ...] = ()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EventRecord':
        """
        Build a record from the source's camelCase JSON object.

        Args:
            data: Event object from the per-day source response

        Returns:
            EventRecord instance
        """
        attendees = data.get('attendees') or []
        return cls(
            event_id=str(data.get('eventId') or ''),
            title=str(data.get('title') or ''),
            date=str(data.get('date') or ''),
            link=str(data.get('link') or ''),
            notes=_optional_str(data.get('notes')),
            prayer_requests=_optional_str(data.get('prayerRequests')),
            topic=_optional_str(data.get('topic')),
            head_count=_head_count(data.get('headCount')),
            did_not_meet=bool(data.get('didNotMeet', False)),
            attendees=tuple(
                Attendee.from_dict(a) for a in attendees if isinstance(a, dict)
            )
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'eventId': self.event_id,
            'title': self.title,
            'date': self.date,
            'link': self.link,
            'notes': self.notes,
            'prayerRequests': self.prayer_requests,
            'topic': self.topic,
            'headCount': self.head_count,
            'didNotMeet': self.did_not_meet,
            'attendees': [a.to_dict() for a in self.attendees]
        }


@dataclass(frozen=True)
class PerDateError:
    """Failure recorded for one day of a range fetch."""
    date: date
    message: str

    def describe(self) -> str:
        return f"{self.date.isoformat()}: {self.message}"


class FetchOutcome(str, Enum):
    FULL_SUCCESS = 'full_success'
    PARTIAL_SUCCESS = 'partial_success'
    TOTAL_FAILURE = 'total_failure'


@dataclass
class FetchJob:
    """State owned by a single range-fetch run."""
    dates: List[date]
    group_filter: str
    collected_events: List[EventRecord] = field(default_factory=list)
    per_date_errors: List[PerDateError] = field(default_factory=list)
    cancelled: bool = False

    def __post_init__(self):
        if len(self.dates) > MAX_RANGE_DAYS:
            raise RangeTooLarge(
                f"A fetch job covers at most {MAX_RANGE_DAYS} days, got {len(self.dates)}"
            )

    @property
    def events(self) -> List[EventRecord]:
        return self.collected_events

    @property
    def errors(self) -> List[PerDateError]:
        return self.per_date_errors

    @property
    def outcome(self) -> FetchOutcome:
        if not self.per_date_errors:
            return FetchOutcome.FULL_SUCCESS
        if not self.collected_events:
            return FetchOutcome.TOTAL_FAILURE
        return FetchOutcome.PARTIAL_SUCCESS

    def error_summary(self) -> Optional[str]:
        """
        Render the non-blocking error text shown next to the results.

        Returns:
            Summary string, or None when no day failed
        """
        if not self.per_date_errors:
            return None
        lines = [e.describe() for e in self.per_date_errors]
        if self.outcome is FetchOutcome.TOTAL_FAILURE:
            return "Failed for all dates:\n" + "\n".join(lines)
        return "Some dates had errors: " + "; ".join(lines)


class AttemptOutcome(str, Enum):
    SUCCESS = 'success'
    RATE_LIMITED = 'rate_limited'
    HARD_ERROR = 'hard_error'


@dataclass(frozen=True)
class ProviderAttempt:
    """Result of calling one text-generation provider once."""
    provider_id: str
    outcome: AttemptOutcome
    http_status: int
    payload: Optional[str] = None
    error_message: Optional[str] = None

    @property
    def succeeded(self) -> bool:
        return self.outcome is AttemptOutcome.SUCCESS


@dataclass(frozen=True)
class ChatMessage:
    """Role-tagged message; role is 'user' or 'assistant'."""
    role: str
    content: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'ChatMessage':
        role = 'assistant' if data.get('role') == 'assistant' else 'user'
        return cls(role=role, content=str(data.get('content') or ''))


@dataclass(frozen=True)
class GenerationSettings:
    """Sampling parameters sent with every provider request."""
    temperature: float = 0.4
    max_output_tokens: int = 8192
    top_p: float = 0.9


@dataclass(frozen=True)
class ChatRequest:
    """Provider-neutral request: optional system prompt plus message history."""
    messages: Tuple[ChatMessage, ...]
    system_prompt: Optional[str] = None
    settings: GenerationSettings = field(default_factory=GenerationSettings)


@dataclass(frozen=True)
class ChatContext:
    """Prior synthesis text plus the follow-up conversation so far."""
    summary: str
    messages: Tuple[ChatMessage, ...] = ()


@dataclass
class SynthesisResult:
    """Either generated text or an error, never both."""
    text: Optional[str] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
    status_code: int = 200
    attempts: List[ProviderAttempt] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.text is not None

    @property
    def rate_limited(self) -> bool:
        """True when the chain ended because the last provider was rate limited."""
        if self.ok or not self.attempts:
            return False
        return self.attempts[-1].outcome is AttemptOutcome.RATE_LIMITED

    @classmethod
    def failure(cls, message: str, kind: ErrorKind, status_code: int,
                attempts: Optional[List[ProviderAttempt]] = None) -> 'SynthesisResult':
        return cls(
            error=message,
            kind=kind,
            status_code=status_code,
            attempts=list(attempts or [])
        )


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value)
    return text if text else None


def _head_count(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    try:
        count = int(value)
    except (TypeError, ValueError):
        return None
    # Fractional counts are rejected rather than truncated
    if isinstance(value, float) and count != value:
        return None
    return count if count >= 0 else None
