"""Sequential multi-day fetch of circle event reports."""
import logging
import threading
from datetime import date, timedelta
from typing import Callable, List, Optional, Protocol, Union

from fetcher.cancellation import CancellationToken
from processor.errors import FetchAborted, PerDateFetchError, RangeInvalid, RangeTooLarge
from processor.models import MAX_RANGE_DAYS, EventRecord, FetchJob, PerDateError

logger = logging.getLogger(__name__)

DateLike = Union[date, str]
ProgressCallback = Callable[[List[EventRecord]], None]
DayStartCallback = Callable[[int, int, date], None]


class DaySource(Protocol):
    def fetch_day(
        self,
        day: date,
        group_filter: str,
        cancellation_token: Optional[CancellationToken] = None
    ) -> List[EventRecord]:
        ...


def parse_day(value: DateLike, field_name: str) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        raise RangeInvalid(f"Invalid {field_name}: {value!r}")


def expand_dates(
    start_date: DateLike,
    end_date: Optional[DateLike] = None,
    max_days: int = MAX_RANGE_DAYS
) -> List[date]:
    """
    Expand an inclusive date range into individual calendar dates.

    Args:
        start_date: First day of the range
        end_date: Last day of the range; defaults to start_date
        max_days: Largest number of days allowed (default: 90)

    Returns:
        Dates in ascending order

    Raises:
        RangeInvalid: A date is missing or unparsable, or end precedes start
        RangeTooLarge: The range covers more than max_days days
    """
    if not start_date:
        raise RangeInvalid('Please enter a start date')
    start = parse_day(start_date, 'start date')
    end = parse_day(end_date, 'end date') if end_date else start

    if end < start:
        raise RangeInvalid('End date must be on or after start date')

    total = (end - start).days + 1
    if total > max_days:
        raise RangeTooLarge(
            f"Date range too large. Please select {max_days} days or fewer."
        )

    return [start + timedelta(days=offset) for offset in range(total)]


class RangeFetchOrchestrator:
    """Runs one range fetch at a time against a per-day source."""

    def __init__(self, source: DaySource, max_days: int = MAX_RANGE_DAYS):
        """
        Initialize the orchestrator.

        Args:
            source: Per-day event source
            max_days: Largest range a single run may cover (default: 90)
        """
        self.source = source
        self.max_days = max_days
        self._lock = threading.Lock()
        self._active_token: Optional[CancellationToken] = None

    def cancel(self) -> None:
        """Cancel the in-flight run, if any."""
        with self._lock:
            token = self._active_token
        if token is not None:
            token.cancel()

    def run(
        self,
        start_date: DateLike,
        end_date: Optional[DateLike],
        group_filter: str,
        on_progress: Optional[ProgressCallback] = None,
        cancellation_token: Optional[CancellationToken] = None,
        on_day_start: Optional[DayStartCallback] = None
    ) -> FetchJob:
        """
        Fetch every day in the range, one day at a time.

        A day that fails is recorded on the job and the loop moves on.
        Cancellation stops the loop and returns what has been collected,
        without recording an error.

        Args:
            start_date: First day of the range
            end_date: Last day of the range; defaults to start_date
            group_filter: Group name filter, required
            on_progress: Receives the full accumulated list after each day
            cancellation_token: Token the caller may cancel; created if omitted
            on_day_start: Receives (1-based index, total, date) before each day

        Returns:
            FetchJob holding events, per-date errors and the cancelled flag

        Raises:
            RangeInvalid: Missing group filter or invalid dates
            RangeTooLarge: Range longer than max_days
        """
        if not group_filter:
            raise RangeInvalid('Please enter a start date and group name')
        dates = expand_dates(start_date, end_date, self.max_days)

        token = cancellation_token or CancellationToken()
        with self._lock:
            previous = self._active_token
            self._active_token = token
        if previous is not None and previous is not token:
            logger.info('Cancelling previous range fetch')
            previous.cancel()

        job = FetchJob(dates=dates, group_filter=group_filter)
        logger.info(
            f"Starting range fetch for {len(dates)} days",
            extra={
                'start_date': dates[0].isoformat(),
                'end_date': dates[-1].isoformat(),
                'group_filter': group_filter
            }
        )

        try:
            self._fetch_days(job, token, on_progress, on_day_start)
        finally:
            with self._lock:
                if self._active_token is token:
                    self._active_token = None

        logger.info(
            f"Range fetch finished: {len(job.collected_events)} events, "
            f"{len(job.per_date_errors)} failed days",
            extra={'outcome': job.outcome.value, 'cancelled': job.cancelled}
        )
        return job

    def _fetch_days(
        self,
        job: FetchJob,
        token: CancellationToken,
        on_progress: Optional[ProgressCallback],
        on_day_start: Optional[DayStartCallback]
    ) -> None:
        total = len(job.dates)
        for index, day in enumerate(job.dates):
            if token.cancelled:
                job.cancelled = True
                logger.info(f"Range fetch cancelled after {index} of {total} days")
                return

            if on_day_start is not None:
                on_day_start(index + 1, total, day)

            try:
                records = self.source.fetch_day(day, job.group_filter, token)
            except FetchAborted:
                job.cancelled = True
                logger.info(f"Range fetch aborted while fetching {day.isoformat()}")
                return
            except PerDateFetchError as e:
                logger.warning(f"Fetch failed for {day.isoformat()}: {e.message}")
                job.per_date_errors.append(PerDateError(date=day, message=e.message))
                continue

            job.collected_events.extend(records)
            if on_progress is not None:
                on_progress(list(job.collected_events))
