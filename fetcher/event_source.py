"""HTTP client for the per-day circle event attendance source."""
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from datetime import date
from typing import List, Optional

import requests

from fetcher.cancellation import CancellationToken
from processor.errors import FetchAborted, PerDateFetchError
from processor.models import EventRecord

logger = logging.getLogger(__name__)


class EventSource:
    """Fetches one day of event reports for a group filter."""

    DEFAULT_ERROR = 'Failed to fetch data'

    def __init__(self, url: str, timeout: int = 30):
        """
        Initialize the per-day source client.

        Args:
            url: Endpoint accepting {"date", "groupName"} POST bodies
            timeout: HTTP request timeout in seconds (default: 30)
        """
        self.url = url
        self.timeout = timeout

    def fetch_day(
        self,
        day: date,
        group_filter: str,
        cancellation_token: Optional[CancellationToken] = None
    ) -> List[EventRecord]:
        """
        Fetch the event records for a single calendar date.

        Args:
            day: Calendar date to fetch
            group_filter: Group name filter passed through to the source
            cancellation_token: Token whose cancellation aborts the request

        Returns:
            List of EventRecord objects in source order

        Raises:
            PerDateFetchError: The source answered non-2xx or was unreachable
            FetchAborted: The token was cancelled while the request was in flight
        """
        session = requests.Session()
        finished = threading.Event()
        executor = ThreadPoolExecutor(max_workers=1)

        # Wakes the wait below when the token fires mid-request
        def abort() -> None:
            finished.set()
            session.close()

        if cancellation_token is not None:
            cancellation_token.on_cancel(abort)

        try:
            if cancellation_token is not None and cancellation_token.cancelled:
                raise FetchAborted(f"Request for {day.isoformat()} aborted")

            future = executor.submit(
                session.post,
                self.url,
                json={'date': day.isoformat(), 'groupName': group_filter},
                timeout=self.timeout
            )
            future.add_done_callback(lambda _: finished.set())
            finished.wait()

            if cancellation_token is not None and cancellation_token.cancelled:
                future.cancel()
                logger.info(f"Request for {day.isoformat()} aborted in flight")
                raise FetchAborted(f"Request for {day.isoformat()} aborted")

            try:
                response = future.result()
            except requests.RequestException as e:
                raise PerDateFetchError(str(e)) from e
        finally:
            if cancellation_token is not None:
                cancellation_token.remove_callback(abort)
            # An abandoned request finishes on the worker thread; don't block on it
            executor.shutdown(wait=False)
            session.close()

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if not response.ok:
            parts = [body.get('error') or self.DEFAULT_ERROR]
            if body.get('hint'):
                parts.append(body['hint'])
            raise PerDateFetchError(' '.join(str(p) for p in parts))

        records = [
            EventRecord.from_dict(item)
            for item in body.get('data') or []
            if isinstance(item, dict)
        ]
        logger.debug(f"Fetched {len(records)} events for {day.isoformat()}")
        return records
