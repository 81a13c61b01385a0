# Overview: Client side of the change streams; reads Server-Sent Events into ChangeEvent objects.

"""
A change stream is anything that can be iterated for ChangeEvent objects and
closed. Two implementations:

- ChangeFeed.subscribe(table) on the server process (Subscription);
- SseChangeStream, which reads GET /api/realtime/<table> over HTTP.
"""

from __future__ import annotations

import json
import logging
from typing import Iterable, Iterator, Optional

import httpx

from ..services.realtime_service import ChangeEvent
from .api import ApiClient, ApiError, error_message


logger = logging.getLogger(__name__)


def parse_sse(lines: Iterable[str]) -> Iterator[tuple[str, str]]:
    """
    Yield (event, data) for each complete message.

    Comment lines (leading ':') are skipped. Multiple data lines are joined
    with newlines. A message without an event name is reported as "message".
    """
    event_name = None
    data_lines: list[str] = []
    for raw in lines:
        line = raw.rstrip("\r")
        if not line:
            if data_lines:
                yield event_name or "message", "\n".join(data_lines)
            event_name = None
            data_lines = []
            continue
        if line.startswith(":"):
            continue
        field, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field == "event":
            event_name = value
        elif field == "data":
            data_lines.append(value)
    if data_lines:
        yield event_name or "message", "\n".join(data_lines)


class SseChangeStream:
    def __init__(self, api: ApiClient, table: str, token: str, limit: Optional[int] = None):
        self.api = api
        self.table = table
        self.token = token
        self.limit = limit
        self._response: Optional[httpx.Response] = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def __iter__(self) -> Iterator[ChangeEvent]:
        params = {"limit": self.limit} if self.limit is not None else None
        try:
            with self.api.client.stream(
                "GET",
                f"/api/realtime/{self.table}",
                headers=self.api._headers(self.token),
                params=params,
                timeout=httpx.Timeout(10.0, read=None),
            ) as response:
                self._response = response
                if response.status_code >= 400:
                    response.read()
                    raise ApiError(response.status_code, error_message(response))

                for event_name, data in parse_sse(response.iter_lines()):
                    if self._closed:
                        return
                    try:
                        payload = json.loads(data)
                    except ValueError:
                        logger.warning("Skipping malformed %s event on %s", event_name, self.table)
                        continue
                    yield ChangeEvent.from_dict(payload)
        except httpx.HTTPError as e:
            if self._closed:
                return
            raise ApiError(None, "Change stream disconnected") from e
        finally:
            self._response = None

    def close(self) -> None:
        self._closed = True
        if self._response is not None:
            self._response.close()

    dispose = close
