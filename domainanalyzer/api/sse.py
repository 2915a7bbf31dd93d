"""
Server-Sent Events Parsing

Turns the text/event-stream lines of a streaming HTTP response into
ServerSentEvent objects.
"""

import json
import logging
from dataclasses import dataclass
from typing import Any, Iterable, Iterator, Optional, Union

logger = logging.getLogger(__name__)

DEFAULT_EVENT = "message"


@dataclass(frozen=True)
class ServerSentEvent:
    """One dispatched event from a stream."""
    event: str = DEFAULT_EVENT
    data: str = ""
    id: Optional[str] = None
    retry: Optional[int] = None

    def json(self) -> Any:
        """Decode ``data`` as JSON; raises ValueError on malformed data."""
        if not self.data:
            return {}
        return json.loads(self.data)


def parse_sse_lines(lines: Iterable[Union[str, bytes]]) -> Iterator[ServerSentEvent]:
    """
    Parse event-stream lines into events.

    Follows the event-stream format: ``field: value`` lines accumulate until a
    blank line dispatches the event, ``data`` lines are joined with newlines,
    lines starting with ``:`` are comments and an event without data is not
    dispatched. Pending data is flushed when the stream ends.

    Args:
        lines: Lines without their terminators (e.g. ``Response.iter_lines()``)

    Yields:
        ServerSentEvent for each dispatched event
    """
    event_name = ""
    data_lines = []
    last_id: Optional[str] = None
    retry: Optional[int] = None

    for raw in lines:
        line = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        line = line.rstrip("\r")

        if not line:
            if data_lines:
                yield ServerSentEvent(
                    event=event_name or DEFAULT_EVENT,
                    data="\n".join(data_lines),
                    id=last_id,
                    retry=retry,
                )
            event_name = ""
            data_lines = []
            continue

        if line.startswith(":"):
            continue

        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]

        if field == "event":
            event_name = value
        elif field == "data":
            data_lines.append(value)
        elif field == "id":
            if "\0" not in value:
                last_id = value
        elif field == "retry":
            if value.isdigit():
                retry = int(value)
        else:
            logger.debug(f"Ignoring unknown SSE field: {field}")

    if data_lines:
        yield ServerSentEvent(
            event=event_name or DEFAULT_EVENT,
            data="\n".join(data_lines),
            id=last_id,
            retry=retry,
        )
