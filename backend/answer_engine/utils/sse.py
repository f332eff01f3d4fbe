"""SSE (Server-Sent Events) formatting utilities."""
import json
from typing import Any, AsyncIterator

from answer_engine.core.errors import StreamInterruptedError


def format_sse(data: dict[str, Any], event_type: str | None = None) -> str:
    """
    Format data as an SSE event string.

    Args:
        data: Event data dictionary
        event_type: Optional event type; omitted for plain message frames

    Returns:
        SSE-formatted string terminated by a blank line
    """
    payload = f"data: {json.dumps(data)}\n\n"
    if event_type:
        return f"event: {event_type}\n{payload}"
    return payload


def parse_sse(raw: str) -> list[dict[str, Any]]:
    """
    Parse raw SSE text into list of events.

    Frames without an event line get the default type "message".

    Args:
        raw: Raw SSE text (may contain multiple events)

    Returns:
        List of parsed events with 'type' and 'data' keys
    """
    events = []
    current_event: dict[str, Any] = {}

    for line in raw.split("\n"):
        if line.startswith("event: "):
            current_event["type"] = line[7:]
        elif line.startswith("data: "):
            try:
                current_event["data"] = json.loads(line[6:])
            except json.JSONDecodeError:
                current_event["data"] = line[6:]
        elif line == "" and current_event:
            if "data" in current_event:
                current_event.setdefault("type", "message")
                events.append(current_event)
            current_event = {}

    return events


async def sse_text_stream(chunks: AsyncIterator[str]) -> AsyncIterator[str]:
    """
    Wrap answer chunks as `data: {"text": ...}` frames.

    If the chunk source breaks, one `error` frame is sent and the exception is
    re-raised so the server aborts the body instead of closing it cleanly.
    """
    try:
        async for chunk in chunks:
            yield format_sse({"text": chunk})
    except StreamInterruptedError:
        yield format_sse({"error": "stream interrupted"}, event_type="error")
        raise
