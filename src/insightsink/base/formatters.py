"""Formatters that turn trace events into text for a destination logger.

This module provides the pattern-based message formatter, the payload
formatter, and the fixed multi-line details block attached to the more
severe sends.
"""

import os
from typing import Any, Callable, List, Optional, Tuple

from insightsink.base.events import KEYWORDS_ALL, KEYWORDS_NONE, EventEntry
from insightsink.base.timestamps import DEFAULT_TIME_FORMAT

DEFAULT_MESSAGE_PATTERN = "%message%"
DETAILS_LINE = "-" * 40


def render_value(value: Any) -> str:
    """Render a field the way the destination expects to see it.

    ``None`` becomes an empty string and enums use their label. Raw integers
    outside a known enumeration render as plain numbers.
    """
    if value is None:
        return ""
    return str(value)


def render_keywords(keywords: Optional[int]) -> str:
    if keywords is None or keywords == KEYWORDS_NONE:
        return "None"
    if keywords == KEYWORDS_ALL or keywords == -1:
        return "All"
    return str(int(keywords))


def render_task(task: Optional[int]) -> str:
    if not task:
        return "None"
    return str(int(task))


def format_payload(entry: EventEntry) -> str:
    """Render payload values as ``[name : value] `` segments, in order.

    Args:
        entry: Event whose payload should be rendered.

    Returns:
        Concatenated segments, or an empty string for an empty payload.
    """
    names = entry.schema.payload
    parts = []
    for index, value in enumerate(entry.payload):
        name = names[index] if index < len(names) else ""
        parts.append(f"[{name} : {render_value(value)}] ")
    return "".join(parts)


FieldRenderer = Callable[[EventEntry, str], str]

# Substitution order is part of the output contract.
PLACEHOLDERS: Tuple[Tuple[str, FieldRenderer], ...] = (
    ("%providerid%", lambda entry, _: render_value(entry.provider_id)),
    ("%eventid%", lambda entry, _: render_value(entry.event_id)),
    ("%keywords%", lambda entry, _: render_keywords(entry.schema.keywords)),
    ("%level%", lambda entry, _: render_value(entry.schema.level)),
    ("%message%", lambda entry, _: render_value(entry.formatted_message)),
    ("%opcode%", lambda entry, _: render_value(entry.schema.opcode)),
    ("%task%", lambda entry, _: render_task(entry.schema.task)),
    ("%version%", lambda entry, _: render_value(entry.schema.version)),
    ("%payload%", lambda entry, _: format_payload(entry)),
    ("%eventname%", lambda entry, _: render_value(entry.schema.event_name)),
    ("%timestamp%", lambda entry, time_format: entry.get_formatted_timestamp(time_format)),
)


class MessageFormatter:
    """Formatter that substitutes event fields into a message pattern.

    Placeholders are replaced in a fixed order. Text inserted for one
    placeholder is never searched for further placeholders, so a payload value
    containing ``%message%`` comes through verbatim.

    Args:
        pattern: Message pattern. Defaults to ``%message%``.
        time_format: Pattern used for ``%timestamp%``.

    Example:
        >>> formatter = MessageFormatter("%level%: %message%")
        >>> formatter.format(entry)
        'Warning: disk low'
    """
    def __init__(
        self,
        pattern: str = DEFAULT_MESSAGE_PATTERN,
        *,
        time_format: str = DEFAULT_TIME_FORMAT,
    ) -> None:
        self.pattern = pattern
        self.time_format = time_format

    def format(self, entry: EventEntry) -> str:
        # (text, from_template) pairs; only template text is searched.
        segments: List[Tuple[str, bool]] = [(self.pattern, True)]
        for token, render in PLACEHOLDERS:
            if not any(open_ and token in text for text, open_ in segments):
                continue
            value = render(entry, self.time_format)
            expanded: List[Tuple[str, bool]] = []
            for text, open_ in segments:
                if not open_ or token not in text:
                    expanded.append((text, open_))
                    continue
                for index, piece in enumerate(text.split(token)):
                    if index:
                        expanded.append((value, False))
                    expanded.append((piece, True))
            segments = expanded
        return "".join(text for text, _ in segments)


class DetailsFormatter:
    """Formatter for the multi-line details block.

    Downstream parsers depend on the exact labels and field order, so the
    layout is fixed.

    Args:
        time_format: Pattern used for the ``Timestamp`` line.
    """
    def __init__(self, *, time_format: str = DEFAULT_TIME_FORMAT) -> None:
        self.time_format = time_format

    def format(self, entry: EventEntry) -> str:
        schema = entry.schema
        rows = (
            ("ProviderId", render_value(entry.provider_id)),
            ("EventId", render_value(entry.event_id)),
            ("Keywords", render_keywords(schema.keywords)),
            ("Level", render_value(schema.level)),
            ("Message", render_value(entry.formatted_message)),
            ("Opcode", render_value(schema.opcode)),
            ("Task", render_task(schema.task)),
            ("Version", render_value(schema.version)),
            ("Payload", format_payload(entry)),
            ("EventName", render_value(schema.event_name)),
            ("Timestamp", entry.get_formatted_timestamp(self.time_format)),
        )
        lines = ["Details:", DETAILS_LINE]
        lines.extend(f"{label}: {value}" for label, value in rows)
        return "".join(line + os.linesep for line in lines)
