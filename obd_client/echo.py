"""Removal of the command echo and line separators from a raw frame."""

from __future__ import annotations

from typing import Optional

import structlog

logger = structlog.get_logger(__name__)

_LINE_SEPARATORS = str.maketrans("", "", "\r\n")


def remove_line_separators(frame: str) -> str:
    """Drop every CR and LF byte, wherever it occurs."""
    return frame.translate(_LINE_SEPARATORS)


def _match_at(text: str, start: int, wanted: str) -> Optional[int]:
    """Index just past *wanted* matched at *start*, ignoring spaces and case."""
    i = start
    matched = 0
    while i < len(text) and matched < len(wanted):
        char = text[i]
        if char == " ":
            i += 1
            continue
        if char.upper() != wanted[matched]:
            return None
        matched += 1
        i += 1
    if matched < len(wanted):
        return None
    return i


def _echo_end(text: str, echoed_command: str) -> Optional[int]:
    """Return the index just past the first occurrence of the echoed command.

    Spaces are ignored on both sides, so an adapter that echoes ``010C``
    for ``01 0C`` (or the reverse) still matches.  The scan moves past
    leading noise (spaces, NULs, a leftover ``?`` or ``>``) but stops at
    the first letter or digit, so a payload that merely contains the
    command text is never cut.  Returns ``None`` if no echo is found.
    """
    wanted = "".join(echoed_command.split()).upper()
    if not wanted:
        return None
    for start, char in enumerate(text):
        end = _match_at(text, start, wanted)
        if end is not None:
            return end
        if char.isalnum():
            return None
    return None


def strip_echo(frame: str, echoed_command: str) -> str:
    """Return the payload of *frame* with echo and line separators removed.

    The echo is located by scanning past leading noise for the sent
    command (whitespace-insensitive).  If no echo is found, exactly ``len(echoed_command)`` leading characters are
    dropped instead.  The result is trimmed.
    """
    text = remove_line_separators(frame)
    end = _echo_end(text, echoed_command)
    if end is None:
        logger.debug("echo_not_found", command=echoed_command)
        end = len(echoed_command)
    return text[end:].strip()
