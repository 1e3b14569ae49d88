"""Response framing for the adapter byte stream.

Responses carry no length prefix and may contain embedded CR/LF bytes
that are *not* boundaries.  The adapter prints its ``>`` prompt once it
is ready for the next command, so that prompt is the frame terminator::

    b"01 0C\\r41 0C 1A F8\\r\\r>"  ->  "01 0C\\r41 0C 1A F8\\r\\r"
"""

from __future__ import annotations

import structlog

from obd_client.transport.base import Transport

logger = structlog.get_logger(__name__)

SENTINEL = b">"


class FrameReader:
    """Accumulates bytes from a transport up to the ``>`` prompt."""

    def __init__(self, transport: Transport, *, sentinel: bytes = SENTINEL) -> None:
        if len(sentinel) != 1:
            raise ValueError(f"Sentinel must be a single byte, got {sentinel!r}")
        self._transport = transport
        self._sentinel = sentinel

    def read_frame(self) -> str:
        """Read one response frame, excluding the sentinel.

        The sentinel is consumed; nothing past it is read.  If the
        transport raises ``FrameReadError`` mid-frame, the partial
        accumulator is dropped and the error propagates.
        """
        buffer = bytearray()
        while True:
            byte = self._transport.read_byte()
            if byte == self._sentinel:
                break
            buffer += byte
        frame = buffer.decode("ascii", errors="replace")
        logger.debug("frame_read", size=len(buffer))
        return frame
