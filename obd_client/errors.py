"""Exception taxonomy for the adapter protocol engine.

``NO DATA`` from the adapter is not represented here: it decodes to the
kind's zero/empty value with ``no_data=True`` (see ``obd_client.codec``).
"""

from __future__ import annotations


class OBDClientError(Exception):
    """Base class for every error raised by ``obd_client``."""


class AdapterConnectionError(OBDClientError, ConnectionError):
    """The stream socket could not be established or was closed by the peer."""


class FrameReadError(OBDClientError, IOError):
    """The connection failed while a response frame was being accumulated.

    The partial frame is discarded; the transport's framing state is
    undefined afterwards and it must be reconnected.
    """


class MalformedResponseError(OBDClientError, ValueError):
    """A payload did not match the shape expected for the requested kind."""

    def __init__(self, message: str, *, kind: str = "", payload: str = "") -> None:
        super().__init__(message)
        self.kind = kind
        self.payload = payload


class NotConnectedError(OBDClientError, RuntimeError):
    """A query was issued while the session is disconnected."""
