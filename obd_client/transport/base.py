"""Abstract base class for adapter transports."""

from __future__ import annotations

from abc import ABC, abstractmethod


class Transport(ABC):
    """Half-duplex byte stream to an ELM327-style adapter.

    Concrete implementations: ``TCPTransport`` (stream socket) and
    ``SimulationTransport`` (fixture-based).  All calls block; exactly one
    owner may use a transport at a time.
    """

    @abstractmethod
    def connect(self) -> None:
        """Open the stream.

        Raises ``AdapterConnectionError`` if the adapter is unreachable.
        """

    @abstractmethod
    def close(self) -> None:
        """Close the stream.  Safe to call when already closed."""

    @abstractmethod
    def is_connected(self) -> bool:
        """Return ``True`` while the stream is open."""

    @abstractmethod
    def send(self, wire: str) -> None:
        """Write *wire* plus the line terminator and flush."""

    @abstractmethod
    def read_byte(self) -> bytes:
        """Block until one byte is available and return it.

        Raises ``FrameReadError`` if the stream closes or times out.
        """
