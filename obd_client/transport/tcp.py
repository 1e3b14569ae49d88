"""TCPTransport -- stream socket to a Wi-Fi adapter or emulator."""

from __future__ import annotations

import socket
from typing import Any, Optional

import structlog

from obd_client.errors import AdapterConnectionError, FrameReadError, NotConnectedError
from obd_client.transport.base import Transport

logger = structlog.get_logger(__name__)


class TCPTransport(Transport):
    """Owns one stream socket; reads go through a buffered reader."""

    def __init__(
        self,
        host: str,
        port: int,
        *,
        connect_timeout: float = 5.0,
        read_timeout: Optional[float] = 10.0,
        line_terminator: str = "\r",
    ) -> None:
        self._host = host
        self._port = port
        self._connect_timeout = connect_timeout
        self._read_timeout = read_timeout
        self._terminator = line_terminator
        self._sock: Optional[socket.socket] = None
        self._reader: Any = None  # buffered binary file over _sock

    @property
    def address(self) -> str:
        return f"{self._host}:{self._port}"

    # -- lifecycle ----------------------------------------------------------

    def connect(self) -> None:
        if self._sock is not None:
            return
        try:
            sock = socket.create_connection(
                (self._host, self._port), timeout=self._connect_timeout
            )
        except OSError as exc:
            raise AdapterConnectionError(
                f"Unable to connect to adapter at {self.address}: {exc}"
            ) from exc
        sock.settimeout(self._read_timeout)
        self._sock = sock
        self._reader = sock.makefile("rb")
        logger.info("tcp_transport_connected", address=self.address)

    def close(self) -> None:
        if self._sock is None:
            return
        try:
            self._reader.close()
            self._sock.close()
        except OSError as exc:
            logger.warning("tcp_transport_close_failed", error=str(exc))
        finally:
            self._sock = None
            self._reader = None
            logger.info("tcp_transport_closed", address=self.address)

    def is_connected(self) -> bool:
        return self._sock is not None

    # -- I/O ----------------------------------------------------------------

    def send(self, wire: str) -> None:
        sock = self._require_socket()
        data = (wire + self._terminator).encode("ascii")
        try:
            sock.sendall(data)
        except OSError as exc:
            raise AdapterConnectionError(
                f"Write to adapter at {self.address} failed: {exc}"
            ) from exc
        logger.debug("tcp_transport_sent", wire=wire)

    def read_byte(self) -> bytes:
        self._require_socket()
        try:
            byte = self._reader.read(1)
        except OSError as exc:
            # socket.timeout is an OSError subclass
            raise FrameReadError(
                f"Read from adapter at {self.address} failed: {exc}"
            ) from exc
        if not byte:
            raise FrameReadError(f"Adapter at {self.address} closed the connection")
        return byte

    # -- internal -----------------------------------------------------------

    def _require_socket(self) -> socket.socket:
        if self._sock is None:
            raise NotConnectedError("TCPTransport is not connected")
        return self._sock
