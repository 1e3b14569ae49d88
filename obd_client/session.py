"""Adapter session: handshake and serialized query path.

A ``Session`` exclusively owns its ``Transport``.  Every command goes
through one send -> read frame -> strip echo -> decode cycle while the
session lock is held, so at most one command is ever outstanding on the
stream.  Callers on other threads (e.g. ``obd_client.poller``) simply
call ``query``; they queue on the lock.
"""

from __future__ import annotations

import threading
from datetime import datetime
from typing import Callable, List, Optional, Union

import structlog

from obd_client import commands
from obd_client.codec import decode
from obd_client.commands import COMMANDS_BY_KIND, Command, CommandKind
from obd_client.config import ClientSettings
from obd_client.echo import strip_echo
from obd_client.errors import (
    AdapterConnectionError,
    FrameReadError,
    NotConnectedError,
)
from obd_client.framing import FrameReader
from obd_client.log_sink import FileLogSink, LogSink, NullLogSink
from obd_client.schemas import (
    AdapterInfo,
    CodeList,
    DecodedValue,
    IntegerMetric,
    SessionState,
    Text,
)
from obd_client.transport.base import Transport

logger = structlog.get_logger(__name__)


class Session:
    """Connect once, then query telemetry by kind."""

    def __init__(
        self,
        transport: Transport,
        *,
        host: str = "",
        port: int = 0,
        sink: Optional[LogSink] = None,
        query_vehicle_info: bool = True,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._transport = transport
        self._frames = FrameReader(transport)
        self._host = host
        self._port = port
        self._sink = sink or NullLogSink()
        self._query_vehicle_info = query_vehicle_info
        self._clock = clock
        self._lock = threading.RLock()
        self._state = SessionState.DISCONNECTED
        self._info: Optional[AdapterInfo] = None

    # -- state --------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    def is_connected(self) -> bool:
        return self._state is SessionState.CONNECTED

    @property
    def info(self) -> Optional[AdapterInfo]:
        """Handshake results while connected, else ``None``."""
        return self._info

    @property
    def device_name(self) -> Optional[str]:
        return self._info.device_name if self._info else None

    # -- lifecycle ----------------------------------------------------------

    def connect(self) -> AdapterInfo:
        """Open the transport and run the identification handshake.

        Sends the reset command and records the reply as the device name,
        then (if enabled) queries VIN and ECU name.  Any I/O failure
        closes the transport, leaves the session disconnected and is
        raised as ``AdapterConnectionError``.
        """
        with self._lock:
            if self._info is not None and self.is_connected():
                return self._info
            try:
                self._transport.connect()
                device = self._identify(commands.RESET)
                vin: Optional[str] = None
                ecu_name: Optional[str] = None
                if self._query_vehicle_info:
                    vin = self._identify(commands.VIN)
                    ecu_name = self._identify(commands.ECU_NAME)
            except (AdapterConnectionError, FrameReadError) as exc:
                self._transport.close()
                logger.warning("session_connect_failed", host=self._host, error=str(exc))
                if isinstance(exc, AdapterConnectionError):
                    raise
                raise AdapterConnectionError(
                    f"Handshake with adapter failed: {exc}"
                ) from exc

            self._info = AdapterInfo(
                host=self._host,
                port=self._port,
                device_name=device,
                vin=vin,
                ecu_name=ecu_name,
            )
            self._state = SessionState.CONNECTED
            self._emit(
                "CONNECTION",
                f"IP_{self._host};PORT_{self._port};DEVICE_{self._info.device_name}",
            )
            logger.info(
                "session_connected",
                host=self._host,
                port=self._port,
                device=self._info.device_name,
            )
            return self._info

    def close(self) -> None:
        with self._lock:
            self._disconnect()

    def __enter__(self) -> "Session":
        self.connect()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    # -- queries ------------------------------------------------------------

    def query(self, kind: Union[CommandKind, str]) -> DecodedValue:
        """Send the command for *kind* and return its decoded value.

        Raises ``NotConnectedError`` before ``connect()`` or after a
        transport failure, ``MalformedResponseError`` for garbled payloads.
        """
        kind = CommandKind(kind)
        if kind not in COMMANDS_BY_KIND:
            raise ValueError(f"{kind.value} needs explicit command text; use test()")
        return self.execute(COMMANDS_BY_KIND[kind])

    def execute(self, command: Command) -> DecodedValue:
        with self._lock:
            if not self.is_connected():
                raise NotConnectedError(
                    f"Session is not connected; cannot send '{command.wire}'"
                )
            try:
                value = self._exchange(command)
            except (AdapterConnectionError, FrameReadError) as exc:
                logger.error(
                    "session_transport_failed",
                    command=command.wire,
                    error=str(exc),
                )
                self._disconnect()
                raise
            self._emit(command.kind.value, _render(value))
            return value

    def rpm(self) -> int:
        return _metric(self.query(CommandKind.RPM))

    def speed(self) -> int:
        return _metric(self.query(CommandKind.SPEED))

    def trouble_codes(self) -> List[str]:
        value = self.query(CommandKind.DTC)
        if not isinstance(value, CodeList):
            raise TypeError(f"DTC query decoded to {type(value).__name__}")
        return list(value.codes)

    def test(self, code: str) -> str:
        """Send arbitrary adapter input (``010C``, ``ATZ`` ...) and return the reply."""
        return _text(self.execute(commands.raw_command(code)))

    # -- internal -----------------------------------------------------------

    def _exchange(self, command: Command) -> DecodedValue:
        self._transport.send(command.wire)
        frame = self._frames.read_frame()
        payload = strip_echo(frame, command.wire)
        self._emit(f"{command.compact}_RAW", payload)
        logger.debug("command_exchanged", command=command.wire, payload=payload)
        return decode(payload, command)

    def _identify(self, command: Command) -> str:
        """Handshake exchange: decode as text and record it like a query."""
        text = _text(self._exchange(command))
        self._emit(command.kind.value, text)
        return text

    def _disconnect(self) -> None:
        was_connected = self.is_connected()
        self._transport.close()
        self._state = SessionState.DISCONNECTED
        self._info = None
        if was_connected:
            logger.info("session_disconnected", host=self._host)

    def _emit(self, category: str, payload: str) -> None:
        """Best-effort write to the telemetry sink."""
        try:
            self._sink.record(category, self._clock(), payload)
        except Exception as exc:
            logger.warning("log_sink_write_failed", category=category, error=str(exc))


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _render(value: DecodedValue) -> str:
    if isinstance(value, IntegerMetric):
        return str(value.value)
    if isinstance(value, CodeList):
        return " ".join(value.codes)
    return value.text


def _metric(value: DecodedValue) -> int:
    if not isinstance(value, IntegerMetric):
        raise TypeError(f"Expected IntegerMetric, got {type(value).__name__}")
    return value.value


def _text(value: DecodedValue) -> str:
    if not isinstance(value, Text):
        raise TypeError(f"Expected Text, got {type(value).__name__}")
    return value.text


def create_transport(settings: ClientSettings) -> Transport:
    """Factory: return the right transport for the current config."""
    if settings.is_simulation:
        from obd_client.transport.simulation import SimulationTransport

        return SimulationTransport(scenario=settings.obd_sim_scenario)

    from obd_client.transport.tcp import TCPTransport

    return TCPTransport(
        settings.obd_host,
        settings.obd_port,
        connect_timeout=settings.connect_timeout_seconds,
        read_timeout=settings.read_timeout_seconds,
        line_terminator=settings.line_terminator,
    )


def create_session(
    settings: ClientSettings,
    *,
    sink: Optional[LogSink] = None,
) -> Session:
    """Build a session (transport + telemetry sink) from settings."""
    if sink is None:
        sink = (
            FileLogSink(settings.telemetry_log_dir)
            if settings.telemetry_log_dir
            else NullLogSink()
        )
    host = "sim" if settings.is_simulation else settings.obd_host
    return Session(
        create_transport(settings),
        host=host,
        port=settings.obd_port,
        sink=sink,
        query_vehicle_info=settings.query_vehicle_info,
    )
