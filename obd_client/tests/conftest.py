"""Shared pytest fixtures for OBD client tests."""

from __future__ import annotations

from collections import deque
from typing import Deque, Dict, Generator, List, Optional, Union

import pytest

from obd_client.errors import AdapterConnectionError, FrameReadError, NotConnectedError
from obd_client.log_sink import MemoryLogSink
from obd_client.session import Session
from obd_client.transport.base import Transport

Reply = Union[bytes, List[bytes]]


class ScriptedTransport(Transport):
    """In-memory transport answering each wire string with canned bytes.

    A reply given as a list is consumed one element per send.  Sending a
    wire listed in ``drop_on`` queues nothing and closes the stream, so
    the next read fails like a dropped socket.
    """

    def __init__(
        self,
        replies: Optional[Dict[str, Reply]] = None,
        *,
        refuse: bool = False,
        drop_on: tuple = (),
    ) -> None:
        self.replies: Dict[str, Reply] = dict(replies or {})
        self.sent: List[str] = []
        self.connects = 0
        self._refuse = refuse
        self._drop_on = set(drop_on)
        self._buffer: Deque[int] = deque()
        self._connected = False
        self._dropped = False

    def connect(self) -> None:
        if self._refuse:
            raise AdapterConnectionError("Connection refused")
        self.connects += 1
        self._connected = True
        self._dropped = False
        self._buffer.clear()

    def close(self) -> None:
        self._connected = False

    def is_connected(self) -> bool:
        return self._connected

    def send(self, wire: str) -> None:
        if not self._connected:
            raise NotConnectedError("ScriptedTransport is not connected")
        self.sent.append(wire)
        if wire in self._drop_on:
            self._dropped = True
            return
        reply = self.replies.get(wire, wire.encode("ascii") + b"\r?\r\r>")
        if isinstance(reply, list):
            reply = reply.pop(0)
        self._buffer.extend(reply)

    def read_byte(self) -> bytes:
        if not self._buffer:
            raise FrameReadError("stream closed" if self._dropped else "no data pending")
        return bytes([self._buffer.popleft()])

    def feed(self, data: bytes) -> None:
        self._buffer.extend(data)

    def pending(self) -> bytes:
        return bytes(self._buffer)


def adapter_reply(wire: str, body: str) -> bytes:
    """Bytes an echoing adapter sends for *wire*: echo, body, prompt."""
    return f"{wire}\r{body}\r\r>".encode("ascii")


HANDSHAKE = {
    "ATZ": adapter_reply("ATZ", "\rELM327 v1.5"),
    "09 02": adapter_reply("09 02", "49 02 01 31 47 31 4A 43"),
    "09 0A": adapter_reply("09 0A", "ECM-Engine"),
}


@pytest.fixture(autouse=True)
def _reset_scenario_cache() -> Generator[None, None, None]:
    """Clear the simulation scenario cache between tests."""
    from obd_client.transport import simulation

    simulation._scenarios_cache = None
    yield
    simulation._scenarios_cache = None


@pytest.fixture()
def memory_sink() -> MemoryLogSink:
    return MemoryLogSink()


@pytest.fixture()
def scripted() -> ScriptedTransport:
    """Transport that completes the handshake; tests add query replies."""
    return ScriptedTransport(dict(HANDSHAKE))


@pytest.fixture()
def session(scripted: ScriptedTransport, memory_sink: MemoryLogSink) -> Session:
    return Session(scripted, host="127.0.0.1", port=35000, sink=memory_sink)
