"""Fixture-based simulated adapter (no hardware required).

Loads scenarios from ``fixtures/adapter_scenarios.json`` and answers
each command the way an ELM327 does: optional command echo, CR line
breaks, then the ``>`` prompt.  A response given as a list is cycled
through on consecutive requests so repeated polls see changing values.
"""

from __future__ import annotations

import json
from collections import deque
from pathlib import Path
from typing import Any, Deque, Dict, Optional

import structlog

from obd_client.errors import FrameReadError, NotConnectedError
from obd_client.transport.base import Transport

logger = structlog.get_logger(__name__)

_FIXTURES_DIR = Path(__file__).resolve().parent.parent / "fixtures"

PROMPT = b">"
UNKNOWN_COMMAND = "?"


class SimulationTransport(Transport):
    """Replays adapter responses from a JSON fixture scenario."""

    def __init__(self, scenario: str = "idle") -> None:
        self._scenario_name = scenario
        self._scenario: Dict[str, Any] = {}
        self._pending: Deque[int] = deque()
        self._counters: Dict[str, int] = {}
        self._sent = 0
        self._connected = False
        self._closed_by_peer = False

    @property
    def sent_commands(self) -> int:
        """Number of commands written over the transport's lifetime."""
        return self._sent

    # -- lifecycle ----------------------------------------------------------

    def connect(self) -> None:
        scenarios = _load_scenarios()
        if self._scenario_name not in scenarios:
            available = ", ".join(sorted(scenarios))
            raise ValueError(
                f"Unknown simulation scenario '{self._scenario_name}'. "
                f"Available: {available}"
            )
        self._scenario = scenarios[self._scenario_name]
        self._pending.clear()
        self._counters.clear()
        self._closed_by_peer = False
        self._connected = True
        logger.info("simulation_transport_connected", scenario=self._scenario_name)

    def close(self) -> None:
        self._connected = False
        self._pending.clear()

    def is_connected(self) -> bool:
        return self._connected

    # -- I/O ----------------------------------------------------------------

    def send(self, wire: str) -> None:
        self._check_connected()
        self._sent += 1
        reply = self._render(wire)

        close_after: Optional[int] = self._scenario.get("close_after")
        if close_after is not None and self._sent == close_after:
            # Peer drops the link halfway through the reply.
            reply = reply[: len(reply) // 2]
            self._closed_by_peer = True
        self._pending.extend(reply)

    def read_byte(self) -> bytes:
        self._check_connected()
        if not self._pending:
            if self._closed_by_peer:
                self._connected = False
                raise FrameReadError("Simulated adapter closed the connection")
            raise FrameReadError("Simulated adapter has no pending response")
        return bytes([self._pending.popleft()])

    # -- internal -----------------------------------------------------------

    def _render(self, wire: str) -> bytes:
        key = "".join(wire.split()).upper()
        body = self._next_response(key)

        parts = []
        if self._scenario.get("echo", True):
            echo = key if self._scenario.get("echo_style") == "compact" else wire
            parts.append(echo + "\r")
        parts.append(body.replace("\n", "\r") + "\r\r")
        return "".join(parts).encode("ascii") + PROMPT

    def _next_response(self, key: str) -> str:
        response = self._scenario.get("responses", {}).get(key)
        if response is None:
            return UNKNOWN_COMMAND
        if isinstance(response, list):
            index = self._counters.get(key, 0)
            self._counters[key] = index + 1
            return response[index % len(response)]
        return response

    def _check_connected(self) -> None:
        if not self._connected:
            raise NotConnectedError("SimulationTransport is not connected")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

_scenarios_cache: Optional[Dict[str, Any]] = None


def _load_scenarios() -> Dict[str, Any]:
    global _scenarios_cache
    if _scenarios_cache is None:
        path = _FIXTURES_DIR / "adapter_scenarios.json"
        with open(path, encoding="utf-8") as fh:
            _scenarios_cache = json.load(fh)
    return _scenarios_cache
