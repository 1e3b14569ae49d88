"""Tests for obd_client.cli -- command dispatcher."""

from __future__ import annotations

import asyncio
import time
from typing import Iterator, List, Optional

import pytest

from conftest import ScriptedTransport
from obd_client.cli import CONNECT_HINT, LINK_LOST, TEST_HINT, format_value, run_cli
from obd_client.config import ClientSettings
from obd_client.log_sink import MemoryLogSink
from obd_client.schemas import CodeList, IntegerMetric, Text
from obd_client.session import Session
from obd_client.transport.simulation import SimulationTransport


def _lines(*lines: str):
    it: Iterator[str] = iter(lines)

    def read_line() -> Optional[str]:
        return next(it, None)

    return read_line


def _settings(scenario: str = "misfire") -> ClientSettings:
    return ClientSettings(
        obd_host="sim",
        obd_sim_scenario=scenario,
        telemetry_log_dir="",
        poll_interval_seconds=0.01,
    )


async def _run(scenario: str, *lines: str, session: Optional[Session] = None) -> tuple:
    out: List[str] = []
    if session is None:
        session = Session(SimulationTransport(scenario=scenario), sink=MemoryLogSink())
    status = await run_cli(
        _settings(scenario), session=session, read_line=_lines(*lines), write=out.append
    )
    return status, out


class TestFormatValue:
    def test_rpm(self) -> None:
        assert format_value(IntegerMetric(kind="RPM", value=750)) == "RPM: 750"

    def test_speed_no_data(self) -> None:
        value = IntegerMetric(kind="SPEED", value=0, no_data=True)
        assert format_value(value) == "Speed: 0 (no data)"

    def test_codes(self) -> None:
        assert format_value(CodeList(codes=["P0301", "P0171"])) == "P0301\nP0171"
        assert format_value(CodeList()) == "No trouble codes"

    def test_text(self) -> None:
        assert format_value(Text(kind="TEST", text="OK")) == "OK"


@pytest.mark.asyncio
async def test_connect_banner_and_end() -> None:
    status, out = await _run("misfire", "END")
    assert status == 0
    assert out[0] == "Wait..."
    assert out[1] == "Device: ELM327 v1.5"
    assert out[2].startswith("VIN: ")
    assert out[3].startswith("ECU NAME: ")
    assert out[4] == "Connected to the car."
    assert len(out) == 5


@pytest.mark.asyncio
async def test_single_readings() -> None:
    _, out = await _run("misfire", "rpm", "SPEED", "ERROR-C", "END")
    assert out[5:] == ["RPM: 775", "Speed: 0", "01\n33\nP0301"]


@pytest.mark.asyncio
async def test_eof_ends_session() -> None:
    session = Session(SimulationTransport(scenario="idle"))
    status, _ = await _run("idle", "RPM", session=session)
    assert status == 0
    assert not session.is_connected()


@pytest.mark.asyncio
async def test_test_command() -> None:
    _, out = await _run("idle", "test 010C", "TEST ATRV", "TEST", "END")
    assert out[5:] == ["41 0C 0B B8", "12.6V", TEST_HINT]


@pytest.mark.asyncio
async def test_unknown_and_empty_input() -> None:
    _, out = await _run("idle", "", "HELLO", "END")
    assert out[5] == "Please, enter a command"
    assert out[6] == "Please, enter a command"
    assert out[7].startswith("Commands:")


@pytest.mark.asyncio
async def test_loop_then_stop() -> None:
    lines = iter(["RPM LOOP"])
    out: List[str] = []

    def read_line() -> Optional[str]:
        line = next(lines, None)
        if line is not None:
            return line
        # Let the poll run for a while, then stop it and exit.
        if sum(o.startswith("RPM:") for o in out) < 3:
            time.sleep(0.02)
            return ""
        return "END"

    session = Session(SimulationTransport(scenario="driving"))
    status = await run_cli(
        _settings("driving"), session=session, read_line=read_line, write=out.append
    )
    assert status == 0
    rpms = [o for o in out if o.startswith("RPM:")]
    assert rpms[:3] == ["RPM: 1000", "RPM: 1726", "RPM: 2836"]


@pytest.mark.asyncio
async def test_connection_failure_exit_status() -> None:
    session = Session(ScriptedTransport(refuse=True))
    status, out = await _run("idle", "END", session=session)
    assert status == 1
    assert out == ["Wait...", CONNECT_HINT]


@pytest.mark.asyncio
async def test_lost_link_then_reconnect() -> None:
    session = Session(SimulationTransport(scenario="flaky"))
    _, out = await _run("flaky", "RPM", "SPEED", "CONNECT", "SPEED", "END", session=session)
    assert out[5] == LINK_LOST
    assert out[6] == LINK_LOST
    assert out[7] == "Wait..."
    assert out[-1] == "Speed: 0"


def test_run_cli_builds_session_from_settings() -> None:
    out: List[str] = []
    status = asyncio.run(
        run_cli(_settings("idle"), read_line=_lines("END"), write=out.append)
    )
    assert status == 0
    assert out[1] == "Device: ELM327 v1.5"


@pytest.mark.asyncio
async def test_non_ascii_test_command_prints_hint() -> None:
    status, out = await _run("idle", "TEST é", "RPM", "END")
    assert status == 0
    assert out[5] == TEST_HINT
    assert out[6] == "RPM: 750"


@pytest.mark.asyncio
async def test_unknown_scenario_lists_available() -> None:
    session = Session(SimulationTransport(scenario="highway"))
    status, out = await _run("highway", "END", session=session)
    assert status == 1
    assert out[0] == "Wait..."
    assert "Unknown simulation scenario 'highway'" in out[1]
    assert "idle" in out[1]
