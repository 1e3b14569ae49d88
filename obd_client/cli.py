"""Interactive command dispatcher.

Reads one command per line and maps it onto session operations::

    RPM | SPEED          single reading
    RPM LOOP | SPEED LOOP  start polling until STOP
    STOP                 stop every running poll
    ERROR-C              stored trouble codes
    TEST <code>          raw adapter command, e.g. TEST 010C, TEST ATZ
    CONNECT              reconnect after a lost link
    END                  exit
"""

from __future__ import annotations

import asyncio
import sys
from typing import Callable, Optional

import structlog

from obd_client.commands import CommandKind, raw_command
from obd_client.config import ClientSettings
from obd_client.errors import (
    AdapterConnectionError,
    FrameReadError,
    MalformedResponseError,
    NotConnectedError,
)
from obd_client.poller import Poller
from obd_client.schemas import AdapterInfo, CodeList, DecodedValue, IntegerMetric
from obd_client.session import Session, create_session

logger = structlog.get_logger(__name__)

USAGE = "Commands: RPM [LOOP], SPEED [LOOP], STOP, ERROR-C, TEST <code>, CONNECT, END"
CONNECT_HINT = "Unable to connect to OBD Scanner, please, check IP and port."
TEST_HINT = (
    "An error occurred. Please check your command or connection.\n"
    "HINT: \n\t- test 010C\n\t- test ATZ"
)
LINK_LOST = "Connection to the adapter was lost. Enter CONNECT to reconnect."

_LABELS = {"RPM": "RPM", "SPEED": "Speed"}

Writer = Callable[[str], None]
LineReader = Callable[[], Optional[str]]


def read_stdin_line() -> Optional[str]:
    """Return the next stdin line, or ``None`` at EOF."""
    line = sys.stdin.readline()
    return line if line else None


def format_value(value: DecodedValue) -> str:
    if isinstance(value, IntegerMetric):
        text = f"{_LABELS[value.kind]}: {value.value}"
        return f"{text} (no data)" if value.no_data else text
    if isinstance(value, CodeList):
        return "\n".join(value.codes) if value.codes else "No trouble codes"
    return value.text


def _announce(info: AdapterInfo, write: Writer) -> None:
    write(f"Device: {info.device_name}")
    if info.vin is not None:
        write(f"VIN: {info.vin}")
    if info.ecu_name is not None:
        write(f"ECU NAME: {info.ecu_name}")
    write("Connected to the car.")


async def _connect(session: Session, write: Writer) -> bool:
    write("Wait...")
    try:
        info = await asyncio.to_thread(session.connect)
    except AdapterConnectionError:
        write(CONNECT_HINT)
        return False
    except ValueError as exc:
        # Unknown simulation scenario; the message lists the available ones.
        logger.error("connect_rejected", error=str(exc))
        write(str(exc))
        return False
    _announce(info, write)
    return True


async def dispatch(line: str, session: Session, poller: Poller, write: Writer) -> bool:
    """Handle one command line.  Returns ``True`` when the user asked to end."""
    tokens = line.strip().upper().split()
    if not tokens:
        write("Please, enter a command")
        return False
    cmd, args = tokens[0], tokens[1:]

    if cmd == "END":
        return True
    if cmd == "STOP":
        await poller.stop_all()
        return False
    if cmd == "CONNECT":
        await _connect(session, write)
        return False

    try:
        if cmd in ("RPM", "SPEED"):
            if args and args[0] == "LOOP":
                poller.start(CommandKind(cmd))
            else:
                value = await asyncio.to_thread(session.query, CommandKind(cmd))
                write(format_value(value))
        elif cmd == "ERROR-C":
            value = await asyncio.to_thread(session.query, CommandKind.DTC)
            write(format_value(value))
        elif cmd == "TEST":
            if not args:
                write(TEST_HINT)
                return False
            try:
                command = raw_command(" ".join(args))
            except ValueError:
                write(TEST_HINT)
                return False
            value = await asyncio.to_thread(session.execute, command)
            write(format_value(value))
        else:
            write("Please, enter a command")
            write(USAGE)
    except MalformedResponseError as exc:
        logger.warning("malformed_response", command=cmd, payload=exc.payload)
        write(TEST_HINT if cmd == "TEST" else f"Unexpected adapter response: {exc}")
    except (NotConnectedError, AdapterConnectionError, FrameReadError) as exc:
        logger.warning("command_failed", command=cmd, error=str(exc))
        write(LINK_LOST)
    return False


async def run_cli(
    settings: ClientSettings,
    *,
    session: Optional[Session] = None,
    read_line: LineReader = read_stdin_line,
    write: Writer = print,
) -> int:
    """Connect once, then dispatch commands until ``END`` or EOF.

    Returns the process exit status.
    """
    if session is None:
        session = create_session(settings)
    if not await _connect(session, write):
        return 1

    poller = Poller(
        session,
        interval=settings.poll_interval_seconds,
        on_value=lambda value: write(format_value(value)),
    )
    try:
        while True:
            line = await asyncio.to_thread(read_line)
            if line is None:
                break
            if await dispatch(line, session, poller, write):
                break
    finally:
        await poller.stop_all()
        session.close()
    return 0
