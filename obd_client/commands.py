"""Adapter command constants.

A ``Command`` pairs the wire string sent to the adapter with the kind
of value its response decodes to.  Commands are immutable constants;
``raw_command`` builds ad-hoc passthrough commands for ``TEST``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional


class CommandKind(str, Enum):
    """Response shape / decode rule selector."""

    DEVICE = "DEVICE"
    RPM = "RPM"
    SPEED = "SPEED"
    DTC = "DTC"
    VIN = "VIN"
    ECU_NAME = "ECU_NAME"
    TEST = "TEST"


@dataclass(frozen=True)
class Command:
    """An immutable adapter command."""

    wire: str
    kind: CommandKind

    @property
    def compact(self) -> str:
        """Wire text with whitespace removed, upper-cased."""
        return "".join(self.wire.split()).upper()

    @property
    def is_at(self) -> bool:
        return self.compact.startswith("AT")

    def response_header(self) -> Optional[List[str]]:
        """Expected leading response tokens for a PID request.

        The adapter answers mode ``MM`` with mode ``MM + 0x40`` followed
        by the requested PID bytes, e.g. ``01 0C`` -> ``41 0C``.  Returns
        ``None`` for AT commands and anything that is not hex pairs.
        """
        compact = self.compact
        if self.is_at or not compact or len(compact) % 2:
            return None
        try:
            octets = [int(compact[i : i + 2], 16) for i in range(0, len(compact), 2)]
        except ValueError:
            return None
        header = [f"{octets[0] + 0x40:02X}"]
        header.extend(f"{octet:02X}" for octet in octets[1:])
        return header


RESET = Command("ATZ", CommandKind.DEVICE)
VIN = Command("09 02", CommandKind.VIN)
ECU_NAME = Command("09 0A", CommandKind.ECU_NAME)
RPM = Command("01 0C", CommandKind.RPM)
SPEED = Command("01 0D", CommandKind.SPEED)
DTC = Command("03", CommandKind.DTC)

# Kinds a caller can query by name; DEVICE/TEST are handshake/passthrough.
COMMANDS_BY_KIND: Dict[CommandKind, Command] = {
    CommandKind.DEVICE: RESET,
    CommandKind.RPM: RPM,
    CommandKind.SPEED: SPEED,
    CommandKind.DTC: DTC,
    CommandKind.VIN: VIN,
    CommandKind.ECU_NAME: ECU_NAME,
}


def raw_command(wire: str) -> Command:
    """Build a passthrough command for arbitrary adapter input."""
    wire = wire.strip()
    if not wire:
        raise ValueError("Command text must not be empty")
    if not wire.isascii():
        raise ValueError(f"Command text must be ASCII, got '{wire}'")
    return Command(wire, CommandKind.TEST)
