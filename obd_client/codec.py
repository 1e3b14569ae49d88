"""Payload decoding: ASCII hex tokens to typed telemetry.

Each decoder takes a payload that has already been through
``strip_echo`` and tokenises it on whitespace.  Numeric tokens must be
single hex bytes; anything else raises ``MalformedResponseError``.  A
payload containing ``NO DATA`` is the adapter's explicit "no value"
answer and decodes to the kind's zero/empty value with ``no_data=True``.
"""

from __future__ import annotations

import string
from typing import Callable, Dict, List, Optional, Sequence

from obd_client.commands import DTC, RPM, SPEED, Command, CommandKind
from obd_client.errors import MalformedResponseError
from obd_client.schemas import CodeList, DecodedValue, IntegerMetric, Text

NO_DATA = "NO DATA"


def is_no_data(payload: str) -> bool:
    return NO_DATA in payload.upper()


def tokenize(payload: str) -> List[str]:
    return payload.split()


def hex_byte(token: str, *, kind: CommandKind, payload: str) -> int:
    """Parse a two-digit hex token into 0..255."""
    if len(token) != 2 or not all(c in string.hexdigits for c in token):
        raise MalformedResponseError(
            f"{kind.value}: expected a hex byte, got '{token}'",
            kind=kind.value,
            payload=payload,
        )
    return int(token, 16)


def _find_header(tokens: Sequence[str], header: Sequence[str]) -> Optional[int]:
    """Index of the first token after *header* in *tokens*, or ``None``."""
    width = len(header)
    wanted = [h.upper() for h in header]
    for start in range(len(tokens) - width + 1):
        if [t.upper() for t in tokens[start : start + width]] == wanted:
            return start + width
    return None


# ---------------------------------------------------------------------------
# Per-kind decoders
# ---------------------------------------------------------------------------

def decode_rpm(payload: str, command: Command = RPM) -> IntegerMetric:
    """Engine speed from PID 0C: ``((A * 256) + B) // 4`` rpm.

    ``A`` and ``B`` are the two bytes following the ``41 0C`` response
    header, wherever it sits in the payload.
    """
    if is_no_data(payload):
        return IntegerMetric(kind="RPM", value=0, unit="rpm", no_data=True)

    tokens = tokenize(payload)
    header = command.response_header() or ["41", "0C"]
    start = _find_header(tokens, header)
    if start is None or len(tokens) < start + 2:
        raise MalformedResponseError(
            f"RPM: expected '{' '.join(header)} A B', got '{payload}'",
            kind="RPM",
            payload=payload,
        )
    high = hex_byte(tokens[start], kind=CommandKind.RPM, payload=payload)
    low = hex_byte(tokens[start + 1], kind=CommandKind.RPM, payload=payload)
    return IntegerMetric(kind="RPM", value=(high * 256 + low) // 4, unit="rpm")


def decode_speed(payload: str, command: Command = SPEED) -> IntegerMetric:
    """Vehicle speed from PID 0D: the single byte after ``41 0D``, in km/h."""
    if is_no_data(payload):
        return IntegerMetric(kind="SPEED", value=0, unit="km/h", no_data=True)

    tokens = tokenize(payload)
    header = command.response_header() or ["41", "0D"]
    start = _find_header(tokens, header)
    if start is None or len(tokens) != start + 1:
        raise MalformedResponseError(
            f"SPEED: expected '{' '.join(header)} A', got '{payload}'",
            kind="SPEED",
            payload=payload,
        )
    value = hex_byte(tokens[start], kind=CommandKind.SPEED, payload=payload)
    return IntegerMetric(kind="SPEED", value=value, unit="km/h")


def decode_dtcs(payload: str, command: Command = DTC) -> CodeList:
    """Trouble codes in received order, response header removed.

    For request ``03`` the header is ``43``; for ``01 03`` it is ``41 03``.
    A payload that does not start with the header (``?``, ``CAN ERROR``,
    ``UNABLE TO CONNECT`` ...) is malformed.
    """
    if is_no_data(payload):
        return CodeList(codes=[], no_data=True)

    tokens = tokenize(payload)
    header = command.response_header() or ["43"]
    if [t.upper() for t in tokens[: len(header)]] != header:
        raise MalformedResponseError(
            f"DTC: expected '{' '.join(header)} ...', got '{payload}'",
            kind="DTC",
            payload=payload,
        )
    return CodeList(codes=tokens[len(header) :])


def decode_text(payload: str, command: Command) -> Text:
    """Free text returned as-is, trimmed."""
    return Text(kind=command.kind.value, text=payload.strip())


_DECODERS: Dict[CommandKind, Callable[[str, Command], DecodedValue]] = {
    CommandKind.RPM: decode_rpm,
    CommandKind.SPEED: decode_speed,
    CommandKind.DTC: decode_dtcs,
    CommandKind.DEVICE: decode_text,
    CommandKind.VIN: decode_text,
    CommandKind.ECU_NAME: decode_text,
    CommandKind.TEST: decode_text,
}


def decode(payload: str, command: Command) -> DecodedValue:
    """Dispatch *payload* to the decoder for ``command.kind``."""
    return _DECODERS[command.kind](payload, command)
