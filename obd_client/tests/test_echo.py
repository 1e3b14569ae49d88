"""Tests for obd_client.echo -- echo and line-separator removal."""

from __future__ import annotations

import pytest

from obd_client.echo import remove_line_separators, strip_echo


def test_strip_verbatim_echo() -> None:
    assert strip_echo("01 0C41 0C 1A F8", "01 0C") == "41 0C 1A F8"


def test_strip_echo_with_line_breaks() -> None:
    assert strip_echo("01 0C\r\n41 0C 1A F8\r\n\r\n", "01 0C") == "41 0C 1A F8"


def test_line_separators_removed_inside_payload() -> None:
    frame = "09 02\r49 02 01 31\r49 02 02 47\r\r"
    assert strip_echo(frame, "09 02") == "49 02 01 3149 02 02 47"


class TestWhitespaceNormalisedEcho:
    """Adapters that echo commands with different spacing."""

    def test_compact_echo_of_spaced_command(self) -> None:
        # A fixed-length strip of len("01 0C") would eat the '4' of '41'.
        assert strip_echo("010C\r41 0C 1A F8\r\r", "01 0C") == "41 0C 1A F8"

    def test_spaced_echo_of_compact_command(self) -> None:
        assert strip_echo("01 0C\r41 0C 1A F8\r\r", "010C") == "41 0C 1A F8"

    def test_lowercase_echo(self) -> None:
        assert strip_echo("atz\r\rELM327 v1.5\r\r", "ATZ") == "ELM327 v1.5"


class TestLeadingNoise:
    """Echo found after non-payload characters before it."""

    @pytest.mark.parametrize("prefix", ["\x00", "?", ">", "  ", "\x00? "])
    def test_echo_after_noise(self, prefix: str) -> None:
        frame = f"{prefix}01 0C\r41 0C 1A F8\r\r"
        assert strip_echo(frame, "01 0C") == "41 0C 1A F8"

    def test_command_text_inside_payload_not_treated_as_echo(self) -> None:
        # Echo off: "03" appears inside the reply, but only after payload
        # characters, so the fixed-length fallback applies.
        assert strip_echo("43 01 03\r\r", "03") == "01 03"


def test_fallback_fixed_length_when_echo_missing() -> None:
    # Echo disabled (ATE0): the first len(command) characters are dropped.
    assert strip_echo("XXXXX41 0D 32", "01 0D") == "41 0D 32"


def test_no_data_payload() -> None:
    assert strip_echo("01 0D\rNO DATA\r\r", "01 0D") == "NO DATA"


@pytest.mark.parametrize(
    "frame, expected",
    [
        ("a\rb\nc\r\n", "abc"),
        ("", ""),
        ("no breaks", "no breaks"),
    ],
)
def test_remove_line_separators(frame: str, expected: str) -> None:
    assert remove_line_separators(frame) == expected
