"""Decoded telemetry models (Pydantic v2).

``DecodedValue`` is a tagged union discriminated on ``kind``:

* ``IntegerMetric`` -- RPM, speed.
* ``CodeList``      -- diagnostic trouble codes, possibly empty.
* ``Text``          -- device name, VIN, ECU name, raw test responses.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Decoded values
# ---------------------------------------------------------------------------

class IntegerMetric(BaseModel):
    """A scalar reading; ``0`` with ``no_data=True`` when the adapter had none."""

    model_config = {"frozen": True}

    kind: Literal["RPM", "SPEED"]
    value: int = Field(..., ge=0, description="Value in engineering units")
    unit: str = Field(default="", description="Engineering unit, e.g. 'rpm'")
    no_data: bool = Field(default=False, description="Adapter answered NO DATA")


class CodeList(BaseModel):
    """Ordered trouble codes as received."""

    model_config = {"frozen": True}

    kind: Literal["DTC"] = "DTC"
    codes: List[str] = Field(default_factory=list)
    no_data: bool = False

    def __len__(self) -> int:
        return len(self.codes)


class Text(BaseModel):
    """Free-text response, trimmed."""

    model_config = {"frozen": True}

    kind: Literal["DEVICE", "VIN", "ECU_NAME", "TEST"]
    text: str = ""


DecodedValue = Annotated[
    Union[IntegerMetric, CodeList, Text],
    Field(discriminator="kind"),
]


# ---------------------------------------------------------------------------
# Session state
# ---------------------------------------------------------------------------

class SessionState(str, Enum):
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"


class AdapterInfo(BaseModel):
    """Identification gathered during the connect handshake."""

    host: str
    port: int
    device_name: str = Field(..., description="Reply to the reset command")
    vin: Optional[str] = None
    ecu_name: Optional[str] = None
