"""Client configuration via environment variables.

Uses pydantic-settings so every field can be overridden with an
env var (``OBD_HOST``, ``OBD_PORT``, ``LOG_LEVEL`` ...).  Setting
``OBD_HOST=sim`` swaps the TCP transport for the simulated adapter.
"""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings


class ClientSettings(BaseSettings):
    """OBD client runtime settings."""

    model_config = {"env_prefix": "", "env_file": ".env", "extra": "ignore"}

    # -- adapter ------------------------------------------------------------
    obd_host: str = Field(
        default="127.0.0.1",
        description="Adapter IP address, or 'sim' for the simulated adapter",
    )
    obd_port: int = Field(default=35000, ge=1, le=65535, description="Adapter TCP port")
    connect_timeout_seconds: float = Field(default=5.0, gt=0)
    read_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Max seconds to wait for the next byte of a response",
    )
    line_terminator: str = Field(
        default="\r",
        description="Appended to every command written to the adapter",
    )
    query_vehicle_info: bool = Field(
        default=True,
        description="Query VIN and ECU name during the connect handshake",
    )

    # -- simulation ---------------------------------------------------------
    obd_sim_scenario: str = Field(
        default="idle",
        description="Simulation scenario name (from adapter_scenarios.json)",
    )

    # -- polling ------------------------------------------------------------
    poll_interval_seconds: float = Field(default=0.5, ge=0)

    # -- logging ------------------------------------------------------------
    telemetry_log_dir: str = Field(
        default="logs",
        description="Directory for telemetry log files; empty disables them",
    )
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(
        default="console",
        description="Log output format: 'console' or 'json'",
    )

    # -- derived ------------------------------------------------------------
    @property
    def is_simulation(self) -> bool:
        """Return ``True`` when the client talks to the simulated adapter."""
        return self.obd_host.strip().lower() == "sim"
