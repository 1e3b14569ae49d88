"""CLI entry point: ``python -m obd_client [--host H] [--port P] [--scenario S]``."""

from __future__ import annotations

import argparse
import asyncio
import sys

import structlog


def _configure_logging(level: str, fmt: str) -> None:
    """Set up structlog with console or JSON rendering."""
    import logging

    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper(), logging.INFO),
        stream=sys.stderr,
    )

    processors: list = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def main() -> None:
    parser = argparse.ArgumentParser(
        prog="obd_client",
        description="Interactive client for ELM327-style OBD-II adapters",
    )
    parser.add_argument("--host", help="Adapter IP address, or 'sim'")
    parser.add_argument("--port", type=int, help="Adapter TCP port")
    parser.add_argument("--scenario", help="Simulation scenario (with --host sim)")
    parser.add_argument(
        "--no-vehicle-info",
        action="store_true",
        default=False,
        help="Skip the VIN / ECU name queries during connect",
    )
    args = parser.parse_args()

    # Load settings from env / .env file first, then override with CLI flags.
    from obd_client.config import ClientSettings

    overrides = {}
    if args.host is not None:
        overrides["obd_host"] = args.host
    if args.port is not None:
        overrides["obd_port"] = args.port
    if args.scenario is not None:
        overrides["obd_sim_scenario"] = args.scenario
    if args.no_vehicle_info:
        overrides["query_vehicle_info"] = False
    settings = ClientSettings(**overrides)

    _configure_logging(settings.log_level, settings.log_format)

    logger = structlog.get_logger("obd_client")
    logger.info(
        "client_starting",
        version=__import__("obd_client").__version__,
        mode="simulation" if settings.is_simulation else "tcp",
        host=settings.obd_host,
        port=settings.obd_port,
    )

    from obd_client.cli import run_cli

    try:
        status = asyncio.run(run_cli(settings))
    except KeyboardInterrupt:
        logger.info("client_interrupted")
        status = 0
    sys.exit(status)


if __name__ == "__main__":
    main()
