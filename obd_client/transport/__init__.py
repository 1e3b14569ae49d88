"""Byte-level transports to the diagnostic adapter.

Provides the ``Transport`` ABC with two concrete implementations:

* ``TCPTransport``        -- stream socket to a Wi-Fi adapter or emulator.
* ``SimulationTransport`` -- fixture-based, no hardware required.
"""

from obd_client.transport.base import Transport

__all__ = ["Transport"]
