"""OBD Client -- ELM327-style AT/PID protocol engine.

Talks to a diagnostic adapter (or its emulator) over a stream socket,
frames responses on the ``>`` prompt, strips the command echo and
decodes RPM, speed, trouble codes and identification text.
"""

__version__ = "0.1.0"
