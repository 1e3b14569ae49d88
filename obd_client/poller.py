"""Cancellable repeated queries (e.g. continuous RPM sampling).

Session reads block, so each query runs on a worker thread via
``asyncio.to_thread``; the session lock serializes it with any other
query in flight.  A poll ends when its stop event is set, when its task
is cancelled, when ``max_samples`` is reached, or when the transport
fails (the session then needs an explicit reconnect).
"""

from __future__ import annotations

import asyncio
from typing import Callable, Dict, List, Optional, Union

import structlog

from obd_client.commands import CommandKind
from obd_client.errors import (
    AdapterConnectionError,
    FrameReadError,
    MalformedResponseError,
    NotConnectedError,
)
from obd_client.schemas import DecodedValue
from obd_client.session import Session

logger = structlog.get_logger(__name__)

ValueCallback = Callable[[DecodedValue], None]


async def poll(
    session: Session,
    kind: Union[CommandKind, str],
    *,
    interval: float,
    stop_event: asyncio.Event,
    on_value: ValueCallback,
    max_samples: Optional[int] = None,
) -> int:
    """Query *kind* every *interval* seconds until stopped.

    Returns the number of values delivered to *on_value*.
    """
    kind = CommandKind(kind)
    samples = 0

    while not stop_event.is_set():
        try:
            value = await asyncio.to_thread(session.query, kind)
        except MalformedResponseError as exc:
            logger.warning("poll_malformed_response", kind=kind.value, payload=exc.payload)
        except (NotConnectedError, AdapterConnectionError, FrameReadError):
            logger.exception("poll_aborted", kind=kind.value, samples=samples)
            break
        else:
            samples += 1
            on_value(value)
            if max_samples is not None and samples >= max_samples:
                break

        await _interruptible_sleep(interval, stop_event)

    logger.info("poll_finished", kind=kind.value, samples=samples)
    return samples


class Poller:
    """Owns at most one running poll task per command kind."""

    def __init__(
        self,
        session: Session,
        *,
        interval: float,
        on_value: ValueCallback,
    ) -> None:
        self._session = session
        self._interval = interval
        self._on_value = on_value
        self._tasks: Dict[CommandKind, asyncio.Task] = {}
        self._events: Dict[CommandKind, asyncio.Event] = {}

    def running(self) -> List[CommandKind]:
        return [kind for kind, task in self._tasks.items() if not task.done()]

    def start(self, kind: Union[CommandKind, str]) -> asyncio.Task:
        """Start polling *kind*; returns the existing task if already running."""
        kind = CommandKind(kind)
        task = self._tasks.get(kind)
        if task is not None and not task.done():
            return task

        event = asyncio.Event()
        task = asyncio.create_task(
            poll(
                self._session,
                kind,
                interval=self._interval,
                stop_event=event,
                on_value=self._on_value,
            ),
            name=f"poll-{kind.value.lower()}",
        )
        self._tasks[kind] = task
        self._events[kind] = event
        logger.info("poll_started", kind=kind.value, interval=self._interval)
        return task

    async def stop(self, kind: Union[CommandKind, str]) -> None:
        """Signal the poll for *kind* to finish and wait for it."""
        kind = CommandKind(kind)
        task = self._tasks.pop(kind, None)
        event = self._events.pop(kind, None)
        if task is None:
            return
        if event is not None:
            event.set()
        # A task cancelled by its owner reports CancelledError here.
        await asyncio.gather(task, return_exceptions=True)

    async def stop_all(self) -> None:
        for kind in list(self._tasks):
            await self.stop(kind)


async def _interruptible_sleep(
    seconds: float, event: asyncio.Event
) -> None:
    """Sleep for *seconds* but wake early if *event* is set."""
    try:
        await asyncio.wait_for(event.wait(), timeout=seconds)
    except asyncio.TimeoutError:
        pass
