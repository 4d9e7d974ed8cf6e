"""
Realtime trip event fan-out.

Two named groups, ``dispatch`` and ``drivers``, each hold zero or more
listeners.  Every event is delivered to the union of both groups'
members as they were when ``publish_*`` was called, so a listener that
joined both groups receives each event once.

Delivery contract
-----------------
* ``Listener.deliver`` must not block.  ``QueueListener`` hands the event
  to its own event loop with ``call_soon_threadsafe`` and buffers it in a
  bounded queue, which keeps per-listener order equal to publish order.
* A listener that raises, or reports itself closed, is dropped and
  logged.  Publishing never fails because of a listener.
"""

from __future__ import annotations

import asyncio
import logging
import threading
from dataclasses import dataclass
from typing import Any, Iterable, Optional, Protocol, Sequence, Union

from fastcar.domain.entities import Trip
from fastcar.domain.enums import EventKind, Group

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TripEvent:
    kind: EventKind
    # a Trip for created/updated, a tuple of Trips for snapshots
    data: Any


class Listener(Protocol):
    closed: bool

    def deliver(self, event: TripEvent) -> None: ...


# A trip event, or a raw frame queued with ``QueueListener.notify``.
Outbound = Union[TripEvent, dict]


class QueueListener:
    """Buffers events for one connection on the loop that created it.

    ``notify`` queues a ready-made frame (a dict) behind the events already
    buffered, so the connection has a single outbound stream.  ``get()``
    returns ``None`` once the listener has been closed, either explicitly
    or because its buffer overflowed.
    """

    def __init__(self, maxsize: int = 256, name: str = "listener"):
        self.name = name
        self.closed = False
        self.overflowed = False
        self._loop = asyncio.get_running_loop()
        self._queue: asyncio.Queue[Optional[Outbound]] = asyncio.Queue(maxsize)

    def __repr__(self) -> str:
        return f"QueueListener({self.name!r})"

    def deliver(self, event: TripEvent) -> None:
        self._loop.call_soon_threadsafe(self._put, event)

    def notify(self, frame: dict[str, Any]) -> None:
        self._loop.call_soon_threadsafe(self._put, frame)

    def close(self) -> None:
        if not self.closed:
            self._loop.call_soon_threadsafe(self._shutdown)

    async def get(self) -> Optional[Outbound]:
        return await self._queue.get()

    # Runs on the owning loop only.

    def _put(self, item: Outbound) -> None:
        if self.closed:
            return
        try:
            self._queue.put_nowait(item)
        except asyncio.QueueFull:
            logger.warning("%r fell %d events behind; closing", self, self._queue.maxsize)
            self.overflowed = True
            self._shutdown()

    def _shutdown(self) -> None:
        self.closed = True
        while not self._queue.empty():
            self._queue.get_nowait()
        self._queue.put_nowait(None)


class EventBroadcaster:
    """Publish/subscribe bus over the ``dispatch`` and ``drivers`` groups."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._groups: dict[Group, set[Listener]] = {group: set() for group in Group}

    # ── Membership ────────────────────────────────────────────────────

    def join(self, listener: Listener, group: Group | str) -> None:
        group = Group(group)
        with self._lock:
            self._groups[group].add(listener)
        logger.info("%r joined %s", listener, group.value)

    def leave(self, listener: Listener, group: Group | str | None = None) -> None:
        """Remove *listener* from *group*, or from every group when None."""
        groups = list(Group) if group is None else [Group(group)]
        with self._lock:
            for g in groups:
                self._groups[g].discard(listener)

    def members(self, group: Group | str) -> set[Listener]:
        with self._lock:
            return set(self._groups[Group(group)])

    def audience(self) -> list[Listener]:
        """Stable snapshot of every distinct listener across both groups."""
        with self._lock:
            return list(set().union(*self._groups.values()))

    # ── Publishing ────────────────────────────────────────────────────

    def publish_created(self, trip: Trip) -> None:
        self._publish(TripEvent(EventKind.TRIP_CREATED, trip))

    def publish_updated(self, trip: Trip) -> None:
        self._publish(TripEvent(EventKind.TRIP_UPDATED, trip))

    def publish_snapshot(self, trips: Sequence[Trip]) -> None:
        self._publish(TripEvent(EventKind.TRIP_SNAPSHOT, tuple(trips)))

    def _publish(self, event: TripEvent) -> None:
        dropped: list[Listener] = []
        for listener in self.audience():
            if listener.closed:
                dropped.append(listener)
                continue
            try:
                listener.deliver(event)
            except Exception:
                logger.warning(
                    "Dropping %r after failed %s delivery",
                    listener,
                    event.kind.value,
                    exc_info=True,
                )
                dropped.append(listener)
        self._drop(dropped)

    def _drop(self, listeners: Iterable[Listener]) -> None:
        for listener in listeners:
            self.leave(listener)
