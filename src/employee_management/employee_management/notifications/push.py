from __future__ import annotations

import json
import logging
import queue
import threading
from collections import defaultdict
from typing import Any, Iterable, Iterator

logger = logging.getLogger(__name__)


class PushBroadcaster:
    """In-process fan-out of events to connected clients.

    Best-effort: no persistence, no replay, and a slow client whose queue is full drops events.
    """

    def __init__(self, *, max_queue: int = 100):
        self._max_queue = max_queue
        self._lock = threading.Lock()
        self._subscribers: dict[int, list[queue.Queue]] = defaultdict(list)

    def subscribe(self, user_id: int) -> queue.Queue:
        q: queue.Queue = queue.Queue(maxsize=self._max_queue)
        with self._lock:
            self._subscribers[int(user_id)].append(q)
        return q

    def unsubscribe(self, user_id: int, q: queue.Queue) -> None:
        with self._lock:
            queues = self._subscribers.get(int(user_id))
            if not queues:
                return
            if q in queues:
                queues.remove(q)
            if not queues:
                del self._subscribers[int(user_id)]

    def connected_count(self, user_id: int) -> int:
        with self._lock:
            return len(self._subscribers.get(int(user_id), ()))

    def send_to_user(self, user_id: int, event: dict[str, Any]) -> int:
        """Returns the number of client queues that accepted the event."""
        with self._lock:
            queues = list(self._subscribers.get(int(user_id), ()))
        delivered = 0
        for q in queues:
            try:
                q.put_nowait(event)
                delivered += 1
            except queue.Full:
                logger.warning("Push queue full for user %s, dropping %s event", user_id, event.get("type"))
        return delivered

    def broadcast(self, user_ids: Iterable[int], event: dict[str, Any]) -> int:
        return sum(self.send_to_user(uid, event) for uid in user_ids)


def sse_stream(broadcaster: PushBroadcaster, user_id: int, *, heartbeat_seconds: float = 25.0) -> Iterator[str]:
    """Server-sent events for one client; yields a comment line as heartbeat while idle."""

    q = broadcaster.subscribe(user_id)
    try:
        yield ": connected\n\n"
        while True:
            try:
                event = q.get(timeout=heartbeat_seconds)
            except queue.Empty:
                yield ": keep-alive\n\n"
                continue
            yield f"event: {event.get('type', 'message')}\ndata: {json.dumps(event, default=str)}\n\n"
    finally:
        broadcaster.unsubscribe(user_id, q)
