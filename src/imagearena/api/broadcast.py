"""Fan-out of orchestrator state changes to server-sent-event subscribers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass

from ..logging import get_logger
from ..models import RoundState

logger = get_logger(__name__)


@dataclass
class StreamEvent:
    event: str  # 'state' | 'refresh'
    state: RoundState | None = None

    def encode(self) -> str:
        data = self.state.model_dump_json() if self.state is not None else "{}"
        return f"event: {self.event}\ndata: {data}\n\n"


class StateBroadcaster:
    """Holds one queue per connected stream and pushes every event to each."""

    def __init__(self, max_queue_size: int = 256) -> None:
        self._subscribers: set[asyncio.Queue[StreamEvent]] = set()
        self._max_queue_size = max_queue_size

    def subscribe(self) -> asyncio.Queue[StreamEvent]:
        queue: asyncio.Queue[StreamEvent] = asyncio.Queue(maxsize=self._max_queue_size)
        self._subscribers.add(queue)
        logger.debug("Stream subscriber added", subscribers=len(self._subscribers))
        return queue

    def unsubscribe(self, queue: asyncio.Queue[StreamEvent]) -> None:
        self._subscribers.discard(queue)
        logger.debug("Stream subscriber removed", subscribers=len(self._subscribers))

    def publish_state(self, state: RoundState) -> None:
        self._publish(StreamEvent("state", state))

    def publish_refresh(self) -> None:
        self._publish(StreamEvent("refresh"))

    def _publish(self, event: StreamEvent) -> None:
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.warning("Dropping stream event for slow subscriber", event_type=event.event)

    def __len__(self) -> int:
        return len(self._subscribers)
