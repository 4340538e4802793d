"""
Live Update Broadcaster

In-process fan-out of lesson events to admin course editors connected
over server-sent events.

Delivery is best effort to connections open at publish time. There is
no replay: a client that connects later must fetch current state itself.
Subscribers live in this process only, so with several app instances a
client only hears events handled by the instance it is connected to.
"""

import asyncio
import logging
from typing import Dict, Optional, Set

from coursehall.schemas.events import LessonUpdatedEvent

logger = logging.getLogger(__name__)

# Pending messages per connection before it is treated as dead
MAX_PENDING_MESSAGES = 100


class Subscription:
    """One open connection listening to a course."""

    def __init__(self, course_id: int, max_pending: int = MAX_PENDING_MESSAGES):
        self.course_id = course_id
        self._queue: asyncio.Queue[str] = asyncio.Queue(maxsize=max_pending)
        self.closed = False

    def deliver(self, message: str) -> bool:
        """Queue a message. Returns False if the connection should be pruned."""
        if self.closed:
            return False
        try:
            self._queue.put_nowait(message)
        except asyncio.QueueFull:
            return False
        return True

    async def next_message(self, timeout: float) -> Optional[str]:
        """Wait for the next message, or None after ``timeout`` seconds."""
        try:
            return await asyncio.wait_for(self._queue.get(), timeout=timeout)
        except asyncio.TimeoutError:
            return None

    def close(self) -> None:
        self.closed = True


class LessonUpdateBroadcaster:
    """Per-course subscriber registry with publish/prune."""

    def __init__(self) -> None:
        self._subscribers: Dict[int, Set[Subscription]] = {}

    def subscribe(self, course_id: int) -> Subscription:
        subscription = Subscription(course_id)
        self._subscribers.setdefault(course_id, set()).add(subscription)
        logger.info(
            "Client subscribed to course %s (%s active)",
            course_id, self.subscriber_count(course_id),
        )
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        subscription.close()
        subscribers = self._subscribers.get(subscription.course_id)
        if subscribers is None:
            return
        subscribers.discard(subscription)
        if not subscribers:
            del self._subscribers[subscription.course_id]
        logger.info(
            "Client left course %s (%s remaining)",
            subscription.course_id, self.subscriber_count(subscription.course_id),
        )

    def publish(self, course_id: int, event: LessonUpdatedEvent) -> int:
        """
        Deliver an event to every open subscriber of a course.

        Returns:
            Number of subscribers the event was queued for.
        """
        subscribers = self._subscribers.get(course_id)
        if not subscribers:
            logger.debug("No clients connected to course %s", course_id)
            return 0

        message = event.to_json()
        delivered = 0
        for subscription in list(subscribers):
            if subscription.deliver(message):
                delivered += 1
            else:
                logger.info("Pruning dead connection for course %s", course_id)
                self.unsubscribe(subscription)

        logger.info("Broadcast lesson %s update to %s clients", event.lesson_id, delivered)
        return delivered

    def subscriber_count(self, course_id: int) -> int:
        return len(self._subscribers.get(course_id, ()))


# Global broadcaster instance
broadcaster = LessonUpdateBroadcaster()
