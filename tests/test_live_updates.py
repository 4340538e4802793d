"""
Live Updates Unit Tests

Tests for the in-process broadcaster and the SSE frame generator.
"""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from coursehall.api.v1.endpoints.sse import event_stream
from coursehall.models import MuxStatus
from coursehall.schemas.events import LessonUpdateData, LessonUpdatedEvent
from coursehall.services.live_updates import LessonUpdateBroadcaster, Subscription


def make_event(course_id: int = 1, lesson_id: int = 10) -> LessonUpdatedEvent:
    return LessonUpdatedEvent(
        lesson_id=lesson_id,
        course_id=course_id,
        data=LessonUpdateData(
            mux_status=MuxStatus.READY,
            playback_id="pb-1",
            thumbnail_url="https://image.mux.com/pb-1/thumbnail.png",
            duration=61,
        ),
    )


class TestEventShape:
    """Tests for the lesson:updated payload."""

    def test_camel_case_json(self):
        payload = json.loads(make_event().to_json())

        assert payload == {
            "type": "lesson:updated",
            "lessonId": 10,
            "courseId": 1,
            "data": {
                "muxStatus": "ready",
                "playbackId": "pb-1",
                "thumbnailUrl": "https://image.mux.com/pb-1/thumbnail.png",
                "duration": 61,
            },
        }


class TestBroadcaster:
    """Tests for LessonUpdateBroadcaster."""

    @pytest.mark.asyncio
    async def test_publish_reaches_course_subscribers_only(self):
        broadcaster = LessonUpdateBroadcaster()
        first = broadcaster.subscribe(1)
        second = broadcaster.subscribe(1)
        other = broadcaster.subscribe(2)

        delivered = broadcaster.publish(1, make_event(course_id=1))

        assert delivered == 2
        assert json.loads(await first.next_message(timeout=0.1))["lessonId"] == 10
        assert json.loads(await second.next_message(timeout=0.1))["lessonId"] == 10
        assert await other.next_message(timeout=0.01) is None

    def test_publish_without_subscribers(self):
        assert LessonUpdateBroadcaster().publish(5, make_event(course_id=5)) == 0

    @pytest.mark.asyncio
    async def test_no_replay_for_late_subscribers(self):
        broadcaster = LessonUpdateBroadcaster()
        broadcaster.publish(1, make_event())

        late = broadcaster.subscribe(1)

        assert await late.next_message(timeout=0.01) is None

    def test_closed_subscription_is_pruned(self):
        broadcaster = LessonUpdateBroadcaster()
        alive = broadcaster.subscribe(1)
        dead = broadcaster.subscribe(1)
        dead.close()

        delivered = broadcaster.publish(1, make_event())

        assert delivered == 1
        assert broadcaster.subscriber_count(1) == 1
        assert alive.closed is False

    def test_saturated_subscription_is_pruned(self):
        broadcaster = LessonUpdateBroadcaster()
        slow = broadcaster.subscribe(1)
        # Fill the queue as if the client stopped reading
        while slow.deliver("x"):
            pass

        delivered = broadcaster.publish(1, make_event())

        assert delivered == 0
        assert broadcaster.subscriber_count(1) == 0

    def test_unsubscribe_twice_is_harmless(self):
        broadcaster = LessonUpdateBroadcaster()
        subscription = broadcaster.subscribe(3)

        broadcaster.unsubscribe(subscription)
        broadcaster.unsubscribe(subscription)

        assert broadcaster.subscriber_count(3) == 0


class TestSubscription:
    """Tests for Subscription."""

    def test_bounded_queue(self):
        subscription = Subscription(course_id=1, max_pending=2)

        assert subscription.deliver("a") is True
        assert subscription.deliver("b") is True
        assert subscription.deliver("c") is False


class TestEventStream:
    """Tests for the SSE frame generator."""

    @pytest.mark.asyncio
    async def test_connected_heartbeat_and_event(self):
        broadcaster = LessonUpdateBroadcaster()
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=False)

        stream = event_stream(request, 7, source=broadcaster, heartbeat_interval=0.01)

        connected = await stream.__anext__()
        assert json.loads(connected[len("data: "):]) == {"type": "connected", "courseId": 7}
        assert broadcaster.subscriber_count(7) == 1

        assert await stream.__anext__() == ": heartbeat\n\n"

        broadcaster.publish(7, make_event(course_id=7))
        frame = await stream.__anext__()
        assert frame.startswith("data: ")
        assert frame.endswith("\n\n")
        assert json.loads(frame[len("data: "):])["type"] == "lesson:updated"

        await stream.aclose()
        assert broadcaster.subscriber_count(7) == 0

    @pytest.mark.asyncio
    async def test_stops_on_disconnect(self):
        broadcaster = LessonUpdateBroadcaster()
        request = MagicMock()
        request.is_disconnected = AsyncMock(return_value=True)

        frames = [frame async for frame in event_stream(request, 7, source=broadcaster)]

        assert len(frames) == 1
        assert broadcaster.subscriber_count(7) == 0
