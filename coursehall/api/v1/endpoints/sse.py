"""
Server-Sent Events Routes

Live lesson updates for admin course editors. While a video is being
processed, the editor keeps this stream open and swaps in the player as
soon as ``lesson:updated`` arrives.
"""

import json
import logging
from typing import AsyncIterator

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse

from coursehall.api.deps import AdminUser
from coursehall.services.live_updates import LessonUpdateBroadcaster, broadcaster

logger = logging.getLogger(__name__)

HEARTBEAT_INTERVAL = 30.0


router = APIRouter(prefix="/sse", tags=["Live Updates"])


def format_event(data: str) -> str:
    return f"data: {data}\n\n"


async def event_stream(
    request: Request,
    course_id: int,
    source: LessonUpdateBroadcaster = broadcaster,
    heartbeat_interval: float = HEARTBEAT_INTERVAL,
) -> AsyncIterator[str]:
    """
    Yield SSE frames for one course until the client disconnects.

    Starts with a ``connected`` message; sends a heartbeat comment when
    nothing was published for ``heartbeat_interval`` seconds.
    """
    subscription = source.subscribe(course_id)
    try:
        yield format_event(json.dumps({"type": "connected", "courseId": course_id}))

        while not subscription.closed:
            if await request.is_disconnected():
                break

            message = await subscription.next_message(timeout=heartbeat_interval)
            if message is None:
                yield ": heartbeat\n\n"
            else:
                yield format_event(message)
    finally:
        source.unsubscribe(subscription)


@router.get(
    "/courses/{course_id}",
    summary="Stream lesson updates for a course",
)
async def course_events(
    course_id: int,
    request: Request,
    admin: AdminUser,
) -> StreamingResponse:
    logger.info("Admin %s opened live updates for course %s", admin.id, course_id)
    return StreamingResponse(
        event_stream(request, course_id),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
