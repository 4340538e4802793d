"""
Domain Exceptions

HTTPException subclasses raised by the service layer. Each carries its
own status code so routes can let them propagate unchanged.

Quota exhaustion has no exception here: a reached view limit is a
normal result, not an error.
"""

from fastapi import HTTPException, status


class LessonNotFound(HTTPException):
    """Lesson does not exist."""

    def __init__(self, lesson_id: int):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Lesson with ID {lesson_id} not found",
        )


class UserNotFound(HTTPException):
    """User does not exist."""

    def __init__(self, user_id: int):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"User with ID {user_id} not found",
        )


class NotEnrolled(HTTPException):
    """Principal has no enrollment for the lesson's course."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You are not enrolled in this course",
        )


class NotAVideoLesson(HTTPException):
    """Video operation requested on a pdf/text lesson."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="This lesson is not a video lesson",
        )


class ProviderCredentialsMissing(HTTPException):
    """Mux integration is not configured."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Video provider is not configured",
        )


class ProviderRequestFailed(HTTPException):
    """
    A call to the video provider failed.

    The provider's own error text is logged by the caller and never
    included in the response.
    """

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Video provider request failed, please try again",
        )


class PlaybackSigningFailed(HTTPException):
    """The configured signing key could not produce a playback token."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Could not prepare video playback, please try again",
        )


class VideoNotReady(HTTPException):
    """Lesson has no playable video yet."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="Video is not ready yet",
        )


class VideoDeletionFailed(HTTPException):
    """Remote asset could not be deleted, so the lesson must be kept."""

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail="Could not delete the lesson video, please try again",
        )
