"""Exceptions shared across the Life Tracker back end."""


class LifeTrackerError(Exception):
    """Base class for application errors."""


class UserNotFound(LifeTrackerError):
    """No user record exists for the requested id."""

    def __init__(self, user_id: str) -> None:
        super().__init__(f"User not found: {user_id}")
        self.user_id = user_id


class SendError(LifeTrackerError):
    """The outbound email could not be delivered to the transport."""
