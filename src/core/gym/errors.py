"""
Domain errors.

Four families, matching how a request can fail:
- InvalidRequestError: the input itself is unacceptable
- NotFoundError: the thing asked for doesn't exist
- ConflictError: the request clashes with current state
- ForbiddenError: the caller isn't allowed to do this

The API layer maps each family to an HTTP status. Every error is terminal
for the request; nothing here is retried.
"""


class GymError(Exception):
    """Base class for all domain errors."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidRequestError(GymError):
    pass


class NotFoundError(GymError):
    pass


class ConflictError(GymError):
    pass


class ForbiddenError(GymError):
    pass


class SessionNotFoundError(NotFoundError):
    def __init__(self, message: str = "Session not found") -> None:
        super().__init__(message)


class BookingNotFoundError(NotFoundError):
    def __init__(self, message: str = "Booking not found") -> None:
        super().__init__(message)


class MemberNotFoundError(NotFoundError):
    def __init__(self, message: str = "User not found") -> None:
        super().__init__(message)


class AchievementNotFoundError(NotFoundError):
    def __init__(self, message: str = "Achievement not found") -> None:
        super().__init__(message)


class SessionFullError(ConflictError):
    def __init__(self, message: str = "Session is fully booked") -> None:
        super().__init__(message)


class DuplicateBookingError(ConflictError):
    def __init__(
        self,
        message: str = "You already have a booking for this session",
    ) -> None:
        super().__init__(message)


class InvalidBookingTransitionError(ConflictError):
    pass


class AchievementAlreadyEarnedError(ConflictError):
    def __init__(self, message: str = "Achievement already earned") -> None:
        super().__init__(message)


class AchievementLockedError(ConflictError):
    def __init__(
        self,
        message: str = "Achievement requirements not yet met",
    ) -> None:
        super().__init__(message)


class EmailAlreadyRegisteredError(ConflictError):
    def __init__(self, message: str = "Email is already registered") -> None:
        super().__init__(message)
