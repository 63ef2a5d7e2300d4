"""Custom exception classes for the tracker."""


class TrackerError(Exception):
    """
    Base exception class for all tracker errors.
    """
    pass


class PeerAlreadyExistsError(TrackerError):
    """
    Raised when attempting to register a username that already exists.
    """
    pass


class PeerNotFoundError(TrackerError):
    """
    Raised when a username has no account, or no active presence record.
    """
    pass


class InvalidCredentialsError(TrackerError):
    """
    Raised when a password does not match the stored credential.
    """
    pass


class ValidationError(TrackerError):
    """
    Raised when a request is missing required fields or carries invalid values.
    """
    pass
