"""Exceptions raised by the player's collaborators."""


class PlayerError(Exception):
    """Base exception for player errors."""

    pass


class CollaboratorError(PlayerError):
    """Raised when the content API fails or returns an unusable payload."""

    pass


class ChannelError(PlayerError):
    """Raised when the realtime channel is unavailable."""

    pass
