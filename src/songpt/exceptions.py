"""Exception classes for songpt playlist generation."""


class SongptError(Exception):
    """Base exception for all songpt errors.

    Attributes:
        message: Human-readable error message
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class InvalidArgumentError(SongptError, ValueError):
    """Raised when caller-supplied input violates a precondition.

    Empty, oversized or missing values. Always raised before any request
    is sent upstream.
    """

    pass


class UpstreamUnavailableError(SongptError):
    """Raised when an upstream service cannot be reached or answers with an
    unexpected response shape."""

    pass


class UpstreamMalformedPayloadError(SongptError):
    """Raised when the upstream answered but its content is unusable.

    The language model does not always honour the output format, so this
    is an expected, reportable failure.
    """

    pass


class NotFoundError(SongptError):
    """Raised when a lookup (e.g. title resolution) yields no match."""

    pass


class NoResolvableTracksError(SongptError):
    """Raised when none of the suggested titles matched a Spotify track."""

    pass
