"""Custom exceptions for the forcebuffer controller."""


class ForceBufferError(Exception):
    """Base exception for all forcebuffer errors."""

    pass


class MediaSourceError(ForceBufferError):
    """Error reading from or writing to a bound media source."""

    pass


class SourceUnavailableError(MediaSourceError):
    """The bound media source has been torn down or rejected an operation."""

    pass
