"""
Exceptions raised by the Klaus publishing pipelines.
"""


class KlausError(Exception):
    """Base class for every error raised while publishing an entry."""

    def __init__(self, message, path=None):
        super().__init__(message)
        self.path = path


class IOFailedError(KlausError):
    """A read, write, stat, mkdir or copy failed."""


class SourceNotFoundError(KlausError):
    """The source path does not exist."""


class NotRegularFileError(KlausError):
    """The copy source is a symlink, device or directory."""


class MissingPreambleError(KlausError):
    """The document does not start with a --- preamble."""


class MalformedPreambleError(KlausError):
    """The preamble is unterminated or not valid YAML."""


class DecodeFailedError(KlausError):
    """The image could not be decoded as a JPEG."""


class EncodeFailedError(KlausError):
    """The resized image could not be encoded."""


class WalkAbortedError(KlausError):
    """The content tree could not be enumerated."""
