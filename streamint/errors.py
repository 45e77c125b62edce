# streamint/errors.py
"""
Exception types raised across the stream classification engine.

Validation problems with a request (wrong count, duplicates, unknown or
non-A/L subjects) are *not* exceptions: they come back as structured
ClassificationResult objects with valid=False. The types below cover the
conditions a caller has to handle differently from "no stream found".
"""

from __future__ import annotations


class StreamClassificationError(Exception):
    """Base class for all engine errors."""


class ReferenceDataUnavailable(StreamClassificationError):
    """
    The subject or stream store could not be reached.

    Infrastructure failure: callers should retry rather than treat it as
    an unmatched combination.
    """


class StreamNotFound(StreamClassificationError):
    """Requested stream id does not exist or is inactive."""

    def __init__(self, stream_id: int):
        super().__init__(f"Stream {stream_id} not found")
        self.stream_id = stream_id


class RegistryError(StreamClassificationError):
    """Stream definitions violate a registry invariant or carry a bad rule payload."""
