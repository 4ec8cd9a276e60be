"""
Error taxonomy for the gallery services.

ValidationError and TransactionFailure are raised to callers of the rank
service. MetadataLookupFailure never leaves the chronology service; it only
shows up in provenance counts and logs. ResolutionUnavailable marks a history
request whose base painting list could not be read.
"""


class GalleryError(Exception):
    pass


class ValidationError(GalleryError):
    """A required painting field is missing or invalid. Nothing was written."""


class TransactionFailure(GalleryError):
    """The shift-then-insert sequence failed and was rolled back."""


class MetadataLookupFailure(GalleryError):
    """Object storage could not supply an upload timestamp for one painting."""

    def __init__(self, object_name: str | None, reason: str):
        self.object_name = object_name
        self.reason = reason
        super().__init__(f"Storage lookup failed for {object_name!r}: {reason}")


class ResolutionUnavailable(GalleryError):
    """The persistent store could not supply the painting list."""
