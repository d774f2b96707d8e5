"""Exception types raised by the receipt intake pipeline and its backends."""

from __future__ import annotations


class RewardsError(Exception):
    """Base class for receipt intake failures."""


class AuthenticationError(RewardsError):
    """No authenticated user is attached to the request."""


class UpstreamUnavailable(RewardsError):
    """The object store or the OCR endpoint could not be reached."""


class MalformedExtraction(UpstreamUnavailable):
    """The OCR response could not be parsed into a receipt."""


class StoreError(RewardsError):
    """The receipt store rejected an operation."""


class DuplicateReceipt(StoreError):
    """A receipt with the same fingerprint already exists.

    Raised by stores on a uniqueness violation; the pipeline turns it into a
    ``duplicate`` outcome rather than a failure.
    """

    def __init__(self, fingerprint: str) -> None:
        super().__init__(f"duplicate receipt fingerprint: {fingerprint}")
        self.fingerprint = fingerprint
