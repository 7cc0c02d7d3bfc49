"""Error kinds raised by the ring store.

Every storage failure is classified into one of these at the store boundary.
Each kind carries the HTTP status it maps to and a message that is safe to
show to the person making the request; the underlying driver error is only
ever chained (``raise ... from exc``) and logged.
"""

from __future__ import annotations


class RingError(Exception):
    """Base class for all ring errors."""

    status_code = 500

    @property
    def public_message(self) -> str:
        return str(self)


class AlreadyRegistered(RingError):
    """A unique column (site URL, admin username or email) already holds the value."""

    status_code = 409

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"{value} is already registered")


class NotFound(RingError):
    """No row matched a targeted read or mutation, or the end of the ring was reached."""

    status_code = 404


class NotApproved(RingError):
    """A traversal was asked to start from a URL that is not an approved site."""

    status_code = 401

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"site {url} is not an approved member of the ring")


class AlreadyModerated(RingError):
    """Approve/deny was attempted on a site that is no longer pending."""

    status_code = 409

    def __init__(self, url: str, status: str):
        self.url = url
        self.status = status
        super().__init__(f"site {url} is already {status}")


class Unauthorized(RingError):
    """Re-authentication failed for a privileged change."""

    status_code = 401

    def __init__(self, message: str = "current password not valid"):
        super().__init__(message)


class OwnershipNotVerified(RingError):
    """The site did not serve the expected ownership hash."""

    status_code = 400


class Unrecoverable(RingError):
    """Storage or infrastructure failure. Not correctable by the caller."""

    status_code = 500

    @property
    def public_message(self) -> str:
        return "internal error, please try again later"


class PasswordHashingError(RingError):
    """Hashing or verifying a password failed (not the same as a wrong password)."""

    status_code = 500

    @property
    def public_message(self) -> str:
        return "internal error, please try again later"
