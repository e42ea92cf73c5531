"""Custom exceptions for the around check-in service"""

from typing import Iterable, Optional


class AroundError(Exception):
    """Base exception for around"""
    pass


class ConfigError(AroundError):
    """Configuration error"""
    pass


class AuthError(AroundError):
    """Authentication-related error"""
    pass


class ValidationError(AuthError):
    """Signup input rejected before any store access"""
    pass


class DuplicateAccount(AuthError):
    """Username is already taken"""

    def __init__(self, username: str):
        self.username = username
        super().__init__(f"User {username} already exists")


class InvalidCredentials(AuthError):
    """Login rejected. The cause is never exposed to the caller."""

    def __init__(self, message: str = "Invalid password or username"):
        super().__init__(message)


class InvalidToken(AuthError):
    """Bearer token is missing, malformed, badly signed or expired"""
    pass


class StoreUnavailable(AroundError):
    """A backing store could not be reached or rejected the call"""

    def __init__(self, store: str, cause: Optional[BaseException] = None):
        self.store = store
        self.cause = cause
        message = f"{store} store unavailable"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)


class IngestError(AroundError):
    """Post submission error"""
    pass


class BlobStoreFailed(IngestError):
    """Media upload or ACL update failed; nothing was written downstream"""

    def __init__(self, post_id: str, cause: Optional[BaseException] = None):
        self.post_id = post_id
        self.cause = cause
        super().__init__(f"Media upload failed for post {post_id}: {cause}")


class PartialWriteFailure(IngestError):
    """No secondary store accepted the post record"""

    def __init__(self, post, written: Iterable[str], missing: Iterable[str]):
        self.post = post
        self.written = frozenset(written)
        self.missing = frozenset(missing)
        super().__init__(
            f"Post {post.id} not recorded in: {', '.join(sorted(self.missing))}"
        )


class QueryError(AroundError):
    """Geo search could not be executed"""
    pass


class AnnotationFailed(AroundError):
    """Image scoring endpoint failed or returned an unusable response"""
    pass
