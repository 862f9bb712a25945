"""Typed failures raised by the catalog, the turn engine and the store.

Every error is recoverable by the caller; routes translate them into HTTP
status codes (see routes/__init__.py).
"""


class StoryError(Exception):
    """Base class for all companion-stories failures."""


class NotFoundError(StoryError):
    """A story or persona id did not resolve."""


class GenerationError(StoryError):
    """The Narration Provider failed or returned an unusable result."""


class PersistenceError(StoryError):
    """The progress store could not be read or written."""


class VersionConflictError(PersistenceError):
    """Another turn for the same (user, story) was committed first."""


class AdminAuthError(StoryError):
    """Administrative credentials were missing or wrong."""


class InvalidRequestError(StoryError):
    """Caller-supplied fields or ids failed validation."""
