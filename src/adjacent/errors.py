"""Error taxonomy shared by the store, the admin API, and the clients.

Each error carries the HTTP status the web layer answers with, so the
Flask handlers and the admin client can map failures in both directions.
"""

from __future__ import annotations


class AdjacentError(Exception):
    """Base class for every expected failure in the blog pipeline."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(AdjacentError):
    """Missing or incorrect admin credential."""

    status_code = 401

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)


class InvalidInputError(AdjacentError):
    """Rejected before any store mutation (empty fields, bad uploads)."""

    status_code = 400


class UploadRejectedError(InvalidInputError):
    """An image upload failed validation.

    ``reason`` is one of ``missing_file``, ``unsupported_type``, ``too_large``.
    """

    def __init__(self, message: str, reason: str) -> None:
        super().__init__(message)
        self.reason = reason


class SlugConflictError(InvalidInputError):
    """Another post already uses the requested slug."""

    status_code = 409

    def __init__(self, slug: str = "", message: str | None = None) -> None:
        super().__init__(message or f"Slug already in use: {slug}")
        self.slug = slug


class NotFoundError(AdjacentError):
    """The target post does not exist (or is not published, on public reads)."""

    status_code = 404


class StoreError(AdjacentError):
    """The underlying post or image store failed."""

    status_code = 500
