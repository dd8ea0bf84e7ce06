"""Custom exception classes for the application."""

from typing import Any


class StrataError(Exception):
    """Base exception for all application errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(self.message)


# Lookup Errors
class NotFoundError(StrataError):
    """A referenced record does not exist or belongs to another parent."""

    pass


class PostNotFoundError(NotFoundError):
    """Post not found."""

    def __init__(self, post_id: str) -> None:
        super().__init__(f"Post not found: {post_id}", {"post_id": post_id})


class RevisionNotFoundError(NotFoundError):
    """Revision not found for the requested post."""

    def __init__(self, revision_id: str, post_id: str | None = None) -> None:
        details: dict[str, Any] = {"revision_id": revision_id}
        if post_id:
            details["post_id"] = post_id
        super().__init__(f"Revision not found: {revision_id}", details)


class PostModuleNotFoundError(NotFoundError):
    """Module placement not found."""

    def __init__(self, post_module_id: str) -> None:
        super().__init__(
            f"Post module not found: {post_module_id}",
            {"post_module_id": post_module_id},
        )


# Authorization Errors
class ForbiddenError(StrataError):
    """The authorization gate denied the transition."""

    def __init__(self, message: str = "Not allowed", details: dict[str, Any] | None = None) -> None:
        super().__init__(message, details)


class ModuleOwnershipError(ForbiddenError):
    """Placement exists but is attached to a different post."""

    def __init__(self, post_module_id: str, post_id: str) -> None:
        super().__init__(
            "Module does not belong to this post",
            {"post_module_id": post_module_id, "post_id": post_id},
        )


# Validation Errors
class InvalidInputError(StrataError):
    """Request payload failed validation."""

    pass


class InvalidDraftPayloadError(InvalidInputError):
    """Draft payload is not an object of draftable fields."""

    pass


class InvalidFieldPathError(InvalidInputError):
    """Field path could not be parsed."""

    def __init__(self, path: str) -> None:
        super().__init__(f"Invalid field path: {path!r}", {"path": path})


class UnknownModuleFieldError(InvalidInputError):
    """Field is not declared for the module type."""

    def __init__(self, module_type: str, field: str) -> None:
        super().__init__(
            f"Unknown field: {field}",
            {"module_type": module_type, "field": field},
        )


class LockedModuleError(InvalidInputError):
    """Locked placements cannot be removed or reordered."""

    def __init__(self, post_module_id: str) -> None:
        super().__init__(
            "Locked modules cannot be changed",
            {"post_module_id": post_module_id},
        )


class InvalidStatusError(InvalidInputError):
    """Unsupported post status."""

    def __init__(self, status: str) -> None:
        super().__init__(f"Invalid status: {status}", {"status": status})


class SlugConflictError(InvalidInputError):
    """Slug already taken for the locale."""

    def __init__(self, slug: str, locale: str) -> None:
        super().__init__(
            f"Slug '{slug}' already exists for locale {locale}",
            {"slug": slug, "locale": locale},
        )


# Persistence Errors
class PersistenceFailureError(StrataError):
    """Underlying store transaction aborted."""

    def __init__(self, operation: str, message: str) -> None:
        super().__init__(
            f"Persistence failure during {operation}: {message}",
            {"operation": operation},
        )
