"""Translation of staging errors to HTTP responses."""

import logging

from fastapi import HTTPException, status

from app.api.v1.posts.constants import (
    FORBIDDEN_DETAIL,
    MODULE_OWNERSHIP_DETAIL,
    PERSISTENCE_FAILURE_DETAIL,
    POST_MODULE_NOT_FOUND_DETAIL,
    POST_NOT_FOUND_DETAIL,
    REVISION_NOT_FOUND_DETAIL,
)
from app.core.exceptions import (
    ForbiddenError,
    InvalidInputError,
    ModuleOwnershipError,
    NotFoundError,
    PersistenceFailureError,
    PostModuleNotFoundError,
    PostNotFoundError,
    RevisionNotFoundError,
    SlugConflictError,
    StrataError,
)

logger = logging.getLogger(__name__)

_NOT_FOUND_DETAILS: dict[type[NotFoundError], str] = {
    PostNotFoundError: POST_NOT_FOUND_DETAIL,
    RevisionNotFoundError: REVISION_NOT_FOUND_DETAIL,
    PostModuleNotFoundError: POST_MODULE_NOT_FOUND_DETAIL,
}


def http_error(exc: StrataError) -> HTTPException:
    """Map an application error to the HTTP error returned to the caller."""
    if isinstance(exc, NotFoundError):
        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=_NOT_FOUND_DETAILS.get(type(exc), exc.message),
        )
    if isinstance(exc, ModuleOwnershipError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=MODULE_OWNERSHIP_DETAIL)
    if isinstance(exc, ForbiddenError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=FORBIDDEN_DETAIL)
    if isinstance(exc, SlugConflictError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=exc.message)
    if isinstance(exc, InvalidInputError):
        return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=exc.message)
    if isinstance(exc, PersistenceFailureError):
        logger.error("Persistence failure", extra=exc.details)
        return HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=PERSISTENCE_FAILURE_DETAIL,
        )
    logger.error("Unhandled application error", extra={"error": exc.message})
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=exc.message)
