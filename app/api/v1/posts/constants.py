"""Constants for post routes."""

POST_NOT_FOUND_DETAIL = "Post not found"
REVISION_NOT_FOUND_DETAIL = "Revision not found"
POST_MODULE_NOT_FOUND_DETAIL = "Post module not found"
FORBIDDEN_DETAIL = "Not allowed"
MODULE_OWNERSHIP_DETAIL = "Module does not belong to this post"
PERSISTENCE_FAILURE_DETAIL = "Storage temporarily unavailable"
