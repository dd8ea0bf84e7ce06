"""Post API endpoints."""

from app.api.v1.posts.routes import router

__all__ = ["router"]
