"""SQLAlchemy database models."""
from dotenv import load_dotenv
from app.models.activity import ActivityLogEntry
from app.models.base import Base
from app.models.module import ModuleInstance, PostModule
from app.models.post import Post, PostCustomFieldValue, PostTaxonomyTerm
from app.models.revision import PostRevision
from app.models.user import User


load_dotenv()

__all__ = [
    "Base",
    "User",
    "Post",
    "PostCustomFieldValue",
    "PostTaxonomyTerm",
    "ModuleInstance",
    "PostModule",
    "PostRevision",
    "ActivityLogEntry",
]
