"""Pydantic models for stored user documents and API request bodies."""

from app.models.collaboration import CollaborationLink
from app.models.results import UpsertOutcome, WriteResult
from app.models.user import DEFAULT_VISIBLE_SECTIONS, UserDocument

__all__ = [
    "CollaborationLink",
    "DEFAULT_VISIBLE_SECTIONS",
    "UpsertOutcome",
    "UserDocument",
    "WriteResult",
]
