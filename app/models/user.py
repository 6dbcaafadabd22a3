"""
User document model.

One denormalized document per identity. uid comes from the auth provider
used by the client; this service trusts it as given. Sub-collections are
opaque client-owned records; only collaboration and namaz have a shape the
server relies on.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.models.collaboration import CollaborationLink

DEFAULT_VISIBLE_SECTIONS: List[str] = [
    "Dashboard",
    "Tasks",
    "Notes",
    "Habits",
    "Goals",
    "Planner",
    "Journal",
    "Calendar",
    "Collaboration",
    "MindMap",
    "Music",
    "Resources",
    "Review",
    "Pomodoro",
    "NamazTracker",
]

# Top-level fields that replace_fields must never overwrite.
PROTECTED_FIELDS = frozenset({"_id", "uid", "createdAt"})


def default_settings() -> Dict[str, Any]:
    return {"visibleSections": list(DEFAULT_VISIBLE_SECTIONS)}


class UserDocument(BaseModel):
    """
    Shape of a newly created user document. Attribute names are snake_case;
    aliases are the field names persisted in MongoDB and sent to the web
    client. Reads return the stored dict, since later writes may put any
    client value into the sections.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    uid: str
    email: str
    display_name: Optional[str] = Field(default=None, alias="displayName")
    avatar_url: Optional[str] = Field(default=None, alias="photoURL")
    auth_provider: Optional[str] = Field(default=None, alias="provider")
    last_login_at: Optional[datetime] = Field(default=None, alias="lastLogin")
    created_at: Optional[datetime] = Field(default=None, alias="createdAt")

    tasks: List[Any] = Field(default_factory=list)
    habits: List[Any] = Field(default_factory=list)
    goals: List[Any] = Field(default_factory=list)
    notes: List[Any] = Field(default_factory=list)
    mind_map: List[Any] = Field(default_factory=list, alias="mindMap")
    journal: List[Any] = Field(default_factory=list)
    planner: List[Any] = Field(default_factory=list)
    collaboration: List[CollaborationLink] = Field(default_factory=list)
    namaz: List[Any] = Field(default_factory=list)
    settings: Dict[str, Any] = Field(default_factory=default_settings)

    @classmethod
    def new(
        cls,
        uid: str,
        email: str,
        display_name: Optional[str],
        avatar_url: Optional[str],
        auth_provider: Optional[str],
        now: datetime,
    ) -> "UserDocument":
        """Fresh document for a first login: empty sub-collections, default settings."""
        return cls(
            uid=uid,
            email=email,
            display_name=display_name,
            avatar_url=avatar_url,
            auth_provider=auth_provider,
            last_login_at=now,
            created_at=now,
        )

    def to_document(self) -> Dict[str, Any]:
        """Shape written to the store."""
        return self.model_dump(by_alias=True)


class IdentityUpsertRequest(BaseModel):
    """Body of POST /api/users, sent by the client after sign-in."""

    uid: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = Field(default=None, alias="displayName")
    avatar_url: Optional[str] = Field(default=None, alias="photoURL")
    auth_provider: Optional[str] = Field(default=None, alias="provider")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "uid": "firebase-uid",
                "email": "user@example.com",
                "displayName": "User",
                "photoURL": "https://example.com/me.png",
                "provider": "google",
            }
        }
    )


class NamazUpdateRequest(BaseModel):
    namaz: Any = None


class SettingsUpdateRequest(BaseModel):
    settings: Any = None
