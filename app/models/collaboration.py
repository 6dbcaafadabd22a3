"""
Collaboration link model and request bodies.

A CollaborationLink is embedded in UserDocument.collaboration. Each side of a
relationship keeps its own copy, identified by the peer's email.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field


class CollaborationLink(BaseModel):
    """
    Directed link from one user's document to a peer.
    peer_name and peer_avatar_url are a snapshot taken when the link was made.
    """

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "email": "friend@example.com",
                "name": "Friend",
                "avatar": "https://example.com/friend.png",
                "sharedTasks": [],
            }
        },
    )

    peer_email: str = Field(alias="email")
    peer_name: Optional[str] = Field(default=None, alias="name")
    peer_avatar_url: Optional[str] = Field(default=None, alias="avatar")
    shared_tasks: List[Any] = Field(default_factory=list, alias="sharedTasks")

    def to_document(self) -> Dict[str, Any]:
        """Stored shape of the link."""
        return self.model_dump(by_alias=True)


# Request bodies. Fields are typed loosely on purpose so presence and shape
# checks happen in the services and surface as 400 with our error body.


class InviteRequest(BaseModel):
    inviter_uid: Optional[str] = Field(default=None, alias="inviterUid")
    invitee_email: Optional[str] = Field(default=None, alias="inviteeEmail")
    invitee_name: Optional[str] = Field(default=None, alias="inviteeName")
    invitee_avatar: Optional[str] = Field(default=None, alias="inviteeAvatar")


class RemoveCollaboratorRequest(BaseModel):
    user_uid: Optional[str] = Field(default=None, alias="userUid")
    collaborator_email: Optional[str] = Field(default=None, alias="collaboratorEmail")


class UpdateSharedTasksRequest(BaseModel):
    user_uid: Optional[str] = Field(default=None, alias="userUid")
    collaborator_email: Optional[str] = Field(default=None, alias="collaboratorEmail")
    shared_tasks: Any = Field(default=None, alias="sharedTasks")
