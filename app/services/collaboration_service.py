"""
Collaboration links between user documents.

Each side of a relationship stores its own CollaborationLink, keyed by the
peer's email. invite writes both sides as two independent updates with no
rollback, so a failure between them leaves a one-sided link. remove only
touches the caller's own document; the peer keeps its link.
"""

import logging
from typing import Any, Optional, Tuple

from app.errors import NotFoundError, ValidationError
from app.models.collaboration import CollaborationLink
from app.models.results import WriteResult
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)

COLLABORATION_FIELD = "collaboration"
PEER_KEY = "email"


class CollaborationService:
    def __init__(self, store: UserStore) -> None:
        self._store = store

    async def invite(
        self,
        inviter_uid: Optional[str],
        invitee_email: Optional[str],
        invitee_name_hint: Optional[str] = None,
        invitee_avatar_hint: Optional[str] = None,
    ) -> Tuple[WriteResult, WriteResult]:
        """
        Link inviter and invitee in both documents.
        Returns the write results for the inviter side and the invitee side.
        """
        if not inviter_uid or not invitee_email:
            raise ValidationError("inviterUid and inviteeEmail required")

        inviter = await self._store.find_by_id(inviter_uid)
        if inviter is None:
            raise NotFoundError("Inviter")

        normalized_email = invitee_email.strip().lower()
        logger.info("Invite: searching for invitee email %s", normalized_email)
        invitee = await self._store.find_by_email_case_insensitive(normalized_email)
        if invitee is None:
            raise NotFoundError("Invitee")

        to_invitee = CollaborationLink(
            peer_email=invitee["email"],
            peer_name=invitee.get("displayName") or invitee_name_hint,
            peer_avatar_url=invitee.get("photoURL") or invitee_avatar_hint,
        )
        inviter_result = await self._store.add_to_set_field(
            inviter_uid, COLLABORATION_FIELD, to_invitee.to_document(), key=PEER_KEY
        )

        to_inviter = CollaborationLink(
            peer_email=inviter["email"],
            peer_name=inviter.get("displayName"),
            peer_avatar_url=inviter.get("photoURL"),
        )
        invitee_result = await self._store.add_to_set_field(
            invitee["uid"], COLLABORATION_FIELD, to_inviter.to_document(), key=PEER_KEY
        )

        logger.info("Linked %s and %s as collaborators", inviter_uid, invitee["uid"])
        return inviter_result, invitee_result

    async def remove(self, user_uid: Optional[str], collaborator_email: Optional[str]) -> WriteResult:
        # TODO: decide whether removal should also pull the mirrored link from the peer
        if not user_uid or not collaborator_email:
            raise ValidationError("userUid and collaboratorEmail required")
        result = await self._store.remove_from_set_field(
            user_uid, COLLABORATION_FIELD, {PEER_KEY: collaborator_email}
        )
        logger.info("Removed collaborator %s from %s", collaborator_email, user_uid)
        return result

    async def update_shared_tasks(
        self,
        user_uid: Optional[str],
        collaborator_email: Optional[str],
        shared_tasks: Any,
    ) -> WriteResult:
        """
        Replace the shared task list on the caller's link to the collaborator.
        No matching link is not an error: the result has matched_count == 0.
        """
        if not user_uid or not collaborator_email or not isinstance(shared_tasks, list):
            raise ValidationError("userUid, collaboratorEmail, sharedTasks required")
        result = await self._store.update_matched_array_element(
            user_uid,
            COLLABORATION_FIELD,
            {PEER_KEY: collaborator_email},
            {"sharedTasks": shared_tasks},
        )
        if not result.matched:
            logger.info("No collaboration link from %s to %s; shared tasks not saved", user_uid, collaborator_email)
        return result
