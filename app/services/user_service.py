"""
User document lifecycle and field-scoped updates.

upsert_identity runs on every sign-in: the first call for a uid creates the
document with empty sub-collections and default settings, later calls only
refresh profile fields and lastLogin. Namaz and settings are saved as full
replacements because the client always sends the whole section.
"""

import logging
from datetime import datetime, timezone
from typing import Any, Callable, Dict, Mapping, Optional

from app.errors import DuplicateIdentityError, NotFoundError, ValidationError
from app.models.results import UpsertOutcome, WriteResult
from app.models.user import PROTECTED_FIELDS, UserDocument
from app.services.user_store import UserStore

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserService:
    def __init__(self, store: UserStore, clock: Callable[[], datetime] = utcnow) -> None:
        self._store = store
        self._clock = clock

    async def upsert_identity(
        self,
        uid: Optional[str],
        email: Optional[str],
        display_name: Optional[str] = None,
        avatar_url: Optional[str] = None,
        auth_provider: Optional[str] = None,
    ) -> UpsertOutcome:
        """
        Create the user document on first login, otherwise refresh the profile.
        Sub-collections and createdAt are never touched after creation.
        """
        if not uid or not email:
            raise ValidationError("uid and email required")

        existing = await self._store.find_by_id(uid)
        if existing is None:
            doc = UserDocument.new(uid, email, display_name, avatar_url, auth_provider, self._clock())
            try:
                result = await self._store.insert(doc.to_document())
            except DuplicateIdentityError:
                # A concurrent first login for the same uid won the insert
                logger.info("User %s was created concurrently; updating profile instead.", uid)
            else:
                logger.info("Created new user document for uid=%s", uid)
                return UpsertOutcome(created=True, result=result)

        result = await self._store.update_fields(
            uid,
            {
                "email": email,
                "displayName": display_name,
                "photoURL": avatar_url,
                "provider": auth_provider,
                "lastLogin": self._clock(),
            },
        )
        return UpsertOutcome(created=False, result=result)

    async def get_by_id(self, uid: str) -> Dict[str, Any]:
        """
        Stored document as-is. Client-owned sections are opaque, so the
        document is not validated against UserDocument on the way out.
        """
        doc = await self._store.find_by_id(uid)
        if doc is None:
            raise NotFoundError("User")
        return doc

    async def replace_fields(self, uid: str, fields: Any) -> WriteResult:
        """
        Bulk save from the client's in-memory state. Each top-level field is
        replaced wholesale; nested objects and arrays are not merged.
        """
        if not isinstance(fields, Mapping):
            raise ValidationError("update must be an object")
        update: Dict[str, Any] = {}
        for name, value in fields.items():
            if name in PROTECTED_FIELDS:
                logger.warning("Ignoring update of protected field %r for uid=%s", name, uid)
                continue
            update[name] = value
        if not update:
            raise ValidationError("no fields to update")
        return await self._store.update_fields(uid, update)

    async def replace_namaz(self, uid: str, records: Any) -> WriteResult:
        if not isinstance(records, list):
            raise ValidationError("namaz must be array")
        return await self._store.update_fields(uid, {"namaz": records})

    async def replace_settings(self, uid: str, settings: Any) -> WriteResult:
        if not isinstance(settings, dict):
            raise ValidationError("settings must be object")
        return await self._store.update_fields(uid, {"settings": settings})
