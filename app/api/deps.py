"""
Dependency wiring for the routers.

The store is built once in the application lifespan and kept on app.state;
tests swap it through app.dependency_overrides[get_user_store].
"""

from typing import Annotated

from fastapi import Depends, Request

from app.errors import StoreConnectivityError
from app.services.collaboration_service import CollaborationService
from app.services.user_service import UserService
from app.services.user_store import UserStore


def get_user_store(request: Request) -> UserStore:
    store = getattr(request.app.state, "user_store", None)
    if store is None:
        raise StoreConnectivityError("Database not initialized")
    return store


def get_user_service(store: Annotated[UserStore, Depends(get_user_store)]) -> UserService:
    return UserService(store)


def get_collaboration_service(
    store: Annotated[UserStore, Depends(get_user_store)],
) -> CollaborationService:
    return CollaborationService(store)
