"""
Team management API (admin only).

Adding a team member creates the sign-in credential and the app profile.
Removing one deletes the profile only: the credential stays with the
identity provider, and the response says so.
"""

from __future__ import annotations

import logging
from typing import List

from fastapi import APIRouter, Depends, status

from remedy_tracker import schemas
from remedy_tracker.api.errors import to_http_exception
from remedy_tracker.app_bootstrap.dependencies import get_event_stream_dep, get_identity_dep, get_user_store_dep
from remedy_tracker.errors import NotFoundError, RemedyTrackerError, ValidationError
from remedy_tracker.identity import IdentityProvider
from remedy_tracker.runtime.event_stream import NOTIFY_ERROR, EventStream
from remedy_tracker.store.catalog import UserStore
from remedy_tracker.store.records import ROLE_TEAM_MEMBER


router = APIRouter(prefix="/team", tags=["team"])
logger = logging.getLogger(__name__)


@router.get("", response_model=List[schemas.UserResponse])
def list_team(users: UserStore = Depends(get_user_store_dep)) -> List[schemas.UserResponse]:
    return [schemas.UserResponse.from_record(u) for u in users.list_users_by_role(ROLE_TEAM_MEMBER)]


@router.post("", response_model=schemas.UserResponse, status_code=status.HTTP_201_CREATED)
def add_team_member(
    request: schemas.TeamMemberRequest,
    users: UserStore = Depends(get_user_store_dep),
    identity: IdentityProvider = Depends(get_identity_dep),
    events: EventStream = Depends(get_event_stream_dep),
) -> schemas.UserResponse:
    """Create the credential, then the team-member profile."""

    try:
        if users.get_user_by_email(request.email) is not None:
            raise ValidationError(f"a profile already uses {request.email.strip().lower()}")
        uid = identity.create_credential(request.email, request.password)
        user = users.create_user(uid=uid, name=request.name, email=request.email, role=ROLE_TEAM_MEMBER)
    except RemedyTrackerError as exc:
        events.notify(f"Failed to add team member: {exc}", NOTIFY_ERROR)
        raise to_http_exception(exc) from exc

    events.notify("Team member added successfully!", uid=user.uid)
    return schemas.UserResponse.from_record(user)


@router.delete("/{uid}", response_model=schemas.DeleteTeamMemberResponse)
def remove_team_member(
    uid: str,
    users: UserStore = Depends(get_user_store_dep),
    events: EventStream = Depends(get_event_stream_dep),
) -> schemas.DeleteTeamMemberResponse:
    """Delete a team member's profile (the credential is retained)."""

    try:
        user = users.get_user(uid)
        if user is None or user.role != ROLE_TEAM_MEMBER:
            raise NotFoundError(f"team member not found: {uid}")
        users.delete_user(uid)
    except RemedyTrackerError as exc:
        events.notify(f"Failed to delete team member: {exc}", NOTIFY_ERROR, uid=uid)
        raise to_http_exception(exc) from exc

    logger.info("team member removed uid=%s (credential retained)", uid)
    events.notify("Team member deleted successfully!", uid=uid)
    return schemas.DeleteTeamMemberResponse(uid=uid)
