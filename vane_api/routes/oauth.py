from __future__ import annotations

import logging
import secrets

from fastapi import APIRouter, Depends, Response
from fastapi.responses import RedirectResponse

from vane_api.auth import get_session_store, require_uid
from vane_api.context import AppContext, get_context
from vane_api.errors import ValidationError
from vane_api.schemas import UserOut
from vane_api.session import (
    GITHUB_ID_KEY,
    OAUTH_STATE_KEY,
    USER_UID_KEY,
    SessionStore,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/login/github")
async def github_login(
    context: AppContext = Depends(get_context),
    session: SessionStore = Depends(get_session_store),
):
    state = secrets.token_urlsafe(16)
    session.set(OAUTH_STATE_KEY, state)
    return RedirectResponse(context.oauth.build_authorize_url(state))


@router.get("/login/github/callback", response_model=UserOut)
async def github_callback(
    code: str | None = None,
    state: str | None = None,
    context: AppContext = Depends(get_context),
    session: SessionStore = Depends(get_session_store),
):
    expected_state = session.pop(OAUTH_STATE_KEY)
    if not code:
        raise ValidationError("Missing authorization code")
    if not state or not expected_state or not secrets.compare_digest(state, expected_state):
        raise ValidationError("Invalid OAuth state")
    access_token = await context.oauth.exchange_code(code)
    github_id = await context.oauth.fetch_user_id(access_token)
    user = await context.users.find_or_create_from_provider(github_id, access_token)
    session.set(USER_UID_KEY, user.uid)
    session.set(GITHUB_ID_KEY, user.github_id)
    logger.info("User %s logged in with GitHub id %s", user.uid, user.github_id)
    return UserOut(uid=user.uid, github_id=user.github_id)


@router.get("/me", response_model=UserOut)
async def me(uid: str = Depends(require_uid), session: SessionStore = Depends(get_session_store)):
    return UserOut(uid=uid, github_id=session.get(GITHUB_ID_KEY, ""))


@router.post("/logout", status_code=204)
async def logout(session: SessionStore = Depends(get_session_store)):
    session.clear()
    return Response(status_code=204)
