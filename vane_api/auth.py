from __future__ import annotations

from fastapi import Depends, HTTPException, Request

from vane_api.context import AppContext, get_context
from vane_api.session import SessionStore, USER_UID_KEY


def get_session_store(request: Request, context: AppContext = Depends(get_context)) -> SessionStore:
    return SessionStore(request.session, context.fernet)


async def require_uid(session: SessionStore = Depends(get_session_store)) -> str:
    uid = session.get(USER_UID_KEY)
    if not uid:
        raise HTTPException(status_code=401, detail="Not logged in")
    return uid
