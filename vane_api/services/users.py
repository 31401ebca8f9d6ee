from __future__ import annotations

import logging

from vane_api.codec import new_key
from vane_api.errors import IdentityError
from vane_api.schemas import USER_TYPE, User
from vane_api.store import DocumentStore, StoreError

logger = logging.getLogger(__name__)

USER_BY_GITHUB_ID_QUERY = (
    "*[_type == 'user' && !(_id in path('drafts.**')) && github_id == $githubId][0]"
)


class UserService:
    def __init__(self, store: DocumentStore):
        self.store = store

    async def find_or_create_from_provider(self, provider_id, access_token: str) -> User:
        """Return the user linked to a GitHub id, creating it on first login.

        An existing user is returned as stored; its token is not rewritten.
        """
        if provider_id is None or str(provider_id).strip() == "":
            raise IdentityError("User id not found from GitHub")
        github_id = str(provider_id).strip()
        try:
            doc = await self.store.fetch(USER_BY_GITHUB_ID_QUERY, {"githubId": github_id})
            if doc:
                return User.model_validate(doc)
            logger.info("Creating user for GitHub id %s", github_id)
            doc = await self.store.create(
                {
                    "_type": USER_TYPE,
                    "uid": new_key(),
                    "github_id": github_id,
                    "auth_token": access_token,
                }
            )
        except StoreError as exc:
            logger.error("Could not load user for GitHub id %s: %s", github_id, exc)
            raise IdentityError("Could not load user") from exc
        return User.model_validate(doc)
