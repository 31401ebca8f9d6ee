from __future__ import annotations

import logging
from urllib.parse import urlencode

import httpx

from vane_api.errors import IdentityError

logger = logging.getLogger(__name__)

AUTH_URL = "https://github.com/login/oauth/authorize"
TOKEN_URL = "https://github.com/login/oauth/access_token"
USER_API = "https://api.github.com/user"


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if not isinstance(payload, dict):
        return response.text
    return payload.get("error_description") or payload.get("message") or payload.get("error") or response.text


class GitHubOAuth:
    """Authorization-code flow against GitHub.

    Only the code exchange and the user lookup live here; the returned token
    is used as-is, never validated or refreshed.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        redirect_uri: str,
        timeout: float = 20.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.redirect_uri = redirect_uri
        self._client = http_client or httpx.AsyncClient(timeout=timeout)

    def build_authorize_url(self, state: str) -> str:
        params = {
            "client_id": self.client_id,
            "redirect_uri": self.redirect_uri,
            "state": state,
        }
        return f"{AUTH_URL}?{urlencode(params)}"

    async def exchange_code(self, code: str) -> str:
        payload = {
            "code": code,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "redirect_uri": self.redirect_uri,
        }
        try:
            response = await self._client.post(TOKEN_URL, data=payload, headers={"Accept": "application/json"})
        except httpx.HTTPError as exc:
            raise IdentityError(f"GitHub token exchange failed: {exc}") from exc
        if response.status_code >= 400:
            raise IdentityError(f"GitHub token exchange failed ({response.status_code}): {_error_message(response)}")
        token_data = response.json()
        access_token = token_data.get("access_token")
        if not access_token:
            # GitHub reports a bad or reused code with a 200 and an error field.
            raise IdentityError(f"GitHub did not return an access token: {_error_message(response)}")
        return access_token

    async def fetch_user_id(self, access_token: str) -> str:
        headers = {
            "Authorization": f"token {access_token}",
            "Accept": "application/vnd.github+json",
        }
        try:
            response = await self._client.get(USER_API, headers=headers)
        except httpx.HTTPError as exc:
            raise IdentityError(f"GitHub user lookup failed: {exc}") from exc
        if response.status_code >= 400:
            raise IdentityError(f"GitHub user lookup failed ({response.status_code}): {_error_message(response)}")
        user_id = response.json().get("id")
        if not user_id:
            raise IdentityError("User id not found from GitHub")
        logger.debug("GitHub user lookup returned id %s", user_id)
        return str(user_id)

    async def aclose(self) -> None:
        await self._client.aclose()
