from __future__ import annotations

from dataclasses import dataclass

from cryptography.fernet import Fernet
from fastapi import Request

from vane_api.services.github_oauth import GitHubOAuth
from vane_api.services.habits import HabitService
from vane_api.services.users import UserService
from vane_api.settings import Settings
from vane_api.store import DocumentStore


@dataclass
class AppContext:
    settings: Settings
    store: DocumentStore
    habits: HabitService
    users: UserService
    oauth: GitHubOAuth
    fernet: Fernet

    async def aclose(self) -> None:
        await self.store.aclose()
        await self.oauth.aclose()


def get_context(request: Request) -> AppContext:
    return request.app.state.context
