from __future__ import annotations

import copy
import re
from datetime import datetime, timedelta, timezone
from uuid import uuid4

import httpx
import pytest
from fastapi.testclient import TestClient

from vane_api.main import create_app
from vane_api.services.github_oauth import TOKEN_URL, USER_API, GitHubOAuth
from vane_api.services.habits import VANES_QUERY
from vane_api.services.users import USER_BY_GITHUB_ID_QUERY
from vane_api.settings import Settings
from vane_api.store import DocumentStore, StoreError

DAY_SELECTOR = re.compile(r'^(\w+)\[day == "([^"]+)"\]$')


class InMemoryStore(DocumentStore):
    """Applies mutations to a dict, all-or-nothing per call."""

    def __init__(self):
        self.documents: dict[str, dict] = {}
        self.mutation_calls: list[list[dict]] = []
        self.reject_mutations = False
        self._clock = datetime(2021, 1, 1, tzinfo=timezone.utc)

    def _next_created_at(self) -> str:
        self._clock += timedelta(seconds=1)
        return self._clock.isoformat().replace("+00:00", "Z")

    def of_type(self, doc_type: str) -> list[dict]:
        return [doc for doc in self.documents.values() if doc.get("_type") == doc_type]

    async def fetch(self, query, params=None):
        params = params or {}
        published = [doc for doc in self.documents.values() if not doc["_id"].startswith("drafts.")]
        if query == VANES_QUERY:
            vanes = [doc for doc in published if doc["_type"] == "vane"]
            vanes.sort(key=lambda doc: doc["_createdAt"], reverse=True)
            return copy.deepcopy(vanes)
        if query == USER_BY_GITHUB_ID_QUERY:
            for doc in published:
                if doc["_type"] == "user" and doc.get("github_id") == params["githubId"]:
                    return copy.deepcopy(doc)
            return None
        raise AssertionError(f"Unexpected query {query!r}")

    async def mutate(self, mutations):
        self.mutation_calls.append(copy.deepcopy(mutations))
        if self.reject_mutations:
            raise StoreError("Mutation rejected", status_code=409)
        staged = copy.deepcopy(self.documents)
        results = []
        for mutation in mutations:
            if "create" in mutation:
                doc = copy.deepcopy(mutation["create"])
                doc.setdefault("_id", uuid4().hex)
                doc["_createdAt"] = self._next_created_at()
                staged[doc["_id"]] = doc
                results.append({"id": doc["_id"], "operation": "create", "document": copy.deepcopy(doc)})
            elif "delete" in mutation:
                doc_id = mutation["delete"]["id"]
                if staged.pop(doc_id, None) is not None:
                    results.append({"id": doc_id, "operation": "delete"})
            elif "patch" in mutation:
                doc = self._apply_patch(staged, mutation["patch"])
                results.append({"id": doc["_id"], "operation": "update", "document": copy.deepcopy(doc)})
        self.documents = staged
        return results

    @staticmethod
    def _apply_patch(staged, patch):
        doc = staged.get(patch["id"])
        if doc is None:
            raise StoreError(f"Document {patch['id']} not found", status_code=409)
        for key, value in patch.get("setIfMissing", {}).items():
            doc.setdefault(key, copy.deepcopy(value))
        for selector in patch.get("unset", []):
            match = DAY_SELECTOR.match(selector)
            if not match:
                raise StoreError(f"Unsupported selector {selector}", status_code=400)
            path, day = match.groups()
            if path in doc:
                doc[path] = [item for item in doc[path] if item.get("day") != day]
        insert = patch.get("insert")
        if insert:
            path = insert["after"].split("[", 1)[0]
            if not isinstance(doc.get(path), list):
                raise StoreError(f"Cannot insert into missing array {path}", status_code=409)
            doc[path].extend(copy.deepcopy(insert["items"]))
        return doc


def github_handler(user_payload=None, token_payload=None):
    user_payload = {"id": 123, "login": "octocat"} if user_payload is None else user_payload
    token_payload = {"access_token": "gh-token", "token_type": "bearer"} if token_payload is None else token_payload

    def handler(request: httpx.Request) -> httpx.Response:
        if str(request.url) == TOKEN_URL:
            return httpx.Response(200, json=token_payload)
        if str(request.url) == USER_API:
            return httpx.Response(200, json=user_payload)
        return httpx.Response(404, json={"message": "Not Found"})

    return handler


def make_github(settings: Settings, handler) -> GitHubOAuth:
    return GitHubOAuth(
        client_id=settings.github_client_id,
        client_secret=settings.github_client_secret,
        redirect_uri=settings.oauth_callback_url,
        http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
    )


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        SANITY_TOKEN="sanity-token",
        GITHUB_OAUTH_CLIENT_ID="client-id",
        GITHUB_OAUTH_CLIENT_SECRET="client-secret",
        BASE_URL="http://testserver",
        SESSION_SECRET="session-secret",
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def github_factory(settings):
    def factory(user_payload=None, token_payload=None, handler=None) -> GitHubOAuth:
        return make_github(settings, handler or github_handler(user_payload, token_payload))

    return factory


@pytest.fixture
def github(github_factory) -> GitHubOAuth:
    return github_factory()


@pytest.fixture
def client(settings, store, github):
    with TestClient(create_app(settings, store=store, github=github)) as test_client:
        yield test_client
