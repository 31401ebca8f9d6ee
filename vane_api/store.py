from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional

import httpx

logger = logging.getLogger(__name__)

SANITY_HOST = "api.sanity.io"


class StoreError(Exception):
    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class DocumentNotFound(StoreError):
    pass


class Patch:
    """Accumulates patch operations for a single document."""

    def __init__(self, store: "DocumentStore", document_id: str):
        self._store = store
        self.document_id = document_id
        self.operations: Dict[str, Any] = {}

    def set_if_missing(self, values: dict) -> "Patch":
        self.operations.setdefault("setIfMissing", {}).update(values)
        return self

    def unset(self, selectors: List[str]) -> "Patch":
        self.operations.setdefault("unset", []).extend(selectors)
        return self

    def append(self, path: str, items: List[dict]) -> "Patch":
        self.operations["insert"] = {"after": f"{path}[-1]", "items": list(items)}
        return self

    def serialize(self) -> dict:
        return {"patch": {"id": self.document_id, **self.operations}}

    async def commit(self) -> dict:
        results = await self._store.mutate([self.serialize()])
        if not results:
            raise DocumentNotFound(f"Document {self.document_id} not found", status_code=404)
        return results[0].get("document") or {}


class Transaction:
    def __init__(self, store: "DocumentStore"):
        self._store = store
        self.mutations: List[dict] = []

    def create(self, doc: dict) -> "Transaction":
        self.mutations.append({"create": dict(doc)})
        return self

    async def commit(self) -> List[dict]:
        return await self._store.mutate(self.mutations)


class DocumentStore:
    """Query and mutation capability of the document database.

    Subclasses implement ``fetch`` and ``mutate``; the document-level helpers
    are expressed as mutations so every backend shares the same semantics.
    """

    async def fetch(self, query: str, params: Optional[dict] = None) -> Any:
        raise NotImplementedError

    async def mutate(self, mutations: List[dict]) -> List[dict]:
        raise NotImplementedError

    async def create(self, doc: dict) -> dict:
        results = await self.mutate([{"create": dict(doc)}])
        if not results:
            raise StoreError("Create returned no document")
        return results[0].get("document") or {}

    async def delete(self, document_id: str) -> None:
        results = await self.mutate([{"delete": {"id": document_id}}])
        if not results:
            raise DocumentNotFound(f"Document {document_id} not found", status_code=404)

    def patch(self, document_id: str) -> Patch:
        return Patch(self, document_id)

    def transaction(self) -> Transaction:
        return Transaction(self)

    async def aclose(self) -> None:
        return None


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text
    if not isinstance(payload, dict):
        return response.text
    error = payload.get("error")
    if isinstance(error, dict):
        return error.get("description") or error.get("type") or response.text
    return payload.get("message") or error or response.text


def _json_body(response: httpx.Response) -> dict:
    try:
        payload = response.json()
    except ValueError as exc:
        raise StoreError(f"Sanity returned a non-JSON body ({response.status_code})", status_code=response.status_code) from exc
    if not isinstance(payload, dict):
        raise StoreError(f"Sanity returned an unexpected body ({response.status_code})", status_code=response.status_code)
    return payload


class SanityClient(DocumentStore):
    def __init__(
        self,
        project_id: str,
        dataset: str,
        token: str,
        api_version: str = "v2021-03-25",
        timeout: float = 20.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.project_id = project_id
        self.dataset = dataset
        self.api_version = api_version if api_version.startswith("v") else f"v{api_version}"
        self.base_url = f"https://{project_id}.{SANITY_HOST}/{self.api_version}/data"
        self._client = http_client or httpx.AsyncClient(
            timeout=timeout,
            transport=httpx.AsyncHTTPTransport(retries=2),
        )
        self._headers = {"Authorization": f"Bearer {token}"}

    async def fetch(self, query: str, params: Optional[dict] = None) -> Any:
        query_params = {"query": query}
        for key, value in (params or {}).items():
            query_params[f"${key}"] = json.dumps(value)
        endpoint = f"{self.base_url}/query/{self.dataset}"
        response = await self._request("GET", endpoint, params=query_params)
        return _json_body(response).get("result")

    async def mutate(self, mutations: List[dict]) -> List[dict]:
        endpoint = f"{self.base_url}/mutate/{self.dataset}"
        params = {"returnIds": "true", "returnDocuments": "true", "visibility": "sync"}
        response = await self._request("POST", endpoint, params=params, json={"mutations": mutations})
        return _json_body(response).get("results") or []

    async def _request(self, method: str, url: str, **kwargs) -> httpx.Response:
        try:
            response = await self._client.request(method, url, headers=self._headers, **kwargs)
        except httpx.HTTPError as exc:
            raise StoreError(f"Sanity request failed: {exc}") from exc
        if response.status_code == 404:
            raise DocumentNotFound(_error_message(response), status_code=404)
        if response.status_code >= 400:
            message = _error_message(response)
            logger.warning("Sanity %s %s failed (%s): %s", method, url, response.status_code, message)
            raise StoreError(f"Sanity API error ({response.status_code}): {message}", status_code=response.status_code)
        return response

    async def aclose(self) -> None:
        await self._client.aclose()
