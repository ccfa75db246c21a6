import threading
from typing import Any
from urllib.parse import quote

import requests

from ..config import Config

# Attribute configuration applied to the resource index on every bootstrap.
SEARCHABLE_ATTRIBUTES = [
    "name",
    "metadata.description",
    "metadata.category",
    "metadata.tags",
]
FILTERABLE_ATTRIBUTES = [
    "metadata.category",
    "metadata.rating",
    "metadata.tags",
    "id",
]
SORTABLE_ATTRIBUTES = [
    "createdAt",
    "metadata.fileSize",
    "metadata.rating",
    "updatedAt",
]
MAX_TOTAL_HITS = 10000


class IndexAlreadyExists(Exception):
    """Raised by ``create_index`` when the index uid is already taken."""


class MeiliClient:
    """Blocking HTTP client for one Meilisearch index.

    Every method raises on transport errors, non-2xx responses and
    malformed bodies; ``catalog.gateway.RemoteIndexGateway`` is the layer
    that turns those into degraded results.
    """

    def __init__(self, config: Config):
        self.config = config
        self._thread_local = threading.local()
        self.base_url = config.meili_url.rstrip("/")
        self.index_uid = config.index_uid

    @property
    def session(self) -> requests.Session:
        """Session bound to the calling thread."""
        return self._get_session()

    @property
    def index_url(self) -> str:
        return f"{self.base_url}/indexes/{quote(self.index_uid, safe='')}"

    def _get_session(self) -> requests.Session:
        """Get or create a thread-local requests.Session."""
        if not hasattr(self._thread_local, "session"):
            self._thread_local.session = self._create_session()
        return self._thread_local.session

    def _create_session(self) -> requests.Session:
        session = requests.Session()
        session.headers["Authorization"] = f"Bearer {self.config.api_key}"
        session.verify = not self.config.insecure
        return session

    def _request(
        self, method: str, url: str, payload: Any = None, **kwargs: Any
    ) -> requests.Response:
        """
        Issue one request against the Meilisearch API.

        JSON bodies are sent with ``Content-Type: application/json``.
        Raises ``requests.HTTPError`` for non-2xx responses.
        """
        if payload is not None:
            kwargs["json"] = payload
        response = self._get_session().request(
            method, url, timeout=(5, 30), **kwargs
        )
        response.raise_for_status()
        return response

    def health(self) -> bool:
        """Return True when ``GET /health`` reports ``available``."""
        response = self._request("GET", f"{self.base_url}/health")
        return response.json().get("status") == "available"

    def create_index(self) -> dict[str, Any]:
        """
        Create the index with ``id`` as primary key.

        Raises:
            IndexAlreadyExists: If the server reports the uid is taken.
        """
        try:
            response = self._request(
                "POST",
                f"{self.base_url}/indexes",
                {"uid": self.index_uid, "primaryKey": "id"},
            )
        except requests.HTTPError as e:
            if _is_already_exists(e.response):
                raise IndexAlreadyExists(self.index_uid) from e
            raise
        body = response.json()
        if isinstance(body, dict) and body.get("code") == "index_already_exists":
            raise IndexAlreadyExists(self.index_uid)
        return body

    def update_settings(
        self, ranking_rules: list[str] | None = None
    ) -> dict[str, Any]:
        """Apply searchable/filterable/sortable attributes and pagination."""
        settings: dict[str, Any] = {
            "searchableAttributes": SEARCHABLE_ATTRIBUTES,
            "filterableAttributes": FILTERABLE_ATTRIBUTES,
            "sortableAttributes": SORTABLE_ATTRIBUTES,
            "pagination": {"maxTotalHits": MAX_TOTAL_HITS},
        }
        if ranking_rules:
            settings["rankingRules"] = ranking_rules
        response = self._request(
            "PATCH", f"{self.index_url}/settings", settings
        )
        return response.json()

    def get_documents(self, limit: int) -> list[dict[str, Any]]:
        """
        Fetch up to *limit* raw documents.

        Accepts both ``{"results": [...]}`` and a bare array.

        Raises:
            ValueError: If the body is neither shape.
        """
        response = self._request(
            "GET", f"{self.index_url}/documents", params={"limit": limit}
        )
        body = response.json()
        if isinstance(body, dict):
            body = body.get("results")
        if not isinstance(body, list):
            raise ValueError("Unexpected documents payload from index")
        return body

    def add_documents(self, documents: list[dict[str, Any]]) -> dict[str, Any]:
        """Upsert documents (Meilisearch replaces by primary key)."""
        response = self._request(
            "POST", f"{self.index_url}/documents", documents
        )
        return response.json()

    def delete_document(self, document_id: str) -> None:
        self._request(
            "DELETE",
            f"{self.index_url}/documents/{quote(document_id, safe='')}",
        )

    def delete_documents(self, document_ids: list[str]) -> None:
        self._request(
            "POST", f"{self.index_url}/documents/delete-batch", document_ids
        )

    def search(self, query: str, limit: int) -> list[dict[str, Any]]:
        """
        Run a full-text search and return the raw hit dicts.

        Only ``id`` is retrieved; the ranking score is requested so
        callers can order by relevance.

        Raises:
            ValueError: If the body carries no ``hits`` list.
        """
        response = self._request(
            "POST",
            f"{self.index_url}/search",
            {
                "q": query,
                "limit": limit,
                "showRankingScore": True,
                "attributesToRetrieve": ["id"],
            },
        )
        body = response.json()
        hits = body.get("hits") if isinstance(body, dict) else None
        if not isinstance(hits, list):
            raise ValueError("Unexpected search payload from index")
        return hits


def _is_already_exists(response: requests.Response | None) -> bool:
    if response is None:
        return False
    if response.status_code == 409:
        return True
    try:
        body = response.json()
    except ValueError:
        return False
    return isinstance(body, dict) and body.get("code") == "index_already_exists"
