# lorerank/vector_db/http.py
"""
HTTP vector-similarity client.

Talks to a JSON service exposing:
    POST /collections/{id}/query    {"text", "top_k", "threshold"} → {"results": [{"hash", "score"}]}
    POST /collections/{id}/insert   {"items": [{"hash", "text"}]}
    POST /collections/{id}/delete   {"hashes": [...]}
    GET  /collections/{id}/hashes   → {"hashes": [...]}

Transport and HTTP failures surface as CollectionUnavailableError so the
orchestrator can degrade that collection to empty.

Usage:
    with HttpVectorClient("http://localhost:8800") as client:
        hits = client.query("lore", "a dragon appears", top_k=16)
"""

from __future__ import annotations

from typing import Any, Dict, Optional, Sequence

import httpx

from lorerank.core.chunk import Chunk
from lorerank.core.exceptions import CollectionUnavailableError
from lorerank.logging.logger import get_logger
from lorerank.logging.tags import VECTOR_DB

from .base import VectorHit

logger = get_logger(__name__)

DEFAULT_TIMEOUT = 30.0

DEFAULT_HEADERS = {
    "Content-Type": "application/json",
    "Accept": "application/json",
}


def _error_details(response: httpx.Response) -> Optional[str]:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] if response.text else None
    if isinstance(data, dict):
        return data.get("message") or data.get("error") or None
    return None


class HttpVectorClient:
    """
    Vector service client over HTTP (httpx).

    Args:
        base_url: Service root URL
        api_key: Optional bearer token
        timeout: Request timeout in seconds
        client: Pre-built httpx.Client (tests pass one with a MockTransport)
    """

    def __init__(
        self,
        base_url: str = "",
        api_key: Optional[str] = None,
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        if client is None:
            headers = dict(DEFAULT_HEADERS)
            if api_key:
                headers["Authorization"] = f"Bearer {api_key}"
            client = httpx.Client(base_url=base_url, headers=headers, timeout=timeout)
            logger.debug(f"{VECTOR_DB} Created HTTP client for {base_url} (timeout={timeout}s)")
        self._client = client

    def __enter__(self) -> "HttpVectorClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def _request(
        self,
        method: str,
        collection_id: str,
        action: str,
        payload: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        path = f"/collections/{collection_id}/{action}"
        try:
            response = self._client.request(method, path, json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            details = _error_details(exc.response)
            message = f"vector service {action} failed"
            if details:
                message = f"{message}: {details}"
            raise CollectionUnavailableError(
                collection_id, message, status_code=exc.response.status_code
            ) from exc
        except httpx.TimeoutException as exc:
            raise CollectionUnavailableError(
                collection_id, f"vector service {action} timed out"
            ) from exc
        except httpx.HTTPError as exc:
            raise CollectionUnavailableError(
                collection_id, f"vector service {action} failed: {exc}"
            ) from exc

        if not response.content:
            return {}
        try:
            data = response.json()
        except ValueError as exc:
            raise CollectionUnavailableError(
                collection_id, f"vector service {action} returned invalid JSON"
            ) from exc
        return data if isinstance(data, dict) else {"results": data}

    def query(
        self,
        collection_id: str,
        text: str,
        top_k: int,
        threshold: float = 0.0,
    ) -> list[VectorHit]:
        data = self._request(
            "POST",
            collection_id,
            "query",
            {"text": text, "top_k": top_k, "threshold": threshold},
        )
        hits = [
            VectorHit(hash=int(row["hash"]), score=float(row.get("score", 0.0)))
            for row in data.get("results", [])
            if row.get("hash") is not None
        ]
        logger.debug(f"{VECTOR_DB} {collection_id}: {len(hits)} hits (top_k={top_k})")
        return hits

    def insert(self, collection_id: str, chunks: Sequence[Chunk]) -> None:
        items = [{"hash": c.hash, "text": c.text} for c in chunks]
        self._request("POST", collection_id, "insert", {"items": items})
        logger.info(f"{VECTOR_DB} Inserted {len(items)} chunks into {collection_id}")

    def delete(self, collection_id: str, hashes: Sequence[int]) -> None:
        self._request("POST", collection_id, "delete", {"hashes": list(hashes)})
        logger.info(f"{VECTOR_DB} Deleted {len(hashes)} chunks from {collection_id}")

    def list_hashes(self, collection_id: str) -> list[int]:
        data = self._request("GET", collection_id, "hashes")
        return [int(h) for h in data.get("hashes", [])]


__all__ = ["HttpVectorClient"]
