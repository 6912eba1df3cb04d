# tests/unit/test_vector_db.py
"""
Tests for vector-similarity clients and score normalization.

The HTTP client is driven through httpx.MockTransport, so no service runs.
"""

from __future__ import annotations

import json
import math

import httpx
import pytest

from lorerank.core.chunk import Chunk
from lorerank.core.exceptions import CollectionUnavailableError
from lorerank.vector_db import (
    HttpVectorClient,
    NullVectorClient,
    VectorHit,
    VectorSimilarityClient,
    normalize_score,
)


def make_client(handler) -> HttpVectorClient:
    transport = httpx.MockTransport(handler)
    return HttpVectorClient(client=httpx.Client(base_url="http://vectors.test", transport=transport))


# ---------------------------------------------------------------------------
# Score normalization
# ---------------------------------------------------------------------------


class TestNormalizeScore:
    """Tests for normalize_score()."""

    def test_similarity_is_clamped(self):
        assert normalize_score(0.8) == 0.8
        assert normalize_score(1.4) == 1.0
        assert normalize_score(-0.2) == 0.0

    def test_cosine_distance(self):
        assert normalize_score(0.2, "cosine_distance") == pytest.approx(0.8)
        assert normalize_score(1.5, "cosine_distance") == 0.0

    def test_distance(self):
        assert normalize_score(1.0, "distance") == 0.5
        assert normalize_score(0.0, "distance") == 1.0
        assert normalize_score(-3.0, "distance") == 1.0

    def test_nan_and_none(self):
        assert normalize_score(math.nan) == 0.0
        assert normalize_score(None) == 0.0


# ---------------------------------------------------------------------------
# Null client
# ---------------------------------------------------------------------------


class TestNullVectorClient:
    """Tests for NullVectorClient."""

    def test_no_hits(self):
        client = NullVectorClient()

        assert isinstance(client, VectorSimilarityClient)
        assert client.query("lore", "a dragon", top_k=10) == []
        assert client.list_hashes("lore") == []


# ---------------------------------------------------------------------------
# HTTP client
# ---------------------------------------------------------------------------


class TestHttpVectorClient:
    """Tests for HttpVectorClient over a mock transport."""

    def test_query(self):
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["method"] = request.method
            seen["path"] = request.url.path
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200,
                json={"results": [{"hash": 1, "score": 0.9}, {"hash": 2}, {"score": 0.5}]},
            )

        hits = make_client(handler).query("lore", "a dragon", top_k=16, threshold=0.1)

        assert hits == [VectorHit(hash=1, score=0.9), VectorHit(hash=2, score=0.0)]
        assert seen == {
            "method": "POST",
            "path": "/collections/lore/query",
            "body": {"text": "a dragon", "top_k": 16, "threshold": 0.1},
        }

    def test_list_response(self):
        client = make_client(lambda request: httpx.Response(200, json=[{"hash": 3, "score": 0.4}]))

        assert client.query("lore", "q", top_k=5) == [VectorHit(hash=3, score=0.4)]

    def test_http_error(self):
        client = make_client(lambda request: httpx.Response(503, json={"error": "overloaded"}))

        with pytest.raises(CollectionUnavailableError) as exc_info:
            client.query("lore", "q", top_k=5)

        assert exc_info.value.status_code == 503
        assert exc_info.value.collection_id == "lore"
        assert "overloaded" in str(exc_info.value)

    def test_timeout(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        with pytest.raises(CollectionUnavailableError, match="timed out"):
            make_client(handler).query("lore", "q", top_k=5)

    def test_connection_error(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        with pytest.raises(CollectionUnavailableError) as exc_info:
            make_client(handler).query("lore", "q", top_k=5)

        assert exc_info.value.status_code is None

    def test_invalid_json(self):
        client = make_client(lambda request: httpx.Response(200, content=b"<html>"))

        with pytest.raises(CollectionUnavailableError, match="invalid JSON"):
            client.query("lore", "q", top_k=5)

    def test_insert_delete_list(self):
        requests = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append((request.method, request.url.path, request.content))
            if request.url.path.endswith("/hashes"):
                return httpx.Response(200, json={"hashes": [1, "2"]})
            return httpx.Response(204)

        with make_client(handler) as client:
            client.insert("lore", [Chunk(hash=1, text="a dragon")])
            client.delete("lore", [1])
            assert client.list_hashes("lore") == [1, 2]

        assert [(m, p) for m, p, _ in requests] == [
            ("POST", "/collections/lore/insert"),
            ("POST", "/collections/lore/delete"),
            ("GET", "/collections/lore/hashes"),
        ]
        assert json.loads(requests[0][2]) == {"items": [{"hash": 1, "text": "a dragon"}]}
        assert json.loads(requests[1][2]) == {"hashes": [1]}

    def test_api_key_header(self):
        client = HttpVectorClient("http://vectors.test", api_key="secret")

        assert client._client.headers["Authorization"] == "Bearer secret"
        client.close()
