"""Unit tests for Supabase client query encoding and error normalization."""

from __future__ import annotations

import json
from io import BytesIO
from urllib.error import HTTPError, URLError

import pytest

from backend.db.supabase_client import SupabaseClient, SupabaseSettings


def _build_client() -> SupabaseClient:
    return SupabaseClient(
        SupabaseSettings(url="https://example.supabase.co", service_role_key="service-role", timeout_seconds=5.0)
    )


def _response(body: bytes, headers: dict[str, str] | None = None):
    class _Response:
        def __init__(self) -> None:
            self.headers = headers or {}

        def __enter__(self):
            return self

        def __exit__(self, exc_type, exc, tb):
            return False

        def read(self) -> bytes:
            return body

    return _Response()


def test_get_rows_uses_doseq_for_repeated_query_keys(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()

    def _fake_urlopen(request, timeout=None):
        assert "price=gte.101" in request.full_url
        assert "price=lte.200" in request.full_url
        assert timeout == 5.0
        assert request.get_header("Prefer") is None
        return _response(b"[]")

    monkeypatch.setattr("backend.db.supabase_client.urlopen", _fake_urlopen)

    rows, total = client.get_rows(
        table="transactions",
        query=[("price", "gte.101"), ("price", "lte.200")],
        with_count=False,
    )

    assert rows == []
    assert total is None


def test_get_rows_parses_exact_count(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()

    def _fake_urlopen(request, timeout=None):
        assert request.get_header("Prefer") == "count=exact"
        return _response(b'[{"id": 1}]', headers={"content-range": "0-0/42"})

    monkeypatch.setattr("backend.db.supabase_client.urlopen", _fake_urlopen)

    rows, total = client.get_rows(table="transactions", query={"select": "id", "limit": 1}, with_count=True)

    assert rows == [{"id": 1}]
    assert total == 42


def test_get_rows_includes_status_and_body_on_http_error(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()

    def _raise_http_error(_request, timeout=None):
        raise HTTPError(
            url="https://example.supabase.co/rest/v1/transactions",
            code=400,
            msg="Bad Request",
            hdrs=None,
            fp=BytesIO(b"Bad Request from Supabase"),
        )

    monkeypatch.setattr("backend.db.supabase_client.urlopen", _raise_http_error)

    with pytest.raises(RuntimeError, match="status 400") as error:
        client.get_rows(table="transactions", query={"select": "*"}, with_count=False)

    assert "Bad Request from Supabase" in str(error.value)


def test_unreachable_store_is_normalized(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()

    def _raise_url_error(_request, timeout=None):
        raise URLError("connection refused")

    monkeypatch.setattr("backend.db.supabase_client.urlopen", _raise_url_error)

    with pytest.raises(RuntimeError, match="connection refused"):
        client.get_rows(table="transactions", query={"select": "*"}, with_count=False)


def test_post_rows_sends_json_payload(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()

    def _fake_urlopen(request, timeout=None):
        assert request.get_method() == "POST"
        assert request.full_url == "https://example.supabase.co/rest/v1/transactions"
        assert request.get_header("Prefer") == "return=minimal"
        assert request.get_header("Content-type") == "application/json"
        assert json.loads(request.data.decode("utf-8")) == [{"id": 1, "month": 3}]
        return _response(b"")

    monkeypatch.setattr("backend.db.supabase_client.urlopen", _fake_urlopen)

    rows = client.post_rows(table="transactions", payload=[{"id": 1, "month": 3}], prefer="return=minimal")

    assert rows == []


def test_delete_rows_uses_delete_method_and_query_params(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _build_client()

    def _fake_urlopen(request, timeout=None):
        assert request.get_method() == "DELETE"
        assert request.full_url == "https://example.supabase.co/rest/v1/transactions?id=not.is.null"
        return _response(b"")

    monkeypatch.setattr("backend.db.supabase_client.urlopen", _fake_urlopen)

    rows = client.delete_rows(table="transactions", query={"id": "not.is.null"})

    assert rows == []
