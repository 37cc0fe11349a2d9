"""Minimal Supabase PostgREST client used by backend repositories only."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlencode
from urllib.request import Request, urlopen


QueryParams = dict[str, str | int] | list[tuple[str, str | int]]


@dataclass(slots=True)
class SupabaseSettings:
    url: str
    service_role_key: str
    timeout_seconds: float = 10.0


class SupabaseClient:
    def __init__(self, settings: SupabaseSettings) -> None:
        self.settings = settings

    def _headers(self, *, prefer: str | None = None) -> dict[str, str]:
        api_key = self.settings.service_role_key
        if not api_key:
            raise ValueError("Missing Supabase API key")
        headers = {
            "apikey": api_key,
            "Authorization": f"Bearer {api_key}",
            "Accept": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def _url(self, table: str, query: QueryParams | None = None) -> str:
        base_url = f"{self.settings.url}/rest/v1/{table}"
        if not query:
            return base_url
        return f"{base_url}?{urlencode(query, doseq=True)}"

    def _send(self, request: Request) -> tuple[Any, Any]:
        try:
            with urlopen(request, timeout=self.settings.timeout_seconds) as response:  # noqa: S310 - URL comes from trusted env config
                raw_body = response.read().decode("utf-8")
                payload = json.loads(raw_body) if raw_body.strip() else []
                return payload, response.headers
        except HTTPError as exc:
            body = exc.read().decode("utf-8", errors="replace")[:500]
            raise RuntimeError(
                f"Supabase request failed with status {exc.code}: {body}"
            ) from exc
        except URLError as exc:
            raise RuntimeError(f"Supabase request failed: {exc.reason}") from exc

    def get_rows(
        self,
        *,
        table: str,
        query: QueryParams,
        with_count: bool,
    ) -> tuple[list[dict[str, Any]], int | None]:
        """Fetch rows from PostgREST and optionally parse exact row count."""

        request = Request(
            url=self._url(table, query),
            headers=self._headers(prefer="count=exact" if with_count else None),
            method="GET",
        )
        rows, headers = self._send(request)
        total: int | None = None
        if with_count:
            content_range = headers.get("content-range")
            if content_range and "/" in content_range:
                _, total_str = content_range.split("/", maxsplit=1)
                total = int(total_str)
        return rows, total

    def post_rows(
        self,
        *,
        table: str,
        payload: dict[str, Any] | list[dict[str, Any]],
        prefer: str = "return=representation",
    ) -> list[dict[str, Any]]:
        request = Request(
            url=self._url(table),
            data=json.dumps(payload).encode("utf-8"),
            headers={**self._headers(prefer=prefer), "Content-Type": "application/json"},
            method="POST",
        )
        rows, _ = self._send(request)
        return rows

    def delete_rows(self, *, table: str, query: QueryParams) -> list[dict[str, Any]]:
        """Delete rows matching query; PostgREST refuses unfiltered deletes."""

        request = Request(
            url=self._url(table, query),
            headers=self._headers(prefer="return=minimal"),
            method="DELETE",
        )
        rows, _ = self._send(request)
        return rows
