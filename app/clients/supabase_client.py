"""
app/clients/supabase_client.py — Supabase (PostgREST) topic store
Talks to /rest/v1/<table> with httpx. Any transport error or non-2xx status
is raised as StoreError; the service turns that into a 500 with no side effects.
"""
from __future__ import annotations

import time
from typing import Any, Optional

import httpx
from loguru import logger

from app.clients.topic_store import StoreError
from app.core import logging as app_logging
from app.models import NewTopic, Topic
from app.utils.similarity import find_similar

_RETURN_ROWS = {"Prefer": "return=representation"}


def _escape_like(value: str) -> str:
    """Escape LIKE metacharacters so the query is matched literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SupabaseTopicStore:
    backend_name = "supabase"

    def __init__(
        self,
        url: str,
        key: str,
        table: str = "temas",
        timeout: float = 10.0,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        if not url or not key:
            raise StoreError("SUPABASE_URL and SUPABASE_KEY are required for the supabase backend")
        self._table = table
        self._client = httpx.Client(
            base_url=f"{url.rstrip('/')}/rest/v1",
            headers={
                "apikey": key,
                "Authorization": f"Bearer {key}",
                "Content-Type": "application/json",
            },
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._client.close()

    # ──────────────────────────────────────────────────────────────────────────
    # HTTP helper
    # ──────────────────────────────────────────────────────────────────────────

    def _request(
        self,
        operation: str,
        method: str,
        params: Optional[dict[str, str]] = None,
        json_body: Any = None,
        headers: Optional[dict[str, str]] = None,
    ) -> list[dict[str, Any]]:
        start = time.monotonic()
        try:
            response = self._client.request(
                method,
                f"/{self._table}",
                params=params,
                json=json_body,
                headers=headers,
            )
            response.raise_for_status()
            rows = response.json() if response.content else []
        except (httpx.HTTPError, ValueError) as exc:
            latency_ms = (time.monotonic() - start) * 1000
            app_logging.log_store_operation(
                self.backend_name, operation, False, latency_ms, error=str(exc)
            )
            raise StoreError(f"Supabase {operation} failed: {exc}") from exc

        app_logging.log_store_operation(
            self.backend_name, operation, True, (time.monotonic() - start) * 1000
        )
        if not isinstance(rows, list):
            logger.warning(f"Supabase {operation}: expected a list, got {type(rows).__name__}")
            return [rows] if isinstance(rows, dict) else []
        return rows

    # ──────────────────────────────────────────────────────────────────────────
    # TopicStore
    # ──────────────────────────────────────────────────────────────────────────

    def list_topics(self) -> list[Topic]:
        rows = self._request("list", "GET", params={"select": "*", "order": "votos.desc"})
        return [Topic(**row) for row in rows]

    def get_topic(self, topic_id: int) -> Optional[Topic]:
        rows = self._request("get", "GET", params={"select": "*", "id": f"eq.{topic_id}"})
        return Topic(**rows[0]) if rows else None

    def search_titles(self, query: str) -> list[Topic]:
        # PostgREST reads "*" as a wildcard and it cannot be escaped in ilike,
        # so such queries are matched literally on our side
        if "*" in query:
            return find_similar(query, self.list_topics())
        rows = self._request(
            "search",
            "GET",
            params={
                "select": "*",
                "titulo": f"ilike.*{_escape_like(query)}*",
                "order": "votos.desc",
            },
        )
        return [Topic(**row) for row in rows]

    def insert_topic(self, topic: NewTopic) -> Topic:
        rows = self._request(
            "insert",
            "POST",
            json_body=[topic.model_dump(mode="json")],
            headers=_RETURN_ROWS,
        )
        if not rows:
            raise StoreError("Supabase insert returned no row")
        return Topic(**rows[0])

    def update_topic(self, topic_id: int, fields: dict[str, Any]) -> Optional[Topic]:
        payload = {k: (v.value if hasattr(v, "value") else v) for k, v in fields.items()}
        rows = self._request(
            "update",
            "PATCH",
            params={"id": f"eq.{topic_id}"},
            json_body=payload,
            headers=_RETURN_ROWS,
        )
        return Topic(**rows[0]) if rows else None

    def delete_topic(self, topic_id: int) -> bool:
        rows = self._request(
            "delete",
            "DELETE",
            params={"id": f"eq.{topic_id}"},
            headers=_RETURN_ROWS,
        )
        return bool(rows)
