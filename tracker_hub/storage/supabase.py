"""Supabase (PostgREST) repository.

Trackers, runs and results live in the ``trackers``, ``tracker_runs`` and
``tracker_results`` tables. Foreign keys declared ON DELETE CASCADE remove a
tracker's runs and results when the tracker row is deleted.
"""

from typing import Any

import httpx

from ..models.base import RunStatus
from ..models.tracker import (
    ResultMetadata,
    RunMetadata,
    Tracker,
    TrackerConfig,
    TrackerResult,
    TrackerRun,
)
from ..utils.errors import PersistenceError
from ..utils.logging import get_logger

logger = get_logger(__name__)

TRACKERS = "trackers"
RUNS = "tracker_runs"
RESULTS = "tracker_results"


class SupabaseTrackerRepository:
    """TrackerRepository backed by Supabase's REST interface."""

    def __init__(
        self,
        url: str,
        api_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 15.0,
    ):
        self.base_url = f"{url.rstrip('/')}/rest/v1"
        self.api_key = api_key
        self.timeout = timeout
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(timeout=timeout)

    def _headers(self, prefer: str | None = None) -> dict[str, str]:
        headers = {
            "apikey": self.api_key,
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        if prefer:
            headers["Prefer"] = prefer
        return headers

    async def _request(
        self,
        method: str,
        table: str,
        operation: str,
        params: dict[str, str] | None = None,
        json: Any = None,
        prefer: str | None = None,
    ) -> list[dict[str, Any]]:
        """Send one PostgREST request and return the rows it answered with."""
        try:
            response = await self.client.request(
                method,
                f"{self.base_url}/{table}",
                params=params,
                json=json,
                headers=self._headers(prefer),
                timeout=self.timeout,
            )
        except httpx.HTTPError as e:
            raise PersistenceError(
                f"Storage request failed during {operation}: {e}",
                operation=operation,
                original_error=e,
            ) from e

        if response.status_code >= 400:
            raise PersistenceError(
                f"Storage returned HTTP {response.status_code} during {operation}: "
                f"{response.text[:200]}",
                operation=operation,
                details={"status": response.status_code},
            )

        if not response.content:
            return []
        try:
            rows = response.json()
        except ValueError as e:
            raise PersistenceError(
                f"Storage returned invalid JSON during {operation}",
                operation=operation,
                original_error=e,
            ) from e
        return rows if isinstance(rows, list) else [rows]

    async def _write_one(
        self,
        method: str,
        table: str,
        operation: str,
        row: dict[str, Any],
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        rows = await self._request(
            method,
            table,
            operation,
            params=params,
            json=row,
            prefer="return=representation",
        )
        if not rows:
            raise PersistenceError(
                f"Storage returned no row for {operation}", operation=operation
            )
        return rows[0]

    # Trackers

    async def create_tracker(self, tracker: Tracker) -> Tracker:
        row = await self._write_one(
            "POST", TRACKERS, "create_tracker", _tracker_to_row(tracker)
        )
        return _tracker_from_row(row)

    async def get_tracker(self, tracker_id: str) -> Tracker | None:
        rows = await self._request(
            "GET",
            TRACKERS,
            "get_tracker",
            params={"id": f"eq.{tracker_id}", "select": "*", "limit": "1"},
        )
        return _tracker_from_row(rows[0]) if rows else None

    async def update_tracker(self, tracker: Tracker) -> Tracker:
        row = await self._write_one(
            "PATCH",
            TRACKERS,
            "update_tracker",
            _tracker_to_row(tracker),
            params={"id": f"eq.{tracker.id}"},
        )
        return _tracker_from_row(row)

    async def delete_tracker(self, tracker_id: str) -> None:
        await self._request(
            "DELETE", TRACKERS, "delete_tracker", params={"id": f"eq.{tracker_id}"}
        )

    async def list_public_trackers(self, limit: int = 20) -> list[Tracker]:
        rows = await self._request(
            "GET",
            TRACKERS,
            "list_public_trackers",
            params={
                "is_public": "eq.true",
                "select": "*",
                "order": "created_at.desc",
                "limit": str(limit),
            },
        )
        return [_tracker_from_row(row) for row in rows]

    # Runs

    async def create_run(self, run: TrackerRun) -> TrackerRun:
        row = await self._write_one("POST", RUNS, "create_run", _run_to_row(run))
        return _run_from_row(row)

    async def update_run(self, run: TrackerRun) -> TrackerRun:
        row = await self._write_one(
            "PATCH", RUNS, "update_run", _run_to_row(run), params={"id": f"eq.{run.id}"}
        )
        return _run_from_row(row)

    async def get_run(self, run_id: str) -> TrackerRun | None:
        rows = await self._request(
            "GET",
            RUNS,
            "get_run",
            params={"id": f"eq.{run_id}", "select": "*", "limit": "1"},
        )
        return _run_from_row(rows[0]) if rows else None

    async def get_latest_completed_run(self, tracker_id: str) -> TrackerRun | None:
        rows = await self._request(
            "GET",
            RUNS,
            "get_latest_completed_run",
            params={
                "tracker_id": f"eq.{tracker_id}",
                "status": f"eq.{RunStatus.COMPLETED.value}",
                "select": "*",
                "order": "completed_at.desc.nullslast,started_at.desc",
                "limit": "1",
            },
        )
        return _run_from_row(rows[0]) if rows else None

    # Results

    async def save_results(self, results: list[TrackerResult]) -> None:
        if not results:
            return
        await self._request(
            "POST",
            RESULTS,
            "save_results",
            json=[_result_to_row(result) for result in results],
            prefer="return=minimal",
        )
        logger.debug(f"Stored {len(results)} results")

    async def list_results(self, run_id: str) -> list[TrackerResult]:
        rows = await self._request(
            "GET",
            RESULTS,
            "list_results",
            params={
                "run_id": f"eq.{run_id}",
                "select": "*",
                "order": "score.desc.nullslast",
            },
        )
        return [_result_from_row(row) for row in rows]

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def _tracker_to_row(tracker: Tracker) -> dict[str, Any]:
    return {
        "id": tracker.id,
        "user_id": tracker.owner_id,
        "name": tracker.name,
        "description": tracker.description,
        "prompt": tracker.prompt,
        "config": tracker.config.model_dump(mode="json"),
        "sources": list(tracker.config.platforms),
        "schedule": tracker.schedule,
        "is_public": tracker.is_public,
        "last_run_at": _iso(tracker.last_run_at),
        "created_at": _iso(tracker.created_at),
        "updated_at": _iso(tracker.updated_at),
    }


def _tracker_from_row(row: dict[str, Any]) -> Tracker:
    config = row.get("config") or {}
    config.setdefault("prompt", row["prompt"])
    config.setdefault("platforms", row.get("sources") or [])

    data = {
        "id": row["id"],
        "owner_id": row.get("user_id"),
        "name": row["name"],
        "description": row.get("description") or "",
        "prompt": row["prompt"],
        "config": TrackerConfig.model_validate(config),
        "is_public": row.get("is_public", True),
        "last_run_at": row.get("last_run_at"),
    }
    for optional in ("schedule", "created_at", "updated_at"):
        if row.get(optional):
            data[optional] = row[optional]
    return Tracker.model_validate(data)


def _run_to_row(run: TrackerRun) -> dict[str, Any]:
    return {
        "id": run.id,
        "tracker_id": run.tracker_id,
        "status": run.status.value,
        "error": run.error,
        "metadata": run.metadata.model_dump(mode="json"),
        "started_at": _iso(run.started_at),
        "completed_at": _iso(run.completed_at),
    }


def _run_from_row(row: dict[str, Any]) -> TrackerRun:
    return TrackerRun(
        id=row["id"],
        tracker_id=row["tracker_id"],
        status=RunStatus(row["status"]),
        started_at=row["started_at"],
        completed_at=row.get("completed_at"),
        error=row.get("error"),
        metadata=RunMetadata.model_validate(row.get("metadata") or {}),
    )


def _result_to_row(result: TrackerResult) -> dict[str, Any]:
    # The table has no rank column; rank travels inside metadata
    metadata = result.metadata.model_dump(mode="json")
    metadata["rank"] = result.rank

    return {
        "id": result.id,
        "run_id": result.run_id,
        "tracker_id": result.tracker_id,
        "title": result.title,
        "description": result.description,
        "content": result.content,
        "url": result.url,
        "images": list(result.images),
        "source": result.source,
        "score": result.score,
        "metadata": metadata,
        "created_at": _iso(result.created_at),
    }


def _result_from_row(row: dict[str, Any]) -> TrackerResult:
    metadata = dict(row.get("metadata") or {})
    rank = metadata.pop("rank", 0)

    return TrackerResult(
        id=row["id"],
        run_id=row["run_id"],
        tracker_id=row["tracker_id"],
        title=row["title"],
        description=row.get("description"),
        content=row.get("content"),
        url=row.get("url") or "",
        images=row.get("images") or [],
        source=row.get("source") or "unknown",
        score=row.get("score"),
        rank=rank,
        metadata=ResultMetadata.model_validate(metadata),
        created_at=row["created_at"],
    )


def _iso(value) -> str | None:
    return value.isoformat() if value else None
