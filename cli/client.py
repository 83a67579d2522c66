from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional

import httpx

from cli.config import CLIConfig
from models.records import Reading


class TransientFetchError(RuntimeError):
    """A query failed in transport or returned an unusable body."""


class UserActionError(RuntimeError):
    """An operator-triggered request (clear, push) was not carried out."""


@dataclass(frozen=True)
class RecentSnapshot:
    readings: List[Reading]
    total: int


class ApiClient:
    """Minimal HTTP client for the height monitor service."""

    def __init__(self, config: CLIConfig, client: Optional[httpx.Client] = None) -> None:
        self._config = config
        self._client = client or httpx.Client(
            base_url=config.base_url, timeout=config.request_timeout
        )

    def close(self) -> None:
        self._client.close()

    def fetch_latest(self) -> Optional[Reading]:
        payload = self._get_json("/api/height/current")
        if payload.get("height") is None:
            return None
        try:
            return Reading.from_payload(payload)
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise TransientFetchError(f"Malformed current reading: {exc}") from exc

    def fetch_recent(self, limit: int) -> RecentSnapshot:
        payload = self._get_json("/api/height", params={"limit": limit})
        try:
            readings = [Reading.from_payload(item) for item in payload.get("readings") or []]
            total = int(payload.get("total") or 0)
        except (KeyError, TypeError, ValueError, OverflowError) as exc:
            raise TransientFetchError(f"Malformed readings payload: {exc}") from exc
        return RecentSnapshot(readings=readings, total=total)

    def fetch_health(self) -> Dict[str, Any]:
        return self._get_json("/api/health")

    def clear_history(self) -> None:
        try:
            response = self._client.delete("/api/height")
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise UserActionError(self._describe_failure(exc.response)) from exc
        except httpx.HTTPError as exc:
            raise UserActionError(f"Failed to clear history: {exc}") from exc

    def submit_height(
        self,
        height: float,
        timestamp: Optional[int] = None,
        sensor_id: Optional[str] = None,
    ) -> Reading:
        body: Dict[str, Any] = {"height": height}
        if timestamp is not None:
            body["timestamp"] = timestamp
        if sensor_id is not None:
            body["sensor_id"] = sensor_id
        try:
            response = self._client.post("/api/height", json=body)
            response.raise_for_status()
            return Reading.from_payload(response.json()["reading"])
        except httpx.HTTPStatusError as exc:
            raise UserActionError(self._describe_failure(exc.response)) from exc
        except httpx.HTTPError as exc:
            raise UserActionError(f"Failed to submit reading: {exc}") from exc
        except (KeyError, TypeError, ValueError) as exc:
            raise UserActionError(f"Unexpected response when submitting reading: {exc}") from exc

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        try:
            response = self._client.get(path, params=params)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            raise TransientFetchError(f"Request to {path} failed: {exc}") from exc
        except ValueError as exc:
            raise TransientFetchError(f"Response from {path} is not JSON.") from exc
        if not isinstance(payload, dict):
            raise TransientFetchError(f"Unexpected payload from {path}.")
        return payload

    @staticmethod
    def _describe_failure(response: httpx.Response) -> str:
        detail: str | None = None
        try:
            data = response.json()
            detail = data.get("detail") if isinstance(data, dict) else None
        except ValueError:
            detail = response.text.strip()
        return f"Request failed with status {response.status_code}: {detail or 'no detail provided.'}"
