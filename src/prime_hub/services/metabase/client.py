"""Metabase API client used to read card (question) results."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx

from prime_hub.config import MetabaseSettings
from prime_hub.exceptions import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

MAX_SAMPLE_ROWS = 50


@dataclass
class CardResult:
    columns: list[str] = field(default_factory=list)
    rows: list[Any] = field(default_factory=list)


class MetabaseClient:
    def __init__(
        self,
        settings: MetabaseSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def is_configured(self) -> bool:
        return bool(self.settings.site_url and (self.settings.session or self.settings.api_key))

    def _auth_headers(self) -> dict[str, str]:
        # Metabase accepts either header, never an Authorization bearer.
        if self.settings.session:
            return {"X-Metabase-Session": self.settings.session}
        if self.settings.api_key:
            return {"X-Metabase-Api-Key": self.settings.api_key}
        raise ConfigurationError("Metabase API credentials not configured")

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            headers = self._auth_headers()
            headers["Content-Type"] = "application/json"
            self._client = httpx.AsyncClient(
                base_url=self.settings.site_url.rstrip("/"),
                headers=headers,
                timeout=self.settings.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        if self._client:
            await self._client.aclose()
            self._client = None

    async def query_card(
        self, card_id: int, parameters: dict[str, Any] | None = None
    ) -> CardResult:
        """Run a saved card and return its column names and first rows.

        Raises:
            ConfigurationError: no session or API key is configured
            UpstreamError: Metabase answered non-2xx or was unreachable
        """
        client = await self._get_client()
        try:
            response = await client.post(
                f"/api/card/{card_id}/query",
                json={"parameters": parameters or {}},
            )
        except httpx.HTTPError as e:
            raise UpstreamError(f"Metabase unreachable: {e}") from e

        if response.is_error:
            raise UpstreamError(
                f"Metabase API error: {response.status_code}",
                upstream_status=response.status_code,
                upstream_body=response.text,
            )

        # A 2xx HTML page means Metabase redirected to its login screen
        try:
            payload = response.json()
        except ValueError as e:
            raise UpstreamError(
                "Metabase returned a non-JSON response",
                upstream_status=response.status_code,
                upstream_body=response.text[:200],
            ) from e
        if not isinstance(payload, dict):
            raise UpstreamError(
                "Metabase returned an unexpected payload",
                upstream_status=response.status_code,
            )

        data = payload.get("data") or payload
        if not isinstance(data, dict):
            raise UpstreamError(
                "Metabase returned an unexpected payload",
                upstream_status=response.status_code,
            )
        cols = data.get("cols") or data.get("columns") or []
        rows = data.get("rows") or []

        columns = [
            c.get("name") if isinstance(c, dict) else str(c) for c in cols
        ]
        columns = [c for c in columns if c]
        sample = rows[:MAX_SAMPLE_ROWS] if isinstance(rows, list) else []
        logger.info(
            "Metabase card queried",
            extra={"card_id": card_id, "columns": len(columns), "rows": len(sample)},
        )
        return CardResult(columns=columns, rows=sample)
