"""Zendesk REST API client.

Thin async wrapper around ``httpx`` that handles:

  - Authentication (OAuth bearer token preferred, API token as fallback)
  - Retry with exponential backoff via tenacity, only for rate limiting
    (HTTP 429) and transport failures
  - Converting any other non-2xx answer into an UpstreamError that keeps
    the upstream status and body for diagnosis
"""

from __future__ import annotations

import logging
from typing import Any

import httpx
from tenacity import (
    AsyncRetrying,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from prime_hub.config import ZendeskSettings
from prime_hub.exceptions import ConfigurationError, UpstreamError

logger = logging.getLogger(__name__)

CREATED_DESC = {"sort_by": "created_at", "sort_order": "desc"}
UPDATED_DESC = {"sort_by": "updated_at", "sort_order": "desc"}


class RateLimitedError(Exception):
    """Internal signal that Zendesk answered 429."""

    def __init__(self, response: httpx.Response) -> None:
        super().__init__(f"Rate limited: {response.status_code}")
        self.response = response


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class ZendeskClient:
    """Async Zendesk API v2 client bound to one subdomain."""

    def __init__(
        self,
        settings: ZendeskSettings,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.settings = settings
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self.request_count: int = 0

    @property
    def auth_method(self) -> str:
        return "OAuth" if self.settings.oauth_token else "API Token"

    def _build_auth(self) -> tuple[dict[str, str], httpx.Auth | None]:
        if not self.settings.has_credentials:
            logger.error(
                "Missing Zendesk credentials",
                extra={
                    "has_oauth_token": bool(self.settings.oauth_token),
                    "has_api_token": bool(self.settings.api_token),
                    "has_email": bool(self.settings.email),
                    "has_subdomain": bool(self.settings.subdomain),
                },
            )
            raise ConfigurationError("Zendesk credentials not configured")

        if self.settings.oauth_token:
            return {"Authorization": f"Bearer {self.settings.oauth_token}"}, None
        return {}, httpx.BasicAuth(
            f"{self.settings.email}/token", self.settings.api_token
        )

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the HTTP client with auth configured."""
        if self._client is None:
            headers, auth = self._build_auth()
            headers["Content-Type"] = "application/json"
            self._client = httpx.AsyncClient(
                base_url=self.settings.base_url,
                headers=headers,
                auth=auth,
                timeout=self.settings.timeout_seconds,
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def _send_once(
        self, client: httpx.AsyncClient, method: str, path: str, **kwargs: Any
    ) -> httpx.Response:
        self.request_count += 1
        response = await client.request(method, path, **kwargs)
        if response.status_code == 429:
            raise RateLimitedError(response)
        return response

    async def request(self, method: str, path: str, **kwargs: Any) -> dict[str, Any]:
        """Send one request and return the decoded JSON body.

        Raises:
            ConfigurationError: credentials are missing
            UpstreamError: non-2xx answer, or the retry budget ran out
        """
        client = await self._get_client()
        retrying = AsyncRetrying(
            retry=retry_if_exception_type((httpx.TransportError, RateLimitedError)),
            wait=wait_exponential(multiplier=self.settings.retry_wait_seconds, max=30),
            stop=stop_after_attempt(self.settings.retry_attempts),
            reraise=True,
        )

        try:
            async for attempt in retrying:
                with attempt:
                    response = await self._send_once(client, method, path, **kwargs)
        except RateLimitedError as e:
            response = e.response
        except httpx.TransportError as e:
            logger.error(
                "Zendesk unreachable",
                extra={"method": method, "path": path, "error": str(e)},
            )
            raise UpstreamError(f"Zendesk unreachable: {e}") from e

        if response.is_error:
            body = _response_body(response)
            logger.error(
                "Zendesk API error",
                extra={
                    "method": method,
                    "path": path,
                    "upstream_status": response.status_code,
                },
            )
            raise UpstreamError(
                f"Zendesk API error: {response.status_code}",
                upstream_status=response.status_code,
                upstream_body=body,
            )

        body = _response_body(response)
        return body if isinstance(body, dict) else {"data": body}

    #       TICKETS
    # ---------------------------

    async def list_tickets(self, organization_id: str | None = None) -> dict[str, Any]:
        if organization_id:
            path = f"/organizations/{organization_id}/tickets.json"
        else:
            path = "/tickets.json"
        return await self.request("GET", path, params=dict(CREATED_DESC))

    async def search(
        self,
        query: str,
        per_page: int | None = None,
        sort: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"query": query}
        if sort:
            params.update(sort)
        if per_page:
            params["per_page"] = per_page
        return await self.request("GET", "/search.json", params=params)

    async def create_ticket(self, ticket: dict[str, Any]) -> dict[str, Any]:
        return await self.request("POST", "/tickets.json", json={"ticket": ticket})

    async def get_ticket(self, ticket_id: str) -> dict[str, Any]:
        return await self.request("GET", f"/tickets/{ticket_id}.json")

    async def get_ticket_comments(self, ticket_id: str) -> dict[str, Any]:
        return await self.request("GET", f"/tickets/{ticket_id}/comments.json")

    async def get_ticket_audits(self, ticket_id: str) -> dict[str, Any]:
        return await self.request("GET", f"/tickets/{ticket_id}/audits.json")

    async def add_comment(self, ticket_id: str, comment: dict[str, Any]) -> dict[str, Any]:
        """Append a comment; Zendesk answers with the updated ticket and its audit."""
        return await self.request(
            "PUT", f"/tickets/{ticket_id}.json", json={"ticket": {"comment": comment}}
        )

    #       USERS
    # ---------------------------

    async def show_many_users(self, user_ids: list[str]) -> dict[str, Any]:
        return await self.request(
            "GET", "/users/show_many.json", params={"ids": ",".join(user_ids)}
        )

    async def find_user_by_email(self, email: str) -> dict[str, Any] | None:
        """Exact, case-insensitive email match among ``type:user`` search results."""
        data = await self.search(f"type:user email:{email}")
        wanted = email.lower()
        for user in data.get("results") or []:
            if (user.get("email") or "").lower() == wanted:
                return user
        return None

    #       ACCOUNT
    # ---------------------------

    async def get_current_user(self) -> dict[str, Any]:
        return await self.request("GET", "/users/me.json")

    async def get_organization(self, organization_id: str) -> dict[str, Any]:
        return await self.request("GET", f"/organizations/{organization_id}.json")

    async def sample_organization_tickets(
        self, organization_id: str, per_page: int = 5
    ) -> dict[str, Any]:
        return await self.request(
            "GET",
            f"/organizations/{organization_id}/tickets.json",
            params={"per_page": per_page},
        )
