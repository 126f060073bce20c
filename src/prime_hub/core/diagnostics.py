"""
Zendesk integration diagnostics.

Runs a fixed sequence of checks for the calling user's school and reports
each one instead of stopping at the first failure.
"""

import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional

from prime_hub.exceptions import PrimeHubError
from prime_hub.services.auth import CallerContext
from prime_hub.services.zendesk import ZendeskClient

logger = logging.getLogger(__name__)


class CheckStatus(str, Enum):
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"


@dataclass
class DiagnosticResult:
    step: str
    status: CheckStatus
    message: str
    details: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["status"] = self.status.value
        return data


def _failure_details(exc: PrimeHubError, **extra) -> Dict[str, Any]:
    details = dict(extra)
    status = exc.details.get("upstream_status")
    if status is not None:
        details["status"] = status
    details["error"] = exc.message
    return details


class ZendeskDiagnostics:
    def __init__(self, client: ZendeskClient):
        self.client = client

    async def run(self, caller: CallerContext) -> Dict[str, Any]:
        results: List[DiagnosticResult] = []
        settings = self.client.settings

        has_credentials = settings.has_credentials
        results.append(
            DiagnosticResult(
                step="credentials_check",
                status=CheckStatus.SUCCESS if has_credentials else CheckStatus.ERROR,
                message=(
                    "Zendesk credentials are configured"
                    if has_credentials
                    else "Missing Zendesk credentials"
                ),
                details={
                    "has_oauth_token": bool(settings.oauth_token),
                    "has_api_token": bool(settings.api_token),
                    "has_subdomain": bool(settings.subdomain),
                    "has_email": bool(settings.email),
                },
            )
        )

        external_id = caller.tenant.zendesk_external_id if caller.tenant else None
        organization_id = caller.organization_id

        results.append(
            DiagnosticResult(
                step="profile_check",
                status=CheckStatus.SUCCESS,
                message="User profile loaded successfully",
                details={
                    "school_id": caller.school_id,
                    "role": caller.role.value,
                    "school_name": caller.school_name,
                    "external_id": external_id,
                    "organization_id": organization_id,
                    "has_external_id": bool(external_id),
                    "has_organization_id": bool(organization_id),
                },
            )
        )
        results.append(self._organization_check(caller, external_id, organization_id))

        if has_credentials:
            results.append(await self._api_connectivity())
            if external_id:
                results.append(await self._external_id_test(external_id))
            if organization_id:
                results.append(await self._organization_test(organization_id))
                if not external_id:
                    results.append(await self._tickets_test(organization_id))

        overall = self._overall(results)
        logger.info(
            "Zendesk diagnostics finished",
            extra={"school_id": caller.school_id, "overall_status": overall.value},
        )
        return {
            "overall_status": overall.value,
            "diagnostics": [r.to_dict() for r in results],
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @staticmethod
    def _overall(results: List[DiagnosticResult]) -> CheckStatus:
        statuses = {r.status for r in results}
        if CheckStatus.ERROR in statuses:
            return CheckStatus.ERROR
        if CheckStatus.WARNING in statuses:
            return CheckStatus.WARNING
        return CheckStatus.SUCCESS

    @staticmethod
    def _organization_check(
        caller: CallerContext,
        external_id: Optional[str],
        organization_id: Optional[str],
    ) -> DiagnosticResult:
        if not external_id and not organization_id:
            return DiagnosticResult(
                step="organization_check",
                status=CheckStatus.WARNING,
                message="Neither External ID nor Organization ID configured for this school",
                details={"school_id": caller.school_id},
            )
        return DiagnosticResult(
            step="organization_check",
            status=CheckStatus.SUCCESS,
            message=(
                "External ID found in configuration (preferred)"
                if external_id
                else "Organization ID found in configuration"
            ),
            details={
                "external_id": external_id,
                "organization_id": organization_id,
                "method": "external_id" if external_id else "organization_id",
            },
        )

    async def _api_connectivity(self) -> DiagnosticResult:
        try:
            data = await self.client.get_current_user()
        except PrimeHubError as e:
            return DiagnosticResult(
                step="api_connectivity",
                status=CheckStatus.ERROR,
                message="Zendesk API connection failed",
                details=_failure_details(e),
            )
        user = data.get("user") or {}
        return DiagnosticResult(
            step="api_connectivity",
            status=CheckStatus.SUCCESS,
            message="Zendesk API connection successful",
            details={
                "user_name": user.get("name"),
                "user_email": user.get("email"),
                "auth_method": self.client.auth_method,
            },
        )

    async def _external_id_test(self, external_id: str) -> DiagnosticResult:
        try:
            data = await self.client.search(
                f"type:ticket organization_external_id:{external_id}", per_page=5
            )
        except PrimeHubError as e:
            return DiagnosticResult(
                step="external_id_test",
                status=CheckStatus.ERROR,
                message="External ID search failed",
                details=_failure_details(e, external_id=external_id),
            )
        count = len(data.get("results") or [])
        return DiagnosticResult(
            step="external_id_test",
            status=CheckStatus.SUCCESS,
            message=f"External ID search successful - found {count} tickets",
            details={"ticket_count": count, "external_id": external_id},
        )

    async def _organization_test(self, organization_id: str) -> DiagnosticResult:
        try:
            data = await self.client.get_organization(organization_id)
        except PrimeHubError as e:
            return DiagnosticResult(
                step="organization_test",
                status=CheckStatus.ERROR,
                message="Organization not found or not accessible",
                details=_failure_details(e, organization_id=organization_id),
            )
        org = data.get("organization") or {}
        return DiagnosticResult(
            step="organization_test",
            status=CheckStatus.SUCCESS,
            message="Organization exists and is accessible",
            details={
                "organization_name": org.get("name"),
                "organization_id": org.get("id"),
                "external_id": org.get("external_id"),
            },
        )

    async def _tickets_test(self, organization_id: str) -> DiagnosticResult:
        try:
            data = await self.client.sample_organization_tickets(organization_id)
        except PrimeHubError as e:
            return DiagnosticResult(
                step="tickets_test",
                status=CheckStatus.ERROR,
                message="Failed to retrieve tickets",
                details=_failure_details(e, organization_id=organization_id),
            )
        count = len(data.get("tickets") or [])
        return DiagnosticResult(
            step="tickets_test",
            status=CheckStatus.SUCCESS,
            message=f"Found {count} tickets for organization",
            details={"ticket_count": count, "organization_id": organization_id},
        )
