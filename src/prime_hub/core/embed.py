"""
Metabase signed-embedding token issuer.

Produces a short-lived iframe URL that shows exactly one dashboard
filtered to exactly one school entity.
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from authlib.jose import jwt

from prime_hub.config import MetabaseSettings
from prime_hub.exceptions import (
    ConfigurationError,
    MissingParameterError,
    UnknownDashboardCategoryError,
)
from .dashboards import DashboardCategory, dashboard_id_for

logger = logging.getLogger(__name__)

ENTITY_PARAMETER = "entidade_id"
EMBED_FRAGMENT = "#bordered=true&titled=true"


@dataclass(frozen=True)
class EmbedToken:
    iframe_url: str
    dashboard_id: int
    expires_in: int
    token: str

    def to_response(self) -> dict:
        return {
            "iframeUrl": self.iframe_url,
            "dashboardId": self.dashboard_id,
            "expiresIn": self.expires_in,
        }


class EmbedTokenIssuer:
    def __init__(
        self,
        settings: MetabaseSettings,
        clock: Callable[[], float] = time.time,
    ):
        self.site_url = settings.site_url.rstrip("/")
        self.secret = settings.embed_secret
        self.expires_in = settings.embed_expiry_seconds
        self._clock = clock

    def validate(
        self, dashboard_type: Optional[str], entity_id: Optional[str]
    ) -> Tuple[DashboardCategory, str]:
        """
        Check the request fields, in order: presence, then category.

        Returns:
            The parsed category and the stripped entity id.
        """
        entity = str(entity_id).strip() if entity_id is not None else ""
        if not dashboard_type or not entity:
            raise MissingParameterError("dashboardType and proescId are required")

        category = DashboardCategory.parse(dashboard_type)
        if category is None:
            raise UnknownDashboardCategoryError(
                details={
                    "dashboard_type": dashboard_type,
                    "allowed": [c.value for c in DashboardCategory],
                }
            )
        return category, entity

    def build_claims(self, category: DashboardCategory, entity_id: str) -> dict:
        return {
            "resource": {"dashboard": dashboard_id_for(category)},
            "params": {ENTITY_PARAMETER: [entity_id]},
            "exp": int(round(self._clock())) + self.expires_in,
        }

    def issue(self, dashboard_type: Optional[str], entity_id: Optional[str]) -> EmbedToken:
        """
        Sign an embed token for one dashboard scoped to one entity.

        Raises:
            MissingParameterError: dashboard type or entity id is empty
            UnknownDashboardCategoryError: dashboard type is not registered
            ConfigurationError: the embedding secret is not configured
        """
        category, entity = self.validate(dashboard_type, entity_id)

        if not self.secret:
            logger.error(
                "Metabase embedding secret not configured",
                extra={"dashboard_type": category.value, "entity_id": entity},
            )
            raise ConfigurationError("Metabase token not configured")

        claims = self.build_claims(category, entity)
        token = jwt.encode({"alg": "HS256", "typ": "JWT"}, claims, self.secret)
        token = token.decode("utf-8")

        dashboard_id = claims["resource"]["dashboard"]
        logger.info(
            f"Generated Metabase embed URL for {category.value} (ID: {dashboard_id})",
            extra={"entity_id": entity, "dashboard_id": dashboard_id},
        )

        return EmbedToken(
            iframe_url=f"{self.site_url}/embed/dashboard/{token}{EMBED_FRAGMENT}",
            dashboard_id=dashboard_id,
            expires_in=self.expires_in,
            token=token,
        )
