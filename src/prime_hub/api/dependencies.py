"""
This module defines the dependency injection system for the Prime Hub
gateway using FastAPI.

"""

import logging
from contextlib import asynccontextmanager
from typing import Annotated, Optional
from fastapi import Depends, HTTPException, Request, status
from langchain_core.language_models.chat_models import BaseChatModel

from prime_hub.core import (
    ChatModelFactory,
    EmbedTokenIssuer,
    InsightsService,
    TicketGateway,
    ZendeskDiagnostics,
)
from prime_hub.exceptions import ConfigurationError
from prime_hub.services.auth import CallerContext, ITenantDirectory
from prime_hub.services.auth import get_current_caller as _get_current_caller
from prime_hub.services.database import DatabaseManager
from prime_hub.services.metabase import MetabaseClient
from prime_hub.services.zendesk import ZendeskClient
from prime_hub.config import AppSettings, get_settings

logger = logging.getLogger(__name__)


# Application State Management
# ----------------------------


class AppState:
    """
    Centralized application state container.

    Holds the process-wide clients; nothing caller-specific lives here.
    """

    def __init__(self):
        self.db: Optional[DatabaseManager] = None
        self.zendesk: Optional[ZendeskClient] = None
        self.metabase: Optional[MetabaseClient] = None
        self.chat_model: Optional[BaseChatModel] = None
        self._initialized: bool = False

    @property
    def is_initialized(self) -> bool:
        return self._initialized

    async def initialize(self, settings: AppSettings) -> None:
        """Initialize all application components."""
        if self._initialized:
            return

        # Pool is opened on first query
        self.db = DatabaseManager(
            settings.database.dsn,
            min_pool_size=settings.database.min_pool_size,
            max_pool_size=settings.database.max_pool_size,
        )
        self.zendesk = ZendeskClient(settings.zendesk)
        self.metabase = MetabaseClient(settings.metabase)

        self._initialized = True

    async def shutdown(self) -> None:
        """Clean up all resources."""
        if self.zendesk:
            await self.zendesk.close()
            self.zendesk = None

        if self.metabase:
            await self.metabase.close()
            self.metabase = None

        if self.db:
            self.db.close()
            self.db = None

        self.chat_model = None
        self._initialized = False


_app_state = AppState()


def get_app_state() -> AppState:
    return _app_state


@asynccontextmanager
async def app_lifespan(app):
    settings = get_settings()
    state = get_app_state()

    await state.initialize(settings)
    logger.info(
        "Prime Hub gateway started",
        extra={"environment": settings.environment, "version": settings.app_version},
    )

    yield

    await state.shutdown()
    logger.info("Prime Hub gateway shutdown complete")


#       DEPENDENCY PROVIDERS
# ------------------------------------


def get_settings_dep() -> AppSettings:
    """Dependency for settings - allows override in tests."""
    return get_settings()


SettingsDep = Annotated[AppSettings, Depends(get_settings_dep)]
AppStateDep = Annotated[AppState, Depends(get_app_state)]


def get_tenant_directory(state: AppStateDep) -> ITenantDirectory:
    """Dependency for profile and school lookups."""
    if not state.db:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database not initialized",
        )
    return state.db


TenantDirectoryDep = Annotated[ITenantDirectory, Depends(get_tenant_directory)]


def get_zendesk_client(state: AppStateDep) -> ZendeskClient:
    if not state.zendesk:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Zendesk client not initialized",
        )
    return state.zendesk


ZendeskClientDep = Annotated[ZendeskClient, Depends(get_zendesk_client)]


def get_metabase_client(state: AppStateDep) -> MetabaseClient:
    if not state.metabase:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Metabase client not initialized",
        )
    return state.metabase


MetabaseClientDep = Annotated[MetabaseClient, Depends(get_metabase_client)]


def get_chat_model(state: AppStateDep, settings: SettingsDep) -> BaseChatModel:
    """
    Dependency for the insights chat model.

    Built on first use so the gateway starts without LLM credentials.
    """
    if state.chat_model is None:
        try:
            state.chat_model = ChatModelFactory.get_chat_model(settings)
        except Exception as e:
            raise ConfigurationError(f"Insights model not available: {e}") from e
    return state.chat_model


ChatModelDep = Annotated[BaseChatModel, Depends(get_chat_model)]


def get_embed_issuer(settings: SettingsDep) -> EmbedTokenIssuer:
    return EmbedTokenIssuer(settings.metabase)


EmbedIssuerDep = Annotated[EmbedTokenIssuer, Depends(get_embed_issuer)]


def get_ticket_gateway(client: ZendeskClientDep, settings: SettingsDep) -> TicketGateway:
    return TicketGateway(client, settings.zendesk)


TicketGatewayDep = Annotated[TicketGateway, Depends(get_ticket_gateway)]


def get_diagnostics(client: ZendeskClientDep) -> ZendeskDiagnostics:
    return ZendeskDiagnostics(client)


DiagnosticsDep = Annotated[ZendeskDiagnostics, Depends(get_diagnostics)]


def get_insights_service(
    chat_model: ChatModelDep, metabase: MetabaseClientDep
) -> InsightsService:
    return InsightsService(chat_model, metabase)


InsightsServiceDep = Annotated[InsightsService, Depends(get_insights_service)]


#       AUTHENTICATION
# ------------------------------------


async def get_current_caller(
    request: Request, settings: SettingsDep, directory: TenantDirectoryDep
) -> CallerContext:
    """
    Dependency wrapper for authentication that injects settings and the
    tenant directory.
    """
    caller = await _get_current_caller(request, settings, directory)
    request.state.caller = caller
    return caller


CurrentCallerDep = Annotated[CallerContext, Depends(get_current_caller)]
