from .core import EmbedTokenIssuer, TicketGateway, ZendeskDiagnostics, InsightsService
from .services.auth import CallerContext, TenantScope, Role, get_current_caller
from .services.database.database import DatabaseManager
from .services.zendesk import ZendeskClient
from .services.metabase import MetabaseClient

__all__ = [
    "EmbedTokenIssuer",
    "TicketGateway",
    "ZendeskDiagnostics",
    "InsightsService",
    "CallerContext",
    "TenantScope",
    "Role",
    "get_current_caller",
    "DatabaseManager",
    "ZendeskClient",
    "MetabaseClient",
]
