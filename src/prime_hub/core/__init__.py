from .dashboards import DashboardCategory, METABASE_DASHBOARDS, dashboard_id_for
from .embed import EmbedToken, EmbedTokenIssuer
from .tickets import TicketAction, TicketGateway, DegradedReason
from .diagnostics import ZendeskDiagnostics
from .insights import ChatModelFactory, InsightsService

__all__ = [
    "DashboardCategory",
    "METABASE_DASHBOARDS",
    "dashboard_id_for",
    "EmbedToken",
    "EmbedTokenIssuer",
    "TicketAction",
    "TicketGateway",
    "DegradedReason",
    "ZendeskDiagnostics",
    "ChatModelFactory",
    "InsightsService",
]
