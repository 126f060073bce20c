from datetime import datetime
from typing import Any, Dict, List, Optional, Union
from pydantic import AliasChoices, BaseModel, Field


#       BASE MODELS
# -------------------------


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    class Config:
        str_strip_whitespace = True  # Auto-strip strings
        populate_by_name = True
        extra = "ignore"


#       EMBED TOKEN
# -------------------------


class EmbedTokenRequest(BaseSchema):
    """
    Request for a Metabase embed URL.

    Both fields are optional here so that absent values are reported
    as MISSING_PARAMETER instead of a schema error.
    """

    dashboardType: Optional[str] = None
    proescId: Optional[Union[str, int]] = None


#       TICKETS
# -------------------------


class TicketRequest(BaseSchema):
    """Body of a ticket gateway call; which fields matter depends on ``action``."""

    action: Optional[str] = None
    subject: Optional[str] = None
    description: Optional[str] = None
    priority: Optional[str] = None
    query: Optional[str] = None
    ticket_id: Optional[Union[str, int]] = Field(
        default=None,
        validation_alias=AliasChoices("ticketId", "ticket_id"),
    )
    comment_body: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("commentBody", "comment_body"),
    )
    is_public: Optional[bool] = Field(
        default=None,
        validation_alias=AliasChoices("isPublic", "is_public"),
    )


#       INSIGHTS
# -------------------------


class InsightsRequest(BaseSchema):
    question: Optional[str] = None
    cardId: Optional[int] = None
    params: Optional[Dict[str, Any]] = None
    dashboardUrl: Optional[str] = None
    locale: Optional[str] = None
    dashboardType: Optional[str] = None


#       HEALTH
# -------------------------


class HealthResponse(BaseSchema):
    """Health check response."""

    status: str
    version: str
    environment: str
    timestamp: datetime


class DetailedHealthResponse(HealthResponse):
    """Detailed health check with component status."""

    components: Dict[str, Dict[str, Any]]


class ErrorResponse(BaseSchema):
    """Standard error response format."""

    error: str
    message: str
    request_id: Optional[str] = None
    details: Optional[Dict[str, Any]] = None


class DiagnosticsResponse(BaseSchema):
    overall_status: str
    diagnostics: List[Dict[str, Any]]
    timestamp: str
