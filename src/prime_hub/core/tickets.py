"""
Ticket-Proxy Gateway.

Relays ticket operations to Zendesk on behalf of an authenticated caller,
restricted to the Zendesk organization of the caller's school. Admins
without a school see every ticket.

Besides list/search/create/get, the gateway exposes a ticket's
conversation (comments and audits with their authors resolved) and lets
callers with a Zendesk account add public comments.
"""

import asyncio
import logging
import re
from enum import Enum
from typing import Any, Dict, List, Optional

from prime_hub.config import ZendeskSettings
from prime_hub.exceptions import (
    HelpdeskUserNotFoundError,
    InvalidActionError,
    InvalidParameterError,
    MissingParameterError,
    TenantScopeError,
    UpstreamError,
)
from prime_hub.services.auth import CallerContext
from prime_hub.services.zendesk import ZendeskClient, UPDATED_DESC
from .vocabulary import ZendeskPriority, category_from_tags, map_priority, map_status

logger = logging.getLogger(__name__)

TICKET_MARKER_TAG = "proesc"

_TAG_RE = re.compile(r"<[^>]*>")


class TicketAction(str, Enum):
    LIST = "list_tickets"
    SEARCH = "search_tickets"
    CREATE = "create_ticket"
    GET = "get_ticket"
    DETAILS = "get_ticket_details"
    COMMENT = "add_comment"


class DegradedReason(str, Enum):
    USER_WITHOUT_SCHOOL = "user_without_school"
    ORGANIZATION_NOT_CONFIGURED = "organization_not_configured"
    ENTITY_NOT_CONFIGURED = "proesc_id_not_configured"


DEGRADED_MESSAGES = {
    DegradedReason.USER_WITHOUT_SCHOOL: "Usuário não está associado a uma escola",
    DegradedReason.ORGANIZATION_NOT_CONFIGURED: (
        "ID da organização do Zendesk não configurado para esta escola"
    ),
    DegradedReason.ENTITY_NOT_CONFIGURED: "ID Proesc não configurado para esta escola",
}


def degraded_reason(caller: CallerContext) -> Optional[DegradedReason]:
    """
    Decide whether the caller's configuration prevents reaching Zendesk.

    Returns None when the caller may proceed (scoped, or global admin).
    """
    if not caller.school_id and not caller.is_admin:
        return DegradedReason.USER_WITHOUT_SCHOOL
    if caller.school_id and not caller.organization_id:
        return DegradedReason.ORGANIZATION_NOT_CONFIGURED
    return None


def degraded_response(caller: CallerContext, reason: DegradedReason) -> Dict[str, Any]:
    return {
        "error": reason.value,
        "message": DEGRADED_MESSAGES[reason],
        "tickets": [],
        "user_info": caller.user_info(),
    }


def _as_zendesk_id(value: Optional[str]):
    if not value:
        return None
    return int(value) if value.isdigit() else value


def _parse_ticket_id(value: Optional[Any], action: TicketAction) -> str:
    ticket_id = str(value).strip() if value is not None else ""
    if ticket_id.upper().startswith("ZD-"):
        ticket_id = ticket_id[3:]
    if not ticket_id:
        raise MissingParameterError(f"ticketId is required for {action.value} action")
    return ticket_id


def normalize_ticket(raw: Dict[str, Any], settings: ZendeskSettings) -> Dict[str, Any]:
    ticket_id = raw.get("id")
    tags = raw.get("tags") or []
    return {
        "id": f"ZD-{ticket_id}",
        "title": raw.get("subject") or "Sem título",
        "description": raw.get("description") or "Sem descrição",
        "status": map_status(raw.get("status")).value,
        "priority": map_priority(raw.get("priority")).value,
        "created_at": raw.get("created_at"),
        "category": category_from_tags(tags),
        "external_id": ticket_id,
        "external_url": settings.ticket_url(ticket_id),
        "tags": tags,
    }


def _optional_str(value: Any) -> Optional[str]:
    return str(value) if value is not None else None


def normalize_comment(raw: Dict[str, Any], authors: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    author = authors.get(str(raw.get("author_id")), {})
    return {
        "id": raw.get("id"),
        "body": raw.get("body"),
        "html_body": raw.get("html_body"),
        "plain_body": raw.get("plain_body"),
        "public": raw.get("public"),
        "author_id": raw.get("author_id"),
        "author_name": author.get("name") or "Usuário",
        "author_email": author.get("email") or "",
        "author_role": author.get("role") or "end-user",
        "created_at": raw.get("created_at"),
        "attachments": raw.get("attachments") or [],
    }


def normalize_audit(raw: Dict[str, Any], authors: Dict[str, Dict[str, Any]]) -> Dict[str, Any]:
    author = authors.get(str(raw.get("author_id")), {})
    return {
        "id": raw.get("id"),
        "author_id": raw.get("author_id"),
        "author_name": author.get("name") or "Sistema",
        "author_email": author.get("email") or "",
        "author_role": author.get("role") or "system",
        "created_at": raw.get("created_at"),
        "events": raw.get("events") or [],
    }


class TicketGateway:
    def __init__(self, client: ZendeskClient, settings: ZendeskSettings):
        self.client = client
        self.settings = settings

    async def handle(self, caller: CallerContext, action: Optional[str], body: Dict[str, Any]) -> Dict[str, Any]:
        """
        Dispatch one ticket action for the caller.

        The caller's configuration is settled first: a caller that cannot
        reach Zendesk gets the degraded body whatever the action.
        """
        reason = degraded_reason(caller)
        if reason is not None:
            logger.warning(
                "Ticket access without usable organization",
                extra={
                    "user_id": caller.user_id,
                    "school_id": caller.school_id,
                    "reason": reason.value,
                    "action": action,
                },
            )
            return degraded_response(caller, reason)

        try:
            parsed = TicketAction(action)
        except ValueError:
            raise InvalidActionError(
                details={
                    "action": action,
                    "allowed": [a.value for a in TicketAction],
                }
            )

        logger.info(
            "Zendesk operation",
            extra={
                "action": parsed.value,
                "organization_id": caller.organization_id,
                "school_id": caller.school_id,
                "user_role": caller.role.value,
                "auth_method": self.client.auth_method,
            },
        )

        if parsed is TicketAction.LIST:
            return await self.list_tickets(caller)
        if parsed is TicketAction.SEARCH:
            return await self.search_tickets(caller, body.get("query"))
        if parsed is TicketAction.CREATE:
            return await self.create_ticket(
                caller,
                subject=body.get("subject"),
                description=body.get("description"),
                priority=body.get("priority"),
            )
        if parsed is TicketAction.DETAILS:
            return await self.get_ticket_details(caller, body.get("ticket_id"))
        if parsed is TicketAction.COMMENT:
            return await self.add_comment(
                caller,
                body.get("ticket_id"),
                comment_body=body.get("comment_body"),
                is_public=body.get("is_public"),
            )
        return await self.get_ticket(body.get("ticket_id"))

    #       OPERATIONS
    # ---------------------------

    async def list_tickets(self, caller: CallerContext) -> Dict[str, Any]:
        organization_id = None if caller.has_global_scope else caller.organization_id
        data = await self.client.list_tickets(organization_id)
        return self._ticket_listing(caller, data)

    async def search_tickets(self, caller: CallerContext, query: Optional[str]) -> Dict[str, Any]:
        query = (query or "").strip()
        if not query:
            raise MissingParameterError("query is required for search_tickets action")

        qualifiers = ["type:ticket"]
        if not caller.has_global_scope:
            qualifiers.append(f"organization:{caller.organization_id}")
        qualifiers.append(query)

        data = await self.client.search(" ".join(qualifiers), sort=UPDATED_DESC)
        return self._ticket_listing(caller, data)

    async def create_ticket(
        self,
        caller: CallerContext,
        subject: Optional[str],
        description: Optional[str],
        priority: Optional[str] = None,
    ) -> Dict[str, Any]:
        if not subject or not description:
            raise MissingParameterError(
                "subject and description are required for create_ticket action"
            )

        priority = priority or ZendeskPriority.NORMAL.value
        try:
            priority = ZendeskPriority(priority).value
        except ValueError:
            raise InvalidParameterError(
                f"Invalid priority: {priority}",
                details={"allowed": [p.value for p in ZendeskPriority]},
            )

        requester = {"name": caller.name}
        if caller.email:
            requester["email"] = caller.email

        organization_id = None if caller.has_global_scope else caller.organization_id
        ticket = {
            "subject": subject,
            "comment": {"body": description},
            "priority": priority,
            "organization_id": _as_zendesk_id(organization_id),
            "tags": [TICKET_MARKER_TAG],
            "requester": requester,
        }

        data = await self.client.create_ticket(ticket)
        created = data.get("ticket") or {}
        logger.info(
            "Zendesk ticket created",
            extra={"ticket_id": created.get("id"), "organization_id": organization_id},
        )
        return {"ticket": normalize_ticket(created, self.settings)}

    async def get_ticket(self, ticket_id: Optional[Any]) -> Dict[str, Any]:
        ticket_id = _parse_ticket_id(ticket_id, TicketAction.GET)
        data = await self.client.get_ticket(ticket_id)
        return {"ticket": normalize_ticket(data.get("ticket") or {}, self.settings)}

    async def get_ticket_details(self, caller: CallerContext, ticket_id: Optional[Any]) -> Dict[str, Any]:
        """
        Ticket plus its conversation.

        A missing ticket fails the call. Comments, audits and author
        lookups that fail are logged and come back empty.
        """
        ticket_id = _parse_ticket_id(ticket_id, TicketAction.DETAILS)
        raw = await self._get_scoped_ticket(caller, ticket_id)

        comments_data, audits_data = await asyncio.gather(
            self._optional_fetch(self.client.get_ticket_comments, ticket_id),
            self._optional_fetch(self.client.get_ticket_audits, ticket_id),
        )
        comments = comments_data.get("comments") or []
        audits = audits_data.get("audits") or []

        author_ids: List[str] = []
        for entry in comments + audits:
            author_id = entry.get("author_id")
            if author_id is not None and str(author_id) not in author_ids:
                author_ids.append(str(author_id))

        authors: Dict[str, Dict[str, Any]] = {}
        if author_ids:
            users_data = await self._optional_fetch(self.client.show_many_users, author_ids)
            authors = {str(u.get("id")): u for u in users_data.get("users") or []}

        ticket = normalize_ticket(raw, self.settings)
        ticket.update(
            {
                "updated_at": raw.get("updated_at"),
                "organization_id": _optional_str(raw.get("organization_id")),
                "requester_id": _optional_str(raw.get("requester_id")),
                "assignee_id": _optional_str(raw.get("assignee_id")),
                "comments": [normalize_comment(c, authors) for c in comments],
                "audits": [normalize_audit(a, authors) for a in audits],
            }
        )
        return {"ticket": ticket}

    async def add_comment(
        self,
        caller: CallerContext,
        ticket_id: Optional[Any],
        comment_body: Optional[str],
        is_public: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """
        Add a public comment authored by the caller's own Zendesk user.

        The body may be HTML; a tag-stripped copy is sent as the plain body.
        """
        ticket_id = _parse_ticket_id(ticket_id, TicketAction.COMMENT)
        if not comment_body or not comment_body.strip():
            raise MissingParameterError("comment_body is required for add_comment action")
        if is_public is False:
            raise InvalidParameterError("Apenas comentários públicos são permitidos")

        author = None
        if caller.email:
            author = await self.client.find_user_by_email(caller.email)
        if author is None:
            logger.warning(
                "Commenter has no Zendesk account",
                extra={"user_id": caller.user_id, "school_id": caller.school_id},
            )
            raise HelpdeskUserNotFoundError()

        await self._get_scoped_ticket(caller, ticket_id)

        comment = {
            "html_body": comment_body,
            "body": _TAG_RE.sub("", comment_body).strip(),
            "public": True,
            "author_id": author.get("id"),
        }
        data = await self.client.add_comment(ticket_id, comment)

        logger.info(
            "Zendesk comment added",
            extra={
                "ticket_id": ticket_id,
                "zendesk_user_id": author.get("id"),
                "school_id": caller.school_id,
            },
        )
        return {
            "success": True,
            "message": "Comentário adicionado com sucesso",
            "ticket_id": ticket_id,
            "comment_id": (data.get("audit") or {}).get("id"),
            "author_info": {
                "zendesk_user_id": author.get("id"),
                "name": author.get("name"),
                "email": author.get("email"),
            },
        }

    #       HELPERS
    # ---------------------------

    async def _get_scoped_ticket(self, caller: CallerContext, ticket_id: str) -> Dict[str, Any]:
        """Fetch a ticket and refuse it when it belongs to another organization."""
        data = await self.client.get_ticket(ticket_id)
        raw = data.get("ticket") or {}
        if caller.has_global_scope:
            return raw

        ticket_org = _optional_str(raw.get("organization_id"))
        if ticket_org != caller.organization_id:
            logger.warning(
                "Ticket outside caller's organization",
                extra={
                    "ticket_id": ticket_id,
                    "organization_id": caller.organization_id,
                    "ticket_organization_id": ticket_org,
                },
            )
            raise TenantScopeError("Ticket does not belong to the caller's organization")
        return raw

    async def _optional_fetch(self, fetch, *args) -> Dict[str, Any]:
        try:
            return await fetch(*args)
        except UpstreamError as e:
            logger.warning(
                "Optional Zendesk lookup failed",
                extra={"lookup": fetch.__name__, "upstream_status": e.upstream_status},
            )
            return {}

    def _ticket_listing(self, caller: CallerContext, data: Dict[str, Any]) -> Dict[str, Any]:
        raw: List[Dict[str, Any]] = data.get("results") or data.get("tickets") or []
        tickets = [normalize_ticket(t, self.settings) for t in raw]
        return {
            "tickets": tickets,
            "search_info": {
                "organization_id": caller.organization_id,
                "total_results": data.get("count") or len(tickets),
                "user_role": caller.role.value,
                "school_id": caller.school_id,
                "school_name": caller.school_name,
            },
        }
