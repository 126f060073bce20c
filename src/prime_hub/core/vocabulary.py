"""
Zendesk status/priority vocabularies and their local (portal) equivalents.

Every mapping is total over the Zendesk enum; unknown upstream values
fall back to a fixed default instead of raising.
"""

from enum import Enum
from typing import Dict, Optional


class ZendeskStatus(str, Enum):
    NEW = "new"
    OPEN = "open"
    PENDING = "pending"
    HOLD = "hold"
    SOLVED = "solved"
    CLOSED = "closed"


class ZendeskPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    HIGH = "high"
    URGENT = "urgent"


class TicketStatus(str, Enum):
    PENDING = "Pendente"
    IN_PROGRESS = "Em Andamento"
    RESOLVED = "Resolvido"


class TicketPriority(str, Enum):
    LOW = "Baixa"
    MEDIUM = "Média"
    HIGH = "Alta"


STATUS_MAP: Dict[ZendeskStatus, TicketStatus] = {
    ZendeskStatus.NEW: TicketStatus.PENDING,
    ZendeskStatus.OPEN: TicketStatus.PENDING,
    ZendeskStatus.PENDING: TicketStatus.IN_PROGRESS,
    ZendeskStatus.HOLD: TicketStatus.IN_PROGRESS,
    ZendeskStatus.SOLVED: TicketStatus.RESOLVED,
    ZendeskStatus.CLOSED: TicketStatus.RESOLVED,
}

PRIORITY_MAP: Dict[ZendeskPriority, TicketPriority] = {
    ZendeskPriority.URGENT: TicketPriority.HIGH,
    ZendeskPriority.HIGH: TicketPriority.HIGH,
    ZendeskPriority.NORMAL: TicketPriority.MEDIUM,
    ZendeskPriority.LOW: TicketPriority.LOW,
}

DEFAULT_STATUS = TicketStatus.PENDING
DEFAULT_PRIORITY = TicketPriority.MEDIUM


def _check_total(mapping: dict, enum_cls) -> None:
    missing = set(enum_cls) - set(mapping)
    if missing:
        raise RuntimeError(
            f"{enum_cls.__name__} values without a local mapping: "
            f"{sorted(m.value for m in missing)}"
        )


_check_total(STATUS_MAP, ZendeskStatus)
_check_total(PRIORITY_MAP, ZendeskPriority)


def map_status(value: Optional[str]) -> TicketStatus:
    try:
        return STATUS_MAP[ZendeskStatus(value)]
    except ValueError:
        return DEFAULT_STATUS


def map_priority(value: Optional[str]) -> TicketPriority:
    try:
        return PRIORITY_MAP[ZendeskPriority(value)]
    except ValueError:
        return DEFAULT_PRIORITY


def category_from_tags(tags) -> str:
    tags = tags or []
    if "bug" in tags:
        return "Bug"
    if "feature" in tags:
        return "Solicitação"
    return "Técnico"
