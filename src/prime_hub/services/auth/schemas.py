import re
from enum import Enum
from typing import Any, Optional
from pydantic import BaseModel, field_validator


class Role(str, Enum):
    ADMIN = "admin"
    GESTOR = "gestor"
    USER = "user"


def normalize_organization_id(value: Any) -> Optional[str]:
    """
    Coerce a stored Zendesk organization id to an integer string.

    Spreadsheet imports left some ids in scientific notation ("3.6e+12").
    """
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return str(int(round(value)))

    text = str(value).strip()
    if not text:
        return None
    if re.fullmatch(r"\d+", text):
        return text
    try:
        return str(int(round(float(text))))
    except ValueError:
        return text


class CallerIdentity(BaseModel):
    """Identity taken from a verified Supabase access token."""

    user_id: str
    email: Optional[str] = None


class TenantScope(BaseModel):
    """External identifiers configured for one school."""

    school_id: str
    school_name: Optional[str] = None
    proesc_id: Optional[str] = None
    zendesk_organization_id: Optional[str] = None
    zendesk_external_id: Optional[str] = None

    @field_validator("zendesk_organization_id", mode="before")
    @classmethod
    def _normalize_org(cls, v):
        return normalize_organization_id(v)

    @field_validator("proesc_id", "zendesk_external_id", mode="before")
    @classmethod
    def _blank_to_none(cls, v):
        if v is None:
            return None
        text = str(v).strip()
        return text or None


class CallerContext(BaseModel):
    """
    Everything a request needs to know about its caller.

    Resolved once per request and passed explicitly to every operation.
    """

    user_id: str
    email: Optional[str] = None
    name: str
    role: Role = Role.USER
    school_id: Optional[str] = None
    tenant: Optional[TenantScope] = None

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    @property
    def has_global_scope(self) -> bool:
        return self.is_admin and not self.school_id

    @property
    def organization_id(self) -> Optional[str]:
        return self.tenant.zendesk_organization_id if self.tenant else None

    @property
    def school_name(self) -> Optional[str]:
        return self.tenant.school_name if self.tenant else None

    @property
    def proesc_id(self) -> Optional[str]:
        return self.tenant.proesc_id if self.tenant else None

    def user_info(self) -> dict:
        info = {"email": self.email, "role": self.role.value}
        if self.school_id:
            info["school_id"] = self.school_id
        return info
