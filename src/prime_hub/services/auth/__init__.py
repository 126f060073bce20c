from .schemas import (
    Role,
    CallerIdentity,
    CallerContext,
    TenantScope,
    normalize_organization_id,
)
from .supabase import (
    ITenantDirectory,
    verify_token,
    extract_bearer_token,
    resolve_caller_context,
    get_current_caller,
)

__all__ = [
    "Role",
    "CallerIdentity",
    "CallerContext",
    "TenantScope",
    "normalize_organization_id",
    "ITenantDirectory",
    "verify_token",
    "extract_bearer_token",
    "resolve_caller_context",
    "get_current_caller",
]
