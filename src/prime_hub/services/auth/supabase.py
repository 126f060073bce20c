"""
Supabase access-token verification and caller context resolution.
"""

import logging
from typing import Optional, Protocol

from fastapi import Request
from authlib.jose import jwt, JoseError

from .schemas import CallerContext, CallerIdentity, Role, TenantScope
from prime_hub.config import AppSettings
from prime_hub.exceptions import (
    AuthenticationError,
    ConfigurationError,
    ProfileNotFoundError,
)

logger = logging.getLogger(__name__)


class ITenantDirectory(Protocol):
    """Interface for profile/school lookups - enables easy mocking."""

    def get_caller_profile(self, user_id: str) -> Optional[dict]: ...

    def get_school_customization(self, school_id: str) -> Optional[dict]: ...


def verify_token(token: str, settings: AppSettings) -> CallerIdentity:
    """
    Verify and decode a Supabase access token.

    Args:
        token: JWT taken from the Authorization header
        settings: Application settings holding the Supabase JWT secret

    Returns:
        CallerIdentity with the user id (``sub``) and email

    Raises:
        ConfigurationError: If the JWT secret is not configured
        AuthenticationError: If the token is invalid or expired
    """
    secret = settings.supabase.jwt_secret
    if not secret:
        raise ConfigurationError("Supabase JWT secret not configured")

    claims_options = {
        "sub": {"essential": True},
        "exp": {"essential": True},
        "aud": {"essential": True, "value": settings.supabase.jwt_audience},
    }
    try:
        claims = jwt.decode(token, secret, claims_options=claims_options)
        claims.validate()
    except (JoseError, ValueError) as e:
        raise AuthenticationError(f"Invalid token: {str(e)}")

    return CallerIdentity(user_id=str(claims["sub"]), email=claims.get("email"))


def extract_bearer_token(request: Request) -> str:
    auth_header = request.headers.get("Authorization")
    if auth_header and auth_header.startswith("Bearer "):
        token = auth_header.split(" ", 1)[1].strip()
        if token:
            return token
    raise AuthenticationError("No authorization header")


def resolve_caller_context(
    identity: CallerIdentity, directory: ITenantDirectory
) -> CallerContext:
    """
    Load the caller's profile and, when they belong to a school,
    the school's external identifiers.
    """
    profile = directory.get_caller_profile(identity.user_id)
    if not profile:
        logger.warning(
            "Authenticated user has no profile", extra={"user_id": identity.user_id}
        )
        raise ProfileNotFoundError()

    school_id = profile.get("school_id")
    school_id = str(school_id) if school_id else None

    tenant = None
    if school_id:
        customization = directory.get_school_customization(school_id)
        if customization:
            tenant = TenantScope(
                school_id=school_id,
                school_name=customization.get("school_name"),
                proesc_id=customization.get("proesc_id"),
                zendesk_organization_id=customization.get("zendesk_integration_url"),
                zendesk_external_id=customization.get("zendesk_external_id"),
            )
        else:
            tenant = TenantScope(school_id=school_id)

    try:
        role = Role(profile.get("role") or Role.USER.value)
    except ValueError:
        role = Role.USER

    context = CallerContext(
        user_id=identity.user_id,
        email=profile.get("email") or identity.email,
        name=profile.get("name") or profile.get("email") or identity.email or identity.user_id,
        role=role,
        school_id=school_id,
        tenant=tenant,
    )

    logger.info(
        "Caller context resolved",
        extra={
            "user_id": context.user_id,
            "school_id": context.school_id,
            "role": context.role.value,
            "organization_id": context.organization_id,
        },
    )
    return context


async def get_current_caller(
    request: Request, settings: AppSettings, directory: ITenantDirectory
) -> CallerContext:
    """
    Extract, verify and resolve the caller of a request.

    Args:
        request: FastAPI request object
        settings: Application settings for token verification
        directory: Profile/school lookup

    Returns:
        CallerContext for the authenticated user
    """
    token = extract_bearer_token(request)
    identity = verify_token(token, settings)
    return resolve_caller_context(identity, directory)
