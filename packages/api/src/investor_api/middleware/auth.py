# This project was developed with assistance from AI tools.
"""
JWT authentication for Keycloak-issued tokens.

Identifies the caller and tells investors from admins. Routes decide what each
role may do; `require_transition_target` holds the one rule shared by the
transition endpoints. Set AUTH_DISABLED=true to bypass validation (tests /
local dev without Keycloak).
"""

import logging
import time
from typing import Annotated

import httpx
import jwt
from fastapi import Depends, HTTPException, Request, status
from investor_db.enums import LifecycleStage, UserRole

from ..core.config import settings
from ..schemas.auth import TokenPayload, UserContext

logger = logging.getLogger(__name__)

_KNOWN_ROLES = {role.value for role in UserRole}


class JwksCache:
    """Keycloak signing keys, refetched after ``ttl`` seconds or on unknown kid."""

    def __init__(self, ttl: int):
        self.ttl = ttl
        self._keys: jwt.PyJWKSet | None = None
        self._fetched_at = 0.0

    @staticmethod
    def _certs_url() -> str:
        return (
            f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}"
            "/protocol/openid-connect/certs"
        )

    def _refresh(self) -> jwt.PyJWKSet:
        response = httpx.get(self._certs_url(), timeout=5)
        response.raise_for_status()
        self._keys = jwt.PyJWKSet.from_dict(response.json())
        self._fetched_at = time.time()
        return self._keys

    def _current(self) -> jwt.PyJWKSet:
        if self._keys is None or (time.time() - self._fetched_at) > self.ttl:
            return self._refresh()
        return self._keys

    def signing_key(self, token: str) -> jwt.PyJWK:
        """Key matching the token's ``kid``; one forced refetch covers key rotation."""
        kid = jwt.get_unverified_header(token).get("kid")
        try:
            key = _find_key(self._current(), kid)
            if key is None:
                key = _find_key(self._refresh(), kid)
        except httpx.HTTPError as exc:
            logger.error("Failed to fetch JWKS from Keycloak: %s", exc)
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Authentication service unavailable",
            ) from exc
        if key is None:
            raise jwt.InvalidTokenError(f"No signing key for kid={kid}")
        return key


def _find_key(key_set: jwt.PyJWKSet, kid: str | None) -> jwt.PyJWK | None:
    return next((key for key in key_set.keys if key.key_id == kid), None)


_jwks = JwksCache(ttl=settings.JWKS_CACHE_TTL)


def _bearer_token(request: Request) -> str | None:
    header = request.headers.get("Authorization", "")
    scheme, _, token = header.partition(" ")
    if scheme == "Bearer" and token:
        return token
    return None


def _decode_token(token: str) -> TokenPayload:
    """Validate signature and issuer, return the claims."""
    payload = jwt.decode(
        token,
        _jwks.signing_key(token).key,
        algorithms=["RS256"],
        issuer=f"{settings.KEYCLOAK_URL}/realms/{settings.KEYCLOAK_REALM}",
        options={"verify_aud": False},
    )
    return TokenPayload(**payload)


def _resolve_role(token_payload: TokenPayload) -> UserRole:
    """Pick the caller's role from realm roles; admin wins over investor."""
    roles = set(token_payload.realm_access.get("roles", [])) & _KNOWN_ROLES
    if not roles:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="No recognized role assigned",
        )
    if UserRole.ADMIN.value in roles:
        return UserRole.ADMIN
    return UserRole.INVESTOR


_DISABLED_USER = UserContext(
    user_id="dev-user",
    role=UserRole.ADMIN,
    email="dev@investor-onboarding.local",
    name="Dev User",
)


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user(request: Request) -> UserContext:
    """FastAPI dependency: validate the bearer token and return the caller.

    When AUTH_DISABLED=true, returns a dev admin user without token validation.
    """
    if settings.AUTH_DISABLED:
        return _DISABLED_USER

    token = _bearer_token(request)
    if token is None:
        raise _unauthorized("Missing authentication token")

    try:
        payload = _decode_token(token)
    except jwt.ExpiredSignatureError as exc:
        raise _unauthorized("Token has expired") from exc
    except jwt.InvalidTokenError as exc:
        raise _unauthorized("Invalid token") from exc

    return UserContext(
        user_id=payload.sub,
        role=_resolve_role(payload),
        email=payload.email,
        name=payload.name or payload.preferred_username,
    )


# Type alias for use in route signatures
CurrentUser = Annotated[UserContext, Depends(get_current_user)]


def require_roles(*allowed_roles: UserRole):
    """Dependency factory: restrict a route to specific roles.

    Usage:
        @router.post("/approve", dependencies=[Depends(require_roles(UserRole.ADMIN))])
    """

    async def _check(user: CurrentUser) -> UserContext:
        if user.role not in allowed_roles:
            logger.warning(
                "Role check denied: user=%s role=%s needs one of %s",
                user.user_id,
                user.role.value,
                [r.value for r in allowed_roles],
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return _check


# Stages an investor reaches through their own actions. Every other target needs an admin.
INVESTOR_TRANSITION_TARGETS = frozenset(
    {
        LifecycleStage.DOCUMENTS_SIGNED,
        LifecycleStage.BANK_DETAILS_PENDING,
        LifecycleStage.INVESTOR_ONBOARDING_COMPLETE,
        LifecycleStage.CANCELLED,
        LifecycleStage.DELETED,
    }
)


def require_transition_target(user: UserContext, target: LifecycleStage) -> None:
    """Raise 403 if ``user`` may not request a move to ``target``."""
    if user.is_admin or target in INVESTOR_TRANSITION_TARGETS:
        return
    logger.warning(
        "Transition denied: user=%s role=%s target=%s",
        user.user_id,
        user.role.value,
        target.value,
    )
    raise HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=f"Only an administrator can move a record to {target.value}",
    )
