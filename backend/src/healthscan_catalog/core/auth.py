"""Admin authorization capability.

The engine never decides who is an admin. Each request is authorized once at
the HTTP boundary by an ``AdminAuthorizer`` and the resulting identity is
passed into the service.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Mapping, Optional, Protocol

from fastapi import Depends, Header, HTTPException, Request

from .config import get_settings
from .exceptions import AuthorizationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdminIdentity:
    email: str


class AdminAuthorizer(Protocol):
    def authorize(self, token: Optional[str]) -> AdminIdentity: ...


class AllowlistAuthorizer:
    """Admits explicitly listed emails and every email of an admin domain."""

    def __init__(
        self,
        resolve_email: Callable[[str], Optional[str]],
        emails: Iterable[str] = (),
        domains: Iterable[str] = (),
    ):
        self.resolve_email = resolve_email
        self.emails = {e.strip().lower() for e in emails if e and e.strip()}
        self.domains = {d.strip().lower() for d in domains if d and d.strip()}

    def authorize(self, token: Optional[str]) -> AdminIdentity:
        if not token:
            raise AuthorizationError(401, "No access token provided")
        email = self.resolve_email(token)
        if not email:
            raise AuthorizationError(401, "Invalid access token")
        email = email.strip().lower()
        domain = email.rsplit("@", 1)[-1] if "@" in email else ""
        if email not in self.emails and domain not in self.domains:
            logger.warning("Admin access denied for %s", email)
            raise AuthorizationError(403, "Admin access required")
        return AdminIdentity(email=email)


def token_map_resolver(tokens: Mapping[str, str]) -> Callable[[str], Optional[str]]:
    def resolve(token: str) -> Optional[str]:
        return tokens.get(token)

    return resolve


def build_authorizer() -> AdminAuthorizer:
    settings = get_settings()
    return AllowlistAuthorizer(
        resolve_email=token_map_resolver(settings.admin_tokens),
        emails=settings.admin_emails,
        domains=settings.admin_domains,
    )


def _bearer(value: Optional[str]) -> Optional[str]:
    if not value:
        return None
    scheme, _, token = value.partition(" ")
    if scheme.lower() != "bearer":
        return None
    return token.strip() or None


def get_authorizer(request: Request) -> AdminAuthorizer:
    authorizer = getattr(request.app.state, "authorizer", None)
    return authorizer if authorizer is not None else build_authorizer()


def require_admin(
    authorization: Optional[str] = Header(default=None),
    authorizer: AdminAuthorizer = Depends(get_authorizer),
) -> AdminIdentity:
    try:
        return authorizer.authorize(_bearer(authorization))
    except AuthorizationError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.detail)
