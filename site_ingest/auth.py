"""site_ingest.auth: request authentication and workspace membership for the HTTP API.

The crawl engine never looks at any of this; routes only hand it a
(workspace, source) pair that an :class:`Authorizer` has already approved.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional, Protocol

from aiohttp import web

from site_ingest.config import ApiToken, IngestConfig, dev_mode_status
from site_ingest.logger import get_logger

log = get_logger("auth")


@dataclass(slots=True, frozen=True)
class Identity:
    user_id: str
    email: str = ""


class Authorizer(Protocol):
    async def authenticate(self, request: web.Request) -> Optional[Identity]: ...

    async def is_member(self, identity: Identity, workspace_id: str) -> bool: ...


class TokenAuthorizer:
    """Bearer tokens from configuration, each bound to a user and its workspaces."""

    def __init__(self, tokens: Mapping[str, ApiToken]) -> None:
        self._tokens = dict(tokens)

    async def authenticate(self, request: web.Request) -> Optional[Identity]:
        scheme, _, token = request.headers.get("Authorization", "").partition(" ")
        if scheme.lower() != "bearer" or not token:
            return None
        entry = self._tokens.get(token.strip())
        if entry is None:
            log.info("Rejected unknown API token")
            return None
        return Identity(user_id=entry.user_id)

    async def is_member(self, identity: Identity, workspace_id: str) -> bool:
        return any(
            t.user_id == identity.user_id and workspace_id in t.workspaces for t in self._tokens.values()
        )


class DevModeAuthorizer:
    """Everyone is the dev user, and the dev user owns the dev workspace."""

    def __init__(self, workspace_id: str, user_id: str = "dev-user", email: str = "dev@localhost") -> None:
        self.workspace_id = workspace_id
        self.identity = Identity(user_id=user_id, email=email)

    async def authenticate(self, request: web.Request) -> Optional[Identity]:
        return self.identity

    async def is_member(self, identity: Identity, workspace_id: str) -> bool:
        return identity == self.identity and workspace_id == self.workspace_id


def build_authorizer(cfg: IngestConfig) -> Authorizer:
    log.info(dev_mode_status(cfg))
    if cfg.dev_mode_active:
        return DevModeAuthorizer(str(cfg.dev_mode.workspace_id), cfg.dev_mode.user_id, cfg.dev_mode.email)
    return TokenAuthorizer(cfg.api_tokens)
