"""Bearer token validation against an in-memory token store"""

from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

import structlog

from app.schemas.auth import TokenRecord, TokenValidation, User

logger = structlog.get_logger()

INVALID_TOKEN_MESSAGE = "Invalid or expired token"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenValidator:
    """
    Maps opaque bearer tokens to user identities.

    Tokens are provisioned out of band (admin provisioning, AUTH_TOKENS_JSON,
    tests). A token expires `ttl_seconds` after it is added; with no TTL it
    lives until revoked.
    """

    def __init__(
        self,
        default_ttl_seconds: Optional[int] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.default_ttl_seconds = default_ttl_seconds
        self._clock = clock
        self._tokens: Dict[str, TokenRecord] = {}

    def add_token(self, token: str, user: User, ttl_seconds: Optional[int] = None) -> TokenRecord:
        ttl = ttl_seconds if ttl_seconds is not None else self.default_ttl_seconds
        now = self._clock()
        record = TokenRecord(
            user=user,
            issued_at=now,
            expires_at=now + timedelta(seconds=ttl) if ttl is not None else None,
        )
        self._tokens[token] = record
        logger.info("Token provisioned", user_id=user.id, expires_at=record.expires_at)
        return record

    def revoke(self, token: str) -> bool:
        return self._tokens.pop(token, None) is not None

    def load(self, provisioned: Dict[str, dict]) -> int:
        """Provision tokens from {token: {"id": ..., "phone_number": ...}}"""
        for token, user in provisioned.items():
            self.add_token(token, User.model_validate(user))
        return len(provisioned)

    async def validate(self, token: str) -> TokenValidation:
        """Validate a bearer token. Never raises for unknown or expired tokens."""
        record = self._tokens.get(token)

        if record is None:
            logger.info("Token validation failed", reason="unknown")
            return TokenValidation(is_valid=False, message=INVALID_TOKEN_MESSAGE)

        if record.expires_at is not None and record.expires_at <= self._clock():
            self._tokens.pop(token, None)
            logger.info("Token validation failed", reason="expired", user_id=record.user.id)
            return TokenValidation(is_valid=False, message=INVALID_TOKEN_MESSAGE)

        return TokenValidation(is_valid=True, user=record.user)
