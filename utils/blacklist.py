"""
Refresh-token blacklist operations.

Every mutation touches single rows of `blacklisted_tokens` (targeted
INSERT / DELETE), never the whole per-user collection, so a periodic sweep
and a login/refresh for the same user cannot undo each other.
Nothing here commits; callers commit once per request.
"""
from __future__ import annotations

import logging
from typing import List, Optional

from models import storage
from models.blacklisted_token import BlacklistedToken, now_ms
from models.user import User

logger = logging.getLogger(__name__)


def _user_id(user) -> str:
    return user.id if isinstance(user, User) else str(user)


def sweep_expired(user, now: Optional[int] = None) -> int:
    """Delete the user's entries with expires_at <= now (ms). Returns the count."""
    now = now_ms() if now is None else now
    session = storage.get_session()
    return (
        session.query(BlacklistedToken)
        .filter(BlacklistedToken.user_id == _user_id(user))
        .filter(BlacklistedToken.expires_at <= now)
        .delete(synchronize_session=False)
    )


def sweep_all(now: Optional[int] = None) -> int:
    """Delete expired entries for every user in one statement."""
    now = now_ms() if now is None else now
    session = storage.get_session()
    return (
        session.query(BlacklistedToken)
        .filter(BlacklistedToken.expires_at <= now)
        .delete(synchronize_session=False)
    )


def contains(user, jti: str) -> bool:
    session = storage.get_session()
    query = (
        session.query(BlacklistedToken.id)
        .filter(BlacklistedToken.user_id == _user_id(user))
        .filter(BlacklistedToken.jti == jti)
    )
    return session.query(query.exists()).scalar()


def revoke(user, jti: str, exp: int) -> BlacklistedToken:
    """
    Blacklist a refresh token.
    `exp` is the token's exp claim in UNIX seconds; it is stored as milliseconds.
    """
    session = storage.get_session()
    existing = (
        session.query(BlacklistedToken)
        .filter(BlacklistedToken.user_id == _user_id(user))
        .filter(BlacklistedToken.jti == jti)
        .first()
    )
    if existing is not None:
        return existing
    entry = BlacklistedToken(user_id=_user_id(user), jti=jti, expires_at=int(exp) * 1000)
    storage.new(entry)
    session.flush()
    logger.info("Blacklisted refresh token jti=%s for user=%s", jti, entry.user_id)
    return entry


def entries(user) -> List[BlacklistedToken]:
    """The user's blacklist in revocation order."""
    session = storage.get_session()
    return (
        session.query(BlacklistedToken)
        .filter(BlacklistedToken.user_id == _user_id(user))
        .order_by(BlacklistedToken.revoked_at, BlacklistedToken.id)
        .all()
    )
