"""
BlacklistedToken model: one revoked refresh-token jti owned by a user.
Fields:
- user_id (String(36)) - FK to users.id
- jti
- expires_at - UNIX milliseconds, equal to the revoked token's exp * 1000
- revoked_at - UNIX milliseconds, keeps the per-user collection ordered
"""
import time

from sqlalchemy import Column, String, BigInteger, ForeignKey, UniqueConstraint, Index
from sqlalchemy.orm import relationship

from models.base_model import BaseModel, Base


def now_ms() -> int:
    return int(time.time() * 1000)


class BlacklistedToken(BaseModel, Base):
    __tablename__ = "blacklisted_tokens"

    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    jti = Column(String(64), nullable=False)
    expires_at = Column(BigInteger, nullable=False)
    revoked_at = Column(BigInteger, nullable=False, default=now_ms)

    user = relationship("User", back_populates="refresh_token_blacklist")

    __table_args__ = (
        UniqueConstraint("user_id", "jti", name="uq_blacklisted_tokens_user_jti"),
        Index("ix_blacklisted_tokens_expires_at", "expires_at"),
    )

    def __repr__(self):
        return f"<BlacklistedToken jti={self.jti} expires_at={self.expires_at}>"
