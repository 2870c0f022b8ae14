from enum import Enum

from sqlalchemy import Column, String, Boolean
from sqlalchemy.orm import relationship
from sqlalchemy.types import Enum as SAEnum

from models.base_model import Base, BaseModel


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


class User(BaseModel, Base):
    __tablename__ = "users"

    user_name = Column(String(64), nullable=False)
    first_name = Column(String(255), nullable=False)
    last_name = Column(String(255), nullable=False)
    # Stored lower-cased; uniqueness is therefore case-insensitive
    email = Column(String(320), nullable=False, unique=True, index=True)
    password_hash = Column(String(255), nullable=False)
    role = Column(SAEnum(Role, name="user_role", native_enum=False), nullable=False, default=Role.USER)
    is_active = Column(Boolean, nullable=False, default=True)

    refresh_token_blacklist = relationship(
        "BlacklistedToken",
        back_populates="user",
        order_by="BlacklistedToken.revoked_at",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def password(self):
        raise AttributeError("Password: Write-only field")

    @property
    def role_name(self) -> str:
        return self.role.value if isinstance(self.role, Role) else str(self.role)
