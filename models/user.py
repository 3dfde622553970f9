import uuid
import datetime
from sqlalchemy import Column, String, TIMESTAMP
from sqlalchemy.dialects.postgresql import UUID
from core.database import Base

ROLES = ("user", "admin")


class User(Base):
    __tablename__ = "user"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    email = Column(String, unique=True, nullable=False, index=True)
    name = Column(String, nullable=True)
    password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="user")
    last_login = Column(TIMESTAMP, nullable=True)
    created_at = Column(TIMESTAMP, default=datetime.datetime.utcnow)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"


class RevokedToken(Base):
    """Token ids invalidated by logout until they would have expired anyway."""

    __tablename__ = "revoked_token"

    jti = Column(String, primary_key=True)
    expires_at = Column(TIMESTAMP, nullable=False)
