import uuid
from datetime import datetime, timedelta

from fastapi import Depends, HTTPException, status, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from core.config import settings
from core.database import get_db
from models.user import User, RevokedToken

# Seguridad
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")
auth_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)


def create_access_token(data: dict, expires_delta: timedelta | None = None):
    to_encode = data.copy()
    expire = datetime.utcnow() + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    to_encode.update({"exp": expire, "jti": uuid.uuid4().hex})
    return jwt.encode(to_encode, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def token_for(user: User) -> str:
    return create_access_token({"sub": str(user.id), "role": user.role})


def _unauthorized(message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=message,
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> dict:
    """Decode a bearer token, raising 401 with a distinct message for expired and malformed tokens."""
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except ExpiredSignatureError:
        raise _unauthorized("Token expired")
    except JWTError:
        raise _unauthorized("Invalid token")


def user_from_token(token: str, db: Session) -> User:
    payload = decode_token(token)
    jti = payload.get("jti")
    if jti and db.get(RevokedToken, jti) is not None:
        raise _unauthorized("Invalid token")
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise _unauthorized("Invalid token")
    user = db.get(User, user_id)
    if user is None:
        raise _unauthorized("Invalid token")
    return user


def get_bearer_token(credentials: HTTPAuthorizationCredentials | None = Security(auth_scheme)) -> str:
    if credentials is None or not credentials.credentials:
        raise _unauthorized("Access token required")
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_bearer_token),
    db: Session = Depends(get_db),
) -> User:
    return user_from_token(token, db)


def revoke_token(token: str, db: Session) -> None:
    payload = decode_token(token)
    jti = payload.get("jti")
    if not jti or db.get(RevokedToken, jti) is not None:
        return
    db.add(RevokedToken(jti=jti, expires_at=datetime.utcfromtimestamp(payload["exp"])))
    db.commit()


def ensure_owner_or_admin(owner_id: uuid.UUID, user: User, action: str) -> None:
    if owner_id != user.id and not user.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Not authorized to {action} this project",
        )
