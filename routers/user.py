import logging
import datetime

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from core.database import get_db
from core.security import (
    hash_password, verify_password, token_for,
    get_bearer_token, get_current_user, user_from_token, revoke_token,
)
from models.user import User
from schemas.user_schema import UserCreate, UserLogin, TokenCheck, serialize_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register_user(user: UserCreate, db: Session = Depends(get_db)):
    existing_user = db.query(User).filter(User.email == user.email.lower()).first()
    if existing_user:
        raise HTTPException(status_code=400, detail="email already exists")

    new_user = User(
        email=user.email.lower(),
        name=user.name,
        password=hash_password(user.password),
        role="user",
    )
    db.add(new_user)
    db.commit()
    db.refresh(new_user)
    logger.info("Registered user %s", new_user.id)
    return {
        "success": True,
        "message": "User registered successfully",
        "data": {"user": serialize_user(new_user), "token": token_for(new_user)},
    }


@router.post("/login")
def login_user(credentials: UserLogin, db: Session = Depends(get_db)):
    user = db.query(User).filter(User.email == credentials.email.lower()).first()
    if not user or not verify_password(credentials.password, user.password):
        raise HTTPException(status_code=401, detail="Invalid email or password")

    user.last_login = datetime.datetime.utcnow()
    db.commit()
    db.refresh(user)
    return {
        "success": True,
        "message": "Login successful",
        "data": {"user": serialize_user(user), "token": token_for(user)},
    }


@router.get("/me")
def read_current_user(user: User = Depends(get_current_user)):
    return {"success": True, "data": {"user": serialize_user(user)}}


@router.post("/verify-token")
def verify_token(body: TokenCheck, db: Session = Depends(get_db)):
    user = user_from_token(body.token, db)
    return {"success": True, "message": "Token is valid", "data": {"user": serialize_user(user)}}


@router.post("/logout")
def logout_user(
    token: str = Depends(get_bearer_token),
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    revoke_token(token, db)
    logger.info("User %s logged out", user.id)
    return {"success": True, "message": "Logged out successfully"}
