from pydantic import BaseModel, EmailStr, Field, model_validator
from uuid import UUID
from datetime import datetime
from typing import Optional


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    confirm_password: str = Field(alias="confirmPassword")
    name: Optional[str] = None

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def _passwords_match(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class UserOut(BaseModel):
    id: UUID
    email: str
    name: Optional[str] = None
    role: str
    last_login: Optional[datetime] = Field(default=None, serialization_alias="lastLogin")

    class Config:
        from_attributes = True


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class TokenCheck(BaseModel):
    token: str


def serialize_user(user) -> dict:
    return UserOut.model_validate(user).model_dump(mode="json", by_alias=True, exclude_none=True)
