from typing import List, Optional

from pydantic import BaseModel


class User(BaseModel):
    """User document; ``id`` equals the identity provider UID."""

    id: str
    email: str
    username: str
    join_date: int = 0
    households: List[str] = []


class RegisterRequest(BaseModel):
    email: str
    password: str
    username: str
    household_name: Optional[str] = None


class LoginRequest(BaseModel):
    email: str
    password: str


class TokenResponse(BaseModel):
    ok: bool = True
    user_id: str
    token: str
