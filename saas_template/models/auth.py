"""
Authentication schemas

Pydantic models for auth input and the responses returned by auth operations.
"""

from typing import Optional, Union, Literal
from pydantic import BaseModel, EmailStr, Field, field_validator


class AuthInputSchema(BaseModel):
    """Credentials submitted to login and signup"""
    email: EmailStr
    password: str = Field(..., min_length=6)

    @field_validator('email', mode='before')
    @classmethod
    def normalize_email(cls, v):
        if isinstance(v, str):
            return v.strip()
        return v


class SerializableUser(BaseModel):
    id: str
    email: Optional[str] = None
    created_at: str


class SerializableSession(BaseModel):
    access_token: str
    expires_at: Optional[int] = None
    refresh_token: str


class AuthData(BaseModel):
    user: Optional[SerializableUser] = None
    session: Optional[SerializableSession] = None


class AuthSuccessResponse(BaseModel):
    error: Literal[False] = False
    data: AuthData


class AuthErrorResponse(BaseModel):
    error: Literal[True] = True
    message: str


AuthResponse = Union[AuthSuccessResponse, AuthErrorResponse]


class LogoutResponse(BaseModel):
    error: bool
    message: Optional[str] = None


class AuthCheckResponse(BaseModel):
    """Result of validating the current access token"""
    error: bool
    message: Optional[str] = None
    user: Optional[SerializableUser] = None
    data: Optional[AuthData] = None


class RefreshResponse(BaseModel):
    """Result of the client-side refresh timer calling back into the server"""
    error: bool
    message: Optional[str] = None
    user: Optional[SerializableUser] = None
    data: Optional[AuthData] = None
    refresh_in: Optional[float] = None


class GetCreditsResponse(BaseModel):
    error: bool
    message: Optional[str] = None
    credits: Optional[int] = None
