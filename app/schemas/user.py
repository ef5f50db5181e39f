# 인증/사용자 API 스키마

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field

UserRoleLiteral = Literal["admin", "coach", "member"]


class RegisterBody(BaseModel):
    name: str = Field(..., min_length=2)
    email: EmailStr
    password: str = Field(..., min_length=6)


class LoginBody(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class PasswordChangeBody(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=6)


class UserOut(BaseModel):
    """API 응답용 사용자. password_hash/strava 토큰은 포함하지 않음."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    email: str
    name: str
    avatar: Optional[str] = None
    role: UserRoleLiteral
    group_name: Optional[str] = None
    distance: float = 0
    runs: int = 0
    joined_events: int = 0
    strava_connected: bool = False
    strava_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuthResult(BaseModel):
    user: UserOut
    token: str


class UserUpdate(BaseModel):
    """프로필 수정 (본인 또는 admin)."""

    name: Optional[str] = Field(default=None, min_length=2)
    avatar: Optional[str] = None
    group_name: Optional[str] = None


class RoleUpdate(BaseModel):
    role: UserRoleLiteral


class StatsUpdate(BaseModel):
    """누적 통계에 더할 값."""

    distance: Optional[float] = Field(default=None, ge=0)
    runs: Optional[int] = Field(default=None, ge=0)
