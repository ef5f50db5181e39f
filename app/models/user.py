# User 모델: 러닝 클럽 회원

from enum import Enum as PyEnum

from sqlalchemy import Boolean, Column, Float, Integer, String, DateTime
from sqlalchemy.sql import func

from app.models.base import Base


class UserRole(str, PyEnum):
    """회원 역할. 이벤트 생성은 ADMIN/COACH만 가능."""

    ADMIN = "admin"
    COACH = "coach"
    MEMBER = "member"


DEFAULT_GROUP_NAME = "Débutant"


class User(Base):
    """사용자 테이블. strava_* 컬럼은 OAuth 토큰 저장용 (API 응답에 절대 노출하지 않음)."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), nullable=False, unique=True, index=True)  # 항상 소문자로 저장
    password_hash = Column(String(255), nullable=False)
    name = Column(String(100), nullable=False)
    avatar = Column(String(500), nullable=True)
    role = Column(String(20), nullable=False, default=UserRole.MEMBER.value, server_default=UserRole.MEMBER.value)
    group_name = Column(String(100), nullable=True, default=DEFAULT_GROUP_NAME)
    distance = Column(Float, nullable=False, default=0, server_default="0")  # 누적 거리(km)
    runs = Column(Integer, nullable=False, default=0, server_default="0")
    joined_events = Column(Integer, nullable=False, default=0, server_default="0")  # 참여 중인 이벤트 수 (roster와 같은 트랜잭션에서 갱신)
    strava_connected = Column(Boolean, nullable=False, default=False, server_default="0")
    strava_id = Column(String(50), nullable=True)
    strava_access_token = Column(String(255), nullable=True)
    strava_refresh_token = Column(String(255), nullable=True)
    strava_token_expires_at = Column(Integer, nullable=True)  # unix seconds
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
