# 채팅 모델: 이벤트별 채팅 그룹, 멤버, 메시지

from enum import Enum as PyEnum

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.models.base import Base


class ChatRole(str, PyEnum):
    """채팅 그룹 내 역할. 동적으로 부여되는 역할은 MEMBER뿐 (ADMIN은 이벤트 생성자 시드)."""

    ADMIN = "admin"
    MEMBER = "member"


class ChatGroup(Base):
    """채팅 그룹. event_id는 생성 시에만 설정되고 바뀌지 않음 (일반 그룹은 NULL)."""

    __tablename__ = "chat_groups"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=True, unique=True, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())


class ChatGroupMember(Base):
    """채팅 멤버십. 이벤트 연동 그룹에서는 참가자 roster를 그대로 따라감."""

    __tablename__ = "chat_group_members"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("chat_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    role = Column(String(20), nullable=False, default=ChatRole.MEMBER.value)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint("group_id", "user_id", name="uq_chat_group_member_group_user"),)


class ChatMessage(Base):
    """채팅 메시지. 생성 후 수정 없음. 보낸 사람 이름/아바타는 조회 시점에 붙인다 (탈퇴한 사용자는 sender_id NULL)."""

    __tablename__ = "chat_messages"

    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(Integer, ForeignKey("chat_groups.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), index=True)
