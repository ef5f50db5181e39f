# 이벤트 채팅 API 스키마

from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict

ChatRoleLiteral = Literal["admin", "member"]


class ChatGroupOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    event_id: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class MessageCreate(BaseModel):
    """메시지 전송. 공백만 있는 내용은 crud에서 거부."""

    content: str


class MessageOut(BaseModel):
    """보낸 사람 이름/아바타는 조회 시점의 값 (저장하지 않음)."""

    id: int
    group_id: int
    sender_id: Optional[int] = None
    sender_name: str
    sender_avatar: Optional[str] = None
    content: str
    created_at: Optional[datetime] = None


class MemberOut(BaseModel):
    user_id: int
    name: str
    avatar: Optional[str] = None
    role: ChatRoleLiteral
    joined_at: Optional[datetime] = None
