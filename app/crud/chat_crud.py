# 이벤트 채팅 CRUD: 멤버십 게이트, 메시지, 멤버 목록

from typing import List, Optional

from sqlalchemy.orm import Session

from app.crud.errors import Forbidden, NotFound, ValidationError
from app.crud.event_crud import get_chat_group_by_event
from app.models.chat import ChatGroup, ChatGroupMember, ChatMessage
from app.models.user import User
from app.schemas.chat import MemberOut, MessageOut

UNKNOWN_SENDER = "Unknown"


def get_gated_group(db: Session, event_id: int, user_id: int) -> ChatGroup:
    """
    채팅 접근 게이트. 모든 채팅 읽기/쓰기 전에 호출.

    - 이벤트에 채팅 그룹이 없으면 NotFound
    - 요청자가 그룹 멤버가 아니면 Forbidden
      (이벤트 생성자나 시스템 admin이라도 멤버가 아니면 접근 불가)
    """
    group = get_chat_group_by_event(db, event_id)
    if group is None:
        raise NotFound("Chat group not found for this event")

    is_member = (
        db.query(ChatGroupMember.id)
        .filter(ChatGroupMember.group_id == group.id, ChatGroupMember.user_id == user_id)
        .first()
        is not None
    )
    if not is_member:
        raise Forbidden("You are not a member of this chat group")
    return group


def _enrich(message: ChatMessage, sender: Optional[User]) -> MessageOut:
    return MessageOut(
        id=message.id,
        group_id=message.group_id,
        sender_id=message.sender_id,
        sender_name=sender.name if sender is not None else UNKNOWN_SENDER,
        sender_avatar=sender.avatar if sender is not None else None,
        content=message.content,
        created_at=message.created_at,
    )


def list_messages(db: Session, event_id: int, user_id: int) -> List[MessageOut]:
    """메시지 목록 (오래된 순). 보낸 사람 이름/아바타는 지금 시점의 사용자 정보로 채움."""
    group = get_gated_group(db, event_id, user_id)
    rows = (
        db.query(ChatMessage, User)
        .outerjoin(User, User.id == ChatMessage.sender_id)
        .filter(ChatMessage.group_id == group.id)
        .order_by(ChatMessage.created_at, ChatMessage.id)
        .all()
    )
    return [_enrich(message, sender) for message, sender in rows]


def send_message(db: Session, event_id: int, user_id: int, content: str) -> MessageOut:
    """
    메시지 전송. 공백 제거 후 비어 있으면 ValidationError (게이트 확인 전에 검사).

    ⚠️ 이 함수는 commit/rollback 하지 않음.
    """
    content = (content or "").strip()
    if not content:
        raise ValidationError("Message content is required")

    group = get_gated_group(db, event_id, user_id)
    message = ChatMessage(group_id=group.id, sender_id=user_id, content=content)
    db.add(message)
    db.flush()
    db.refresh(message)

    sender = db.query(User).filter(User.id == user_id).first()
    return _enrich(message, sender)


def list_members(db: Session, event_id: int, user_id: int) -> List[MemberOut]:
    group = get_gated_group(db, event_id, user_id)
    rows = (
        db.query(ChatGroupMember, User)
        .outerjoin(User, User.id == ChatGroupMember.user_id)
        .filter(ChatGroupMember.group_id == group.id)
        .order_by(ChatGroupMember.joined_at, ChatGroupMember.id)
        .all()
    )
    return [
        MemberOut(
            user_id=member.user_id,
            name=user.name if user is not None else UNKNOWN_SENDER,
            avatar=user.avatar if user is not None else None,
            role=member.role,
            joined_at=member.joined_at,
        )
        for member, user in rows
    ]
