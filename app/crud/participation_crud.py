# 참여/취소 CRUD (정원 제한 + 채팅 멤버십 동기화)
import logging
from typing import List

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.crud.errors import CapacityExceeded, Conflict, NotFound, NotInEvent
from app.crud.event_crud import count_participants, get_chat_group_by_event
from app.models.chat import ChatGroupMember, ChatRole
from app.models.event import Event, EventParticipant
from app.models.user import User
from app.schemas.participation import ParticipantOut

logger = logging.getLogger(__name__)


def _lock_event(db: Session, event_id: int) -> Event:
    """FOR UPDATE로 event 행 잠금 → 동시 join 시에도 정원 초과 방지 (SQLite에서는 무시됨)."""
    event = (
        db.query(Event)
        .filter(Event.id == event_id)
        .with_for_update()
        .first()
    )
    if event is None:
        raise NotFound("Événement non trouvé")
    return event


def _add_chat_member(db: Session, group_id: int, user_id: int) -> None:
    """멱등 추가: 이미 멤버면 (예: 생성자 admin) 기존 행 유지."""
    existing = (
        db.query(ChatGroupMember)
        .filter(ChatGroupMember.group_id == group_id, ChatGroupMember.user_id == user_id)
        .first()
    )
    if existing is None:
        db.add(ChatGroupMember(group_id=group_id, user_id=user_id, role=ChatRole.MEMBER.value))


def join_event(db: Session, event_id: int, user_id: int) -> int:
    """
    이벤트 참여.

    1. 이벤트 잠금 (없으면 NotFound)
    2. 이미 참여 중이면 Conflict (조용히 무시하지 않음)
    3. 정원이 있고 가득 찼으면 CapacityExceeded
    4. roster 추가, joined_events + 1, 채팅 그룹 멤버 추가

    반환: 갱신된 참가자 수

    ⚠️ 이 함수는 commit/rollback 하지 않음. 호출자(라우터)가 트랜잭션을 제어.
    """
    event = _lock_event(db, event_id)

    existing = (
        db.query(EventParticipant)
        .filter(
            EventParticipant.event_id == event_id,
            EventParticipant.user_id == user_id,
        )
        .first()
    )
    if existing is not None:
        raise Conflict("Vous participez déjà à cet événement")

    current_count = count_participants(db, event_id)
    if event.max_participants is not None and current_count >= event.max_participants:
        raise CapacityExceeded("Événement complet")

    try:
        db.add(EventParticipant(event_id=event_id, user_id=user_id))
        db.flush()
    except IntegrityError:
        # 동시에 같은 user가 join하면 UniqueConstraint 위반 가능
        # rollback은 호출자(라우터)에서 수행
        raise Conflict("Vous participez déjà à cet événement")

    user = db.query(User).filter(User.id == user_id).first()
    if user is not None:
        user.joined_events = (user.joined_events or 0) + 1

    group = get_chat_group_by_event(db, event_id)
    if group is not None:
        _add_chat_member(db, group.id, user_id)
    else:
        logger.warning("event %s has no companion chat group; user %s joined without chat access", event_id, user_id)

    db.flush()
    return current_count + 1


def leave_event(db: Session, event_id: int, user_id: int) -> int:
    """
    이벤트 참여 취소.

    - roster 삭제 (없으면 NotInEvent)
    - joined_events - 1 (0 미만 불가)
    - 채팅 멤버십 삭제 (역할 무관). 단 이벤트 생성자의 admin 행은 유지

    반환: 갱신된 참가자 수

    ⚠️ 이 함수는 commit/rollback 하지 않음. 호출자(라우터)가 트랜잭션을 제어.
    """
    participation = (
        db.query(EventParticipant)
        .filter(
            EventParticipant.event_id == event_id,
            EventParticipant.user_id == user_id,
        )
        .first()
    )
    if participation is None:
        raise NotInEvent("Vous ne participez pas à cet événement")

    db.delete(participation)

    user = db.query(User).filter(User.id == user_id).first()
    if user is not None and (user.joined_events or 0) > 0:
        user.joined_events -= 1

    event = db.query(Event).filter(Event.id == event_id).first()
    group = get_chat_group_by_event(db, event_id)
    if group is not None and not (event is not None and event.created_by == user_id):
        db.query(ChatGroupMember).filter(
            ChatGroupMember.group_id == group.id,
            ChatGroupMember.user_id == user_id,
        ).delete(synchronize_session=False)

    db.flush()
    return count_participants(db, event_id)


def get_participants(db: Session, event_id: int) -> List[ParticipantOut]:
    """
    참가자 목록 (id, name, avatar, joined_at). 이벤트가 없으면 NotFound.
    사용자 행이 사라진 roster 항목은 조용히 제외 (inner join).
    """
    if db.query(Event.id).filter(Event.id == event_id).first() is None:
        raise NotFound("Événement non trouvé")

    rows = (
        db.query(User.id, User.name, User.avatar, EventParticipant.joined_at)
        .join(EventParticipant, EventParticipant.user_id == User.id)
        .filter(EventParticipant.event_id == event_id)
        .order_by(EventParticipant.joined_at, EventParticipant.id)
        .all()
    )
    return [ParticipantOut(id=uid, name=name, avatar=avatar, joined_at=joined_at) for uid, name, avatar, joined_at in rows]
