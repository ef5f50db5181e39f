# 이벤트 생성/수정/삭제/조회 CRUD (채팅 그룹 자동 생성 포함)
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.crud.errors import Forbidden, NotFound, ValidationError
from app.models.chat import ChatGroup, ChatGroupMember, ChatMessage, ChatRole
from app.models.event import ALL_LEVELS_GROUP, DEFAULT_EVENT_TYPE, Event, EventParticipant
from app.models.user import User, UserRole

logger = logging.getLogger(__name__)

EVENT_CREATOR_ROLES = {UserRole.ADMIN.value, UserRole.COACH.value}

# 부분 수정 시 null을 허용하지 않는 컬럼
_NON_NULLABLE_FIELDS = {"title", "date", "time", "location", "distance", "group_name", "event_type"}


def can_manage_event(event: Event, user: User) -> bool:
    """수정/삭제 권한: 생성자 또는 admin."""
    return event.created_by == user.id or user.role == UserRole.ADMIN.value


def get_event(db: Session, event_id: int, for_update: bool = False) -> Event:
    q = db.query(Event).filter(Event.id == event_id)
    if for_update:
        # join과 같은 행 잠금 (정원 변경 vs 동시 join)
        q = q.with_for_update()
    event = q.first()
    if event is None:
        raise NotFound("Événement non trouvé")
    return event


def get_chat_group_by_event(db: Session, event_id: int) -> Optional[ChatGroup]:
    """이벤트에 연결된 채팅 그룹 (없으면 None)."""
    return db.query(ChatGroup).filter(ChatGroup.event_id == event_id).first()


def count_participants(db: Session, event_id: int) -> int:
    """참가자 수는 저장값이 아니라 roster 행 수로 계산."""
    return (
        db.query(func.count(EventParticipant.id))
        .filter(EventParticipant.event_id == event_id)
        .scalar()
        or 0
    )


def _provision_chat_group(db: Session, event: Event, creator: User) -> ChatGroup:
    """이벤트 전용 채팅 그룹 생성 + 생성자를 admin으로 추가. commit 하지 않음."""
    group = ChatGroup(
        name=f"Chat: {event.title}",
        description=f'Groupe de discussion pour l\'événement "{event.title}"',
        event_id=event.id,
        created_by=creator.id,
    )
    db.add(group)
    db.flush()
    db.add(ChatGroupMember(group_id=group.id, user_id=creator.id, role=ChatRole.ADMIN.value))
    db.flush()
    return group


def create_event(db: Session, data: Dict[str, Any], creator: User) -> Event:
    """
    이벤트 생성.

    - admin/coach만 가능 (아니면 Forbidden)
    - 이벤트 → 채팅 그룹 → 생성자 admin 멤버를 같은 트랜잭션에서 저장
    - 채팅 그룹 생성 실패 시 별도 로그를 남기고 예외 전파 (라우터 rollback → 이벤트도 저장되지 않음)

    ⚠️ 이 함수는 commit/rollback 하지 않음. 호출자(라우터)가 트랜잭션을 제어.
    """
    if creator.role not in EVENT_CREATOR_ROLES:
        raise Forbidden("Accès refusé: rôle insuffisant")

    coords = data.get("location_coords")
    event = Event(
        title=data["title"],
        description=data.get("description"),
        date=data["date"],
        time=data["time"],
        location=data["location"],
        lat=coords["lat"] if coords else None,
        lng=coords["lng"] if coords else None,
        distance=data.get("distance") or 0,
        group_name=data.get("group_name") or ALL_LEVELS_GROUP,
        event_type=data.get("event_type") or DEFAULT_EVENT_TYPE,
        max_participants=data.get("max_participants"),
        created_by=creator.id,
    )
    db.add(event)
    db.flush()

    try:
        _provision_chat_group(db, event, creator)
    except SQLAlchemyError:
        logger.error(
            "event %s created but chat group provisioning failed; rolling back",
            event.id,
            exc_info=True,
        )
        raise

    logger.info("event %s created by user %s with companion chat group", event.id, creator.id)
    return event


def update_event(db: Session, event_id: int, patch: Dict[str, Any], user: User) -> Event:
    """
    이벤트 부분 수정. patch에 들어 있는 필드만 변경하고 updated_at은 항상 갱신.
    채팅 그룹은 건드리지 않음.

    ⚠️ 이 함수는 commit/rollback 하지 않음.
    """
    event = get_event(db, event_id, for_update=True)
    if not can_manage_event(event, user):
        raise Forbidden("Non autorisé")

    for key in _NON_NULLABLE_FIELDS:
        if key in patch and patch[key] is None:
            raise ValidationError(f"Le champ {key} ne peut pas être vide")

    new_cap = patch.get("max_participants")
    if new_cap is not None:
        current = count_participants(db, event_id)
        if new_cap < current:
            raise ValidationError(f"La capacité ne peut pas être inférieure au nombre de participants ({current})")

    if "location_coords" in patch:
        coords = patch.pop("location_coords")
        event.lat = coords["lat"] if coords else None
        event.lng = coords["lng"] if coords else None

    for key, value in patch.items():
        setattr(event, key, value)
    event.updated_at = datetime.now(timezone.utc)
    db.flush()
    return event


def delete_event(db: Session, event_id: int, user: User) -> None:
    """
    이벤트 삭제.

    같은 트랜잭션에서 roster, 채팅 그룹(멤버/메시지 포함), 이벤트를 모두 삭제하고
    참가자들의 joined_events를 1씩 감소 (0 미만 불가).

    ⚠️ 이 함수는 commit/rollback 하지 않음.
    """
    event = get_event(db, event_id)
    if not can_manage_event(event, user):
        raise Forbidden("Non autorisé")

    participant_ids = [
        uid for (uid,) in db.query(EventParticipant.user_id).filter(EventParticipant.event_id == event_id).all()
    ]
    if participant_ids:
        db.query(User).filter(User.id.in_(participant_ids), User.joined_events > 0).update(
            {User.joined_events: User.joined_events - 1}, synchronize_session=False
        )

    group = get_chat_group_by_event(db, event_id)
    if group is not None:
        db.query(ChatMessage).filter(ChatMessage.group_id == group.id).delete(synchronize_session=False)
        db.query(ChatGroupMember).filter(ChatGroupMember.group_id == group.id).delete(synchronize_session=False)
        db.delete(group)
        db.flush()

    db.query(EventParticipant).filter(EventParticipant.event_id == event_id).delete(synchronize_session=False)
    db.delete(event)
    db.flush()
    logger.info(
        "event %s deleted by user %s (%d participants, chat group %s)",
        event_id,
        user.id,
        len(participant_ids),
        group.id if group is not None else None,
    )


def list_events(
    db: Session,
    date: Optional[str] = None,
    group: Optional[str] = None,
    event_type: Optional[str] = None,
    viewer_id: Optional[int] = None,
) -> List[Tuple[Event, int, bool]]:
    """
    이벤트 목록. (event, participant_count, is_joined) 리스트를 날짜/시간 오름차순으로 반환.
    group 필터는 해당 그룹 + "Tous niveaux" 이벤트를 함께 포함.
    """
    q = db.query(Event)
    if date:
        q = q.filter(Event.date == date)
    if group:
        q = q.filter(or_(Event.group_name == group, Event.group_name == ALL_LEVELS_GROUP))
    if event_type:
        q = q.filter(Event.event_type == event_type)
    events = q.order_by(Event.date, Event.time, Event.id).all()
    if not events:
        return []

    ids = [e.id for e in events]
    counts = dict(
        db.query(EventParticipant.event_id, func.count(EventParticipant.id))
        .filter(EventParticipant.event_id.in_(ids))
        .group_by(EventParticipant.event_id)
        .all()
    )
    joined: set = set()
    if viewer_id is not None:
        joined = {
            eid
            for (eid,) in db.query(EventParticipant.event_id)
            .filter(EventParticipant.event_id.in_(ids), EventParticipant.user_id == viewer_id)
            .all()
        }
    return [(e, counts.get(e.id, 0), e.id in joined) for e in events]
