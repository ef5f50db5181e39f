# 이벤트 생성/조회/수정/삭제 + 참여/취소 API
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from app.crud.event_crud import create_event, delete_event, get_event, list_events, update_event
from app.crud.participation_crud import get_participants, join_event, leave_event
from app.database import get_db
from app.models.event import Event
from app.models.user import User, UserRole
from app.routers.transaction import commit_or_rollback
from app.schemas.common import ok
from app.schemas.event import (
    EventCreate,
    EventDetail,
    EventResponse,
    EventSummary,
    EventUpdate,
    LocationCoords,
    UserBrief,
)
from app.schemas.participation import ParticipationResult
from app.services.auth import get_current_user, get_current_user_optional, require_role

router = APIRouter(prefix="/events", tags=["Events"])


def _event_to_response(event: Event) -> EventResponse:
    """lat/lng 컬럼 → location_coords({lat, lng} 또는 None)."""
    coords = None
    if event.lat is not None and event.lng is not None:
        coords = LocationCoords(lat=event.lat, lng=event.lng)
    return EventResponse(
        id=event.id,
        title=event.title,
        description=event.description,
        date=event.date,
        time=event.time,
        location=event.location,
        location_coords=coords,
        distance=event.distance or 0,
        group_name=event.group_name,
        event_type=event.event_type,
        max_participants=event.max_participants,
        created_by=event.created_by,
        created_at=event.created_at,
        updated_at=event.updated_at,
    )


@router.get("")
def get_events(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    group: Optional[str] = Query(None),
    type: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """이벤트 목록. 로그인 상태면 is_joined 포함. 날짜순 정렬."""
    with commit_or_rollback(db, "list events"):
        rows = list_events(db, date=date, group=group, event_type=type, viewer_id=current_user.id if current_user else None)
        data: List[EventSummary] = [
            EventSummary(**_event_to_response(e).model_dump(), participant_count=count, is_joined=joined)
            for e, count, joined in rows
        ]
    return ok(data)


@router.get("/{event_id}")
def get_event_detail(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: Optional[User] = Depends(get_current_user_optional),
):
    """이벤트 상세 (참가자, 생성자 포함). 없으면 404."""
    with commit_or_rollback(db, "get event"):
        event = get_event(db, event_id)
        participants = get_participants(db, event_id)
        creator = None
        if event.created_by is not None:
            creator = db.query(User).filter(User.id == event.created_by).first()
        detail = EventDetail(
            **_event_to_response(event).model_dump(),
            participant_count=len(participants),
            is_joined=current_user is not None and any(p.id == current_user.id for p in participants),
            participants=[UserBrief(id=p.id, name=p.name, avatar=p.avatar) for p in participants],
            creator=UserBrief(id=creator.id, name=creator.name, avatar=creator.avatar) if creator else None,
        )
    return ok(detail)


@router.post("", status_code=status.HTTP_201_CREATED)
def post_event(
    body: EventCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN.value, UserRole.COACH.value)),
):
    """이벤트 생성. 채팅 그룹 + 생성자 admin 멤버십까지 한 트랜잭션으로 저장."""
    with commit_or_rollback(db, "create event"):
        event = create_event(db, body.model_dump(), current_user)
    db.refresh(event)
    return ok(_event_to_response(event))


@router.put("/{event_id}")
def put_event(
    event_id: int,
    body: EventUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """이벤트 부분 수정 (생성자 또는 admin)."""
    with commit_or_rollback(db, "update event"):
        event = update_event(db, event_id, body.model_dump(exclude_unset=True), current_user)
    db.refresh(event)
    return ok(_event_to_response(event))


@router.delete("/{event_id}")
def remove_event(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """이벤트 삭제. roster + 채팅 그룹(멤버/메시지)까지 함께 삭제."""
    with commit_or_rollback(db, "delete event"):
        delete_event(db, event_id, current_user)
    return ok(message="Événement supprimé")


@router.post("/{event_id}/join")
def post_join(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """이벤트 참여. 채팅 그룹 멤버로도 추가. 예외 시 rollback."""
    with commit_or_rollback(db, "join event"):
        count = join_event(db, event_id, current_user.id)
    return ok(ParticipationResult(participant_count=count), message="Inscription réussie")


@router.delete("/{event_id}/leave")
def delete_leave(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """이벤트 참여 취소. 채팅 멤버십도 함께 제거. 예외 시 rollback."""
    with commit_or_rollback(db, "leave event"):
        count = leave_event(db, event_id, current_user.id)
    return ok(ParticipationResult(participant_count=count), message="Désinscription réussie")


@router.get("/{event_id}/participants")
def get_event_participants(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with commit_or_rollback(db, "list participants"):
        participants = get_participants(db, event_id)
    return ok(participants)
