# 이벤트 채팅 API (참가자만 접근 가능)
from fastapi import APIRouter, Depends, status
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from app.crud.chat_crud import get_gated_group, list_members, list_messages, send_message
from app.crud.event_crud import get_event
from app.database import get_db
from app.models.user import User
from app.realtime.sse_pubsub import publish_chat_message, stream_chat_events
from app.routers.transaction import commit_or_rollback
from app.schemas.chat import ChatGroupOut, MessageCreate
from app.schemas.common import ok
from app.services.auth import get_current_user

router = APIRouter(prefix="/events", tags=["Event chat"])


@router.get("/{event_id}/group")
def get_event_group(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """이벤트 채팅 그룹. 이벤트/그룹이 없으면 404, 멤버가 아니면 403."""
    with commit_or_rollback(db, "get event chat group"):
        get_event(db, event_id)
        group = get_gated_group(db, event_id, current_user.id)
        data = ChatGroupOut.model_validate(group)
    return ok(data)


@router.get("/{event_id}/messages")
def get_event_messages(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with commit_or_rollback(db, "list event messages"):
        messages = list_messages(db, event_id, current_user.id)
    return ok(messages)


@router.post("/{event_id}/messages", status_code=status.HTTP_201_CREATED)
async def post_event_message(
    event_id: int,
    body: MessageCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """메시지 전송. commit 후 Redis 발행 → SSE 구독자에게 실시간 푸시."""
    with commit_or_rollback(db, "send event message"):
        message = send_message(db, event_id, current_user.id, body.content)
    await publish_chat_message(event_id, message.model_dump(mode="json"))
    return ok(message)


@router.get("/{event_id}/members")
def get_event_members(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    with commit_or_rollback(db, "list event chat members"):
        members = list_members(db, event_id, current_user.id)
    return ok(members)


@router.get("/{event_id}/messages/stream")
def get_event_message_stream(
    event_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """SSE: 해당 이벤트 채팅의 새 메시지 실시간 스트림 (message_created). 멤버 확인은 연결 시 1회."""
    with commit_or_rollback(db, "open event chat stream"):
        get_gated_group(db, event_id, current_user.id)
    return StreamingResponse(
        stream_chat_events(event_id),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
