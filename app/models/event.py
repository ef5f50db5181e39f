# Event 모델: 클럽 러닝 이벤트 + 참가자 roster

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from app.models.base import Base

# 기본값 (프론트엔드 필터와 동일한 sentinel 문자열)
ALL_LEVELS_GROUP = "Tous niveaux"
DEFAULT_EVENT_TYPE = "Sortie"


class Event(Base):
    """이벤트 테이블. max_participants가 NULL이면 정원 무제한. 참가자 수는 저장하지 않고 roster 행을 센다."""

    __tablename__ = "events"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    date = Column(String(10), nullable=False, index=True)  # YYYY-MM-DD
    time = Column(String(5), nullable=False)  # HH:MM
    location = Column(String(200), nullable=False)
    lat = Column(Float, nullable=True)
    lng = Column(Float, nullable=True)
    distance = Column(Float, nullable=False, default=0, server_default="0")  # km
    group_name = Column(String(100), nullable=False, default=ALL_LEVELS_GROUP)
    event_type = Column(String(50), nullable=False, default=DEFAULT_EVENT_TYPE)
    max_participants = Column(Integer, nullable=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint("max_participants IS NULL OR max_participants > 0", name="ck_events_max_participants_positive"),
    )


class EventParticipant(Base):
    """참가자 roster. (event_id, user_id) 유니크 → 같은 이벤트 중복 참여 불가."""

    __tablename__ = "event_participants"

    id = Column(Integer, primary_key=True, index=True)
    event_id = Column(Integer, ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (UniqueConstraint("event_id", "user_id", name="uq_event_participant_event_user"),)
