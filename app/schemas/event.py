# 이벤트 API 요청/응답 스키마

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"
TITLE_TOO_SHORT = "Le titre doit contenir au moins 3 caractères"
LOCATION_REQUIRED = "Lieu requis"


class LocationCoords(BaseModel):
    """지도 좌표 (lat, lng 둘 다 있어야 함)."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


def _strip_min(v: Optional[str], min_len: int, message: str) -> Optional[str]:
    """공백 제거 후 최소 길이 검사. None(부분 수정에서 생략/null)은 crud에서 처리."""
    if v is None:
        return v
    v = v.strip()
    if len(v) < min_len:
        raise ValueError(message)
    return v


class EventCreate(BaseModel):
    """이벤트 생성 요청. group_name/event_type/max_participants는 생략 시 기본값."""

    title: str
    description: Optional[str] = None
    date: str = Field(..., pattern=DATE_PATTERN)
    time: str = Field(..., pattern=TIME_PATTERN)
    location: str
    location_coords: Optional[LocationCoords] = None
    distance: Optional[float] = Field(default=None, ge=0)
    group_name: Optional[str] = None
    event_type: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, gt=0)

    @field_validator("title")
    @classmethod
    def _title_min_length(cls, v: str) -> str:
        return _strip_min(v, 3, TITLE_TOO_SHORT)

    @field_validator("location")
    @classmethod
    def _location_required(cls, v: str) -> str:
        return _strip_min(v, 2, LOCATION_REQUIRED)


class EventUpdate(BaseModel):
    """이벤트 부분 수정. 보낸 필드만 변경 (max_participants는 null로 제한 해제 가능)."""

    title: Optional[str] = None
    description: Optional[str] = None
    date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    time: Optional[str] = Field(default=None, pattern=TIME_PATTERN)
    location: Optional[str] = None
    location_coords: Optional[LocationCoords] = None
    distance: Optional[float] = Field(default=None, ge=0)
    group_name: Optional[str] = None
    event_type: Optional[str] = None
    max_participants: Optional[int] = Field(default=None, gt=0)

    @field_validator("title")
    @classmethod
    def _title_min_length(cls, v: Optional[str]) -> Optional[str]:
        return _strip_min(v, 3, TITLE_TOO_SHORT)

    @field_validator("location")
    @classmethod
    def _location_required(cls, v: Optional[str]) -> Optional[str]:
        return _strip_min(v, 2, LOCATION_REQUIRED)


class UserBrief(BaseModel):
    """채팅/참가자 목록용 최소 사용자 정보."""

    id: int
    name: str
    avatar: Optional[str] = None


class EventResponse(BaseModel):
    """이벤트 응답."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: Optional[str] = None
    date: str
    time: str
    location: str
    location_coords: Optional[LocationCoords] = None
    distance: float = 0
    group_name: str
    event_type: str
    max_participants: Optional[int] = None
    created_by: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class EventSummary(EventResponse):
    """목록 응답 (참가자 수 + 내가 참여 중인지)."""

    participant_count: int = 0
    is_joined: bool = False


class EventDetail(EventSummary):
    """GET /events/{id} 상세 응답."""

    participants: List[UserBrief] = []
    creator: Optional[UserBrief] = None
