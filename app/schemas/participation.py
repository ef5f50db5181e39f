# 참여/취소 응답 스키마

from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class ParticipationResult(BaseModel):
    """join/leave 후 현재 참가자 수."""

    participant_count: int


class ParticipantOut(BaseModel):
    """GET /events/{id}/participants 항목."""

    id: int
    name: str
    avatar: Optional[str] = None
    joined_at: Optional[datetime] = None
