# Strava 토큰 관리: 만료 5분 전까지는 저장된 토큰 사용, 그 이후 refresh

import logging
import time
from typing import Any, Dict, Optional

import httpx
from sqlalchemy.orm import Session

from app.integrations import strava
from app.models.user import User

logger = logging.getLogger(__name__)

EXPIRY_BUFFER_SEC = 300


def store_tokens(user: User, token_data: Dict[str, Any]) -> None:
    """token 응답(access/refresh/expires_at) → user 컬럼. commit은 호출자가."""
    user.strava_access_token = token_data.get("access_token")
    user.strava_refresh_token = token_data.get("refresh_token") or user.strava_refresh_token
    user.strava_token_expires_at = token_data.get("expires_at")


def clear_strava(user: User) -> None:
    user.strava_connected = False
    user.strava_id = None
    user.strava_access_token = None
    user.strava_refresh_token = None
    user.strava_token_expires_at = None


async def get_valid_access_token(db: Session, user: User, now: Optional[int] = None) -> Optional[str]:
    """
    유효한 access token 반환.

    - 만료까지 EXPIRY_BUFFER_SEC 초 넘게 남았으면 저장된 토큰 그대로
    - 아니면 refresh 후 저장 (commit까지 수행)
    - refresh 실패 시 None (라우터에서 401)
    """
    if not user.strava_access_token:
        return None

    now = int(time.time()) if now is None else now
    if user.strava_token_expires_at and user.strava_token_expires_at > now + EXPIRY_BUFFER_SEC:
        return user.strava_access_token

    if not user.strava_refresh_token:
        return None

    logger.info("refreshing strava token for user %s", user.id)
    try:
        token_data = await strava.refresh_access_token(user.strava_refresh_token)
    except (strava.StravaError, httpx.HTTPError):
        logger.warning("strava token refresh failed for user %s", user.id, exc_info=True)
        return None

    store_tokens(user, token_data)
    db.commit()
    return user.strava_access_token
