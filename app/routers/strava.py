# Strava 연동 API (OAuth, 활동/통계 조회, 거리 동기화)
import logging
from typing import Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.orm import Session

from app.database import get_db
from app.integrations import strava
from app.models.user import User
from app.routers.transaction import commit_or_rollback
from app.schemas.common import ok
from app.services.auth import get_current_user
from app.services.strava_service import clear_strava, get_valid_access_token, store_tokens

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/strava", tags=["Strava"])

NOT_CONNECTED = "Strava non connecté"
INVALID_TOKEN = "Token Strava invalide. Veuillez reconnecter votre compte."


class CallbackBody(BaseModel):
    """OAuth 콜백. state에는 인증 URL 생성 시 넣은 user id가 들어 있음."""

    code: Optional[str] = None
    state: Optional[str] = None


async def _require_token(db: Session, user: User) -> str:
    if not user.strava_connected:
        raise HTTPException(status_code=400, detail=NOT_CONNECTED)
    token = await get_valid_access_token(db, user)
    if token is None:
        raise HTTPException(status_code=401, detail=INVALID_TOKEN)
    return token


def _upstream_error(e: Exception, fallback: str) -> HTTPException:
    """Strava 401 → 401 (재연결 필요), 그 외 → 500. 내부 정보는 로그에만."""
    if isinstance(e, strava.StravaError) and e.status_code == 401:
        return HTTPException(status_code=401, detail="Token Strava expiré. Veuillez reconnecter votre compte.")
    return HTTPException(status_code=500, detail=fallback)


@router.get("/auth")
def get_auth_url(current_user: User = Depends(get_current_user)):
    return ok({"authUrl": strava.build_authorize_url(str(current_user.id))})


@router.post("/callback")
async def post_callback(body: CallbackBody, db: Session = Depends(get_db)):
    """authorization code → 토큰 교환 후 사용자에 저장. 인증 없이 state(user id)로 사용자 식별."""
    if not body.code:
        raise HTTPException(status_code=400, detail="Code d'autorisation manquant")
    if not body.state:
        raise HTTPException(status_code=400, detail="User ID manquant (state parameter)")
    try:
        user_id = int(body.state)
    except ValueError:
        raise HTTPException(status_code=400, detail="User ID invalide (state parameter)")

    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(status_code=404, detail="Utilisateur non trouvé")

    try:
        token_data = await strava.exchange_code(body.code)
    except strava.StravaError as e:
        logger.warning("strava code exchange failed for user %s: %s", user_id, e.message)
        raise HTTPException(status_code=400, detail=e.message)
    except httpx.HTTPError:
        logger.warning("strava code exchange failed for user %s", user_id, exc_info=True)
        raise HTTPException(status_code=400, detail="Erreur lors de la connexion à Strava")

    athlete = token_data.get("athlete") or {}
    with commit_or_rollback(db, "strava callback"):
        store_tokens(user, token_data)
        user.strava_connected = True
        user.strava_id = str(athlete.get("id")) if athlete.get("id") is not None else None
    logger.info("user %s connected to strava athlete %s", user_id, user.strava_id)

    return ok(
        {
            "athleteId": user.strava_id,
            "firstName": athlete.get("firstname"),
            "lastName": athlete.get("lastname"),
            "profile": athlete.get("profile"),
        }
    )


@router.get("/activities")
async def get_activities(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """최근 30일 러닝 활동."""
    token = await _require_token(db, current_user)
    try:
        activities = await strava.get_recent_runs(token)
    except (strava.StravaError, httpx.HTTPError) as e:
        logger.warning("strava activities failed for user %s", current_user.id, exc_info=True)
        raise _upstream_error(e, "Erreur lors du chargement des activités")
    return ok(activities)


@router.get("/athlete")
async def get_athlete(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    token = await get_valid_access_token(db, current_user)
    if token is None:
        raise HTTPException(status_code=401, detail=NOT_CONNECTED)
    try:
        athlete = await strava.get_athlete(token)
    except (strava.StravaError, httpx.HTTPError) as e:
        logger.warning("strava athlete failed for user %s", current_user.id, exc_info=True)
        raise _upstream_error(e, "Erreur lors du chargement du profil")
    return ok(
        {
            "id": athlete.get("id"),
            "firstName": athlete.get("firstname"),
            "lastName": athlete.get("lastname"),
            "profile": athlete.get("profile"),
            "city": athlete.get("city"),
            "country": athlete.get("country"),
        }
    )


@router.get("/stats")
async def get_stats(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    if not current_user.strava_id:
        raise HTTPException(status_code=400, detail=NOT_CONNECTED)
    token = await _require_token(db, current_user)
    try:
        stats = await strava.get_athlete_stats(token, current_user.strava_id)
    except (strava.StravaError, httpx.HTTPError) as e:
        logger.warning("strava stats failed for user %s", current_user.id, exc_info=True)
        raise _upstream_error(e, "Erreur lors du chargement des stats")
    return ok(
        {
            "recentRuns": stats.get("recent_run_totals"),
            "allTimeRuns": stats.get("all_run_totals"),
            "ytdRuns": stats.get("ytd_run_totals"),
        }
    )


@router.post("/sync-distance")
async def post_sync_distance(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    """Strava 전체 러닝 합계(m) → km 반올림해서 프로필 distance/runs 갱신."""
    if not current_user.strava_id:
        raise HTTPException(status_code=400, detail=NOT_CONNECTED)
    token = await _require_token(db, current_user)
    try:
        stats = await strava.get_athlete_stats(token, current_user.strava_id)
    except (strava.StravaError, httpx.HTTPError) as e:
        logger.warning("strava sync failed for user %s", current_user.id, exc_info=True)
        raise _upstream_error(e, "Erreur lors de la synchronisation")

    totals = stats.get("all_run_totals") or {}
    distance_km = round((totals.get("distance") or 0) / 1000)
    runs = totals.get("count") or 0
    with commit_or_rollback(db, "strava sync distance"):
        current_user.distance = distance_km
        current_user.runs = runs
    logger.info("strava sync for user %s: %skm, %s runs", current_user.id, distance_km, runs)
    return ok({"distance": distance_km, "runs": runs})


@router.delete("/disconnect")
def delete_disconnect(db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    with commit_or_rollback(db, "strava disconnect"):
        clear_strava(current_user)
    logger.info("user %s disconnected from strava", current_user.id)
    return ok(message="Strava déconnecté")
