# Strava API 연동 (OAuth 토큰 교환/갱신, 활동/통계 조회)

import os
import time
from typing import Any, Dict, List
from urllib.parse import urlencode

import httpx

STRAVA_CLIENT_ID = os.getenv("STRAVA_CLIENT_ID", "")
STRAVA_CLIENT_SECRET = os.getenv("STRAVA_CLIENT_SECRET", "")
STRAVA_REDIRECT_URI = os.getenv("STRAVA_REDIRECT_URI", "http://localhost:8081/strava/callback")
STRAVA_BASE_URL = os.getenv("STRAVA_BASE_URL", "https://www.strava.com")
AUTHORIZE_PATH = "/oauth/authorize"
TOKEN_PATH = "/oauth/token"
API_PATH = "/api/v3"
SCOPE = "read,activity:read_all"
TIMEOUT_SEC = 10.0
RUN_TYPES = {"Run", "TrailRun", "VirtualRun"}


class StravaError(Exception):
    """Strava 호출 실패. status_code는 Strava 응답 코드 (네트워크 오류면 None)."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


def build_authorize_url(state: str) -> str:
    """OAuth 인증 URL. state에 우리 user id를 넣어 콜백에서 사용자 식별."""
    params = {
        "client_id": STRAVA_CLIENT_ID,
        "redirect_uri": STRAVA_REDIRECT_URI,
        "response_type": "code",
        "scope": SCOPE,
        "state": state,
    }
    return f"{STRAVA_BASE_URL.rstrip('/')}{AUTHORIZE_PATH}?{urlencode(params)}"


def _error_message(resp: httpx.Response) -> str:
    try:
        return resp.json().get("message") or f"Strava API 오류: HTTP {resp.status_code}"
    except ValueError:
        return f"Strava API 오류: HTTP {resp.status_code}"


async def _post_token(payload: Dict[str, Any]) -> Dict[str, Any]:
    url = f"{STRAVA_BASE_URL.rstrip('/')}{TOKEN_PATH}"
    body = {"client_id": STRAVA_CLIENT_ID, "client_secret": STRAVA_CLIENT_SECRET, **payload}
    async with httpx.AsyncClient(timeout=TIMEOUT_SEC) as client:
        resp = await client.post(url, json=body)
        if resp.status_code != 200:
            raise StravaError(_error_message(resp), resp.status_code)
        return resp.json()


async def exchange_code(code: str) -> Dict[str, Any]:
    """authorization code → {access_token, refresh_token, expires_at, athlete}."""
    return await _post_token({"code": code, "grant_type": "authorization_code"})


async def refresh_access_token(refresh_token: str) -> Dict[str, Any]:
    """refresh token → 새 {access_token, refresh_token, expires_at}."""
    return await _post_token({"refresh_token": refresh_token, "grant_type": "refresh_token"})


async def _get(path: str, access_token: str, params: Dict[str, Any] | None = None) -> Any:
    url = f"{STRAVA_BASE_URL.rstrip('/')}{API_PATH}{path}"
    headers = {"Authorization": f"Bearer {access_token}"}
    async with httpx.AsyncClient(timeout=TIMEOUT_SEC) as client:
        resp = await client.get(url, params=params, headers=headers)
        if resp.status_code != 200:
            raise StravaError(_error_message(resp), resp.status_code)
        return resp.json()


def _standardize_activity(a: Dict[str, Any]) -> Dict[str, Any]:
    """Strava 활동을 앱 필드로 변환."""
    return {
        "id": a.get("id"),
        "name": a.get("name") or "",
        "type": a.get("type"),
        "distance": a.get("distance") or 0,
        "moving_time": a.get("moving_time") or 0,
        "elapsed_time": a.get("elapsed_time") or 0,
        "total_elevation_gain": a.get("total_elevation_gain") or 0,
        "start_date": a.get("start_date_local"),
        "average_speed": a.get("average_speed"),
        "max_speed": a.get("max_speed"),
        "average_heartrate": a.get("average_heartrate"),
        "max_heartrate": a.get("max_heartrate"),
        "kudos_count": a.get("kudos_count") or 0,
        "polyline": (a.get("map") or {}).get("summary_polyline"),
        "start_latlng": a.get("start_latlng") or None,
        "end_latlng": a.get("end_latlng") or None,
    }


async def get_recent_runs(access_token: str, days: int = 30, per_page: int = 30) -> List[Dict[str, Any]]:
    """최근 N일 활동 중 러닝(Run, TrailRun, VirtualRun)만."""
    after = int(time.time()) - days * 24 * 60 * 60
    data = await _get("/athlete/activities", access_token, {"after": after, "per_page": per_page})
    return [_standardize_activity(a) for a in data if a.get("type") in RUN_TYPES]


async def get_athlete(access_token: str) -> Dict[str, Any]:
    return await _get("/athlete", access_token)


async def get_athlete_stats(access_token: str, athlete_id: str) -> Dict[str, Any]:
    return await _get(f"/athletes/{athlete_id}/stats", access_token)
