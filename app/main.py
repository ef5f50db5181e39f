import logging
import os
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.routers.auth import router as auth_router
from app.routers.calories import router as calories_router
from app.routers.event_chat import router as event_chat_router
from app.routers.events import router as events_router
from app.routers.strava import router as strava_router
from app.routers.transaction import SERVER_ERROR
from app.routers.users import router as users_router
from app.schemas.common import error_body

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

API_PREFIX = "/api"
CORS_ORIGINS = [o.strip() for o in os.getenv("CORS_ORIGINS", "http://localhost:8080").split(",") if o.strip()]


def _run_alembic_upgrade() -> None:
    """앱 기동 시 DB 마이그레이션 자동 적용."""
    from alembic import command
    from alembic.config import Config

    root = Path(__file__).resolve().parent.parent
    cfg = Config(str(root / "alembic.ini"))
    # 앱 로깅 설정을 alembic.ini 로깅으로 덮어쓰지 않음
    cfg.attributes["configure_logger"] = False
    command.upgrade(cfg, "head")


app = FastAPI(
    title="RCT Connect API",
    description="Running Club Tunis 커뮤니티 앱 백엔드 API (이벤트, 이벤트 채팅, Strava 연동)",
    version="0.1.0",
)


@app.on_event("startup")
def _startup_migrate() -> None:
    """기동 시 Alembic upgrade head 실행."""
    try:
        _run_alembic_upgrade()
    except Exception:
        # DB 미기동 등 실패 시에도 앱은 기동
        logger.warning("alembic upgrade failed at startup", exc_info=True)


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    return JSONResponse(status_code=exc.status_code, content=error_body(detail), headers=getattr(exc, "headers", None))


@app.exception_handler(RequestValidationError)
async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """요청 검증 실패 → 400 + 첫 번째 오류 메시지 (커스텀 validator 메시지는 그대로)."""
    errors = exc.errors()
    message = "Requête invalide"
    if errors:
        first = errors[0]
        ctx_error = (first.get("ctx") or {}).get("error")
        if ctx_error is not None:
            message = str(ctx_error)
        else:
            field = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
            message = f"{field}: {first.get('msg')}" if field else str(first.get("msg"))
    return JSONResponse(status_code=400, content=error_body(message))


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content=error_body(SERVER_ERROR))


@app.middleware("http")
async def _log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info("%s %s -> %s", request.method, request.url.path, response.status_code)
    return response


# ✅ 라우터 등록은 app 생성 후에!
app.include_router(auth_router, prefix=API_PREFIX)
app.include_router(users_router, prefix=API_PREFIX)
app.include_router(events_router, prefix=API_PREFIX)
app.include_router(event_chat_router, prefix=API_PREFIX)
app.include_router(strava_router, prefix=API_PREFIX)
app.include_router(calories_router, prefix=API_PREFIX)

# CORS 설정
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get(f"{API_PREFIX}/health", tags=["Health"])
async def health_check() -> dict:
    return {"success": True, "message": "RCT Connect API is running"}


@app.get("/", tags=["Root"])
async def root() -> dict:
    return {
        "message": "RCT Connect API",
        "docs": "/docs",
        "redoc": "/redoc",
        "health": f"{API_PREFIX}/health",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("app.main:app", host="0.0.0.0", port=int(os.getenv("PORT", "3001")), reload=True)
