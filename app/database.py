import os
from typing import Generator

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from dotenv import load_dotenv

# .env 파일에서 환경 변수 로드
load_dotenv()

# DATABASE_URL 예시:
# postgresql+psycopg2://rct:rct@db:5432/rct
# sqlite:///./data/rct.db (로컬 개발)
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./rct.db")


def _connect_args(url: str) -> dict:
    # SQLite는 요청마다 다른 스레드에서 세션을 쓰므로 check_same_thread 해제
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {}


# SQLAlchemy 엔진 생성
# - future=True: 최신 SQLAlchemy 스타일 사용
engine: Engine = create_engine(DATABASE_URL, echo=False, future=True, connect_args=_connect_args(DATABASE_URL))


@event.listens_for(Engine, "connect")
def enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    """
    SQLite 연결 시 외래 키 제약을 켜는 리스너

    - PRAGMA foreign_keys=ON;
    - SQLite는 기본값이 OFF라서 ondelete="CASCADE"가 동작하지 않음
    - PostgreSQL 등 다른 엔진에서는 아무것도 하지 않음
    """
    module = type(dbapi_connection).__module__
    if not module.startswith("sqlite3"):
        return
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# 세션 팩토리 생성
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)


def get_db() -> Generator[Session, None, None]:
    """
    FastAPI 의존성 주입(Dependency Injection)에서 사용할 DB 세션 제공 함수

    트랜잭션 소유권은 라우터에 있음: crud 함수는 commit/rollback 하지 않고,
    라우터가 성공 시 commit, 예외 시 rollback 한다.

    Usage 예시:

    @router.get("/events")
    def list_events(db: Session = Depends(get_db)):
        ...
    """
    db: Session = SessionLocal()
    try:
        yield db
    finally:
        db.close()
