# 라우터용 트랜잭션 헬퍼: 성공 시 commit, crud 예외 시 rollback 후 HTTP 오류로 변환
import logging
from contextlib import contextmanager
from typing import Iterator

from fastapi import HTTPException
from sqlalchemy.orm import Session

from app.crud.errors import CrudError

logger = logging.getLogger(__name__)

SERVER_ERROR = "Erreur serveur"


@contextmanager
def commit_or_rollback(db: Session, action: str) -> Iterator[Session]:
    """
    Usage 예시:

    with commit_or_rollback(db, "join event"):
        count = join_event(db, event_id, user.id)

    - 블록이 끝나면 commit (✅ 트랜잭션 소유권: 라우터)
    - CrudError → rollback + HTTPException(status_code, message)
    - HTTPException → rollback 후 그대로 전파
    - 그 외 예외 → rollback + 서버 로그 + 500 (내부 정보는 클라이언트에 노출하지 않음)
    """
    try:
        yield db
        db.commit()
    except CrudError as e:
        db.rollback()
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except HTTPException:
        db.rollback()
        raise
    except Exception:
        db.rollback()
        logger.exception("%s failed", action)
        raise HTTPException(status_code=500, detail=SERVER_ERROR)
