# 사용자 조회/프로필 수정 API
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User, UserRole
from app.routers.transaction import commit_or_rollback
from app.schemas.common import ok
from app.schemas.user import RoleUpdate, StatsUpdate, UserOut, UserUpdate
from app.services.auth import get_current_user, require_role

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["Users"])

USER_NOT_FOUND = "Utilisateur non trouvé"


def _get_user_or_404(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise HTTPException(status_code=404, detail=USER_NOT_FOUND)
    return user


@router.get("")
def list_users(
    role: Optional[str] = Query(None),
    group: Optional[str] = Query(None),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    q = db.query(User)
    if role:
        q = q.filter(User.role == role)
    if group:
        q = q.filter(User.group_name == group)
    return ok([UserOut.model_validate(u) for u in q.order_by(User.id).all()])


@router.get("/{user_id}")
def get_user(user_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return ok(UserOut.model_validate(_get_user_or_404(db, user_id)))


@router.put("/{user_id}")
def update_user(
    user_id: int,
    body: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """프로필 수정 (본인 또는 admin). 이름 변경은 과거 채팅 메시지에도 바로 반영됨 (조회 시점 enrich)."""
    if user_id != current_user.id and current_user.role != UserRole.ADMIN.value:
        raise HTTPException(status_code=403, detail="Non autorisé")
    with commit_or_rollback(db, "update user"):
        user = _get_user_or_404(db, user_id)
        for key, value in body.model_dump(exclude_unset=True).items():
            if key == "name" and value is None:
                continue
            setattr(user, key, value)
    db.refresh(user)
    return ok(UserOut.model_validate(user))


@router.put("/{user_id}/role")
def update_user_role(
    user_id: int,
    body: RoleUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN.value)),
):
    with commit_or_rollback(db, "update user role"):
        user = _get_user_or_404(db, user_id)
        user.role = body.role
    return ok(message="Rôle mis à jour")


@router.put("/{user_id}/stats")
def update_user_stats(
    user_id: int,
    body: StatsUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    """누적 거리/러닝 수 추가 (본인, admin, coach)."""
    if user_id != current_user.id and current_user.role not in (UserRole.ADMIN.value, UserRole.COACH.value):
        raise HTTPException(status_code=403, detail="Non autorisé")
    with commit_or_rollback(db, "update user stats"):
        user = _get_user_or_404(db, user_id)
        if body.distance is not None:
            user.distance = (user.distance or 0) + body.distance
        if body.runs is not None:
            user.runs = (user.runs or 0) + body.runs
    db.refresh(user)
    return ok(UserOut.model_validate(user))


@router.delete("/{user_id}")
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_role(UserRole.ADMIN.value)),
):
    """
    사용자 삭제 (admin).

    roster/채팅 멤버 행은 FK CASCADE로 함께 삭제.
    작성한 이벤트와 채팅 메시지는 남고 created_by/sender_id만 NULL이 됨
    (메시지 보낸 사람은 조회 시 "Unknown").
    """
    with commit_or_rollback(db, "delete user"):
        user = _get_user_or_404(db, user_id)
        db.delete(user)
    logger.info("user %s deleted by admin %s", user_id, current_user.id)
    return ok(message="Utilisateur supprimé")
