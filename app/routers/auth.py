# 회원가입/로그인 API
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User
from app.routers.transaction import commit_or_rollback
from app.schemas.common import ok
from app.schemas.user import AuthResult, LoginBody, PasswordChangeBody, RegisterBody, UserOut
from app.services.auth import create_access_token, get_current_user, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])

INVALID_CREDENTIALS = "Email ou mot de passe incorrect"


def _auth_result(user: User) -> AuthResult:
    return AuthResult(user=UserOut.model_validate(user), token=create_access_token(user.id, user.role))


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(body: RegisterBody, db: Session = Depends(get_db)):
    """회원가입. 이메일은 소문자로 저장하고 대소문자 무시하고 중복 검사."""
    email = body.email.lower()
    with commit_or_rollback(db, "register"):
        if db.query(User.id).filter(func.lower(User.email) == email).first() is not None:
            raise HTTPException(status_code=400, detail="Cet email est déjà utilisé")
        user = User(email=email, password_hash=hash_password(body.password), name=body.name)
        db.add(user)
        db.flush()
    db.refresh(user)
    logger.info("user %s registered", user.id)
    return ok(_auth_result(user))


@router.post("/login")
def login(body: LoginBody, db: Session = Depends(get_db)):
    user = db.query(User).filter(func.lower(User.email) == body.email.lower()).first()
    if user is None or not verify_password(body.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=INVALID_CREDENTIALS)
    return ok(_auth_result(user))


@router.get("/me")
def me(current_user: User = Depends(get_current_user)):
    return ok({"user": UserOut.model_validate(current_user)})


@router.post("/logout")
def logout(current_user: User = Depends(get_current_user)):
    """JWT는 서버에 상태가 없으므로 클라이언트가 토큰을 버리면 끝."""
    return ok(message="Déconnexion réussie")


@router.put("/password")
def change_password(
    body: PasswordChangeBody,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    if not verify_password(body.current_password, current_user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Mot de passe actuel incorrect")
    with commit_or_rollback(db, "change password"):
        current_user.password_hash = hash_password(body.new_password)
    return ok(message="Mot de passe mis à jour")
