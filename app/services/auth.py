# 인증: 비밀번호 해시, JWT 발급/검증, FastAPI 의존성

import os
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy.orm import Session

from app.database import get_db
from app.models.user import User

SECRET_KEY = os.getenv("SECRET_KEY", "change-me-in-production")
ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7)))  # 7일

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")

# auto_error=False: 토큰이 없을 때 403 대신 직접 401을 내기 위함
bearer_scheme = HTTPBearer(auto_error=False)


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def create_access_token(user_id: int, role: str, expires_delta: Optional[timedelta] = None) -> str:
    """sub=user id, role 포함 JWT 발급."""
    expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {"sub": str(user_id), "role": role, "exp": expire}
    return jwt.encode(payload, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def _user_from_credentials(
    credentials: Optional[HTTPAuthorizationCredentials], db: Session
) -> Optional[User]:
    if credentials is None:
        return None
    payload = decode_access_token(credentials.credentials)
    if payload is None or payload.get("sub") is None:
        raise _unauthorized("Token invalide")
    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise _unauthorized("Token invalide")
    user = db.query(User).filter(User.id == user_id).first()
    if user is None:
        raise _unauthorized("Utilisateur non trouvé")
    return user


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> User:
    """Bearer 토큰 필수. 역할은 토큰이 아니라 DB의 현재 값을 사용."""
    user = _user_from_credentials(credentials, db)
    if user is None:
        raise _unauthorized("Token d'authentification requis")
    return user


def get_current_user_optional(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Optional[User]:
    """토큰이 없으면 None (목록 조회의 is_joined 계산용). 잘못된 토큰은 여전히 401."""
    return _user_from_credentials(credentials, db)


def require_role(*roles: str) -> Callable[..., User]:
    """
    역할 제한 의존성.

    Usage 예시:

    @router.put("/{user_id}/role")
    def update_role(current_user: User = Depends(require_role("admin"))):
        ...
    """

    def _dependency(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in roles:
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Accès refusé: rôle insuffisant")
        return current_user

    return _dependency
