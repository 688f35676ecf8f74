# clearcity/core/security.py
from fastapi import HTTPException, status, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from typing import Optional
import time, jwt
from sqlalchemy.orm import Session
from passlib.hash import bcrypt_sha256
from clearcity.core.config import settings
from clearcity.db.session import get_db
from clearcity.models.user import User, UserRole

ALGO = "HS256"
bearer = HTTPBearer(auto_error=False)
_hasher = bcrypt_sha256.using(rounds=settings.bcrypt_rounds)

class TokenUser(BaseModel):
    """Claims carried by an access token. The role is not one of them."""
    id: int
    email: str

def hash_password(raw: str) -> str:
    return _hasher.hash(raw)

def verify_password(raw: str, hashed: str) -> bool:
    return bcrypt_sha256.verify(raw, hashed)

def normalize_email(email: str) -> str:
    return email.strip().lower()

def make_token(user: User, ttl: int | None = None) -> str:
    now = int(time.time())
    payload = {"id": user.id, "email": user.email, "iat": now, "exp": now + (ttl or settings.jwt_ttl_seconds)}
    return jwt.encode(payload, settings.jwt_secret, algorithm=ALGO)

def _decode_token(creds: Optional[HTTPAuthorizationCredentials]) -> dict:
    if not creds:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Access denied. No token provided.")
    try:
        return jwt.decode(creds.credentials, settings.jwt_secret, algorithms=[ALGO])
    except jwt.ExpiredSignatureError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Token expired.")
    except jwt.PyJWTError:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token.")

def get_token_user(creds: Optional[HTTPAuthorizationCredentials] = Depends(bearer)) -> TokenUser:
    payload = _decode_token(creds)
    if not isinstance(payload.get("id"), int) or not payload.get("email"):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid token.")
    return TokenUser(id=payload["id"], email=payload["email"])

def is_admin(db: Session, user_id: int) -> bool:
    role = db.query(User.role).filter(User.id == user_id).scalar()
    return role == UserRole.admin

def require_admin(auth: TokenUser = Depends(get_token_user), db: Session = Depends(get_db)) -> TokenUser:
    # role comes from the database on every call, never from the token
    if not is_admin(db, auth.id):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied. Admin only.")
    return auth
