# File: clearcity/routers/auth.py

import logging
from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy import func
from sqlalchemy.orm import Session
from clearcity.db.session import get_db
from clearcity.models.user import User, UserRole
from clearcity.schemas.auth import RegisterIn, LoginIn, AuthOut
from clearcity.schemas.user import UserOut
from clearcity.core.security import hash_password, verify_password, make_token, normalize_email
from clearcity.core.ratelimit import limiter, AUTH_LIMIT

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

def _auth_out(user: User) -> AuthOut:
    return AuthOut(token=make_token(user), user=UserOut.model_validate(user))

@router.post("/register", response_model=AuthOut, status_code=201)
@limiter.limit(AUTH_LIMIT)
def register(request: Request, body: RegisterIn, db: Session = Depends(get_db)):
    name = (body.name or "").strip()
    if not name or not body.email or not body.password:
        raise HTTPException(status_code=400, detail="All fields are required")

    email = normalize_email(body.email)
    if db.query(User).filter(func.lower(User.email) == email).first():
        raise HTTPException(status_code=400, detail="User already exists")

    user = User(
        name=name,
        email=email,
        hashed_password=hash_password(body.password),
        role=UserRole.user,
        level=1,
        xp=0,
        location=body.location or None,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"Registered user {user.id}")
    return _auth_out(user)

@router.post("/login", response_model=AuthOut)
@limiter.limit(AUTH_LIMIT)
def login(request: Request, body: LoginIn, db: Session = Depends(get_db)):
    if not body.email or not body.password:
        raise HTTPException(status_code=400, detail="Email and password are required")
    # same answer for unknown email and wrong password
    email = normalize_email(body.email)
    user = db.query(User).filter(func.lower(User.email) == email).first()
    if not user or not user.hashed_password:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not verify_password(body.password, user.hashed_password):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _auth_out(user)
