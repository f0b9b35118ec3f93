"""
Signup and login. Both return a bearer token for the other routers.
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import EmailStr, Field, field_validator
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from db import get_session
from models import User
from schemas import CamelModel, TokenResponse, UserRead
from security import BCRYPT_MAX_BYTES, create_access_token, hash_password, verify_password

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


class SignupRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=1)

    @field_validator("password")
    @classmethod
    def password_fits_bcrypt(cls, value: str) -> str:
        if len(value.encode("utf-8")) > BCRYPT_MAX_BYTES:
            raise ValueError(f"Password must be at most {BCRYPT_MAX_BYTES} bytes")
        return value


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(min_length=1)


def _token_for(user: User) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(user.id, user.email),
        user=UserRead(id=user.id, email=user.email),
    )


@router.post("/signup", response_model=TokenResponse, status_code=201)
def signup(req: SignupRequest, db: Session = Depends(get_session)):
    """Create an account and return a token right away."""
    user = User(
        email=req.email.lower(),
        name=req.name.strip(),
        password_hash=hash_password(req.password),
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=403, detail="Email already exists")
    db.refresh(user)
    logger.info("User %s signed up", user.id)
    return _token_for(user)


@router.post("/login", response_model=TokenResponse)
def login(req: LoginRequest, db: Session = Depends(get_session)):
    statement = select(User).where(User.email == req.email.lower())
    user = db.exec(statement).one_or_none()
    if not user or not verify_password(req.password, user.password_hash):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    logger.info("User %s logged in", user.id)
    return _token_for(user)
