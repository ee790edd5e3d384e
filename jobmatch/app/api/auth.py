import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from ..utils.auth import create_access_token, hash_password, verify_password
from ..utils.error_handlers import get_error_message, handle_database_error
from ..utils.validation import validate_email, validate_password, validate_string_field

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Auth"])


class SignupRequest(BaseModel):
    email: str
    password: str
    name: str | None = None
    phone_number: str | None = None


class LoginRequest(BaseModel):
    email: str
    password: str


def _public_user(user: User) -> dict:
    return {"id": user.id, "name": user.name, "email": user.email, "phone_number": user.phone_number}


@router.post("/signup", status_code=201)
def signup(payload: SignupRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    validate_password(payload.password)
    name = validate_string_field(payload.name, "Name", max_length=255, required=False)
    phone_number = validate_string_field(payload.phone_number, "Phone number", max_length=30, required=False)

    existing = db.query(User).filter(User.email == email).first()
    if existing:
        raise HTTPException(status_code=400, detail=get_error_message("email_exists"))

    try:
        hashed = hash_password(payload.password)
    except ValueError:
        raise HTTPException(status_code=400, detail=get_error_message("weak_password")) from None

    user = User(name=name, email=email, password=hashed, phone_number=phone_number)
    try:
        db.add(user)
        db.commit()
        db.refresh(user)
    except SQLAlchemyError as e:
        db.rollback()
        raise handle_database_error(e, "creating user") from e

    logger.info("User signed up id=%s", user.id)
    token = create_access_token({"sub": str(user.id)})
    return {
        "success": True,
        "message": "User created successfully",
        "user": _public_user(user),
        "access_token": token,
        "token_type": "bearer",
    }


@router.post("/login")
def login(payload: LoginRequest, db: Session = Depends(get_db)):
    email = validate_email(payload.email)
    if not payload.password:
        raise HTTPException(status_code=400, detail="Password is required")

    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(payload.password, user.password):
        raise HTTPException(status_code=401, detail=get_error_message("invalid_credentials"))

    token = create_access_token({"sub": str(user.id)})
    return {
        "success": True,
        "access_token": token,
        "token_type": "bearer",
        "user": _public_user(user),
    }


@router.post("/logout")
def logout():
    # Tokens are stateless; the client discards its copy.
    return {"success": True, "message": "Logged out successfully"}
