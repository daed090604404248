import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ecolens.api.deps import get_db, get_settings, current_user
from ecolens.api.schemas import RegisterIn, LoginIn, user_to_dict
from ecolens.config import Settings
from ecolens.db.crud import create_user, get_user_by_email, find_user_by_id, touch_login
from ecolens.errors import InvalidInput, Unauthenticated
from ecolens.services.security import AuthContext, create_access_token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

MIN_PASSWORD_LENGTH = 6
LOGIN_FAILED = "Invalid email or password"


def _token_for(user, settings: Settings) -> str:
    return create_access_token(
        user.id, user.email, settings.JWT_SECRET,
        expires_days=settings.JWT_EXPIRES_DAYS, algorithm=settings.JWT_ALGORITHM,
    )


@router.post("/register", status_code=201)
def register(data: RegisterIn, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    if not data.name or not data.name.strip() or not data.email or not data.password:
        raise InvalidInput("Name, email and password are required")
    if len(data.password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")

    user = create_user(db, data.email, data.name, data.password)
    logger.info("New user registered: %s", user.id)
    return {"token": _token_for(user, settings), "user": user_to_dict(user)}


@router.post("/login")
def login(data: LoginIn, db: Session = Depends(get_db), settings: Settings = Depends(get_settings)):
    if not data.email or not data.password:
        raise InvalidInput("Email and password are required")

    # same answer for unknown email and wrong password
    user = get_user_by_email(db, data.email)
    if not user or not user.verify_password(data.password):
        raise Unauthenticated(LOGIN_FAILED)

    user = touch_login(db, user)
    logger.info("User logged in: %s", user.id)
    return {"token": _token_for(user, settings), "user": user_to_dict(user)}


@router.get("/me")
def me(auth: AuthContext = Depends(current_user), db: Session = Depends(get_db)):
    user = find_user_by_id(db, auth.user_id)
    return user_to_dict(user, with_preferences=True)
