from typing import Optional

from fastapi import Depends, Header, Request

from ecolens.config import Settings
from ecolens.services.security import AuthContext, bearer_token, decode_access_token


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_db(request: Request):
    yield from request.app.state.db.session()


def current_user(
    authorization: Optional[str] = Header(None),
    settings: Settings = Depends(get_settings),
) -> AuthContext:
    token = bearer_token(authorization)
    return decode_access_token(token, settings.JWT_SECRET, settings.JWT_ALGORITHM)
