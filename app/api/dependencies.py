import json
from typing import Optional

from fastapi import Depends, Header, Request

from app.core.exceptions import AuthError, ValidationError
from app.core.movie_service import MovieService
from app.core.user_service import UserService
from app.models.user import UserOut

def get_movie_service(request: Request) -> MovieService:
    return request.app.state.movie_service

def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service

async def read_json_body(request: Request) -> dict:
    try:
        body = await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValidationError("Corpo da requisição deve ser um objeto JSON.") from e

    if not isinstance(body, dict):
        raise ValidationError("Corpo da requisição deve ser um objeto JSON.")
    return body

def current_user(
    authorization: Optional[str] = Header(default=None),
    users: UserService = Depends(get_user_service),
) -> UserOut:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthError("Token ausente.")
    return users.authenticate(token.strip())
