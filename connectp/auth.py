from datetime import datetime, timedelta, timezone
from fastapi import Depends, Request, Response
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from . import config
from .errors import AuthenticationError, ValidationError
from .models.users import User
from .crud import get_user_by_id

bearer_scheme = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: timedelta = None):
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(minutes=config.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({'exp': expire})
    encoded = jwt.encode(to_encode, config.JWT_SECRET, algorithm=config.JWT_ALGORITHM)
    return encoded


def decode_token(token: str):
    try:
        payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALGORITHM])
        return payload
    except JWTError:
        return None


def set_auth_cookie(response: Response, token: str):
    response.set_cookie(
        config.COOKIE_NAME,
        token,
        max_age=config.ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        httponly=True,
        samesite='none' if config.COOKIE_SECURE else 'strict',
        secure=config.COOKIE_SECURE,
    )


def clear_auth_cookie(response: Response):
    response.delete_cookie(config.COOKIE_NAME)


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> User:
    """Resolve the caller from a bearer header, falling back to the `jwt` cookie."""
    token = credentials.credentials if credentials else request.cookies.get(config.COOKIE_NAME)
    if not token:
        raise AuthenticationError('Unauthorized - No token provided')

    payload = decode_token(token)
    if not payload or payload.get('id') is None:
        raise AuthenticationError('Unauthorized - Invalid token')

    try:
        user_id = int(payload['id'])
    except (TypeError, ValueError):
        raise ValidationError('Invalid user identifier.')

    user = await get_user_by_id(user_id)
    if not user:
        raise AuthenticationError('Unauthorized - User not found')
    return user
