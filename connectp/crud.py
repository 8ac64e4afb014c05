import random
import re
from typing import Optional
from passlib.context import CryptContext
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from .models import AsyncSessionLocal
from .models.users import User
from .errors import ConflictError, NotFoundError, ValidationError

pwd_ctx = CryptContext(schemes=['bcrypt'], deprecated='auto')

USERNAME_MIN_LENGTH = 3
USERNAME_MAX_LENGTH = 20
USERNAME_RE = re.compile(r'^[a-z0-9_]+$')

AVATAR_URL = 'https://avatar.iran.liara.run/public/{}.png'


def random_avatar() -> str:
    return AVATAR_URL.format(random.randint(1, 100))


def normalize_username(username: str) -> str:
    return username.strip().lower()


def validate_username(username: Optional[str]) -> str:
    if not username or not username.strip():
        raise ValidationError('Username is required.')
    normalized = normalize_username(username)
    if not USERNAME_MIN_LENGTH <= len(normalized) <= USERNAME_MAX_LENGTH:
        raise ValidationError(
            f'Username must be between {USERNAME_MIN_LENGTH} and {USERNAME_MAX_LENGTH} characters.'
        )
    if not USERNAME_RE.match(normalized):
        raise ValidationError(
            'Username can only contain letters (a-z), numbers (0-9), and underscores (_).'
        )
    return normalized


async def create_user(payload):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).where(User.email == payload.email))
        if q.scalars().first():
            raise ConflictError('Email already exists, please use a different one')
        user = User(
            email=payload.email,
            full_name=payload.full_name,
            hashed_password=pwd_ctx.hash(payload.password),
            profile_pic=random_avatar(),
            is_onboarded=False,
        )
        session.add(user)
        try:
            await session.commit()
        except IntegrityError:
            # lost a race with a concurrent signup for the same email
            await session.rollback()
            raise ConflictError('An account with this email may already exist.')
        await session.refresh(user)
        return user


async def authenticate_user(email: str, password: str) -> Optional[User]:
    user = await get_user_by_email(email)
    if not user or not pwd_ctx.verify(password, user.hashed_password):
        return None
    return user


async def get_user_by_id(user_id: int):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).where(User.id == user_id))
        return q.scalars().first()


async def get_user_by_email(email: str):
    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).where(func.lower(User.email) == email.lower()))
        return q.scalars().first()


async def onboard_user(user_id: int, payload) -> User:
    """Complete or update a profile and mark it onboarded.

    The username is normalized before any check, so "Foo_1" and "foo_1" are
    the same name; a user may re-submit the username they already own. A
    taken username is reported before missing profile fields.
    """
    username = validate_username(payload.username)

    async with AsyncSessionLocal() as session:
        q = await session.execute(select(User).where(User.username == username))
        owner = q.scalars().first()
        if owner and owner.id != user_id:
            raise ConflictError('Username is already taken. Please choose another one.')

        required = {
            'full_name': payload.full_name,
            'bio': payload.bio,
            'native_language': payload.native_language,
            'location': payload.location,
        }
        missing = [name for name, value in required.items() if not value or not value.strip()]
        if missing:
            raise ValidationError(
                'Full name, bio, native language, and location are required.',
                extra={'missing_fields': missing},
            )

        user = await session.get(User, user_id)
        if not user:
            raise NotFoundError('User not found')

        user.username = username
        user.full_name = payload.full_name.strip()
        user.bio = payload.bio.strip()
        user.native_language = payload.native_language.strip()
        user.location = payload.location.strip()
        if payload.profile_pic is not None:
            user.profile_pic = payload.profile_pic
        user.is_onboarded = True

        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise ConflictError('This username is already taken. Please choose another one.')
        await session.refresh(user)
        return user
