from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from email_validator import validate_email, EmailNotValidError
from typing import Optional
from ..models.users import EMAIL_MAX, FULL_NAME_MAX, NATIVE_LANGUAGE_MAX, LOCATION_MAX, PROFILE_PIC_MAX

MIN_PASSWORD_LENGTH = 6


def _check_email(value: str) -> str:
    try:
        # syntax only; reserved names like .test or .local are still addresses
        info = validate_email(value.strip(), check_deliverability=False, globally_deliverable=False)
    except EmailNotValidError:
        raise ValueError('Invalid email format')
    if '.' not in info.domain:
        raise ValueError('Invalid email format')
    return info.normalized.lower()


def _check_password(value: str) -> str:
    if len(value) < MIN_PASSWORD_LENGTH:
        raise ValueError(f'Password must be at least {MIN_PASSWORD_LENGTH} characters')
    return value


def _require_fields(data, fields, message):
    if isinstance(data, dict):
        for name in fields:
            value = data.get(name)
            if value is None or (isinstance(value, str) and not value.strip()):
                raise ValueError(message)
    return data


class SignupIn(BaseModel):
    email: str = Field(max_length=EMAIL_MAX)
    password: str
    full_name: str = Field(max_length=FULL_NAME_MAX)

    @model_validator(mode='before')
    @classmethod
    def all_fields_present(cls, data):
        return _require_fields(data, ('email', 'password', 'full_name'), 'All fields are required for signup')

    check_email = field_validator('email')(_check_email)
    check_password = field_validator('password')(_check_password)

    @field_validator('full_name')
    @classmethod
    def strip_full_name(cls, value: str) -> str:
        return value.strip()


class LoginIn(BaseModel):
    email: str
    password: str

    @model_validator(mode='before')
    @classmethod
    def all_fields_present(cls, data):
        return _require_fields(data, ('email', 'password'), 'All fields are required')

    check_email = field_validator('email')(_check_email)
    check_password = field_validator('password')(_check_password)


class OnboardIn(BaseModel):
    # presence of each field is checked by crud.onboard_user so the error can list them all
    username: Optional[str] = None
    full_name: Optional[str] = Field(None, max_length=FULL_NAME_MAX)
    bio: Optional[str] = None
    native_language: Optional[str] = Field(None, max_length=NATIVE_LANGUAGE_MAX)
    location: Optional[str] = Field(None, max_length=LOCATION_MAX)
    profile_pic: Optional[str] = Field(None, max_length=PROFILE_PIC_MAX)


class PublicUserOut(BaseModel):
    """Profile fields any authenticated user may see."""
    id: int
    full_name: str
    username: Optional[str] = None
    profile_pic: Optional[str] = None
    native_language: Optional[str] = None
    location: Optional[str] = None
    bio: Optional[str] = None
    is_onboarded: bool = False

    model_config = ConfigDict(from_attributes=True)


class UserOut(PublicUserOut):
    email: str
    created_at: Optional[datetime] = None


class ProfileOut(BaseModel):
    success: bool = True
    user: UserOut


class AuthOut(ProfileOut):
    access_token: str
    token_type: str = 'bearer'


class ActionOkOut(BaseModel):
    success: bool = True
    message: Optional[str] = None
