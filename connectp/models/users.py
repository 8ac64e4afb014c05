from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, func
from . import Base

EMAIL_MAX = 255
FULL_NAME_MAX = 150
NATIVE_LANGUAGE_MAX = 64
LOCATION_MAX = 150
PROFILE_PIC_MAX = 512


class User(Base):
    __tablename__ = 'users'
    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(EMAIL_MAX), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)
    full_name = Column(String(FULL_NAME_MAX), nullable=False)
    # set during onboarding; lowercase [a-z0-9_]{3,20}
    username = Column(String(20), unique=True, index=True, nullable=True)
    bio = Column(Text, nullable=True)
    native_language = Column(String(NATIVE_LANGUAGE_MAX), nullable=True)
    location = Column(String(LOCATION_MAX), nullable=True)
    profile_pic = Column(String(PROFILE_PIC_MAX), nullable=True)
    is_onboarded = Column(Boolean, default=False, nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
