import enum
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, func
from sqlalchemy.orm import relationship
from . import Base


class FriendRequestStatus(str, enum.Enum):
    PENDING = 'pending'
    ACCEPTED = 'accepted'


def pair_key(user_a: int, user_b: int) -> str:
    a, b = sorted([user_a, user_b])
    return f'{a}:{b}'


class FriendRequest(Base):
    __tablename__ = 'friend_requests'
    id = Column(Integer, primary_key=True)
    sender_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    recipient_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), index=True, nullable=False)
    status = Column(String(16), default=FriendRequestStatus.PENDING.value, nullable=False)
    # one record per unordered pair, whichever side sent it
    pair_key = Column(String(64), unique=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    sender = relationship('User', foreign_keys=[sender_id])
    recipient = relationship('User', foreign_keys=[recipient_id])
