"""
Read side of the social graph: search, recommendations, friend lists and
friend-request inboxes. Every query here returns an empty list rather than
an error when nothing matches.
"""
from sqlalchemy import select, func, or_
from sqlalchemy.orm import selectinload
from .models import AsyncSessionLocal
from .models.users import User
from .models.friendships import Friendship
from .models.friend_requests import FriendRequest, FriendRequestStatus

SEARCH_LIMIT = 30
RECOMMENDATION_LIMIT = 20


def _friend_ids(user_id: int):
    return select(Friendship.friend_id).where(Friendship.user_id == user_id)


def _discoverable(caller_id: int):
    # onboarded users other than the caller and the caller's friends
    return select(User).where(
        User.id != caller_id,
        User.id.not_in(_friend_ids(caller_id)),
        User.is_onboarded.is_(True),
    )


def _escape_like(keyword: str) -> str:
    return keyword.replace('\\', '\\\\').replace('%', '\\%').replace('_', '\\_')


async def search_users(caller_id: int, keyword: str):
    keyword = (keyword or '').strip()
    if not keyword:
        return []
    pattern = f'%{_escape_like(keyword)}%'
    q = (
        _discoverable(caller_id)
        .where(or_(
            User.full_name.ilike(pattern, escape='\\'),
            User.username.ilike(pattern, escape='\\'),
        ))
        .order_by(User.id)
        .limit(SEARCH_LIMIT)
    )
    async with AsyncSessionLocal() as session:
        res = await session.execute(q)
        return res.scalars().all()


async def get_recommended_users(caller_id: int):
    """Uniform random sample; two calls may return different users."""
    q = _discoverable(caller_id).order_by(func.random()).limit(RECOMMENDATION_LIMIT)
    async with AsyncSessionLocal() as session:
        res = await session.execute(q)
        return res.scalars().all()


async def get_my_friends(caller_id: int):
    q = (
        select(User)
        .join(Friendship, Friendship.friend_id == User.id)
        .where(Friendship.user_id == caller_id)
        .order_by(Friendship.id)
    )
    async with AsyncSessionLocal() as session:
        res = await session.execute(q)
        return res.scalars().all()


async def get_friend_requests(caller_id: int):
    """Pending requests addressed to the caller, and the caller's requests others accepted."""
    async with AsyncSessionLocal() as session:
        incoming = await session.execute(
            select(FriendRequest)
            .options(selectinload(FriendRequest.sender))
            .where(
                FriendRequest.recipient_id == caller_id,
                FriendRequest.status == FriendRequestStatus.PENDING.value,
            )
            .order_by(FriendRequest.id)
        )
        accepted = await session.execute(
            select(FriendRequest)
            .options(selectinload(FriendRequest.recipient))
            .where(
                FriendRequest.sender_id == caller_id,
                FriendRequest.status == FriendRequestStatus.ACCEPTED.value,
            )
            .order_by(FriendRequest.id)
        )
        return {
            'incoming_reqs': incoming.scalars().all(),
            'accepted_by_others_reqs': accepted.scalars().all(),
        }


async def get_outgoing_friend_reqs(caller_id: int):
    async with AsyncSessionLocal() as session:
        res = await session.execute(
            select(FriendRequest)
            .options(selectinload(FriendRequest.recipient))
            .where(
                FriendRequest.sender_id == caller_id,
                FriendRequest.status == FriendRequestStatus.PENDING.value,
            )
            .order_by(FriendRequest.id)
        )
        return res.scalars().all()
