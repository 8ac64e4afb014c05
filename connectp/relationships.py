"""
Friend-request state machine.

Per unordered pair of users: no relation -> pending -> accepted. Accepted is
terminal and nothing in here deletes a request or a friendship.

At most one request exists per pair. The existence check gives the caller a
precise message; the unique `pair_key` column is what actually stops two
concurrent sends from both succeeding.
"""
import logging
from sqlalchemy import select, update, and_, or_
from sqlalchemy.exc import IntegrityError
from .models import AsyncSessionLocal
from .models.users import User
from .models.friendships import Friendship
from .models.friend_requests import FriendRequest, FriendRequestStatus, pair_key
from .errors import AuthorizationError, ConflictError, NotFoundError

logger = logging.getLogger(__name__)

SELF_REQUEST = "You can't send a friend request to yourself."
ALREADY_FRIENDS = 'You are already friends with this user.'
ALREADY_SENT = 'You have already sent a friend request to this user.'
ALREADY_RECEIVED = 'This user has already sent you a friend request.'
REQUEST_EXISTS = 'A friend request already exists between you and this user.'
ALREADY_ACCEPTED = 'Friend request has already been accepted.'


async def ensure_friendship(session, user_a: int, user_b: int):
    """Put each user in the other's friend-set. Rows already present are left alone."""
    q = await session.execute(
        select(Friendship.user_id, Friendship.friend_id).where(
            or_(
                and_(Friendship.user_id == user_a, Friendship.friend_id == user_b),
                and_(Friendship.user_id == user_b, Friendship.friend_id == user_a),
            )
        )
    )
    existing = {(row.user_id, row.friend_id) for row in q}
    for owner, friend in ((user_a, user_b), (user_b, user_a)):
        if (owner, friend) not in existing:
            session.add(Friendship(user_id=owner, friend_id=friend))


async def add_friends(user_a: int, user_b: int):
    """Standalone set-union of two friend-sets, safe to run any number of times."""
    async with AsyncSessionLocal() as session:
        await ensure_friendship(session, user_a, user_b)
        try:
            await session.commit()
        except IntegrityError:
            # a concurrent writer inserted the same row; the union already holds
            await session.rollback()


async def are_friends(user_id: int, other_id: int) -> bool:
    """Whether `other_id` is in `user_id`'s friend-set."""
    async with AsyncSessionLocal() as session:
        res = await session.execute(
            select(Friendship.id).where(Friendship.user_id == user_id, Friendship.friend_id == other_id)
        )
        return res.first() is not None


async def send_friend_request(sender_id: int, recipient_id: int) -> FriendRequest:
    if sender_id == recipient_id:
        raise ConflictError(SELF_REQUEST)

    async with AsyncSessionLocal() as session:
        recipient = await session.get(User, recipient_id)
        if not recipient:
            raise NotFoundError('Recipient not found.')

        if await are_friends(recipient_id, sender_id):
            raise ConflictError(ALREADY_FRIENDS)

        key = pair_key(sender_id, recipient_id)
        q = await session.execute(select(FriendRequest).where(FriendRequest.pair_key == key))
        existing = q.scalars().first()
        if existing:
            if existing.sender_id == sender_id:
                raise ConflictError(ALREADY_SENT)
            if existing.recipient_id == sender_id:
                raise ConflictError(ALREADY_RECEIVED)
            raise ConflictError(REQUEST_EXISTS)

        fr = FriendRequest(
            sender_id=sender_id,
            recipient_id=recipient_id,
            status=FriendRequestStatus.PENDING.value,
            pair_key=key,
        )
        session.add(fr)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            logger.info({'msg': 'friend_request_race_lost', 'pair_key': key})
            raise ConflictError(REQUEST_EXISTS)
        await session.refresh(fr)
        return fr


async def accept_friend_request(accepter_id: int, request_id: int) -> FriendRequest:
    """Flip a pending request to accepted and make the two users friends.

    The status flip is a compare-and-set on `status = 'pending'`, so of two
    concurrent accepts exactly one wins; the loser gets the same conflict as a
    repeated accept. The flip and both friend-set inserts share a transaction.
    """
    async with AsyncSessionLocal() as session:
        fr = await session.get(FriendRequest, request_id)
        if not fr:
            raise NotFoundError('Friend request not found.')
        if fr.recipient_id != accepter_id:
            raise AuthorizationError('You are not authorized to accept this request.')
        if fr.status == FriendRequestStatus.ACCEPTED.value:
            raise ConflictError(ALREADY_ACCEPTED)

        result = await session.execute(
            update(FriendRequest)
            .where(
                FriendRequest.id == request_id,
                FriendRequest.status == FriendRequestStatus.PENDING.value,
            )
            .values(status=FriendRequestStatus.ACCEPTED.value)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await session.rollback()
            raise ConflictError(ALREADY_ACCEPTED)

        await ensure_friendship(session, fr.sender_id, fr.recipient_id)
        try:
            await session.commit()
        except IntegrityError:
            await session.rollback()
            raise ConflictError(ALREADY_ACCEPTED)
        await session.refresh(fr)
        return fr
