from fastapi import APIRouter, Depends, Query
from typing import List
from ..schemas.users import PublicUserOut, ActionOkOut
from ..schemas.friendships import FriendRequestOut, FriendRequestsOut, OutgoingRequestOut
from ..discovery import (
    search_users,
    get_recommended_users,
    get_my_friends,
    get_friend_requests,
    get_outgoing_friend_reqs,
)
from ..relationships import send_friend_request, accept_friend_request
from ..auth import get_current_user
from ..cache import check_rate_limit
from ..activity import ActivityKind, record_activity
from ..errors import RateLimitError
from ..models.users import User
from .. import config

router = APIRouter()


@router.get('', response_model=List[PublicUserOut])
async def recommended_users(current_user: User = Depends(get_current_user)):
    return await get_recommended_users(current_user.id)


@router.get('/search', response_model=List[PublicUserOut])
async def search(
    keyword: str = Query(''),
    current_user: User = Depends(get_current_user),
):
    return await search_users(current_user.id, keyword)


@router.get('/friends', response_model=List[PublicUserOut])
async def my_friends(current_user: User = Depends(get_current_user)):
    return await get_my_friends(current_user.id)


@router.post('/friend-request/{recipient_id}', response_model=FriendRequestOut, status_code=201)
async def friend_request(
    recipient_id: int,
    current_user: User = Depends(get_current_user),
):
    if not await check_rate_limit(
        current_user.id,
        'friend_request',
        limit=config.FRIEND_REQUEST_RATE_LIMIT,
        window=3600
    ):
        raise RateLimitError('Rate limit exceeded. Too many friend requests.')

    fr = await send_friend_request(current_user.id, recipient_id)
    record_activity(current_user.id, ActivityKind.FRIEND_REQUEST_SENT, {'to_user_id': recipient_id})
    return fr


@router.put('/friend-request/{request_id}/accept', response_model=ActionOkOut)
async def accept_request(
    request_id: int,
    current_user: User = Depends(get_current_user),
):
    fr = await accept_friend_request(current_user.id, request_id)
    record_activity(current_user.id, ActivityKind.FRIEND_REQUEST_ACCEPTED, {'from_user_id': fr.sender_id})
    return {'success': True, 'message': 'Friend request accepted.'}


@router.get('/friend-requests', response_model=FriendRequestsOut)
async def friend_requests(current_user: User = Depends(get_current_user)):
    return await get_friend_requests(current_user.id)


@router.get('/outgoing-friend-requests', response_model=List[OutgoingRequestOut])
async def outgoing_friend_requests(current_user: User = Depends(get_current_user)):
    return await get_outgoing_friend_reqs(current_user.id)
