from fastapi import APIRouter, Depends, Response
from ..schemas.users import SignupIn, LoginIn, OnboardIn, AuthOut, ProfileOut, ActionOkOut
from ..crud import create_user, authenticate_user, onboard_user
from ..auth import create_access_token, get_current_user, set_auth_cookie, clear_auth_cookie
from ..activity import ActivityKind, record_activity
from ..chat import ChatIdentityService, get_chat_service, sync_chat_identity
from ..errors import AuthenticationError
from ..models.users import User

router = APIRouter()


def _issue_token(response: Response, user: User) -> str:
    token = create_access_token({'id': user.id})
    set_auth_cookie(response, token)
    return token


@router.post('/signup', response_model=AuthOut, status_code=201)
async def signup(
    payload: SignupIn,
    response: Response,
    chat: ChatIdentityService = Depends(get_chat_service),
):
    user = await create_user(payload)
    record_activity(user.id, ActivityKind.USER_SIGNED_UP)

    # the account is committed; the chat mirror may fail without undoing it
    await sync_chat_identity(chat, user)

    token = _issue_token(response, user)
    return {'success': True, 'user': user, 'access_token': token}


@router.post('/login', response_model=AuthOut)
async def login(payload: LoginIn, response: Response):
    user = await authenticate_user(payload.email, payload.password)
    if not user:
        raise AuthenticationError('Invalid email or password')
    record_activity(user.id, ActivityKind.USER_LOGGED_IN)
    token = _issue_token(response, user)
    return {'success': True, 'user': user, 'access_token': token}


@router.post('/logout', response_model=ActionOkOut)
async def logout(response: Response):
    clear_auth_cookie(response)
    return {'success': True, 'message': 'Logout successful'}


@router.get('/me', response_model=ProfileOut)
async def me(current_user: User = Depends(get_current_user)):
    return {'success': True, 'user': current_user}


@router.post('/onboarding', response_model=ProfileOut)
async def onboarding(
    payload: OnboardIn,
    current_user: User = Depends(get_current_user),
    chat: ChatIdentityService = Depends(get_chat_service),
):
    user = await onboard_user(current_user.id, payload)
    record_activity(user.id, ActivityKind.PROFILE_ONBOARDED, {'username': user.username})
    await sync_chat_identity(chat, user)
    return {'success': True, 'user': user}
