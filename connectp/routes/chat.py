from fastapi import APIRouter, Depends
from ..schemas.chat import ChatTokenOut
from ..auth import get_current_user
from ..chat import ChatIdentityService, get_chat_service
from ..errors import DependencyError, ServiceUnavailableError
from ..models.users import User
import logging

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get('/token', response_model=ChatTokenOut)
async def chat_token(
    current_user: User = Depends(get_current_user),
    chat: ChatIdentityService = Depends(get_chat_service),
):
    try:
        token = await chat.create_token(current_user.id)
    except DependencyError as e:
        logger.warning({'msg': 'chat_token_failed', 'user_id': current_user.id, 'error': str(e)})
        raise ServiceUnavailableError('Chat service unavailable')
    return {'token': token}
