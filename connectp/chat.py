"""
Bridge to the hosted chat/video provider (Stream).

The provider keeps its own copy of each user's identity (id, name, avatar)
and authenticates clients with tokens we sign. Users are mirrored after
signup and onboarding; that mirror is best-effort and never fails the
profile change that triggered it.
"""
import logging
from stream_chat import StreamChatAsync
from . import config
from .core import CHAT_SYNC_FAILURES
from .errors import DependencyError

logger = logging.getLogger(__name__)


class ChatIdentityService:
    def __init__(self, api_key: str = None, api_secret: str = None):
        self.api_key = api_key
        self.api_secret = api_secret

    @property
    def configured(self) -> bool:
        return bool(self.api_key and self.api_secret)

    def _client(self) -> StreamChatAsync:
        if not self.configured:
            raise DependencyError('chat provider credentials are not configured')
        return StreamChatAsync(api_key=self.api_key, api_secret=self.api_secret)

    async def upsert_user(self, user):
        payload = {
            'id': str(user.id),
            'name': user.full_name,
            'image': user.profile_pic or '',
        }
        try:
            async with self._client() as client:
                await client.upsert_user(payload)
        except DependencyError:
            raise
        except Exception as e:
            raise DependencyError(f'chat upsert failed: {e}') from e

    async def create_token(self, user_id: int) -> str:
        try:
            async with self._client() as client:
                return client.create_token(str(user_id))
        except DependencyError:
            raise
        except Exception as e:
            raise DependencyError(f'chat token failed: {e}') from e


chat_service = ChatIdentityService(config.STREAM_API_KEY, config.STREAM_API_SECRET)


def get_chat_service() -> ChatIdentityService:
    return chat_service


async def sync_chat_identity(service: ChatIdentityService, user) -> bool:
    """Second phase of signup/onboarding. The profile is already committed."""
    try:
        await service.upsert_user(user)
    except DependencyError as e:
        CHAT_SYNC_FAILURES.inc()
        logger.warning({'msg': 'chat_sync_failed', 'user_id': user.id, 'error': str(e)})
        return False
    logger.info({'msg': 'chat_sync_ok', 'user_id': user.id})
    return True
