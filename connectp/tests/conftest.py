import os
import sys
import tempfile
from pathlib import Path
from types import SimpleNamespace

import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

# Point the app at a throwaway sqlite file before anything imports connectp.config
TEST_DB = Path(tempfile.mkdtemp(prefix='connectp-tests-')) / 'test.db'
os.environ['DATABASE_URL'] = f'sqlite+aiosqlite:///{TEST_DB}'
os.environ.pop('REDIS_URL', None)
os.environ.pop('STREAM_API_KEY', None)
os.environ.pop('STREAM_API_SECRET', None)

# Ensure the package root is on sys.path when pytest changes CWD to this tests dir
HERE = Path(__file__).resolve()
PKG_ROOT = HERE.parents[2]
if str(PKG_ROOT) not in sys.path:
    sys.path.insert(0, str(PKG_ROOT))

from connectp.main import app  # noqa: E402
from connectp.chat import get_chat_service  # noqa: E402
from connectp.errors import DependencyError  # noqa: E402
from connectp.models import AsyncSessionLocal, init_models, drop_models  # noqa: E402
from connectp.models.users import User  # noqa: E402


class FakeChatService:
    """Records upserts instead of calling the chat provider."""

    def __init__(self):
        self.fail = False
        self.upserts = []

    async def upsert_user(self, user):
        if self.fail:
            raise DependencyError('chat provider down')
        self.upserts.append({'id': str(user.id), 'name': user.full_name, 'image': user.profile_pic or ''})

    async def create_token(self, user_id):
        if self.fail:
            raise DependencyError('chat provider down')
        return f'chat-token-{user_id}'


@pytest_asyncio.fixture
async def db():
    await drop_models()
    await init_models()
    yield
    await drop_models()


@pytest.fixture
def chat():
    fake = FakeChatService()
    app.dependency_overrides[get_chat_service] = lambda: fake
    yield fake
    app.dependency_overrides.pop(get_chat_service, None)


@pytest_asyncio.fixture
async def client(db, chat):
    async with AsyncClient(transport=ASGITransport(app=app), base_url='http://test') as ac:
        yield ac


@pytest.fixture
def make_user(client):
    """Sign up (and by default onboard) a user through the API."""

    async def _make(full_name, onboard=True, username=None, **profile):
        slug = full_name.lower().replace(' ', '_')
        r = await client.post('/api/auth/signup', json={
            'email': f'{slug}@example.com',
            'password': 'secret1',
            'full_name': full_name,
        })
        assert r.status_code == 201, r.text
        body = r.json()
        headers = {'Authorization': f"Bearer {body['access_token']}"}
        user = body['user']
        if onboard:
            r = await client.post('/api/auth/onboarding', json={
                'username': username or slug,
                'full_name': full_name,
                'bio': profile.get('bio', 'Hi there'),
                'native_language': profile.get('native_language', 'english'),
                'location': profile.get('location', 'Berlin'),
            }, headers=headers)
            assert r.status_code == 200, r.text
            user = r.json()['user']
        return SimpleNamespace(id=user['id'], headers=headers, user=user)

    return _make


@pytest.fixture
def insert_users(db):
    """Insert users straight into the directory, skipping password hashing."""

    async def _insert(count, prefix='member', onboarded=True):
        async with AsyncSessionLocal() as session:
            users = [
                User(
                    email=f'{prefix}{i}@example.com',
                    hashed_password='not-a-hash',
                    full_name=f'{prefix.title()} {i}',
                    username=f'{prefix}_{i}' if onboarded else None,
                    bio='bio' if onboarded else None,
                    native_language='spanish' if onboarded else None,
                    location='Madrid' if onboarded else None,
                    is_onboarded=onboarded,
                )
                for i in range(count)
            ]
            session.add_all(users)
            await session.commit()
            return [u.id for u in users]

    return _insert
