from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import NullPool
from .. import config

# sqlite connections are bound to the loop that opened them, so don't pool them
engine_kwargs = {'poolclass': NullPool} if config.DATABASE_URL.startswith('sqlite') else {}

engine = create_async_engine(config.DATABASE_URL, future=True, echo=False, **engine_kwargs)
AsyncSessionLocal = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
Base = declarative_base()

# Import models to register tables
from .users import User  # noqa: F401,E402
from .friend_requests import FriendRequest, FriendRequestStatus, pair_key  # noqa: F401,E402
from .friendships import Friendship  # noqa: F401,E402


async def init_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def drop_models():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
