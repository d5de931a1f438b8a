"""Pytest configuration and fixtures."""

import sys
import uuid
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from unittest.mock import AsyncMock, Mock

import pytest
import pytest_asyncio

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))


@pytest_asyncio.fixture
async def storage():
    """Create in-memory storage for testing."""
    from beatmarket.storage import Storage

    st = Storage(":memory:")
    await st.init()
    yield st
    await st.close()


@pytest.fixture
def feed():
    """Create an empty change feed."""
    from beatmarket.feed import ChangeFeed

    cf = ChangeFeed()
    yield cf
    cf.close_all()


@pytest.fixture
def blobs(tmp_path):
    """Create a blob store in a temporary directory."""
    from beatmarket.blobs import LocalBlobStore

    return LocalBlobStore(tmp_path / "blobs", base_url="http://testserver")


@pytest.fixture
def identity(storage):
    from beatmarket.auth import IdentityService

    return IdentityService(storage)


@pytest.fixture
def catalog(storage, blobs, feed):
    from beatmarket.catalog import CatalogService

    return CatalogService(storage, blobs, feed)


@pytest.fixture
def cart(storage, feed):
    from beatmarket.catalog import CartService

    return CartService(storage, feed)


@pytest.fixture
def ledger(storage):
    from beatmarket.ledger import LedgerService

    return LedgerService(storage)


@pytest.fixture
def social(storage):
    from beatmarket.social import SocialService

    return SocialService(storage)


@pytest.fixture
def chat(storage, feed):
    from beatmarket.chat import ChatService

    return ChatService(storage, feed)


async def make_profile(storage, username: str, is_producer: bool = False):
    """Insert a profile directly, bypassing password hashing."""
    from beatmarket.models import Profile

    profile = Profile(
        id=str(uuid.uuid4()),
        username=username,
        email=f"{username}@example.com",
        created_at=datetime.now(timezone.utc),
        is_producer=is_producer,
    )
    await storage.create_profile(profile, "not-a-real-hash")
    return profile


async def make_beat(storage, producer_id: str, title: str = "Night Drive", **fields):
    """Insert a visible beat with default prices."""
    from beatmarket.models import Beat

    values = dict(
        price=Decimal("19.99"),
        price_wav=Decimal("29.99"),
        price_exclusive=Decimal("149.99"),
        bpm=140,
        genre="Trap",
        created_at=datetime.now(timezone.utc),
    )
    values.update(fields)
    beat = Beat(
        id=str(uuid.uuid4()),
        producer_id=producer_id,
        title=title,
        **values,
    )
    await storage.save_beat(beat)
    return beat


@pytest_asyncio.fixture
async def producer(storage):
    return await make_profile(storage, "producer", is_producer=True)


@pytest_asyncio.fixture
async def buyer(storage):
    return await make_profile(storage, "buyer")


@pytest_asyncio.fixture
async def other_buyer(storage):
    return await make_profile(storage, "other_buyer")


@pytest_asyncio.fixture
async def beat(storage, producer):
    return await make_beat(storage, producer.id)


@pytest.fixture
def mock_store():
    """Create a mock conversation store."""
    store = Mock()
    store.find_conversation = AsyncMock(return_value=None)
    store.create_conversation = AsyncMock(return_value=None)
    return store
