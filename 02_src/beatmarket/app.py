"""Application bootstrap and lifecycle management."""

import os
from pathlib import Path
from typing import Protocol

from .auth import IdentityService
from .blobs import LocalBlobStore
from .catalog import CartService, CatalogService
from .chat import ChatService
from .config import resolve_db_path
from .feed import ChangeFeed
from .ledger import LedgerService
from .logging_config import get_logger
from .social import SocialService
from .storage import Storage

logger = get_logger(__name__)


class IApplication(Protocol):
    """Bootstrap and lifecycle."""

    async def start(self) -> None:
        """Initialize components in dependency order."""
        ...

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        ...

    async def reset(self) -> None:
        """Reset data between test runs."""
        ...


class Application:
    """Main application bootstrap."""

    def __init__(
        self,
        db_path: str | None = None,
        blob_dir: str | Path | None = None,
        public_base_url: str | None = None,
    ):
        env_db_path = os.getenv("DATABASE_URL") if db_path is None else db_path
        self._db_path = resolve_db_path(env_db_path)
        self._blob_dir = os.getenv("BLOB_DIR") if blob_dir is None else blob_dir
        self._public_base_url = public_base_url

        # Components (will be initialized in start())
        self._storage: Storage | None = None
        self._feed: ChangeFeed | None = None
        self._blobs: LocalBlobStore | None = None
        self._identity: IdentityService | None = None
        self._catalog: CatalogService | None = None
        self._cart: CartService | None = None
        self._ledger: LedgerService | None = None
        self._social: SocialService | None = None
        self._chat: ChatService | None = None

    async def start(self) -> None:
        """Initialize components in dependency order."""
        logger.info("Starting application")

        # 1. Storage (no dependencies)
        self._storage = Storage(self._db_path)
        await self._storage.init()
        logger.info("Storage initialized")

        # 2. Change feed and blob store (no dependencies)
        self._feed = ChangeFeed()
        self._blobs = LocalBlobStore(self._blob_dir, self._public_base_url)
        logger.info("Blob store at %s", self._blobs.root)

        # 3. Services
        self._identity = IdentityService(self._storage)
        self._catalog = CatalogService(self._storage, self._blobs, self._feed)
        self._cart = CartService(self._storage, self._feed)
        self._ledger = LedgerService(self._storage)
        self._social = SocialService(self._storage)
        self._chat = ChatService(self._storage, self._feed)
        logger.info("All components initialized successfully")

    async def stop(self) -> None:
        """Shutdown in reverse order."""
        if self._feed:
            self._feed.close_all()
        if self._storage:
            await self._storage.close()
            logger.info("Storage closed")

    async def reset(self) -> None:
        """Reset data between test runs."""
        if self._feed:
            self._feed.close_all()
        if self._storage:
            await self._storage.clear()
            logger.info("Storage cleared")
        if self._blobs:
            self._blobs.clear()
        logger.info("Reset complete")

    def _require(self, component):
        if component is None:
            raise RuntimeError("Application not started")
        return component

    @property
    def storage(self) -> Storage:
        return self._require(self._storage)

    @property
    def feed(self) -> ChangeFeed:
        return self._require(self._feed)

    @property
    def blobs(self) -> LocalBlobStore:
        return self._require(self._blobs)

    @property
    def identity(self) -> IdentityService:
        return self._require(self._identity)

    @property
    def catalog(self) -> CatalogService:
        return self._require(self._catalog)

    @property
    def cart(self) -> CartService:
        return self._require(self._cart)

    @property
    def ledger(self) -> LedgerService:
        return self._require(self._ledger)

    @property
    def social(self) -> SocialService:
        return self._require(self._social)

    @property
    def chat(self) -> ChatService:
        return self._require(self._chat)
