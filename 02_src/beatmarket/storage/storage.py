"""SQLite storage implementation."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from pathlib import Path
from typing import AsyncIterator, Callable

import aiosqlite

from ..config import resolve_db_path
from ..errors import Conflict, ExclusiveSoldOut
from ..logging_config import get_logger
from ..models import (
    Beat,
    CartItem,
    ChatMessage,
    Comment,
    Conversation,
    Favorite,
    LicenseTier,
    Profile,
    Purchase,
    Session,
    Transaction,
    TransactionType,
)

logger = get_logger(__name__)

# Callback run inside the withdrawal transaction: (sales, withdrawals) -> new balance
WithdrawalCheck = Callable[[list[Decimal], list[Decimal]], Decimal]

_CENT = Decimal("0.01")


def to_cents(amount: Decimal) -> int:
    """Convert a money amount to integer cents."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    """Convert integer cents back to a money amount."""
    return (Decimal(cents) / 100).quantize(_CENT)


def _ts(value: datetime) -> str:
    return value.isoformat(timespec="microseconds")


def _parse_ts(value: str) -> datetime:
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class Storage:
    """SQLite storage implementation."""

    def __init__(self, db_path: str | Path | None = None):
        if db_path is None:
            self._db_path = resolve_db_path()
        else:
            self._db_path = resolve_db_path(db_path)
        self._conn: aiosqlite.Connection | None = None
        # Serializes all statements on the shared connection
        self._lock = asyncio.Lock()

    async def init(self) -> None:
        """Initialize database and create tables."""
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row

        schema_path = Path(__file__).parent / "schema.sql"
        with open(schema_path, "r", encoding="utf-8") as f:
            schema_sql = f.read()
        await self._conn.executescript(schema_sql)
        await self._conn.commit()

    async def close(self) -> None:
        """Close database connection."""
        if self._conn:
            await self._conn.close()
            self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if not self._conn:
            raise RuntimeError("Storage not initialized")
        return self._conn

    @asynccontextmanager
    async def _transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Run a block of writes atomically; unique violations become Conflict."""
        conn = self._require_conn()
        async with self._lock:
            try:
                yield conn
                await conn.commit()
            except aiosqlite.IntegrityError as e:
                await conn.rollback()
                raise Conflict(str(e)) from e
            except BaseException:
                await conn.rollback()
                raise

    async def _fetchone(self, sql: str, params: tuple | list = ()) -> aiosqlite.Row | None:
        # Reads wait for open transactions so they never see uncommitted rows
        conn = self._require_conn()
        async with self._lock:
            async with conn.execute(sql, params) as cursor:
                return await cursor.fetchone()

    async def _fetchall(self, sql: str, params: tuple | list = ()) -> list[aiosqlite.Row]:
        conn = self._require_conn()
        async with self._lock:
            async with conn.execute(sql, params) as cursor:
                return list(await cursor.fetchall())

    # Profiles
    async def create_profile(self, profile: Profile, password_hash: str) -> None:
        """Insert a profile. Raises Conflict on a taken email or username."""
        async with self._transaction() as conn:
            await conn.execute(
                """
                INSERT INTO profiles
                (id, username, email, password_hash, avatar_url, bio,
                 is_producer, balance_cents, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    profile.id,
                    profile.username,
                    profile.email,
                    password_hash,
                    profile.avatar_url,
                    profile.bio,
                    int(profile.is_producer),
                    to_cents(profile.balance),
                    _ts(profile.created_at),
                ),
            )

    async def get_profile(self, user_id: str) -> Profile | None:
        """Get a profile by ID."""
        row = await self._fetchone("SELECT * FROM profiles WHERE id = ?", (user_id,))
        return self._row_to_profile(row) if row else None

    async def get_profile_by_username(self, username: str) -> Profile | None:
        """Get a profile by username."""
        row = await self._fetchone(
            "SELECT * FROM profiles WHERE username = ?", (username,)
        )
        return self._row_to_profile(row) if row else None

    async def get_credentials(self, email: str) -> tuple[str, str] | None:
        """Return (user_id, password_hash) for an email."""
        row = await self._fetchone(
            "SELECT id, password_hash FROM profiles WHERE email = ?", (email,)
        )
        return (row["id"], row["password_hash"]) if row else None

    async def search_profiles(self, term: str, limit: int = 4) -> list[Profile]:
        """Case-insensitive substring search on username."""
        rows = await self._fetchall(
            """
            SELECT * FROM profiles
            WHERE username LIKE ? ESCAPE '\\'
            ORDER BY username ASC
            LIMIT ?
            """,
            (f"%{_escape_like(term)}%", limit),
        )
        return [self._row_to_profile(row) for row in rows]

    async def list_producers(self, limit: int = 10) -> list[Profile]:
        """Profiles flagged as producers."""
        rows = await self._fetchall(
            """
            SELECT * FROM profiles
            WHERE is_producer = 1
            ORDER BY created_at ASC
            LIMIT ?
            """,
            (limit,),
        )
        return [self._row_to_profile(row) for row in rows]

    async def update_profile(
        self,
        user_id: str,
        avatar_url: str | None = None,
        bio: str | None = None,
        is_producer: bool | None = None,
    ) -> None:
        """Update editable profile fields; None leaves a field unchanged."""
        assignments = []
        params: list = []
        if avatar_url is not None:
            assignments.append("avatar_url = ?")
            params.append(avatar_url)
        if bio is not None:
            assignments.append("bio = ?")
            params.append(bio)
        if is_producer is not None:
            assignments.append("is_producer = ?")
            params.append(int(is_producer))
        if not assignments:
            return

        params.append(user_id)
        async with self._transaction() as conn:
            await conn.execute(
                f"UPDATE profiles SET {', '.join(assignments)} WHERE id = ?",
                params,
            )

    @staticmethod
    def _row_to_profile(row: aiosqlite.Row) -> Profile:
        return Profile(
            id=row["id"],
            username=row["username"],
            email=row["email"],
            avatar_url=row["avatar_url"],
            bio=row["bio"],
            is_producer=bool(row["is_producer"]),
            balance=from_cents(row["balance_cents"]),
            created_at=_parse_ts(row["created_at"]),
        )

    # Sessions
    async def save_session(self, session: Session) -> None:
        """Persist a session token."""
        async with self._transaction() as conn:
            await conn.execute(
                "INSERT INTO sessions (token, user_id, created_at) VALUES (?, ?, ?)",
                (session.token, session.user_id, _ts(session.created_at)),
            )

    async def get_session(self, token: str) -> Session | None:
        """Look up a session by token."""
        row = await self._fetchone(
            "SELECT token, user_id, created_at FROM sessions WHERE token = ?",
            (token,),
        )
        if not row:
            return None
        return Session(
            token=row["token"],
            user_id=row["user_id"],
            created_at=_parse_ts(row["created_at"]),
        )

    async def delete_session(self, token: str) -> None:
        """Drop a session token."""
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM sessions WHERE token = ?", (token,))

    # Beats
    async def save_beat(self, beat: Beat) -> None:
        """Insert a beat."""
        async with self._transaction() as conn:
            await conn.execute(
                """
                INSERT INTO beats
                (id, producer_id, title, bpm, key, genre, description,
                 price_cents, price_wav_cents, price_exclusive_cents, currency,
                 audio_url, cover_url, is_visible, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    beat.id,
                    beat.producer_id,
                    beat.title,
                    beat.bpm,
                    beat.key,
                    beat.genre,
                    beat.description,
                    to_cents(beat.price),
                    to_cents(beat.price_wav),
                    to_cents(beat.price_exclusive),
                    beat.currency,
                    beat.audio_url,
                    beat.cover_url,
                    int(beat.is_visible),
                    _ts(beat.created_at),
                ),
            )

    async def get_beat(self, beat_id: str) -> Beat | None:
        """Get a beat by ID."""
        row = await self._fetchone("SELECT * FROM beats WHERE id = ?", (beat_id,))
        return self._row_to_beat(row) if row else None

    async def list_beats(
        self,
        search: str | None = None,
        genre: str | None = None,
        min_bpm: int | None = None,
        max_bpm: int | None = None,
        max_price: Decimal | None = None,
        producer_id: str | None = None,
        visible_only: bool = True,
        limit: int = 100,
    ) -> list[Beat]:
        """Get beats with optional filters, newest first."""
        conditions = []
        params: list = []

        if visible_only:
            conditions.append("is_visible = 1")
        if producer_id:
            conditions.append("producer_id = ?")
            params.append(producer_id)
        if search:
            conditions.append("title LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(search)}%")
        if genre:
            conditions.append("genre LIKE ? ESCAPE '\\'")
            params.append(f"%{_escape_like(genre)}%")
        if min_bpm is not None:
            conditions.append("bpm >= ?")
            params.append(max(0, min_bpm))
        if max_bpm is not None:
            conditions.append("bpm <= ?")
            params.append(max_bpm)
        if max_price is not None:
            conditions.append("price_cents <= ?")
            params.append(to_cents(max_price))

        where_clause = f"WHERE {' AND '.join(conditions)}" if conditions else ""
        params.append(limit)

        rows = await self._fetchall(
            f"""
            SELECT * FROM beats
            {where_clause}
            ORDER BY created_at DESC, rowid DESC
            LIMIT ?
            """,
            params,
        )
        return [self._row_to_beat(row) for row in rows]

    async def set_beat_visibility(self, beat_id: str, visible: bool) -> None:
        """Show or hide a beat."""
        async with self._transaction() as conn:
            await conn.execute(
                "UPDATE beats SET is_visible = ? WHERE id = ?",
                (int(visible), beat_id),
            )

    async def delete_beat_relations(self, beat_id: str) -> None:
        """Remove comments, likes, cart rows and view logs of a beat."""
        for table in ("comments", "favorites", "cart_items", "view_logs"):
            async with self._transaction() as conn:
                await conn.execute(f"DELETE FROM {table} WHERE beat_id = ?", (beat_id,))

    async def delete_beat(self, beat_id: str) -> None:
        """Delete the beat row itself."""
        async with self._transaction() as conn:
            await conn.execute("DELETE FROM beats WHERE id = ?", (beat_id,))

    async def record_view(self, view_id: str, beat_id: str, user_id: str | None, at: datetime) -> None:
        """Append a view log row."""
        async with self._transaction() as conn:
            await conn.execute(
                "INSERT INTO view_logs (id, beat_id, user_id, created_at) VALUES (?, ?, ?, ?)",
                (view_id, beat_id, user_id, _ts(at)),
            )

    async def count_views(self, beat_id: str) -> int:
        """Number of view logs for a beat."""
        row = await self._fetchone(
            "SELECT COUNT(*) AS n FROM view_logs WHERE beat_id = ?", (beat_id,)
        )
        return row["n"] if row else 0

    @staticmethod
    def _row_to_beat(row: aiosqlite.Row) -> Beat:
        return Beat(
            id=row["id"],
            producer_id=row["producer_id"],
            title=row["title"],
            bpm=row["bpm"],
            key=row["key"],
            genre=row["genre"],
            description=row["description"],
            price=from_cents(row["price_cents"]),
            price_wav=from_cents(row["price_wav_cents"]),
            price_exclusive=from_cents(row["price_exclusive_cents"]),
            currency=row["currency"],
            audio_url=row["audio_url"],
            cover_url=row["cover_url"],
            is_visible=bool(row["is_visible"]),
            created_at=_parse_ts(row["created_at"]),
        )

    # Cart
    async def add_cart_item(self, item: CartItem) -> None:
        """Insert a cart row. Raises Conflict if the beat is already in the cart."""
        async with self._transaction() as conn:
            await conn.execute(
                """
                INSERT INTO cart_items
                (id, user_id, beat_id, license_type, price_cents, currency, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    item.id,
                    item.user_id,
                    item.beat_id,
                    item.license_type.value,
                    to_cents(item.price),
                    item.currency,
                    _ts(item.created_at),
                ),
            )

    async def get_cart_item(self, user_id: str, beat_id: str) -> CartItem | None:
        """Get the cart row of a user for a beat."""
        row = await self._fetchone(
            "SELECT * FROM cart_items WHERE user_id = ? AND beat_id = ?",
            (user_id, beat_id),
        )
        return self._row_to_cart_item(row) if row else None

    async def list_cart(self, user_id: str) -> list[CartItem]:
        """Cart rows of a user, oldest first."""
        rows = await self._fetchall(
            "SELECT * FROM cart_items WHERE user_id = ? ORDER BY created_at ASC, rowid ASC",
            (user_id,),
        )
        return [self._row_to_cart_item(row) for row in rows]

    async def remove_cart_item(self, item_id: str, user_id: str) -> bool:
        """Delete a cart row owned by user. Returns whether a row was removed."""
        async with self._transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM cart_items WHERE id = ? AND user_id = ?",
                (item_id, user_id),
            )
            return cursor.rowcount > 0

    @staticmethod
    def _row_to_cart_item(row: aiosqlite.Row) -> CartItem:
        return CartItem(
            id=row["id"],
            user_id=row["user_id"],
            beat_id=row["beat_id"],
            license_type=LicenseTier(row["license_type"]),
            price=from_cents(row["price_cents"]),
            currency=row["currency"],
            created_at=_parse_ts(row["created_at"]),
        )

    # Purchases
    async def sale_tiers(self, beat_id: str) -> list[LicenseTier]:
        """License tiers of every sale recorded for a beat."""
        rows = await self._fetchall(
            "SELECT license_type FROM purchases WHERE beat_id = ?", (beat_id,)
        )
        return [LicenseTier(row["license_type"]) for row in rows]

    async def exclusive_sold_beat_ids(self, beat_ids: list[str]) -> set[str]:
        """Subset of beat_ids that have an exclusive sale."""
        if not beat_ids:
            return set()
        placeholders = ",".join("?" * len(beat_ids))
        rows = await self._fetchall(
            f"""
            SELECT DISTINCT beat_id FROM purchases
            WHERE license_type = ? AND beat_id IN ({placeholders})
            """,
            [LicenseTier.EXCLUSIVE.value, *beat_ids],
        )
        return {row["beat_id"] for row in rows}

    async def has_purchased(self, user_id: str, beat_id: str) -> bool:
        """Whether user bought the beat under any tier."""
        row = await self._fetchone(
            "SELECT 1 FROM purchases WHERE user_id = ? AND beat_id = ? LIMIT 1",
            (user_id, beat_id),
        )
        return row is not None

    async def record_sales(self, purchases: list[Purchase], seller_ids: dict[str, str]) -> None:
        """
        Insert purchases, credit the sellers' cached balances and empty the
        buyers' carts in one transaction.

        Every beat is re-checked for an existing exclusive sale inside the
        transaction; ExclusiveSoldOut aborts the whole batch.

        Args:
            purchases: Sale rows to insert.
            seller_ids: beat_id -> producer_id for the purchased beats.
        """
        async with self._transaction() as conn:
            for purchase in purchases:
                async with conn.execute(
                    "SELECT 1 FROM purchases WHERE beat_id = ? AND license_type = ? LIMIT 1",
                    (purchase.beat_id, LicenseTier.EXCLUSIVE.value),
                ) as cursor:
                    if await cursor.fetchone():
                        raise ExclusiveSoldOut(purchase.beat_id)

                await conn.execute(
                    """
                    INSERT INTO purchases
                    (id, user_id, seller_id, beat_id, price_paid_cents, currency,
                     license_type, transaction_id, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        purchase.id,
                        purchase.user_id,
                        seller_ids[purchase.beat_id],
                        purchase.beat_id,
                        to_cents(purchase.price_paid),
                        purchase.currency,
                        purchase.license_type.value,
                        purchase.transaction_id,
                        _ts(purchase.created_at),
                    ),
                )
                await conn.execute(
                    "UPDATE profiles SET balance_cents = balance_cents + ? WHERE id = ?",
                    (to_cents(purchase.price_paid), seller_ids[purchase.beat_id]),
                )

            for buyer_id in {p.user_id for p in purchases}:
                await conn.execute("DELETE FROM cart_items WHERE user_id = ?", (buyer_id,))

    async def list_purchases_by_buyer(self, user_id: str) -> list[Purchase]:
        """A buyer's collection, newest first."""
        rows = await self._fetchall(
            """
            SELECT p.*, b.title AS beat_title
            FROM purchases p LEFT JOIN beats b ON b.id = p.beat_id
            WHERE p.user_id = ?
            ORDER BY p.created_at DESC, p.rowid DESC
            """,
            (user_id,),
        )
        return [self._row_to_purchase(row) for row in rows]

    async def list_sales_by_seller(self, seller_id: str) -> list[Purchase]:
        """Sales of a producer's beats, newest first."""
        rows = await self._fetchall(
            """
            SELECT p.*, b.title AS beat_title
            FROM purchases p LEFT JOIN beats b ON b.id = p.beat_id
            WHERE p.seller_id = ?
            ORDER BY p.created_at DESC, p.rowid DESC
            """,
            (seller_id,),
        )
        return [self._row_to_purchase(row) for row in rows]

    @staticmethod
    def _row_to_purchase(row: aiosqlite.Row) -> Purchase:
        return Purchase(
            id=row["id"],
            user_id=row["user_id"],
            beat_id=row["beat_id"],
            price_paid=from_cents(row["price_paid_cents"]),
            currency=row["currency"],
            license_type=LicenseTier(row["license_type"]),
            transaction_id=row["transaction_id"],
            created_at=_parse_ts(row["created_at"]),
            beat_title=row["beat_title"],
        )

    # Ledger
    async def _amounts(self, conn: aiosqlite.Connection, user_id: str) -> tuple[list[Decimal], list[Decimal]]:
        async with conn.execute(
            "SELECT price_paid_cents FROM purchases WHERE seller_id = ?", (user_id,)
        ) as cursor:
            sales = [from_cents(row[0]) for row in await cursor.fetchall()]
        async with conn.execute(
            "SELECT amount_cents FROM transactions WHERE user_id = ? AND type = ?",
            (user_id, TransactionType.WITHDRAWAL.value),
        ) as cursor:
            withdrawals = [from_cents(row[0]) for row in await cursor.fetchall()]
        return sales, withdrawals

    async def ledger_amounts(self, user_id: str) -> tuple[list[Decimal], list[Decimal]]:
        """Return (sale amounts, withdrawal amounts) for a seller."""
        conn = self._require_conn()
        async with self._lock:
            return await self._amounts(conn, user_id)

    async def record_withdrawal(
        self, transaction: Transaction, check: WithdrawalCheck
    ) -> Decimal:
        """
        Debit a seller atomically.

        The balance inputs are read inside the transaction and handed to
        ``check``, which validates the request and returns the new balance
        (or raises, rolling everything back). The cached profile balance and
        the withdrawal record are then written together.

        Returns:
            The new balance.
        """
        async with self._transaction() as conn:
            sales, withdrawals = await self._amounts(conn, transaction.user_id)
            new_balance = check(sales, withdrawals)

            await conn.execute(
                "UPDATE profiles SET balance_cents = ? WHERE id = ?",
                (to_cents(new_balance), transaction.user_id),
            )
            await conn.execute(
                """
                INSERT INTO transactions (id, user_id, amount_cents, type, status, created_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    transaction.id,
                    transaction.user_id,
                    to_cents(transaction.amount),
                    transaction.type.value,
                    transaction.status,
                    _ts(transaction.created_at),
                ),
            )
        return new_balance

    async def list_transactions(self, user_id: str) -> list[Transaction]:
        """Ledger entries of a user, newest first."""
        rows = await self._fetchall(
            """
            SELECT * FROM transactions
            WHERE user_id = ?
            ORDER BY created_at DESC, rowid DESC
            """,
            (user_id,),
        )
        return [
            Transaction(
                id=row["id"],
                user_id=row["user_id"],
                amount=from_cents(row["amount_cents"]),
                type=TransactionType(row["type"]),
                status=row["status"],
                created_at=_parse_ts(row["created_at"]),
            )
            for row in rows
        ]

    # Favorites
    async def add_favorite(self, favorite: Favorite) -> None:
        """Like a beat. Raises Conflict if already liked."""
        async with self._transaction() as conn:
            await conn.execute(
                "INSERT INTO favorites (id, user_id, beat_id, created_at) VALUES (?, ?, ?, ?)",
                (favorite.id, favorite.user_id, favorite.beat_id, _ts(favorite.created_at)),
            )

    async def remove_favorite(self, user_id: str, beat_id: str) -> bool:
        """Unlike a beat. Returns whether a like existed."""
        async with self._transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM favorites WHERE user_id = ? AND beat_id = ?",
                (user_id, beat_id),
            )
            return cursor.rowcount > 0

    async def is_favorite(self, user_id: str, beat_id: str) -> bool:
        row = await self._fetchone(
            "SELECT 1 FROM favorites WHERE user_id = ? AND beat_id = ?",
            (user_id, beat_id),
        )
        return row is not None

    async def count_favorites(self, beat_id: str) -> int:
        row = await self._fetchone(
            "SELECT COUNT(*) AS n FROM favorites WHERE beat_id = ?", (beat_id,)
        )
        return row["n"] if row else 0

    async def list_favorite_beats(self, user_id: str) -> list[Beat]:
        """Beats liked by a user, most recently liked first."""
        rows = await self._fetchall(
            """
            SELECT b.* FROM favorites f JOIN beats b ON b.id = f.beat_id
            WHERE f.user_id = ?
            ORDER BY f.created_at DESC, f.rowid DESC
            """,
            (user_id,),
        )
        return [self._row_to_beat(row) for row in rows]

    # Comments
    async def add_comment(self, comment: Comment) -> None:
        async with self._transaction() as conn:
            await conn.execute(
                "INSERT INTO comments (id, beat_id, user_id, text, created_at) VALUES (?, ?, ?, ?, ?)",
                (comment.id, comment.beat_id, comment.user_id, comment.text, _ts(comment.created_at)),
            )

    async def list_comments(self, beat_id: str) -> list[Comment]:
        """Comments on a beat, newest first."""
        rows = await self._fetchall(
            """
            SELECT * FROM comments WHERE beat_id = ?
            ORDER BY created_at DESC, rowid DESC
            """,
            (beat_id,),
        )
        return [
            Comment(
                id=row["id"],
                beat_id=row["beat_id"],
                user_id=row["user_id"],
                text=row["text"],
                created_at=_parse_ts(row["created_at"]),
            )
            for row in rows
        ]

    # Follows
    async def add_follow(self, follower_id: str, following_id: str, at: datetime) -> None:
        """Follow a user. Raises Conflict if already following."""
        async with self._transaction() as conn:
            await conn.execute(
                "INSERT INTO follows (follower_id, following_id, created_at) VALUES (?, ?, ?)",
                (follower_id, following_id, _ts(at)),
            )

    async def remove_follow(self, follower_id: str, following_id: str) -> bool:
        async with self._transaction() as conn:
            cursor = await conn.execute(
                "DELETE FROM follows WHERE follower_id = ? AND following_id = ?",
                (follower_id, following_id),
            )
            return cursor.rowcount > 0

    async def is_following(self, follower_id: str, following_id: str) -> bool:
        row = await self._fetchone(
            "SELECT 1 FROM follows WHERE follower_id = ? AND following_id = ?",
            (follower_id, following_id),
        )
        return row is not None

    async def count_followers(self, user_id: str) -> int:
        row = await self._fetchone(
            "SELECT COUNT(*) AS n FROM follows WHERE following_id = ?", (user_id,)
        )
        return row["n"] if row else 0

    async def count_following(self, user_id: str) -> int:
        row = await self._fetchone(
            "SELECT COUNT(*) AS n FROM follows WHERE follower_id = ?", (user_id,)
        )
        return row["n"] if row else 0

    async def list_followers(self, user_id: str) -> list[Profile]:
        rows = await self._fetchall(
            """
            SELECT p.* FROM follows f JOIN profiles p ON p.id = f.follower_id
            WHERE f.following_id = ?
            ORDER BY f.created_at DESC
            """,
            (user_id,),
        )
        return [self._row_to_profile(row) for row in rows]

    async def list_following(self, user_id: str) -> list[Profile]:
        rows = await self._fetchall(
            """
            SELECT p.* FROM follows f JOIN profiles p ON p.id = f.following_id
            WHERE f.follower_id = ?
            ORDER BY f.created_at DESC
            """,
            (user_id,),
        )
        return [self._row_to_profile(row) for row in rows]

    # Conversations
    async def find_conversation(self, user_a: str, user_b: str) -> Conversation | None:
        """Find the conversation of an unordered pair, in either participant order."""
        row = await self._fetchone(
            """
            SELECT * FROM conversations
            WHERE (participant_1 = ? AND participant_2 = ?)
               OR (participant_1 = ? AND participant_2 = ?)
            LIMIT 1
            """,
            (user_a, user_b, user_b, user_a),
        )
        return self._row_to_conversation(row) if row else None

    async def create_conversation(self, conversation: Conversation) -> None:
        """Insert a conversation. Raises Conflict if the pair already has one."""
        async with self._transaction() as conn:
            await conn.execute(
                """
                INSERT INTO conversations
                (id, participant_1, participant_2, last_message, created_at, updated_at)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    conversation.id,
                    conversation.participant_1,
                    conversation.participant_2,
                    conversation.last_message,
                    _ts(conversation.created_at),
                    _ts(conversation.updated_at),
                ),
            )

    async def get_conversation(self, conversation_id: str) -> Conversation | None:
        row = await self._fetchone(
            "SELECT * FROM conversations WHERE id = ?", (conversation_id,)
        )
        return self._row_to_conversation(row) if row else None

    async def list_conversations(self, user_id: str) -> list[Conversation]:
        """Conversations a user takes part in, most recently active first."""
        rows = await self._fetchall(
            """
            SELECT * FROM conversations
            WHERE participant_1 = ? OR participant_2 = ?
            ORDER BY updated_at DESC, rowid DESC
            """,
            (user_id, user_id),
        )
        return [self._row_to_conversation(row) for row in rows]

    async def count_conversations(self) -> int:
        row = await self._fetchone("SELECT COUNT(*) AS n FROM conversations")
        return row["n"] if row else 0

    @staticmethod
    def _row_to_conversation(row: aiosqlite.Row) -> Conversation:
        return Conversation(
            id=row["id"],
            participant_1=row["participant_1"],
            participant_2=row["participant_2"],
            last_message=row["last_message"],
            created_at=_parse_ts(row["created_at"]),
            updated_at=_parse_ts(row["updated_at"]),
        )

    # Messages
    async def save_message(self, message: ChatMessage) -> None:
        """Append a message and bump the conversation's last activity."""
        async with self._transaction() as conn:
            await conn.execute(
                """
                INSERT INTO messages (id, conversation_id, sender_id, text, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    message.id,
                    message.conversation_id,
                    message.sender_id,
                    message.text,
                    _ts(message.created_at),
                ),
            )
            await conn.execute(
                "UPDATE conversations SET last_message = ?, updated_at = ? WHERE id = ?",
                (message.text, _ts(message.created_at), message.conversation_id),
            )

    async def get_messages(
        self, conversation_id: str, after: datetime | None = None
    ) -> list[ChatMessage]:
        """Get messages of a conversation in creation order, optionally after a timestamp."""
        if after:
            rows = await self._fetchall(
                """
                SELECT * FROM messages
                WHERE conversation_id = ? AND created_at > ?
                ORDER BY created_at ASC, rowid ASC
                """,
                (conversation_id, _ts(after)),
            )
        else:
            rows = await self._fetchall(
                """
                SELECT * FROM messages
                WHERE conversation_id = ?
                ORDER BY created_at ASC, rowid ASC
                """,
                (conversation_id,),
            )
        return [self._row_to_message(row) for row in rows]

    async def get_last_message(self, conversation_id: str) -> ChatMessage | None:
        row = await self._fetchone(
            """
            SELECT * FROM messages
            WHERE conversation_id = ?
            ORDER BY created_at DESC, rowid DESC
            LIMIT 1
            """,
            (conversation_id,),
        )
        return self._row_to_message(row) if row else None

    @staticmethod
    def _row_to_message(row: aiosqlite.Row) -> ChatMessage:
        return ChatMessage(
            id=row["id"],
            conversation_id=row["conversation_id"],
            sender_id=row["sender_id"],
            text=row["text"],
            created_at=_parse_ts(row["created_at"]),
        )

    # Lifecycle
    async def clear(self) -> None:
        """Clear all data."""
        tables = [
            "messages",
            "conversations",
            "view_logs",
            "follows",
            "comments",
            "favorites",
            "transactions",
            "purchases",
            "cart_items",
            "beats",
            "sessions",
            "profiles",
        ]

        async with self._transaction() as conn:
            for table in tables:
                await conn.execute(f"DELETE FROM {table}")
