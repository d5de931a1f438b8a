"""Tests for Storage."""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from beatmarket.errors import Conflict, ExclusiveSoldOut
from beatmarket.models import (
    CartItem,
    ChatMessage,
    Conversation,
    LicenseTier,
    Purchase,
    Transaction,
    TransactionType,
)
from beatmarket.storage import from_cents, to_cents
from conftest import make_beat, make_profile


def _purchase(buyer_id, beat_id, tier=LicenseTier.MP3_LEASE, price="19.99", txid="TXID_1"):
    return Purchase(
        id=str(uuid.uuid4()),
        user_id=buyer_id,
        beat_id=beat_id,
        price_paid=Decimal(price),
        currency="USD",
        license_type=tier,
        transaction_id=txid,
        created_at=datetime.now(timezone.utc),
    )


def _conversation(a, b, conversation_id=None):
    now = datetime.now(timezone.utc)
    return Conversation(
        id=conversation_id or str(uuid.uuid4()),
        participant_1=a,
        participant_2=b,
        created_at=now,
        updated_at=now,
    )


class TestStorageInit:
    """Tests for Storage initialization."""

    async def test_init_creates_tables(self, storage):
        """Test that init creates all tables."""
        async with storage._conn.execute(
            "SELECT name FROM sqlite_master WHERE type='table'"
        ) as cursor:
            tables = [row[0] for row in await cursor.fetchall()]
            for table in (
                "profiles",
                "sessions",
                "beats",
                "cart_items",
                "purchases",
                "transactions",
                "favorites",
                "comments",
                "follows",
                "view_logs",
                "conversations",
                "messages",
            ):
                assert table in tables

    async def test_uninitialized_storage_raises(self):
        """Test that using storage before init raises."""
        from beatmarket.storage import Storage

        st = Storage(":memory:")
        with pytest.raises(RuntimeError):
            await st.get_profile("nobody")


class TestCents:
    """Tests for money conversion."""

    def test_to_cents(self):
        assert to_cents(Decimal("19.99")) == 1999
        assert to_cents(Decimal("0.005")) == 1

    def test_from_cents(self):
        assert from_cents(4998) == Decimal("49.98")
        assert str(from_cents(1500)) == "15.00"


class TestStorageProfiles:
    """Tests for profile storage."""

    async def test_create_and_get_profile(self, storage):
        """Test saving and retrieving a profile."""
        profile = await make_profile(storage, "alice")

        retrieved = await storage.get_profile(profile.id)
        assert retrieved is not None
        assert retrieved.username == "alice"
        assert retrieved.balance == Decimal("0.00")
        assert not retrieved.is_producer

    async def test_duplicate_username_conflicts(self, storage):
        """Test that a taken username raises Conflict."""
        await make_profile(storage, "alice")
        with pytest.raises(Conflict):
            await make_profile(storage, "alice")

    async def test_get_profile_by_username(self, storage):
        profile = await make_profile(storage, "alice")
        assert (await storage.get_profile_by_username("alice")).id == profile.id
        assert await storage.get_profile_by_username("bob") is None

    async def test_search_profiles_is_substring_and_limited(self, storage):
        """Test that search matches substrings and caps results."""
        for name in ("beatking", "kingpin", "kingsley", "thekings", "kingdom", "queen"):
            await make_profile(storage, name)

        found = await storage.search_profiles("king", limit=4)
        assert len(found) == 4
        assert all("king" in p.username for p in found)

    async def test_search_escapes_wildcards(self, storage):
        await make_profile(storage, "a_b")
        await make_profile(storage, "axb")

        found = await storage.search_profiles("a_b")
        assert [p.username for p in found] == ["a_b"]

    async def test_update_profile(self, storage):
        profile = await make_profile(storage, "alice")
        await storage.update_profile(profile.id, bio="Hello", is_producer=True)

        updated = await storage.get_profile(profile.id)
        assert updated.bio == "Hello"
        assert updated.is_producer

    async def test_list_producers(self, storage):
        await make_profile(storage, "listener")
        producer = await make_profile(storage, "maker", is_producer=True)

        producers = await storage.list_producers()
        assert [p.id for p in producers] == [producer.id]


class TestStorageBeats:
    """Tests for beat storage."""

    async def test_save_and_get_beat(self, storage, producer):
        beat = await make_beat(storage, producer.id)

        retrieved = await storage.get_beat(beat.id)
        assert retrieved.title == "Night Drive"
        assert retrieved.price == Decimal("19.99")
        assert retrieved.price_exclusive == Decimal("149.99")
        assert retrieved.is_visible

    async def test_list_beats_newest_first(self, storage, producer):
        """Test that beats are listed newest first."""
        now = datetime.now(timezone.utc)
        old = await make_beat(storage, producer.id, "Old", created_at=now - timedelta(days=1))
        new = await make_beat(storage, producer.id, "New", created_at=now)

        beats = await storage.list_beats()
        assert [b.id for b in beats] == [new.id, old.id]

    async def test_list_beats_filters(self, storage, producer):
        """Test title, genre, bpm and price filters."""
        await make_beat(storage, producer.id, "Dark Trap", bpm=140, genre="Trap")
        await make_beat(storage, producer.id, "Lofi Rain", bpm=80, genre="Lo-Fi",
                        price=Decimal("9.99"))

        assert [b.title for b in await storage.list_beats(search="rain")] == ["Lofi Rain"]
        assert [b.title for b in await storage.list_beats(genre="trap")] == ["Dark Trap"]
        assert [b.title for b in await storage.list_beats(min_bpm=100)] == ["Dark Trap"]
        assert [b.title for b in await storage.list_beats(max_bpm=100)] == ["Lofi Rain"]
        assert [b.title for b in await storage.list_beats(max_price=Decimal("10"))] == [
            "Lofi Rain"
        ]

    async def test_hidden_beats_excluded_by_default(self, storage, producer):
        beat = await make_beat(storage, producer.id)
        await storage.set_beat_visibility(beat.id, False)

        assert await storage.list_beats() == []
        hidden = await storage.list_beats(producer_id=producer.id, visible_only=False)
        assert [b.id for b in hidden] == [beat.id]

    async def test_views(self, storage, producer, buyer):
        beat = await make_beat(storage, producer.id)
        await storage.record_view("v1", beat.id, buyer.id, datetime.now(timezone.utc))
        await storage.record_view("v2", beat.id, buyer.id, datetime.now(timezone.utc))

        assert await storage.count_views(beat.id) == 2


class TestStorageCart:
    """Tests for cart storage."""

    def _item(self, user_id, beat_id):
        return CartItem(
            id=str(uuid.uuid4()),
            user_id=user_id,
            beat_id=beat_id,
            license_type=LicenseTier.WAV_LEASE,
            price=Decimal("29.99"),
            currency="USD",
            created_at=datetime.now(timezone.utc),
        )

    async def test_add_and_list(self, storage, buyer, beat):
        item = self._item(buyer.id, beat.id)
        await storage.add_cart_item(item)

        items = await storage.list_cart(buyer.id)
        assert len(items) == 1
        assert items[0].license_type is LicenseTier.WAV_LEASE
        assert items[0].price == Decimal("29.99")

    async def test_same_beat_twice_conflicts(self, storage, buyer, beat):
        """Test that a beat can be in a cart only once."""
        await storage.add_cart_item(self._item(buyer.id, beat.id))
        with pytest.raises(Conflict):
            await storage.add_cart_item(self._item(buyer.id, beat.id))

    async def test_remove_only_own_item(self, storage, buyer, other_buyer, beat):
        item = self._item(buyer.id, beat.id)
        await storage.add_cart_item(item)

        assert not await storage.remove_cart_item(item.id, other_buyer.id)
        assert await storage.remove_cart_item(item.id, buyer.id)
        assert await storage.list_cart(buyer.id) == []


class TestStoragePurchases:
    """Tests for sales recording."""

    async def test_record_sales_clears_cart(self, storage, producer, buyer, beat):
        """Test that recording sales empties the buyer's cart."""
        await storage.add_cart_item(
            CartItem(
                id="item1",
                user_id=buyer.id,
                beat_id=beat.id,
                license_type=LicenseTier.MP3_LEASE,
                price=Decimal("19.99"),
                currency="USD",
                created_at=datetime.now(timezone.utc),
            )
        )
        await storage.record_sales([_purchase(buyer.id, beat.id)], {beat.id: producer.id})

        assert await storage.list_cart(buyer.id) == []
        assert await storage.has_purchased(buyer.id, beat.id)
        assert await storage.sale_tiers(beat.id) == [LicenseTier.MP3_LEASE]

    async def test_second_exclusive_sale_rejected(self, storage, producer, buyer, other_buyer, beat):
        """Test that an exclusive sale blocks every later sale of the beat."""
        await storage.record_sales(
            [_purchase(buyer.id, beat.id, LicenseTier.EXCLUSIVE, "149.99")],
            {beat.id: producer.id},
        )

        with pytest.raises(ExclusiveSoldOut):
            await storage.record_sales(
                [_purchase(other_buyer.id, beat.id, LicenseTier.MP3_LEASE)],
                {beat.id: producer.id},
            )
        assert not await storage.has_purchased(other_buyer.id, beat.id)

    async def test_failed_batch_rolls_back(self, storage, producer, buyer, beat):
        """Test that one sold-out beat aborts the whole batch."""
        sold = await make_beat(storage, producer.id, "Sold")
        await storage.record_sales(
            [_purchase("someone", sold.id, LicenseTier.EXCLUSIVE, "149.99")],
            {sold.id: producer.id},
        )

        with pytest.raises(ExclusiveSoldOut):
            await storage.record_sales(
                [_purchase(buyer.id, beat.id), _purchase(buyer.id, sold.id)],
                {beat.id: producer.id, sold.id: producer.id},
            )
        assert not await storage.has_purchased(buyer.id, beat.id)

    async def test_reader_never_sees_aborted_batch(self, storage, producer, buyer, beat):
        """Test that a read racing an aborting batch sees no uncommitted sale."""
        sold = await make_beat(storage, producer.id, "Sold")
        await storage.record_sales(
            [_purchase("someone", sold.id, LicenseTier.EXCLUSIVE, "149.99")],
            {sold.id: producer.id},
        )

        batch = storage.record_sales(
            [
                _purchase(buyer.id, beat.id, LicenseTier.EXCLUSIVE, "149.99"),
                _purchase(buyer.id, sold.id),
            ],
            {beat.id: producer.id, sold.id: producer.id},
        )
        results = await asyncio.gather(
            batch, storage.sale_tiers(beat.id), return_exceptions=True
        )

        assert isinstance(results[0], ExclusiveSoldOut)
        assert results[1] == []
        assert await storage.sale_tiers(beat.id) == []

    async def test_sales_credit_cached_balance(
        self, storage, producer, buyer, other_buyer, beat
    ):
        await storage.record_sales([_purchase(buyer.id, beat.id)], {beat.id: producer.id})
        await storage.record_sales(
            [_purchase(other_buyer.id, beat.id, LicenseTier.WAV_LEASE, "29.99")],
            {beat.id: producer.id},
        )

        assert (await storage.get_profile(producer.id)).balance == Decimal("49.98")
        assert (await storage.get_profile(buyer.id)).balance == Decimal("0.00")

    async def test_exclusive_sold_beat_ids(self, storage, producer, buyer, beat):
        other = await make_beat(storage, producer.id, "Other")
        await storage.record_sales(
            [_purchase(buyer.id, beat.id, LicenseTier.EXCLUSIVE, "149.99")],
            {beat.id: producer.id},
        )

        assert await storage.exclusive_sold_beat_ids([beat.id, other.id]) == {beat.id}
        assert await storage.exclusive_sold_beat_ids([]) == set()

    async def test_sales_survive_beat_deletion(self, storage, producer, buyer, beat):
        """Test that seller earnings stay after the beat is deleted."""
        await storage.record_sales([_purchase(buyer.id, beat.id)], {beat.id: producer.id})
        await storage.delete_beat_relations(beat.id)
        await storage.delete_beat(beat.id)

        sales = await storage.list_sales_by_seller(producer.id)
        assert len(sales) == 1
        assert sales[0].beat_title is None


class TestStorageLedger:
    """Tests for withdrawals."""

    def _withdrawal(self, user_id, amount):
        return Transaction(
            id=str(uuid.uuid4()),
            user_id=user_id,
            amount=Decimal(amount),
            type=TransactionType.WITHDRAWAL,
            status="completed",
            created_at=datetime.now(timezone.utc),
        )

    async def test_record_withdrawal_passes_amounts_to_check(self, storage, producer, buyer, beat):
        await storage.record_sales([_purchase(buyer.id, beat.id)], {beat.id: producer.id})
        seen = {}

        def check(sales, withdrawals):
            seen["sales"] = sales
            seen["withdrawals"] = withdrawals
            return Decimal("4.99")

        balance = await storage.record_withdrawal(self._withdrawal(producer.id, "15.00"), check)

        assert balance == Decimal("4.99")
        assert seen == {"sales": [Decimal("19.99")], "withdrawals": []}
        assert (await storage.get_profile(producer.id)).balance == Decimal("4.99")
        transactions = await storage.list_transactions(producer.id)
        assert [t.amount for t in transactions] == [Decimal("15.00")]

    async def test_failed_check_writes_nothing(self, storage, producer):
        """Test that a raising check rolls the withdrawal back."""

        def check(sales, withdrawals):
            raise ValueError("rejected")

        with pytest.raises(ValueError):
            await storage.record_withdrawal(self._withdrawal(producer.id, "15.00"), check)
        assert await storage.list_transactions(producer.id) == []


class TestStorageSocial:
    """Tests for follows."""

    async def test_follow_self_rejected(self, storage, buyer):
        with pytest.raises(Conflict):
            await storage.add_follow(buyer.id, buyer.id, datetime.now(timezone.utc))

    async def test_follow_counts(self, storage, producer, buyer):
        await storage.add_follow(buyer.id, producer.id, datetime.now(timezone.utc))

        assert await storage.is_following(buyer.id, producer.id)
        assert await storage.count_followers(producer.id) == 1
        assert await storage.count_following(buyer.id) == 1
        assert [p.id for p in await storage.list_followers(producer.id)] == [buyer.id]


class TestStorageConversations:
    """Tests for conversation storage."""

    async def test_find_in_either_order(self, storage):
        """Test that a conversation is found whichever participant comes first."""
        conversation = _conversation("u1", "u2")
        await storage.create_conversation(conversation)

        assert (await storage.find_conversation("u1", "u2")).id == conversation.id
        assert (await storage.find_conversation("u2", "u1")).id == conversation.id

    async def test_duplicate_pair_conflicts(self, storage):
        """Test that the unordered pair can hold one conversation only."""
        await storage.create_conversation(_conversation("u1", "u2"))
        with pytest.raises(Conflict):
            await storage.create_conversation(_conversation("u2", "u1"))
        assert await storage.count_conversations() == 1

    async def test_self_conversation_rejected(self, storage):
        with pytest.raises(Conflict):
            await storage.create_conversation(_conversation("u1", "u1"))

    async def test_messages_ordered_and_bump_conversation(self, storage):
        """Test that messages come back oldest first and update the conversation."""
        conversation = _conversation("u1", "u2")
        await storage.create_conversation(conversation)
        now = datetime.now(timezone.utc)
        for i, text in enumerate(["first", "second", "third"]):
            await storage.save_message(
                ChatMessage(
                    id=f"m{i}",
                    conversation_id=conversation.id,
                    sender_id="u1" if i % 2 == 0 else "u2",
                    text=text,
                    created_at=now + timedelta(seconds=i),
                )
            )

        messages = await storage.get_messages(conversation.id)
        assert [m.text for m in messages] == ["first", "second", "third"]

        after = await storage.get_messages(conversation.id, after=now)
        assert [m.text for m in after] == ["second", "third"]

        updated = await storage.get_conversation(conversation.id)
        assert updated.last_message == "third"
        assert (await storage.get_last_message(conversation.id)).id == "m2"


class TestStorageClear:
    """Tests for clear()."""

    async def test_clear_removes_everything(self, storage, producer, beat):
        await storage.create_conversation(_conversation("u1", "u2"))
        await storage.clear()

        assert await storage.get_profile(producer.id) is None
        assert await storage.get_beat(beat.id) is None
        assert await storage.count_conversations() == 0
