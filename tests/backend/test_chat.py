"""
Tests for the chat registry and broadcast engine.

These tests cover:
- Presence events going to everyone but the subject
- new-message to the others and an identical message-sent to the sender
- Silent drops of incomplete messages
- Idempotent leave
- Avatar change announcements
- Best-effort delivery when one transport is broken
"""

import pytest
import pytest_asyncio


class FakeConnection:
    """Transport double recording every frame it was asked to send."""

    def __init__(self, broken: bool = False):
        self.frames: list[dict] = []
        self.broken = broken
        self.attempts = 0

    async def send_json(self, data):
        self.attempts += 1
        if self.broken:
            raise RuntimeError("connection reset")
        self.frames.append(data)

    def events(self, name: str = None) -> list:
        return [f for f in self.frames if name is None or f["event"] == name]


@pytest.fixture
def registry():
    from forum.services.chat_registry import ChatSessionRegistry
    return ChatSessionRegistry("main-chat")


@pytest_asyncio.fixture
async def engine(registry, credential_store, mock_forum_db, clock):
    from forum.config import get_settings
    from forum.services.chat_service import ChatBroadcastEngine, ChatMessageStore

    return ChatBroadcastEngine(
        registry,
        credential_store,
        ChatMessageStore(mock_forum_db, clock=clock),
        settings=get_settings(),
        clock=clock,
    )


@pytest_asyncio.fixture
async def room(engine, registry, make_user):
    """Alice and Bob connected and joined."""
    from forum.schemas.chat import JoinChatPayload

    alice = await make_user("alice", display_name="Alice")
    bob = await make_user("bob", display_name="Bob", profile_avatar="🦊")
    connections = {"a": FakeConnection(), "b": FakeConnection()}
    for cid, user in (("a", alice), ("b", bob)):
        registry.connect(cid, connections[cid])
        await engine.join(cid, JoinChatPayload(
            id=user.id,
            username=user.username,
            display_name=user.display_name,
            profile_color=user.profile_color,
            profile_avatar=user.profile_avatar,
        ))
    for connection in connections.values():
        connection.frames.clear()
    return {"alice": alice, "bob": bob, **connections}


class TestRegistry:
    """Tests for ChatSessionRegistry bookkeeping."""

    def test_connection_is_not_a_member_until_joined(self, registry):
        registry.connect("a", FakeConnection())

        assert registry.members() == []
        assert "a" in registry.active_connections

    def test_disconnect_returns_participant_once(self, registry):
        from forum.models.chat import ChatParticipant

        registry.connect("a", FakeConnection())
        registry.join(ChatParticipant(connection_id="a", username="alice"))

        assert registry.disconnect("a").username == "alice"
        assert registry.disconnect("a") is None
        assert registry.active_connections == {}

    def test_members_excludes_given_connection(self, registry):
        from forum.models.chat import ChatParticipant

        for cid in ("a", "b", "c"):
            registry.connect(cid, FakeConnection())
            registry.join(ChatParticipant(connection_id=cid))

        assert sorted(registry.members(exclude="b")) == ["a", "c"]

    @pytest.mark.asyncio
    async def test_send_to_unknown_connection_returns_false(self, registry):
        assert await registry.send("ghost", "error", {}) is False


class TestPresence:
    """Tests for join and leave events."""

    @pytest.mark.asyncio
    async def test_join_notifies_others_not_self(self, engine, registry, room, make_user):
        from forum.schemas.chat import JoinChatPayload

        carol = FakeConnection()
        registry.connect("c", carol)

        await engine.join("c", JoinChatPayload(id=99, username="carol", display_name="Carol"))

        assert room["a"].events("user-joined")[0]["data"]["username"] == "Carol"
        assert room["b"].events("user-joined")[0]["data"]["username"] == "Carol"
        assert carol.frames == []

    @pytest.mark.asyncio
    async def test_presence_falls_back_to_username(self, engine, registry, room):
        from forum.schemas.chat import JoinChatPayload

        registry.connect("c", FakeConnection())

        await engine.join("c", JoinChatPayload(id=99, username="carol"))

        assert room["a"].events("user-joined")[0]["data"]["username"] == "carol"

    @pytest.mark.asyncio
    async def test_leave_notifies_remaining_members(self, engine, room):
        assert await engine.leave("b") is True

        left = room["a"].events("user-left")
        assert len(left) == 1
        assert left[0]["data"]["username"] == "Bob"
        assert room["b"].frames == []

    @pytest.mark.asyncio
    async def test_leave_is_idempotent(self, engine, room):
        await engine.leave("b")

        assert await engine.leave("b") is False
        assert len(room["a"].events("user-left")) == 1

    @pytest.mark.asyncio
    async def test_leave_without_join_emits_nothing(self, engine, registry, room):
        registry.connect("c", FakeConnection())

        assert await engine.leave("c") is False
        assert room["a"].frames == []
        assert "c" not in registry.active_connections


class TestMessages:
    """Tests for send_message fan-out."""

    @pytest.mark.asyncio
    async def test_others_get_new_message_sender_gets_message_sent(self, engine, room):
        alice = room["alice"]

        await engine.send_message("a", "hi", alice.id)

        assert room["a"].events("new-message") == []
        assert len(room["a"].events("message-sent")) == 1
        assert len(room["b"].events("new-message")) == 1
        assert room["b"].events("message-sent") == []

    @pytest.mark.asyncio
    async def test_message_sent_payload_matches_broadcast(self, engine, room, clock):
        alice = room["alice"]

        payload = await engine.send_message("a", "hi", alice.id)

        sent = room["a"].events("message-sent")[0]["data"]
        broadcast = room["b"].events("new-message")[0]["data"]
        assert sent == broadcast == payload.model_dump()
        assert sent["message"] == "hi"
        assert sent["user_id"] == alice.id
        assert sent["display_name"] == "Alice"
        assert sent["username"] == "alice"
        assert sent["profile_avatar"] == "👤"
        assert sent["created_at"] == clock().isoformat()

    @pytest.mark.asyncio
    async def test_payload_uses_chosen_avatar(self, engine, room):
        await engine.send_message("b", "hey", room["bob"].id)

        assert room["a"].events("new-message")[0]["data"]["profile_avatar"] == "🦊"

    @pytest.mark.asyncio
    async def test_message_is_persisted(self, engine, room, mock_forum_db):
        await engine.send_message("a", "hi", room["alice"].id)

        stored = await mock_forum_db.chat_messages.find_one({})
        assert stored["message"] == "hi"
        assert stored["user_id"] == room["alice"].id

    @pytest.mark.asyncio
    @pytest.mark.parametrize("message,use_user_id", [
        ("", True),
        (None, True),
        ("hi", False),
    ])
    async def test_incomplete_message_dropped_silently(
        self, engine, room, mock_forum_db, message, use_user_id
    ):
        user_id = room["alice"].id if use_user_id else None

        assert await engine.send_message("a", message, user_id) is None

        assert room["a"].frames == []
        assert room["b"].frames == []
        assert await mock_forum_db.chat_messages.count_documents({}) == 0

    @pytest.mark.asyncio
    async def test_unknown_user_dropped_silently(self, engine, room):
        assert await engine.send_message("a", "hi", 4242) is None
        assert room["b"].frames == []

    @pytest.mark.asyncio
    async def test_store_error_is_contained(self, engine, room):
        async def broken_insert(user_id, message):
            raise RuntimeError("mongo down")

        engine.messages.insert = broken_insert

        assert await engine.send_message("a", "hi", room["alice"].id) is None
        assert room["b"].frames == []

    @pytest.mark.asyncio
    async def test_broken_transport_does_not_stop_broadcast(self, engine, registry, room):
        from forum.schemas.chat import JoinChatPayload

        registry.connect("x", FakeConnection(broken=True))
        await engine.join("x", JoinChatPayload(id=99, username="ghost"))

        await engine.send_message("a", "hi", room["alice"].id)

        assert len(room["b"].events("new-message")) == 1
        assert len(room["a"].events("message-sent")) == 1

    @pytest.mark.asyncio
    async def test_broken_transport_is_dropped_after_first_failure(self, engine, registry, room):
        from forum.schemas.chat import JoinChatPayload

        broken = FakeConnection(broken=True)
        registry.connect("x", broken)
        await engine.join("x", JoinChatPayload(id=99, username="ghost"))

        await engine.send_message("a", "one", room["alice"].id)
        await engine.send_message("a", "two", room["alice"].id)

        assert broken.attempts == 1
        assert "x" not in registry.active_connections
        assert registry.get("x") is not None

        assert await engine.leave("x") is True
        assert len(room["a"].events("user-left")) == 1


class TestAvatarAndHistory:
    """Tests for avatar announcements and history reads."""

    @pytest.mark.asyncio
    async def test_avatar_change_reaches_whole_room(self, engine, registry, room):
        bob = room["bob"]

        delivered = await engine.announce_avatar_change(bob.id, "bob", "Bob", "🚀")

        assert delivered == 2
        for cid in ("a", "b"):
            event = room[cid].events("avatar-updated")[0]["data"]
            assert event == {
                "userId": bob.id,
                "username": "bob",
                "displayName": "Bob",
                "newAvatar": "🚀",
            }
        assert registry.get("b").profile_avatar == "🚀"

    @pytest.mark.asyncio
    async def test_cleared_avatar_announced_as_default(self, engine, room):
        await engine.announce_avatar_change(room["bob"].id, "bob", "Bob", None)

        assert room["a"].events("avatar-updated")[0]["data"]["newAvatar"] == "👤"

    @pytest.mark.asyncio
    async def test_history_is_oldest_first(self, engine, room, clock):
        for text in ("one", "two", "three"):
            await engine.send_message("a", text, room["alice"].id)
            clock.advance(seconds=1)

        history = await engine.history(limit=2)

        assert [m.message for m in history] == ["two", "three"]

    @pytest.mark.asyncio
    async def test_history_matches_broadcast_shape(self, engine, room):
        payload = await engine.send_message("a", "hi", room["alice"].id)

        history = await engine.history()

        assert history == [payload]
