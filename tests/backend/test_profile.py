"""
Tests for ProfileService.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest

TEST_PASSWORD = "SecurePassword123!"


@pytest.fixture
def chat_engine():
    engine = MagicMock()
    engine.announce_avatar_change = AsyncMock(return_value=0)
    return engine


@pytest.fixture
def profile_service(credential_store, chat_engine):
    from forum.config import get_settings
    from forum.services.profile_service import ProfileService

    return ProfileService(credential_store, chat_engine, settings=get_settings())


class TestDisplayName:

    @pytest.mark.asyncio
    async def test_update_display_name(self, profile_service, make_user):
        user = await make_user("alice")

        updated = await profile_service.update_display_name(user.id, "  Alice B  ")

        assert updated.display_name == "Alice B"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["", "   ", None, "x" * 101])
    async def test_invalid_display_name_rejected(self, profile_service, make_user, name):
        from forum.core.exceptions import ValidationError

        user = await make_user("alice")

        with pytest.raises(ValidationError):
            await profile_service.update_display_name(user.id, name)


class TestEmail:

    @pytest.mark.asyncio
    async def test_update_email_requires_current_password(self, profile_service, make_user):
        from forum.core.exceptions import ValidationError

        user = await make_user("alice")

        with pytest.raises(ValidationError) as exc_info:
            await profile_service.update_email(user.id, "WrongPassword1!", "new@example.com")

        assert exc_info.value.message == "Current password is incorrect"

    @pytest.mark.asyncio
    async def test_update_email(self, profile_service, make_user):
        user = await make_user("alice")

        updated = await profile_service.update_email(user.id, TEST_PASSWORD, "alice.new@example.com")

        assert updated.email == "alice.new@example.com"

    @pytest.mark.asyncio
    async def test_invalid_email_rejected(self, profile_service, make_user):
        from forum.core.exceptions import ValidationError

        user = await make_user("alice")

        with pytest.raises(ValidationError):
            await profile_service.update_email(user.id, TEST_PASSWORD, "not-an-email")

    @pytest.mark.asyncio
    async def test_email_of_other_account_conflicts(self, profile_service, make_user):
        from forum.core.exceptions import ConflictError

        alice = await make_user("alice")
        await make_user("bob")

        with pytest.raises(ConflictError):
            await profile_service.update_email(alice.id, TEST_PASSWORD, "bob@example.com")


class TestAvatar:

    @pytest.mark.asyncio
    async def test_avatar_change_is_announced(self, profile_service, make_user, chat_engine):
        user = await make_user("alice", display_name="Alice")

        updated = await profile_service.update_avatar(user.id, "🚀")

        assert updated.profile_avatar == "🚀"
        chat_engine.announce_avatar_change.assert_awaited_once_with(
            user.id, "alice", "Alice", "🚀"
        )

    @pytest.mark.asyncio
    async def test_empty_avatar_resets_to_default(self, profile_service, make_user, chat_engine):
        user = await make_user("alice", profile_avatar="🚀")

        updated = await profile_service.update_avatar(user.id, "")

        assert updated.profile_avatar is None
        assert chat_engine.announce_avatar_change.await_args.args[3] is None

    @pytest.mark.asyncio
    async def test_avatar_outside_allow_list_rejected(self, profile_service, make_user, chat_engine):
        from forum.core.exceptions import ValidationError

        user = await make_user("alice")

        with pytest.raises(ValidationError):
            await profile_service.update_avatar(user.id, "💩")

        chat_engine.announce_avatar_change.assert_not_awaited()


class TestChangePassword:

    @pytest.mark.asyncio
    async def test_change_password(self, profile_service, make_user, credential_store):
        from forum.core.security import verify_password

        user = await make_user("alice")

        await profile_service.change_password(user.id, TEST_PASSWORD, "N3w!Password", "N3w!Password")

        refreshed = await credential_store.find_user_by_id(user.id)
        assert verify_password("N3w!Password", refreshed.password_hash)

    @pytest.mark.asyncio
    async def test_mismatch_rejected(self, profile_service, make_user):
        from forum.core.exceptions import ValidationError

        user = await make_user("alice")

        with pytest.raises(ValidationError) as exc_info:
            await profile_service.change_password(user.id, TEST_PASSWORD, "N3w!Password", "Other!Pass1")

        assert exc_info.value.message == "New passwords do not match"

    @pytest.mark.asyncio
    async def test_weak_new_password_lists_rules(self, profile_service, make_user):
        from forum.core.exceptions import ValidationError

        user = await make_user("alice")

        with pytest.raises(ValidationError) as exc_info:
            await profile_service.change_password(user.id, TEST_PASSWORD, "weak", "weak")

        assert "one uppercase letter" in exc_info.value.errors
