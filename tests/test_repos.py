"""Tests for repository get-or-create under concurrent first messages."""

import pytest
from sqlalchemy.future import select

from repos.conversation_repo import ConversationRepo
from repos.models import Conversation, User
from repos.user_repo import UserRepo

PHONE = "5511988887777"
CHAT = "5511988887777@s.whatsapp.net"


def miss_once(real_lookup):
    """A lookup that misses the first time, as if another request inserted right after it."""
    calls = []

    async def lookup(*args):
        calls.append(args)
        return None if len(calls) == 1 else await real_lookup(*args)

    return lookup


class TestUserRepo:
    @pytest.mark.asyncio
    async def test_concurrent_insert_returns_existing_user(self, session, monkeypatch):
        repo = UserRepo(session)
        existing_id = (await repo.get_or_create(PHONE, "Ana")).id

        monkeypatch.setattr(repo, "get_by_phone", miss_once(repo.get_by_phone))
        user = await repo.get_or_create(PHONE, "Ana Paula")

        assert user.id == existing_id
        assert user.nome == "Ana Paula"
        users = (await session.execute(select(User))).scalars().all()
        assert len(users) == 1


class TestConversationRepo:
    @pytest.mark.asyncio
    async def test_concurrent_insert_returns_existing_conversation(self, session, user, monkeypatch):
        user_id = user.id
        repo = ConversationRepo(session)
        existing_id = (await repo.get_or_create(user_id, CHAT)).id

        monkeypatch.setattr(repo, "get_conversation", miss_once(repo.get_conversation))
        conversation = await repo.get_or_create(user_id, CHAT)

        assert conversation.id == existing_id

    @pytest.mark.asyncio
    async def test_touch_by_id(self, session, user):
        repo = ConversationRepo(session)
        conversation_id = (await repo.get_or_create(user.id, CHAT)).id

        await repo.touch(conversation_id)
        await repo.touch(conversation_id)

        row = (await session.execute(
            select(Conversation.total_mensagens, Conversation.ultima_mensagem_em)
            .where(Conversation.id == conversation_id))).one()
        assert row.total_mensagens == 2
        assert row.ultima_mensagem_em is not None
