# repos/conversation_repo.py

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Conversation
from utils.clock import utcnow


class ConversationRepo:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_conversation(self, usuario_id: int, chat_id: str):
        stmt = select(Conversation).where(
            Conversation.usuario_id == usuario_id,
            Conversation.chat_id == chat_id,
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_or_create(self, usuario_id: int, chat_id: str,
                            remote_jid: str | None = None):
        convo = await self.get_conversation(usuario_id, chat_id)
        if convo:
            return convo

        convo = Conversation(usuario_id=usuario_id,
                             chat_id=chat_id,
                             remote_jid=remote_jid or chat_id)
        self.session.add(convo)
        try:
            await self.session.commit()
        except IntegrityError:
            # Another request created it first
            await self.session.rollback()
            return await self.get_conversation(usuario_id, chat_id)
        await self.session.refresh(convo)
        return convo

    async def touch(self, conversa_id: int):
        """Bump message counters after a turn was stored."""
        stmt = (update(Conversation).where(Conversation.id == conversa_id).values(
            ultima_mensagem_em=utcnow(),
            total_mensagens=func.coalesce(Conversation.total_mensagens, 0) + 1))
        await self.session.execute(stmt)
        await self.session.commit()
