#repos/message_repo.py

from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Message


class MessageRepo:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create_message(self,
                             conversa_id: int,
                             conteudo_texto: str,
                             from_me: bool,
                             message_id: str | None = None,
                             tipo_mensagem: str = "text",
                             metadados: dict | None = None):
        """
        Store one turn of a WhatsApp conversation. `from_me` marks the
        assistant's own replies.
        """
        msg = Message(
            conversa_id=conversa_id,
            message_id=message_id,
            tipo_mensagem=tipo_mensagem,
            conteudo_texto=conteudo_texto,
            from_me=from_me,
            metadados=metadados or {},
        )
        self.session.add(msg)
        await self.session.commit()
        return msg

    async def get_recent_messages(self, conversa_id: int, limit: int = 10):
        """
        Fetch the last `limit` messages of a conversation, oldest first.
        (Used to rebuild the in-memory history after a restart.)
        """
        stmt = (select(Message).where(
            Message.conversa_id == conversa_id).order_by(
                Message.criado_em.desc(), Message.id.desc()).limit(limit))
        result = await self.session.execute(stmt)
        rows = result.scalars().all()
        return list(reversed(rows))
