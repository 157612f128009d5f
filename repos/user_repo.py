# repos/user_repo.py

from sqlalchemy.exc import IntegrityError
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from .models import User


class UserRepo:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_phone(self, telefone: str):
        stmt = select(User).where(User.telefone == telefone)
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_or_create(self, telefone: str, nome: str | None = None):
        """
        Find the account that owns this WhatsApp number, creating it on the
        first message. The display name is refreshed when WhatsApp reports a
        different one.
        """
        user = await self.get_by_phone(telefone)
        if user is None:
            user = User(telefone=telefone, nome=nome)
            self.session.add(user)
            try:
                await self.session.commit()
            except IntegrityError:
                # A concurrent first message already created the account
                await self.session.rollback()
                user = await self.get_by_phone(telefone)
            else:
                await self.session.refresh(user)
                return user

        if nome and user.nome != nome:
            user.nome = nome
            await self.session.commit()
        return user
