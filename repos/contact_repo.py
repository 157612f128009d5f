# repos/contact_repo.py

from sqlalchemy import func, or_
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Contact, ServiceOrder
from utils.formatting import only_digits


class ContactRepo:

    def __init__(self, session: AsyncSession):
        self.session = session

    async def upsert(self,
                     usuario_id: int,
                     nome: str,
                     telefone: str,
                     email: str | None = None,
                     observacoes: str | None = None,
                     favorito: bool | None = None):
        """
        Save a contact keyed on (user, digits-only phone). Saving the same
        phone twice updates the existing row instead of duplicating it.
        Returns (contact, created).
        """
        telefone = only_digits(telefone)
        stmt = select(Contact).where(Contact.usuario_id == usuario_id,
                                     Contact.telefone == telefone)
        result = await self.session.execute(stmt)
        contact = result.scalars().first()

        created = contact is None
        if created:
            contact = Contact(usuario_id=usuario_id,
                              telefone=telefone,
                              nome=nome,
                              favorito=bool(favorito))
            self.session.add(contact)
        else:
            contact.nome = nome or contact.nome
            if favorito is not None:
                contact.favorito = favorito

        if email is not None:
            contact.email = email
        if observacoes is not None:
            contact.observacoes = observacoes

        await self.session.commit()
        await self.session.refresh(contact)
        return contact, created

    async def search_by_name(self, usuario_id: int, nome: str, limit: int = 10):
        """Favourites first, then alphabetical."""
        stmt = (select(Contact).where(
            Contact.usuario_id == usuario_id,
            Contact.nome.ilike(f"%{nome}%")).order_by(
                Contact.favorito.desc(), Contact.nome).limit(limit))
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def list_contacts(self,
                            usuario_id: int,
                            favoritos: bool = False,
                            busca: str | None = None,
                            limit: int = 50):
        stmt = select(Contact).where(Contact.usuario_id == usuario_id)
        if favoritos:
            stmt = stmt.where(Contact.favorito.is_(True))
        if busca:
            pattern = f"%{busca}%"
            stmt = stmt.where(
                or_(Contact.nome.ilike(pattern),
                    Contact.telefone.ilike(pattern)))
        stmt = stmt.order_by(Contact.nome).limit(limit)
        result = await self.session.execute(stmt)
        return result.scalars().all()

    async def count_orders(self, usuario_id: int, telefone: str) -> int:
        stmt = select(func.count(ServiceOrder.id)).where(
            ServiceOrder.usuario_id == usuario_id,
            ServiceOrder.cliente_telefone == telefone)
        result = await self.session.execute(stmt)
        return result.scalar() or 0
