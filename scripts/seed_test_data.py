#!/usr/bin/env python3
import asyncio
from datetime import timedelta
from decimal import Decimal

from repos.database import AsyncSessionLocal, init_models
from repos.user_repo import UserRepo
from repos.service_order_repo import ServiceOrderRepo
from repos.contact_repo import ContactRepo
from repos.legacy_order_repo import LegacyOrderRepo
from modules.notifications import NotificationService
from utils.clock import utcnow


async def seed():
    await init_models()

    async with AsyncSessionLocal() as session:
        user_repo = UserRepo(session)
        order_repo = ServiceOrderRepo(session)
        contact_repo = ContactRepo(session)

        # 1) Provider account (the WhatsApp number that talks to the assistant)
        user = await user_repo.get_or_create("5511999990000", "Carlos Técnico")
        print(f"➕ User {user.telefone} (ID: {user.id})")

        # 2) Service orders in different states
        o1 = await order_repo.create(user.id,
                                     cliente_nome="João Silva",
                                     cliente_telefone="5511988887777",
                                     titulo="Troca de torneira",
                                     categoria="manutencao",
                                     valor_estimado=Decimal("150.00"))
        o2 = await order_repo.create(user.id,
                                     cliente_nome="Maria Souza",
                                     cliente_telefone="5511977776666",
                                     titulo="Instalação de chuveiro",
                                     categoria="instalacao",
                                     prioridade="alta",
                                     valor_estimado=Decimal("220.00"))
        await order_repo.update_status(o2, "em_andamento")
        await order_repo.add_parts(o2, [{"descricao": "Resistência 220V",
                                         "quantidade": 1,
                                         "valor_unitario": 45}])
        o3 = await order_repo.create(user.id,
                                     cliente_nome="João Silva",
                                     cliente_telefone="5511988887777",
                                     titulo="Reparo no disjuntor",
                                     categoria="reparo",
                                     valor_estimado=Decimal("300.00"))
        await order_repo.update_status(o3, "concluida")
        print(f"➕ Orders {o1.numero_os}, {o2.numero_os}, {o3.numero_os}")

        # 3) Saved contacts
        for nome, telefone, favorito in (("João Silva", "5511988887777", True),
                                         ("Maria Souza", "5511977776666", False)):
            contact, created = await contact_repo.upsert(user.id, nome, telefone, favorito=favorito)
            print(f"{'➕' if created else 'ℹ️'} Contact {contact.nome}")

        # 4) A reminder due tomorrow
        notification = await NotificationService(session).create_notification(
            usuario_id=user.id,
            destinatario_telefone=user.telefone,
            titulo="Visita técnica",
            mensagem="Passar na casa da Maria para testar o chuveiro",
            data_agendada=utcnow() + timedelta(days=1),
            tipo="lembrete",
            ordem_servico_id=o2.id)
        print(f"⏰ Notification {notification.id} scheduled")

        # 5) REST order for the balance endpoint
        legacy = await LegacyOrderRepo(session).create("Pedro Lima", "180.00",
                                                       ["Limpeza de ar-condicionado"])
        print(f"➕ REST order {legacy.id}")

    print("✅ Seed complete")


if __name__ == "__main__":
    asyncio.run(seed())
