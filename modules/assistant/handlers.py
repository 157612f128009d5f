# modules/assistant/handlers.py

import logging
from datetime import datetime, timedelta
from decimal import Decimal, InvalidOperation

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from repos.service_order_repo import ServiceOrderRepo
from repos.contact_repo import ContactRepo
from modules.documents import PDFGenerator
from modules.messaging.phone import to_jid, phone_from_jid
from modules.notifications import NotificationService
from utils.clock import utcnow, as_utc_naive
from utils.formatting import LOCAL_TZ, format_date_long, only_digits

from .config import DEFAULT_LIST_LIMIT, PRIORITY_WEIGHTS
from .date_parser import parse_datetime
from .results import ToolResult, ToolContext
from .tools import ORDER_STATUSES, ToolRegistry

logger = logging.getLogger(__name__)


class InvalidAmountError(ValueError):
    """A monetary or quantity argument the assistant must not store."""


def _money(value, label="valor"):
    if value is None or value == "":
        return None
    try:
        amount = Decimal(str(value).strip())
    except InvalidOperation:
        amount = None
    if amount is None or not amount.is_finite():
        raise InvalidAmountError(f"O {label} informado não é um número válido: {value}")
    if amount < 0:
        raise InvalidAmountError(f"O {label} não pode ser negativo: {value}")
    return amount


def _parts(raw) -> list[dict]:
    """Parts with a description, quantity >= 1 and a non-negative unit price."""
    parts = []
    for peca in raw or []:
        if not isinstance(peca, dict) or not peca.get("descricao"):
            continue
        quantidade = peca.get("quantidade")
        quantidade = 1 if quantidade in (None, "") else _int(quantidade)
        if quantidade is None or quantidade < 1:
            raise InvalidAmountError(f"Quantidade inválida para a peça {peca['descricao']}.")
        valor = _money(peca.get("valor_unitario"), "valor unitário") or Decimal("0")
        parts.append({**peca, "quantidade": quantidade, "valor_unitario": valor})
    return parts


def _float(value) -> float:
    return float(value or 0)


def _int(value, default=None):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def _optional_date(value):
    """ISO strings are taken as-is; anything else goes through the natural-language parser."""
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=LOCAL_TZ)
    except ValueError:
        parsed = parse_datetime(str(value))
    return as_utc_naive(parsed)


def _since_days(days):
    days = _int(days)
    return utcnow() - timedelta(days=days) if days else None


def _order_value(order) -> float:
    return _float(order.valor_final or order.valor_estimado)


def _order_summary(order) -> dict:
    return {
        "numero": order.numero_os,
        "titulo": order.titulo,
        "status": order.status,
        "prioridade": order.prioridade,
        "cliente": order.cliente_nome,
        "valor": _order_value(order),
        "data_criacao": order.data_abertura.isoformat() if order.data_abertura else None,
    }


def _order_details(order) -> dict:
    def iso(value):
        return value.isoformat() if value else None

    return {
        "numero": order.numero_os,
        "status": order.status,
        "prioridade": order.prioridade,
        "categoria": order.categoria,
        "titulo": order.titulo,
        "descricao": order.descricao,
        "cliente": {
            "nome": order.cliente_nome,
            "telefone": order.cliente_telefone,
            "email": order.cliente_email,
            "endereco": order.cliente_endereco,
        },
        "valores": {
            "estimado": _float(order.valor_estimado),
            "final": _float(order.valor_final),
            "pecas": _float(order.valor_pecas),
        },
        "datas": {
            "criacao": iso(order.data_abertura),
            "previsao": iso(order.data_previsao),
            "conclusao": iso(order.data_conclusao),
        },
        "tecnico": order.tecnico_responsavel,
        "observacoes": order.observacoes,
        "pecas": [part.to_dict() for part in order.pecas],
    }


def _period_label(days) -> str:
    return f"Últimos {days} dias" if days else "Todas as OS"


class ToolHandlers:
    """
    One coroutine per catalog tool. Each takes the LLM arguments plus the
    caller context and returns a ToolResult; expected problems (unknown
    order, missing arguments) come back as failures, anything else raises.
    """

    def __init__(self, session: AsyncSession, gateway, notifications: NotificationService | None = None):
        self.session = session
        self.gateway = gateway
        self.orders = ServiceOrderRepo(session)
        self.contacts = ContactRepo(session)
        self.notifications = notifications or NotificationService(session, gateway)

    async def _find_order(self, ctx: ToolContext, numero_os):
        if not numero_os:
            return None
        return await self.orders.get_by_numero(ctx.user_id, str(numero_os))

    @staticmethod
    def _order_not_found(numero_os) -> ToolResult:
        return ToolResult.failure("not_found", f"Ordem de serviço {numero_os} não encontrada.")

    async def _fire(self, ctx: ToolContext, event: str, order, extra: dict | None = None):
        """Automation triggers never break the operation that raised the event."""
        data = {**order.to_dict(), "usuario_telefone": ctx.user_phone, **(extra or {})}
        try:
            await self.notifications.fire_triggers(ctx.user_id, event, data, order=order)
        except SQLAlchemyError as e:
            await self.session.rollback()
            await self.session.refresh(order)
            logger.error(f"❌ Could not fire '{event}' triggers: {e}", exc_info=True)

    # --- Service orders ---

    async def criar_ordem_servico(self, args: dict, ctx: ToolContext) -> ToolResult:
        if not args.get("cliente_nome") or not args.get("titulo"):
            return ToolResult.failure("validation", "Preciso do nome do cliente e do título do serviço.")

        try:
            valor_estimado = _money(args.get("valor_estimado"), "valor estimado")
        except InvalidAmountError as e:
            return ToolResult.failure("validation", str(e))

        telefone = only_digits(args.get("cliente_telefone")) or None
        order = await self.orders.create(
            ctx.user_id,
            cliente_nome=args["cliente_nome"].strip(),
            cliente_telefone=telefone,
            cliente_email=args.get("cliente_email"),
            cliente_endereco=args.get("cliente_endereco"),
            titulo=args["titulo"].strip(),
            descricao=args.get("descricao"),
            categoria=args.get("categoria") or "outro",
            prioridade=args.get("prioridade") or "normal",
            valor_estimado=valor_estimado,
            data_previsao=_optional_date(args.get("data_previsao")),
        )
        numero_os, ordem = order.numero_os, order.to_dict()
        logger.info(f"✅ Service order {numero_os} created for user {ctx.user_id}")

        if telefone:
            try:
                await self.contacts.upsert(ctx.user_id, ordem["cliente_nome"], telefone,
                                           email=args.get("cliente_email"),
                                           observacoes=f"Cliente da OS {numero_os}")
            except SQLAlchemyError as e:
                await self.session.rollback()
                logger.warning(f"⚠️ Order created but contact not saved: {e}")

        return ToolResult.ok(numero_os=numero_os,
                             ordem_servico=ordem,
                             mensagem=f"Ordem de serviço {numero_os} criada com sucesso!")

    async def consultar_ordens_servico(self, args: dict, ctx: ToolContext) -> ToolResult:
        if args.get("numero_os"):
            order = await self._find_order(ctx, args["numero_os"])
            ordens = [order.to_dict()] if order else []
            return ToolResult.ok(ordens=ordens, total=len(ordens))

        orders = await self.orders.list_orders(
            ctx.user_id,
            status=args.get("status"),
            since=_since_days(args.get("periodo_dias")),
            limit=_int(args.get("limite"), DEFAULT_LIST_LIMIT),
        )
        return ToolResult.ok(ordens=[o.to_dict() for o in orders], total=len(orders))

    async def atualizar_status_ordem_servico(self, args: dict, ctx: ToolContext) -> ToolResult:
        novo_status = args.get("novo_status")
        if novo_status not in ORDER_STATUSES:
            return ToolResult.failure("validation", f"Status inválido: {novo_status}")

        order = await self._find_order(ctx, args.get("numero_os"))
        if order is None:
            return self._order_not_found(args.get("numero_os"))

        anterior = await self.orders.update_status(order, novo_status, args.get("observacao"))
        await self._fire(ctx, "status_mudou", order, {"status_anterior": anterior})
        if novo_status == "concluida":
            await self._fire(ctx, "os_concluida", order)

        return ToolResult.ok(numero_os=order.numero_os,
                             status_anterior=anterior,
                             status_novo=novo_status,
                             mensagem=f"Status alterado de {anterior} para {novo_status}")

    async def atualizar_ordem_servico(self, args: dict, ctx: ToolContext) -> ToolResult:
        try:
            valor_estimado = _money(args.get("valor_estimado"), "valor estimado")
            valor_final = _money(args.get("valor_final"), "valor final")
        except InvalidAmountError as e:
            return ToolResult.failure("validation", str(e))

        order = await self._find_order(ctx, args.get("numero_os"))
        if order is None:
            return self._order_not_found(args.get("numero_os"))

        changes = {
            "tecnico_responsavel": args.get("tecnico_responsavel"),
            "valor_estimado": valor_estimado,
            "valor_final": valor_final,
            "data_previsao": _optional_date(args.get("data_previsao")),
            "observacoes": args.get("observacoes"),
        }
        applied = await self.orders.update_fields(order, changes)
        if not applied:
            return ToolResult.failure("validation", "Nenhum campo para atualizar foi informado.")

        await self._fire(ctx, "os_atualizada", order)
        return ToolResult.ok(numero_os=order.numero_os,
                             campos_atualizados=list(applied),
                             mensagem=f"Campos atualizados: {', '.join(applied)}")

    async def adicionar_pecas_ordem_servico(self, args: dict, ctx: ToolContext) -> ToolResult:
        try:
            pecas = _parts(args.get("pecas"))
        except InvalidAmountError as e:
            return ToolResult.failure("validation", str(e))
        if not pecas:
            return ToolResult.failure("validation", "Nenhuma peça informada.")

        order = await self._find_order(ctx, args.get("numero_os"))
        if order is None:
            return self._order_not_found(args.get("numero_os"))

        created = await self.orders.add_parts(order, pecas)
        return ToolResult.ok(numero_os=order.numero_os,
                             pecas_adicionadas=len(created),
                             pecas=[part.to_dict() for part in created],
                             valor_pecas=_float(order.valor_pecas))

    async def gerar_pdf_ordem_servico(self, args: dict, ctx: ToolContext) -> ToolResult:
        order = await self._find_order(ctx, args.get("numero_os"))
        if order is None:
            return ToolResult.failure("not_found", "Ordem de serviço não encontrada")

        path = PDFGenerator.write_pdf(PDFGenerator.from_service_order(order))
        return ToolResult.ok(numero_os=order.numero_os,
                             pdf_path=path,
                             pdf_url=PDFGenerator.public_url(path),
                             mensagem="PDF gerado com sucesso")

    async def obter_estatisticas_usuario(self, args: dict, ctx: ToolContext) -> ToolResult:
        days = _int(args.get("periodo_dias"), 30)
        orders = await self.orders.list_orders(ctx.user_id, since=_since_days(days))
        por_status = {status: 0 for status in ORDER_STATUSES}
        por_prioridade = {priority: 0 for priority in PRIORITY_WEIGHTS}
        for order in orders:
            por_status[order.status] = por_status.get(order.status, 0) + 1
            por_prioridade[order.prioridade] = por_prioridade.get(order.prioridade, 0) + 1

        return ToolResult.ok(estatisticas={
            "total_os": len(orders),
            "por_status": por_status,
            "por_prioridade": por_prioridade,
            "periodo_dias": days,
        })

    async def buscar_ordem_servico_por_criterio(self, args: dict, ctx: ToolContext) -> ToolResult:
        termo = (args.get("termo_busca") or "").strip()
        if not termo:
            return ToolResult.failure("validation", "Informe um termo para a busca.")

        orders = await self.orders.search(ctx.user_id, termo, _int(args.get("limite"), DEFAULT_LIST_LIMIT))
        return ToolResult.ok(ordens=[o.to_dict() for o in orders], total=len(orders), termo_busca=termo)

    async def obter_totalizadores(self, args: dict, ctx: ToolContext) -> ToolResult:
        days = _int(args.get("periodo_dias"))
        orders = await self.orders.list_orders(ctx.user_id, since=_since_days(days))

        def count(status):
            return sum(1 for o in orders if o.status == status)

        return ToolResult.ok(totalizadores={
            "total_geral": len(orders),
            "abertas": count("aberta"),
            "em_andamento": count("em_andamento"),
            "aguardando_pecas": count("aguardando_pecas"),
            "concluidas": count("concluida"),
            "canceladas": count("cancelada"),
            "valor_total_estimado": sum(_float(o.valor_estimado) for o in orders),
            "valor_total_final": sum(_float(o.valor_final) for o in orders),
            "periodo_analisado": _period_label(days),
        })

    async def listar_minhas_os(self, args: dict, ctx: ToolContext) -> ToolResult:
        orders = list(await self.orders.list_orders(ctx.user_id))
        if not args.get("incluir_concluidas"):
            orders = [o for o in orders if o.status != "concluida"]

        sort_key = args.get("ordenar_por") or "data_criacao"
        if sort_key == "prioridade":
            orders.sort(key=lambda o: PRIORITY_WEIGHTS.get(o.prioridade, 0), reverse=True)
        elif sort_key == "status":
            orders.sort(key=lambda o: o.status)
        elif sort_key == "valor":
            orders.sort(key=_order_value, reverse=True)

        return ToolResult.ok(ordens=[_order_summary(o) for o in orders], total=len(orders))

    async def obter_detalhes_completos_os(self, args: dict, ctx: ToolContext) -> ToolResult:
        order = await self._find_order(ctx, args.get("numero_os"))
        if order is None:
            return self._order_not_found(args.get("numero_os"))
        return ToolResult.ok(ordem_servico=_order_details(order))

    async def obter_resumo_financeiro(self, args: dict, ctx: ToolContext) -> ToolResult:
        days = _int(args.get("periodo_dias"), 30)
        orders = await self.orders.list_orders(ctx.user_id, since=_since_days(days))

        def group(status):
            selected = [o for o in orders if o.status == status]
            return {"quantidade": len(selected), "valor_total": sum(_order_value(o) for o in selected)}

        resumo = {
            "periodo": _period_label(days),
            "total_os": len(orders),
            "valores": {
                "total_estimado": sum(_float(o.valor_estimado) for o in orders),
                "total_final": sum(_float(o.valor_final) for o in orders),
                "total_faturado": sum(_order_value(o) for o in orders if o.status == "concluida"),
                "em_aberto": sum(_float(o.valor_estimado) for o in orders
                                 if o.status not in ("concluida", "cancelada")),
            },
            "por_status": {
                "concluidas": group("concluida"),
                "em_andamento": group("em_andamento"),
                "abertas": group("aberta"),
            },
        }
        if args.get("incluir_detalhes"):
            resumo["detalhes_por_os"] = [_order_summary(o) for o in orders]
        return ToolResult.ok(resumo_financeiro=resumo)

    async def consultar_saldo(self, args: dict, ctx: ToolContext) -> ToolResult:
        periodo = args.get("periodo") or "day"
        now_local = datetime.now(LOCAL_TZ)
        if periodo == "day":
            since = as_utc_naive(now_local.replace(hour=0, minute=0, second=0, microsecond=0))
        elif periodo == "month":
            since = as_utc_naive(now_local.replace(day=1, hour=0, minute=0, second=0, microsecond=0))
        else:
            periodo, since = "overall", None

        orders = [o for o in await self.orders.list_orders(ctx.user_id, since=since)
                  if o.status != "cancelada"]
        return ToolResult.ok(saldo={
            "periodo": periodo,
            "total": sum(_order_value(o) for o in orders),
            "quantidade_os": len(orders),
        })

    # --- Notifications & automations ---

    async def agendar_notificacao(self, args: dict, ctx: ToolContext) -> ToolResult:
        if not args.get("mensagem") or not args.get("titulo"):
            return ToolResult.failure("validation", "Preciso do título e da mensagem da notificação.")

        send_at = parse_datetime(args.get("data_hora") or "")
        order_id = None
        if args.get("numero_os"):
            order = await self._find_order(ctx, args["numero_os"])
            if order is None:
                return self._order_not_found(args["numero_os"])
            order_id = order.id

        recorrente = bool(args.get("recorrente"))
        notification = await self.notifications.create_notification(
            usuario_id=ctx.user_id,
            ordem_servico_id=order_id,
            tipo=args.get("tipo") or "custom",
            destinatario_telefone=args.get("destinatario_telefone") or ctx.user_phone,
            destinatario_nome=args.get("destinatario_nome"),
            titulo=args["titulo"],
            mensagem=args["mensagem"],
            data_agendada=send_at,
            enviar_pdf=bool(args.get("enviar_pdf")),
            recorrente=recorrente,
            intervalo_dias=_int(args.get("intervalo_dias")) if recorrente else None,
        )
        formatted = format_date_long(send_at)
        return ToolResult.ok(notificacao_id=notification.id,
                             titulo=notification.titulo,
                             destinatario=notification.destinatario_nome or notification.destinatario_telefone,
                             data_envio=send_at.isoformat(),
                             data_formatada=formatted,
                             recorrente=recorrente,
                             intervalo_dias=notification.intervalo_dias,
                             mensagem=f"Notificação agendada com sucesso para {formatted}")

    async def criar_automacao(self, args: dict, ctx: ToolContext) -> ToolResult:
        if not args.get("tipo_evento") or not args.get("tipo_acao"):
            return ToolResult.failure("validation", "Informe o evento e a ação da automação.")

        trigger = await self.notifications.create_trigger(
            ctx.user_id, args["tipo_evento"], args["tipo_acao"],
            args.get("condicoes") or {}, args.get("parametros_acao") or {})
        return ToolResult.ok(
            trigger_id=trigger.id,
            mensagem="Automação criada com sucesso! Ela será executada automaticamente "
                     "quando o evento ocorrer.")

    async def listar_notificacoes_agendadas(self, args: dict, ctx: ToolContext) -> ToolResult:
        pending = await self.notifications.list_pending(ctx.user_id)
        items = [{
            "id": n.id,
            "tipo": n.tipo,
            "titulo": n.titulo,
            "mensagem": n.mensagem[:100],
            "destinatario_telefone": n.destinatario_telefone,
            "destinatario_nome": n.destinatario_nome,
            "enviar_em": n.enviar_em.isoformat(),
            "recorrente": n.recorrente,
        } for n in pending]
        return ToolResult.ok(notificacoes=items, total=len(items))

    async def cancelar_notificacao(self, args: dict, ctx: ToolContext) -> ToolResult:
        notification_id = _int(args.get("notificacao_id"))
        if notification_id is None:
            return ToolResult.failure("validation", "ID de notificação inválido.")

        cancelled = await self.notifications.cancel(ctx.user_id, notification_id)
        if cancelled is None:
            return ToolResult.failure("not_found", "Notificação não encontrada ou já enviada.")
        return ToolResult.ok(notificacao_id=notification_id, mensagem="Notificação cancelada com sucesso")

    # --- WhatsApp contacts & sending ---

    async def buscar_contato(self, args: dict, ctx: ToolContext) -> ToolResult:
        nome = (args.get("nome") or "").strip()
        found = await self.gateway.find_contacts(nome)
        contatos = [{"nome": c["nome"], "telefone": phone_from_jid(c["jid"]), "jid": c["jid"]} for c in found]

        if not contatos:
            return ToolResult.failure("not_found", f'Nenhum contato encontrado com "{nome}"', contatos=[])
        if len(contatos) == 1:
            return ToolResult.ok(contatos=contatos,
                                 telefone_selecionado=contatos[0]["telefone"],
                                 mensagem=f"Contato encontrado: {contatos[0]['nome']}")
        return ToolResult.ok(contatos=contatos,
                             mensagem=f'Encontrei {len(contatos)} contatos com "{nome}". Qual deles você quer?')

    async def enviar_pdf_os_para_contato(self, args: dict, ctx: ToolContext) -> ToolResult:
        order = await self._find_order(ctx, args.get("numero_os"))
        if order is None:
            return self._order_not_found(args.get("numero_os"))

        nome = (args.get("nome_contato") or "").strip()
        matches = await self.contacts.search_by_name(ctx.user_id, nome) if nome else []
        if not matches:
            return ToolResult.failure(
                "not_found", f'Contato "{nome}" não encontrado. Você pode salvar o contato primeiro?')
        contact = matches[0]
        jid = to_jid(contact.telefone)

        path = PDFGenerator.write_pdf(PDFGenerator.from_service_order(order))
        try:
            if args.get("mensagem_adicional"):
                await self.gateway.send_text(jid, args["mensagem_adicional"])
            await self.gateway.send_media(jid,
                                          file_path=path,
                                          caption=f"📋 Ordem de Serviço {order.numero_os}",
                                          file_name=f"OS-{order.numero_os}.pdf")
        finally:
            PDFGenerator.delete_file(path)

        return ToolResult.ok(numero_os=order.numero_os,
                             contato={"nome": contact.nome, "telefone": contact.telefone},
                             mensagem=f"PDF da OS {order.numero_os} enviado para {contact.nome}!")

    async def enviar_mensagem_whatsapp(self, args: dict, ctx: ToolContext) -> ToolResult:
        numero = str(args.get("numero") or "").strip()
        if not numero:
            return ToolResult.failure("validation", "Informe o número de destino.")
        jid = numero if "@" in numero else f"{only_digits(numero)}@s.whatsapp.net"

        order = None
        reference = args.get("ordem_servico_id")
        if reference:
            ref = str(reference).strip()
            order = (await self.orders.get_by_numero(ctx.user_id, ref) if ref.upper().startswith("OS-")
                     else await self.orders.get_by_id(ctx.user_id, _int(ref, -1)))
            if order is None:
                return self._order_not_found(ref)

        if not args.get("mensagem") and order is None:
            return ToolResult.failure("validation", "Nenhuma mensagem ou PDF foi especificado para enviar")

        if args.get("mensagem"):
            await self.gateway.send_text(jid, args["mensagem"])
        if order is not None:
            path = PDFGenerator.write_pdf(PDFGenerator.from_service_order(order))
            try:
                await self.gateway.send_media(jid,
                                              file_path=path,
                                              caption=f"📋 Ordem de Serviço {order.numero_os}",
                                              file_name=f"OS-{order.numero_os}.pdf")
            finally:
                PDFGenerator.delete_file(path)

        return ToolResult.ok(destinatario=jid,
                             pdf_enviado=order is not None,
                             mensagem="Mensagem enviada com sucesso!")

    async def salvar_contato(self, args: dict, ctx: ToolContext) -> ToolResult:
        nome = (args.get("nome") or "").strip()
        telefone = only_digits(args.get("telefone"))
        if not nome or not telefone:
            return ToolResult.failure("validation", "Preciso do nome e do telefone do contato.")

        contact, created = await self.contacts.upsert(ctx.user_id, nome, telefone,
                                                      email=args.get("email"),
                                                      observacoes=args.get("observacoes"),
                                                      favorito=args.get("favorito"))
        return ToolResult.ok(contato=contact.to_dict(),
                             novo=created,
                             mensagem="Contato salvo com sucesso!" if created else "Contato atualizado com sucesso!")

    async def listar_contatos(self, args: dict, ctx: ToolContext) -> ToolResult:
        found = await self.contacts.list_contacts(ctx.user_id,
                                                  favoritos=bool(args.get("favoritos")),
                                                  busca=args.get("busca"))
        contatos = []
        for contact in found:
            item = contact.to_dict()
            item["total_os"] = await self.contacts.count_orders(ctx.user_id, contact.telefone)
            contatos.append(item)

        if not contatos:
            return ToolResult.ok(contatos=[], total=0, mensagem="Você ainda não tem contatos salvos.")
        return ToolResult.ok(contatos=contatos, total=len(contatos),
                             mensagem=f"Encontrei {len(contatos)} contato(s) salvo(s)!")

    async def buscar_contato_salvo(self, args: dict, ctx: ToolContext) -> ToolResult:
        nome = (args.get("nome") or "").strip()
        found = await self.contacts.search_by_name(ctx.user_id, nome)
        contatos = [c.to_dict() for c in found]

        if not contatos:
            return ToolResult.failure("not_found", f'Nenhum contato salvo encontrado com "{nome}"', contatos=[])
        if len(contatos) == 1:
            return ToolResult.ok(contatos=contatos,
                                 contato=contatos[0],
                                 telefone_selecionado=contatos[0]["telefone"],
                                 mensagem=f"Contato encontrado: {contatos[0]['nome']}")
        return ToolResult.ok(contatos=contatos,
                             mensagem=f'Encontrei {len(contatos)} contatos com "{nome}". Qual deles você quer?')


def build_registry() -> ToolRegistry:
    """Register one ToolHandlers method per catalog entry and validate the result."""
    registry = ToolRegistry()
    for name in registry.names:
        handler = getattr(ToolHandlers, name, None)
        if handler is not None:
            registry.register(name, handler)
    return registry.validate()
