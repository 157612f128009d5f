# modules/assistant/templates.py - WhatsApp message templates

from utils.formatting import SEPARATOR, format_brl, format_date

LIST_LIMIT = 10

STATUS_EMOJI = {
    "aberta": "🟢",
    "em_andamento": "🟡",
    "aguardando_pecas": "🔵",
    "concluida": "✅",
    "cancelada": "⛔",
}
STATUS_NAMES = {
    "aberta": "Aberta",
    "em_andamento": "Em Andamento",
    "aguardando_pecas": "Aguardando Peças",
    "concluida": "Concluída",
    "cancelada": "Cancelada",
}
PRIORITY_EMOJI = {"urgente": "🔴", "alta": "🟠", "normal": "🟡", "baixa": "🟢"}
PRIORITY_NAMES = {"urgente": "Urgente", "alta": "Alta", "normal": "Normal", "baixa": "Baixa"}
CATEGORY_NAMES = {
    "manutencao": "Manutenção",
    "instalacao": "Instalação",
    "reparo": "Reparo",
    "consultoria": "Consultoria",
    "outro": "Outro",
}
BALANCE_LABELS = {"day": "Hoje", "month": "Este mês", "overall": "Saldo total"}


def status_emoji(status) -> str:
    return STATUS_EMOJI.get(status, "⚪")


def status_name(status) -> str:
    return STATUS_NAMES.get(status, str(status))


def priority_emoji(priority) -> str:
    return PRIORITY_EMOJI.get(priority, "⚪")


def priority_name(priority) -> str:
    return PRIORITY_NAMES.get(priority, str(priority))


def _positive(value) -> bool:
    try:
        return float(value or 0) > 0
    except (TypeError, ValueError):
        return False


class MessageTemplates:
    """Consistent WhatsApp formatting for every assistant answer"""

    @staticmethod
    def header(title: str) -> str:
        return f"{title}\n{SEPARATOR}\n\n"

    @staticmethod
    def order_list(orders: list) -> str:
        """Numbered list of orders, at most 10 shown"""
        if not orders:
            return "📋 *Sem Ordens de Serviço*\n\nVocê ainda não tem nenhuma OS cadastrada."

        text = MessageTemplates.header(f"📋 *Suas Ordens de Serviço* ({len(orders)})")
        shown = orders[:LIST_LIMIT]
        for index, order in enumerate(shown):
            value = order.get("valor_final") or order.get("valor_estimado") or order.get("valor")
            client = order.get("cliente") or order.get("cliente_nome")
            text += f"{status_emoji(order.get('status'))} *OS #{order.get('numero') or order.get('numero_os')}*\n"
            text += f"   📝 {order.get('titulo')}\n"
            if client:
                text += f"   👤 {client}\n"
            text += f"   📊 {status_name(order.get('status'))}\n"
            if order.get("prioridade"):
                text += f"   {priority_emoji(order['prioridade'])} {priority_name(order['prioridade'])}\n"
            if _positive(value):
                text += f"   💰 {format_brl(value)}\n"
            if index < len(shown) - 1:
                text += "\n"

        if len(orders) > LIST_LIMIT:
            text += f"\n... e mais {len(orders) - LIST_LIMIT} OS"
        return text

    @staticmethod
    def totals(totals: dict) -> str:
        text = MessageTemplates.header("📊 *Resumo Geral*")
        text += "📈 *Ordens de Serviço:*\n"
        text += f"   • Total: *{totals.get('total_geral', 0)}*\n"
        for key, label in (("abertas", "🟢 Abertas"), ("em_andamento", "🟡 Em andamento"),
                           ("aguardando_pecas", "🔵 Aguardando peças"),
                           ("concluidas", "✅ Concluídas"), ("canceladas", "⛔ Canceladas")):
            if totals.get(key, 0) > 0:
                text += f"   • {label}: {totals[key]}\n"

        estimated = totals.get("valor_total_estimado")
        final = totals.get("valor_total_final")
        if _positive(estimated) or _positive(final):
            text += "\n💰 *Valores:*\n"
            if _positive(estimated):
                text += f"   • Estimado: {format_brl(estimated)}\n"
            if _positive(final):
                text += f"   • Final: {format_brl(final)}\n"

        if totals.get("periodo_analisado"):
            text += f"\n📅 _{totals['periodo_analisado']}_"
        return text

    @staticmethod
    def financial_summary(summary: dict) -> str:
        text = MessageTemplates.header("💰 *Resumo Financeiro*")
        if summary.get("periodo"):
            text += f"📅 *Período:* {summary['periodo']}\n"
            text += f"📋 *Total de OS:* {summary.get('total_os', 0)}\n\n"

        values = summary.get("valores") or {}
        if values:
            text += "💵 *Valores Gerais:*\n"
            if _positive(values.get("total_estimado")):
                text += f"   • Estimado: {format_brl(values['total_estimado'])}\n"
            if _positive(values.get("total_final")):
                text += f"   • Final: {format_brl(values['total_final'])}\n"
            if _positive(values.get("total_faturado")):
                text += f"   • ✅ Faturado: *{format_brl(values['total_faturado'])}*\n"
            if _positive(values.get("em_aberto")):
                text += f"   • ⏳ Em aberto: {format_brl(values['em_aberto'])}\n"

        by_status = summary.get("por_status") or {}
        if by_status:
            text += "\n📊 *Por Status:*\n"
            for key, label in (("concluidas", "✅ Concluídas"), ("em_andamento", "🟡 Em andamento"),
                               ("abertas", "🟢 Abertas")):
                group = by_status.get(key)
                if group:
                    text += f"   {label}: {group['quantidade']} OS\n"
                    text += f"      💰 {format_brl(group['valor_total'])}\n"
        return text

    @staticmethod
    def order_details(order: dict) -> str:
        text = MessageTemplates.header(f"📄 *Detalhes da OS #{order.get('numero')}*")
        text += f"{status_emoji(order.get('status'))} *Status:* {status_name(order.get('status'))}\n"
        text += f"{priority_emoji(order.get('prioridade'))} *Prioridade:* {priority_name(order.get('prioridade'))}\n"
        if order.get("categoria"):
            text += f"🏷️ *Categoria:* {CATEGORY_NAMES.get(order['categoria'], order['categoria'])}\n"

        text += f"\n📝 *Serviço:*\n   {order.get('titulo')}\n"
        if order.get("descricao"):
            text += f"\n💬 *Descrição:*\n   _{order['descricao']}_\n"

        client = order.get("cliente") or {}
        if client:
            text += f"\n👤 *Cliente:*\n   • Nome: {client.get('nome')}\n"
            if client.get("telefone"):
                text += f"   • 📞 {client['telefone']}\n"
            if client.get("email"):
                text += f"   • 📧 {client['email']}\n"
            if client.get("endereco"):
                text += f"   • 📍 {client['endereco']}\n"

        values = order.get("valores") or {}
        if _positive(values.get("estimado")) or _positive(values.get("final")):
            text += "\n💰 *Valores:*\n"
            if _positive(values.get("estimado")):
                text += f"   • Estimado: {format_brl(values['estimado'])}\n"
            if _positive(values.get("final")):
                text += f"   • Final: *{format_brl(values['final'])}*\n"

        dates = order.get("datas") or {}
        if any(dates.values()):
            text += "\n📅 *Datas:*\n"
            for key, label in (("criacao", "Criação"), ("previsao", "Previsão"), ("conclusao", "Conclusão")):
                if dates.get(key):
                    text += f"   • {label}: {format_date(dates[key])}\n"

        if order.get("tecnico"):
            text += f"\n🔧 *Técnico:* {order['tecnico']}\n"

        parts = order.get("pecas") or []
        if parts:
            text += "\n🔩 *Peças Utilizadas:*\n"
            for part in parts:
                text += f"   • {part.get('descricao')} ({part.get('quantidade')}x)\n"
                text += f"     {format_brl(part.get('valor_unitario'))} cada\n"

        if order.get("observacoes"):
            text += f"\n📝 *Observações:*\n   _{order['observacoes']}_\n"
        return text

    @staticmethod
    def order_created(order: dict) -> str:
        text = MessageTemplates.header("✅ *OS Criada com Sucesso!* 🎉")
        text += f"📄 *Número:* #{order.get('numero_os')}\n"
        text += f"📝 *Título:* {order.get('titulo')}\n"
        text += f"👤 *Cliente:* {order.get('cliente_nome')}\n"
        text += f"{status_emoji(order.get('status'))} *Status:* {status_name(order.get('status'))}\n"
        if order.get("prioridade"):
            text += f"{priority_emoji(order['prioridade'])} *Prioridade:* {priority_name(order['prioridade'])}\n"
        if _positive(order.get("valor_estimado")):
            text += f"💰 *Valor estimado:* {format_brl(order['valor_estimado'])}\n"
        text += "\n💡 Quer que eu gere o PDF dessa OS?"
        return text

    @staticmethod
    def statistics(stats: dict) -> str:
        text = MessageTemplates.header("📊 *Estatísticas*")
        text += f"📋 *Total de OS:* {stats.get('total_os', 0)}\n\n"

        if stats.get("por_status"):
            text += "📈 *Por Status:*\n"
            for status, count in stats["por_status"].items():
                if count > 0:
                    text += f"   {status_emoji(status)} {status_name(status)}: {count}\n"
            text += "\n"

        if stats.get("por_prioridade"):
            text += "⚡ *Por Prioridade:*\n"
            for priority, count in stats["por_prioridade"].items():
                if count > 0:
                    text += f"   {priority_emoji(priority)} {priority_name(priority)}: {count}\n"
        return text

    @staticmethod
    def balance(balance: dict) -> str:
        """Balance block: period label, amount, order count"""
        label = BALANCE_LABELS.get(balance.get("periodo"), "Saldo")
        count = balance.get("quantidade_os", 0)
        return f"*{label}*\n{format_brl(balance.get('total'))}\n{count} OS"

    @staticmethod
    def notification_scheduled(data: dict) -> str:
        text = MessageTemplates.header("⏰ *Notificação Agendada*")
        text += f"📝 {data.get('titulo')}\n"
        text += f"📅 {data.get('data_formatada')}\n"
        if data.get("destinatario"):
            text += f"👤 Para: {data['destinatario']}\n"
        if data.get("recorrente"):
            text += f"🔁 Repete a cada {data.get('intervalo_dias')} dia(s)\n"
        return text

    @staticmethod
    def notification_list(notifications: list) -> str:
        if not notifications:
            return "⏰ *Sem notificações agendadas*\n\nNenhuma notificação pendente no momento."

        text = MessageTemplates.header(f"⏰ *Notificações Agendadas* ({len(notifications)})")
        for notification in notifications[:LIST_LIMIT]:
            text += f"🔔 *#{notification.get('id')}* {notification.get('titulo')}\n"
            text += f"   📅 {format_date(notification.get('enviar_em'))}\n"
            text += f"   👤 {notification.get('destinatario_nome') or notification.get('destinatario_telefone')}\n"
            text += f"   💬 {notification.get('mensagem')}\n\n"
        if len(notifications) > LIST_LIMIT:
            text += f"... e mais {len(notifications) - LIST_LIMIT} notificações"
        return text.rstrip("\n")

    @staticmethod
    def contact_list(contacts: list, title: str = "📇 *Seus Contatos*") -> str:
        if not contacts:
            return "📇 *Sem contatos*\n\nVocê ainda não tem contatos salvos."

        text = MessageTemplates.header(f"{title} ({len(contacts)})")
        for contact in contacts[:LIST_LIMIT]:
            star = "⭐ " if contact.get("favorito") else ""
            text += f"{star}*{contact.get('nome')}*\n"
            text += f"   📞 {contact.get('telefone') or contact.get('jid')}\n"
            if contact.get("total_os"):
                text += f"   📋 {contact['total_os']} OS\n"
            text += "\n"
        if len(contacts) > LIST_LIMIT:
            text += f"... e mais {len(contacts) - LIST_LIMIT} contatos"
        return text.rstrip("\n")

    @staticmethod
    def success(message: str, details: str | None = None) -> str:
        text = MessageTemplates.header("✅ *Sucesso!*")
        text += f"{message}\n"
        if details:
            text += f"\n_{details}_"
        return text

    @staticmethod
    def error(error: str, suggestion: str | None = None) -> str:
        text = f"❌ *Ops! Algo deu errado*\n\n{error}\n"
        if suggestion:
            text += f"\n💡 *Sugestão:* {suggestion}"
        return text

    @staticmethod
    def lead_welcome(name: str) -> str:
        first_name = (name or "").split(" ")[0] or "tudo bem"
        return (
            f"Opa, {first_name}! 👋\n\n"
            "Bem-vindo(a) ao *OSZap*! 🎉\n\n"
            "Aqui você cria e acompanha suas *ordens de serviço* direto pelo WhatsApp, "
            "só conversando comigo. 📋\n\n"
            "Experimente agora, é só me mandar algo como:\n"
            "_\"Criar OS para a Maria, troca de tomada, 150 reais\"_\n\n"
            "Qualquer dúvida, é só chamar! 😊"
        )


def _orders_template(data):
    return MessageTemplates.order_list(data["ordens"]) if "ordens" in data else None


def _updated_template(data):
    return MessageTemplates.success("Ordem de serviço atualizada!", data.get("mensagem"))


def _contacts_template(data):
    if "contatos" not in data:
        return None
    return MessageTemplates.contact_list(data["contatos"])


# One entry per tool in the catalog; returning None means "no pre-formatted text"
TOOL_TEMPLATES = {
    "criar_ordem_servico": lambda d: MessageTemplates.order_created(d["ordem_servico"]),
    "consultar_ordens_servico": _orders_template,
    "atualizar_status_ordem_servico": _updated_template,
    "atualizar_ordem_servico": _updated_template,
    "adicionar_pecas_ordem_servico": lambda d: MessageTemplates.success(
        "Peças adicionadas com sucesso!", f"{len(d.get('pecas') or [])} peça(s) registrada(s)"),
    "gerar_pdf_ordem_servico": lambda d: MessageTemplates.success(
        "📄 PDF gerado com sucesso!", "Vou enviar o documento para você agora.")
    if d.get("pdf_url") else None,
    "obter_estatisticas_usuario": lambda d: MessageTemplates.statistics(d["estatisticas"]),
    "buscar_ordem_servico_por_criterio": _orders_template,
    "obter_totalizadores": lambda d: MessageTemplates.totals(d["totalizadores"]),
    "listar_minhas_os": _orders_template,
    "obter_detalhes_completos_os": lambda d: MessageTemplates.order_details(d["ordem_servico"]),
    "obter_resumo_financeiro": lambda d: MessageTemplates.financial_summary(d["resumo_financeiro"]),
    "consultar_saldo": lambda d: MessageTemplates.balance(d["saldo"]),
    "agendar_notificacao": MessageTemplates.notification_scheduled,
    "criar_automacao": lambda d: MessageTemplates.success(d.get("mensagem", "Automação criada!")),
    "listar_notificacoes_agendadas": lambda d: MessageTemplates.notification_list(d.get("notificacoes", [])),
    "cancelar_notificacao": lambda d: MessageTemplates.success("Notificação cancelada!"),
    "buscar_contato": _contacts_template,
    "enviar_pdf_os_para_contato": lambda d: MessageTemplates.success(d.get("mensagem", "PDF enviado!")),
    "enviar_mensagem_whatsapp": lambda d: MessageTemplates.success(d.get("mensagem", "Mensagem enviada!")),
    "salvar_contato": lambda d: MessageTemplates.success(d.get("mensagem", "Contato salvo!")),
    "listar_contatos": _contacts_template,
    "buscar_contato_salvo": _contacts_template,
}
