"""Tests for WhatsApp message templates and formatting helpers."""

from datetime import datetime

from modules.assistant.templates import TOOL_TEMPLATES, MessageTemplates
from modules.assistant.tools import TOOL_CATALOG
from utils.formatting import SEPARATOR, format_brl, format_date, format_date_long, only_digits


class TestFormatting:
    def test_format_brl(self):
        assert format_brl(1234.56) == "R$ 1.234,56"
        assert format_brl(0) == "R$ 0,00"
        assert format_brl(None) == "R$ 0,00"
        assert format_brl("1500000") == "R$ 1.500.000,00"

    def test_format_date_uses_local_time(self):
        # 17:00 UTC is 14:00 in São Paulo
        assert format_date(datetime(2026, 10, 20, 17, 0)) == "20/10/2026 14:00"
        assert format_date("2026-10-20T17:00:00") == "20/10/2026 14:00"
        assert format_date(None) == "-"

    def test_format_date_long(self):
        assert format_date_long(datetime(2026, 10, 20, 17, 0)) == "20 de outubro de 2026 às 14:00"

    def test_only_digits(self):
        assert only_digits("+55 (11) 98888-7777") == "5511988887777"
        assert only_digits(None) == ""


class TestMessageTemplates:
    def test_header_uses_separator(self):
        assert MessageTemplates.header("*Título*") == f"*Título*\n{SEPARATOR}\n\n"

    def test_empty_order_list(self):
        assert "Sem Ordens de Serviço" in MessageTemplates.order_list([])

    def test_order_list_caps_at_ten(self):
        orders = [{"numero": f"OS-{i}", "titulo": "Serviço", "status": "aberta", "valor": 10}
                  for i in range(12)]
        text = MessageTemplates.order_list(orders)
        assert "(12)" in text
        assert "OS #OS-9" in text
        assert "OS #OS-10" not in text
        assert "... e mais 2 OS" in text

    def test_order_list_hides_zero_values(self):
        text = MessageTemplates.order_list([{"numero": "OS-1", "titulo": "X", "status": "aberta", "valor": 0}])
        assert "💰" not in text

    def test_order_created(self):
        text = MessageTemplates.order_created({
            "numero_os": "OS-20261019-000001",
            "titulo": "Troca de torneira",
            "cliente_nome": "João",
            "status": "aberta",
            "prioridade": "alta",
            "valor_estimado": 150.0,
        })
        assert "#OS-20261019-000001" in text
        assert "🟢 *Status:* Aberta" in text
        assert "R$ 150,00" in text

    def test_balance(self):
        text = MessageTemplates.balance({"periodo": "month", "total": 1500, "quantidade_os": 3})
        assert "R$ 1.500,00" in text
        assert "3 OS" in text

    def test_error_with_suggestion(self):
        text = MessageTemplates.error("Falhou", "Tente de novo")
        assert text.startswith("❌ *Ops! Algo deu errado*")
        assert "💡 *Sugestão:* Tente de novo" in text

    def test_lead_welcome_uses_first_name(self):
        assert MessageTemplates.lead_welcome("Ana Paula Souza").startswith("Opa, Ana! 👋")


class TestToolTemplates:
    def test_every_catalog_tool_has_a_template(self):
        names = {tool["function"]["name"] for tool in TOOL_CATALOG}
        assert names == set(TOOL_TEMPLATES)

    def test_list_template_without_orders_returns_none(self):
        assert TOOL_TEMPLATES["consultar_ordens_servico"]({}) is None
