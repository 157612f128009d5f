# modules/notifications/message_formatter.py - WhatsApp text for delivered notifications

import re

from utils.formatting import SEPARATOR

_VARIABLE_RE = re.compile(r"\{\{\s*(\w+)\s*\}\}")


class NotificationFormatter:
    """Format scheduled notifications for WhatsApp delivery"""

    @staticmethod
    def format_notification(notification) -> str:
        """Title block, message, optional linked order line, automatic footer"""
        text = f"📬 *{notification.titulo}*\n{SEPARATOR}\n\n{notification.mensagem}\n"
        order = notification.ordem_servico
        if order is not None:
            text += f"\n📋 *OS:* #{order.numero_os} - {order.titulo}"
        text += "\n\n_Notificação automática_"
        return text

    @staticmethod
    def substitute_variables(template: str, data: dict) -> str:
        """Replace {{key}} placeholders with event values; unknown keys become empty"""
        if not template:
            return ""
        return _VARIABLE_RE.sub(lambda m: str(data.get(m.group(1)) or ""), template)
